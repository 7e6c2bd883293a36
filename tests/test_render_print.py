import base64

import defusedxml.ElementTree
import pytest

import label_sheet_builder.cell_store
import label_sheet_builder.config
import label_sheet_builder.geometry
import label_sheet_builder.images
import label_sheet_builder.render_print

config = label_sheet_builder.config
render_print = label_sheet_builder.render_print


#============================================
def parse_style(style: str) -> dict[str, str]:
	"""
	Parse an inline CSS style attribute.
	"""
	result = {}
	for declaration in style.split(";"):
		if ":" not in declaration:
			continue
		key, value = declaration.split(":", 1)
		result[key.strip()] = value.strip()
	return result


#============================================
def mm_value(text: str) -> float:
	assert text.endswith("mm")
	return float(text[:-2])


#============================================
def find_cells(html: str) -> dict[tuple[int, int], object]:
	"""
	Parse the page and index cell elements by address.
	"""
	root = defusedxml.ElementTree.fromstring(html)
	cells = {}
	for element in root.iter("div"):
		if element.get("class") != "cell":
			continue
		cells[(int(element.get("data-row")), int(element.get("data-column")))] = element
	return cells


#============================================
def build_reference() -> tuple:
	page = config.PageConfig(width_mm=210.0, height_mm=297.0)
	grid = config.GridConfig(11, 3, 10.0, 10.0, 2.0, 2.0)
	return (page, grid, label_sheet_builder.geometry.compute_geometry(page, grid))


#============================================
def test_cells_positioned_top_down_in_mm() -> None:
	"""
	Ensure every cell is absolutely positioned with unflipped mm values.
	"""
	_page, _grid, geometry = build_reference()
	snapshot = label_sheet_builder.cell_store.CellStore(11, 3).snapshot()
	result = render_print.render_print(geometry, snapshot)
	assert result.status == "complete"
	assert "@page { size: 210mm 297mm; margin: 0; }" in result.html

	cells = find_cells(result.html)
	assert len(cells) == 33
	first = parse_style(cells[(0, 0)].get("style"))
	assert first["left"] == "10mm"
	assert first["top"] == "10mm"
	assert first["width"] == "62mm"
	last = parse_style(cells[(10, 2)].get("style"))
	assert mm_value(last["left"]) == pytest.approx(138.0)
	assert mm_value(last["top"]) == pytest.approx(geometry.cell(10, 2).y_mm, abs=1e-4)
	assert mm_value(last["height"]) == pytest.approx(257.0 / 11.0, abs=1e-4)
	assert list(cells[(0, 0)]) == []


#============================================
def test_image_placement_and_data_uri(png_bytes: bytes) -> None:
	"""
	Ensure images use the fitted placement relative to their cell.
	"""
	_page, _grid, geometry = build_reference()
	store = label_sheet_builder.cell_store.CellStore(11, 3)
	content = label_sheet_builder.images.load_image_bytes(png_bytes, 4, 1, name="red.png")
	store.set(4, 1, content)
	result = render_print.render_print(geometry, store.snapshot())

	cell = find_cells(result.html)[(4, 1)]
	images = list(cell.iter("img"))
	assert len(images) == 1
	image = images[0]
	assert image.get("alt") == "red.png"
	prefix = "data:image/png;base64,"
	assert image.get("src").startswith(prefix)
	assert base64.b64decode(image.get("src")[len(prefix):]) == png_bytes

	placement = result.placements[(4, 1)]
	rect = geometry.cell(4, 1)
	style = parse_style(image.get("style"))
	assert mm_value(style["left"]) == pytest.approx(placement.x_mm - rect.x_mm, abs=1e-4)
	assert mm_value(style["top"]) == pytest.approx(placement.y_mm - rect.y_mm, abs=1e-4)
	assert mm_value(style["width"]) == pytest.approx(placement.draw_width_mm, abs=1e-4)
	assert mm_value(style["height"]) == pytest.approx(placement.draw_height_mm, abs=1e-4)


#============================================
def test_bad_cell_renders_empty_and_reports() -> None:
	"""
	Ensure an undecodable image leaves an empty cell and a cell error.
	"""
	_page, _grid, geometry = build_reference()
	store = label_sheet_builder.cell_store.CellStore(11, 3)
	store.set(0, 0, label_sheet_builder.cell_store.CellContent(0, 0, b"junk", "image/png", 5, 5))
	result = render_print.render_print(geometry, store.snapshot())
	assert result.status == "complete_with_errors"
	assert result.failed_cells == [(0, 0)]
	assert list(find_cells(result.html)[(0, 0)].iter("img")) == []


#============================================
def test_options_toggle_borders_and_print_script() -> None:
	"""
	Ensure border outlines and the print script follow the options.
	"""
	_page, _grid, geometry = build_reference()
	snapshot = label_sheet_builder.cell_store.CellStore(11, 3).snapshot()
	plain = render_print.render_print(geometry, snapshot, draw_borders=False)
	assert "outline" not in plain.html
	assert "window.print" not in plain.html

	styled = render_print.render_print(geometry, snapshot, auto_print=True, title="Sheet <1>")
	assert "outline: 0.3mm solid #999999" in styled.html
	assert "window.print()" in styled.html
	assert "Sheet &lt;1&gt;" in styled.html


#============================================
def test_write_result(tmp_path) -> None:
	"""
	Ensure results can be written as UTF-8 text.
	"""
	_page, _grid, geometry = build_reference()
	result = render_print.render_print(geometry, label_sheet_builder.cell_store.CellStore(11, 3).snapshot())
	output_path = tmp_path / "labels.html"
	result.write(output_path)
	assert output_path.read_text(encoding="utf-8") == result.html
