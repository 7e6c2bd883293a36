"""
Print markup rendering of a populated label grid.

The page description positions every cell and image absolutely in
millimeters, top-down, and is meant to be printed at 100% scale with no
page margins. Rasterization is left to the browser or print pipeline.
"""

# Standard Library
import base64
import dataclasses
import functools
import pathlib

# PIP3 modules
import jinja2

# local repo modules
import label_sheet_builder as lsb
import label_sheet_builder.cell_store
import label_sheet_builder.config
import label_sheet_builder.fit
import label_sheet_builder.geometry
import label_sheet_builder.images
import label_sheet_builder.plan


Geometry = lsb.geometry.Geometry
Placement = lsb.fit.Placement
Snapshot = lsb.cell_store.Snapshot
CellContent = lsb.cell_store.CellContent
CellError = lsb.plan.CellError
PlannedCell = lsb.plan.PlannedCell

TEMPLATE_DIR = pathlib.Path(__file__).resolve().parent / "templates"
TEMPLATE_NAME = "print_sheet.html.j2"
DEFAULT_TITLE = "Label sheet"


@dataclasses.dataclass
class PrintResult:
	html: str
	status: str
	cell_errors: list[CellError]
	placements: dict[tuple[int, int], Placement]

	@property
	def failed_cells(self) -> list[tuple[int, int]]:
		return [(error.row, error.column) for error in self.cell_errors]

	def write(self, path: pathlib.Path) -> None:
		pathlib.Path(path).write_text(self.html, encoding="utf-8")


#============================================
@functools.lru_cache(maxsize=4)
def get_environment(directory: pathlib.Path) -> jinja2.Environment:
	"""
	Build a jinja2 environment for the template directory.

	Args:
		directory: Template directory.

	Returns:
		jinja2 Environment.
	"""
	return jinja2.Environment(
		loader=jinja2.FileSystemLoader(str(directory)),
		autoescape=True,
		trim_blocks=True,
		lstrip_blocks=True,
		undefined=jinja2.StrictUndefined,
	)


#============================================
def build_data_uri(content: CellContent) -> str:
	"""
	Encode cell image bytes as a data URI.

	Args:
		content: Cell content.

	Returns:
		Data URI string.
	"""
	encoded = base64.b64encode(content.image_bytes).decode("ascii")
	mime_type = lsb.images.resolve_mime_type(content.mime_type)
	return f"data:{mime_type};base64,{encoded}"


#============================================
def build_cell_context(cell: PlannedCell) -> dict:
	"""
	Build the template context for a single cell.

	Image offsets are relative to the cell box.

	Args:
		cell: Planned cell.

	Returns:
		Template context dictionary.
	"""
	mm_to_css = lsb.config.mm_to_css
	context = {
		"row": cell.row,
		"column": cell.column,
		"left": mm_to_css(cell.rect.x_mm),
		"top": mm_to_css(cell.rect.y_mm),
		"width": mm_to_css(cell.rect.width_mm),
		"height": mm_to_css(cell.rect.height_mm),
		"image": None,
	}
	if cell.drawable:
		placement = cell.placement
		context["image"] = {
			"src": build_data_uri(cell.content),
			"alt": cell.content.name or f"cell {cell.row},{cell.column}",
			"left": mm_to_css(placement.x_mm - cell.rect.x_mm),
			"top": mm_to_css(placement.y_mm - cell.rect.y_mm),
			"width": mm_to_css(placement.draw_width_mm),
			"height": mm_to_css(placement.draw_height_mm),
		}
	return context


#============================================
def render_print(
	geometry: Geometry,
	snapshot: Snapshot,
	draw_borders: bool = True,
	auto_print: bool = False,
	title: str = DEFAULT_TITLE,
) -> PrintResult:
	"""
	Render a label sheet to print-ready HTML.

	Args:
		geometry: Computed geometry.
		snapshot: Cell store snapshot.
		draw_borders: Whether to outline each cell.
		auto_print: Whether the page opens the print dialog on load.
		title: Document title.

	Returns:
		PrintResult.
	"""
	planned = lsb.plan.plan_sheet(geometry, snapshot, decode=False)
	cell_errors = [cell.error for cell in planned if cell.error is not None]
	placements = {
		(cell.row, cell.column): cell.placement
		for cell in planned
		if cell.drawable
	}

	environment = get_environment(TEMPLATE_DIR)
	template = environment.get_template(TEMPLATE_NAME)
	html = template.render(
		title=title,
		page_width=lsb.config.mm_to_css(geometry.page.width_mm),
		page_height=lsb.config.mm_to_css(geometry.page.height_mm),
		border_width=lsb.config.mm_to_css(lsb.config.PRINT_BORDER_MM),
		border_color=lsb.config.PRINT_BORDER_COLOR,
		draw_borders=draw_borders,
		auto_print=auto_print,
		cells=[build_cell_context(cell) for cell in planned],
	)
	return PrintResult(
		html=html,
		status=lsb.plan.summarize_status(cell_errors),
		cell_errors=cell_errors,
		placements=placements,
	)
