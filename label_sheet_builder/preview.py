"""
Raster preview of a rendered label sheet.
"""

# Standard Library
import pathlib

# PIP3 modules
import fitz
import PIL.Image

# local repo modules
import label_sheet_builder as lsb
import label_sheet_builder.config


PREVIEW_DPI = lsb.config.PREVIEW_DPI


#============================================
def rasterize_pdf(data: bytes, dpi: int = PREVIEW_DPI) -> PIL.Image.Image:
	"""
	Render the first page of a PDF to an image.

	Args:
		data: PDF bytes.
		dpi: Output resolution.

	Returns:
		RGB PIL image.
	"""
	document = fitz.open(stream=data, filetype="pdf")
	try:
		page = document[0]
		scale = dpi / 72.0
		matrix = fitz.Matrix(scale, scale)
		pixmap = page.get_pixmap(matrix=matrix, alpha=False)
		image = PIL.Image.frombytes("RGB", [pixmap.width, pixmap.height], pixmap.samples)
	finally:
		document.close()
	return image


#============================================
def write_preview_png(data: bytes, path: pathlib.Path, dpi: int = PREVIEW_DPI) -> tuple[int, int]:
	"""
	Write a PNG preview of a PDF.

	Args:
		data: PDF bytes.
		path: Output PNG path.
		dpi: Output resolution.

	Returns:
		Preview size in pixels.
	"""
	image = rasterize_pdf(data, dpi)
	image.save(pathlib.Path(path), format="PNG")
	return image.size
