"""
Image acquisition and decoding.
"""

# Standard Library
import io
import pathlib

# PIP3 modules
import PIL.Image

# local repo modules
import label_sheet_builder as lsb
import label_sheet_builder.cell_store
import label_sheet_builder.config
import label_sheet_builder.errors


CellContent = lsb.cell_store.CellContent
ImageDecodeError = lsb.errors.ImageDecodeError

SUPPORTED_MIME_TYPES = lsb.config.SUPPORTED_MIME_TYPES
FALLBACK_MIME_TYPE = lsb.config.FALLBACK_MIME_TYPE

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
JPEG_SIGNATURE = b"\xff\xd8\xff"

PIL_FORMATS = {
	"image/png": "PNG",
	"image/jpeg": "JPEG",
}
SUFFIX_MIME_TYPES = {
	".png": "image/png",
	".jpg": "image/jpeg",
	".jpeg": "image/jpeg",
}


#============================================
def sniff_mime_type(data: bytes) -> str | None:
	"""
	Detect PNG or JPEG data from its leading bytes.

	Args:
		data: Raw image bytes.

	Returns:
		Mime type string or None if unrecognized.
	"""
	if data.startswith(PNG_SIGNATURE):
		return "image/png"
	if data.startswith(JPEG_SIGNATURE):
		return "image/jpeg"
	return None


#============================================
def resolve_mime_type(mime_type: str | None) -> str:
	"""
	Map a declared mime type to a supported decode path.

	Undetermined or unknown types use the JPEG path.

	Args:
		mime_type: Declared mime type, possibly None.

	Returns:
		Supported mime type.
	"""
	if mime_type is None:
		return FALLBACK_MIME_TYPE
	normalized = mime_type.strip().lower()
	if normalized == "image/jpg":
		normalized = "image/jpeg"
	if normalized in SUPPORTED_MIME_TYPES:
		return normalized
	return FALLBACK_MIME_TYPE


#============================================
def open_image(data: bytes, mime_type: str | None) -> PIL.Image.Image:
	"""
	Decode image bytes through the decoder selected by mime type.

	Args:
		data: Raw image bytes.
		mime_type: Declared mime type.

	Returns:
		Fully loaded PIL image.
	"""
	resolved = resolve_mime_type(mime_type)
	pil_format = PIL_FORMATS[resolved]
	try:
		image = PIL.Image.open(io.BytesIO(data), formats=[pil_format])
		image.load()
	except (PIL.UnidentifiedImageError, OSError, SyntaxError, ValueError) as error:
		raise ImageDecodeError(
			f"Cannot decode {resolved} data: {error}",
			details={"mime_type": resolved, "size": len(data)},
		) from error
	return image


#============================================
def decode_image(content: CellContent) -> PIL.Image.Image:
	"""
	Decode the image held by a cell.

	Args:
		content: Cell content.

	Returns:
		Fully loaded PIL image.
	"""
	return open_image(content.image_bytes, content.mime_type)


#============================================
def load_image_bytes(
	data: bytes,
	row: int,
	column: int,
	mime_type: str | None = None,
	name: str = "",
) -> CellContent:
	"""
	Build cell content from raw image bytes.

	Args:
		data: Raw image bytes.
		row: Target row.
		column: Target column.
		mime_type: Declared mime type; sniffed from the data when None.
		name: Optional source name for reporting.

	Returns:
		CellContent with pixel dimensions read from the image.
	"""
	if mime_type is None:
		mime_type = sniff_mime_type(data)
		if mime_type is None:
			raise ImageDecodeError(
				f"Unsupported image data for {name or 'cell'} (expected PNG or JPEG)",
				details={"name": name},
			)
	resolved = resolve_mime_type(mime_type)
	image = open_image(data, resolved)
	pixel_width, pixel_height = image.size
	image.close()
	return CellContent(
		row=row,
		column=column,
		image_bytes=data,
		mime_type=resolved,
		pixel_width=pixel_width,
		pixel_height=pixel_height,
		name=name,
	)


#============================================
def load_image_file(path: pathlib.Path, row: int, column: int) -> CellContent:
	"""
	Read an image file from disk into cell content.

	Args:
		path: Image file path.
		row: Target row.
		column: Target column.

	Returns:
		CellContent.
	"""
	path = pathlib.Path(path)
	data = path.read_bytes()
	mime_type = sniff_mime_type(data)
	if mime_type is None:
		mime_type = SUFFIX_MIME_TYPES.get(path.suffix.lower())
	if mime_type is None:
		raise ImageDecodeError(
			f"Unsupported image file: {path.name} (expected PNG or JPEG)",
			details={"path": str(path)},
		)
	return load_image_bytes(data, row, column, mime_type=mime_type, name=path.name)
