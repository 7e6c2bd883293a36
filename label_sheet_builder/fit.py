"""
Aspect-preserving image placement inside a cell.
"""

# Standard Library
import dataclasses

# local repo modules
import label_sheet_builder as lsb
import label_sheet_builder.errors
import label_sheet_builder.geometry


CellRect = lsb.geometry.CellRect
InvalidDimensionsError = lsb.errors.InvalidDimensionsError


@dataclasses.dataclass(frozen=True)
class Placement:
	x_mm: float
	y_mm: float
	draw_width_mm: float
	draw_height_mm: float

	def as_rect(self) -> CellRect:
		return CellRect(self.x_mm, self.y_mm, self.draw_width_mm, self.draw_height_mm)


#============================================
def compute_center_offset(available: float, scaled: float) -> float:
	"""
	Compute the offset that centers a scaled span inside an available span.

	Args:
		available: Available dimension.
		scaled: Scaled dimension.

	Returns:
		Offset in the same unit.
	"""
	return max(0.0, (available - scaled) / 2.0)


#============================================
def fit_image(cell: CellRect, pixel_width: int, pixel_height: int) -> Placement:
	"""
	Scale an image uniformly to fit a cell and center it.

	Pixel dimensions are only used as an aspect ratio; no pixel density is
	assumed. The image is never cropped and never stretched.

	Args:
		cell: Target cell rectangle in top-down millimeters.
		pixel_width: Source image width in pixels.
		pixel_height: Source image height in pixels.

	Returns:
		Placement in the same coordinate space as the cell.
	"""
	if pixel_width <= 0 or pixel_height <= 0:
		raise InvalidDimensionsError(pixel_width, pixel_height)

	scale = min(cell.width_mm / pixel_width, cell.height_mm / pixel_height)
	draw_width = pixel_width * scale
	draw_height = pixel_height * scale
	# the bound axis must not drift past the cell edge
	draw_width = min(draw_width, cell.width_mm)
	draw_height = min(draw_height, cell.height_mm)
	offset_x = compute_center_offset(cell.width_mm, draw_width)
	offset_y = compute_center_offset(cell.height_mm, draw_height)
	return Placement(
		x_mm=cell.x_mm + offset_x,
		y_mm=cell.y_mm + offset_y,
		draw_width_mm=draw_width,
		draw_height_mm=draw_height,
	)
