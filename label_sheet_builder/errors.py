"""
Exception types for layout, image, and rendering failures.

Configuration errors are fatal and raised before any drawing happens.
Image and embedding errors are per cell: renderers catch them, keep the
cell border, and report the failed address on the render result.
"""


class LabelSheetError(Exception):
	"""Base exception for all label sheet errors."""

	def __init__(self, message: str, details: dict | None = None):
		super().__init__(message)
		self.message = message
		self.details = details or {}

	def to_dict(self) -> dict:
		"""Convert error to a dictionary for JSON output."""
		return {
			"error_type": self.__class__.__name__,
			"message": self.message,
			"details": self.details,
		}


class ConfigError(LabelSheetError):
	"""Raised when page or grid configuration is invalid."""
	pass


class GeometryError(ConfigError):
	"""Raised when a configuration cannot produce a grid."""
	pass


class NonPositiveCellError(GeometryError):
	"""Raised when margins and gutters leave no room for a cell."""

	def __init__(self, cell_width_mm: float, cell_height_mm: float):
		message = (
			"Derived cell size must be positive, got "
			f"{cell_width_mm:.3f} x {cell_height_mm:.3f} mm"
		)
		details = {
			"cell_width_mm": cell_width_mm,
			"cell_height_mm": cell_height_mm,
		}
		super().__init__(message, details=details)
		self.cell_width_mm = cell_width_mm
		self.cell_height_mm = cell_height_mm


class CellAddressError(LabelSheetError, IndexError):
	"""Raised when a (row, column) address is outside the grid."""

	def __init__(self, row: int, column: int, rows: int, columns: int):
		message = f"Cell ({row}, {column}) is outside a {rows}x{columns} grid"
		details = {"row": row, "column": column, "rows": rows, "columns": columns}
		super().__init__(message, details=details)


class ImageDecodeError(LabelSheetError):
	"""Raised when image bytes cannot be decoded."""
	pass


class ImageFitError(LabelSheetError):
	"""Raised when an image cannot be placed inside a cell."""
	pass


class InvalidDimensionsError(ImageFitError):
	"""Raised when an image reports a non-positive pixel size."""

	def __init__(self, pixel_width: int, pixel_height: int):
		message = f"Image dimensions must be positive, got {pixel_width}x{pixel_height}"
		details = {"pixel_width": pixel_width, "pixel_height": pixel_height}
		super().__init__(message, details=details)


class RenderBackendError(LabelSheetError):
	"""Raised when the output backend fails to embed or write content."""
	pass


class StoreClosedError(LabelSheetError):
	"""Raised when a closed cell store is used."""
	pass
