"""
Grid geometry: page and grid config to per-cell rectangles in millimeters.

All rectangles use a top-left origin with Y increasing downward. Backends
with a bottom-left origin convert at their own boundary with flip_y().
"""

# Standard Library
import dataclasses
from collections.abc import Iterator

# local repo modules
import label_sheet_builder as lsb
import label_sheet_builder.config
import label_sheet_builder.errors


PageConfig = lsb.config.PageConfig
GridConfig = lsb.config.GridConfig
ConfigError = lsb.errors.ConfigError
NonPositiveCellError = lsb.errors.NonPositiveCellError


@dataclasses.dataclass(frozen=True)
class CellRect:
	x_mm: float
	y_mm: float
	width_mm: float
	height_mm: float

	@property
	def right_mm(self) -> float:
		return self.x_mm + self.width_mm

	@property
	def bottom_mm(self) -> float:
		return self.y_mm + self.height_mm


@dataclasses.dataclass(frozen=True)
class Geometry:
	page: PageConfig
	grid: GridConfig
	cell_width_mm: float
	cell_height_mm: float
	cells: tuple[tuple[CellRect, ...], ...]

	@property
	def rows(self) -> int:
		return self.grid.rows

	@property
	def columns(self) -> int:
		return self.grid.columns

	def cell(self, row: int, column: int) -> CellRect:
		return self.cells[row][column]

	def iter_cells(self) -> Iterator[tuple[int, int, CellRect]]:
		"""
		Yield (row, column, rect) in row-major order.
		"""
		for row, row_cells in enumerate(self.cells):
			for column, rect in enumerate(row_cells):
				yield (row, column, rect)


#============================================
def cell_index(row: int, column: int, columns: int) -> int:
	"""
	Compute the row-major flat index of a cell.

	Args:
		row: Row index.
		column: Column index.
		columns: Number of grid columns.

	Returns:
		Flat index.
	"""
	return row * columns + column


#============================================
def validate_config(page: PageConfig, grid: GridConfig) -> None:
	"""
	Check the raw config fields before any derivation.

	Args:
		page: Page configuration.
		grid: Grid configuration.
	"""
	if page.width_mm <= 0 or page.height_mm <= 0:
		raise ConfigError(
			f"Page size must be positive, got {page.width_mm} x {page.height_mm} mm",
			details={"width_mm": page.width_mm, "height_mm": page.height_mm},
		)
	if grid.rows < 1 or grid.columns < 1:
		raise ConfigError(
			f"Grid needs at least one row and column, got {grid.rows}x{grid.columns}",
			details={"rows": grid.rows, "columns": grid.columns},
		)
	spacing = {
		"margin_x_mm": grid.margin_x_mm,
		"margin_y_mm": grid.margin_y_mm,
		"gutter_x_mm": grid.gutter_x_mm,
		"gutter_y_mm": grid.gutter_y_mm,
	}
	for name, value in spacing.items():
		if value < 0:
			raise ConfigError(f"{name} must not be negative, got {value}", details={name: value})


#============================================
def compute_cell_size(page: PageConfig, grid: GridConfig) -> tuple[float, float]:
	"""
	Derive the uniform cell size.

	Args:
		page: Page configuration.
		grid: Grid configuration.

	Returns:
		Tuple of (cell_width_mm, cell_height_mm).
	"""
	grid_width = page.width_mm - 2.0 * grid.margin_x_mm - (grid.columns - 1) * grid.gutter_x_mm
	grid_height = page.height_mm - 2.0 * grid.margin_y_mm - (grid.rows - 1) * grid.gutter_y_mm
	cell_width = grid_width / grid.columns
	cell_height = grid_height / grid.rows
	if cell_width <= 0 or cell_height <= 0:
		raise NonPositiveCellError(cell_width, cell_height)
	return (cell_width, cell_height)


#============================================
def compute_geometry(page: PageConfig, grid: GridConfig) -> Geometry:
	"""
	Compute every cell rectangle of the grid.

	Args:
		page: Page configuration.
		grid: Grid configuration.

	Returns:
		Geometry with rows x columns cells in row-major order.
	"""
	validate_config(page, grid)
	cell_width, cell_height = compute_cell_size(page, grid)

	cells: list[tuple[CellRect, ...]] = []
	for row in range(grid.rows):
		y_mm = grid.margin_y_mm + row * (cell_height + grid.gutter_y_mm)
		row_cells: list[CellRect] = []
		for column in range(grid.columns):
			x_mm = grid.margin_x_mm + column * (cell_width + grid.gutter_x_mm)
			row_cells.append(CellRect(x_mm, y_mm, cell_width, cell_height))
		cells.append(tuple(row_cells))

	return Geometry(
		page=page,
		grid=grid,
		cell_width_mm=cell_width,
		cell_height_mm=cell_height,
		cells=tuple(cells),
	)


#============================================
def flip_y(page_height_mm: float, y_mm_top: float, height_mm: float) -> float:
	"""
	Convert a top-down Y origin to a bottom-up one.

	Args:
		page_height_mm: Page height.
		y_mm_top: Top edge measured from the top of the page.
		height_mm: Rectangle height.

	Returns:
		Bottom edge measured from the bottom of the page.
	"""
	return page_height_mm - y_mm_top - height_mm


#============================================
def rects_overlap(rect_a: CellRect, rect_b: CellRect) -> bool:
	"""
	Check whether two rectangles share any area.

	Args:
		rect_a: First rectangle.
		rect_b: Second rectangle.

	Returns:
		True if rectangles overlap.
	"""
	left = max(rect_a.x_mm, rect_b.x_mm)
	right = min(rect_a.right_mm, rect_b.right_mm)
	top = max(rect_a.y_mm, rect_b.y_mm)
	bottom = min(rect_a.bottom_mm, rect_b.bottom_mm)
	return right > left and bottom > top
