"""
Per-cell render plan shared by every output backend.

Both renderers walk the same plan, so a given config places every image at
the same cell bounds and the same Placement regardless of backend.
"""

# Standard Library
import dataclasses

# PIP3 modules
import PIL.Image

# local repo modules
import label_sheet_builder as lsb
import label_sheet_builder.cell_store
import label_sheet_builder.errors
import label_sheet_builder.fit
import label_sheet_builder.geometry
import label_sheet_builder.images


CellContent = lsb.cell_store.CellContent
Snapshot = lsb.cell_store.Snapshot
CellRect = lsb.geometry.CellRect
Geometry = lsb.geometry.Geometry
Placement = lsb.fit.Placement
ConfigError = lsb.errors.ConfigError
ImageDecodeError = lsb.errors.ImageDecodeError
ImageFitError = lsb.errors.ImageFitError

STATUS_COMPLETE = "complete"
STATUS_COMPLETE_WITH_ERRORS = "complete_with_errors"


@dataclasses.dataclass(frozen=True)
class CellError:
	row: int
	column: int
	kind: str
	message: str

	def describe(self) -> str:
		return f"cell ({self.row}, {self.column}) {self.kind}: {self.message}"


@dataclasses.dataclass
class PlannedCell:
	row: int
	column: int
	rect: CellRect
	content: CellContent | None = None
	placement: Placement | None = None
	image: PIL.Image.Image | None = None
	error: CellError | None = None

	@property
	def drawable(self) -> bool:
		return self.content is not None and self.placement is not None and self.error is None


#============================================
def make_cell_error(row: int, column: int, error: Exception) -> CellError:
	"""
	Build a cell error record from an exception.

	Args:
		row: Row index.
		column: Column index.
		error: Raised exception.

	Returns:
		CellError.
	"""
	message = getattr(error, "message", None) or str(error)
	return CellError(row=row, column=column, kind=type(error).__name__, message=message)


#============================================
def check_snapshot_shape(geometry: Geometry, snapshot: Snapshot) -> None:
	"""
	Ensure a store snapshot matches the grid it is rendered on.

	Args:
		geometry: Computed geometry.
		snapshot: Cell store snapshot.
	"""
	rows = len(snapshot)
	columns = len(snapshot[0]) if rows else 0
	uneven = any(len(row_cells) != columns for row_cells in snapshot)
	if uneven or rows != geometry.rows or columns != geometry.columns:
		raise ConfigError(
			f"Cell contents are {rows}x{columns} but the grid is {geometry.rows}x{geometry.columns}",
			details={"rows": rows, "columns": columns},
		)


#============================================
def plan_sheet(geometry: Geometry, snapshot: Snapshot, decode: bool = True) -> list[PlannedCell]:
	"""
	Decode and place every populated cell of a sheet.

	Image failures are recorded on the cell and never raised.

	Args:
		geometry: Computed geometry.
		snapshot: Cell store snapshot.
		decode: Whether to keep the decoded image on each cell.

	Returns:
		Planned cells in row-major order.
	"""
	check_snapshot_shape(geometry, snapshot)
	planned: list[PlannedCell] = []
	for row, column, rect in geometry.iter_cells():
		cell = PlannedCell(row=row, column=column, rect=rect, content=snapshot[row][column])
		planned.append(cell)
		if cell.content is None:
			continue
		try:
			image = lsb.images.decode_image(cell.content)
		except ImageDecodeError as error:
			cell.error = make_cell_error(row, column, error)
			continue
		try:
			cell.placement = lsb.fit.fit_image(rect, cell.content.pixel_width, cell.content.pixel_height)
		except ImageFitError as error:
			cell.error = make_cell_error(row, column, error)
			image.close()
			continue
		if decode:
			cell.image = image
		else:
			image.close()
	return planned


#============================================
def summarize_status(cell_errors: list[CellError]) -> str:
	"""
	Return the result status for a list of cell errors.
	"""
	if cell_errors:
		return STATUS_COMPLETE_WITH_ERRORS
	return STATUS_COMPLETE
