"""
PDF rendering of a populated label grid.
"""

# Standard Library
import dataclasses
import hashlib
import io
import pathlib

# PIP3 modules
import PIL.Image
import reportlab.lib.utils
import reportlab.pdfgen.canvas

# local repo modules
import label_sheet_builder as lsb
import label_sheet_builder.cell_store
import label_sheet_builder.config
import label_sheet_builder.errors
import label_sheet_builder.fit
import label_sheet_builder.geometry
import label_sheet_builder.images
import label_sheet_builder.plan


Geometry = lsb.geometry.Geometry
CellRect = lsb.geometry.CellRect
Placement = lsb.fit.Placement
Snapshot = lsb.cell_store.Snapshot
CellContent = lsb.cell_store.CellContent
CellError = lsb.plan.CellError
PlannedCell = lsb.plan.PlannedCell
LabelSheetError = lsb.errors.LabelSheetError
RenderBackendError = lsb.errors.RenderBackendError

BORDER_WIDTH_POINTS = lsb.config.BORDER_WIDTH_POINTS
BORDER_GRAY = lsb.config.BORDER_GRAY

STATE_IDLE = "idle"
STATE_BUILDING = "building"
STATE_COMPLETE = "complete"
STATE_FAILED = "failed"


@dataclasses.dataclass
class RenderResult:
	data: bytes
	status: str
	cell_errors: list[CellError]
	placements: dict[tuple[int, int], Placement]

	@property
	def failed_cells(self) -> list[tuple[int, int]]:
		return [(error.row, error.column) for error in self.cell_errors]

	def write(self, path: pathlib.Path) -> None:
		pathlib.Path(path).write_bytes(self.data)


#============================================
def pdf_rect_points(page_height_mm: float, rect: CellRect) -> tuple[float, float, float, float]:
	"""
	Convert a top-down mm rectangle to bottom-up PDF points.

	Args:
		page_height_mm: Page height in mm.
		rect: Rectangle in top-down mm.

	Returns:
		Tuple of (x, y, width, height) in points.
	"""
	y_from_bottom = lsb.geometry.flip_y(page_height_mm, rect.y_mm, rect.height_mm)
	return (
		lsb.config.mm_to_points(rect.x_mm),
		lsb.config.mm_to_points(y_from_bottom),
		lsb.config.mm_to_points(rect.width_mm),
		lsb.config.mm_to_points(rect.height_mm),
	)


#============================================
def build_image_reader(
	content: CellContent,
	image: PIL.Image.Image,
) -> reportlab.lib.utils.ImageReader:
	"""
	Build a ReportLab image reader for a cell image.

	PNG images are embedded from the decoded bitmap so alpha becomes a soft
	mask. JPEG bytes are passed through so the original DCT stream is kept.

	Args:
		content: Cell content.
		image: Decoded PIL image.

	Returns:
		ImageReader instance.
	"""
	mime_type = lsb.images.resolve_mime_type(content.mime_type)
	if mime_type == "image/png":
		if image.mode not in ("RGB", "RGBA"):
			image = image.convert("RGBA")
		return reportlab.lib.utils.ImageReader(image)
	return reportlab.lib.utils.ImageReader(io.BytesIO(content.image_bytes))


class PdfRenderer:
	"""
	Single-page PDF renderer.

	The renderer moves from idle to building, then to complete or failed.
	Cell level failures never stop a render; they are listed on the result.

	Args:
		draw_borders: Whether to stroke a guide border around each cell.
	"""

	def __init__(self, draw_borders: bool = True):
		self.draw_borders = draw_borders
		self.state = STATE_IDLE
		self._reader_cache: dict[str, reportlab.lib.utils.ImageReader] = {}

	def _get_reader(self, content: CellContent, image: PIL.Image.Image) -> reportlab.lib.utils.ImageReader:
		key = content.mime_type + ":" + hashlib.sha256(content.image_bytes).hexdigest()
		reader = self._reader_cache.get(key)
		if reader is None:
			reader = build_image_reader(content, image)
			self._reader_cache[key] = reader
		return reader

	def _draw_border(self, pdf: reportlab.pdfgen.canvas.Canvas, page_height_mm: float, rect: CellRect) -> None:
		x, y, width, height = pdf_rect_points(page_height_mm, rect)
		pdf.rect(x, y, width, height, stroke=1, fill=0)

	def _draw_image(
		self,
		pdf: reportlab.pdfgen.canvas.Canvas,
		page_height_mm: float,
		cell: PlannedCell,
	) -> None:
		reader = self._get_reader(cell.content, cell.image)
		x, y, width, height = pdf_rect_points(page_height_mm, cell.placement.as_rect())
		pdf.drawImage(
			reader,
			x,
			y,
			width=width,
			height=height,
			mask="auto",
			preserveAspectRatio=False,
			anchor="sw",
		)

	def render(self, geometry: Geometry, snapshot: Snapshot) -> RenderResult:
		"""
		Render the grid and its images to PDF bytes.

		Args:
			geometry: Computed geometry.
			snapshot: Cell store snapshot taken before rendering.

		Returns:
			RenderResult.
		"""
		self.state = STATE_BUILDING
		self._reader_cache = {}
		try:
			planned = lsb.plan.plan_sheet(geometry, snapshot)
		except LabelSheetError:
			self.state = STATE_FAILED
			raise

		page_height_mm = geometry.page.height_mm
		buffer = io.BytesIO()
		cell_errors: list[CellError] = []
		placements: dict[tuple[int, int], Placement] = {}
		try:
			pdf = reportlab.pdfgen.canvas.Canvas(
				buffer,
				pagesize=(
					lsb.config.mm_to_points(geometry.page.width_mm),
					lsb.config.mm_to_points(page_height_mm),
				),
			)
			pdf.setLineWidth(BORDER_WIDTH_POINTS)
			pdf.setStrokeColorRGB(BORDER_GRAY, BORDER_GRAY, BORDER_GRAY)

			for cell in planned:
				if self.draw_borders:
					self._draw_border(pdf, page_height_mm, cell.rect)
				if cell.error is not None:
					cell_errors.append(cell.error)
					continue
				if not cell.drawable:
					continue
				try:
					self._draw_image(pdf, page_height_mm, cell)
				except Exception as error:
					backend_error = RenderBackendError(
						f"Cannot embed {cell.content.mime_type} image: {error}",
						details={"row": cell.row, "column": cell.column},
					)
					cell_errors.append(lsb.plan.make_cell_error(cell.row, cell.column, backend_error))
					continue
				placements[(cell.row, cell.column)] = cell.placement

			pdf.showPage()
			pdf.save()
		except Exception as error:
			self.state = STATE_FAILED
			raise RenderBackendError(f"Cannot write PDF document: {error}") from error
		finally:
			for cell in planned:
				if cell.image is not None:
					cell.image.close()

		self.state = STATE_COMPLETE
		return RenderResult(
			data=buffer.getvalue(),
			status=lsb.plan.summarize_status(cell_errors),
			cell_errors=cell_errors,
			placements=placements,
		)


#============================================
def render_pdf(geometry: Geometry, snapshot: Snapshot, draw_borders: bool = True) -> RenderResult:
	"""
	Render a label sheet to PDF.

	Args:
		geometry: Computed geometry.
		snapshot: Cell store snapshot.
		draw_borders: Whether to stroke cell guide borders.

	Returns:
		RenderResult.
	"""
	renderer = PdfRenderer(draw_borders=draw_borders)
	return renderer.render(geometry, snapshot)
