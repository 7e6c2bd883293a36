"""
CLI entry points for building label sheets.
"""

# Standard Library
import argparse
import concurrent.futures
import functools
import pathlib
import time

# local repo modules
import label_sheet_builder as lsb
import label_sheet_builder.cell_store
import label_sheet_builder.config
import label_sheet_builder.errors
import label_sheet_builder.geometry
import label_sheet_builder.images
import label_sheet_builder.preview
import label_sheet_builder.profiles
import label_sheet_builder.render_pdf
import label_sheet_builder.render_print


PageConfig = lsb.config.PageConfig
GridConfig = lsb.config.GridConfig
ConfigError = lsb.errors.ConfigError
LabelSheetError = lsb.errors.LabelSheetError

MAX_ROWS = lsb.config.MAX_ROWS
MAX_COLUMNS = lsb.config.MAX_COLUMNS
PROGRESS_BAR_WIDTH = lsb.config.PROGRESS_BAR_WIDTH
LOAD_WORKERS = 4


#============================================
def parse_assignment(value: str) -> tuple[int, int, pathlib.Path]:
	"""
	Parse a ROW,COL=PATH cell assignment.

	Args:
		value: Assignment string.

	Returns:
		Tuple of (row, column, path).
	"""
	address, separator, path_text = value.partition("=")
	if not separator or not path_text:
		raise argparse.ArgumentTypeError(f"Expected ROW,COL=IMAGE, got {value!r}")
	parts = address.split(",")
	if len(parts) != 2:
		raise argparse.ArgumentTypeError(f"Expected ROW,COL=IMAGE, got {value!r}")
	try:
		row = int(parts[0])
		column = int(parts[1])
	except ValueError as error:
		raise argparse.ArgumentTypeError(f"Cell address must be integers: {address!r}") from error
	return (row, column, pathlib.Path(path_text))


#============================================
def build_config(args: argparse.Namespace) -> tuple[PageConfig, GridConfig]:
	"""
	Build page and grid config from CLI args.

	Defaults come first, then a named profile, then explicit flags.

	Args:
		args: Parsed argparse namespace.

	Returns:
		Tuple of (PageConfig, GridConfig).
	"""
	page = lsb.config.default_page()
	grid = lsb.config.default_grid()
	if args.profile is not None:
		if args.profiles_path is None:
			raise ConfigError("--profile needs --profiles FILE")
		book = lsb.profiles.ProfileBook(args.profiles_path)
		page, grid = book.load_profile(args.profile)

	if args.preset is not None and args.preset != lsb.config.CUSTOM_PRESET:
		page = lsb.config.page_from_preset(args.preset)
	if args.page_width is not None or args.page_height is not None:
		page = PageConfig(
			width_mm=args.page_width if args.page_width is not None else page.width_mm,
			height_mm=args.page_height if args.page_height is not None else page.height_mm,
			preset=None,
		)

	overrides = {
		"rows": args.rows,
		"columns": args.columns,
		"margin_x_mm": args.margin_x,
		"margin_y_mm": args.margin_y,
		"gutter_x_mm": args.gutter_x,
		"gutter_y_mm": args.gutter_y,
	}
	values = {
		"rows": grid.rows,
		"columns": grid.columns,
		"margin_x_mm": grid.margin_x_mm,
		"margin_y_mm": grid.margin_y_mm,
		"gutter_x_mm": grid.gutter_x_mm,
		"gutter_y_mm": grid.gutter_y_mm,
	}
	for key, value in overrides.items():
		if value is not None:
			values[key] = value
	grid = GridConfig(**values)

	if not 1 <= grid.rows <= MAX_ROWS:
		raise ConfigError(f"Rows must be between 1 and {MAX_ROWS}, got {grid.rows}")
	if not 1 <= grid.columns <= MAX_COLUMNS:
		raise ConfigError(f"Columns must be between 1 and {MAX_COLUMNS}, got {grid.columns}")
	return (page, grid)


#============================================
def default_output_path(page: PageConfig) -> pathlib.Path:
	"""
	Name the output PDF after the page preset.
	"""
	token = page.preset or "custom"
	return pathlib.Path(f"labels_{token}.pdf")


#============================================
def print_progress(prefix: str, current: int, total: int) -> None:
	"""
	Print a simple progress bar.

	Args:
		prefix: Label text.
		current: Current count.
		total: Total count.
	"""
	if total <= 0:
		return
	percent = int(round((current / total) * 100.0))
	filled = int(round(PROGRESS_BAR_WIDTH * percent / 100.0))
	bar = "#" * filled + "-" * (PROGRESS_BAR_WIDTH - filled)
	print(f"{prefix} [{bar}] {current}/{total} ({percent}%)", end="\r")


#============================================
def load_cell_images(
	store: lsb.cell_store.CellStore,
	assignments: list[tuple[int, int, pathlib.Path]],
) -> list[str]:
	"""
	Load assigned images into the store concurrently.

	When a cell is assigned more than once, the last assignment wins.

	Args:
		store: Cell store to fill.
		assignments: (row, column, path) tuples.

	Returns:
		Messages for images that failed to load.
	"""
	failures: list[str] = []
	total = len(assignments)
	if total == 0:
		return failures
	with concurrent.futures.ThreadPoolExecutor(max_workers=LOAD_WORKERS) as executor:
		futures = {}
		for row, column, path in assignments:
			loader = functools.partial(lsb.images.load_image_file, path, row, column)
			future = store.load_async(row, column, loader, executor)
			futures[future] = (row, column, path)
		print_progress("Images", 0, total)
		for done, future in enumerate(concurrent.futures.as_completed(futures), start=1):
			row, column, path = futures[future]
			error = future.exception()
			if error is not None:
				if not isinstance(error, (LabelSheetError, OSError)):
					raise error
				failures.append(f"cell ({row}, {column}) {path}: {error}")
			print_progress("Images", done, total)
	print()
	return failures


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command line arguments.

	Args:
		argv: Optional argument list, defaults to sys.argv.

	Returns:
		Parsed argparse namespace.
	"""
	parser = argparse.ArgumentParser(description="Place images on a grid of labels and write a PDF sheet.")
	parser.add_argument(
		"assignments",
		nargs="*",
		type=parse_assignment,
		metavar="ROW,COL=IMAGE",
		help="Image for a cell, zero-based row and column.",
	)

	output_group = parser.add_argument_group("Output")
	output_group.add_argument("-o", "--output", dest="output_path", default=None, help="Output PDF path.")
	output_group.add_argument("-w", "--html", dest="html_path", default=None, help="Output print HTML path.")
	output_group.add_argument("-r", "--preview", dest="preview_path", default=None, help="Output PNG preview path.")
	output_group.add_argument("--preview-dpi", dest="preview_dpi", type=int, default=lsb.config.PREVIEW_DPI, help="Preview resolution.")

	page_group = parser.add_argument_group("Page")
	presets = sorted(lsb.config.PAGE_PRESETS) + [lsb.config.CUSTOM_PRESET]
	page_group.add_argument("-s", "--preset", dest="preset", choices=presets, default=None, help="Page size preset.")
	page_group.add_argument("--page-width", dest="page_width", type=float, default=None, help="Page width in mm.")
	page_group.add_argument("--page-height", dest="page_height", type=float, default=None, help="Page height in mm.")

	grid_group = parser.add_argument_group("Grid")
	grid_group.add_argument("--rows", dest="rows", type=int, default=None, help="Number of label rows.")
	grid_group.add_argument("--columns", dest="columns", type=int, default=None, help="Number of label columns.")
	grid_group.add_argument("--margin-x", dest="margin_x", type=float, default=None, help="Left and right margin in mm.")
	grid_group.add_argument("--margin-y", dest="margin_y", type=float, default=None, help="Top and bottom margin in mm.")
	grid_group.add_argument("--gutter-x", dest="gutter_x", type=float, default=None, help="Spacing between columns in mm.")
	grid_group.add_argument("--gutter-y", dest="gutter_y", type=float, default=None, help="Spacing between rows in mm.")

	profile_group = parser.add_argument_group("Profiles")
	profile_group.add_argument("-f", "--profiles", dest="profiles_path", default=None, help="Profile JSON file.")
	profile_group.add_argument("-p", "--profile", dest="profile", default=None, help="Load a named profile.")
	profile_group.add_argument("-P", "--save-profile", dest="save_profile", default=None, help="Save the layout under a name.")
	profile_group.add_argument("--list-profiles", dest="list_profiles", action="store_true", help="List saved profiles and exit.")

	behavior_group = parser.add_argument_group("Behavior")
	behavior_group.add_argument("-b", "--borders", dest="draw_borders", action="store_true", help="Draw cell guide borders.")
	behavior_group.add_argument("-B", "--no-borders", dest="draw_borders", action="store_false", help="Disable cell guide borders.")
	behavior_group.add_argument("-a", "--auto-print", dest="auto_print", action="store_true", help="Open the print dialog when the HTML loads.")

	parser.set_defaults(
		draw_borders=True,
		auto_print=False,
		list_profiles=False,
	)

	args = parser.parse_args(argv)
	return args


#============================================
def run_pipeline(args: argparse.Namespace) -> lsb.render_pdf.RenderResult | None:
	"""
	Run the full pipeline from image assignments to output files.

	Args:
		args: Parsed argparse namespace.

	Returns:
		PDF RenderResult, or None when only profiles were listed.
	"""
	if args.list_profiles:
		if args.profiles_path is None:
			raise ConfigError("--list-profiles needs --profiles FILE")
		book = lsb.profiles.ProfileBook(args.profiles_path)
		for name in book.names():
			print(name)
		return None

	page, grid = build_config(args)
	geometry = lsb.geometry.compute_geometry(page, grid)
	output_path = pathlib.Path(args.output_path) if args.output_path else default_output_path(page)

	print("Label sheet pipeline")
	print(f"Page: {page.preset or 'Custom'} ({page.width_mm} x {page.height_mm} mm)")
	print(f"Grid: {grid.rows} rows x {grid.columns} columns")
	print(f"Margins: {grid.margin_x_mm} x {grid.margin_y_mm} mm")
	print(f"Gutters: {grid.gutter_x_mm} x {grid.gutter_y_mm} mm")
	print(f"Cell size: {geometry.cell_width_mm:.2f} x {geometry.cell_height_mm:.2f} mm")
	print(f"Output PDF: {output_path}")
	if args.html_path:
		print(f"Output HTML: {args.html_path}")
	if args.preview_path:
		print(f"Preview PNG: {args.preview_path}")

	if args.save_profile:
		if args.profiles_path is None:
			raise ConfigError("--save-profile needs --profiles FILE")
		book = lsb.profiles.ProfileBook(args.profiles_path)
		book.save_profile(args.save_profile, page, grid)
		print(f"Profile saved: {args.save_profile}")

	start_time = time.perf_counter()
	with lsb.cell_store.CellStore(grid.rows, grid.columns) as store:
		for row, column, _path in args.assignments:
			if not (0 <= row < grid.rows and 0 <= column < grid.columns):
				raise lsb.errors.CellAddressError(row, column, grid.rows, grid.columns)
		load_start = time.perf_counter()
		failures = load_cell_images(store, args.assignments)
		load_end = time.perf_counter()
		for message in failures:
			print(f"Load failed: {message}")
		print(f"Cells filled: {store.filled_count()} of {grid.rows * grid.columns}")
		snapshot = store.snapshot()

	render_start = time.perf_counter()
	result = lsb.render_pdf.render_pdf(geometry, snapshot, draw_borders=args.draw_borders)
	result.write(output_path)
	render_end = time.perf_counter()
	print(f"PDF written: {output_path} ({result.status})")
	for cell_error in result.cell_errors:
		print(f"Cell error: {cell_error.describe()}")

	if args.html_path:
		print_result = lsb.render_print.render_print(
			geometry,
			snapshot,
			draw_borders=args.draw_borders,
			auto_print=args.auto_print,
		)
		print_result.write(pathlib.Path(args.html_path))
		print(f"HTML written: {args.html_path} ({print_result.status})")

	if args.preview_path:
		width, height = lsb.preview.write_preview_png(
			result.data,
			pathlib.Path(args.preview_path),
			args.preview_dpi,
		)
		print(f"Preview written: {args.preview_path} ({width}x{height} px)")

	total_time = time.perf_counter() - start_time
	print(
		"Timing: load={:.2f}s render={:.2f}s total={:.2f}s".format(
			load_end - load_start,
			render_end - render_start,
			total_time,
		)
	)
	return result


#============================================
def main(argv: list[str] | None = None) -> None:
	"""
	Main entry point.
	"""
	args = parse_args(argv)
	try:
		run_pipeline(args)
	except (ConfigError, lsb.errors.CellAddressError) as error:
		print(f"Configuration error: {error.message}")
		raise SystemExit(2) from error
