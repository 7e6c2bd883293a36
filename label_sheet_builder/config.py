"""
Shared configuration, page presets, and unit conversion.
"""

# Standard Library
import dataclasses

# local repo modules
import label_sheet_builder as lsb
import label_sheet_builder.errors


ConfigError = lsb.errors.ConfigError

# 72 points per inch, 25.4 mm per inch
MM_TO_POINTS = 2.8346456693
CSS_MM_DECIMALS = 4

PAGE_PRESETS = {
	"A4": (210.0, 297.0),
	"Letter": (215.9, 279.4),
}
CUSTOM_PRESET = "Custom"

DEFAULT_PRESET = "A4"
DEFAULT_ROWS = 11
DEFAULT_COLUMNS = 3
DEFAULT_MARGIN_X = 8.0
DEFAULT_MARGIN_Y = 12.0
DEFAULT_GUTTER_X = 3.0
DEFAULT_GUTTER_Y = 3.0

# front end input caps, not enforced by the geometry engine
MAX_ROWS = 50
MAX_COLUMNS = 6

BORDER_WIDTH_POINTS = 0.5
BORDER_GRAY = 0.7
PRINT_BORDER_MM = 0.3
PRINT_BORDER_COLOR = "#999999"
PREVIEW_DPI = 150
PROGRESS_BAR_WIDTH = 20

SUPPORTED_MIME_TYPES = ("image/png", "image/jpeg")
FALLBACK_MIME_TYPE = "image/jpeg"

PROFILE_FIELDS = (
	"pageWidthMm",
	"pageHeightMm",
	"rows",
	"columns",
	"marginXmm",
	"marginYmm",
	"gutterXmm",
	"gutterYmm",
)


@dataclasses.dataclass(frozen=True)
class PageConfig:
	width_mm: float
	height_mm: float
	preset: str | None = None


@dataclasses.dataclass(frozen=True)
class GridConfig:
	rows: int
	columns: int
	margin_x_mm: float = 0.0
	margin_y_mm: float = 0.0
	gutter_x_mm: float = 0.0
	gutter_y_mm: float = 0.0


#============================================
def mm_to_points(value: float) -> float:
	"""
	Convert millimeters to PDF points.

	Args:
		value: Millimeters value.

	Returns:
		Points value.
	"""
	return value * MM_TO_POINTS


#============================================
def points_to_mm(value: float) -> float:
	"""
	Convert PDF points to millimeters.
	"""
	return value / MM_TO_POINTS


#============================================
def mm_to_css(value: float) -> str:
	"""
	Format a millimeter value as a CSS length.

	The print pipeline understands physical units, so no numeric conversion
	happens here. Rounding is applied only to the formatted string.

	Args:
		value: Millimeters value.

	Returns:
		CSS length string like "62mm" or "23.9091mm".
	"""
	text = f"{value:.{CSS_MM_DECIMALS}f}".rstrip("0").rstrip(".")
	if text in ("", "-0"):
		text = "0"
	return f"{text}mm"


#============================================
def page_from_preset(name: str) -> PageConfig:
	"""
	Build a page config from a named preset.

	Args:
		name: Preset name such as "A4" or "Letter".

	Returns:
		PageConfig.
	"""
	if name not in PAGE_PRESETS:
		known = ", ".join(sorted(PAGE_PRESETS))
		raise ConfigError(
			f"Unknown page preset {name!r} (known: {known})",
			details={"preset": name},
		)
	width_mm, height_mm = PAGE_PRESETS[name]
	return PageConfig(width_mm=width_mm, height_mm=height_mm, preset=name)


#============================================
def default_page() -> PageConfig:
	"""
	Return the default page config.
	"""
	return page_from_preset(DEFAULT_PRESET)


#============================================
def default_grid() -> GridConfig:
	"""
	Return the default grid config.
	"""
	return GridConfig(
		rows=DEFAULT_ROWS,
		columns=DEFAULT_COLUMNS,
		margin_x_mm=DEFAULT_MARGIN_X,
		margin_y_mm=DEFAULT_MARGIN_Y,
		gutter_x_mm=DEFAULT_GUTTER_X,
		gutter_y_mm=DEFAULT_GUTTER_Y,
	)


#============================================
def config_to_dict(page: PageConfig, grid: GridConfig) -> dict:
	"""
	Serialize page and grid config into a plain dictionary.

	Args:
		page: Page configuration.
		grid: Grid configuration.

	Returns:
		Dictionary with the profile field names.
	"""
	data = {
		"pageWidthMm": page.width_mm,
		"pageHeightMm": page.height_mm,
		"rows": grid.rows,
		"columns": grid.columns,
		"marginXmm": grid.margin_x_mm,
		"marginYmm": grid.margin_y_mm,
		"gutterXmm": grid.gutter_x_mm,
		"gutterYmm": grid.gutter_y_mm,
	}
	if page.preset is not None:
		data["pagePreset"] = page.preset
	return data


#============================================
def _read_number(data: dict, key: str) -> float:
	value = data[key]
	# bool is an int subclass
	if isinstance(value, bool) or not isinstance(value, (int, float)):
		raise ConfigError(f"Profile field {key} must be a number", details={"field": key})
	return float(value)


#============================================
def _read_count(data: dict, key: str) -> int:
	value = data[key]
	if isinstance(value, bool):
		raise ConfigError(f"Profile field {key} must be an integer", details={"field": key})
	if isinstance(value, float) and value.is_integer():
		value = int(value)
	if not isinstance(value, int):
		raise ConfigError(f"Profile field {key} must be an integer", details={"field": key})
	return value


#============================================
def config_from_dict(data: dict) -> tuple[PageConfig, GridConfig]:
	"""
	Deserialize page and grid config from a plain dictionary.

	Args:
		data: Dictionary produced by config_to_dict().

	Returns:
		Tuple of (PageConfig, GridConfig).
	"""
	if not isinstance(data, dict):
		raise ConfigError("Profile must be a JSON object")
	missing = [key for key in PROFILE_FIELDS if key not in data]
	if missing:
		raise ConfigError(
			f"Profile is missing fields: {', '.join(missing)}",
			details={"missing": missing},
		)
	preset = data.get("pagePreset")
	if preset is not None and not isinstance(preset, str):
		raise ConfigError("Profile field pagePreset must be a string")
	page = PageConfig(
		width_mm=_read_number(data, "pageWidthMm"),
		height_mm=_read_number(data, "pageHeightMm"),
		preset=preset,
	)
	grid = GridConfig(
		rows=_read_count(data, "rows"),
		columns=_read_count(data, "columns"),
		margin_x_mm=_read_number(data, "marginXmm"),
		margin_y_mm=_read_number(data, "marginYmm"),
		gutter_x_mm=_read_number(data, "gutterXmm"),
		gutter_y_mm=_read_number(data, "gutterYmm"),
	)
	return (page, grid)
