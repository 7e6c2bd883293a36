"""
Named layout profiles stored in a JSON file.
"""

# Standard Library
import json
import pathlib

# local repo modules
import label_sheet_builder as lsb
import label_sheet_builder.config
import label_sheet_builder.errors


PageConfig = lsb.config.PageConfig
GridConfig = lsb.config.GridConfig
ConfigError = lsb.errors.ConfigError


class ProfileBook:
	"""
	Collection of named page and grid profiles backed by a JSON file.

	Args:
		path: JSON file path. A missing file is an empty book.
	"""

	def __init__(self, path: pathlib.Path):
		self.path = pathlib.Path(path)
		self._profiles: dict[str, dict] = {}
		if self.path.exists():
			self._profiles = read_profiles(self.path)

	def names(self) -> list[str]:
		return sorted(self._profiles)

	def __contains__(self, name: str) -> bool:
		return name in self._profiles

	def load_profile(self, name: str) -> tuple[PageConfig, GridConfig]:
		"""
		Return the page and grid config stored under a name.

		Args:
			name: Profile name.

		Returns:
			Tuple of (PageConfig, GridConfig).
		"""
		if name not in self._profiles:
			raise ConfigError(f"Unknown profile {name!r}", details={"profile": name})
		return lsb.config.config_from_dict(self._profiles[name])

	def save_profile(self, name: str, page: PageConfig, grid: GridConfig) -> None:
		"""
		Store a profile under a name and write the book to disk.

		Args:
			name: Profile name.
			page: Page configuration.
			grid: Grid configuration.
		"""
		name = name.strip()
		if not name:
			raise ConfigError("Profile name must not be empty")
		self._profiles[name] = lsb.config.config_to_dict(page, grid)
		write_profiles(self.path, self._profiles)

	def delete_profile(self, name: str) -> bool:
		"""
		Remove a profile and write the book to disk.

		Returns:
			True if the profile existed.
		"""
		if name not in self._profiles:
			return False
		del self._profiles[name]
		write_profiles(self.path, self._profiles)
		return True


#============================================
def read_profiles(path: pathlib.Path) -> dict[str, dict]:
	"""
	Read a profile JSON file.

	Args:
		path: JSON path.

	Returns:
		Profiles keyed by name.
	"""
	text = path.read_text(encoding="utf-8")
	try:
		data = json.loads(text)
	except json.JSONDecodeError as error:
		raise ConfigError(f"Profile file {path} is not valid JSON: {error}") from error
	if not isinstance(data, dict):
		raise ConfigError(f"Profile file {path} must hold a JSON object")
	for name, profile in data.items():
		if not isinstance(profile, dict):
			raise ConfigError(f"Profile {name!r} must be a JSON object", details={"profile": name})
	return data


#============================================
def write_profiles(path: pathlib.Path, profiles: dict[str, dict]) -> None:
	"""
	Write profiles to a JSON file.

	Args:
		path: JSON path.
		profiles: Profiles keyed by name.
	"""
	path.parent.mkdir(parents=True, exist_ok=True)
	text = json.dumps(profiles, indent=2, sort_keys=True)
	path.write_text(text + "\n", encoding="utf-8")
