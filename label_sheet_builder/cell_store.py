"""
Sparse (row, column) storage for loaded cell images.

The store is the only mutable structure of a label sheet. Each slot carries
a monotonic version so that a slow image load cannot overwrite a newer
assignment, and every temporary handle attached to a content entry is
released exactly once.
"""

# Standard Library
import concurrent.futures
import dataclasses
import threading
from collections.abc import Callable
from typing import Any

# local repo modules
import label_sheet_builder as lsb
import label_sheet_builder.errors


CellAddressError = lsb.errors.CellAddressError
ConfigError = lsb.errors.ConfigError
StoreClosedError = lsb.errors.StoreClosedError


@dataclasses.dataclass(frozen=True)
class CellContent:
	row: int
	column: int
	image_bytes: bytes
	mime_type: str
	pixel_width: int
	pixel_height: int
	name: str = ""
	# opaque temporary resource owned by the loader, e.g. a temp file
	handle: Any = dataclasses.field(default=None, compare=False)

	def moved_to(self, row: int, column: int) -> "CellContent":
		return dataclasses.replace(self, row=row, column=column)


Snapshot = tuple[tuple[CellContent | None, ...], ...]


class CellStore:
	"""
	Addressable cell contents for a rows x columns grid.

	Args:
		rows: Number of grid rows.
		columns: Number of grid columns.
		release: Optional callback invoked once for every content entry with
			a handle when that entry leaves the store.
	"""

	def __init__(
		self,
		rows: int,
		columns: int,
		release: Callable[[CellContent], None] | None = None,
	):
		_check_shape(rows, columns)
		self._rows = rows
		self._columns = columns
		self._release = release
		self._entries: dict[tuple[int, int], CellContent] = {}
		self._versions: dict[tuple[int, int], int] = {}
		self._lock = threading.Lock()
		self._closed = False

	@property
	def rows(self) -> int:
		return self._rows

	@property
	def columns(self) -> int:
		return self._columns

	@property
	def closed(self) -> bool:
		return self._closed

	def __enter__(self) -> "CellStore":
		return self

	def __exit__(self, exc_type, exc_value, traceback) -> None:
		self.close()

	def __len__(self) -> int:
		with self._lock:
			return len(self._entries)

	def _check_open(self) -> None:
		if self._closed:
			raise StoreClosedError("Cell store is closed")

	def _check_address(self, row: int, column: int) -> tuple[int, int]:
		if not (0 <= row < self._rows and 0 <= column < self._columns):
			raise CellAddressError(row, column, self._rows, self._columns)
		return (row, column)

	def _release_content(self, content: CellContent | None) -> None:
		if content is None or content.handle is None or self._release is None:
			return
		self._release(content)

	def _bump(self, key: tuple[int, int]) -> int:
		version = self._versions.get(key, 0) + 1
		self._versions[key] = version
		return version

	def get(self, row: int, column: int) -> CellContent | None:
		"""
		Return the content of a cell, or None when empty.
		"""
		key = self._check_address(row, column)
		with self._lock:
			return self._entries.get(key)

	def version(self, row: int, column: int) -> int:
		"""
		Return the current version of a cell slot.
		"""
		key = self._check_address(row, column)
		with self._lock:
			return self._versions.get(key, 0)

	def set(self, row: int, column: int, content: CellContent) -> None:
		"""
		Assign content to a cell, replacing any previous entry.

		Setting the same content object again is a no-op. Any load still
		pending for this cell is superseded.

		Args:
			row: Row index.
			column: Column index.
			content: Loaded image content.
		"""
		key = self._check_address(row, column)
		if (content.row, content.column) != key:
			content = content.moved_to(row, column)
		with self._lock:
			self._check_open()
			previous = self._entries.get(key)
			if previous is content or previous == content and previous.handle is content.handle:
				return
			self._entries[key] = content
			self._bump(key)
		if previous is not None and previous.handle is not content.handle:
			self._release_content(previous)

	def clear(self, row: int, column: int) -> bool:
		"""
		Remove the content of a cell and release its handle.

		Args:
			row: Row index.
			column: Column index.

		Returns:
			True if the cell held content.
		"""
		key = self._check_address(row, column)
		with self._lock:
			self._check_open()
			previous = self._entries.pop(key, None)
			self._bump(key)
		self._release_content(previous)
		return previous is not None

	def resize(self, rows: int, columns: int) -> list[CellContent]:
		"""
		Change the grid shape, keeping entries that still fit.

		Args:
			rows: New number of rows.
			columns: New number of columns.

		Returns:
			Entries dropped because they fell outside the new bounds.
		"""
		_check_shape(rows, columns)
		with self._lock:
			self._check_open()
			dropped: list[CellContent] = []
			for key in sorted(self._entries):
				if key[0] >= rows or key[1] >= columns:
					dropped.append(self._entries.pop(key))
			# counters survive a shrink so a regrown cell never reuses a version
			for key in list(self._versions):
				if key[0] >= rows or key[1] >= columns:
					self._bump(key)
			self._rows = rows
			self._columns = columns
		for content in dropped:
			self._release_content(content)
		return dropped

	def snapshot(self) -> Snapshot:
		"""
		Return an immutable rows x columns view of the current contents.

		Returns:
			Nested tuples in row-major order, None for empty cells.
		"""
		with self._lock:
			entries = dict(self._entries)
			rows = self._rows
			columns = self._columns
		return tuple(
			tuple(entries.get((row, column)) for column in range(columns))
			for row in range(rows)
		)

	def filled_count(self) -> int:
		with self._lock:
			return len(self._entries)

	def is_full(self) -> bool:
		with self._lock:
			return len(self._entries) == self._rows * self._columns

	def begin_load(self, row: int, column: int) -> int:
		"""
		Register a new load for a cell.

		Args:
			row: Row index.
			column: Column index.

		Returns:
			Version token to pass to complete_load().
		"""
		key = self._check_address(row, column)
		with self._lock:
			self._check_open()
			return self._bump(key)

	def complete_load(self, row: int, column: int, version: int, content: CellContent) -> bool:
		"""
		Apply a finished load if no newer load or edit superseded it.

		Args:
			row: Row index.
			column: Column index.
			version: Token returned by begin_load().
			content: Loaded image content.

		Returns:
			True if the content was stored.
		"""
		key = (row, column)
		if (content.row, content.column) != key:
			content = content.moved_to(row, column)
		previous = None
		with self._lock:
			applied = (
				not self._closed
				and row < self._rows
				and column < self._columns
				and self._versions.get(key, 0) == version
			)
			if applied:
				previous = self._entries.get(key)
				self._entries[key] = content
		if not applied:
			self._release_content(content)
			return False
		if previous is not None and previous.handle is not content.handle:
			self._release_content(previous)
		return True

	def load_async(
		self,
		row: int,
		column: int,
		loader: Callable[[], CellContent],
		executor: concurrent.futures.Executor,
	) -> concurrent.futures.Future:
		"""
		Run a loader on an executor and store its result when still current.

		Args:
			row: Row index.
			column: Column index.
			loader: Callable returning the loaded CellContent.
			executor: Executor to run the loader on.

		Returns:
			Future resolving to True when the result was stored.
		"""
		version = self.begin_load(row, column)

		def run_load() -> bool:
			content = loader()
			return self.complete_load(row, column, version, content)

		return executor.submit(run_load)

	def close(self) -> None:
		"""
		Release every remaining handle and close the store.
		"""
		with self._lock:
			if self._closed:
				return
			self._closed = True
			remaining = [self._entries[key] for key in sorted(self._entries)]
			self._entries.clear()
			self._versions.clear()
		for content in remaining:
			self._release_content(content)


#============================================
def _check_shape(rows: int, columns: int) -> None:
	if rows < 1 or columns < 1:
		raise ConfigError(
			f"Grid needs at least one row and column, got {rows}x{columns}",
			details={"rows": rows, "columns": columns},
		)
