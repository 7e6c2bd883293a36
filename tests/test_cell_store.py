import concurrent.futures
import threading

import pytest

import label_sheet_builder.cell_store
import label_sheet_builder.errors

CellStore = label_sheet_builder.cell_store.CellStore
CellContent = label_sheet_builder.cell_store.CellContent


#============================================
def make_content(row: int, column: int, tag: str, handle: object = None) -> CellContent:
	"""
	Build a small fake content entry.
	"""
	return CellContent(
		row=row,
		column=column,
		image_bytes=tag.encode("ascii"),
		mime_type="image/png",
		pixel_width=10,
		pixel_height=5,
		name=tag,
		handle=handle,
	)


#============================================
class ReleaseLog:
	"""
	Record released handles.
	"""

	def __init__(self):
		self.handles: list[object] = []

	def __call__(self, content: CellContent) -> None:
		self.handles.append(content.handle)


#============================================
def test_set_get_and_snapshot() -> None:
	"""
	Ensure entries are addressable and snapshots are fully defined.
	"""
	store = CellStore(2, 3)
	content = make_content(1, 2, "a")
	store.set(1, 2, content)
	assert store.get(1, 2) is content
	assert store.get(0, 0) is None
	snapshot = store.snapshot()
	assert len(snapshot) == 2
	assert all(len(row) == 3 for row in snapshot)
	assert snapshot[1][2] is content
	assert snapshot[0][0] is None
	assert store.filled_count() == 1
	assert not store.is_full()


#============================================
def test_set_rebinds_address() -> None:
	"""
	Ensure stored content carries the address it was stored under.
	"""
	store = CellStore(2, 2)
	store.set(1, 1, make_content(0, 0, "a"))
	stored = store.get(1, 1)
	assert (stored.row, stored.column) == (1, 1)


#============================================
def test_set_is_idempotent() -> None:
	"""
	Ensure repeated identical sets change nothing and release nothing.
	"""
	log = ReleaseLog()
	store = CellStore(2, 2, release=log)
	content = make_content(0, 0, "a", handle="h1")
	store.set(0, 0, content)
	version = store.version(0, 0)
	store.set(0, 0, content)
	assert store.version(0, 0) == version
	assert store.get(0, 0) is content
	assert log.handles == []


#============================================
def test_out_of_bounds_address() -> None:
	"""
	Ensure addresses outside the grid raise CellAddressError.
	"""
	store = CellStore(2, 2)
	with pytest.raises(label_sheet_builder.errors.CellAddressError):
		store.set(2, 0, make_content(2, 0, "a"))
	with pytest.raises(IndexError):
		store.get(0, -1)
	with pytest.raises(label_sheet_builder.errors.ConfigError):
		CellStore(0, 3)


#============================================
def test_clear_releases_handle_once() -> None:
	"""
	Ensure clearing releases the handle exactly once.
	"""
	log = ReleaseLog()
	store = CellStore(2, 2, release=log)
	store.set(0, 1, make_content(0, 1, "a", handle="h1"))
	assert store.clear(0, 1) is True
	assert store.clear(0, 1) is False
	store.close()
	assert log.handles == ["h1"]
	assert store.get(0, 1) is None


#============================================
def test_replace_releases_previous_handle() -> None:
	"""
	Ensure re-assignment releases the replaced entry.
	"""
	log = ReleaseLog()
	store = CellStore(1, 1, release=log)
	store.set(0, 0, make_content(0, 0, "a", handle="h1"))
	store.set(0, 0, make_content(0, 0, "b", handle="h2"))
	assert log.handles == ["h1"]
	store.close()
	assert log.handles == ["h1", "h2"]


#============================================
def test_resize_keeps_surviving_cells() -> None:
	"""
	Ensure shrinking an 11 x 3 store to 5 x 3 keeps (0, 0) and drops (10, 2).
	"""
	log = ReleaseLog()
	store = CellStore(11, 3, release=log)
	kept = make_content(0, 0, "kept", handle="keep")
	store.set(0, 0, kept)
	store.set(10, 2, make_content(10, 2, "dropped", handle="drop"))
	dropped = store.resize(5, 3)
	assert [content.name for content in dropped] == ["dropped"]
	assert (store.rows, store.columns) == (5, 3)
	assert store.get(0, 0) is kept
	assert log.handles == ["drop"]
	snapshot = store.snapshot()
	assert len(snapshot) == 5
	assert snapshot[0][0] is kept

	store.resize(11, 3)
	assert store.get(10, 2) is None
	assert store.get(0, 0) is kept


#============================================
def test_resize_drops_columns() -> None:
	"""
	Ensure narrowing the grid drops cells in removed columns only.
	"""
	store = CellStore(3, 3)
	store.set(2, 1, make_content(2, 1, "a"))
	store.set(1, 2, make_content(1, 2, "b"))
	dropped = store.resize(3, 2)
	assert [content.name for content in dropped] == ["b"]
	assert store.get(2, 1).name == "a"


#============================================
def test_snapshot_is_isolated_from_mutation() -> None:
	"""
	Ensure a snapshot does not see later edits.
	"""
	store = CellStore(2, 2)
	store.set(0, 0, make_content(0, 0, "a"))
	snapshot = store.snapshot()
	store.clear(0, 0)
	store.set(1, 1, make_content(1, 1, "b"))
	assert snapshot[0][0].name == "a"
	assert snapshot[1][1] is None


#============================================
def test_superseded_load_is_discarded() -> None:
	"""
	Ensure a load that completes after a newer one cannot overwrite it.
	"""
	log = ReleaseLog()
	store = CellStore(11, 3, release=log)
	version_a = store.begin_load(2, 1)
	version_b = store.begin_load(2, 1)
	content_b = make_content(2, 1, "B", handle="hb")
	content_a = make_content(2, 1, "A", handle="ha")
	assert store.complete_load(2, 1, version_b, content_b) is True
	assert store.complete_load(2, 1, version_a, content_a) is False
	assert store.get(2, 1) is content_b
	assert log.handles == ["ha"]


#============================================
def test_clear_cancels_pending_load() -> None:
	"""
	Ensure clearing a cell cancels a load still in flight.
	"""
	store = CellStore(2, 2)
	version = store.begin_load(0, 0)
	store.clear(0, 0)
	assert store.complete_load(0, 0, version, make_content(0, 0, "late")) is False
	assert store.get(0, 0) is None


#============================================
def test_load_after_shrink_is_discarded() -> None:
	"""
	Ensure a load for a cell removed by resize is discarded.
	"""
	store = CellStore(4, 4)
	version = store.begin_load(3, 3)
	store.resize(2, 2)
	assert store.complete_load(3, 3, version, make_content(3, 3, "late")) is False
	assert store.snapshot() == ((None, None), (None, None))


#============================================
def test_load_before_shrink_and_regrow_is_discarded() -> None:
	"""
	Ensure a load started before a shrink cannot overwrite a newer load after regrowth.
	"""
	store = CellStore(11, 3)
	stale_version = store.begin_load(10, 2)
	store.resize(5, 3)
	store.resize(11, 3)
	fresh_version = store.begin_load(10, 2)
	assert fresh_version != stale_version
	assert store.complete_load(10, 2, fresh_version, make_content(10, 2, "fresh")) is True
	assert store.complete_load(10, 2, stale_version, make_content(10, 2, "stale")) is False
	assert store.get(10, 2).name == "fresh"


#============================================
def test_load_async_version_guard() -> None:
	"""
	Ensure the later-started async load wins even when it finishes first.
	"""
	store = CellStore(3, 2)
	release_first = threading.Event()

	def slow_loader() -> CellContent:
		release_first.wait(timeout=5.0)
		return make_content(2, 1, "A")

	def fast_loader() -> CellContent:
		return make_content(2, 1, "B")

	with concurrent.futures.ThreadPoolExecutor(max_workers=2) as executor:
		future_a = store.load_async(2, 1, slow_loader, executor)
		future_b = store.load_async(2, 1, fast_loader, executor)
		assert future_b.result(timeout=5.0) is True
		release_first.set()
		assert future_a.result(timeout=5.0) is False
	assert store.get(2, 1).name == "B"


#============================================
def test_load_async_failure_leaves_cell() -> None:
	"""
	Ensure a failing loader leaves the cell untouched.
	"""
	store = CellStore(1, 1)
	store.set(0, 0, make_content(0, 0, "old"))

	def broken_loader() -> CellContent:
		raise label_sheet_builder.errors.ImageDecodeError("bad data")

	with concurrent.futures.ThreadPoolExecutor(max_workers=1) as executor:
		future = store.load_async(0, 0, broken_loader, executor)
		with pytest.raises(label_sheet_builder.errors.ImageDecodeError):
			future.result(timeout=5.0)
	assert store.get(0, 0).name == "old"


#============================================
def test_close_releases_all_once() -> None:
	"""
	Ensure closing releases every remaining handle once and blocks edits.
	"""
	log = ReleaseLog()
	with CellStore(2, 2, release=log) as store:
		store.set(0, 0, make_content(0, 0, "a", handle="h1"))
		store.set(1, 1, make_content(1, 1, "b", handle="h2"))
		store.set(1, 0, make_content(1, 0, "c"))
	assert sorted(log.handles) == ["h1", "h2"]
	store.close()
	assert sorted(log.handles) == ["h1", "h2"]
	assert store.closed
	with pytest.raises(label_sheet_builder.errors.StoreClosedError):
		store.set(0, 0, make_content(0, 0, "x"))
