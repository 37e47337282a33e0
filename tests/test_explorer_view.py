"""Tests for ExplorerView navigation, selection and batch actions."""

import asyncio

import pytest
from unittest.mock import Mock

from common.types import Directory, ObjectRecord
from explorer.exceptions import AuthRejectedError, MalformedInputError
from explorer.explorer_view import ExplorerView, unique_by_id
from explorer.memory_store import InMemoryObjectStore

POLL = 0.01


class GatedStore(InMemoryObjectStore):
    """In-memory store whose object listings for gated prefixes wait on an event."""

    def __init__(self):
        super().__init__(chunk_size=4)
        self.gates = {}

    async def list_objects(self, container, prefix, delimited=True):
        gate = self.gates.get(prefix)
        if gate is not None:
            await gate.wait()
        return await super().list_objects(container, prefix, delimited)


class FailingObjectListingStore(InMemoryObjectStore):

    async def list_objects(self, container, prefix, delimited=True):
        raise AuthRejectedError("bad key")


@pytest.fixture
def view(seeded_store, recording_sink, recording_telemetry):
    return ExplorerView(seeded_store, recording_sink, recording_telemetry, poll_interval=POLL)


def names(records):
    return [record.name for record in records]


def test_unique_by_id_keeps_first():
    first = ObjectRecord("a", 1, "text/plain", None, "c")
    second = ObjectRecord("a", 2, "text/plain", None, "c")
    other = ObjectRecord("b", 1, "text/plain", None, "c")

    assert unique_by_id([first, other, second]) == [first, other]


@pytest.mark.asyncio
async def test_load_containers_with_filter(view):
    containers = await view.load_containers("testcontainer2")

    assert [c.name for c in containers] == ["testcontainer2"]
    assert view.container_filter == "testcontainer2"

    await view.load_containers()
    assert [c.name for c in view.containers] == ["testcontainer2"]


@pytest.mark.asyncio
async def test_root_listing(view):
    assert await view.switch_container("testcontainer")

    assert names(view.directories) == ["mydir1/"]
    assert names(view.objects) == ["test-blob-1", "test-blob-2", "test-blob-3", "test-blob-4"]
    assert view.prefix == ""


@pytest.mark.asyncio
async def test_open_directory_then_up(view):
    await view.switch_container("testcontainer")

    await view.open_directory(view.directories[0])

    assert view.prefix == "mydir1/"
    assert names(view.directories) == ["mydir1/mydir2/"]
    assert names(view.objects) == ["mydir1/test-blob-5.mp3"]
    assert [s.name for s in view.segments] == ["/", "mydir1/"]

    await view.up()
    assert view.prefix == ""
    assert len(view.objects) == 4


@pytest.mark.asyncio
async def test_breadcrumb_navigation(view):
    await view.switch_container("testcontainer")
    await view.change_subdirectory("mydir1/mydir2/")

    assert names(view.objects) == ["mydir1/mydir2/test-blob-4.mp3"]
    assert view.directories == []

    await view.change_directory(view.segments[1])
    assert view.prefix == "mydir1/"

    await view.change_directory_index(0)
    assert view.prefix == ""


@pytest.mark.asyncio
async def test_refresh_requires_container(view):
    with pytest.raises(MalformedInputError):
        await view.refresh()


@pytest.mark.asyncio
async def test_last_request_wins(seed, recording_sink):
    store = seed(GatedStore())
    view = ExplorerView(store, recording_sink, poll_interval=POLL)
    await view.switch_container("testcontainer")
    gate = asyncio.Event()
    store.gates["mydir1/"] = gate

    slow = asyncio.create_task(view.change_subdirectory("mydir1/"))
    await asyncio.sleep(0)
    assert await view.up()
    gate.set()

    assert await slow is False
    assert view.prefix == ""
    assert names(view.objects) == ["test-blob-1", "test-blob-2", "test-blob-3", "test-blob-4"]


@pytest.mark.asyncio
async def test_object_listing_error_reported(seed, recording_telemetry):
    reported = Mock()
    store = seed(FailingObjectListingStore())
    view = ExplorerView(store, telemetry=recording_telemetry, on_error=reported)

    assert await view.switch_container("testcontainer")

    assert view.objects == []
    assert names(view.directories) == ["mydir1/"]
    reported.assert_called_once()
    assert isinstance(reported.call_args.args[0], AuthRejectedError)
    assert len(recording_telemetry.exceptions) == 1


@pytest.mark.asyncio
async def test_find_matches_display_names(view):
    await view.switch_container("testcontainer")

    assert isinstance(view.find("mydir1"), Directory)
    assert isinstance(view.find("mydir1/"), Directory)
    assert view.find("test-blob-3").name == "test-blob-3"
    assert view.find("nope") is None

    with pytest.raises(MalformedInputError):
        view.find_object("mydir1")


@pytest.mark.asyncio
async def test_select_all_toggles_objects_only(view):
    await view.switch_container("testcontainer")

    view.select_all_objects()
    assert view.selection_summary() == "4 objects"

    view.select_all_objects()
    assert view.selection_summary() is None


@pytest.mark.asyncio
async def test_refresh_keeps_selection_still_visible(view):
    await view.switch_container("testcontainer")
    view.toggle(view.find("test-blob-1"))
    view.toggle(view.find("mydir1"))

    await view.refresh()

    assert view.selection_summary() == "1 object and 1 directory"


@pytest.mark.asyncio
async def test_refresh_drops_selection_no_longer_visible(view, seeded_store):
    await view.switch_container("testcontainer")
    view.toggle(view.find("test-blob-1"))
    view.toggle(view.find("test-blob-2"))
    await seeded_store.delete_object("testcontainer", "test-blob-1")

    await view.refresh()

    assert view.selection_summary() == "1 object"
    assert names(view.selection.selected_objects(view.objects)) == ["test-blob-2"]


@pytest.mark.asyncio
async def test_navigation_clears_selection(view):
    await view.switch_container("testcontainer")
    view.toggle(view.find("test-blob-1"))

    await view.open_directory(view.find("mydir1"))
    await view.up()

    assert view.selection_counts().empty


@pytest.mark.asyncio
async def test_upload_keeps_selection(view, sample_file):
    await view.switch_container("testcontainer")
    view.toggle(view.find("test-blob-3"))

    await view.upload(str(sample_file))

    assert "test.txt" in names(view.objects)
    assert view.selection_summary() == "1 object"


@pytest.mark.asyncio
async def test_collect_selected_expands_and_dedups(view):
    await view.switch_container("testcontainer")
    view.toggle(view.find("mydir1"))
    view.toggle(view.find("test-blob-1"))

    collected = await view.collect_selected()

    assert sorted(names(collected)) == [
        "mydir1/mydir2/test-blob-4.mp3",
        "mydir1/test-blob-5.mp3",
        "test-blob-1",
    ]


@pytest.mark.asyncio
async def test_delete_directory_and_objects(view, seeded_store):
    await view.switch_container("testcontainer")
    view.toggle(view.find("mydir1"))
    view.toggle(view.find("test-blob-1"))
    view.toggle(view.find("test-blob-2"))

    result = await view.delete_selected()

    assert len(result.succeeded) == 4
    assert result.failed == []
    assert view.directories == []
    assert names(view.objects) == ["test-blob-3", "test-blob-4"]
    assert not seeded_store.has_object("testcontainer", "mydir1/mydir2/test-blob-4.mp3")


@pytest.mark.asyncio
async def test_delete_with_nothing_selected(view):
    await view.switch_container("testcontainer")

    assert await view.delete_selected() is None
    assert len(view.objects) == 4


@pytest.mark.asyncio
async def test_download_selected_keeps_structure(view, tmp_path):
    await view.switch_container("testcontainer")
    view.toggle(view.find("mydir1"))

    result = await view.download_selected(str(tmp_path))

    assert len(result.succeeded) == 2
    assert (tmp_path / "mydir1" / "test-blob-5.mp3").read_bytes() == b"ID3 five"
    assert (tmp_path / "mydir1" / "mydir2" / "test-blob-4.mp3").exists()


@pytest.mark.asyncio
async def test_upload_refreshes_listing(view, sample_file):
    await view.switch_container("testcontainer")
    await view.change_subdirectory("mydir1/")

    result = await view.upload(str(sample_file))

    assert len(result.succeeded) == 1
    assert "mydir1/test.txt" in names(view.objects)


@pytest.mark.asyncio
async def test_copy_into_other_container(view, seeded_store):
    await view.switch_container("testcontainer")

    result = await view.copy(view.find_object("test-blob-2"), "testcontainer2", "copies/two")

    assert result.succeeded
    assert seeded_store.get_bytes("testcontainer2", "copies/two") == b"blob two"


@pytest.mark.asyncio
async def test_create_container_validates_name(view, recording_telemetry):
    with pytest.raises(MalformedInputError):
        await view.create_container("Bad_Name")

    await view.create_container("fresh-container")
    assert "fresh-container" in [c.name for c in view.containers]
    assert "create_container" in recording_telemetry.events


@pytest.mark.asyncio
async def test_delete_active_container_resets_view(view):
    await view.switch_container("testcontainer2")

    await view.delete_container("testcontainer2")

    assert view.container is None
    assert [c.name for c in view.containers] == ["testcontainer"]


@pytest.mark.asyncio
async def test_switch_container_resets_path(view):
    await view.switch_container("testcontainer")
    await view.change_subdirectory("mydir1/")

    await view.switch_container("testcontainer2")

    assert view.prefix == ""
    assert view.objects == []


@pytest.mark.asyncio
async def test_preview_link_tracks_event(view, recording_telemetry):
    await view.switch_container("testcontainer")

    link = await view.preview_link(view.find_object("test-blob-1"))

    assert link.startswith("memory://testcontainer/test-blob-1?se=")
    assert "preview_object" in recording_telemetry.events


@pytest.mark.asyncio
async def test_mixed_media_listing():
    store = InMemoryObjectStore()
    store.put_bytes("testcontainer", "a.mp4", b"video", "video/mp4")
    store.put_bytes("testcontainer", "b.png", b"image", "image/png")
    store.put_bytes("testcontainer", "dir1/c.mp3", b"audio", "audio/mpeg")
    view = ExplorerView(store)

    await view.switch_container("testcontainer")
    assert {o.name for o in view.objects} == {"a.mp4", "b.png"}
    assert {d.name for d in view.directories} == {"dir1/"}

    await view.change_subdirectory("dir1/")
    assert [o.display_name for o in view.objects] == ["c.mp3"]
    assert view.directories == []


@pytest.mark.asyncio
async def test_delete_three_of_six(seeded_store):
    for i in range(1, 7):
        seeded_store.put_bytes("testcontainer2", f"item-{i}", b"x")
    view = ExplorerView(seeded_store)
    await view.switch_container("testcontainer2")
    for name in ("item-1", "item-3", "item-5"):
        view.toggle(view.find(name))

    result = await view.delete_selected()

    assert len(result.succeeded) == 3
    assert names(view.objects) == ["item-2", "item-4", "item-6"]
