"""
Explorer view: the (container, prefix) the user is looking at, its listing,
its selection and the batch actions that act on it.
"""

import asyncio
from typing import Callable, Dict, List, Optional, Tuple, Union

from common.constants import DEFAULT_LINK_EXPIRY_SECONDS, PATH_DELIMITER, PROGRESS_POLL_INTERVAL_SECONDS
from common.logging_config import get_logger
from common.types import ContainerInfo, Directory, ObjectRecord, PathSegment
from common.validation import validate_container_name
from explorer.directory_index import DirectoryIndex
from explorer.exceptions import ExplorerError, MalformedInputError
from explorer.notifications import NotificationSink
from explorer.object_index import ObjectIndex
from explorer.orchestrator import BatchResult, DeleteResult, TransferOrchestrator
from explorer.path_segments import PathSegmenter
from explorer.selection import SelectionCounts, SelectionSet
from explorer.store import ObjectStore
from explorer.telemetry import LoggingTelemetrySink, TelemetrySink

logger = get_logger(__name__)


def unique_by_id(records: List[ObjectRecord]) -> List[ObjectRecord]:
    """Drop repeated identifiers, keeping the first occurrence."""
    seen: Dict[str, ObjectRecord] = {}
    for record in records:
        seen.setdefault(record.id, record)
    return list(seen.values())


class ExplorerView:
    """
    Single owner of the listing state for one (container, prefix) view.

    Every navigation goes through ``refresh``, which re-queries directories and
    objects in parallel. A refresh that finishes after a newer one started is
    discarded, so the last request wins.
    """

    def __init__(
        self,
        store: ObjectStore,
        sink: Optional[NotificationSink] = None,
        telemetry: Optional[TelemetrySink] = None,
        poll_interval: float = PROGRESS_POLL_INTERVAL_SECONDS,
        link_expiry_seconds: int = DEFAULT_LINK_EXPIRY_SECONDS,
        on_error: Optional[Callable[[ExplorerError], None]] = None
    ):
        """
        Initialize view.

        Args:
            store: Object store backing the view
            sink: Notification sink for transfer jobs
            telemetry: Sink for events, metrics and reported errors
            poll_interval: Seconds between progress polls of each transfer
            link_expiry_seconds: Lifetime of links issued for copies and previews
            on_error: Callback for listing errors reported instead of raised
        """
        self.store = store
        self.telemetry = telemetry or LoggingTelemetrySink()
        self.link_expiry_seconds = link_expiry_seconds
        self.on_error = on_error
        self.orchestrator = TransferOrchestrator(
            store,
            sink=sink,
            telemetry=self.telemetry,
            poll_interval=poll_interval,
            link_expiry_seconds=link_expiry_seconds,
        )
        self.directory_index = DirectoryIndex(store, self.telemetry, on_error=self._notify_error)
        self.object_index = ObjectIndex(store)

        self.containers: List[ContainerInfo] = []
        self.container_filter = ""
        self.container: Optional[str] = None
        self.path = PathSegmenter()
        self.objects: List[ObjectRecord] = []
        self.directories: List[Directory] = []
        self.selection = SelectionSet()
        self.loading = False
        self._generation = 0
        self._listing_key: Optional[Tuple[str, str]] = None

    @property
    def prefix(self) -> str:
        return self.path.prefix

    @property
    def segments(self) -> List[PathSegment]:
        return self.path.segments

    def _notify_error(self, error: ExplorerError) -> None:
        if self.on_error:
            self.on_error(error)

    def _require_container(self) -> str:
        if self.container is None:
            raise MalformedInputError("No container selected")
        return self.container

    # Containers

    async def load_containers(self, name_filter: Optional[str] = None) -> List[ContainerInfo]:
        """
        Load containers whose name starts with ``name_filter``.

        The filter is remembered and reused when no new one is given.
        """
        if name_filter is not None:
            self.container_filter = name_filter
        response = await self.store.list_containers(self.container_filter or None)
        self.containers = [
            ContainerInfo(
                name=entry.name,
                last_modified=entry.properties.last_modified,
                public_access_level=entry.properties.public_access,
            )
            for entry in response.entries
        ]
        logger.debug(f"Loaded {len(self.containers)} containers [filter={self.container_filter}]")
        return self.containers

    async def switch_container(self, name: str) -> bool:
        """Make ``name`` the active container and list its root."""
        self.container = name
        self.path = PathSegmenter()
        self.selection.clear()
        logger.info(f"Switched to container {name}")
        return await self.refresh()

    async def create_container(self, name: str) -> None:
        try:
            validate_container_name(name)
        except ValueError as e:
            raise MalformedInputError(str(e)) from e
        await self.store.create_container(name)
        self.telemetry.track_event("create_container")
        await self.load_containers()

    async def delete_container(self, name: str) -> None:
        await self.store.delete_container(name)
        self.telemetry.track_event("delete_container")
        if name == self.container:
            self.container = None
            self.path = PathSegmenter()
            self.objects, self.directories = [], []
            self.selection.clear()
            self._listing_key = None
        await self.load_containers()

    # Navigation

    async def change_directory(self, segment: PathSegment) -> bool:
        """Breadcrumb navigation: truncate the path after ``segment``."""
        self.path.change_to(segment)
        return await self.refresh()

    async def change_directory_index(self, index: int) -> bool:
        self.path.change_to_index(index)
        return await self.refresh()

    async def change_subdirectory(self, literal_path: str) -> bool:
        """Jump to a full virtual path such as ``mydir1/mydir2/``."""
        self.path.descend_into(literal_path)
        return await self.refresh()

    async def open_directory(self, directory: Directory) -> bool:
        return await self.change_subdirectory(directory.name)

    async def up(self) -> bool:
        self.path.up()
        return await self.refresh()

    async def refresh(self) -> bool:
        """
        Re-query directories and objects for the current view.

        Returns:
            False when a newer refresh superseded this one and its results were dropped
        """
        container = self._require_container()
        prefix = self.prefix
        self._generation += 1
        generation = self._generation
        self.loading = True

        directories, objects = await asyncio.gather(
            self.directory_index.list(container, prefix),
            self._list_objects(container, prefix),
        )

        if generation != self._generation:
            logger.debug(f"Dropped stale listing [container={container}] [prefix={prefix}]")
            return False

        self.directories = directories
        self.objects = objects
        if self._listing_key == (container, prefix):
            self.selection.retain(objects, directories)
        else:
            self.selection.clear()
        self._listing_key = (container, prefix)
        self.loading = False
        return True

    async def _list_objects(self, container: str, prefix: str) -> List[ObjectRecord]:
        try:
            return await self.object_index.list(container, prefix)
        except ExplorerError as e:
            logger.warning(f"Object listing failed [container={container}] [prefix={prefix}]: {e}")
            self.telemetry.track_exception(e)
            self._notify_error(e)
            return []

    # Selection

    def find(self, name: str) -> Optional[Union[ObjectRecord, Directory]]:
        """Look up a visible record by full key, display name or directory name."""
        for directory in self.directories:
            if name in (directory.name, directory.display_name, directory.display_name.rstrip(PATH_DELIMITER)):
                return directory
        for obj in self.objects:
            if name in (obj.name, obj.display_name):
                return obj
        return None

    def find_object(self, name: str) -> ObjectRecord:
        record = self.find(name)
        if not isinstance(record, ObjectRecord):
            raise MalformedInputError(f"No object named {name} in the current view")
        return record

    def toggle(self, record: Union[ObjectRecord, Directory]) -> bool:
        return self.selection.toggle(record)

    def select_all_objects(self) -> None:
        """Toggle every visible object; a second call clears the selection."""
        self.selection.select_all(self.objects)

    def selection_counts(self) -> SelectionCounts:
        return self.selection.count_selected(self.objects, self.directories)

    def selection_summary(self) -> Optional[str]:
        return SelectionSet.describe(self.selection_counts())

    async def collect_selected(self) -> List[ObjectRecord]:
        """
        Selected objects plus every object under each selected directory.

        Duplicates are dropped by identifier, first occurrence wins.
        """
        container = self._require_container()
        objects = self.selection.selected_objects(self.objects)
        directories = self.selection.selected_directories(self.directories)
        expanded = await asyncio.gather(
            *(self.object_index.expand(container, directory) for directory in directories)
        )
        for group in expanded:
            objects.extend(group)
        return unique_by_id(objects)

    # Batch actions

    async def delete_selected(self) -> Optional[DeleteResult]:
        """Delete the selection. Returns None without any store call when nothing is selected."""
        if self.selection_summary() is None:
            return None
        objects = await self.collect_selected()
        result = await self.orchestrator.delete_objects(objects)
        await self.refresh()
        return result

    async def download_selected(self, directory: str) -> Optional[BatchResult]:
        """Download the selection into ``directory``, keeping key structure below the current prefix."""
        if self.selection_summary() is None:
            return None
        objects = await self.collect_selected()
        batch = self.orchestrator.download(objects, directory, relative_to=self.prefix)
        return await batch.wait()

    async def save_as(self, obj: ObjectRecord, local_path: str) -> BatchResult:
        batch = self.orchestrator.download([obj], local_path, save_as=True)
        return await batch.wait()

    async def upload(self, joined_paths: str, destination_prefix: Optional[str] = None) -> BatchResult:
        """
        Upload a semicolon-joined list of local files, then refresh.

        Args:
            joined_paths: Local paths joined with ';'
            destination_prefix: Key prefix; defaults to the current prefix
        """
        container = self._require_container()
        prefix = self.prefix if destination_prefix is None else destination_prefix
        batch = self.orchestrator.upload(container, joined_paths, prefix)
        result = await batch.wait()
        await self.refresh()
        return result

    async def copy(self, obj: ObjectRecord, target_container: str, target_key: Optional[str] = None) -> BatchResult:
        batch = self.orchestrator.copy(obj, target_container, target_key)
        result = await batch.wait()
        if self.container is not None:
            await self.refresh()
        return result

    async def preview_link(self, obj: ObjectRecord) -> str:
        """Time-bounded link for previewing ``obj``."""
        self.telemetry.track_event("preview_object")
        return await self.store.resolve_temporary_link(obj, self.link_expiry_seconds)
