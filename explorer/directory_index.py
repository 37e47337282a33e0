"""Virtual directory listing computed from delimiter-segmented store queries."""

from typing import Callable, List, Optional

from common.constants import PATH_DELIMITER
from common.logging_config import get_logger
from common.types import Directory
from explorer.exceptions import ExplorerError
from explorer.store import ObjectStore
from explorer.telemetry import LoggingTelemetrySink, TelemetrySink

logger = get_logger(__name__)


def immediate_child_name(entry_name: str, prefix: str) -> Optional[str]:
    """
    Return the directory name for ``entry_name`` if it is an immediate child of ``prefix``.

    Returns None for the prefix itself, for entries outside the prefix and
    for deeper descendants.
    """
    if not entry_name.startswith(prefix):
        return None
    remainder = entry_name[len(prefix):]
    components = [component for component in remainder.split(PATH_DELIMITER) if component]
    if len(components) != 1:
        return None
    return prefix + components[0] + PATH_DELIMITER


class DirectoryIndex:
    """
    Lists the immediate child directories of a prefix.

    Directories are never stored; each call derives them from the keys the
    store currently holds.
    """

    def __init__(
        self,
        store: ObjectStore,
        telemetry: Optional[TelemetrySink] = None,
        on_error: Optional[Callable[[ExplorerError], None]] = None
    ):
        """
        Initialize the index.

        Args:
            store: Object store to query
            telemetry: Sink that receives reported listing errors
            on_error: Optional callback invoked with every swallowed error
        """
        self.store = store
        self.telemetry = telemetry or LoggingTelemetrySink()
        self.on_error = on_error

    async def list(self, container: str, prefix: str) -> List[Directory]:
        """
        List directories directly under ``prefix``.

        A store failure is reported, not raised, and yields an empty list.

        Args:
            container: Container name
            prefix: Listing prefix ("" for the root)

        Returns:
            Distinct immediate child directories, never including ``prefix`` itself
        """
        try:
            response = await self.store.list_child_prefixes(container, prefix)
        except ExplorerError as e:
            logger.warning(f"Directory listing failed [container={container}] [prefix={prefix}]: {e}")
            self.telemetry.track_exception(e)
            if self.on_error:
                self.on_error(e)
            return []

        directories: List[Directory] = []
        seen = set()
        for entry in response.entries:
            if entry.name == prefix:
                continue
            name = immediate_child_name(entry.name, prefix)
            if name is None or name == prefix or name in seen:
                continue
            seen.add(name)
            directories.append(Directory(name=name))

        logger.debug(f"Listed {len(directories)} directories [container={container}] [prefix={prefix}]")
        return directories
