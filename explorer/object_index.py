"""Object listing: maps raw store entries into ObjectRecords."""

from typing import List

from common.constants import ROOT_SEGMENT_NAME
from common.logging_config import get_logger
from common.protocol import ListingEntry
from common.types import Directory, ObjectRecord
from explorer.store import ObjectStore

logger = get_logger(__name__)


def to_record(entry: ListingEntry, container: str) -> ObjectRecord:
    """Map one raw listing entry to a record whose id and name are the raw key."""
    properties = entry.properties
    return ObjectRecord(
        name=entry.name,
        size=max(0, properties.content_length or 0),
        content_type=properties.content_type or "",
        last_modified=properties.last_modified,
        container=container,
    )


class ObjectIndex:
    """Lists objects under a prefix. Store errors propagate to the caller."""

    def __init__(self, store: ObjectStore):
        self.store = store

    async def list(self, container: str, prefix: str) -> List[ObjectRecord]:
        """
        List the objects directly under ``prefix``.

        Args:
            container: Container name
            prefix: Listing prefix; "" or "/" means the root

        Returns:
            Records in store order
        """
        if prefix == ROOT_SEGMENT_NAME:
            prefix = ""
        response = await self.store.list_objects(container, prefix, delimited=True)
        records = [to_record(entry, container) for entry in response.entries]
        logger.debug(f"Listed {len(records)} objects [container={container}] [prefix={prefix}]")
        return records

    async def expand(self, container: str, directory: Directory) -> List[ObjectRecord]:
        """
        List every object stored under ``directory``, at any depth.

        Used to turn a selected directory into the objects a batch acts on.
        """
        response = await self.store.list_objects(container, directory.name, delimited=False)
        records = [to_record(entry, container) for entry in response.entries]
        logger.debug(f"Expanded directory {directory.name} into {len(records)} objects [container={container}]")
        return records
