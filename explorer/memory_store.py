"""In-process ObjectStore used by tests and by the CLI's --memory mode."""

import asyncio
import mimetypes
import os
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional
from urllib.parse import parse_qs, quote, unquote, urlparse

from common.constants import PATH_DELIMITER, TRANSFER_CHUNK_SIZE_BYTES
from common.logging_config import get_logger
from common.protocol import EntryProperties, ListingEntry, ListingResponse
from common.types import ObjectRecord
from explorer.exceptions import MalformedInputError, NotFoundError, TransferFailedError
from explorer.store import ObjectStore, ProgressHandle, TransferHandle

logger = get_logger(__name__)

LINK_SCHEME = "memory"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass
class StoredObject:
    data: bytes
    content_type: str
    last_modified: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class InMemoryObjectStore(ObjectStore):
    """
    Dictionary-backed object store.

    Transfers run as tasks that move bytes in chunks and yield to the event
    loop between chunks, so progress polling observes real intermediate
    readings.
    """

    def __init__(
        self,
        chunk_size: int = TRANSFER_CHUNK_SIZE_BYTES,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize store.

        Args:
            chunk_size: Bytes moved per step of a transfer
            clock: Wall clock used for link expiry
        """
        self.chunk_size = max(1, chunk_size)
        self._clock = clock
        self._containers: Dict[str, Dict[str, StoredObject]] = {}

    def add_container(self, name: str) -> None:
        """Create a container synchronously (seeding helper)."""
        self._containers.setdefault(name, {})

    def put_bytes(
        self,
        container: str,
        key: str,
        data: bytes,
        content_type: str = DEFAULT_CONTENT_TYPE
    ) -> None:
        """Store an object synchronously, creating the container if needed (seeding helper)."""
        self._containers.setdefault(container, {})[key] = StoredObject(data=data, content_type=content_type)

    def get_bytes(self, container: str, key: str) -> bytes:
        return self._object(container, key).data

    def has_object(self, container: str, key: str) -> bool:
        return key in self._containers.get(container, {})

    def _bucket(self, container: str) -> Dict[str, StoredObject]:
        bucket = self._containers.get(container)
        if bucket is None:
            raise NotFoundError(f"Container not found: {container}")
        return bucket

    def _object(self, container: str, key: str) -> StoredObject:
        stored = self._bucket(container).get(key)
        if stored is None:
            raise NotFoundError(f"Object not found: {container}:/{key}")
        return stored

    @staticmethod
    def _entry(key: str, stored: StoredObject) -> ListingEntry:
        return ListingEntry(
            name=key,
            properties=EntryProperties(
                content_type=stored.content_type,
                content_length=len(stored.data),
                last_modified=stored.last_modified,
            ),
        )

    async def list_containers(self, name_filter: Optional[str] = None) -> ListingResponse:
        names = sorted(name for name in self._containers if not name_filter or name.startswith(name_filter))
        return ListingResponse(entries=[ListingEntry(name=name) for name in names])

    async def create_container(self, name: str) -> None:
        if name in self._containers:
            raise TransferFailedError(f"Container already exists: {name}")
        self._containers[name] = {}
        logger.info(f"Created container {name}")

    async def delete_container(self, name: str) -> None:
        self._bucket(name)
        del self._containers[name]
        logger.info(f"Deleted container {name}")

    async def list_child_prefixes(self, container: str, prefix: str) -> ListingResponse:
        prefixes: List[str] = []
        for key in sorted(self._bucket(container)):
            if not key.startswith(prefix):
                continue
            remainder = key[len(prefix):]
            if PATH_DELIMITER not in remainder:
                continue
            child = prefix + remainder.split(PATH_DELIMITER, 1)[0] + PATH_DELIMITER
            if child not in prefixes:
                prefixes.append(child)
        return ListingResponse(entries=[ListingEntry(name=name) for name in prefixes])

    async def list_objects(self, container: str, prefix: str, delimited: bool = True) -> ListingResponse:
        bucket = self._bucket(container)
        entries = []
        for key in sorted(bucket):
            if not key.startswith(prefix):
                continue
            if delimited and PATH_DELIMITER in key[len(prefix):]:
                continue
            entries.append(self._entry(key, bucket[key]))
        return ListingResponse(entries=entries)

    async def upload_object(self, container: str, key: str, local_path: str) -> TransferHandle:
        self._bucket(container)
        progress = ProgressHandle()
        completion = asyncio.create_task(self._upload(container, key, local_path, progress))
        return TransferHandle(progress=progress, completion=completion)

    async def _upload(self, container: str, key: str, local_path: str, progress: ProgressHandle) -> None:
        try:
            progress.set_total(os.path.getsize(local_path))
            chunks = []
            with open(local_path, "rb") as f:
                while True:
                    chunk = f.read(self.chunk_size)
                    if not chunk:
                        break
                    chunks.append(chunk)
                    progress.advance(len(chunk))
                    await asyncio.sleep(0)
        except OSError as e:
            raise TransferFailedError(f"Cannot read {local_path}: {e}") from e

        content_type = mimetypes.guess_type(local_path)[0] or DEFAULT_CONTENT_TYPE
        self._bucket(container)[key] = StoredObject(data=b"".join(chunks), content_type=content_type)
        progress.finish()

    async def download_object_to_file(self, obj: ObjectRecord, local_path: str) -> TransferHandle:
        progress = ProgressHandle()
        completion = asyncio.create_task(self._download(obj, local_path, progress))
        return TransferHandle(progress=progress, completion=completion)

    async def _download(self, obj: ObjectRecord, local_path: str, progress: ProgressHandle) -> None:
        data = self._object(obj.container, obj.name).data
        progress.set_total(len(data))
        try:
            with open(local_path, "wb") as f:
                for offset in range(0, len(data), self.chunk_size):
                    chunk = data[offset:offset + self.chunk_size]
                    f.write(chunk)
                    progress.advance(len(chunk))
                    await asyncio.sleep(0)
        except OSError as e:
            raise TransferFailedError(f"Cannot write {local_path}: {e}") from e
        progress.finish()

    async def resolve_temporary_link(self, obj: ObjectRecord, expiry_seconds: int) -> str:
        self._object(obj.container, obj.name)
        expires_at = int(self._clock()) + expiry_seconds
        return f"{LINK_SCHEME}://{obj.container}/{quote(obj.name)}?se={expires_at}"

    def _parse_link(self, source_uri: str):
        parsed = urlparse(source_uri)
        if parsed.scheme != LINK_SCHEME or not parsed.netloc:
            raise MalformedInputError(f"Unsupported copy source: {source_uri}")
        expiry = parse_qs(parsed.query).get("se")
        if not expiry or not expiry[0].isdigit():
            raise MalformedInputError(f"Copy source link has no expiry: {source_uri}")
        if int(expiry[0]) < self._clock():
            raise TransferFailedError(f"Copy source link expired: {source_uri}")
        return parsed.netloc, unquote(parsed.path.lstrip("/"))

    async def copy_object(self, source_uri: str, target_container: str, target_key: str) -> TransferHandle:
        source_container, source_key = self._parse_link(source_uri)
        self._bucket(target_container)
        progress = ProgressHandle()
        completion = asyncio.create_task(
            self._copy(source_container, source_key, target_container, target_key, progress)
        )
        return TransferHandle(progress=progress, completion=completion)

    async def _copy(
        self,
        source_container: str,
        source_key: str,
        target_container: str,
        target_key: str,
        progress: ProgressHandle
    ) -> None:
        source = self._object(source_container, source_key)
        progress.set_total(len(source.data))
        for offset in range(0, len(source.data), self.chunk_size):
            progress.advance(len(source.data[offset:offset + self.chunk_size]))
            await asyncio.sleep(0)
        self._bucket(target_container)[target_key] = StoredObject(
            data=source.data,
            content_type=source.content_type,
        )
        progress.finish()

    async def delete_object(self, container: str, key: str) -> None:
        self._object(container, key)
        del self._containers[container][key]
