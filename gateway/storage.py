"""Filesystem blob storage: one directory per container, a data file and a metadata sidecar per object."""

import hashlib
import json
import os
import shutil
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator, Iterator, List, Optional

from common.constants import PATH_DELIMITER, TRANSFER_CHUNK_SIZE_BYTES
from common.logging_config import get_logger
from common.protocol import EntryProperties, ListingEntry
from common.validation import validate_container_name, validate_object_key
from gateway.exceptions import (
    ContainerExistsError,
    ContainerNotFoundError,
    InvalidContainerNameError,
    InvalidObjectKeyError,
    ObjectNotFoundError,
)

logger = get_logger(__name__)

DATA_SUFFIX = ".blob"
META_SUFFIX = ".json"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class ObjectMeta:
    """Sidecar metadata stored next to every object's data file."""
    key: str
    size: int
    content_type: str
    last_modified: datetime

    def to_entry(self) -> ListingEntry:
        return ListingEntry(
            name=self.key,
            properties=EntryProperties(
                content_type=self.content_type,
                content_length=self.size,
                last_modified=self.last_modified,
            ),
        )

    def to_json(self) -> dict:
        return {
            "key": self.key,
            "size": self.size,
            "content_type": self.content_type,
            "last_modified": self.last_modified.isoformat(),
        }

    @classmethod
    def from_json(cls, data: dict) -> "ObjectMeta":
        return cls(
            key=data["key"],
            size=int(data["size"]),
            content_type=data.get("content_type") or DEFAULT_CONTENT_TYPE,
            last_modified=datetime.fromisoformat(data["last_modified"]),
        )


def object_file_stem(key: str) -> str:
    """
    File name stem for a key.

    Keys may be longer than a file name allows and contain '/', so objects
    are addressed by the SHA-256 of their key.
    """
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


class FileStorage:
    """
    Stores containers as directories under ``root``.

    The namespace inside a container is flat; '/' in keys has no meaning to
    the storage layer beyond delimiter listing.
    """

    def __init__(self, root: Path, chunk_size: int = TRANSFER_CHUNK_SIZE_BYTES):
        self.root = Path(root)
        self.chunk_size = chunk_size

    def _container_path(self, container: str) -> Path:
        try:
            validate_container_name(container)
        except ValueError as e:
            raise InvalidContainerNameError(str(e)) from e
        return self.root / container

    def _existing_container_path(self, container: str) -> Path:
        path = self._container_path(container)
        if not path.is_dir():
            raise ContainerNotFoundError(f"Container not found: {container}")
        return path

    def _object_paths(self, container: str, key: str):
        try:
            validate_object_key(key)
        except ValueError as e:
            raise InvalidObjectKeyError(str(e)) from e
        stem = object_file_stem(key)
        base = self._existing_container_path(container)
        return base / f"{stem}{DATA_SUFFIX}", base / f"{stem}{META_SUFFIX}"

    def _iter_meta(self, container: str) -> Iterator[ObjectMeta]:
        base = self._existing_container_path(container)
        for meta_path in base.glob(f"*{META_SUFFIX}"):
            try:
                yield ObjectMeta.from_json(json.loads(meta_path.read_text()))
            except (OSError, ValueError, KeyError) as e:
                logger.warning(f"Skipping unreadable metadata {meta_path}: {e}")

    def list_containers(self, prefix: Optional[str] = None) -> List[ListingEntry]:
        """
        List containers whose name starts with ``prefix``.

        Returns:
            Entries sorted by name
        """
        if not self.root.is_dir():
            return []
        entries = []
        for path in sorted(self.root.iterdir()):
            if not path.is_dir() or (prefix and not path.name.startswith(prefix)):
                continue
            modified = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
            entries.append(ListingEntry(name=path.name, properties=EntryProperties(last_modified=modified)))
        return entries

    def create_container(self, container: str) -> None:
        path = self._container_path(container)
        if path.exists():
            raise ContainerExistsError(f"Container already exists: {container}")
        path.mkdir(parents=True)
        logger.info(f"Created container [container={container}]")

    def delete_container(self, container: str) -> None:
        shutil.rmtree(self._existing_container_path(container))
        logger.info(f"Deleted container [container={container}]")

    def list_child_prefixes(self, container: str, prefix: str) -> List[str]:
        """
        Delimiter-segmented prefixes directly under ``prefix``, sorted.
        """
        prefixes = set()
        for meta in self._iter_meta(container):
            if not meta.key.startswith(prefix):
                continue
            remainder = meta.key[len(prefix):]
            if PATH_DELIMITER in remainder:
                prefixes.add(prefix + remainder.split(PATH_DELIMITER, 1)[0] + PATH_DELIMITER)
        return sorted(prefixes)

    def list_objects(self, container: str, prefix: str, delimited: bool = True) -> List[ObjectMeta]:
        """
        Objects whose key starts with ``prefix``, sorted by key.

        Args:
            delimited: Only objects directly under ``prefix`` (no further delimiter)
        """
        objects = [
            meta for meta in self._iter_meta(container)
            if meta.key.startswith(prefix)
            and not (delimited and PATH_DELIMITER in meta.key[len(prefix):])
        ]
        return sorted(objects, key=lambda meta: meta.key)

    def get_meta(self, container: str, key: str) -> ObjectMeta:
        data_path, meta_path = self._object_paths(container, key)
        if not meta_path.exists() or not data_path.exists():
            raise ObjectNotFoundError(f"Object not found: {container}/{key}")
        return ObjectMeta.from_json(json.loads(meta_path.read_text()))

    async def write_object(
        self,
        container: str,
        key: str,
        chunks: AsyncIterator[bytes],
        content_type: Optional[str] = None
    ) -> ObjectMeta:
        """
        Write an object from a stream of chunks, replacing any existing one.

        Data goes to a temporary file that is renamed into place once complete.
        """
        data_path, meta_path = self._object_paths(container, key)
        temp_path = data_path.with_name(f"{data_path.name}.{uuid.uuid4().hex}.tmp")
        size = 0
        try:
            with open(temp_path, "wb") as f:
                async for chunk in chunks:
                    f.write(chunk)
                    size += len(chunk)
            os.replace(temp_path, data_path)
        finally:
            if temp_path.exists():
                temp_path.unlink()

        meta = ObjectMeta(
            key=key,
            size=size,
            content_type=content_type or DEFAULT_CONTENT_TYPE,
            last_modified=datetime.now(timezone.utc),
        )
        meta_path.write_text(json.dumps(meta.to_json()))
        logger.info(f"Stored object [container={container}] [key={key}] size={size}")
        return meta

    def read_object_streaming(self, container: str, key: str) -> Iterator[bytes]:
        """
        Stream object data in pieces.

        Raises:
            ObjectNotFoundError: If the object does not exist
        """
        data_path, _ = self._object_paths(container, key)
        if not data_path.exists():
            raise ObjectNotFoundError(f"Object not found: {container}/{key}")

        def pieces() -> Iterator[bytes]:
            with open(data_path, "rb") as f:
                while True:
                    piece = f.read(self.chunk_size)
                    if not piece:
                        break
                    yield piece

        return pieces()

    def copy_object(self, source_container: str, source_key: str, target_container: str, target_key: str) -> ObjectMeta:
        source = self.get_meta(source_container, source_key)
        source_data, _ = self._object_paths(source_container, source_key)
        target_data, target_meta_path = self._object_paths(target_container, target_key)
        if source_data != target_data:
            shutil.copyfile(source_data, target_data)
        meta = ObjectMeta(
            key=target_key,
            size=source.size,
            content_type=source.content_type,
            last_modified=datetime.now(timezone.utc),
        )
        target_meta_path.write_text(json.dumps(meta.to_json()))
        logger.info(f"Copied object {source_container}/{source_key} -> {target_container}/{target_key}")
        return meta

    def delete_object(self, container: str, key: str) -> None:
        data_path, meta_path = self._object_paths(container, key)
        if not meta_path.exists():
            raise ObjectNotFoundError(f"Object not found: {container}/{key}")
        meta_path.unlink()
        if data_path.exists():
            data_path.unlink()
        logger.info(f"Deleted object [container={container}] [key={key}]")
