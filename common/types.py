"""Shared data type definitions (ContainerInfo, ObjectRecord, Directory, PathSegment)."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from common.constants import PATH_DELIMITER


@dataclass(frozen=True)
class ContainerInfo:
    """
    A named container holding objects in a flat namespace.
    """
    name: str
    last_modified: Optional[datetime] = None
    public_access_level: Optional[str] = None


@dataclass(frozen=True)
class ObjectRecord:
    """
    Read-through projection of a stored object. The store stays authoritative.
    """
    name: str
    size: int
    content_type: str
    last_modified: Optional[datetime]
    container: str

    @property
    def id(self) -> str:
        return self.name

    @property
    def display_name(self) -> str:
        """Last component of the key (``mydir1/file.mp3`` -> ``file.mp3``)."""
        return self.name.rsplit(PATH_DELIMITER, 1)[-1]

    @property
    def media_kind(self) -> str:
        """Preview category derived from the content type."""
        content_type = (self.content_type or "").lower()
        for kind in ("image", "audio", "video"):
            if kind in content_type:
                return kind
        return "other"


@dataclass(frozen=True)
class Directory:
    """
    Virtual directory inferred from shared key prefixes. Never stored.
    """
    name: str

    @property
    def id(self) -> str:
        return self.name

    @property
    def display_name(self) -> str:
        return self.name.rstrip(PATH_DELIMITER).rsplit(PATH_DELIMITER, 1)[-1] + PATH_DELIMITER


@dataclass(frozen=True)
class PathSegment:
    """
    One breadcrumb of the current virtual path.
    """
    name: str
