"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class ContainersCommand:
    """List containers, optionally filtered by name prefix."""

    name_filter: str | None = None
    command: Literal["containers"] = "containers"


@dataclass(frozen=True)
class UseCommand:
    """Open a container at its root."""

    container: str
    command: Literal["use"] = "use"


@dataclass(frozen=True)
class NewContainerCommand:
    name: str
    command: Literal["new-container"] = "new-container"


@dataclass(frozen=True)
class DropContainerCommand:
    name: str
    command: Literal["drop-container"] = "drop-container"


@dataclass(frozen=True)
class ListCommand:
    """Show the current listing."""

    command: Literal["ls"] = "ls"


@dataclass(frozen=True)
class ChangeDirectoryCommand:
    """Enter a listed directory or jump to a literal path."""

    target: str
    command: Literal["cd"] = "cd"


@dataclass(frozen=True)
class UpCommand:
    command: Literal["up"] = "up"


@dataclass(frozen=True)
class CrumbCommand:
    """Breadcrumb navigation by index."""

    index: int
    command: Literal["crumb"] = "crumb"


@dataclass(frozen=True)
class SelectCommand:
    """Toggle selection of named records."""

    names: tuple[str, ...]
    command: Literal["select"] = "select"


@dataclass(frozen=True)
class SelectAllCommand:
    command: Literal["select-all"] = "select-all"


@dataclass(frozen=True)
class SelectionCommand:
    command: Literal["selection"] = "selection"


@dataclass(frozen=True)
class DeleteCommand:
    command: Literal["delete"] = "delete"


@dataclass(frozen=True)
class DownloadCommand:
    """Download the selection into a directory."""

    directory: str | None = None
    command: Literal["download"] = "download"


@dataclass(frozen=True)
class SaveAsCommand:
    """Download one object to a chosen file."""

    object_name: str
    local_path: str
    command: Literal["save-as"] = "save-as"


@dataclass(frozen=True)
class UploadCommand:
    """Upload a semicolon-joined list of local files."""

    paths: str
    destination_prefix: str | None = None
    command: Literal["upload"] = "upload"


@dataclass(frozen=True)
class CopyCommand:
    """Copy an object into another container."""

    object_name: str
    target_container: str
    target_key: str | None = None
    command: Literal["copy"] = "copy"


@dataclass(frozen=True)
class LinkCommand:
    object_name: str
    command: Literal["link"] = "link"


@dataclass(frozen=True)
class RefreshCommand:
    command: Literal["refresh"] = "refresh"


CommandRequest = (
    ContainersCommand
    | UseCommand
    | NewContainerCommand
    | DropContainerCommand
    | ListCommand
    | ChangeDirectoryCommand
    | UpCommand
    | CrumbCommand
    | SelectCommand
    | SelectAllCommand
    | SelectionCommand
    | DeleteCommand
    | DownloadCommand
    | SaveAsCommand
    | UploadCommand
    | CopyCommand
    | LinkCommand
    | RefreshCommand
)
