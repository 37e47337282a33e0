"""Command parser for CLI input."""

import shlex

from cli.models import (
    ChangeDirectoryCommand,
    CommandRequest,
    ContainersCommand,
    CopyCommand,
    CrumbCommand,
    DeleteCommand,
    DownloadCommand,
    DropContainerCommand,
    LinkCommand,
    ListCommand,
    NewContainerCommand,
    RefreshCommand,
    SaveAsCommand,
    SelectAllCommand,
    SelectCommand,
    SelectionCommand,
    UpCommand,
    UploadCommand,
    UseCommand,
)


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


NO_ARGUMENT_COMMANDS = {
    "ls": ListCommand,
    "up": UpCommand,
    "select-all": SelectAllCommand,
    "selection": SelectionCommand,
    "delete": DeleteCommand,
    "refresh": RefreshCommand,
}


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL

    Returns:
        CommandRequest object

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name, args = tokens[0], tokens[1:]

    if command_name in NO_ARGUMENT_COMMANDS:
        if args:
            raise ParseError(f"{command_name} takes no arguments")
        return NO_ARGUMENT_COMMANDS[command_name]()
    elif command_name == "containers":
        return _parse_containers(args)
    elif command_name == "use":
        return UseCommand(container=_single(command_name, args, "<container>"))
    elif command_name == "new-container":
        return NewContainerCommand(name=_single(command_name, args, "<name>"))
    elif command_name == "drop-container":
        return DropContainerCommand(name=_single(command_name, args, "<name>"))
    elif command_name == "cd":
        return ChangeDirectoryCommand(target=_single(command_name, args, "<directory|path>"))
    elif command_name == "crumb":
        return _parse_crumb(args)
    elif command_name == "select":
        return _parse_select(args)
    elif command_name == "download":
        return _parse_download(args)
    elif command_name == "save-as":
        return _parse_save_as(args)
    elif command_name == "upload":
        return _parse_upload(args)
    elif command_name == "copy":
        return _parse_copy(args)
    elif command_name == "link":
        return LinkCommand(object_name=_single(command_name, args, "<object>"))
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _single(command_name: str, args: list[str], usage: str) -> str:
    """Return the only argument of a one-argument command."""
    if len(args) != 1:
        raise ParseError(f"{command_name} requires exactly 1 argument: {usage}")
    return args[0]


def _parse_containers(args: list[str]) -> ContainersCommand:
    """Parse 'containers [filter]' command."""
    if len(args) > 1:
        raise ParseError("containers takes at most 1 argument: [filter]")
    return ContainersCommand(name_filter=args[0] if args else None)


def _parse_crumb(args: list[str]) -> CrumbCommand:
    """Parse 'crumb <index>' command."""
    index = _single("crumb", args, "<index>")
    if not index.isdigit():
        raise ParseError(f"crumb index must be a non-negative integer, got '{index}'")
    return CrumbCommand(index=int(index))


def _parse_select(args: list[str]) -> SelectCommand:
    """Parse 'select <name>...' command."""
    if not args:
        raise ParseError("select requires at least one object or directory name")
    return SelectCommand(names=tuple(args))


def _parse_download(args: list[str]) -> DownloadCommand:
    """Parse 'download [dir]' command."""
    if len(args) > 1:
        raise ParseError("download takes at most 1 argument: [dir]")
    return DownloadCommand(directory=args[0] if args else None)


def _parse_save_as(args: list[str]) -> SaveAsCommand:
    """Parse 'save-as <object> <path>' command."""
    if len(args) != 2:
        raise ParseError("save-as requires exactly 2 arguments: <object> <path>")
    object_name, local_path = args
    return SaveAsCommand(object_name=object_name, local_path=local_path)


def _parse_upload(args: list[str]) -> UploadCommand:
    """Parse 'upload <paths;joined> [prefix]' command."""
    if len(args) not in (1, 2):
        raise ParseError("upload requires 1 or 2 arguments: <paths;joined> [prefix]")
    if not any(path.strip() for path in args[0].split(";")):
        raise ParseError("upload requires at least one local path")
    return UploadCommand(paths=args[0], destination_prefix=args[1] if len(args) > 1 else None)


def _parse_copy(args: list[str]) -> CopyCommand:
    """Parse 'copy <object> <container> [key]' command."""
    if len(args) not in (2, 3):
        raise ParseError("copy requires 2 or 3 arguments: <object> <container> [key]")
    return CopyCommand(
        object_name=args[0],
        target_container=args[1],
        target_key=args[2] if len(args) > 2 else None,
    )
