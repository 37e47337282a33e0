"""Command handler functions for CLI operations."""

from common.constants import PATH_DELIMITER
from common.logging_config import get_logger
from common.types import Directory
from cli.config import Config
from cli.models import (
    ChangeDirectoryCommand,
    ContainersCommand,
    CopyCommand,
    CrumbCommand,
    DownloadCommand,
    DropContainerCommand,
    LinkCommand,
    NewContainerCommand,
    SaveAsCommand,
    SelectCommand,
    UploadCommand,
    UseCommand,
)
from cli.utils import format_breadcrumbs, format_directory_line, format_object_line, format_timestamp
from explorer.exceptions import (
    AuthRejectedError,
    MalformedInputError,
    NetworkUnreachableError,
    NotFoundError,
    TransferFailedError,
)
from explorer.explorer_view import ExplorerView
from explorer.orchestrator import BatchResult, DeleteResult

logger = get_logger(__name__)


def describe_error(error: BaseException) -> str:
    """
    Map an explorer error to a single user-facing line.

    Args:
        error: Exception raised or reported by the explorer core

    Returns:
        Message suitable for printing in the REPL
    """
    if isinstance(error, AuthRejectedError):
        return "Authentication failed: the gateway rejected the account key. Check EXPLORER_ACCOUNT_KEY."
    if isinstance(error, NetworkUnreachableError):
        return str(error)
    if isinstance(error, NotFoundError):
        return f"Not found: {error}"
    if isinstance(error, MalformedInputError):
        return f"Invalid input: {error}"
    if isinstance(error, TransferFailedError):
        return f"Transfer failed: {error}"
    return f"Error: {error}"


def render_listing(view: ExplorerView) -> str:
    """Render breadcrumbs, directories and objects of the current view."""
    lines = [format_breadcrumbs(view.container or '-', view.segments)]
    for directory in view.directories:
        lines.append(format_directory_line(directory, view.selection.is_selected(directory)))
    for obj in view.objects:
        lines.append(format_object_line(obj, view.selection.is_selected(obj)))
    if not view.directories and not view.objects:
        lines.append("  (empty)")
    return '\n'.join(lines)


def _summarize_batch(verb: str, result: BatchResult) -> str:
    total = len(result.outcomes)
    lines = [f"{verb} {len(result.succeeded)} of {total} object(s)."]
    for outcome in result.failed:
        lines.append(f"  - {outcome.job.request.name}: {describe_error(outcome.error)}")
    return '\n'.join(lines)


def _summarize_delete(result: DeleteResult) -> str:
    lines = [f"Deleted {len(result.succeeded)} of {len(result.outcomes)} object(s)."]
    for outcome in result.failed:
        lines.append(f"  - {outcome.obj.name}: {describe_error(outcome.error)}")
    return '\n'.join(lines)


async def handle_containers(cmd: ContainersCommand, view: ExplorerView) -> str:
    """
    Handle 'containers' command.

    Args:
        cmd: ContainersCommand with optional name filter
        view: Explorer view to load containers into

    Returns:
        Formatted list of containers
    """
    containers = await view.load_containers(cmd.name_filter)
    if not containers:
        return "No containers found."
    output = [f"Found {len(containers)} container(s):"]
    for container in containers:
        marker = '*' if container.name == view.container else ' '
        output.append(f" {marker} {container.name}  {format_timestamp(container.last_modified)}")
    return '\n'.join(output)


async def handle_use(cmd: UseCommand, view: ExplorerView) -> str:
    logger.info(f"Executing use command: container={cmd.container}")
    await view.switch_container(cmd.container)
    return render_listing(view)


async def handle_new_container(cmd: NewContainerCommand, view: ExplorerView) -> str:
    await view.create_container(cmd.name)
    return f"Created container {cmd.name}."


async def handle_drop_container(cmd: DropContainerCommand, view: ExplorerView) -> str:
    await view.delete_container(cmd.name)
    return f"Deleted container {cmd.name}."


async def handle_ls(view: ExplorerView) -> str:
    if view.container is None:
        raise MalformedInputError("No container selected. Run: use <container>")
    return render_listing(view)


async def handle_cd(cmd: ChangeDirectoryCommand, view: ExplorerView) -> str:
    """
    Handle 'cd' command.

    A listed directory name is entered directly; anything else is a path,
    absolute when it starts with '/' and relative to the current prefix
    otherwise.
    """
    record = view.find(cmd.target)
    if isinstance(record, Directory):
        await view.open_directory(record)
    elif cmd.target.startswith(PATH_DELIMITER):
        await view.change_subdirectory(cmd.target)
    else:
        await view.change_subdirectory(view.prefix + cmd.target)
    return render_listing(view)


async def handle_up(view: ExplorerView) -> str:
    await view.up()
    return render_listing(view)


async def handle_crumb(cmd: CrumbCommand, view: ExplorerView) -> str:
    try:
        await view.change_directory_index(cmd.index)
    except IndexError as e:
        raise MalformedInputError(str(e)) from e
    return render_listing(view)


async def handle_select(cmd: SelectCommand, view: ExplorerView) -> str:
    """
    Handle 'select' command: toggle each named record.

    Returns:
        Selection summary, plus a line for every unknown name
    """
    lines = []
    for name in cmd.names:
        record = view.find(name)
        if record is None:
            lines.append(f"No object or directory named {name}.")
            continue
        view.toggle(record)
    lines.append(_selection_text(view))
    return '\n'.join(lines)


async def handle_select_all(view: ExplorerView) -> str:
    view.select_all_objects()
    return _selection_text(view)


async def handle_selection(view: ExplorerView) -> str:
    return _selection_text(view)


def _selection_text(view: ExplorerView) -> str:
    summary = view.selection_summary()
    return f"Selected {summary}." if summary else "Nothing selected."


async def handle_delete(view: ExplorerView) -> str:
    """
    Handle 'delete' command: delete every selected object and every object
    under each selected directory.
    """
    summary = view.selection_summary()
    logger.info(f"Executing delete command: {summary}")
    result = await view.delete_selected()
    if result is None:
        return "Nothing selected."
    return _summarize_delete(result)


async def handle_download(cmd: DownloadCommand, view: ExplorerView, config: Config) -> str:
    """
    Handle 'download' command.

    Args:
        cmd: DownloadCommand with optional target directory
        view: Explorer view holding the selection
        config: Configuration providing the default download directory

    Returns:
        Batch summary
    """
    directory = cmd.directory or config.get_download_dir()
    logger.info(f"Executing download command: directory={directory}")
    result = await view.download_selected(directory)
    if result is None:
        return "Nothing selected."
    return _summarize_batch("Downloaded", result)


async def handle_save_as(cmd: SaveAsCommand, view: ExplorerView) -> str:
    obj = view.find_object(cmd.object_name)
    result = await view.save_as(obj, cmd.local_path)
    return _summarize_batch("Downloaded", result)


async def handle_upload(cmd: UploadCommand, view: ExplorerView) -> str:
    logger.info(f"Executing upload command: paths={cmd.paths} prefix={cmd.destination_prefix}")
    result = await view.upload(cmd.paths, cmd.destination_prefix)
    return _summarize_batch("Uploaded", result)


async def handle_copy(cmd: CopyCommand, view: ExplorerView) -> str:
    obj = view.find_object(cmd.object_name)
    result = await view.copy(obj, cmd.target_container, cmd.target_key)
    return _summarize_batch("Copied", result)


async def handle_link(cmd: LinkCommand, view: ExplorerView) -> str:
    obj = view.find_object(cmd.object_name)
    uri = await view.preview_link(obj)
    return f"{obj.display_name} ({obj.media_kind}): {uri}"


async def handle_refresh(view: ExplorerView) -> str:
    await view.refresh()
    return render_listing(view)
