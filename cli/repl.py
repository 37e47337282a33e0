"""REPL with prompt_toolkit for user interaction."""

import os
import sys

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory

from common.logging_config import get_logger
from cli.commands import (
    describe_error,
    handle_cd,
    handle_containers,
    handle_copy,
    handle_crumb,
    handle_delete,
    handle_download,
    handle_drop_container,
    handle_link,
    handle_ls,
    handle_new_container,
    handle_refresh,
    handle_save_as,
    handle_select,
    handle_select_all,
    handle_selection,
    handle_up,
    handle_upload,
    handle_use,
)
from cli.completer import ExplorerCompleter
from cli.config import Config
from cli.constants import (
    HELP_TEXT,
    LOGO,
    PROMPT_TEXT,
    STYLE,
    WELCOME_HELP,
    WELCOME_TITLE,
)
from cli.models import (
    ChangeDirectoryCommand,
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
from cli.parser import ParseError, parse_command
from explorer.exceptions import ExplorerError
from explorer.explorer_view import ExplorerView

logger = get_logger(__name__)


def clear_screen() -> None:
    """Clear the terminal screen (cross-platform)."""
    if sys.platform == "win32":
        os.system("cls")
    else:
        os.system("clear")


def show_welcome() -> None:
    print(LOGO)
    print(WELCOME_TITLE)
    print(WELCOME_HELP)


class ReportedErrors:
    """
    Collects listing errors the view reports instead of raising, so each
    distinct failure is printed once per command.
    """

    def __init__(self):
        self.errors: list[ExplorerError] = []

    def __call__(self, error: ExplorerError) -> None:
        self.errors.append(error)

    def drain(self) -> list[str]:
        messages: list[str] = []
        for error in self.errors:
            message = describe_error(error)
            if message not in messages:
                messages.append(message)
        self.errors.clear()
        return messages


async def dispatch_command(cmd_obj, view: ExplorerView, config: Config) -> str:
    """Dispatch parsed command to appropriate handler."""
    if isinstance(cmd_obj, ContainersCommand):
        return await handle_containers(cmd_obj, view)
    elif isinstance(cmd_obj, UseCommand):
        return await handle_use(cmd_obj, view)
    elif isinstance(cmd_obj, NewContainerCommand):
        return await handle_new_container(cmd_obj, view)
    elif isinstance(cmd_obj, DropContainerCommand):
        return await handle_drop_container(cmd_obj, view)
    elif isinstance(cmd_obj, ListCommand):
        return await handle_ls(view)
    elif isinstance(cmd_obj, ChangeDirectoryCommand):
        return await handle_cd(cmd_obj, view)
    elif isinstance(cmd_obj, UpCommand):
        return await handle_up(view)
    elif isinstance(cmd_obj, CrumbCommand):
        return await handle_crumb(cmd_obj, view)
    elif isinstance(cmd_obj, SelectCommand):
        return await handle_select(cmd_obj, view)
    elif isinstance(cmd_obj, SelectAllCommand):
        return await handle_select_all(view)
    elif isinstance(cmd_obj, SelectionCommand):
        return await handle_selection(view)
    elif isinstance(cmd_obj, DeleteCommand):
        return await handle_delete(view)
    elif isinstance(cmd_obj, DownloadCommand):
        return await handle_download(cmd_obj, view, config)
    elif isinstance(cmd_obj, SaveAsCommand):
        return await handle_save_as(cmd_obj, view)
    elif isinstance(cmd_obj, UploadCommand):
        return await handle_upload(cmd_obj, view)
    elif isinstance(cmd_obj, CopyCommand):
        return await handle_copy(cmd_obj, view)
    elif isinstance(cmd_obj, LinkCommand):
        return await handle_link(cmd_obj, view)
    elif isinstance(cmd_obj, RefreshCommand):
        return await handle_refresh(view)
    else:
        return f"Unknown command type: {type(cmd_obj)}"


async def run_command(user_input: str, view: ExplorerView, config: Config, reported: ReportedErrors) -> str:
    """
    Parse and execute one line, rendering every failure as text.

    Returns:
        Handler output followed by any listing errors reported during the command
    """
    try:
        cmd_obj = parse_command(user_input)
        output = await dispatch_command(cmd_obj, view, config)
    except ParseError as e:
        output = f"Error: {e}"
    except ExplorerError as e:
        logger.debug(f"Command failed: {type(e).__name__}: {e}")
        output = describe_error(e)

    messages = [message for message in reported.drain() if message != output]
    return '\n'.join([*messages, output]) if messages else output


async def repl_loop(view: ExplorerView, config: Config) -> None:
    """Start interactive REPL with prompt_toolkit."""
    reported = ReportedErrors()
    view.on_error = reported
    history = InMemoryHistory()
    session: PromptSession = PromptSession(
        completer=ExplorerCompleter(view), history=history, style=STYLE
    )

    clear_screen()
    show_welcome()

    while True:
        try:
            user_input = await session.prompt_async([("class:prompt", PROMPT_TEXT)])

            if not user_input.strip():
                continue

            if user_input.strip() == "exit":
                print("Goodbye!")
                break

            if user_input.strip() == "help":
                print(HELP_TEXT)
                continue

            if user_input.strip() == "clear":
                clear_screen()
                show_welcome()
                continue

            print(await run_command(user_input, view, config, reported))

        except KeyboardInterrupt:
            continue
        except EOFError:
            print("\nGoodbye!")
            break
