"""Custom completer for the CloudExplorer CLI with listing-aware completion."""

from typing import Iterable

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from cli.constants import COMMANDS, LISTING_COMMANDS
from explorer.explorer_view import ExplorerView

CONTAINER_COMMANDS = ("use", "drop-container", "containers")


class ExplorerCompleter(Completer):
    """
    Custom completer that provides:
    - Command name completion for the first token
    - Directory and object names of the current listing for cd/select/copy/save-as/link
    - Container names for use/drop-container/containers and the target of copy
    """

    def __init__(self, view: ExplorerView):
        self.view = view

    def get_completions(
        self, document: Document, complete_event
    ) -> Iterable[Completion]:
        """
        Generate completions based on cursor position and context.
        """
        text = document.text_before_cursor
        tokens = text.split()

        is_typing_new_token = text.endswith(" ") or not tokens

        if not tokens or (len(tokens) == 1 and not is_typing_new_token):
            yield from self._complete_from(COMMANDS, tokens[0] if tokens else "")
            return

        command = tokens[0].lower()
        current_word = "" if is_typing_new_token else tokens[-1]
        position = len(tokens) if is_typing_new_token else len(tokens) - 1

        if command in CONTAINER_COMMANDS or (command == "copy" and position == 2):
            yield from self._complete_from([c.name for c in self.view.containers], current_word)
            return

        if command not in LISTING_COMMANDS:
            return
        if command in ("copy", "save-as", "link") and position != 1:
            return

        yield from self._complete_from(self._listing_names(command), current_word)

    def _listing_names(self, command: str) -> list[str]:
        names = []
        if command in ("cd", "select"):
            names.extend(directory.display_name for directory in self.view.directories)
        if command != "cd":
            names.extend(obj.display_name for obj in self.view.objects)
        return names

    @staticmethod
    def _complete_from(candidates: Iterable[str], partial: str) -> Iterable[Completion]:
        """Complete candidates matching the partial input."""
        partial_lower = partial.lower()
        for candidate in candidates:
            if candidate.lower().startswith(partial_lower):
                yield Completion(candidate, start_position=-len(partial))
