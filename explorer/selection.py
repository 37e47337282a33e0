"""Selection state for objects and virtual directories."""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Set, Union

from common.types import Directory, ObjectRecord

Record = Union[ObjectRecord, Directory]


@dataclass(frozen=True)
class SelectionCounts:
    """Independent per-kind selection counts."""
    objects: int
    directories: int

    @property
    def empty(self) -> bool:
        return self.objects == 0 and self.directories == 0


def _plural(count: int, singular: str, plural: str) -> str:
    return f"{count} {singular if count == 1 else plural}"


class SelectionSet:
    """
    Identifiers of the records marked for a batch operation.

    Records carry no selection flag themselves; clearing the set is the
    whole reset.
    """

    def __init__(self):
        self._objects: Set[str] = set()
        self._directories: Set[str] = set()
        self.all_selected = False

    def _bucket(self, record: Record) -> Set[str]:
        return self._directories if isinstance(record, Directory) else self._objects

    def is_selected(self, record: Record) -> bool:
        return record.id in self._bucket(record)

    def select(self, record: Record) -> None:
        self._bucket(record).add(record.id)

    def deselect(self, record: Record) -> None:
        self._bucket(record).discard(record.id)

    def toggle(self, record: Record) -> bool:
        """Flip one record; returns its new state."""
        bucket = self._bucket(record)
        if record.id in bucket:
            bucket.discard(record.id)
            return False
        bucket.add(record.id)
        return True

    def select_all(self, records: Iterable[Record]) -> None:
        """
        Set every record to the negation of ``all_selected``, then flip it.

        A second call clears what the first selected.
        """
        target = not self.all_selected
        for record in records:
            if target:
                self.select(record)
            else:
                self.deselect(record)
        self.all_selected = target

    def clear(self) -> None:
        self._objects.clear()
        self._directories.clear()
        self.all_selected = False

    def retain(self, objects: Iterable[ObjectRecord], directories: Iterable[Directory]) -> None:
        """Drop identifiers that are no longer visible."""
        self._objects &= {record.id for record in objects}
        self._directories &= {directory.id for directory in directories}
        if not self._objects and not self._directories:
            self.all_selected = False

    def selected_objects(self, objects: Iterable[ObjectRecord]) -> List[ObjectRecord]:
        return [record for record in objects if record.id in self._objects]

    def selected_directories(self, directories: Iterable[Directory]) -> List[Directory]:
        return [directory for directory in directories if directory.id in self._directories]

    def count_selected(
        self,
        objects: Iterable[ObjectRecord],
        directories: Iterable[Directory]
    ) -> SelectionCounts:
        return SelectionCounts(
            objects=len(self.selected_objects(objects)),
            directories=len(self.selected_directories(directories)),
        )

    @staticmethod
    def describe(counts: SelectionCounts) -> Optional[str]:
        """
        Human-readable summary of a selection.

        Returns:
            "2 objects", "1 directory", "2 objects and 1 directory", or None when empty
        """
        parts = []
        if counts.objects:
            parts.append(_plural(counts.objects, "object", "objects"))
        if counts.directories:
            parts.append(_plural(counts.directories, "directory", "directories"))
        if not parts:
            return None
        return " and ".join(parts)
