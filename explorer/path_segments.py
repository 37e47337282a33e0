"""Breadcrumb path segments over a flat key namespace."""

from typing import List

from common.constants import PATH_DELIMITER, ROOT_SEGMENT_NAME
from common.types import PathSegment


class PathSegmenter:
    """
    Ordered list of path segments; index 0 is always the root marker.

    Every non-root segment name carries its own trailing delimiter, so the
    prefix is the plain concatenation of everything after the root.
    """

    def __init__(self):
        self._segments: List[PathSegment] = [PathSegment(ROOT_SEGMENT_NAME)]

    @classmethod
    def from_prefix(cls, prefix: str) -> "PathSegmenter":
        """Build a segmenter positioned at ``prefix``."""
        segmenter = cls()
        segmenter.descend_into(prefix)
        return segmenter

    @property
    def segments(self) -> List[PathSegment]:
        return list(self._segments)

    @property
    def root(self) -> PathSegment:
        return self._segments[0]

    @property
    def prefix(self) -> str:
        """Compose the listing prefix; the root contributes nothing."""
        return "".join(segment.name for segment in self._segments[1:])

    @property
    def at_root(self) -> bool:
        return len(self._segments) == 1

    def change_to(self, target: PathSegment) -> str:
        """
        Truncate the path after ``target`` (inclusive breadcrumb navigation).

        Segments are matched by identity so repeated names resolve to the
        clicked one. An unknown segment leaves the path unchanged.

        Returns:
            The new prefix
        """
        kept: List[PathSegment] = []
        for segment in self._segments:
            kept.append(segment)
            if segment is target:
                break
        self._segments = kept
        return self.prefix

    def change_to_index(self, index: int) -> str:
        """Breadcrumb navigation by position (0 is the root)."""
        if index < 0 or index >= len(self._segments):
            raise IndexError(f"No path segment at index {index}")
        return self.change_to(self._segments[index])

    def descend_into(self, literal_path: str) -> str:
        """
        Reset to the root and append one segment per non-empty component.

        Args:
            literal_path: Full virtual path such as "mydir1/mydir2/"

        Returns:
            The new prefix
        """
        segments = [PathSegment(ROOT_SEGMENT_NAME)]
        for component in literal_path.split(PATH_DELIMITER):
            if component:
                segments.append(PathSegment(component + PATH_DELIMITER))
        self._segments = segments
        return self.prefix

    def up(self) -> str:
        """Drop the deepest segment; a no-op at the root."""
        if not self.at_root:
            self._segments = self._segments[:-1]
        return self.prefix
