"""Utility functions for rendering explorer state in the terminal."""

from datetime import datetime
from typing import Optional

from common.types import Directory, ObjectRecord, PathSegment
from cli.constants import GREEN, RESET


def format_file_size(size_bytes: int, si: bool = False) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.

    Uses binary units (1024-based) by default, or SI units (1000-based) when
    ``si`` is set.

    Args:
        size_bytes: File size in bytes
        si: Use kB/MB/GB instead of KiB/MiB/GiB

    Returns:
        Formatted string with size and unit (e.g., "1.50 MiB", "1.5 MB", "512 B")
    """
    base = 1000.0 if si else 1024.0
    if size_bytes < base:
        return f"{size_bytes} B"

    units = ['kB', 'MB', 'GB', 'TB', 'PB'] if si else ['KiB', 'MiB', 'GiB', 'TiB', 'PiB']
    size = size_bytes / base

    for unit in units[:-1]:
        if size < base:
            return f"{size:.1f} {unit}" if si else f"{size:.2f} {unit}"
        size /= base

    return f"{size:.1f} {units[-1]}" if si else f"{size:.2f} {units[-1]}"


def format_timestamp(value: Optional[datetime]) -> str:
    return value.strftime('%Y-%m-%d %H:%M:%S') if value else '-'


def format_breadcrumbs(container: str, segments: list[PathSegment]) -> str:
    """Render "container: [0] / > [1] mydir1/" style breadcrumbs."""
    crumbs = ' > '.join(f"[{index}] {segment.name}" for index, segment in enumerate(segments))
    return f"{container}: {crumbs}"


def format_directory_line(directory: Directory, selected: bool) -> str:
    marker = f"{GREEN}*{RESET}" if selected else ' '
    return f" {marker} {directory.display_name}"


def format_object_line(obj: ObjectRecord, selected: bool) -> str:
    marker = f"{GREEN}*{RESET}" if selected else ' '
    return (
        f" {marker} {obj.display_name}  "
        f"{format_file_size(obj.size, si=True)}  "
        f"{obj.content_type or '-'}  "
        f"{format_timestamp(obj.last_modified)}"
    )
