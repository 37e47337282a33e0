"""Tests for CLI rendering helpers."""

from datetime import datetime

import pytest

from cli.utils import format_breadcrumbs, format_file_size, format_object_line, format_timestamp
from common.types import ObjectRecord, PathSegment


@pytest.mark.parametrize('size, si, expected', [
    (0, False, '0 B'),
    (512, False, '512 B'),
    (1536, False, '1.50 KiB'),
    (5 * 1024 * 1024, False, '5.00 MiB'),
    (999, True, '999 B'),
    (1500, True, '1.5 kB'),
    (2_500_000, True, '2.5 MB'),
])
def test_format_file_size(size, si, expected):
    assert format_file_size(size, si=si) == expected


def test_format_timestamp():
    assert format_timestamp(datetime(2024, 1, 2, 3, 4, 5)) == '2024-01-02 03:04:05'
    assert format_timestamp(None) == '-'


def test_format_breadcrumbs():
    segments = [PathSegment('/'), PathSegment('mydir1/'), PathSegment('mydir2/')]

    assert format_breadcrumbs('testcontainer', segments) == 'testcontainer: [0] / > [1] mydir1/ > [2] mydir2/'


def test_format_object_line_shows_display_name():
    obj = ObjectRecord('mydir1/test-blob-5.mp3', 1500, 'audio/mpeg', None, 'testcontainer')

    line = format_object_line(obj, selected=False)

    assert 'test-blob-5.mp3' in line
    assert 'mydir1/' not in line
    assert '1.5 kB' in line
