"""Tests for progress message templates."""

import pytest

from explorer.notifications import copy_message, download_message, format_throughput, upload_message


@pytest.mark.parametrize('rate, expected', [
    (0, ''),
    (512, '512B/s'),
    (1500, '1.5kB/s'),
    (2_500_000, '2.5MB/s'),
])
def test_format_throughput(rate, expected):
    assert format_throughput(rate) == expected


def test_message_without_reading():
    assert upload_message('a.txt', 'testcontainer') == 'Uploading a.txt to testcontainer'


def test_message_with_progress():
    text = download_message('a.txt', 'downloads', throughput='1.5kB/s', percent=42.4)

    assert text == 'Downloading a.txt to downloads (42%) at 1.5kB/s'


def test_copy_message_omits_empty_throughput():
    assert copy_message('a.txt', 'testcontainer2', percent=100) == 'Copying a.txt to testcontainer2 (100%)'
