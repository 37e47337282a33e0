"""Shared pytest fixtures for all tests."""

import pytest

from cli.config import Config
from explorer.memory_store import InMemoryObjectStore
from explorer.notifications import NotificationSink
from explorer.telemetry import TelemetrySink

SEED_OBJECTS = {
    "test-blob-1": b"blob one",
    "test-blob-2": b"blob two",
    "test-blob-3": b"blob three",
    "test-blob-4": b"blob four",
    "mydir1/test-blob-5.mp3": b"ID3 five",
    "mydir1/mydir2/test-blob-4.mp3": b"ID3 nested four",
}


class RecordingSink(NotificationSink):
    """Notification sink that records every call in order."""

    def __init__(self):
        self.events = []

    def transfer_started(self, job):
        self.events.append(("started", job, None))

    def transfer_progress(self, job, update):
        self.events.append(("progress", job, update))

    def transfer_settled(self, job):
        self.events.append(("settled", job, None))

    def batch_progress(self, batch, progress):
        self.events.append(("batch", batch, progress))

    def calls_for(self, job):
        return [kind for kind, recorded, _ in self.events if recorded is job]


class RecordingTelemetry(TelemetrySink):
    """Telemetry sink that records events, metrics and exceptions."""

    def __init__(self):
        self.events = []
        self.metrics = []
        self.exceptions = []

    def track_event(self, name):
        self.events.append(name)

    def track_metric(self, name, value):
        self.metrics.append((name, value))

    def track_exception(self, error):
        self.exceptions.append(error)


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to temporary .cloudexplorer directory
    """
    config_dir = tmp_path / '.cloudexplorer'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir, monkeypatch):
    """
    Create temporary config instance isolated from EXPLORER_* environment variables.

    Returns:
        Config instance with temp config file
    """
    for name in ("EXPLORER_GATEWAY_HOST", "EXPLORER_GATEWAY_PORT", "EXPLORER_ACCOUNT_KEY"):
        monkeypatch.delenv(name, raising=False)
    return Config(temp_config_dir / 'config.json')


@pytest.fixture
def sample_file(tmp_path):
    """
    Create a sample file for testing uploads.

    Returns:
        Path to sample text file
    """
    file_path = tmp_path / 'test.txt'
    file_path.write_text('Sample content for testing')
    return file_path


@pytest.fixture
def multiple_sample_files(tmp_path):
    """
    Create multiple sample files for testing batch uploads.

    Returns:
        List of Paths to sample files
    """
    files = []
    for i in range(3):
        file_path = tmp_path / f'test{i}.txt'
        file_path.write_text(f'Sample content {i}')
        files.append(file_path)
    return files


def seed_store(store):
    """Fill 'testcontainer' with the seed objects and add an empty 'testcontainer2'."""
    for key, data in SEED_OBJECTS.items():
        content_type = "audio/mpeg" if key.endswith(".mp3") else "text/plain"
        store.put_bytes("testcontainer", key, data, content_type)
    store.add_container("testcontainer2")
    return store


@pytest.fixture
def seed():
    return seed_store


@pytest.fixture
def seeded_store():
    """
    In-memory store holding 'testcontainer' with four root objects and two
    nested ones, plus an empty 'testcontainer2'.
    """
    return seed_store(InMemoryObjectStore(chunk_size=4))


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture
def recording_telemetry():
    return RecordingTelemetry()
