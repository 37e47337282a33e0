"""Object store contract consumed by the explorer core."""

import time
from collections import deque
from dataclasses import dataclass
from typing import Awaitable, Callable, Deque, Optional, Tuple

from common.protocol import ListingResponse
from common.types import ObjectRecord

THROUGHPUT_WINDOW_SECONDS = 2.0


@dataclass(frozen=True)
class ProgressSnapshot:
    """One reading of a progress handle."""
    percent: float
    throughput: float
    completed_bytes: int
    total_bytes: int


class ProgressHandle:
    """
    Pollable byte counter for a single in-flight transfer.

    Stores advance it as bytes move; readers poll ``snapshot()``. Throughput is
    averaged over a short sliding window and reads 0.0 until two samples exist.
    """

    def __init__(self, total_bytes: int = 0, clock: Callable[[], float] = time.monotonic):
        self.total_bytes = max(0, total_bytes)
        self.completed_bytes = 0
        self.finished = False
        self._clock = clock
        self._samples: Deque[Tuple[float, int]] = deque()

    def set_total(self, total_bytes: int) -> None:
        self.total_bytes = max(0, total_bytes)

    def advance(self, byte_count: int) -> None:
        """Record ``byte_count`` more bytes transferred."""
        self.completed_bytes += byte_count
        now = self._clock()
        self._samples.append((now, self.completed_bytes))
        while self._samples and now - self._samples[0][0] > THROUGHPUT_WINDOW_SECONDS:
            self._samples.popleft()

    def finish(self) -> None:
        """Mark the transfer complete regardless of reported byte counts."""
        if self.total_bytes and self.completed_bytes < self.total_bytes:
            self.advance(self.total_bytes - self.completed_bytes)
        self.finished = True

    @property
    def percent(self) -> float:
        if self.total_bytes <= 0:
            return 100.0 if self.finished else 0.0
        return min(100.0, self.completed_bytes * 100.0 / self.total_bytes)

    @property
    def throughput(self) -> float:
        """Bytes per second over the sliding window."""
        if len(self._samples) < 2:
            return 0.0
        (first_at, first_bytes), (last_at, last_bytes) = self._samples[0], self._samples[-1]
        elapsed = last_at - first_at
        if elapsed <= 0:
            return 0.0
        return (last_bytes - first_bytes) / elapsed

    def snapshot(self) -> ProgressSnapshot:
        return ProgressSnapshot(
            percent=self.percent,
            throughput=self.throughput,
            completed_bytes=self.completed_bytes,
            total_bytes=self.total_bytes,
        )


@dataclass
class TransferHandle:
    """
    The (progress, completion) pair a store returns for every transfer.

    ``completion`` resolves when the store call finishes and raises on failure.
    """
    progress: ProgressHandle
    completion: Awaitable[None]


class ObjectStore:
    """
    Async interface to a flat, key-based object store.

    Implementations raise ``explorer.exceptions`` types for every failure.
    """

    async def list_containers(self, name_filter: Optional[str] = None) -> ListingResponse:
        raise NotImplementedError

    async def create_container(self, name: str) -> None:
        raise NotImplementedError

    async def delete_container(self, name: str) -> None:
        raise NotImplementedError

    async def list_child_prefixes(self, container: str, prefix: str) -> ListingResponse:
        """Delimiter-segmented listing of the prefixes under ``prefix``."""
        raise NotImplementedError

    async def list_objects(self, container: str, prefix: str, delimited: bool = True) -> ListingResponse:
        """
        List objects whose key starts with ``prefix``.

        With ``delimited`` only objects directly under ``prefix`` are returned;
        without it every descendant is.
        """
        raise NotImplementedError

    async def upload_object(self, container: str, key: str, local_path: str) -> TransferHandle:
        raise NotImplementedError

    async def download_object_to_file(self, obj: ObjectRecord, local_path: str) -> TransferHandle:
        raise NotImplementedError

    async def copy_object(self, source_uri: str, target_container: str, target_key: str) -> TransferHandle:
        raise NotImplementedError

    async def delete_object(self, container: str, key: str) -> None:
        raise NotImplementedError

    async def resolve_temporary_link(self, obj: ObjectRecord, expiry_seconds: int) -> str:
        """Return a URI granting read access to ``obj`` for ``expiry_seconds``."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release connections held by the store."""
        return None
