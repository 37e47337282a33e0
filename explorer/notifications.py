"""Notification sink contract and progress message templates."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from explorer.orchestrator import TransferBatch
    from explorer.transfer_job import TransferJob

SI_UNITS = ["B", "kB", "MB", "GB", "TB"]


def format_throughput(bytes_per_second: float) -> str:
    """
    Render a throughput sample; a zero reading renders as "" (no reading yet).

    Small transfers finish between samples and report zero speed, so zero is
    shown as absent rather than as a stall.
    """
    if not bytes_per_second or bytes_per_second <= 0:
        return ""
    value = float(bytes_per_second)
    for unit in SI_UNITS:
        if value < 1000.0 or unit == SI_UNITS[-1]:
            return f"{value:.1f}{unit}/s" if unit != "B" else f"{int(value)}B/s"
        value /= 1000.0
    return ""


def _progress_suffix(throughput: str, percent: Optional[float]) -> str:
    suffix = ""
    if percent is not None:
        suffix += f" ({percent:.0f}%)"
    if throughput:
        suffix += f" at {throughput}"
    return suffix


def upload_message(name: str, destination: str, throughput: str = "", percent: Optional[float] = None) -> str:
    return f"Uploading {name} to {destination}{_progress_suffix(throughput, percent)}"


def download_message(name: str, destination: str, throughput: str = "", percent: Optional[float] = None) -> str:
    return f"Downloading {name} to {destination}{_progress_suffix(throughput, percent)}"


def copy_message(name: str, destination: str, throughput: str = "", percent: Optional[float] = None) -> str:
    return f"Copying {name} to {destination}{_progress_suffix(throughput, percent)}"


@dataclass(frozen=True)
class BatchProgress:
    """Aggregate reading over every job of a batch."""
    settled: int
    total: int
    completed_bytes: int
    total_bytes: int
    throughput: float

    @property
    def percent(self) -> float:
        """Byte-weighted when sizes are known, else the share of settled jobs."""
        if self.total_bytes > 0:
            return min(100.0, self.completed_bytes * 100.0 / self.total_bytes)
        if self.total == 0:
            return 100.0
        return self.settled * 100.0 / self.total


def batch_message(progress: BatchProgress) -> str:
    done = f"{progress.settled}/{progress.total} transfers settled"
    return done + _progress_suffix(format_throughput(progress.throughput), progress.percent)


@dataclass(frozen=True)
class ProgressUpdate:
    """What a sink receives on every poll tick."""
    percent: float
    throughput: str
    text: str


class NotificationSink:
    """
    Renders transfer jobs. The core calls, per job and in order:
    ``transfer_started`` once, ``transfer_progress`` zero or more times,
    and the teardown hook ``transfer_settled`` exactly once.

    ``batch_progress`` receives aggregate readings for a whole batch on the
    same poll cadence; sinks that render per job may ignore it.
    """

    def transfer_started(self, job: "TransferJob") -> None:
        raise NotImplementedError

    def transfer_progress(self, job: "TransferJob", update: ProgressUpdate) -> None:
        raise NotImplementedError

    def transfer_settled(self, job: "TransferJob") -> None:
        raise NotImplementedError

    def batch_progress(self, batch: "TransferBatch", progress: BatchProgress) -> None:
        pass


class NullNotificationSink(NotificationSink):
    """Discards every notification."""

    def transfer_started(self, job: "TransferJob") -> None:
        pass

    def transfer_progress(self, job: "TransferJob", update: ProgressUpdate) -> None:
        pass

    def transfer_settled(self, job: "TransferJob") -> None:
        pass
