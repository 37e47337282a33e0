"""Terminal rendering of transfer jobs."""

import sys
from typing import Set, TextIO

from cli.constants import GREEN, RED, RESET
from explorer.notifications import BatchProgress, NotificationSink, ProgressUpdate, batch_message
from explorer.orchestrator import TransferBatch
from explorer.transfer_job import TransferJob

LINE_WIDTH = 100


class ConsoleNotificationSink(NotificationSink):
    """
    Writes a carriage-return progress line and a final status line per job.

    With several jobs in flight their per-job lines would overwrite each
    other, so the live line shows the batch aggregate instead; each job still
    gets its own final status line.
    """

    def __init__(self, stream: TextIO | None = None):
        self.stream = stream or sys.stdout
        self._in_flight: Set[int] = set()

    def _write(self, text: str) -> None:
        self.stream.write(text)
        self.stream.flush()

    def _live(self, text: str) -> None:
        self._write(f"\r{text}".ljust(LINE_WIDTH))

    def transfer_started(self, job: TransferJob) -> None:
        self._in_flight.add(id(job))
        if len(self._in_flight) == 1:
            self._live(job.message())

    def transfer_progress(self, job: TransferJob, update: ProgressUpdate) -> None:
        if len(self._in_flight) == 1:
            self._live(update.text)

    def transfer_settled(self, job: TransferJob) -> None:
        self._in_flight.discard(id(job))
        if job.error is None:
            status = f"{GREEN}done{RESET}"
        else:
            status = f"{RED}failed: {job.error}{RESET}"
        self._write(f"\r{job.message()} {status}".ljust(LINE_WIDTH) + "\n")

    def batch_progress(self, batch: TransferBatch, progress: BatchProgress) -> None:
        if progress.total > 1 and progress.settled < progress.total:
            self._live(batch_message(progress))
