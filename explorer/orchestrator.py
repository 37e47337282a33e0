"""Concurrent transfer batches with independent per-job settlement."""

import asyncio
import os
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from common.constants import (
    DEFAULT_LINK_EXPIRY_SECONDS,
    PATH_DELIMITER,
    PROGRESS_POLL_INTERVAL_SECONDS,
    UPLOAD_PATH_SEPARATOR,
)
from common.logging_config import get_logger
from common.types import ObjectRecord
from explorer.exceptions import ExplorerError, MalformedInputError, NotFoundError
from explorer.notifications import BatchProgress, NotificationSink, NullNotificationSink
from explorer.store import ObjectStore
from explorer.telemetry import LoggingTelemetrySink, TelemetrySink
from explorer.transfer_job import (
    CopyRequest,
    DownloadRequest,
    JobOutcome,
    JobState,
    TransferJob,
    TransferRequest,
    UploadRequest,
)

logger = get_logger(__name__)

LOCAL_SEPARATORS = re.compile(r"[\\/]")


def local_basename(path: str) -> str:
    """File name of a local path, accepting either separator style."""
    return LOCAL_SEPARATORS.split(path)[-1]


def split_upload_paths(joined_paths: str) -> List[str]:
    """Split a semicolon-joined path list, dropping empty entries."""
    return [path.strip() for path in joined_paths.split(UPLOAD_PATH_SEPARATOR) if path.strip()]


def local_target(directory: str, key: str, relative_to: str = "") -> str:
    """
    Local file path for ``key`` inside ``directory``.

    Key structure below ``relative_to`` is preserved; empty and relative
    components are dropped so the target never leaves ``directory``.
    """
    relative = key[len(relative_to):] if relative_to and key.startswith(relative_to) else key
    parts = [part for part in relative.split(PATH_DELIMITER) if part not in ("", ".", "..")]
    return os.path.join(directory, *parts)


@dataclass
class BatchResult:
    """Per-job outcomes of a settled batch."""
    outcomes: List[JobOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> List[JobOutcome]:
        return [outcome for outcome in self.outcomes if outcome.succeeded]

    @property
    def failed(self) -> List[JobOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.succeeded]


@dataclass(frozen=True)
class DeleteOutcome:
    obj: ObjectRecord
    error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class DeleteResult:
    outcomes: List[DeleteOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> List[DeleteOutcome]:
        return [outcome for outcome in self.outcomes if outcome.succeeded]

    @property
    def failed(self) -> List[DeleteOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.succeeded]


class TransferBatch:
    """
    A set of jobs launched together. Settles when every job has settled.

    While jobs are running the batch polls their progress handles and reports
    one aggregate reading per interval to the sink.
    """

    def __init__(
        self,
        jobs: List[TransferJob],
        tasks: List[asyncio.Task],
        sink: Optional[NotificationSink] = None,
        poll_interval: float = PROGRESS_POLL_INTERVAL_SECONDS
    ):
        self.jobs = jobs
        self._tasks = tasks
        self.sink = sink or NullNotificationSink()
        self.poll_interval = poll_interval
        self._watch_task: Optional[asyncio.Task] = None
        if tasks:
            self._watch_task = asyncio.create_task(self._watch())

    @property
    def settled(self) -> bool:
        return all(job.settled for job in self.jobs)

    def progress(self) -> BatchProgress:
        """
        Aggregate progress of every job.

        Settled jobs count as fully transferred. Percent is byte-weighted only
        while every unsettled job reports a size.
        """
        settled = completed_bytes = total_bytes = 0
        throughput = 0.0
        sized = True
        for job in self.jobs:
            if job.settled:
                settled += 1
            if job.progress is None:
                sized = sized and job.settled
                continue
            snapshot = job.progress.snapshot()
            if snapshot.total_bytes <= 0 and not job.settled:
                sized = False
            total_bytes += snapshot.total_bytes
            if job.settled:
                completed_bytes += snapshot.total_bytes
            else:
                completed_bytes += snapshot.completed_bytes
                throughput += snapshot.throughput
        return BatchProgress(
            settled=settled,
            total=len(self.jobs),
            completed_bytes=completed_bytes,
            total_bytes=total_bytes if sized else 0,
            throughput=throughput,
        )

    def _report(self) -> None:
        try:
            self.sink.batch_progress(self, self.progress())
        except Exception:
            logger.exception(f"Notification sink failed in batch_progress for {len(self.jobs)} job(s)")

    async def _watch(self) -> None:
        while not all(task.done() for task in self._tasks):
            await asyncio.sleep(self.poll_interval)
            self._report()

    async def wait(self) -> BatchResult:
        """
        Wait for every job. Resolves even when some or all jobs failed.
        """
        results = await asyncio.gather(*self._tasks, return_exceptions=True)
        await self._stop_watching()
        outcomes: List[JobOutcome] = []
        for job, result in zip(self.jobs, results):
            if isinstance(result, JobOutcome):
                outcomes.append(result)
            else:
                logger.error(f"Transfer job {job.identifier} raised outside its lifecycle: {result}")
                outcomes.append(JobOutcome(job=job, state=JobState.FAILED, error=result))
        return BatchResult(outcomes=outcomes)

    async def _stop_watching(self) -> None:
        task, self._watch_task = self._watch_task, None
        if task is None:
            return
        if not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            self._report()


class TransferOrchestrator:
    """
    Launches transfer jobs concurrently, with no concurrency cap.

    A batch never short-circuits: every job runs to a terminal state and
    failures are reported per job.
    """

    def __init__(
        self,
        store: ObjectStore,
        sink: Optional[NotificationSink] = None,
        telemetry: Optional[TelemetrySink] = None,
        poll_interval: float = PROGRESS_POLL_INTERVAL_SECONDS,
        link_expiry_seconds: int = DEFAULT_LINK_EXPIRY_SECONDS
    ):
        """
        Initialize orchestrator.

        Args:
            store: Object store that performs the transfers
            sink: Notification sink rendering each job
            telemetry: Sink for usage events and metrics
            poll_interval: Seconds between progress polls of each job
            link_expiry_seconds: Lifetime of source links resolved for copies
        """
        self.store = store
        self.sink = sink or NullNotificationSink()
        self.telemetry = telemetry or LoggingTelemetrySink()
        self.poll_interval = poll_interval
        self.link_expiry_seconds = link_expiry_seconds

    def submit(self, requests: Iterable[TransferRequest]) -> TransferBatch:
        """
        Start one job per request without waiting for any of them.

        Must be called from a running event loop.
        """
        jobs: List[TransferJob] = []
        tasks: List[asyncio.Task] = []
        for request in requests:
            job = TransferJob(
                request,
                poll_interval=self.poll_interval,
                link_expiry_seconds=self.link_expiry_seconds,
            )
            jobs.append(job)
            tasks.append(asyncio.create_task(job.run(self.store, self.sink)))
        logger.info(f"Submitted transfer batch of {len(jobs)} job(s)")
        return TransferBatch(jobs, tasks, sink=self.sink, poll_interval=self.poll_interval)

    def upload(self, container: str, joined_paths: str, destination_prefix: str = "") -> TransferBatch:
        """
        Upload every file of a semicolon-joined path list under one prefix.

        Args:
            container: Target container
            joined_paths: Local paths joined with ';'
            destination_prefix: Key prefix shared by every uploaded object

        Returns:
            Batch with one job per path
        """
        paths = split_upload_paths(joined_paths)
        if not paths:
            raise MalformedInputError("No local paths given for upload")
        requests = [
            UploadRequest(container=container, key=destination_prefix + local_basename(path), local_path=path)
            for path in paths
        ]
        self.telemetry.track_event("upload_objects")
        self.telemetry.track_metric("transfer_count", len(requests))
        return self.submit(requests)

    def download(
        self,
        objects: Sequence[ObjectRecord],
        directory: str,
        save_as: bool = False,
        relative_to: str = ""
    ) -> TransferBatch:
        """
        Stream objects to local files.

        Args:
            objects: Objects to download
            directory: Target directory, or the target file name when ``save_as``
            save_as: Treat ``directory`` as the file name for a single object
            relative_to: Key prefix stripped when laying out files in ``directory``
        """
        if save_as and len(objects) != 1:
            raise MalformedInputError("Save-as download takes exactly one object")
        if save_as:
            requests = [DownloadRequest(obj=objects[0], local_path=directory)]
        else:
            requests = [
                DownloadRequest(obj=obj, local_path=local_target(directory, obj.name, relative_to))
                for obj in objects
            ]
        self.telemetry.track_event("download_objects")
        self.telemetry.track_metric("transfer_count", len(requests))
        return self.submit(requests)

    def copy(self, obj: ObjectRecord, target_container: str, target_key: Optional[str] = None) -> TransferBatch:
        """Copy one object into another container, keeping its file name by default."""
        request = CopyRequest(
            source_obj=obj,
            target_container=target_container,
            target_key=target_key or obj.display_name,
        )
        self.telemetry.track_event("copy_object")
        self.telemetry.track_metric("transfer_count", 1)
        return self.submit([request])

    async def delete_objects(self, objects: Sequence[ObjectRecord]) -> DeleteResult:
        """
        Delete objects concurrently. A vanished object counts as deleted.
        """
        self.telemetry.track_event("delete_objects")
        self.telemetry.track_metric("transfer_count", len(objects))
        outcomes = await asyncio.gather(*(self._delete_one(obj) for obj in objects))
        result = DeleteResult(outcomes=list(outcomes))
        logger.info(f"Delete batch settled: {len(result.succeeded)} deleted, {len(result.failed)} failed")
        return result

    async def _delete_one(self, obj: ObjectRecord) -> DeleteOutcome:
        try:
            await self.store.delete_object(obj.container, obj.name)
        except NotFoundError:
            logger.info(f"Object already gone: {obj.container}:/{obj.name}")
        except ExplorerError as e:
            logger.warning(f"Failed to delete {obj.container}:/{obj.name}: {e}")
            return DeleteOutcome(obj=obj, error=e)
        return DeleteOutcome(obj=obj)
