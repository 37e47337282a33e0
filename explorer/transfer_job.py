"""A single upload, download or copy and its progress lifecycle."""

import asyncio
import os
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional, Tuple, Union

from common.constants import DEFAULT_LINK_EXPIRY_SECONDS, PROGRESS_POLL_INTERVAL_SECONDS
from common.logging_config import get_logger
from common.types import ObjectRecord
from common.validation import validate_object_key
from explorer.exceptions import ExplorerError, MalformedInputError, TransferFailedError
from explorer.notifications import (
    NotificationSink,
    ProgressUpdate,
    copy_message,
    download_message,
    format_throughput,
    upload_message,
)
from explorer.store import ObjectStore, ProgressHandle, TransferHandle

logger = get_logger(__name__)


class TransferKind(Enum):
    UPLOAD = "upload"
    DOWNLOAD = "download"
    COPY = "copy"


class JobState(Enum):
    PENDING = "pending"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class UploadRequest:
    """Upload a local file to ``container`` under ``key``."""
    container: str
    key: str
    local_path: str
    kind: ClassVar[TransferKind] = TransferKind.UPLOAD

    @property
    def name(self) -> str:
        return os.path.basename(self.local_path)

    @property
    def source(self) -> str:
        return self.local_path

    @property
    def destination(self) -> str:
        return f"{self.container}:/{self.key}"


@dataclass(frozen=True)
class DownloadRequest:
    """Download ``obj`` into the local file ``local_path``."""
    obj: ObjectRecord
    local_path: str
    kind: ClassVar[TransferKind] = TransferKind.DOWNLOAD

    @property
    def name(self) -> str:
        return self.obj.name

    @property
    def source(self) -> str:
        return f"{self.obj.container}:/{self.obj.name}"

    @property
    def destination(self) -> str:
        return self.local_path


@dataclass(frozen=True)
class CopyRequest:
    """Copy ``source_obj`` into ``target_container`` under ``target_key``."""
    source_obj: ObjectRecord
    target_container: str
    target_key: str
    kind: ClassVar[TransferKind] = TransferKind.COPY

    @property
    def name(self) -> str:
        return self.source_obj.display_name

    @property
    def source(self) -> str:
        return f"{self.source_obj.container}:/{self.source_obj.name}"

    @property
    def destination(self) -> str:
        return f"{self.target_container}:/{self.target_key}"


TransferRequest = Union[UploadRequest, DownloadRequest, CopyRequest]


@dataclass(frozen=True)
class JobOutcome:
    """Terminal result of one job."""
    job: "TransferJob"
    state: JobState
    error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return self.state is JobState.SUCCEEDED


class TransferJob:
    """
    One transfer: Pending -> InFlight -> Succeeded | Failed.

    While in flight the job polls its progress handle on a fixed interval and
    forwards readings to the notification sink. Settlement cancels the poll
    first, then publishes the terminal state, runs the sink's teardown hook
    and finally resolves ``completion``.
    """

    def __init__(
        self,
        request: TransferRequest,
        poll_interval: float = PROGRESS_POLL_INTERVAL_SECONDS,
        link_expiry_seconds: int = DEFAULT_LINK_EXPIRY_SECONDS
    ):
        """
        Initialize job. Must be called with a running event loop.

        Args:
            request: What to transfer
            poll_interval: Seconds between progress polls
            link_expiry_seconds: Lifetime of the source link resolved for copies
        """
        self.request = request
        self.poll_interval = poll_interval
        self.link_expiry_seconds = link_expiry_seconds
        self.state = JobState.PENDING
        self.error: Optional[BaseException] = None
        self.percent = 0.0
        self.throughput = 0.0
        self.progress: Optional[ProgressHandle] = None
        self.completion: asyncio.Future = asyncio.get_running_loop().create_future()
        self._poll_task: Optional[asyncio.Task] = None

    @property
    def kind(self) -> TransferKind:
        return self.request.kind

    @property
    def identifier(self) -> Tuple[str, str, str]:
        return (self.kind.value, self.request.source, self.request.destination)

    @property
    def settled(self) -> bool:
        return self.state in (JobState.SUCCEEDED, JobState.FAILED)

    def message(self, throughput: str = "", percent: Optional[float] = None) -> str:
        """Render this job's progress text for a sink."""
        name, destination = self.request.name, self.request.destination
        if self.kind is TransferKind.UPLOAD:
            return upload_message(name, destination, throughput, percent)
        if self.kind is TransferKind.DOWNLOAD:
            return download_message(name, destination, throughput, percent)
        return copy_message(name, destination, throughput, percent)

    async def run(self, store: ObjectStore, sink: NotificationSink) -> JobOutcome:
        """
        Drive the job to a terminal state. Never raises for transfer failures.

        Returns:
            The job's outcome (also the result of ``completion``)
        """
        if self.state is not JobState.PENDING:
            raise RuntimeError(f"Transfer job {self.identifier} already started")

        try:
            handle = await self._start(store)
        except Exception as e:
            return self._settle(None, self._as_failure(e))

        self.progress = handle.progress
        self.state = JobState.IN_FLIGHT
        self._notify(sink.transfer_started)
        self._poll_task = asyncio.create_task(self._poll(sink))

        error: Optional[BaseException] = None
        try:
            await handle.completion
        except Exception as e:
            error = self._as_failure(e)
        finally:
            await self._stop_polling()

        return self._settle(sink, error)

    async def _start(self, store: ObjectStore) -> TransferHandle:
        """Issue the store call for this job's kind."""
        request = self.request
        if isinstance(request, UploadRequest):
            self._check_key(request.key)
            logger.info(f"Starting upload: {request.local_path} -> {request.destination}")
            return await store.upload_object(request.container, request.key, request.local_path)
        elif isinstance(request, DownloadRequest):
            parent = os.path.dirname(request.local_path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            logger.info(f"Starting download: {request.source} -> {request.local_path}")
            return await store.download_object_to_file(request.obj, request.local_path)
        elif isinstance(request, CopyRequest):
            self._check_key(request.target_key)
            source_uri = await store.resolve_temporary_link(request.source_obj, self.link_expiry_seconds)
            logger.info(f"Starting copy: {request.source} -> {request.destination}")
            return await store.copy_object(source_uri, request.target_container, request.target_key)
        raise MalformedInputError(f"Unsupported transfer request: {type(request).__name__}")

    @staticmethod
    def _check_key(key: str) -> None:
        try:
            validate_object_key(key)
        except ValueError as e:
            raise MalformedInputError(str(e)) from e

    @staticmethod
    def _as_failure(error: BaseException) -> BaseException:
        if isinstance(error, ExplorerError):
            return error
        failure = TransferFailedError(f"{type(error).__name__}: {error}")
        failure.__cause__ = error
        return failure

    async def _poll(self, sink: NotificationSink) -> None:
        while True:
            await asyncio.sleep(self.poll_interval)
            if self.state is not JobState.IN_FLIGHT:
                return
            self._sample(sink)

    def _sample(self, sink: NotificationSink) -> None:
        snapshot = self.progress.snapshot()
        self.percent = max(self.percent, snapshot.percent)
        self.throughput = snapshot.throughput
        throughput = format_throughput(snapshot.throughput)
        update = ProgressUpdate(
            percent=self.percent,
            throughput=throughput,
            text=self.message(throughput, self.percent),
        )
        self._notify(sink.transfer_progress, update)

    async def _stop_polling(self) -> None:
        task, self._poll_task = self._poll_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception(f"Progress poll failed: {self.request.source} -> {self.request.destination}")

    def _notify(self, hook, *args) -> None:
        """Call a sink hook; a failing sink never changes the job's outcome."""
        try:
            hook(self, *args)
        except Exception:
            logger.exception(f"Notification sink failed in {hook.__name__}: {self.request.source} -> {self.request.destination}")

    def _settle(self, sink: Optional[NotificationSink], error: Optional[BaseException]) -> JobOutcome:
        if error is None:
            self.state = JobState.SUCCEEDED
            self.percent = 100.0
            logger.info(f"Transfer succeeded: {self.request.source} -> {self.request.destination}")
        else:
            self.state = JobState.FAILED
            self.error = error
            logger.warning(f"Transfer failed: {self.request.source} -> {self.request.destination}: {error}")

        if sink is not None:
            self._notify(sink.transfer_settled)

        outcome = JobOutcome(job=self, state=self.state, error=self.error)
        if not self.completion.done():
            self.completion.set_result(outcome)
        return outcome
