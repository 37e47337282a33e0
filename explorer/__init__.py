"""Explorer core: listing, selection and transfer orchestration over an object store."""

from explorer.directory_index import DirectoryIndex
from explorer.explorer_view import ExplorerView
from explorer.memory_store import InMemoryObjectStore
from explorer.object_index import ObjectIndex
from explorer.orchestrator import BatchResult, DeleteResult, TransferBatch, TransferOrchestrator
from explorer.path_segments import PathSegmenter
from explorer.selection import SelectionCounts, SelectionSet
from explorer.store import ObjectStore, ProgressHandle, TransferHandle
from explorer.transfer_job import (
    CopyRequest,
    DownloadRequest,
    JobOutcome,
    JobState,
    TransferJob,
    TransferKind,
    UploadRequest,
)

__all__ = [
    "BatchResult",
    "CopyRequest",
    "DeleteResult",
    "DirectoryIndex",
    "DownloadRequest",
    "ExplorerView",
    "InMemoryObjectStore",
    "JobOutcome",
    "JobState",
    "ObjectIndex",
    "ObjectStore",
    "PathSegmenter",
    "ProgressHandle",
    "SelectionCounts",
    "SelectionSet",
    "TransferBatch",
    "TransferHandle",
    "TransferJob",
    "TransferKind",
    "TransferOrchestrator",
    "UploadRequest",
]
