"""Push of local folders to Studio.

Architecture:
    FolderMirror → ChangeDetector → TransferEngine, driven by SyncOrchestrator

Components:
- **FolderMirror**: Creates a Studio folder for every local sub folder
- **ChangeDetector**: Compares a folder listing with local files
- **TransferEngine**: Chunked upload/replace with bounded concurrency
- **SyncOrchestrator**: Runs a push folder by folder
- **LocalFileSystem**: Listing and reading of local files
"""

from studiohelper.client.sync.changes import ChangeDetector
from studiohelper.client.sync.folders import DirectoryFolderCache, FolderMirror
from studiohelper.client.sync.local import LocalFileSystem, round_mtime
from studiohelper.client.sync.orchestrator import SyncOrchestrator, all_ok
from studiohelper.client.sync.throttle import throttled_map
from studiohelper.client.sync.transfer import MAX_CONCURRENT_CONNECTIONS, TransferEngine
from studiohelper.client.sync.types import (
    ChangeSet,
    FolderCreateResult,
    FolderJob,
    FolderSpec,
    LocalFileInfo,
    PathRule,
    ProgressCallback,
    PushResultSet,
    RemoteFile,
    RemoteFolder,
    ReplaceAction,
    SyncProgress,
    TransferAction,
    TransferResult,
    UploadAction,
    first_match,
    normalize_path,
)

__all__ = [
    # Components
    "ChangeDetector",
    "DirectoryFolderCache",
    "FolderMirror",
    "LocalFileSystem",
    "MAX_CONCURRENT_CONNECTIONS",
    "SyncOrchestrator",
    "TransferEngine",
    "all_ok",
    "round_mtime",
    "throttled_map",
    # Types
    "ChangeSet",
    "FolderCreateResult",
    "FolderJob",
    "FolderSpec",
    "LocalFileInfo",
    "PathRule",
    "ProgressCallback",
    "PushResultSet",
    "RemoteFile",
    "RemoteFolder",
    "ReplaceAction",
    "SyncProgress",
    "TransferAction",
    "TransferResult",
    "UploadAction",
    "first_match",
    "normalize_path",
]
