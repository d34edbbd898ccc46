"""
GitlessSync Client - Models Package

Contains data models and enumerations used by the client.

Author: GitlessSync Project
"""

from .file_metadata import FileMetadata, Metadata, now_ms
from .remote_tree import RemoteTreeEntry, RemoteTreeSnapshot
from .local_file import LocalFile
from .conflict import ConflictFile, ConflictResolution
from .repository_settings import RepositorySettings
from .sync_plan import FileChangeClass, ActionType, SyncAction, SyncPlan
from .sync_state import SyncState, SyncResult
from .file_event import FileEventType

__all__ = [
    'FileMetadata',
    'Metadata',
    'now_ms',
    'RemoteTreeEntry',
    'RemoteTreeSnapshot',
    'LocalFile',
    'ConflictFile',
    'ConflictResolution',
    'RepositorySettings',
    'FileChangeClass',
    'ActionType',
    'SyncAction',
    'SyncPlan',
    'SyncState',
    'SyncResult',
    'FileEventType'
]
