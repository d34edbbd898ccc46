"""
GitlessSync Client - Sync Plan Model

Classification of each path's divergence and the actions planned for
one sync cycle.

Author: GitlessSync Project
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .conflict import ConflictFile


class FileChangeClass(Enum):
    """
    How a path diverged between local, remote and the last sync.

    Every path seen locally, remotely or in metadata gets exactly one.
    """
    UNCHANGED = "unchanged"
    LOCAL_ONLY_CHANGE = "local-only-change"
    REMOTE_ONLY_CHANGE = "remote-only-change"
    BOTH_CHANGED = "both-changed"
    LOCAL_NEW = "local-new"
    REMOTE_NEW = "remote-new"
    LOCAL_DELETED = "local-deleted"
    REMOTE_DELETED = "remote-deleted"
    # Absent on both sides, only metadata left
    GONE = "gone"


class ActionType(Enum):
    """Action executed for a path"""
    UPLOAD = "upload"
    DOWNLOAD = "download"
    DELETE_LOCAL = "delete_local"
    DELETE_REMOTE = "delete_remote"


# Class -> action mapping for non conflicting paths
ACTIONS_BY_CLASS = {
    FileChangeClass.LOCAL_ONLY_CHANGE: ActionType.UPLOAD,
    FileChangeClass.LOCAL_NEW: ActionType.UPLOAD,
    FileChangeClass.REMOTE_ONLY_CHANGE: ActionType.DOWNLOAD,
    FileChangeClass.REMOTE_NEW: ActionType.DOWNLOAD,
    FileChangeClass.REMOTE_DELETED: ActionType.DELETE_LOCAL,
    FileChangeClass.LOCAL_DELETED: ActionType.DELETE_REMOTE,
}


@dataclass
class SyncAction:
    """
    A single planned action.

    For uploads content is None until the local file is read, except for
    resolved conflicts where it holds the chosen content. remote_sha is
    the blob to read for downloads.
    """
    path: str
    action: ActionType
    content: Optional[bytes] = None
    remote_sha: Optional[str] = None
    from_conflict: bool = False


@dataclass
class SyncPlan:
    """Everything one cycle intends to do"""
    actions: List[SyncAction] = field(default_factory=list)
    conflicts: List[ConflictFile] = field(default_factory=list)
    adopted_shas: Dict[str, str] = field(default_factory=dict)
    purges: List[str] = field(default_factory=list)
    # Paths absent on both sides that get marked deleted this cycle
    tombstones: List[str] = field(default_factory=list)

    def by_type(self, action_type: ActionType) -> List[SyncAction]:
        return [a for a in self.actions if a.action == action_type]

    @property
    def has_remote_changes(self) -> bool:
        return any(a.action in (ActionType.UPLOAD, ActionType.DELETE_REMOTE)
                   for a in self.actions)
