"""
GitlessSync Client - Sync State Model

Cycle state and the result returned to whoever triggered a cycle.

Author: GitlessSync Project
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .conflict import ConflictFile


class SyncState(Enum):
    """
    States of the reconciliation engine.

    States:
    - IDLE: no cycle in flight
    - RUNNING: a cycle is between Snapshot and Persist
    - AWAITING_RESOLUTION: suspended until conflict resolutions arrive
    - COMPLETED: cycle finished and metadata persisted
    - ABORTED: branch head moved underneath the cycle, nothing written
    - FAILED: a remote or local error ended the cycle
    - CANCELLED: cancelled before any remote write
    - COALESCED: trigger arrived while another cycle was in flight
    """
    IDLE = "idle"
    RUNNING = "running"
    AWAITING_RESOLUTION = "awaiting_resolution"
    COMPLETED = "completed"
    ABORTED = "aborted"
    FAILED = "failed"
    CANCELLED = "cancelled"
    COALESCED = "coalesced"


@dataclass
class SyncResult:
    """Outcome of a sync cycle"""
    state: SyncState
    uploaded: List[str] = field(default_factory=list)
    downloaded: List[str] = field(default_factory=list)
    deleted_local: List[str] = field(default_factory=list)
    deleted_remote: List[str] = field(default_factory=list)
    conflicts: List[ConflictFile] = field(default_factory=list)
    commit_sha: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def success(self) -> bool:
        return self.state == SyncState.COMPLETED
