"""
GitlessSync Client - Conflict Resolver Module

Contract between the sync engine and whatever decides the final content
of files changed on both sides.

The engine hands over the full batch of conflicts for a cycle and expects
the full batch of resolutions back, never a partial one. A resolver that
needs a human (or any other slow source) returns None. The engine then
stays suspended in the awaiting resolution state until
SyncOperations.resolve_conflicts() is called.

Built-in resolvers:
  * ``KeepLocalResolver``: local content wins
  * ``KeepRemoteResolver``: remote content wins
  * ``DeferredResolver``: keeps the batch for an external UI
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from gitless_sync.models import ConflictFile, ConflictResolution

logger = logging.getLogger(__name__)


class ConflictResolver(ABC):
    """Base class for conflict resolution strategies."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Strategy name used in config and logs."""

    @abstractmethod
    def resolve(self, conflicts: List[ConflictFile]) -> Optional[List[ConflictResolution]]:
        """Return one resolution per conflict, or None to resolve later."""


class KeepLocalResolver(ConflictResolver):
    """Overwrite the remote with the local content."""

    @property
    def name(self) -> str:
        return "local"

    def resolve(self, conflicts: List[ConflictFile]) -> Optional[List[ConflictResolution]]:
        return [ConflictResolution(path=c.path, content=c.local_content) for c in conflicts]


class KeepRemoteResolver(ConflictResolver):
    """Overwrite the local file with the remote content."""

    @property
    def name(self) -> str:
        return "remote"

    def resolve(self, conflicts: List[ConflictFile]) -> Optional[List[ConflictResolution]]:
        return [ConflictResolution(path=c.path, content=c.remote_content) for c in conflicts]


class DeferredResolver(ConflictResolver):
    """
    Keep the batch for an external surface and leave the engine suspended.

    The surface reads ``pending`` and answers through
    SyncOperations.resolve_conflicts().
    """

    def __init__(self):
        self.pending: List[ConflictFile] = []

    @property
    def name(self) -> str:
        return "abort"

    def resolve(self, conflicts: List[ConflictFile]) -> Optional[List[ConflictResolution]]:
        self.pending = list(conflicts)
        logger.info(f"{len(conflicts)} conflicts waiting for resolution")
        return None


RESOLVERS = {
    "local": KeepLocalResolver,
    "remote": KeepRemoteResolver,
    "abort": DeferredResolver,
}


def create_resolver(strategy: str) -> ConflictResolver:
    """
    Build a resolver from its config name.

    Raises:
        ValueError: If the strategy is unknown
    """
    try:
        return RESOLVERS[strategy]()
    except KeyError:
        raise ValueError(f"Unknown conflict strategy: {strategy}") from None
