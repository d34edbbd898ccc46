"""
GitlessSync Client - Operations Package

This package contains the sync engine and the conflict resolution contract.
"""

from .sync_operations import SyncOperations, classify_path
from .conflict_resolver import (
    ConflictResolver,
    KeepLocalResolver,
    KeepRemoteResolver,
    DeferredResolver,
    create_resolver
)

__all__ = [
    'SyncOperations',
    'classify_path',
    'ConflictResolver',
    'KeepLocalResolver',
    'KeepRemoteResolver',
    'DeferredResolver',
    'create_resolver'
]
