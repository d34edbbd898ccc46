"""
GitlessSync Client - File Event Model

Change notifications delivered by the filesystem watcher.

Author: GitlessSync Project
"""

from enum import Enum


class FileEventType(Enum):
    """Kind of local change notification"""
    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"
