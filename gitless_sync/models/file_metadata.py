"""
GitlessSync Client - File Metadata Model

Pydantic models for the persisted metadata document. Field names are
snake_case in Python and camelCase on disk.

Author: GitlessSync Project
"""

import time
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


class FileMetadata(BaseModel):
    """
    Sync state for a single vault path.

    sha is the remote blob sha as of the last confirmed sync. None means
    the path has never been uploaded. It only changes on upload or
    download, never on a local edit.
    """
    model_config = ConfigDict(populate_by_name=True)

    path: str
    sha: Optional[str] = None
    dirty: bool = False
    # Set after the engine writes a file so the change notification that
    # write triggers is not mistaken for a user edit
    just_downloaded: bool = Field(default=False, alias="justDownloaded")
    last_modified: int = Field(default=0, alias="lastModified")
    deleted: Optional[bool] = None
    deleted_at: Optional[int] = Field(default=None, alias="deletedAt")


class Metadata(BaseModel):
    """Response model for the whole metadata document"""
    model_config = ConfigDict(populate_by_name=True)

    last_sync: int = Field(default=0, alias="lastSync")
    files: Dict[str, FileMetadata]
