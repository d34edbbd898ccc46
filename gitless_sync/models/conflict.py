"""
GitlessSync Client - Conflict Models

ConflictFile is handed to the conflict resolution surface. The surface
answers with one ConflictResolution per file.

Author: GitlessSync Project
"""

from dataclasses import dataclass
from typing import Union


@dataclass
class ConflictFile:
    """
    Local and remote content for a path changed on both sides.

    Text paths carry str content. Binary paths, and text-extension files
    that are not valid UTF-8, carry bytes and have binary set.
    """
    path: str
    local_content: Union[str, bytes]
    remote_content: Union[str, bytes]
    binary: bool = False


@dataclass
class ConflictResolution:
    """Final content chosen for a conflicting path, str is stored as UTF-8"""
    path: str
    content: Union[str, bytes]
