"""
GitlessSync Client - Remote Tree Model

Dataclasses for the remote tree snapshot taken at the start of each cycle.

Author: GitlessSync Project
"""

from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class RemoteTreeEntry:
    """A blob entry in the remote tree"""
    path: str
    sha: str
    mode: str = "100644"
    type: str = "blob"
    size: Optional[int] = None


@dataclass
class RemoteTreeSnapshot:
    """
    Root tree sha plus every blob reachable from it, keyed by path.

    Replaced wholesale each cycle, never patched.
    """
    sha: str
    files: Dict[str, RemoteTreeEntry] = field(default_factory=dict)
