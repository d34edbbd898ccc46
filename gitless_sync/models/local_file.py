"""
GitlessSync Client - Local File Model

Entry returned by the vault listing.

Author: GitlessSync Project
"""

from dataclasses import dataclass


@dataclass
class LocalFile:
    """A file in the local vault"""
    path: str  # Vault relative, forward slashes
    mtime: int  # Epoch milliseconds
