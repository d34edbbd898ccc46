"""
GitlessSync Client - Vault Manager

Filesystem access for the local vault. All paths handed in and out are
relative to the vault root and use forward slashes, matching the paths
in the remote tree.

Author: GitlessSync Project
"""

import logging
from pathlib import Path
from typing import List, Optional

from gitless_sync.models import LocalFile

# Configure logging
logger = logging.getLogger(__name__)


class VaultManager:
    """
    Manages the local file tree being synced.

    Responsibilities:
    - Read, write and delete vault files by relative path
    - List vault files with their modification time
    - Keep the client's own config dir out of the listing
    """

    def __init__(self, vault_path: Path, config_dir: str = ".gitless-sync"):
        """
        Initialize vault manager.

        Args:
            vault_path: Root of the local vault
            config_dir: Name of the client's own folder inside the vault
        """
        self.vault_path = Path(vault_path)
        self.config_dir_name = config_dir.strip("/")
        self.config_dir = self.vault_path / self.config_dir_name

    def _resolve(self, path: str) -> Path:
        full_path = (self.vault_path / path).resolve()
        if not full_path.is_relative_to(self.vault_path.resolve()):
            raise ValueError(f"Path escapes the vault: {path}")
        return full_path

    def is_ignored(self, path: str) -> bool:
        """Check if a relative path belongs to the client's config dir."""
        normalized = path.replace("\\", "/").lstrip("/")
        return normalized == self.config_dir_name or normalized.startswith(self.config_dir_name + "/")

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def read(self, path: str) -> bytes:
        with open(self._resolve(path), 'rb') as f:
            return f.read()

    def write(self, path: str, data: bytes):
        """
        Write a file, creating parent directories if needed.

        Args:
            path: Vault relative path
            data: File content
        """
        local_file = self._resolve(path)
        local_file.parent.mkdir(parents=True, exist_ok=True)
        with open(local_file, 'wb') as f:
            f.write(data)
        logger.debug(f"Wrote {path} ({len(data)} bytes)")

    def delete(self, path: str):
        """
        Delete a file and any parent folders left empty by it.

        Args:
            path: Vault relative path
        """
        local_file = self._resolve(path)
        if local_file.exists():
            local_file.unlink()
            logger.debug(f"Deleted {path}")

        parent = local_file.parent
        root = self.vault_path.resolve()
        while parent != root and parent.is_dir() and not any(parent.iterdir()):
            parent.rmdir()
            parent = parent.parent

    def list(self) -> List[LocalFile]:
        """
        List all files in the vault.

        Returns:
            Files with vault relative paths and mtimes in epoch milliseconds
        """
        files = []
        if not self.vault_path.exists():
            return files

        for file_path in self.vault_path.rglob("*"):
            if not file_path.is_file():
                continue
            # Convert to forward slashes for consistency with the remote tree
            rel_path = str(file_path.relative_to(self.vault_path)).replace("\\", "/")
            if self.is_ignored(rel_path):
                continue
            files.append(LocalFile(path=rel_path, mtime=int(file_path.stat().st_mtime * 1000)))

        return files

    def mtime(self, path: str) -> Optional[int]:
        local_file = self._resolve(path)
        if not local_file.is_file():
            return None
        return int(local_file.stat().st_mtime * 1000)
