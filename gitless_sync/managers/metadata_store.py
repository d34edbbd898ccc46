"""
GitlessSync Client - Metadata Store

Stores per-path sync state between sessions as one JSON document in the
vault's config dir. Writes go through a single worker so they never
interleave and land on disk in the order they were requested.

Author: GitlessSync Project
"""

import json
import logging
import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import ValidationError

from gitless_sync.models import FileMetadata, Metadata

# Configure logging
logger = logging.getLogger(__name__)


METADATA_FILE_NAME = "gitless-sync-metadata.json"


class MetadataStore:
    """
    Durable per-path sync state.

    Responsibilities:
    - Load the metadata document, recovering from a missing or corrupt file
    - Queue saves so the file always holds a fully applied state
    - Provide locked access to individual entries
    """

    def __init__(self, config_dir: Path):
        """
        Initialize metadata store.

        Args:
            config_dir: Directory holding the metadata document
        """
        self.metadata_file = Path(config_dir) / METADATA_FILE_NAME
        self.data = Metadata(last_sync=0, files={})
        self._lock = threading.RLock()
        self._writer = ThreadPoolExecutor(max_workers=1, thread_name_prefix="metadata-writer")
        self._last_write: Optional[Future] = None

    def load(self):
        """
        Load the metadata from disk.

        A missing, unparsable or structurally invalid document resets the
        state to empty instead of failing, every path is then treated as new.
        """
        with self._lock:
            if not self.metadata_file.exists():
                logger.debug(f"No metadata file at {self.metadata_file}, starting empty")
                self.reset()
                return

            try:
                content = self.metadata_file.read_text(encoding="utf-8")
                self.data = Metadata.model_validate(json.loads(content))
                logger.debug(f"Loaded metadata for {len(self.data.files)} files")
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                logger.error(f"Failed to parse metadata file, resetting: {e}")
                self.reset()
            except ValidationError as e:
                logger.warning(f"Metadata file has invalid structure, resetting: {e}")
                self.reset()
            except OSError as e:
                logger.error(f"Failed to load metadata, using default: {e}")
                self.reset()

    def save(self) -> Future:
        """
        Queue a write of the current state.

        The state is serialized now, so the write reflects every change
        made before this call even if it runs later.

        Returns:
            Future resolving when this write is on disk
        """
        with self._lock:
            payload = self.data.model_dump_json(by_alias=True)
            self._last_write = self._writer.submit(self._write, payload)
            return self._last_write

    def _write(self, payload: str):
        try:
            self.metadata_file.parent.mkdir(parents=True, exist_ok=True)
            tmp_file = self.metadata_file.with_suffix(".tmp")
            tmp_file.write_text(payload, encoding="utf-8")
            os.replace(tmp_file, self.metadata_file)
        except OSError as e:
            logger.error(f"Failed to save metadata: {e}")
            raise

    def flush(self):
        """Wait for every queued write to finish."""
        with self._lock:
            last_write = self._last_write
        if last_write is not None:
            last_write.result()

    def close(self):
        self._writer.shutdown(wait=True)

    def reset(self):
        """Clear in-memory state. Nothing is written."""
        with self._lock:
            self.data = Metadata(last_sync=0, files={})

    # ==================== Entry access ====================

    @property
    def last_sync(self) -> int:
        return self.data.last_sync

    @last_sync.setter
    def last_sync(self, value: int):
        with self._lock:
            self.data.last_sync = value

    def get(self, path: str) -> Optional[FileMetadata]:
        with self._lock:
            return self.data.files.get(path)

    def upsert(self, path: str, **fields) -> FileMetadata:
        """
        Create or update the entry for a path.

        Args:
            path: Vault relative path
            **fields: FileMetadata field values to set

        Returns:
            The updated entry
        """
        with self._lock:
            entry = self.data.files.get(path)
            if entry is None:
                entry = FileMetadata(path=path, **fields)
                self.data.files[path] = entry
            else:
                for key, value in fields.items():
                    setattr(entry, key, value)
            return entry

    def remove(self, path: str):
        with self._lock:
            self.data.files.pop(path, None)

    def paths(self) -> List[str]:
        with self._lock:
            return list(self.data.files.keys())

    def snapshot(self) -> Dict[str, FileMetadata]:
        """Deep copy of all entries, safe to read while others mutate the store."""
        with self._lock:
            return {path: entry.model_copy() for path, entry in self.data.files.items()}
