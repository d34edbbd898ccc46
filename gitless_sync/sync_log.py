"""
GitlessSync Client - Sync Log Module

Structured log kept inside the vault's config dir, one JSON object per
line. Meant to be attached to a bug report, so every entry carries the
repository, branch and operation it happened in.

Author: GitlessSync Project
"""

import json
import logging
import threading
import traceback
from datetime import datetime, timezone
from pathlib import Path


LOG_FILE_NAME = "gitless-sync.log"

# Record attributes copied into the entry context when passed via extra=
CONTEXT_FIELDS = ("operation", "repository", "branch", "file_path", "status")


class SyncLogHandler(logging.Handler):
    """
    Logging handler that appends JSON lines to the sync log.

    Context comes from the ``extra`` mapping of the logging call, e.g.
    ``logger.error("...", extra={"operation": "creating blob"})``.
    """

    def __init__(self, config_dir: Path, enabled: bool = True):
        """
        Initialize the sync log handler.

        Args:
            config_dir: Directory holding the log file
            enabled: Whether records are written at all
        """
        super().__init__()
        self.log_file = Path(config_dir) / LOG_FILE_NAME
        self.enabled = enabled
        self._file_lock = threading.Lock()
        # Create the log file in case it doesn't exist
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        self.log_file.touch(exist_ok=True)

    def format_entry(self, record: logging.LogRecord) -> dict:
        context = {field: getattr(record, field, None) for field in CONTEXT_FIELDS}
        context["filePath"] = context.pop("file_path")
        if record.exc_info:
            context["stack"] = "".join(traceback.format_exception(*record.exc_info))
        elif record.levelno >= logging.ERROR:
            context["stack"] = "".join(traceback.format_stack(limit=10))
        else:
            context["stack"] = None

        return {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "additional_data": getattr(record, "additional_data", None),
            "context": context,
        }

    def emit(self, record):
        """
        Append a log record to the sync log.

        Args:
            record: LogRecord to emit
        """
        if not self.enabled:
            return
        try:
            line = json.dumps(self.format_entry(record), default=str)
            with self._file_lock:
                with open(self.log_file, 'a', encoding="utf-8") as f:
                    f.write(line + "\n")
        except Exception:
            self.handleError(record)

    def read(self) -> str:
        with self._file_lock:
            return self.log_file.read_text(encoding="utf-8")

    def clean(self):
        """Truncate the sync log."""
        with self._file_lock:
            self.log_file.write_text("", encoding="utf-8")

    def enable(self):
        self.enabled = True

    def disable(self):
        self.enabled = False
