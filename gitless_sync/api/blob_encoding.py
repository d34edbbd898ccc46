"""
GitlessSync Client - Blob Encoding Module

Decides how file content is sent when creating a blob.

Classification is by file extension only. Files outside the allow-list
are always sent as base64, even when they happen to be valid text.

Author: GitlessSync Project
"""

import base64
import hashlib
import logging
from typing import Tuple

logger = logging.getLogger(__name__)


TEXT_EXTENSIONS = (
    ".css",
    ".md",
    ".json",
    ".txt",
    ".csv",
    ".js",
    ".log",
)


def has_text_extension(file_path: str) -> bool:
    """Check if a path ends with one of the text extensions."""
    return file_path.endswith(TEXT_EXTENSIONS)


def encode_blob_content(file_path: str, data: bytes) -> Tuple[str, str]:
    """
    Encode file bytes for the blob create call.

    Args:
        file_path: Vault relative path, used for the extension check
        data: Raw file content

    Returns:
        Tuple of (content, encoding) where encoding is "utf-8" or "base64"
    """
    if has_text_extension(file_path):
        try:
            return data.decode("utf-8"), "utf-8"
        except UnicodeDecodeError:
            logger.warning(f"{file_path} has a text extension but is not valid UTF-8, sending as base64")

    return base64.b64encode(data).decode("ascii"), "base64"


def git_blob_sha(data: bytes) -> str:
    """
    Compute the sha git assigns to a blob with this content.

    Lets the engine tell identical content apart without downloading
    the remote blob.
    """
    header = f"blob {len(data)}\0".encode("ascii")
    return hashlib.sha1(header + data).hexdigest()
