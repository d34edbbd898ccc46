"""
Tests for blob content encoding

Tests the extension allow-list, the base64 fallback and git blob hashing.
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from gitless_sync.api import TEXT_EXTENSIONS, encode_blob_content, git_blob_sha, has_text_extension
from conftest import FakeRemote


def test_text_extensions():
    """Test the allow-list matches on the final extension only"""
    for extension in TEXT_EXTENSIONS:
        assert has_text_extension(f"notes/file{extension}")

    assert not has_text_extension("image.png")
    assert not has_text_extension("script.py")
    assert not has_text_extension("notes.md.bak")


def test_text_file_sent_as_utf8():
    content, encoding = encode_blob_content("daily/2024-01-01.md", "Café ☕ 日本語\n".encode("utf-8"))

    assert encoding == "utf-8"
    assert content == "Café ☕ 日本語\n"


def test_binary_file_sent_as_base64():
    content, encoding = encode_blob_content("attachments/photo.png", b"\x89PNG\r\n\x1a\n\x00\xff")

    assert encoding == "base64"
    assert content == "iVBORw0KGgoA/w=="


def test_text_outside_allow_list_sent_as_base64():
    """Test classification is by extension, not by content"""
    _, encoding = encode_blob_content("scripts/run.py", b"print('hello')\n")

    assert encoding == "base64"


def test_invalid_utf8_with_text_extension_falls_back_to_base64():
    _, encoding = encode_blob_content("broken.md", b"caf\xe9")

    assert encoding == "base64"


def test_git_blob_sha_matches_git():
    """Test hashes agree with `git hash-object`"""
    assert git_blob_sha(b"") == "e69de29bb2d1d6434b8b29ae775ad8c2e48c5391"
    assert git_blob_sha(b"hello\n") == "ce013625030ba8dba906f756967f9e9ca394464a"


def test_uploaded_content_reads_back_identical():
    """Test text and binary content survive a create and read by sha"""
    remote = FakeRemote()
    samples = {
        "unicode.md": "Ünïcödé ✓ 中文 🎉\r\nsecond line".encode("utf-8"),
        "blob.bin": bytes(range(256)),
        "latin1.txt": b"caf\xe9",
    }

    for path, data in samples.items():
        content, encoding = encode_blob_content(path, data)
        sha = remote.create_blob(content, encoding)

        assert sha == git_blob_sha(data)
        assert remote.read_blob(sha) == data
