"""
Tests for vault file access
"""

import os
import sys
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from gitless_sync.managers import VaultManager


def test_list_uses_forward_slashes_and_skips_config_dir(vault):
    vault.write("daily/2024/01.md", b"x")
    vault.write("top.txt", b"y")
    vault.write(".gitless-sync/gitless-sync-metadata.json", b"{}")

    paths = sorted(f.path for f in vault.list())

    assert paths == ["daily/2024/01.md", "top.txt"]


def test_list_reports_mtime_in_milliseconds(vault):
    vault.write("a.md", b"x")
    os.utime(vault.vault_path / "a.md", (1700000000.5, 1700000000.5))

    [local] = vault.list()

    assert local.mtime == 1700000000500
    assert vault.mtime("a.md") == 1700000000500
    assert vault.mtime("missing.md") is None


def test_write_read_round_trip(vault):
    data = bytes(range(256))
    vault.write("nested/dir/blob.bin", data)

    assert vault.exists("nested/dir/blob.bin")
    assert vault.read("nested/dir/blob.bin") == data


def test_delete_prunes_empty_folders(vault):
    vault.write("a/b/c.md", b"x")
    vault.write("a/keep.md", b"y")

    vault.delete("a/b/c.md")

    assert not (vault.vault_path / "a" / "b").exists()
    assert (vault.vault_path / "a" / "keep.md").exists()
    assert vault.vault_path.exists()


def test_delete_missing_file_is_noop(vault):
    vault.delete("never/there.md")

    assert vault.vault_path.exists()


def test_is_ignored(vault):
    assert vault.is_ignored(".gitless-sync")
    assert vault.is_ignored(".gitless-sync/gitless-sync.log")
    assert vault.is_ignored("/.gitless-sync/x")
    assert not vault.is_ignored(".gitless-sync-notes.md")
    assert not vault.is_ignored("notes/.gitless-sync/x")


def test_path_escaping_vault_is_rejected(vault):
    with pytest.raises(ValueError):
        vault.write("../outside.md", b"x")


def test_custom_config_dir(tmp_path):
    manager = VaultManager(tmp_path, config_dir=".sync/")

    assert manager.config_dir == tmp_path / ".sync"
    assert manager.is_ignored(".sync/meta.json")
