"""Shared pytest fixtures."""

import base64
import hashlib
import io
import sys
import zipfile
from collections import Counter
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from gitless_sync.api import git_blob_sha
from gitless_sync.exceptions import GitlessSyncAPIError
from gitless_sync.managers import MetadataStore, VaultManager
from gitless_sync.models import RemoteTreeEntry, RemoteTreeSnapshot
from gitless_sync.operations import SyncOperations


class FakeRemote:
    """
    In-memory object store with the same surface as GitHubAPI.

    Blob shas are real git blob shas so the engine's local hashing
    matches. Every call is counted in ``calls``.
    """

    def __init__(self, empty: bool = False):
        self.blobs = {}
        self.trees = {}
        self.commits = {}
        self.head = None
        self.empty = empty
        self.calls = Counter()
        self.failures = {}
        # Called with no arguments right before read_ref_head answers
        self.before_read_ref_head = None
        self.before_fetch_tree = None
        if not empty:
            self.head = self._commit({}, None, "Initial commit")

    # ==================== Test helpers ====================

    def _hash(self, *parts) -> str:
        return hashlib.sha1(repr(parts).encode("utf-8")).hexdigest()

    def _store_blob(self, data: bytes) -> str:
        sha = git_blob_sha(data)
        self.blobs[sha] = data
        return sha

    def _commit(self, files: dict, parent, message: str) -> str:
        tree_sha = self._hash("tree", sorted(files.items()))
        self.trees[tree_sha] = dict(files)
        commit_sha = self._hash("commit", tree_sha, parent, message, len(self.commits))
        self.commits[commit_sha] = (tree_sha, parent)
        return commit_sha

    def current_files(self) -> dict:
        """Path -> (mode, sha) of the branch head tree."""
        tree_sha, _ = self.commits[self.head]
        return dict(self.trees[tree_sha])

    def content(self, path: str) -> bytes:
        return self.blobs[self.current_files()[path][1]]

    def push(self, changes: dict, message: str = "Remote change"):
        """Commit straight to the branch, as another client would. None deletes."""
        files = self.current_files()
        for path, data in changes.items():
            if data is None:
                files.pop(path, None)
            else:
                files[path] = ("100644", self._store_blob(data))
        self.head = self._commit(files, self.head, message)

    def object_writes(self) -> int:
        return sum(self.calls[name] for name in ("create_blob", "create_tree", "create_commit", "update_ref_head"))

    def _call(self, name: str):
        self.calls[name] += 1
        if name in self.failures:
            raise self.failures[name]

    # ==================== API surface ====================

    def fetch_tree(self, retry=None) -> RemoteTreeSnapshot:
        self._call("fetch_tree")
        if self.before_fetch_tree:
            self.before_fetch_tree()
        tree_sha, _ = self.commits[self.head]
        files = {
            path: RemoteTreeEntry(path=path, sha=sha, mode=mode, type="blob", size=len(self.blobs[sha]))
            for path, (mode, sha) in self.trees[tree_sha].items()
        }
        return RemoteTreeSnapshot(sha=tree_sha, files=files)

    def create_blob(self, content: str, encoding: str = "base64", retry=None) -> str:
        self._call("create_blob")
        data = base64.b64decode(content) if encoding == "base64" else content.encode("utf-8")
        return self._store_blob(data)

    def read_blob(self, sha: str, retry=None) -> bytes:
        self._call("read_blob")
        return self.blobs[sha]

    def create_tree(self, entries, base_tree_sha, retry=None) -> str:
        self._call("create_tree")
        files = dict(self.trees[base_tree_sha])
        for entry in entries:
            if entry["sha"] is None:
                files.pop(entry["path"], None)
            else:
                files[entry["path"]] = (entry["mode"], entry["sha"])
        tree_sha = self._hash("tree", sorted(files.items()))
        self.trees[tree_sha] = files
        return tree_sha

    def create_commit(self, message, tree_sha, parent_sha, retry=None) -> str:
        self._call("create_commit")
        commit_sha = self._hash("commit", tree_sha, parent_sha, message, len(self.commits))
        self.commits[commit_sha] = (tree_sha, parent_sha)
        return commit_sha

    def read_ref_head(self, retry=None) -> str:
        self._call("read_ref_head")
        if self.empty:
            raise GitlessSyncAPIError("Git Repository is empty.", status=409, operation="getting branch head")
        if self.before_read_ref_head:
            self.before_read_ref_head()
        return self.head

    def update_ref_head(self, sha, retry=None):
        self._call("update_ref_head")
        self.head = sha

    def download_archive(self, retry=None) -> bytes:
        self._call("download_archive")
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zf:
            zf.writestr("owner-repo-0123abc/", "")
            for path, (_, sha) in self.current_files().items():
                zf.writestr(f"owner-repo-0123abc/{path}", self.blobs[sha])
        return buffer.getvalue()

    def create_file(self, path, content, message, retry=None):
        self._call("create_file")
        self.empty = False
        self.head = self._commit({path: ("100644", self._store_blob(content))}, None, message)


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def vault(tmp_path: Path) -> VaultManager:
    vault_path = tmp_path / "vault"
    vault_path.mkdir()
    return VaultManager(vault_path)


@pytest.fixture
def metadata(vault: VaultManager):
    store = MetadataStore(vault.config_dir)
    store.load()
    yield store
    store.close()


@pytest.fixture
def engine(remote, vault, metadata) -> SyncOperations:
    return SyncOperations(remote, vault, metadata, max_parallel_uploads=1)
