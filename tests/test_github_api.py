"""
Tests for the GitHub API client

Tests request construction, response parsing, error mapping and retries.
The HTTP session is replaced with a mock, nothing goes over the network.
"""

import base64
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from gitless_sync.api import GitHubAPI, RetryPolicy
from gitless_sync.exceptions import (
    GitlessSyncAPIError,
    GitlessSyncAuthError,
    GitlessSyncServerError,
    GitlessSyncValidationError
)
from gitless_sync.models import RepositorySettings


REPO_URL = "https://api.github.com/repos/octo/notes"


def make_response(status_code=200, json_data=None, content=b""):
    response = MagicMock()
    response.status_code = status_code
    if json_data is None:
        response.json.side_effect = ValueError("No JSON")
        response.text = "plain error"
    else:
        response.json.return_value = json_data
        response.text = str(json_data)
    response.content = content
    return response


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def api(sleeps):
    settings = RepositorySettings(owner="octo", repo="notes", token="ghp_test", branch="main")
    client = GitHubAPI(settings, default_retry=RetryPolicy(max_attempts=3), sleep=sleeps.append)
    client.session = MagicMock()
    return client


def test_session_headers():
    """Test the token and API version are sent on every request"""
    settings = RepositorySettings(owner="octo", repo="notes", token="ghp_test")
    client = GitHubAPI(settings)

    assert client.session.headers["Authorization"] == "Bearer ghp_test"
    assert client.session.headers["Accept"] == "application/vnd.github+json"
    assert client.session.headers["X-GitHub-Api-Version"] == "2022-11-28"
    client.close()


# ==================== Trees ====================

def test_fetch_tree_keeps_only_blobs(api):
    api.session.request.return_value = make_response(json_data={
        "sha": "root-tree",
        "truncated": False,
        "tree": [
            {"path": "daily", "mode": "040000", "type": "tree", "sha": "t1"},
            {"path": "daily/a.md", "mode": "100644", "type": "blob", "sha": "b1", "size": 5},
            {"path": "run.sh", "mode": "100755", "type": "blob", "sha": "b2", "size": 9},
        ]
    })

    snapshot = api.fetch_tree()

    assert snapshot.sha == "root-tree"
    assert sorted(snapshot.files) == ["daily/a.md", "run.sh"]
    assert snapshot.files["run.sh"].mode == "100755"
    assert snapshot.files["daily/a.md"].size == 5

    method, url = api.session.request.call_args.args
    assert method == "GET"
    assert url == f"{REPO_URL}/git/trees/main"
    assert api.session.request.call_args.kwargs["params"] == {"recursive": "1"}


def test_create_tree_sends_base_tree(api):
    api.session.request.return_value = make_response(201, {"sha": "new-tree"})
    entries = [
        {"path": "a.md", "mode": "100644", "type": "blob", "sha": "b1"},
        {"path": "gone.md", "mode": "100644", "type": "blob", "sha": None},
    ]

    assert api.create_tree(entries, "base-tree") == "new-tree"
    assert api.session.request.call_args.kwargs["json"] == {"tree": entries, "base_tree": "base-tree"}


# ==================== Blobs ====================

def test_create_blob_payload(api):
    api.session.request.return_value = make_response(201, {"sha": "blob-sha"})

    assert api.create_blob("hello", "utf-8") == "blob-sha"

    method, url = api.session.request.call_args.args
    assert (method, url) == ("POST", f"{REPO_URL}/git/blobs")
    assert api.session.request.call_args.kwargs["json"] == {"content": "hello", "encoding": "utf-8"}


def test_read_blob_decodes_wrapped_base64(api):
    """Test base64 content with line breaks decodes to the original bytes"""
    data = "Grüße aus Köln\n".encode("utf-8") + bytes(range(200))
    encoded = base64.b64encode(data).decode("ascii")
    wrapped = "\n".join(encoded[i:i + 60] for i in range(0, len(encoded), 60))
    api.session.request.return_value = make_response(json_data={"content": wrapped, "encoding": "base64"})

    assert api.read_blob("abc") == data
    assert api.session.request.call_args.args[1] == f"{REPO_URL}/git/blobs/abc"


def test_read_blob_utf8_content(api):
    api.session.request.return_value = make_response(json_data={"content": "plain ✓", "encoding": "utf-8"})

    assert api.read_blob("abc") == "plain ✓".encode("utf-8")


# ==================== Commits and refs ====================

def test_create_commit_has_single_parent(api):
    api.session.request.return_value = make_response(201, {"sha": "commit-sha"})

    assert api.create_commit("Sync", "tree-sha", "parent-sha") == "commit-sha"
    assert api.session.request.call_args.kwargs["json"] == {
        "message": "Sync", "tree": "tree-sha", "parents": ["parent-sha"]
    }


def test_read_and_update_ref_head(api):
    api.session.request.return_value = make_response(json_data={"object": {"sha": "head-sha"}})

    assert api.read_ref_head() == "head-sha"
    assert api.session.request.call_args.args == ("GET", f"{REPO_URL}/git/refs/heads/main")

    api.update_ref_head("next-sha")
    assert api.session.request.call_args.args == ("PATCH", f"{REPO_URL}/git/refs/heads/main")
    assert api.session.request.call_args.kwargs["json"] == {"sha": "next-sha"}


def test_download_archive_returns_bytes(api):
    api.session.request.return_value = make_response(content=b"PK\x03\x04zip")

    assert api.download_archive() == b"PK\x03\x04zip"
    assert api.session.request.call_args.args[1] == f"{REPO_URL}/zipball/main"
    assert api.session.request.call_args.kwargs["timeout"] == 300


def test_create_file_sends_base64(api):
    api.session.request.return_value = make_response(201, {"content": {}})

    api.create_file("README.md", b"# Notes\n", "First sync")

    method, url = api.session.request.call_args.args
    assert (method, url) == ("PUT", f"{REPO_URL}/contents/README.md")
    assert api.session.request.call_args.kwargs["json"] == {
        "message": "First sync",
        "content": base64.b64encode(b"# Notes\n").decode("ascii"),
        "branch": "main",
    }


# ==================== Errors and retries ====================

def test_validation_error_is_not_retried(api, sleeps):
    """Test a 422 surfaces after exactly one attempt"""
    api.session.request.return_value = make_response(422, {"message": "Invalid tree"})

    with pytest.raises(GitlessSyncValidationError) as exc_info:
        api.create_tree([], "base")

    error = exc_info.value
    assert api.session.request.call_count == 1
    assert sleeps == []
    assert error.status == 422
    assert error.operation == "creating git tree"
    assert error.repository == "octo/notes"
    assert error.branch == "main"
    assert error.payload == {"message": "Invalid tree"}


def test_server_error_retried_until_attempts_exhausted(api, sleeps):
    """Test a persistent 503 is tried max_attempts times and keeps its status"""
    api.session.request.return_value = make_response(503)

    with pytest.raises(GitlessSyncServerError) as exc_info:
        api.read_ref_head()

    assert api.session.request.call_count == 3
    assert sleeps == [1.0, 2.0]
    assert exc_info.value.status == 503
    assert exc_info.value.payload == "plain error"


def test_server_error_recovers(api):
    api.session.request.side_effect = [
        make_response(502),
        make_response(json_data={"object": {"sha": "head-sha"}}),
    ]

    assert api.read_ref_head() == "head-sha"
    assert api.session.request.call_count == 2


def test_auth_error_is_not_retried(api):
    api.session.request.return_value = make_response(401, {"message": "Bad credentials"})

    with pytest.raises(GitlessSyncAuthError) as exc_info:
        api.fetch_tree()

    assert api.session.request.call_count == 1
    assert "Authentication failed" in exc_info.value.get_user_friendly_message()


def test_not_found_is_plain_api_error(api):
    api.session.request.return_value = make_response(404, {"message": "Not Found"})

    with pytest.raises(GitlessSyncAPIError) as exc_info:
        api.read_blob("missing", retry=RetryPolicy(enabled=False))

    assert type(exc_info.value) is GitlessSyncAPIError
    assert exc_info.value.status == 404
    assert api.session.request.call_count == 1


def test_connection_error_is_transient(api):
    api.session.request.side_effect = requests.exceptions.ConnectionError("refused")

    with pytest.raises(GitlessSyncServerError) as exc_info:
        api.fetch_tree()

    assert exc_info.value.status is None
    assert api.session.request.call_count == 3
    assert "network" in exc_info.value.get_user_friendly_message()


def test_per_operation_retry_policy(api):
    """Test an explicit policy overrides the client default"""
    api.session.request.return_value = make_response(500)

    with pytest.raises(GitlessSyncServerError):
        api.create_blob("x", retry=RetryPolicy(max_attempts=5, initial_delay=0.1))

    assert api.session.request.call_count == 5


def test_user_friendly_message_includes_context():
    error = GitlessSyncAPIError("Failed", status=404, operation="getting blob",
                                repository="octo/notes", branch="main")

    assert error.get_user_friendly_message() == (
        "Repository, branch, or resource not found for repository octo/notes "
        "on branch main during getting blob"
    )
    assert error.to_context() == {
        "status": 404, "operation": "getting blob", "repository": "octo/notes", "branch": "main"
    }
