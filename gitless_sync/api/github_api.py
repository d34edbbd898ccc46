"""
GitlessSync Client - API Communication Module

Handles all communication with the GitHub git database REST API.
Every operation reads or writes a single object (tree, blob, commit, ref)
and is all-or-nothing from the caller's point of view.

Author: GitlessSync Project
"""

import base64
import logging
import time
from typing import Optional, Dict, Any, List, Callable

import requests

from gitless_sync.exceptions import (
    GitlessSyncAPIError,
    GitlessSyncAuthError,
    GitlessSyncServerError,
    GitlessSyncValidationError
)
from gitless_sync.models import RemoteTreeEntry, RemoteTreeSnapshot, RepositorySettings
from .retry import RetryPolicy, retry_until, is_retryable

# Configure logging
logger = logging.getLogger(__name__)


class GitHubAPI:
    """
    API client for the remote object store.

    Responsibilities:
    - Read the recursive tree and branch head
    - Create blobs, trees and commits
    - Advance the branch head
    - Download the branch as a zip archive
    - Map non-2xx responses to typed errors and retry transient ones
    """

    def __init__(self, settings: RepositorySettings,
                 default_retry: Optional[RetryPolicy] = None,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Initialize API client.

        Args:
            settings: Repository identity and token
            default_retry: Policy used when an operation gets none
            sleep: Sleep function used between retries
        """
        self.settings = settings
        self.default_retry = default_retry or RetryPolicy()
        self._sleep = sleep
        # Use session for connection pooling to avoid TCP handshake overhead on each request
        self.session = requests.Session()
        self.session.headers.update(self.headers())
        logger.debug(f"Initialized API client for {settings.full_name} ({settings.branch})")

    def close(self):
        """
        Close the session and release resources.

        Should be called when done using the API client.
        """
        if hasattr(self, 'session') and self.session:
            self.session.close()
            logger.debug("API client session closed")

    def __del__(self):
        """Cleanup on deletion."""
        self.close()

    def headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self.settings.token}",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def _error_for_response(self, response: requests.Response, operation: str) -> GitlessSyncAPIError:
        """
        Build the typed error for a non-2xx response.

        Args:
            response: Failed response
            operation: Human readable operation name

        Returns:
            Exception instance matching the status code
        """
        try:
            payload = response.json()
        except ValueError:
            payload = response.text

        status = response.status_code
        if status in (401, 403):
            error_class = GitlessSyncAuthError
        elif status == 422:
            error_class = GitlessSyncValidationError
        elif status >= 500:
            error_class = GitlessSyncServerError
        else:
            error_class = GitlessSyncAPIError

        return error_class(
            f"Failed {operation}, status {status}",
            status=status,
            operation=operation,
            repository=self.settings.full_name,
            branch=self.settings.branch,
            payload=payload
        )

    def _send(self, method: str, url: str, operation: str, **kwargs) -> requests.Response:
        """
        Send a single request and raise a typed error on failure.

        Every failure is logged with its context before it is raised.
        """
        if "timeout" not in kwargs:
            kwargs["timeout"] = self.settings.timeout

        try:
            response = self.session.request(method, url, **kwargs)
        except requests.exceptions.RequestException as e:
            if isinstance(e, requests.exceptions.Timeout):
                message = f"Request timed out during {operation}"
            elif isinstance(e, requests.exceptions.ConnectionError):
                message = f"Cannot connect to {self.settings.api_url} during {operation}"
            else:
                message = f"Request error during {operation}: {e}"
            error = GitlessSyncServerError(
                message,
                operation=operation,
                repository=self.settings.full_name,
                branch=self.settings.branch
            )
            logger.error(message, extra=error.to_context())
            raise error from e

        if 200 <= response.status_code < 300:
            return response

        error = self._error_for_response(response, operation)
        logger.error(
            f"Request failed with status {response.status_code} during {operation}",
            extra=dict(error.to_context(), additional_data=error.payload)
        )
        raise error

    def _make_request(self, method: str, endpoint: str, operation: str,
                      retry: Optional[RetryPolicy] = None, **kwargs) -> requests.Response:
        """
        Make a request against a repository endpoint, retrying on transient errors.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: Path below /repos/{owner}/{repo} (e.g., "/git/blobs")
            operation: Operation name used in errors and logs
            retry: Retry policy, defaults to the client's policy
            **kwargs: Additional arguments for request

        Returns:
            The successful response

        Raises:
            GitlessSyncAPIError: Or a subclass, once retries are exhausted
        """
        policy = retry or self.default_retry
        url = f"{self.settings.repo_url}{endpoint}"
        logger.debug(f"API request: {method} {endpoint}")

        return retry_until(
            lambda: self._send(method, url, operation, **kwargs),
            is_retryable,
            max_attempts=policy.attempts,
            initial_delay=policy.initial_delay,
            backoff_factor=policy.backoff_factor,
            sleep=self._sleep
        )

    # ==================== Trees ====================

    def fetch_tree(self, retry: Optional[RetryPolicy] = None) -> RemoteTreeSnapshot:
        """
        Get the recursive tree of the branch.

        Args:
            retry: Optional retry policy

        Returns:
            Snapshot with the root tree sha and every blob keyed by path
        """
        response = self._make_request(
            "GET",
            f"/git/trees/{self.settings.branch}",
            "fetching repository content",
            retry=retry,
            params={"recursive": "1"}
        )
        data = response.json()

        if data.get("truncated"):
            logger.warning(f"Tree listing for {self.settings.full_name} was truncated by the server")

        files = {}
        for item in data.get("tree", []):
            if item.get("type") != "blob":
                continue
            files[item["path"]] = RemoteTreeEntry(
                path=item["path"],
                sha=item["sha"],
                mode=item.get("mode", "100644"),
                type=item["type"],
                size=item.get("size")
            )
        return RemoteTreeSnapshot(sha=data["sha"], files=files)

    def create_tree(self, entries: List[Dict[str, Any]], base_tree_sha: str,
                    retry: Optional[RetryPolicy] = None) -> str:
        """
        Create a new tree on top of an existing one.

        Args:
            entries: Items with path, mode, type and sha. A None sha deletes the path.
            base_tree_sha: Tree the new one is based on
            retry: Optional retry policy

        Returns:
            The SHA of the created tree
        """
        response = self._make_request(
            "POST",
            "/git/trees",
            "creating git tree",
            retry=retry,
            json={"tree": entries, "base_tree": base_tree_sha}
        )
        return response.json()["sha"]

    # ==================== Blobs ====================

    def create_blob(self, content: str, encoding: str = "base64",
                    retry: Optional[RetryPolicy] = None) -> str:
        """
        Create a new blob.

        Args:
            content: Blob content, plain text or base64
            encoding: "utf-8" or "base64"
            retry: Optional retry policy

        Returns:
            The SHA of the new blob
        """
        response = self._make_request(
            "POST",
            "/git/blobs",
            "creating blob",
            retry=retry,
            json={"content": content, "encoding": encoding}
        )
        return response.json()["sha"]

    def read_blob(self, sha: str, retry: Optional[RetryPolicy] = None) -> bytes:
        """
        Get a blob's content from its sha.

        Args:
            sha: The SHA of the blob
            retry: Optional retry policy

        Returns:
            Raw blob bytes
        """
        response = self._make_request("GET", f"/git/blobs/{sha}", "getting blob", retry=retry)
        data = response.json()

        if data.get("encoding") == "base64":
            # GitHub wraps base64 content at 60 columns, b64decode drops the newlines
            return base64.b64decode(data.get("content", ""))
        return data.get("content", "").encode("utf-8")

    # ==================== Commits and refs ====================

    def create_commit(self, message: str, tree_sha: str, parent_sha: str,
                      retry: Optional[RetryPolicy] = None) -> str:
        """
        Create a new commit.

        Args:
            message: The commit message
            tree_sha: The SHA of the tree
            parent_sha: The SHA of the parent commit
            retry: Optional retry policy

        Returns:
            The SHA of the created commit
        """
        response = self._make_request(
            "POST",
            "/git/commits",
            "creating commit",
            retry=retry,
            json={"message": message, "tree": tree_sha, "parents": [parent_sha]}
        )
        return response.json()["sha"]

    def read_ref_head(self, retry: Optional[RetryPolicy] = None) -> str:
        """
        Get the SHA of the branch head.

        Returns:
            Commit SHA the branch points to
        """
        response = self._make_request(
            "GET",
            f"/git/refs/heads/{self.settings.branch}",
            "getting branch head",
            retry=retry
        )
        return response.json()["object"]["sha"]

    def update_ref_head(self, sha: str, retry: Optional[RetryPolicy] = None):
        """
        Point the branch head to a new commit.

        Args:
            sha: The SHA of the commit to point to
            retry: Optional retry policy
        """
        self._make_request(
            "PATCH",
            f"/git/refs/heads/{self.settings.branch}",
            "updating branch head",
            retry=retry,
            json={"sha": sha}
        )

    # ==================== Archive and contents ====================

    def download_archive(self, retry: Optional[RetryPolicy] = None) -> bytes:
        """
        Download the branch as a ZIP archive.

        Returns:
            Archive bytes
        """
        response = self._make_request(
            "GET",
            f"/zipball/{self.settings.branch}",
            "downloading repository archive",
            retry=retry,
            timeout=300  # 5 minute timeout for large archives
        )
        return response.content

    def create_file(self, path: str, content: bytes, message: str,
                    retry: Optional[RetryPolicy] = None):
        """
        Create a file through the contents API.

        The git database endpoints refuse to work on a repository without
        commits, this is used to create the first one.

        Args:
            path: Path to create in the repo
            content: Raw file content
            message: Commit message
            retry: Optional retry policy
        """
        self._make_request(
            "PUT",
            f"/contents/{path}",
            "creating file",
            retry=retry,
            json={
                "message": message,
                "content": base64.b64encode(content).decode("ascii"),
                "branch": self.settings.branch,
            }
        )
