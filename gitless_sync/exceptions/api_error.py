"""
GitlessSync Client - API Error Exception

Base exception class for all remote API errors. Carries enough context
to render a diagnostic without re-deriving it at the call site.

Author: GitlessSync Project
"""

from typing import Any, Optional


# Human readable messages per HTTP status
STATUS_MESSAGES = {
    401: "Authentication failed. Please check your GitHub token",
    403: "Access forbidden. Check repository permissions or rate limits",
    404: "Repository, branch, or resource not found",
    409: "Conflict occurred. The resource may have been modified",
    422: "Invalid request. Please check your input data",
    500: "GitHub server error. Please try again later",
    502: "GitHub service temporarily unavailable. Please try again later",
    503: "GitHub service temporarily unavailable. Please try again later",
}


class GitlessSyncAPIError(Exception):
    """Base exception for API errors."""

    def __init__(self, message: str, status: Optional[int] = None,
                 operation: Optional[str] = None, repository: Optional[str] = None,
                 branch: Optional[str] = None, payload: Any = None):
        super().__init__(message)
        self.status = status
        self.operation = operation
        self.repository = repository
        self.branch = branch
        self.payload = payload

    def get_user_friendly_message(self) -> str:
        """
        Build a message suitable for showing to the user.

        Returns:
            Status message followed by repository, branch and operation context
        """
        if self.status is None:
            base = "Cannot reach GitHub. Please check your network connection"
        else:
            base = STATUS_MESSAGES.get(self.status, f"Request failed with status {self.status}")

        context = f" for repository {self.repository}" if self.repository else ""
        branch_context = f" on branch {self.branch}" if self.branch else ""
        operation_context = f" during {self.operation}" if self.operation else ""
        return f"{base}{context}{branch_context}{operation_context}"

    def to_context(self) -> dict:
        """Return the structured context used when logging this error."""
        return {
            "status": self.status,
            "operation": self.operation,
            "repository": self.repository,
            "branch": self.branch,
        }
