"""
GitlessSync Client - Server Error Exception

Exception raised for 5xx responses and network failures. These are
transient and retried with backoff.

Author: GitlessSync Project
"""

from .api_error import GitlessSyncAPIError


class GitlessSyncServerError(GitlessSyncAPIError):
    """Exception for transient server and connection errors."""
    pass
