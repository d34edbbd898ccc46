"""
GitlessSync Client - Authentication Error Exception

Exception raised for 401/403 responses. Never retried.

Author: GitlessSync Project
"""

from .api_error import GitlessSyncAPIError


class GitlessSyncAuthError(GitlessSyncAPIError):
    """Exception for authentication and permission errors."""
    pass
