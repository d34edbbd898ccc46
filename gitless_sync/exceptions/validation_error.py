"""
GitlessSync Client - Validation Error Exception

Exception raised for 422 responses. A structurally invalid request
cannot succeed by repetition, so it is never retried.

Author: GitlessSync Project
"""

from .api_error import GitlessSyncAPIError


class GitlessSyncValidationError(GitlessSyncAPIError):
    """Exception for requests rejected as invalid."""
    pass
