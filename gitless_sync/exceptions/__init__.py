"""
GitlessSync Client - Exceptions Package

Contains all exception classes raised by the remote object client.

Author: GitlessSync Project
"""

from .api_error import GitlessSyncAPIError
from .auth_error import GitlessSyncAuthError
from .server_error import GitlessSyncServerError
from .validation_error import GitlessSyncValidationError

__all__ = [
    'GitlessSyncAPIError',
    'GitlessSyncAuthError',
    'GitlessSyncServerError',
    'GitlessSyncValidationError'
]
