"""
GitlessSync Client - API Package

This package contains the remote object client, the retry helper and
blob content encoding.
"""

from .github_api import GitHubAPI
from .retry import RetryPolicy, retry_until, is_retryable
from .blob_encoding import TEXT_EXTENSIONS, has_text_extension, encode_blob_content, git_blob_sha

__all__ = [
    'GitHubAPI',
    'RetryPolicy',
    'retry_until',
    'is_retryable',
    'TEXT_EXTENSIONS',
    'has_text_extension',
    'encode_blob_content',
    'git_blob_sha'
]
