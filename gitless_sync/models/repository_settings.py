"""
GitlessSync Client - Repository Settings Model

Explicit configuration value injected into the remote object client.

Author: GitlessSync Project
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class RepositorySettings:
    """Identity and credentials for the remote repository"""
    owner: str
    repo: str
    token: str
    branch: str = "main"
    api_url: str = "https://api.github.com"
    timeout: int = 30

    @property
    def full_name(self) -> str:
        """Repository identity as owner/repo."""
        return f"{self.owner}/{self.repo}"

    @property
    def repo_url(self) -> str:
        """Base URL for repository endpoints."""
        return f"{self.api_url.rstrip('/')}/repos/{self.owner}/{self.repo}"
