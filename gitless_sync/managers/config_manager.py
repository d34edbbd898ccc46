"""
GitlessSync Client - Configuration Manager

Reads and writes config.json and keeps the GitHub token in the OS
credential store, never in the file.

Author: GitlessSync Project
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional, Dict, Any

from gitless_sync.api import RetryPolicy
from gitless_sync.models import RepositorySettings

# Configure logging
logger = logging.getLogger(__name__)


KEYRING_SERVICE = "GitlessSync"

# Values used for every key config.json does not set
DEFAULT_CONFIG = {
    "github_owner": None,
    "github_repo": None,
    "github_branch": "main",
    "api_url": "https://api.github.com",
    "vault_path": None,  # None means the current directory
    "config_dir": ".gitless-sync",  # Inside the vault, never synced
    "log_level": "INFO",
    "log_retention_days": 30,
    "enable_sync_log": True,
    "retry_enabled": True,
    "max_retry_attempts": 5,
    "retry_initial_delay": 1.0,
    "retry_backoff_factor": 2.0,
    "max_parallel_uploads": 4,
    "request_timeout": 30,
    "conflict_strategy": "abort"  # "local", "remote" or "abort"
}


def default_config_path() -> Path:
    """config.json beside the frozen executable, or in the working directory."""
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent / "config.json"
    return Path.cwd() / "config.json"


class ConfigManager:
    """
    Client settings plus the GitHub token.

    Responsibilities:
    - Keep config.json complete, adding defaults for missing keys
    - Put the token into the OS credential store and read it back via keyring
    - Build the RepositorySettings and RetryPolicy injected into the API client
    """

    def __init__(self, config_file: Optional[Path] = None):
        """
        Initialize configuration manager.

        Args:
            config_file: config.json to use, see default_config_path() when None
        """
        self.config_file = Path(config_file) if config_file else default_config_path()
        self.config: Dict[str, Any] = {}

    def load_config(self) -> Dict[str, Any]:
        """
        Read config.json, writing a default one first if there is none.

        Returns:
            Stored values layered over DEFAULT_CONFIG
        """
        if not self.config_file.exists():
            logger.info(f"No config at {self.config_file}, writing defaults")
            self.config = dict(DEFAULT_CONFIG)
            self.save_config()
            return self.config

        with open(self.config_file, 'r', encoding="utf-8") as f:
            stored = json.load(f)

        self.config = dict(DEFAULT_CONFIG)
        self.config.update(stored)
        missing = sorted(set(DEFAULT_CONFIG) - set(stored))
        if missing:
            logger.debug(f"Using defaults for {', '.join(missing)}")
        logger.info(f"Loaded configuration from {self.config_file}")
        return self.config

    def save_config(self):
        with open(self.config_file, 'w', encoding="utf-8") as f:
            json.dump(self.config, f, indent=2)
        logger.debug(f"Wrote configuration to {self.config_file}")

    def get(self, key: str, default=None) -> Any:
        return self.config.get(key, default)

    def set(self, key: str, value: Any):
        """Change one value and write config.json right away."""
        self.config[key] = value
        self.save_config()

    def get_vault_path(self) -> Path:
        vault_path = self.get("vault_path")
        return Path(vault_path).expanduser() if vault_path else Path.cwd()

    def store_token(self, token: str):
        """
        Save the GitHub token in the OS credential store under the repository owner.

        Args:
            token: Personal access token with contents read/write permission

        Raises:
            ValueError: If github_owner is not configured
        """
        import keyring

        owner = self.get("github_owner")
        if not owner:
            raise ValueError("github_owner must be configured before storing a token")

        keyring.set_password(KEYRING_SERVICE, owner, token)
        logger.info(f"Token saved to credential store for {owner}")

    def get_token(self) -> Optional[str]:
        """
        Look up the GitHub token for the configured owner.

        Returns:
            Token, or None if there is no owner or nothing stored
        """
        import keyring

        owner = self.get("github_owner")
        if not owner:
            logger.warning("github_owner is not set, cannot look up a token")
            return None

        token = keyring.get_password(KEYRING_SERVICE, owner)
        if not token:
            logger.warning(f"Credential store has no token for {owner}")
        return token or None

    def get_retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            enabled=bool(self.get("retry_enabled", True)),
            max_attempts=int(self.get("max_retry_attempts", 5)),
            initial_delay=float(self.get("retry_initial_delay", 1.0)),
            backoff_factor=float(self.get("retry_backoff_factor", 2.0))
        )

    def get_repository_settings(self) -> RepositorySettings:
        """
        Build the repository settings injected into the API client.

        Returns:
            RepositorySettings for the configured repository

        Raises:
            ValueError: If owner, repository or token is missing
        """
        owner = self.get("github_owner")
        repo = self.get("github_repo")
        if not owner or not repo:
            raise ValueError("github_owner and github_repo must be set in config.json")

        token = self.get_token()
        if not token:
            raise ValueError(f"No GitHub token stored for {owner}")

        return RepositorySettings(
            owner=owner,
            repo=repo,
            token=token,
            branch=self.get("github_branch") or "main",
            api_url=self.get("api_url") or "https://api.github.com",
            timeout=int(self.get("request_timeout", 30))
        )
