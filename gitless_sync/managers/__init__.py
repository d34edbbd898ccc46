"""
GitlessSync Client - Managers Package

Contains manager classes for configuration, sync metadata and the
local vault.

Author: GitlessSync Project
"""

from .config_manager import ConfigManager, DEFAULT_CONFIG
from .metadata_store import MetadataStore, METADATA_FILE_NAME
from .vault_manager import VaultManager

__all__ = [
    'ConfigManager',
    'DEFAULT_CONFIG',
    'MetadataStore',
    'METADATA_FILE_NAME',
    'VaultManager'
]
