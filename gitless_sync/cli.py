"""
GitlessSync Client - CLI Mode Module

Runs a single operation without user interaction, for cron jobs, git-less
servers and scripts. Output goes to stdout and to a per-run log file, the
outcome is reported through the exit code.

Author: GitlessSync Project
"""

import sys
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Optional

from gitless_sync.api import GitHubAPI
from gitless_sync.exceptions import GitlessSyncAPIError, GitlessSyncAuthError
from gitless_sync.managers import ConfigManager, MetadataStore, VaultManager
from gitless_sync.models import SyncResult, SyncState
from gitless_sync.operations import SyncOperations, create_resolver
from gitless_sync.sync_log import SyncLogHandler


# Exit codes
EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2
EXIT_AUTH_ERROR = 3
EXIT_CONFLICTS = 4
EXIT_REF_RACE = 5

RUN_LOG_PREFIX = "gitless-sync-"
BANNER = "=" * 60


def setup_cli_logging(config_manager: ConfigManager) -> Path:
    """
    Send log output to stdout and to a log file dedicated to this run.

    The file is named gitless-sync-YYYY-MM-DD-HH-MM-SS.log and lives in a
    "logs" folder beside config.json.

    Args:
        config_manager: Loaded configuration, provides log_level

    Returns:
        Path of this run's log file
    """
    level_name = str(config_manager.get("log_level", "INFO")).upper()
    runs_dir = config_manager.config_file.parent / "logs"
    runs_dir.mkdir(parents=True, exist_ok=True)
    run_log = runs_dir / f"{RUN_LOG_PREFIX}{datetime.now():%Y-%m-%d-%H-%M-%S}.log"

    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.FileHandler(run_log, encoding="utf-8"), logging.StreamHandler(sys.stdout)]
    )

    logging.getLogger(__name__).info(f"GitlessSync CLI run log: {run_log} (level {level_name})")
    return run_log


def cleanup_old_logs(config_manager: ConfigManager, current_log: Path) -> int:
    """
    Remove run logs past log_retention_days. A value of 0 keeps everything.

    Returns:
        Number of files removed
    """
    logger = logging.getLogger(__name__)
    keep_days = config_manager.get("log_retention_days", 30)
    if not keep_days or keep_days <= 0:
        return 0

    oldest_kept = (datetime.now() - timedelta(days=keep_days)).timestamp()
    removed = 0
    for old_log in current_log.parent.glob(f"{RUN_LOG_PREFIX}*.log"):
        if old_log == current_log:
            continue
        try:
            if old_log.stat().st_mtime >= oldest_kept:
                continue
            old_log.unlink()
            removed += 1
        except OSError as e:
            logger.warning(f"Could not remove expired run log {old_log.name}: {e}")

    if removed:
        logger.info(f"Removed {removed} expired run log(s)")
    return removed


def attach_sync_log(config_manager: ConfigManager, vault: VaultManager) -> Optional[SyncLogHandler]:
    """
    Attach the structured sync log to the root logger if enabled in config.

    Returns:
        The attached handler, or None when disabled
    """
    if not config_manager.get("enable_sync_log", True):
        return None
    handler = SyncLogHandler(vault.config_dir)
    handler.setLevel(logging.INFO)
    logging.getLogger().addHandler(handler)
    return handler


def build_sync_operations(config_manager: ConfigManager, vault: VaultManager,
                          conflict_strategy: Optional[str] = None) -> SyncOperations:
    """
    Wire API client, metadata store and resolver from configuration.

    Raises:
        ValueError: If repository settings or the conflict strategy are invalid
    """
    settings = config_manager.get_repository_settings()
    api_client = GitHubAPI(settings, default_retry=config_manager.get_retry_policy())

    metadata = MetadataStore(vault.config_dir)
    metadata.load()

    strategy = conflict_strategy or config_manager.get("conflict_strategy", "abort")
    return SyncOperations(
        api_client,
        vault,
        metadata,
        conflict_resolver=create_resolver(strategy),
        max_parallel_uploads=int(config_manager.get("max_parallel_uploads", 4))
    )


def make_progress_logger(logger: logging.Logger) -> Callable[[str, int, int], None]:
    """Progress callback that turns engine updates into log lines."""
    def report(message: str, current: int, total: int):
        if total <= 0:
            logger.info(message)
            return
        logger.info(f"[{100.0 * current / total:5.1f}%] {message}")
    return report


def exit_code_for(result: SyncResult, logger: logging.Logger) -> int:
    """Log the outcome of a sync cycle and pick the matching exit code."""
    if result.state == SyncState.COMPLETED:
        deleted = len(result.deleted_local) + len(result.deleted_remote)
        logger.info(BANNER)
        logger.info(f"Sync finished: {len(result.uploaded)} up, {len(result.downloaded)} down, "
                    f"{deleted} removed")
        logger.info(BANNER)
        return EXIT_SUCCESS

    if result.state == SyncState.AWAITING_RESOLUTION:
        logger.error(f"{len(result.conflicts)} file(s) changed on both sides. "
                     f"Run again with --conflicts local or --conflicts remote:")
        for conflict in result.conflicts:
            logger.error(f"  {conflict.path}")
        return EXIT_CONFLICTS

    if result.state == SyncState.ABORTED:
        logger.warning("Someone else pushed to the branch while syncing, nothing was applied. Run again.")
        return EXIT_REF_RACE

    logger.error(BANNER)
    logger.error(f"Sync ended in state '{result.state.value}'")
    logger.error(BANNER)
    if isinstance(result.error, GitlessSyncAuthError):
        return EXIT_AUTH_ERROR
    return EXIT_FAILURE


def run_cli_operation(operation: str, vault_override: Optional[str] = None,
                      conflict_strategy: Optional[str] = None,
                      config_file: Optional[Path] = None) -> int:
    """
    Execute CLI operation.

    Steps: load config.json, start the run log, open the vault, then run
    the operation. Only sync and status talk to GitHub.

    Args:
        operation: "sync", "status", "reset-metadata" or "clean-log"
        vault_override: Vault folder given with --vault
        conflict_strategy: Strategy given with --conflicts
        config_file: config.json given with --config

    Returns:
        One of the EXIT_* codes
    """
    logger: Optional[logging.Logger] = None

    try:
        config_mgr = ConfigManager(config_file)
        config_mgr.load_config()
        run_log = setup_cli_logging(config_mgr)
        logger = logging.getLogger(__name__)
        cleanup_old_logs(config_mgr, run_log)

        logger.info(BANNER)
        logger.info(f"GitlessSync {operation}")
        logger.info(BANNER)

        vault_path = Path(vault_override) if vault_override else config_mgr.get_vault_path()
        if not vault_path.is_dir():
            logger.error(f"Vault folder not found: {vault_path}")
            return EXIT_CONFIG_ERROR

        vault = VaultManager(vault_path, config_mgr.get("config_dir", ".gitless-sync"))
        sync_log = attach_sync_log(config_mgr, vault)

        if operation == "clean-log":
            (sync_log or SyncLogHandler(vault.config_dir, enabled=False)).clean()
            logger.info(f"Emptied sync log in {vault.config_dir}")
            return EXIT_SUCCESS

        if operation == "reset-metadata":
            metadata = MetadataStore(vault.config_dir)
            metadata.reset()
            metadata.save().result()
            metadata.close()
            logger.info("Sync state cleared, the next sync compares every file by content")
            return EXIT_SUCCESS

        if operation not in ("sync", "status"):
            logger.error(f"Unsupported operation: {operation}")
            return EXIT_FAILURE

        try:
            sync_ops = build_sync_operations(config_mgr, vault, conflict_strategy)
        except ValueError as e:
            logger.error(f"Configuration error: {e}")
            return EXIT_CONFIG_ERROR

        if operation == "status":
            for change_class, paths in sorted(sync_ops.preview().items()):
                if change_class == "unchanged":
                    logger.info(f"{change_class}: {len(paths)} files")
                else:
                    for path in paths:
                        logger.info(f"{change_class}: {path}")
            return EXIT_SUCCESS

        result = sync_ops.sync(make_progress_logger(logger))
        sync_ops.metadata.flush()
        return exit_code_for(result, logger)

    except GitlessSyncAPIError as e:
        if logger is None:
            print(f"GitHub API error: {e}", file=sys.stderr)
        else:
            logger.error(f"GitHub API error: {e.get_user_friendly_message()}")
        return EXIT_AUTH_ERROR if isinstance(e, GitlessSyncAuthError) else EXIT_FAILURE

    except KeyboardInterrupt:
        if logger is None:
            print("\nInterrupted", file=sys.stderr)
        else:
            logger.warning("Interrupted by user (Ctrl+C)")
        return EXIT_FAILURE

    except Exception as e:
        if logger is None:
            print(f"Unexpected error: {e}", file=sys.stderr)
        else:
            logger.exception(f"Unexpected error: {e}")
        return EXIT_FAILURE
