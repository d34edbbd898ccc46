"""
GitlessSync Client - Main Entry Point

Parses command-line arguments and runs the requested operation.

Author: GitlessSync Project
"""

import sys
import argparse
from pathlib import Path

from gitless_sync import VERSION


def main():
    """
    Main entry point for the GitlessSync client.

    Operations:
    - sync: run one sync cycle
    - status: show how every file differs from the remote
    - reset-metadata: forget all sync state
    - clean-log: truncate the sync log
    """
    parser = argparse.ArgumentParser(
        description='GitlessSync - Folder to GitHub synchronization without git',
    )

    parser.add_argument('operation', choices=['sync', 'status', 'reset-metadata', 'clean-log'],
                        help='Operation to perform')

    # Optional overrides
    parser.add_argument('--vault', help='Vault folder (overrides config vault_path)')
    parser.add_argument('--conflicts', choices=['local', 'remote', 'abort'],
                        help='How to resolve files changed on both sides (overrides config)')
    parser.add_argument('--config', type=Path, help='Path to config.json')
    parser.add_argument('--version', action='version', version=f'%(prog)s {VERSION}')

    args = parser.parse_args()

    from gitless_sync.cli import run_cli_operation
    return run_cli_operation(args.operation, args.vault, args.conflicts, args.config)


if __name__ == '__main__':
    sys.exit(main())
