from __future__ import annotations

import logging

from .command import run_cmd

logger = logging.getLogger(__name__)


def user_exists(name: str, *, dry_run: bool = False) -> bool:
    if dry_run:
        return False
    return run_cmd(["id", "-u", name], check=False).ok


def ensure_system_user(name: str, *, dry_run: bool = False) -> bool:
    """Create a non-login system user without a home directory.

    Returns True if the user was created, False if it already existed.
    """

    if user_exists(name, dry_run=dry_run):
        logger.info("User %s already exists", name)
        return False
    run_cmd(["useradd", "--no-create-home", "--shell", "/bin/false", name], dry_run=dry_run)
    logger.info("Created %s user", name)
    return True
