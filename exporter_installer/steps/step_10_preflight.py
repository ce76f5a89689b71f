from __future__ import annotations

import logging
import os
from typing import Any, Dict

from ..errors import PreflightError, UnsupportedPackageManagerError
from ..lib.command import have_command
from ..lib.pkg import BACKENDS, detect_package_manager
from ..pipeline import InstallCtx

logger = logging.getLogger(__name__)


def is_root() -> bool:
    return os.geteuid() == 0


class PreflightStep:
    step_id = "10_preflight"
    fatal = True

    def run(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        if not is_root():
            if not ctx.dry_run:
                raise PreflightError("Please run this script as root or with sudo privileges")
            logger.warning("Not running as root; continuing because this is a dry run")

        manager = detect_package_manager()
        if manager is None:
            raise UnsupportedPackageManagerError(
                "Unsupported package manager (looked for %s). "
                "Please install %s manually." % (", ".join(BACKENDS), ", ".join(ctx.cfg.packages))
            )

        required = ctx.cfg.slurm_exporter.requires_commands
        clients_present = all(have_command(c) for c in required)

        decisions = state.setdefault("execution", {}).setdefault("decisions", {})
        decisions["package_manager"] = manager
        decisions["scheduler_clients_present"] = clients_present
        logger.info("Preflight ok (package_manager=%s scheduler_clients=%s)", manager, clients_present)
        return state
