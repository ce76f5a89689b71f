from __future__ import annotations

import logging
from typing import Any, Dict

from .. import console
from ..lib.pkg import get_package_manager
from ..pipeline import InstallCtx

logger = logging.getLogger(__name__)


class InstallDependenciesStep:
    step_id = "20_install_dependencies"
    fatal = True

    def run(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        decisions = (state.get("execution") or {}).get("decisions") or {}
        name = decisions.get("package_manager")
        if not name:
            raise RuntimeError("execution.decisions.package_manager missing")

        console.warn("Installing dependencies...")
        pm = get_package_manager(name, dry_run=ctx.dry_run, timeout=ctx.cfg.package_timeout)
        pm.install(ctx.cfg.packages)
        logger.info("Installed packages via %s: %s", name, " ".join(ctx.cfg.packages))
        return state
