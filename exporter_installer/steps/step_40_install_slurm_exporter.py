from __future__ import annotations

import logging
from typing import Any, Dict

from .. import console
from ..errors import ServiceStartError
from ..installer import install_exporter
from ..pipeline import InstallCtx, add_warning

logger = logging.getLogger(__name__)


class InstallSlurmExporterStep:
    step_id = "40_install_slurm_exporter"
    fatal = False

    def run(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        spec = ctx.cfg.slurm_exporter
        console.warn(f"Installing {spec.title} from source...")

        decisions = (state.get("execution") or {}).get("decisions") or {}
        if not decisions.get("scheduler_clients_present", True):
            console.warn("Warning: Slurm commands not found. Slurm Exporter may not function properly.")
            console.warn("Make sure Slurm is installed and configured on this machine.")
            add_warning(state, self.step_id, "slurm_clients_missing")

        try:
            return install_exporter(ctx, spec, state)
        except ServiceStartError as e:
            console.error(f"Failed to start {spec.title}. {e.hint}")
            e.reported = True
            status = ctx.systemd.status(spec.unit_name)
            if status:
                console.plain(status.rstrip())
            raise
