from __future__ import annotations

from typing import Any, Dict

from .. import console
from ..installer import install_exporter
from ..pipeline import InstallCtx


class InstallNodeExporterStep:
    step_id = "30_install_node_exporter"
    fatal = True

    def run(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        spec = ctx.cfg.node_exporter
        console.warn(f"Installing {spec.title} v{spec.version}...")
        return install_exporter(ctx, spec, state)
