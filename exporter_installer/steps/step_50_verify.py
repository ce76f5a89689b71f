from __future__ import annotations

import logging
from typing import Any, Dict

from .. import console
from ..installer import journal_hint
from ..lib.probe import probe_metrics
from ..pipeline import InstallCtx
from ..report import ExporterOutcome

logger = logging.getLogger(__name__)


class VerifyStep:
    step_id = "50_verify"
    fatal = False

    def run(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = ctx.cfg
        if not cfg.verify or ctx.dry_run:
            logger.info("Skipping metrics verification (verify=%s dry_run=%s)", cfg.verify, ctx.dry_run)
            return state

        console.warn("Verifying installations...")
        outcomes = state.setdefault("execution", {}).setdefault("outcomes", {})
        for spec in cfg.exporters:
            lines = probe_metrics(
                spec.metrics_url,
                timeout=cfg.probe_timeout,
                retries=cfg.probe_retries,
                backoff=cfg.retry_backoff,
            )
            reachable = lines > 0
            outcomes[spec.name] = ExporterOutcome(
                name=spec.name,
                state=ctx.systemd.active_state(spec.unit_name),
                reachable=reachable,
                metric_lines=lines,
            )
            if reachable:
                console.success(f"{spec.title} is serving metrics at {spec.metrics_url}")
            elif spec.fatal:
                console.warn(f"{spec.title} is not serving metrics properly")
            else:
                console.warn(
                    f"{spec.title} might not be serving metrics. Check if Slurm is properly configured."
                )
                console.warn(journal_hint(spec))
        return state
