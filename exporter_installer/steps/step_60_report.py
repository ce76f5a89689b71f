from __future__ import annotations

from typing import Any, Dict

from ..pipeline import InstallCtx
from ..report import print_summary


class ReportStep:
    step_id = "60_report"
    fatal = False

    def run(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        specs = ctx.cfg.exporters
        # Queried fresh: the service may have changed since verification.
        states = {spec.name: ctx.systemd.active_state(spec.unit_name) for spec in specs}
        decisions = (state.get("execution") or {}).get("decisions") or {}
        print_summary(
            specs,
            states,
            scheduler_clients_present=bool(decisions.get("scheduler_clients_present", True)),
        )
        state.setdefault("execution", {})["summary_states"] = states
        return state
