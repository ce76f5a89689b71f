from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Protocol, Sequence

from . import console
from .config import InstallerConfig
from .errors import FatalStepError
from .lib.systemd import Systemd
from .lib.workdir import ScratchDir

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstallCtx:
    """Everything a step needs that is not run state."""

    cfg: InstallerConfig
    systemd: Systemd
    scratch: ScratchDir

    @property
    def dry_run(self) -> bool:
        return self.cfg.dry_run


class Step(Protocol):
    """A single named step. `fatal` steps stop the run when they fail."""

    step_id: str
    fatal: bool

    def run(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        ...


@dataclass(frozen=True)
class PipelineResult:
    state: Dict[str, Any]
    ran_steps: List[str]
    failed_steps: List[str]

    @property
    def ok(self) -> bool:
        return not self.failed_steps


def new_state() -> Dict[str, Any]:
    return {
        "execution": {
            "current_step": None,
            "completed_steps": [],
            "failed_steps": [],
            "decisions": {},
            "warnings": [],
            "errors": [],
            "outcomes": {},
        }
    }


def add_warning(state: Dict[str, Any], step_id: str, message: str) -> None:
    state.setdefault("execution", {}).setdefault("warnings", []).append({"step": step_id, "warning": message})


def run_pipeline(
    *,
    ctx: InstallCtx,
    state: Dict[str, Any],
    steps: Sequence[Step],
) -> PipelineResult:
    """Run steps in order; halt on the first fatal failure, continue past best-effort ones."""

    ran: List[str] = []
    failed: List[str] = []
    exe = state.setdefault("execution", {})

    for step in steps:
        exe["current_step"] = step.step_id
        logger.info("Running step %s", step.step_id)
        try:
            state = step.run(ctx, state)
        except Exception as e:
            failed.append(step.step_id)
            exe.setdefault("failed_steps", []).append(step.step_id)
            exe.setdefault("errors", []).append({"step": step.step_id, "error": str(e)})
            if step.fatal:
                logger.exception("Fatal step %s failed", step.step_id)
                exe["current_step"] = None
                raise FatalStepError(step.step_id, e) from e
            logger.warning("Best-effort step %s failed: %s", step.step_id, e, exc_info=True)
            if not getattr(e, "reported", False):
                console.warn(str(e))
            add_warning(state, step.step_id, str(e))
        else:
            exe.setdefault("completed_steps", []).append(step.step_id)
        ran.append(step.step_id)

    exe["current_step"] = None
    return PipelineResult(state=state, ran_steps=ran, failed_steps=failed)
