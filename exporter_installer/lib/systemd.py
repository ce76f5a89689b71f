from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence, Tuple

from .command import CmdResult, run_cmd

logger = logging.getLogger(__name__)

DEFAULT_UNIT_DIR = "/etc/systemd/system"


@dataclass(frozen=True)
class UnitSpec:
    """Declarative systemd service unit."""

    description: str
    exec_start: str
    args: Tuple[str, ...] = field(default_factory=tuple)
    user: str = "root"
    group: str = "root"
    after: str = "network.target"
    service_type: str = "simple"
    wanted_by: str = "multi-user.target"

    def render(self) -> str:
        cmdline = " ".join([self.exec_start, *self.args])
        return "\n".join(
            [
                "[Unit]",
                f"Description={self.description}",
                f"After={self.after}",
                "",
                "[Service]",
                f"Type={self.service_type}",
                f"User={self.user}",
                f"Group={self.group}",
                f"ExecStart={cmdline}",
                "",
                "[Install]",
                f"WantedBy={self.wanted_by}",
                "",
            ]
        )


class Systemd:
    """Thin wrapper over `systemctl` for a single host."""

    def __init__(self, *, unit_dir: str = DEFAULT_UNIT_DIR, dry_run: bool = False) -> None:
        self.unit_dir = unit_dir
        self.dry_run = dry_run

    def _ctl(self, argv: Sequence[str], *, check: bool = True) -> CmdResult:
        return run_cmd(["systemctl", *argv], check=check, dry_run=self.dry_run)

    def _query(self, argv: Sequence[str]) -> CmdResult:
        # Read-only; runs for real under dry run too.
        return run_cmd(["systemctl", *argv], check=False, dry_run=False)

    def unit_path(self, unit: str) -> Path:
        return Path(self.unit_dir) / unit

    def write_unit(self, unit: str, spec: UnitSpec) -> Path:
        p = self.unit_path(unit)
        contents = spec.render()
        if self.dry_run:
            logger.info("Would write %s", str(p))
            return p
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(contents, encoding="utf-8")
        logger.info("Wrote unit file %s", str(p))
        return p

    def is_active(self, unit: str) -> bool:
        return self._query(["is-active", "--quiet", unit]).ok

    def active_state(self, unit: str) -> str:
        """Return the `systemctl is-active` word; 'inactive' when nothing is reported."""
        r = self._query(["is-active", unit])
        return (r.stdout or "").strip() or "inactive"

    def stop(self, unit: str) -> None:
        self._ctl(["stop", unit])

    def daemon_reload(self) -> None:
        self._ctl(["daemon-reload"])

    def enable(self, unit: str) -> None:
        self._ctl(["enable", unit])

    def start(self, unit: str, *, check: bool = True) -> CmdResult:
        return self._ctl(["start", unit], check=check)

    def status(self, unit: str) -> str:
        r = self._ctl(["status", "--no-pager", unit], check=False)
        return r.stdout
