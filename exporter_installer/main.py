from __future__ import annotations

import argparse
import logging
from typing import Any, Dict, Optional

from . import console
from .config import InstallerConfig, load_config
from .errors import ConfigError, FatalStepError
from .lib.systemd import Systemd
from .lib.workdir import ScratchDir
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .pipeline import InstallCtx, new_state, run_pipeline
from .steps import (
    InstallDependenciesStep,
    InstallNodeExporterStep,
    InstallSlurmExporterStep,
    PreflightStep,
    ReportStep,
    VerifyStep,
)

logger = logging.getLogger(__name__)


def build_steps():
    return [
        PreflightStep(),
        InstallDependenciesStep(),
        InstallNodeExporterStep(),
        InstallSlurmExporterStep(),
        VerifyStep(),
        ReportStep(),
    ]


def run(
    cfg: InstallerConfig,
    *,
    systemd: Optional[Systemd] = None,
    scratch: Optional[ScratchDir] = None,
    steps=None,
) -> Dict[str, Any]:
    """Run the installer pipeline. Raises FatalStepError on a fatal step failure."""

    state = new_state()
    systemd = systemd or Systemd(unit_dir=cfg.unit_dir, dry_run=cfg.dry_run)

    console.success("Starting installation of Prometheus exporters...")
    with scratch or ScratchDir() as work:
        ctx = InstallCtx(cfg=cfg, systemd=systemd, scratch=work)
        result = run_pipeline(ctx=ctx, state=state, steps=steps if steps is not None else build_steps())

    if result.failed_steps:
        logger.warning("Completed with failed best-effort steps: %s", ", ".join(result.failed_steps))
    return result.state


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(
        prog="exporter-installer",
        description="Install Prometheus node_exporter and the Slurm exporter as systemd services.",
    )
    p.add_argument("--config", default=None, help="YAML file overriding built-in defaults")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to installer log")
    p.add_argument("--node-exporter-version", default=None, help="Pinned node_exporter release (e.g. 1.7.0)")
    p.add_argument("--slurm-exporter-ref", default=None, help="Git branch or tag to build the Slurm exporter from")
    p.add_argument("--skip-verify", action="store_true", help="Do not probe the metrics endpoints")
    p.add_argument("--dry-run", action="store_true", help="Log commands instead of running them")
    p.add_argument("-v", "--verbose", action="store_true", help="Echo the log to the console")

    args = p.parse_args(argv)

    configure_logging(log_path=args.log, level=logging.DEBUG if args.verbose else logging.INFO, also_console=args.verbose)

    try:
        cfg = load_config(
            args.config,
            dry_run=True if args.dry_run else None,
            verify=False if args.skip_verify else None,
            **{
                "node_exporter.version": args.node_exporter_version,
                "slurm_exporter.ref": args.slurm_exporter_ref,
            },
        )
    except (ConfigError, FileNotFoundError) as e:
        console.error(f"Invalid configuration: {e}")
        return 2

    try:
        run(cfg)
    except FatalStepError as e:
        console.error(str(e.cause))
        return 1
    return 0
