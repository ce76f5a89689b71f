"""Install one exporter: stop, acquire, provision, install, register, activate."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

from . import console
from .config import ExporterSpec
from .errors import ConfigError, ServiceStartError
from .lib.fetch import download_file, extract_tarball, git_clone, go_build
from .lib.fs import ensure_owned_dirs, install_binary
from .lib.systemd import UnitSpec
from .lib.users import ensure_system_user
from .pipeline import InstallCtx

logger = logging.getLogger(__name__)


def unit_for(spec: ExporterSpec) -> UnitSpec:
    return UnitSpec(
        description=spec.description,
        exec_start=spec.binary_path,
        args=spec.args,
        user=spec.run_as,
        group=spec.run_as,
    )


def journal_hint(spec: ExporterSpec) -> str:
    return f"Check logs with: journalctl -u {spec.unit_name}"


def acquire_release(ctx: InstallCtx, spec: ExporterSpec) -> Path:
    cfg = ctx.cfg
    work = ctx.scratch.path
    url = spec.release_archive_url(cfg.arch)
    archive = work / url.rsplit("/", 1)[-1]
    download_file(
        url,
        archive,
        timeout=cfg.download_timeout,
        retries=cfg.download_retries,
        backoff=cfg.retry_backoff,
        dry_run=ctx.dry_run,
    )
    extract_tarball(archive, work, dry_run=ctx.dry_run)
    return work / spec.release_dir_name(cfg.arch) / spec.binary_name


def acquire_source(ctx: InstallCtx, spec: ExporterSpec) -> Path:
    cfg = ctx.cfg
    if not spec.ref:
        logger.warning("%s has no pinned ref; building upstream default branch (not reproducible)", spec.name)
    checkout = ctx.scratch.path / Path(str(spec.repo_url)).stem
    git_clone(
        str(spec.repo_url),
        checkout,
        ref=spec.ref,
        timeout=cfg.clone_timeout,
        retries=cfg.clone_retries,
        backoff=cfg.retry_backoff,
        dry_run=ctx.dry_run,
    )
    console.warn(f"Building {spec.title} from source...")
    return go_build(checkout, spec.binary_name, timeout=cfg.build_timeout, dry_run=ctx.dry_run)


def acquire(ctx: InstallCtx, spec: ExporterSpec) -> Path:
    if spec.acquire == "release":
        return acquire_release(ctx, spec)
    if spec.acquire == "source":
        return acquire_source(ctx, spec)
    raise ConfigError(f"{spec.name}: unknown acquisition method {spec.acquire!r}")


def install_exporter(ctx: InstallCtx, spec: ExporterSpec, state: Dict[str, Any]) -> Dict[str, Any]:
    """Install and start one exporter. Raises ServiceStartError if it is not active afterwards."""

    systemd = ctx.systemd
    unit = spec.unit_name

    if systemd.is_active(unit):
        console.warn(f"{spec.title} is already running. Stopping service...")
        systemd.stop(unit)

    built = acquire(ctx, spec)

    created = ensure_system_user(spec.run_as, dry_run=ctx.dry_run)
    if created:
        console.plain(f"Created {spec.run_as} user")

    binary = install_binary(built, spec.install_dir, owner=spec.run_as, dry_run=ctx.dry_run)
    if spec.data_root:
        ensure_owned_dirs(spec.data_root, spec.data_dirs, owner=spec.run_as, dry_run=ctx.dry_run)

    unit_path = systemd.write_unit(unit, unit_for(spec))

    systemd.daemon_reload()
    systemd.enable(unit)
    systemd.start(unit, check=False)

    decisions = state.setdefault("execution", {}).setdefault("decisions", {})
    decisions[spec.name] = {
        "binary": str(binary),
        "unit_file": str(unit_path),
        "user": spec.run_as,
        "user_created": created,
        "version": spec.version_label,
    }

    if not ctx.dry_run and not systemd.is_active(unit):
        raise ServiceStartError(unit, journal_hint(spec))

    console.success(f"{spec.title} installed and running successfully")
    return state
