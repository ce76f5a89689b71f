from __future__ import annotations

import dataclasses
import logging
import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

NODE_EXPORTER_VERSION = "1.7.0"
NODE_EXPORTER_RELEASE_URL = (
    "https://github.com/prometheus/node_exporter/releases/download/"
    "v{version}/node_exporter-{version}.linux-{arch}.tar.gz"
)
SLURM_EXPORTER_REPO = "https://github.com/vpenso/prometheus-slurm-exporter.git"

DEFAULT_PACKAGES: Tuple[str, ...] = ("wget", "tar", "curl", "golang", "git")
DEFAULT_INSTALL_DIR = "/usr/local/bin"
DEFAULT_UNIT_DIR = "/etc/systemd/system"
TEXTFILE_COLLECTOR_DIR = "/var/lib/node_exporter/textfile_collector"


def normalize_arch(machine: str) -> str:
    """Map `uname -m` to the Go release-archive architecture suffix."""
    m = machine.lower()
    return {
        "x86_64": "amd64",
        "amd64": "amd64",
        "aarch64": "arm64",
        "arm64": "arm64",
        "armv7l": "armv7",
        "armv6l": "armv6",
        "i686": "386",
        "i386": "386",
        "ppc64le": "ppc64le",
        "s390x": "s390x",
    }.get(m, m)


@dataclass(frozen=True)
class ExporterSpec:
    """One exporter to install: how to get it, where it goes, how it runs."""

    name: str
    title: str
    binary_name: str
    port: int
    acquire: str  # "release" | "source"
    description: str
    version: Optional[str] = None
    release_url: Optional[str] = None
    repo_url: Optional[str] = None
    ref: Optional[str] = None
    args: Tuple[str, ...] = ()
    user: Optional[str] = None
    install_dir: str = DEFAULT_INSTALL_DIR
    data_root: Optional[str] = None
    data_dirs: Tuple[str, ...] = ()
    fatal: bool = True
    requires_commands: Tuple[str, ...] = ()

    @property
    def run_as(self) -> str:
        return self.user or self.name

    @property
    def unit_name(self) -> str:
        return f"{self.name}.service"

    @property
    def binary_path(self) -> str:
        return str(Path(self.install_dir) / self.binary_name)

    @property
    def metrics_url(self) -> str:
        return f"http://localhost:{self.port}/metrics"

    @property
    def version_label(self) -> str:
        if self.acquire == "source":
            return f"Built from source ({self.ref})" if self.ref else "Built from source"
        return str(self.version)

    def release_archive_url(self, arch: str) -> str:
        if not self.release_url or not self.version:
            raise ConfigError(f"{self.name}: release_url and version are required for release installs")
        return self.release_url.format(version=self.version, arch=arch)

    def release_dir_name(self, arch: str) -> str:
        return f"{self.binary_name}-{self.version}.linux-{arch}"


def default_node_exporter() -> ExporterSpec:
    return ExporterSpec(
        name="node_exporter",
        title="Node Exporter",
        binary_name="node_exporter",
        port=9100,
        acquire="release",
        description="Prometheus Node Exporter",
        version=NODE_EXPORTER_VERSION,
        release_url=NODE_EXPORTER_RELEASE_URL,
        args=(
            r"--collector.filesystem.mount-points-exclude=^/(dev|proc|sys|var/lib/docker/.+)($|/)",
            f'--collector.textfile.directory="{TEXTFILE_COLLECTOR_DIR}"',
            "--collector.cpu",
            "--collector.meminfo",
            "--collector.thermal_zone",
        ),
        data_root="/var/lib/node_exporter",
        data_dirs=(TEXTFILE_COLLECTOR_DIR,),
        fatal=True,
    )


def default_slurm_exporter() -> ExporterSpec:
    return ExporterSpec(
        name="slurm_exporter",
        title="Slurm Exporter",
        binary_name="prometheus-slurm-exporter",
        port=8080,
        acquire="source",
        description="Prometheus Slurm Exporter",
        repo_url=SLURM_EXPORTER_REPO,
        ref=None,
        fatal=False,
        requires_commands=("sinfo", "squeue"),
    )


@dataclass(frozen=True)
class InstallerConfig:
    node_exporter: ExporterSpec = field(default_factory=default_node_exporter)
    slurm_exporter: ExporterSpec = field(default_factory=default_slurm_exporter)
    packages: Tuple[str, ...] = DEFAULT_PACKAGES
    unit_dir: str = DEFAULT_UNIT_DIR
    arch: str = field(default_factory=lambda: normalize_arch(platform.machine()))
    download_timeout: float = 60.0
    download_retries: int = 3
    clone_timeout: float = 300.0
    clone_retries: int = 3
    build_timeout: float = 900.0
    package_timeout: Optional[float] = None
    probe_timeout: float = 5.0
    probe_retries: int = 3
    retry_backoff: float = 2.0
    verify: bool = True
    dry_run: bool = False

    @property
    def exporters(self) -> Tuple[ExporterSpec, ExporterSpec]:
        return (self.node_exporter, self.slurm_exporter)

    def validate(self) -> "InstallerConfig":
        for spec in self.exporters:
            if spec.acquire not in {"release", "source"}:
                raise ConfigError(f"{spec.name}: acquire must be 'release' or 'source', got {spec.acquire!r}")
            if spec.acquire == "release" and not spec.version:
                raise ConfigError(f"{spec.name}: a pinned version is required for release installs")
            if spec.acquire == "source" and not spec.repo_url:
                raise ConfigError(f"{spec.name}: repo_url is required for source installs")
            if not 0 < spec.port < 65536:
                raise ConfigError(f"{spec.name}: port out of range: {spec.port}")

        a, b = self.exporters
        for label, left, right in [
            ("name", a.name, b.name),
            ("user", a.run_as, b.run_as),
            ("binary path", a.binary_path, b.binary_path),
            ("port", a.port, b.port),
        ]:
            if left == right:
                raise ConfigError(f"Exporters must not share a {label}: {left}")
        for label, value in [("download_retries", self.download_retries), ("clone_retries", self.clone_retries), ("probe_retries", self.probe_retries)]:
            if value < 1:
                raise ConfigError(f"{label} must be >= 1")
        return self


_EXPORTER_KEYS = {"node_exporter", "slurm_exporter"}
_TUPLE_FIELDS = {"args", "data_dirs", "requires_commands", "packages"}


def _coerce(key: str, value: Any) -> Any:
    if key in _TUPLE_FIELDS:
        if not isinstance(value, (list, tuple)):
            raise ConfigError(f"{key} must be a list")
        return tuple(str(v) for v in value)
    return value


def _apply(obj: Any, overrides: Dict[str, Any], *, where: str) -> Any:
    known = {f.name for f in dataclasses.fields(obj)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ConfigError(f"Unknown keys in {where}: {', '.join(unknown)}")
    try:
        return dataclasses.replace(obj, **{k: _coerce(k, v) for k, v in overrides.items()})
    except TypeError as e:
        raise ConfigError(f"Invalid {where}: {e}") from e


def config_from_mapping(raw: Dict[str, Any], base: Optional[InstallerConfig] = None) -> InstallerConfig:
    """Overlay a mapping (e.g. parsed YAML) onto the built-in defaults."""

    cfg = base or InstallerConfig()
    raw = dict(raw)
    exporters = raw.pop("exporters", None) or {}
    if not isinstance(exporters, dict):
        raise ConfigError("exporters must be a mapping")
    unknown = sorted(set(exporters) - _EXPORTER_KEYS)
    if unknown:
        raise ConfigError(f"Unknown exporters: {', '.join(unknown)}")

    cfg = _apply(cfg, raw, where="config")
    for key, overrides in exporters.items():
        if not isinstance(overrides, dict):
            raise ConfigError(f"exporters.{key} must be a mapping")
        spec = _apply(getattr(cfg, key), overrides, where=f"exporters.{key}")
        cfg = dataclasses.replace(cfg, **{key: spec})
    return cfg


def load_config(path: Optional[str] = None, **overrides: Any) -> InstallerConfig:
    """Load defaults, overlay an optional YAML file, then CLI overrides."""

    cfg = InstallerConfig()
    if path:
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(path)
        if p.suffix.lower() not in {".yaml", ".yml"}:
            raise ConfigError("installer config must be YAML")

        try:
            raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
        except (yaml.YAMLError, OSError) as e:
            raise ConfigError(f"Cannot read {path}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigError(f"{path} must contain a mapping/object")
        cfg = config_from_mapping(raw, cfg)
        logger.info("Loaded installer config from %s", path)

    exporter_overrides: Dict[str, Dict[str, Any]] = {}
    for key in list(overrides):
        if "." in key:
            exporter, attr = key.split(".", 1)
            value = overrides.pop(key)
            if value is not None:
                exporter_overrides.setdefault(exporter, {})[attr] = value
    top = {k: v for k, v in overrides.items() if v is not None}
    if top or exporter_overrides:
        cfg = config_from_mapping({**top, "exporters": exporter_overrides}, cfg)

    return cfg.validate()
