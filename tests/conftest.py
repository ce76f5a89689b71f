"""Shared fixtures: a fake host (users, packages, systemd) rooted in tmp_path."""

import dataclasses
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from exporter_installer import config
from exporter_installer.lib.command import CmdResult
from exporter_installer.lib.systemd import Systemd


class FakeSystemd(Systemd):
    """In-memory systemctl. Units in `failing` never become active."""

    def __init__(self, *, unit_dir, dry_run=False, failing=(), active=()):
        super().__init__(unit_dir=unit_dir, dry_run=dry_run)
        self.failing = set(failing)
        self.active = set(active)
        self.calls = []

    def is_active(self, unit):
        return unit in self.active

    def active_state(self, unit):
        if unit in self.active:
            return "active"
        return "failed" if unit in self.failing else "inactive"

    def stop(self, unit):
        self.calls.append(("stop", unit))
        self.active.discard(unit)

    def daemon_reload(self):
        self.calls.append(("daemon-reload",))

    def enable(self, unit):
        self.calls.append(("enable", unit))

    def start(self, unit, *, check=True):
        self.calls.append(("start", unit))
        ok = unit not in self.failing
        if ok:
            self.active.add(unit)
        return CmdResult(argv=["systemctl", "start", unit], returncode=0 if ok else 1, stdout="", stderr="")

    def status(self, unit):
        return f"{unit} - failed"


class FakeHost:
    """Records the side effects the installer would have on a real host."""

    def __init__(self, root: Path):
        self.root = root
        self.users = set()
        self.useradd_calls = []
        self.chown_calls = []
        self.package_manager = "apt-get"
        self.slurm_present = True
        self.is_root = True
        self.pm = MagicMock()
        self.acquired = []
        self.scratch_paths = []
        self.probe_lines = {}

    def users_run_cmd(self, argv, check=True, dry_run=False, **kwargs):
        if argv[:2] == ["id", "-u"]:
            rc = 0 if argv[2] in self.users else 1
            return CmdResult(argv=list(argv), returncode=rc, stdout="", stderr="")
        if argv[0] == "useradd":
            self.useradd_calls.append(argv[-1])
            self.users.add(argv[-1])
        return CmdResult(argv=list(argv), returncode=0, stdout="", stderr="")

    def fs_run_cmd(self, argv, check=True, dry_run=False, **kwargs):
        self.chown_calls.append(list(argv))
        return CmdResult(argv=list(argv), returncode=0, stdout="", stderr="")

    def acquire(self, ctx, spec):
        self.acquired.append(spec.name)
        self.scratch_paths.append(ctx.scratch.path)
        binary = ctx.scratch.path / "build" / spec.binary_name
        binary.parent.mkdir(parents=True, exist_ok=True)
        binary.write_bytes(b"\x7fELF fake " + spec.name.encode())
        return binary

    def probe(self, url, **kwargs):
        return self.probe_lines.get(url, 0)


@pytest.fixture
def test_config(tmp_path) -> config.InstallerConfig:
    """Default config with every host path moved under tmp_path."""
    bin_dir = str(tmp_path / "usr/local/bin")
    data_root = str(tmp_path / "var/lib/node_exporter")
    node = dataclasses.replace(
        config.default_node_exporter(),
        install_dir=bin_dir,
        data_root=data_root,
        data_dirs=(f"{data_root}/textfile_collector",),
    )
    slurm = dataclasses.replace(config.default_slurm_exporter(), install_dir=bin_dir)
    return config.InstallerConfig(
        node_exporter=node,
        slurm_exporter=slurm,
        unit_dir=str(tmp_path / "etc/systemd/system"),
        arch="amd64",
        retry_backoff=0.0,
    ).validate()


@pytest.fixture
def host(tmp_path, monkeypatch) -> FakeHost:
    h = FakeHost(tmp_path)
    monkeypatch.setattr("exporter_installer.steps.step_10_preflight.is_root", lambda: h.is_root)
    monkeypatch.setattr(
        "exporter_installer.steps.step_10_preflight.detect_package_manager",
        lambda: h.package_manager,
    )
    monkeypatch.setattr(
        "exporter_installer.steps.step_10_preflight.have_command",
        lambda name: h.slurm_present,
    )
    monkeypatch.setattr(
        "exporter_installer.steps.step_20_install_dependencies.get_package_manager",
        lambda name, **kwargs: h.pm,
    )
    monkeypatch.setattr("exporter_installer.installer.acquire", h.acquire)
    monkeypatch.setattr("exporter_installer.lib.users.run_cmd", h.users_run_cmd)
    monkeypatch.setattr("exporter_installer.lib.fs.run_cmd", h.fs_run_cmd)
    monkeypatch.setattr("exporter_installer.steps.step_50_verify.probe_metrics", h.probe)
    return h


@pytest.fixture
def fake_systemd(test_config) -> FakeSystemd:
    return FakeSystemd(unit_dir=test_config.unit_dir)
