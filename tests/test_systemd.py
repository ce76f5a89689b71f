"""Tests for unit rendering and the systemctl wrapper."""

from unittest.mock import MagicMock, patch

import pytest

from exporter_installer import config, installer
from exporter_installer.lib import systemd
from exporter_installer.lib.command import CmdResult

NODE_UNIT_TEXT = """\
[Unit]
Description=Prometheus Node Exporter
After=network.target

[Service]
Type=simple
User=node_exporter
Group=node_exporter
ExecStart=/usr/local/bin/node_exporter --collector.filesystem.mount-points-exclude=^/(dev|proc|sys|var/lib/docker/.+)($|/) --collector.textfile.directory="/var/lib/node_exporter/textfile_collector" --collector.cpu --collector.meminfo --collector.thermal_zone

[Install]
WantedBy=multi-user.target
"""

SLURM_UNIT_TEXT = """\
[Unit]
Description=Prometheus Slurm Exporter
After=network.target

[Service]
Type=simple
User=slurm_exporter
Group=slurm_exporter
ExecStart=/usr/local/bin/prometheus-slurm-exporter

[Install]
WantedBy=multi-user.target
"""


def _result(rc=0, stdout=""):
    return CmdResult(argv=[], returncode=rc, stdout=stdout, stderr="")


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def test_node_exporter_unit_matches_expected_text():
    assert installer.unit_for(config.default_node_exporter()).render() == NODE_UNIT_TEXT


def test_slurm_exporter_unit_has_no_flags():
    assert installer.unit_for(config.default_slurm_exporter()).render() == SLURM_UNIT_TEXT


def test_write_unit_overwrites_with_identical_bytes(tmp_path):
    """Rewriting a unit on rerun leaves the file byte-for-byte unchanged."""
    ctl = systemd.Systemd(unit_dir=str(tmp_path))
    spec = installer.unit_for(config.default_node_exporter())

    path = ctl.write_unit("node_exporter.service", spec)
    first = path.read_bytes()
    ctl.write_unit("node_exporter.service", spec)

    assert path == tmp_path / "node_exporter.service"
    assert path.read_bytes() == first


def test_write_unit_dry_run_writes_nothing(tmp_path):
    ctl = systemd.Systemd(unit_dir=str(tmp_path / "units"), dry_run=True)
    ctl.write_unit("x.service", systemd.UnitSpec(description="x", exec_start="/bin/x"))
    assert not (tmp_path / "units").exists()


# ---------------------------------------------------------------------------
# systemctl wrapper
# ---------------------------------------------------------------------------


@patch("exporter_installer.lib.systemd.run_cmd")
def test_is_active_uses_quiet_check(mock_run: MagicMock):
    mock_run.return_value = _result(rc=3)
    ctl = systemd.Systemd()

    assert ctl.is_active("node_exporter.service") is False
    mock_run.assert_called_once_with(
        ["systemctl", "is-active", "--quiet", "node_exporter.service"], check=False, dry_run=False
    )


@patch("exporter_installer.lib.systemd.run_cmd")
def test_is_active_queries_systemctl_under_dry_run(mock_run: MagicMock):
    mock_run.return_value = _result(rc=3)
    ctl = systemd.Systemd(dry_run=True)

    assert ctl.is_active("node_exporter.service") is False
    assert ctl.active_state("node_exporter.service") == "inactive"
    assert all(c.kwargs["dry_run"] is False for c in mock_run.call_args_list)


@patch("exporter_installer.lib.systemd.run_cmd")
def test_lifecycle_commands_honour_dry_run(mock_run: MagicMock):
    mock_run.return_value = _result()
    ctl = systemd.Systemd(dry_run=True)

    ctl.stop("a.service")
    ctl.start("a.service", check=False)

    assert all(c.kwargs["dry_run"] is True for c in mock_run.call_args_list)


@pytest.mark.parametrize(
    ("rc", "stdout", "expected"),
    [
        (0, "active\n", "active"),
        (3, "failed\n", "failed"),
        (3, "", "inactive"),
    ],
)
@patch("exporter_installer.lib.systemd.run_cmd")
def test_active_state_reports_systemctl_word(mock_run, rc, stdout, expected):
    mock_run.return_value = _result(rc=rc, stdout=stdout)
    assert systemd.Systemd().active_state("slurm_exporter.service") == expected


@patch("exporter_installer.lib.systemd.run_cmd")
def test_lifecycle_commands(mock_run: MagicMock):
    mock_run.return_value = _result()
    ctl = systemd.Systemd()

    ctl.stop("a.service")
    ctl.daemon_reload()
    ctl.enable("a.service")
    ctl.start("a.service", check=False)

    argvs = [c.args[0] for c in mock_run.call_args_list]
    assert argvs == [
        ["systemctl", "stop", "a.service"],
        ["systemctl", "daemon-reload"],
        ["systemctl", "enable", "a.service"],
        ["systemctl", "start", "a.service"],
    ]
    assert mock_run.call_args_list[-1].kwargs["check"] is False
