"""Tests for the step driver: fatal steps halt, best-effort steps do not."""

import pytest

from exporter_installer import config, pipeline
from exporter_installer.errors import FatalStepError, InstallerError
from exporter_installer.lib.systemd import Systemd
from exporter_installer.lib.workdir import ScratchDir


class RecordingStep:
    def __init__(self, step_id, *, fatal=True, error=None, log=None):
        self.step_id = step_id
        self.fatal = fatal
        self.error = error
        self.log = log if log is not None else []

    def run(self, ctx, state):
        self.log.append(self.step_id)
        if self.error:
            raise self.error
        return state


@pytest.fixture
def ctx(tmp_path):
    return pipeline.InstallCtx(
        cfg=config.InstallerConfig(),
        systemd=Systemd(unit_dir=str(tmp_path)),
        scratch=ScratchDir(base=str(tmp_path)),
    )


def test_runs_all_steps_in_order(ctx):
    log = []
    steps = [RecordingStep(s, log=log) for s in ("a", "b", "c")]

    result = pipeline.run_pipeline(ctx=ctx, state=pipeline.new_state(), steps=steps)

    assert log == ["a", "b", "c"]
    assert result.ok
    assert result.state["execution"]["completed_steps"] == ["a", "b", "c"]
    assert result.state["execution"]["current_step"] is None


def test_fatal_failure_halts(ctx):
    log = []
    state = pipeline.new_state()
    steps = [
        RecordingStep("a", log=log),
        RecordingStep("b", error=RuntimeError("boom"), log=log),
        RecordingStep("c", log=log),
    ]

    with pytest.raises(FatalStepError) as exc_info:
        pipeline.run_pipeline(ctx=ctx, state=state, steps=steps)

    assert log == ["a", "b"]
    assert exc_info.value.step_id == "b"
    assert str(exc_info.value.cause) == "boom"
    assert state["execution"]["errors"] == [{"step": "b", "error": "boom"}]


def test_best_effort_failure_continues(ctx, capsys):
    log = []
    steps = [
        RecordingStep("a", log=log),
        RecordingStep("b", fatal=False, error=RuntimeError("meh"), log=log),
        RecordingStep("c", log=log),
    ]

    result = pipeline.run_pipeline(ctx=ctx, state=pipeline.new_state(), steps=steps)

    assert log == ["a", "b", "c"]
    assert result.failed_steps == ["b"]
    assert not result.ok
    assert result.state["execution"]["warnings"] == [{"step": "b", "warning": "meh"}]
    assert "meh" in capsys.readouterr().out


def test_already_reported_failure_is_not_echoed_again(ctx, capsys):
    err = InstallerError("slurm_exporter.service did not reach active state")
    err.reported = True
    steps = [RecordingStep("b", fatal=False, error=err)]

    result = pipeline.run_pipeline(ctx=ctx, state=pipeline.new_state(), steps=steps)

    assert result.failed_steps == ["b"]
    assert result.state["execution"]["warnings"] == [
        {"step": "b", "warning": "slurm_exporter.service did not reach active state"}
    ]
    assert "did not reach active state" not in capsys.readouterr().out
