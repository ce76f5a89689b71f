from __future__ import annotations

from typing import Sequence


class InstallerError(RuntimeError):
    """Base class for all installer failures.

    `reported` is set once the failure has been shown to the operator.
    """

    reported = False


class ConfigError(InstallerError):
    pass


class PreflightError(InstallerError):
    pass


class UnsupportedPackageManagerError(PreflightError):
    pass


class CommandError(InstallerError):
    """An external command exited non-zero (or timed out)."""

    def __init__(self, argv: Sequence[str], returncode: int, stderr: str = "") -> None:
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"Command failed ({returncode}): {' '.join(self.argv)}\n{stderr}".rstrip())


class DownloadError(InstallerError):
    pass


class ServiceStartError(InstallerError):
    def __init__(self, unit: str, hint: str | None = None) -> None:
        self.unit = unit
        self.hint = hint
        msg = f"{unit} did not reach active state"
        if hint:
            msg += f". {hint}"
        super().__init__(msg)


class FatalStepError(InstallerError):
    """Raised by the pipeline when a fatal step fails."""

    def __init__(self, step_id: str, cause: BaseException) -> None:
        self.step_id = step_id
        self.cause = cause
        super().__init__(f"Step {step_id} failed: {cause}")
