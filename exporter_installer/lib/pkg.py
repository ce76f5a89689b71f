from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, Sequence, Type

from ..errors import UnsupportedPackageManagerError
from .command import have_command, run_cmd

logger = logging.getLogger(__name__)


class PackageManager:
    """Installs system packages through one host package-manager CLI."""

    name: str = ""

    def __init__(self, *, dry_run: bool = False, timeout: float | None = None) -> None:
        self.dry_run = dry_run
        self.timeout = timeout

    def install(self, packages: Sequence[str]) -> None:
        raise NotImplementedError


class AptPackageManager(PackageManager):
    name = "apt-get"

    def update(self) -> None:
        run_cmd(["apt-get", "update"], timeout=self.timeout, dry_run=self.dry_run)

    def install(self, packages: Sequence[str]) -> None:
        if not packages:
            return
        self.update()
        run_cmd(
            ["apt-get", "install", "-y", *packages],
            env={"DEBIAN_FRONTEND": "noninteractive"},
            timeout=self.timeout,
            dry_run=self.dry_run,
        )


class YumPackageManager(PackageManager):
    name = "yum"

    def install(self, packages: Sequence[str]) -> None:
        if not packages:
            return
        run_cmd([self.name, "install", "-y", *packages], timeout=self.timeout, dry_run=self.dry_run)


class DnfPackageManager(YumPackageManager):
    name = "dnf"


# Probe order matters: first executable found wins.
BACKENDS: Dict[str, Type[PackageManager]] = {
    "apt-get": AptPackageManager,
    "dnf": DnfPackageManager,
    "yum": YumPackageManager,
}


def detect_package_manager(probe: Callable[[str], bool] = have_command) -> Optional[str]:
    """Return the name of the first supported package manager on PATH."""

    for name in BACKENDS:
        if probe(name):
            logger.info("Detected package manager: %s", name)
            return name
    return None


def get_package_manager(name: str, *, dry_run: bool = False, timeout: float | None = None) -> PackageManager:
    try:
        cls = BACKENDS[name]
    except KeyError:
        raise UnsupportedPackageManagerError(f"Unsupported package manager: {name}") from None
    return cls(dry_run=dry_run, timeout=timeout)
