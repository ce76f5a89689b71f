from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class ScratchDir:
    """Temporary working directory, created on first use and always removed on exit.

    Use as a context manager around the whole run. Nothing touches the
    filesystem until `.path` is first read.
    """

    def __init__(self, *, prefix: str = "exporter-installer-", base: Optional[str] = None) -> None:
        self.prefix = prefix
        self.base = base
        self._path: Optional[Path] = None

    @property
    def path(self) -> Path:
        if self._path is None:
            self._path = Path(tempfile.mkdtemp(prefix=self.prefix, dir=self.base))
            logger.info("Created working directory %s", str(self._path))
        return self._path

    @property
    def created(self) -> bool:
        return self._path is not None

    def cleanup(self) -> None:
        if self._path is None:
            return
        shutil.rmtree(self._path, ignore_errors=True)
        logger.info("Removed working directory %s", str(self._path))
        self._path = None

    def __enter__(self) -> "ScratchDir":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.cleanup()
