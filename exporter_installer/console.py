"""Operator-facing terminal output.

Colored status lines for the person running the installer. Every line is
mirrored to the log so the log file tells the same story as the terminal.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional, TextIO

logger = logging.getLogger("exporter_installer.console")

GREEN = "\033[0;32m"
YELLOW = "\033[1;33m"
RED = "\033[0;31m"
NC = "\033[0m"


def _use_color(stream: TextIO) -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def _emit(message: str, color: Optional[str], level: int, stream: Optional[TextIO]) -> None:
    out = stream or sys.stdout
    text = f"{color}{message}{NC}" if color and _use_color(out) else message
    print(text, file=out, flush=True)
    if message:
        logger.log(level, "%s", message)


def success(message: str, *, stream: Optional[TextIO] = None) -> None:
    _emit(message, GREEN, logging.INFO, stream)


def warn(message: str, *, stream: Optional[TextIO] = None) -> None:
    _emit(message, YELLOW, logging.WARNING, stream)


def error(message: str, *, stream: Optional[TextIO] = None) -> None:
    _emit(message, RED, logging.ERROR, stream)


def plain(message: str = "", *, stream: Optional[TextIO] = None) -> None:
    _emit(message, None, logging.INFO, stream)
