from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

DEFAULT_LOG_PATH = "/var/log/exporter-installer.log"


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    also_console: bool = False,
) -> str:
    """Attach the installer's file handler to the root logger.

    Every command the installer runs, and every choice it makes, lands in
    `log_path`. When that file cannot be opened (no /var/log access on a
    dry run as a normal user, say) the log goes to
    ./exporter-installer.log instead.

    Operator-facing lines are printed by `console`; pass `also_console`
    (the CLI's --verbose) to stream the raw log to stderr as well.

    Calling this twice is harmless: the second call keeps the first
    handlers and returns the file they write to.
    """

    logger = logging.getLogger()
    logger.setLevel(level)

    if getattr(logger, "_exporter_installer_configured", False):
        return getattr(logger, "_exporter_installer_log_path", log_path)

    handlers: list[logging.Handler] = []

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    file_handler: Optional[logging.Handler] = None
    try:
        Path(os.path.dirname(log_path) or ".").mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        chosen_path = log_path
    except OSError:
        fallback = str(Path.cwd() / "exporter-installer.log")
        file_handler = logging.FileHandler(fallback)
        chosen_path = fallback
    file_handler.setFormatter(fmt)
    handlers.append(file_handler)

    if also_console:
        console = logging.StreamHandler()
        console.setFormatter(fmt)
        handlers.append(console)

    for h in handlers:
        logger.addHandler(h)

    setattr(logger, "_exporter_installer_configured", True)
    setattr(logger, "_exporter_installer_log_path", chosen_path)

    logging.getLogger(__name__).info(
        "Logging initialized (requested=%s, actual=%s)", log_path, chosen_path
    )
    return chosen_path
