from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Iterable

from .command import run_cmd

logger = logging.getLogger(__name__)

BINARY_MODE = 0o755


def install_binary(src: str | Path, dest_dir: str, *, owner: str, dry_run: bool = False) -> Path:
    """Copy a binary into dest_dir, owned by owner:owner with mode 0755."""

    s = Path(src)
    d = Path(dest_dir) / s.name
    if dry_run:
        logger.info("Would install %s -> %s", str(s), str(d))
        return d
    if not s.is_file():
        raise FileNotFoundError(str(s))

    d.parent.mkdir(parents=True, exist_ok=True)
    # Copy to a sibling then rename; the old binary may still be mapped by a stopping process.
    tmp = d.with_name(d.name + ".new")
    shutil.copyfile(s, tmp)
    tmp.replace(d)
    run_cmd(["chown", f"{owner}:{owner}", str(d)])
    d.chmod(BINARY_MODE)
    logger.info("Installed %s (owner=%s mode=%o)", str(d), owner, BINARY_MODE)
    return d


def ensure_owned_dirs(root: str, subdirs: Iterable[str], *, owner: str, dry_run: bool = False) -> None:
    """mkdir -p each directory, then chown -R the root to owner:owner."""

    dirs = [root, *subdirs]
    if dry_run:
        logger.info("Would create %s owned by %s", ", ".join(dirs), owner)
        return
    for p in dirs:
        Path(p).mkdir(parents=True, exist_ok=True)
    run_cmd(["chown", "-R", f"{owner}:{owner}", root])
