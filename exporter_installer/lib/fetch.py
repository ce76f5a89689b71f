"""Binary acquisition: release archive download and clone-and-build."""

from __future__ import annotations

import logging
import shutil
import tarfile
import time
from pathlib import Path
from typing import Optional

import httpx

from ..errors import CommandError, DownloadError
from .command import run_cmd

logger = logging.getLogger(__name__)


def _backoff(attempt: int, base: float) -> float:
    return base * attempt


def download_file(
    url: str,
    dest: Path,
    *,
    timeout: float = 60.0,
    retries: int = 3,
    backoff: float = 2.0,
    client: Optional[httpx.Client] = None,
    dry_run: bool = False,
) -> Path:
    """Stream url to dest, retrying transient failures."""

    logger.info("Downloading %s", url)
    if dry_run:
        return dest

    own_client = client is None
    http = client or httpx.Client(timeout=timeout, follow_redirects=True)
    last_error: Optional[Exception] = None
    try:
        for attempt in range(1, max(retries, 1) + 1):
            try:
                with http.stream("GET", url) as response:
                    response.raise_for_status()
                    dest.parent.mkdir(parents=True, exist_ok=True)
                    with dest.open("wb") as f:
                        for chunk in response.iter_bytes():
                            f.write(chunk)
                logger.info("Downloaded %s (%d bytes)", str(dest), dest.stat().st_size)
                return dest
            except httpx.HTTPError as e:
                last_error = e
                logger.warning("Download attempt %d/%d failed: %s", attempt, retries, e)
                if dest.exists():
                    dest.unlink()
                if attempt < retries:
                    time.sleep(_backoff(attempt, backoff))
    finally:
        if own_client:
            http.close()

    raise DownloadError(f"Failed to download {url}: {last_error}")


def extract_tarball(archive: Path, dest_dir: Path, *, dry_run: bool = False) -> Path:
    """Extract a .tar.gz into dest_dir, refusing members that escape it."""

    logger.info("Extracting %s", str(archive))
    if dry_run:
        return dest_dir

    root = dest_dir.resolve()
    with tarfile.open(archive, "r:gz") as tf:
        for member in tf.getmembers():
            target = (root / member.name).resolve()
            if target != root and root not in target.parents:
                raise DownloadError(f"Archive member escapes extraction dir: {member.name}")
            if member.issym() or member.islnk():
                raise DownloadError(f"Archive contains a link: {member.name}")
        if hasattr(tarfile, "data_filter"):
            tf.extractall(root, filter="data")
        else:
            tf.extractall(root)
    return dest_dir


def git_clone(
    repo_url: str,
    dest: Path,
    *,
    ref: Optional[str] = None,
    timeout: float = 300.0,
    retries: int = 3,
    backoff: float = 2.0,
    dry_run: bool = False,
) -> Path:
    """Shallow-clone repo_url into dest. ref=None tracks the default branch."""

    argv = ["git", "clone", "--depth", "1"]
    if ref:
        argv += ["--branch", ref]
    argv += [repo_url, str(dest)]

    for attempt in range(1, max(retries, 1) + 1):
        try:
            run_cmd(argv, timeout=timeout, dry_run=dry_run)
            return dest
        except CommandError as e:
            logger.warning("Clone attempt %d/%d failed: %s", attempt, retries, e)
            shutil.rmtree(dest, ignore_errors=True)
            if attempt >= retries:
                raise
            time.sleep(_backoff(attempt, backoff))
    return dest


def go_build(src_dir: Path, output: str, *, timeout: float = 900.0, dry_run: bool = False) -> Path:
    """Run `go build -o <output>` inside src_dir and return the binary path."""

    logger.info("Building %s from source", output)
    run_cmd(["go", "build", "-o", output], cwd=str(src_dir), timeout=timeout, dry_run=dry_run)
    binary = src_dir / output
    if not dry_run and not binary.is_file():
        raise CommandError(["go", "build", "-o", output], 0, f"expected binary {binary} was not produced")
    return binary
