from __future__ import annotations

import logging
import time
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


def count_metric_lines(body: str) -> int:
    return sum(1 for line in body.splitlines() if line.strip())


def probe_metrics(
    url: str,
    *,
    timeout: float = 5.0,
    retries: int = 3,
    backoff: float = 2.0,
    client: Optional[httpx.Client] = None,
) -> int:
    """GET a metrics endpoint and return its non-empty line count (0 if unreachable)."""

    own_client = client is None
    http = client or httpx.Client(timeout=timeout)
    try:
        for attempt in range(1, max(retries, 1) + 1):
            try:
                response = http.get(url)
                response.raise_for_status()
                lines = count_metric_lines(response.text)
                logger.info("Probe %s returned %d lines", url, lines)
                if lines > 0:
                    return lines
            except httpx.HTTPError as e:
                logger.warning("Probe attempt %d/%d of %s failed: %s", attempt, retries, url, e)
            if attempt < retries:
                time.sleep(backoff * attempt)
    finally:
        if own_client:
            http.close()
    return 0
