"""Post-deploy smoke checks against the running service."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import httpx

from .exceptions import SmokeCheckError
from .server import GREETING

logger = logging.getLogger(__name__)


@dataclass
class SmokeResult:
    url: str
    status_code: int
    body: str

    @property
    def ok(self) -> bool:
        return self.status_code == 200 and self.body == GREETING


def check_hello(
    base_url: str,
    client: httpx.Client | None = None,
    retries: int = 5,
    delay: float = 2.0,
    timeout: float = 5.0,
) -> SmokeResult:
    """GET ``/`` on ``base_url``, retrying while the host is unreachable.

    A response of any status ends the retries; only transport errors
    (connection refused, timeouts) are retried.
    """
    if retries < 1:
        raise ValueError(f"retries must be at least 1, got {retries}")

    url = base_url.rstrip("/") + "/"
    owns_client = client is None
    if client is None:
        client = httpx.Client(timeout=httpx.Timeout(timeout))

    try:
        last_error: Exception | None = None
        for attempt in range(1, retries + 1):
            try:
                response = client.get(url)
            except httpx.TransportError as e:
                last_error = e
                logger.warning("Smoke check attempt %d/%d failed: %s", attempt, retries, e)
                if attempt < retries:
                    time.sleep(delay)
                continue

            result = SmokeResult(url=url, status_code=response.status_code, body=response.text)
            logger.info("GET %s -> %d", url, response.status_code)
            return result

        raise SmokeCheckError(
            f"Service unreachable at {url}: {last_error}", url=url, attempts=retries
        )
    finally:
        if owns_client:
            client.close()
