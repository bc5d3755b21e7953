"""Keyword-volume collaborator used to enrich search terms.

The engine only depends on the :class:`KeywordVolumeProvider` protocol.
``HttpKeywordVolumeClient`` is the shipped implementation: it asks a
configured HTTP service for ``GET {base}/keywords?term=...`` and expects
``{avgMonthlySearches, competition, competitionIndex, lowTopPageBid?,
highTopPageBid?}`` back.  Unavailability is never fatal: every failure
returns ``None`` so the pass proceeds with null volume data.
"""

import time
import logging
import threading
from typing import Protocol

import httpx

from feedaudit.config import KEYWORD_VOLUME_URL, KEYWORD_VOLUME_TIMEOUT
from feedaudit.pipeline.schemas import KeywordMetrics

logger = logging.getLogger(__name__)

# Stop calling the service for a while after repeated failures
_CB_FAILURE_THRESHOLD = 3
_CB_COOLDOWN_SECONDS = 300


class KeywordVolumeProvider(Protocol):
    def lookup(self, term: str) -> KeywordMetrics | None:
        ...


class HttpKeywordVolumeClient:
    """Blocking httpx client with a small circuit breaker."""

    def __init__(self, base_url: str, timeout: float = KEYWORD_VOLUME_TIMEOUT, transport: httpx.BaseTransport | None = None):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)
        self._cb_lock = threading.Lock()
        self._cb_failures = 0
        self._cb_disabled_until = 0.0

    def _circuit_open(self) -> bool:
        with self._cb_lock:
            return time.time() < self._cb_disabled_until

    def _record_failure(self):
        with self._cb_lock:
            self._cb_failures += 1
            if self._cb_failures >= _CB_FAILURE_THRESHOLD:
                self._cb_disabled_until = time.time() + _CB_COOLDOWN_SECONDS
                logger.warning(
                    f"Keyword volume: {self._cb_failures} consecutive failures, "
                    f"pausing lookups for {_CB_COOLDOWN_SECONDS}s"
                )
                self._cb_failures = 0

    def _record_success(self):
        with self._cb_lock:
            self._cb_failures = 0

    def lookup(self, term: str) -> KeywordMetrics | None:
        if self._circuit_open():
            return None
        try:
            resp = self._client.get("/keywords", params={"term": term})
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Keyword volume lookup failed for {term!r}: {e}")
            self._record_failure()
            return None
        self._record_success()
        if not data:
            return None
        try:
            return KeywordMetrics.from_dict(data)
        except (TypeError, ValueError) as e:
            logger.warning(f"Keyword volume: malformed metrics for {term!r}: {e}")
            return None

    def close(self):
        self._client.close()


def default_provider() -> KeywordVolumeProvider | None:
    """Provider from configuration, or ``None`` when no service is configured."""
    if not KEYWORD_VOLUME_URL:
        return None
    return HttpKeywordVolumeClient(KEYWORD_VOLUME_URL)
