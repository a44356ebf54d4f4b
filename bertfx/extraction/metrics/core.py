# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Extraction metrics collector.

Tracks how many documents went through the extractor, how long each
encoder call took, and how much text was lost to truncation. A high
truncation rate usually means max_length is too small for the corpus.
Everything stays local, there is no external reporting.
"""

import logging
import threading
import time
from dataclasses import dataclass

from bertfx.logging.logger import get_logger

logger: logging.Logger = get_logger(__name__)


@dataclass
class RequestMetrics:
    """Stats captured for a single extraction call."""

    input_tokens: int = 0
    kept_tokens: int = 0
    dropped_tokens: int = 0
    total_time_ms: float = 0.0


class ExtractionMetrics:
    """
    Accumulates running totals across extraction calls.

    The extractor can be shared between threads, so updates go through a
    lock. Only totals are kept, not the per-request records, which keeps a
    long-running batch job's memory flat.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._start_time: float = time.monotonic()
        self._total_requests = 0
        self._truncated_requests = 0
        self._input_tokens = 0
        self._dropped_tokens = 0
        self._total_time_ms = 0.0

    @property
    def total_requests(self) -> int:
        return self._total_requests

    @property
    def truncated_requests(self) -> int:
        return self._truncated_requests

    @property
    def dropped_tokens(self) -> int:
        return self._dropped_tokens

    @property
    def uptime_seconds(self) -> float:
        return time.monotonic() - self._start_time

    def record(self, metrics: RequestMetrics) -> None:
        """Fold one completed request into the totals and log it."""
        with self._lock:
            self._total_requests += 1
            self._input_tokens += metrics.input_tokens
            self._dropped_tokens += metrics.dropped_tokens
            self._total_time_ms += metrics.total_time_ms
            if metrics.dropped_tokens > 0:
                self._truncated_requests += 1

        logger.debug(
            "Extraction completed",
            extra={
                "input_tokens": metrics.input_tokens,
                "kept_tokens": metrics.kept_tokens,
                "dropped_tokens": metrics.dropped_tokens,
                "total_time_ms": round(metrics.total_time_ms, 2),
            },
        )

    def average_ms_per_request(self) -> float:
        with self._lock:
            if self._total_requests == 0:
                return 0.0
            return self._total_time_ms / self._total_requests

    def truncation_rate(self) -> float:
        with self._lock:
            if self._total_requests == 0:
                return 0.0
            return self._truncated_requests / self._total_requests

    def summary(self) -> dict[str, object]:
        """Structured summary suitable for logging."""
        return {
            "total_requests": self.total_requests,
            "truncated_requests": self.truncated_requests,
            "truncation_rate": round(self.truncation_rate(), 4),
            "input_tokens": self._input_tokens,
            "dropped_tokens": self.dropped_tokens,
            "avg_ms_per_request": round(self.average_ms_per_request(), 2),
            "uptime_seconds": round(self.uptime_seconds, 2),
        }
