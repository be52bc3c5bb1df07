from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from barcode_gateway.domain.models import CategoryStatus, RateLimitCategory, RateLimitStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitRule:
    max_requests: int
    window_ms: int


@dataclass
class RateWindow:
    count: int = 0
    reset_at_ms: float = 0.0


DEFAULT_RULES: Mapping[RateLimitCategory, RateLimitRule] = {
    RateLimitCategory.PRODUCT: RateLimitRule(max_requests=100, window_ms=60_000),
    RateLimitCategory.SEARCH: RateLimitRule(max_requests=10, window_ms=60_000),
    RateLimitCategory.FACET: RateLimitRule(max_requests=2, window_ms=60_000),
}


class RateLimiter:
    """
    Fixed-Window-Zähler pro Upstream-Kategorie.

    Ein Fenster gilt ab `now >= reset_at` als abgelaufen und wird vor jeder
    Prüfung bzw. Zählung zurückgesetzt (count=0, reset_at=now+window).
    `can_make` und `record` sind einzeln atomar, zusammen aber nicht;
    `try_acquire` bietet Prüfen und Zählen in einem Schritt.
    """

    def __init__(
        self,
        rules: Mapping[RateLimitCategory, RateLimitRule] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._rules = dict(DEFAULT_RULES)
        if rules:
            self._rules.update(rules)
        self._clock = clock
        self._lock = threading.Lock()
        self._windows = {category: RateWindow() for category in RateLimitCategory}

    def can_make(self, category: RateLimitCategory) -> bool:
        with self._lock:
            window, rule, now = self._current_window(category)
            count = window.count
            reset_in = self._remaining_ms(window, now)
        allowed = count < rule.max_requests
        if not allowed:
            logger.warning(
                "Rate limit exceeded for %s queries. Requests: %d/%d, reset in %dms",
                category,
                count,
                rule.max_requests,
                reset_in,
            )
        return allowed

    def record(self, category: RateLimitCategory) -> None:
        with self._lock:
            window, rule, now = self._current_window(category)
            window.count += 1
            count = window.count
        logger.debug(
            "Recorded %s query. Current count: %d/%d", category, count, rule.max_requests
        )

    def try_acquire(self, category: RateLimitCategory) -> bool:
        """Prüft und zählt in einem Schritt. Gibt False zurück, ohne zu zählen."""
        with self._lock:
            window, rule, _ = self._current_window(category)
            if window.count >= rule.max_requests:
                return False
            window.count += 1
            return True

    def reset_time_remaining(self, category: RateLimitCategory) -> int:
        """Millisekunden bis zum Ende des aktuellen Fensters."""
        with self._lock:
            window = self._windows[category]
            return self._remaining_ms(window, self._now_ms())

    def get_status(self) -> RateLimitStatus:
        with self._lock:
            now = self._now_ms()
            snapshot = {
                category: CategoryStatus(
                    remaining=max(0, rule.max_requests - self._windows[category].count),
                    reset_in=self._remaining_ms(self._windows[category], now),
                    limit=rule.max_requests,
                )
                for category, rule in self._rules.items()
            }
        return RateLimitStatus(
            product_queries=snapshot[RateLimitCategory.PRODUCT],
            search_queries=snapshot[RateLimitCategory.SEARCH],
            facet_queries=snapshot[RateLimitCategory.FACET],
        )

    def reset(self) -> None:
        with self._lock:
            self._windows = {category: RateWindow() for category in RateLimitCategory}
        logger.info("All rate limits reset")

    # ------------------------------------------------------------------
    # Intern (Aufrufer hält self._lock)
    # ------------------------------------------------------------------

    def _now_ms(self) -> float:
        return self._clock() * 1000

    def _current_window(
        self, category: RateLimitCategory
    ) -> tuple[RateWindow, RateLimitRule, float]:
        rule = self._rules[category]
        window = self._windows[category]
        now = self._now_ms()
        if now >= window.reset_at_ms:
            window.count = 0
            window.reset_at_ms = now + rule.window_ms
        return window, rule, now

    @staticmethod
    def _remaining_ms(window: RateWindow, now: float) -> int:
        return max(0, round(window.reset_at_ms - now))
