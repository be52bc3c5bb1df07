from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from barcode_gateway.core.metrics import CACHE_HITS, CACHE_MISSES
from barcode_gateway.domain.models import SimplifiedProduct

logger = logging.getLogger(__name__)


class ProductCache:
    """
    Einfacher TTL-basierter In-Memory Cache für Produkte.
    Verhindert redundante externe API-Aufrufe.

    Sobald mehr als `max_entries` Einträge gespeichert sind, entfernt ein
    vollständiger Durchlauf alle abgelaufenen Einträge. Frische Einträge
    bleiben erhalten, die Grenze ist also weich.
    """

    def __init__(
        self,
        ttl_seconds: int,
        max_entries: int = 1000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._lock = threading.Lock()
        # Key: kanonischer Barcode, Value: (SimplifiedProduct, timestamp)
        self._storage: dict[str, tuple[SimplifiedProduct, float]] = {}

    def __len__(self) -> int:
        return len(self._storage)

    def get(self, barcode: str) -> SimplifiedProduct | None:
        """Holt ein Produkt aus dem Cache, sofern vorhanden und nicht abgelaufen."""
        with self._lock:
            entry = self._storage.get(barcode)
            if entry is not None:
                product, timestamp = entry
                if self._is_expired(timestamp, self._clock()):
                    del self._storage[barcode]
                    entry = None

        if entry is None:
            CACHE_MISSES.inc()
            return None

        CACHE_HITS.inc()
        return product

    def set(self, barcode: str, product: SimplifiedProduct) -> None:
        """Speichert ein Produkt im Cache mit aktuellem Zeitstempel."""
        with self._lock:
            self._storage[barcode] = (product, self._clock())
            if len(self._storage) > self._max_entries:
                removed = self._sweep()
                logger.debug("Cache cleanup: removed %d expired entries", removed)

    def clear(self) -> None:
        with self._lock:
            self._storage.clear()
        logger.info("Product cache cleared")

    def _sweep(self) -> int:
        now = self._clock()
        expired = [key for key, (_, ts) in self._storage.items() if self._is_expired(ts, now)]
        for key in expired:
            del self._storage[key]
        return len(expired)

    def _is_expired(self, timestamp: float, now: float) -> bool:
        return (now - timestamp) > self._ttl
