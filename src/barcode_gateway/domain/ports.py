# src/barcode_gateway/domain/ports.py
from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, Field

RawProductRecord = dict[str, Any]


class RawSearchResult(BaseModel):
    """Suchergebnis im Upstream-Format: Gesamtanzahl plus unveränderte Rohdatensätze."""

    count: int = Field(default=0, ge=0)
    products: list[RawProductRecord] = Field(default_factory=list)


class ProductSourcePort(ABC):
    """
    Abstrakte Schnittstelle für die externe Produktdatenbank.
    Der Gateway kennt ausschließlich dieses Interface.
    """

    @abstractmethod
    async def fetch_product(self, barcode: str, fields: Sequence[str]) -> RawProductRecord:
        """
        Ruft den Rohdatensatz eines Produkts anhand des kanonischen Barcodes ab.

        Raises:
            ProductNotFoundError: Wenn der Upstream das Produkt nicht kennt.
            UpstreamRateLimitedError: Wenn das Kontingent des Upstreams erschöpft ist.
            UpstreamUnavailableError: Bei Verbindungsfehlern oder Timeout.
            UpstreamError: Bei allen anderen Fehlern.
        """
        ...

    @abstractmethod
    async def search(self, query: str, page: int, page_size: int) -> RawSearchResult:
        """Freitextsuche; Fehler wie bei fetch_product."""
        ...


# ---------------------------------------------------------------------------
# Custom Domain Exceptions
# ---------------------------------------------------------------------------


class GatewayError(Exception):
    """Basis aller Fehler, die an der Gateway-Grenze klassifiziert werden."""

    status_code: int = 500


class InvalidInputError(GatewayError):
    status_code = 400


class RateLimitedError(GatewayError):
    status_code = 429

    def __init__(self, category: str, retry_after_ms: int):
        self.category = category
        self.retry_after_ms = retry_after_ms
        super().__init__(
            f"Rate limit exceeded for {category} queries. "
            f"Try again in {self.retry_after_seconds} seconds."
        )

    @property
    def retry_after_seconds(self) -> int:
        return math.ceil(self.retry_after_ms / 1000)


class ProductNotFoundError(GatewayError):
    status_code = 404

    def __init__(self, barcode: str, source: str):
        super().__init__(f"Product '{barcode}' not found in source '{source}'")
        self.barcode = barcode
        self.source = source


class UpstreamRateLimitedError(GatewayError):
    status_code = 429

    def __init__(self, source: str):
        super().__init__(f"Upstream '{source}' rate limit exceeded")
        self.source = source


class UpstreamUnavailableError(GatewayError):
    status_code = 503

    def __init__(self, source: str, detail: str):
        super().__init__(f"Unable to connect to '{source}': {detail}")
        self.source = source
        self.detail = detail


class UpstreamError(GatewayError):
    status_code = 500

    def __init__(self, source: str, detail: str):
        super().__init__(f"External API error from '{source}': {detail}")
        self.source = source
        self.detail = detail
