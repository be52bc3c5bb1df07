# src/barcode_gateway/adapters/open_food_facts.py
from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx
from pydantic import BaseModel, Field, ValidationError

from barcode_gateway.core.metrics import EXTERNAL_API_COUNT, EXTERNAL_API_DURATION
from barcode_gateway.domain.ports import (
    ProductNotFoundError,
    ProductSourcePort,
    RawProductRecord,
    RawSearchResult,
    UpstreamError,
    UpstreamRateLimitedError,
    UpstreamUnavailableError,
)

logger = logging.getLogger(__name__)

_SOURCE = "open_food_facts"

# ---------------------------------------------------------------------------
# Interne Rohdaten-Schemas (nur der Umschlag wird typisiert, das Produkt
# bleibt ein loses dict und wird vom Transformer defensiv gelesen)
# ---------------------------------------------------------------------------


class _OffResponse(BaseModel):
    status: int | None = None  # 1 = found, 0 = not found
    product: dict[str, Any] | None = None


class _OffSearchResponse(BaseModel):
    count: int = 0
    products: list[Any] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Adapter-Implementierung
# ---------------------------------------------------------------------------


class OpenFoodFactsAdapter(ProductSourcePort):
    """
    Adapter für die Open Food Facts API v2.
    Übersetzt Transport- und HTTP-Fehler in die Fehler-Taxonomie des Gateways.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str = "https://world.openfoodfacts.org",
        timeout: float = 10.0,
    ) -> None:
        self._client = http_client
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    async def fetch_product(self, barcode: str, fields: Sequence[str]) -> RawProductRecord:
        url = f"{self._base_url}/api/v2/product/{barcode}"
        response = await self._get(url, params={"fields": ",".join(fields)}, not_found_id=barcode)

        try:
            raw = _OffResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise UpstreamError(_SOURCE, f"Malformed product response: {e}") from e

        if raw.status == 0 or raw.product is None:
            raise ProductNotFoundError(barcode, _SOURCE)

        return raw.product

    async def search(self, query: str, page: int, page_size: int) -> RawSearchResult:
        url = f"{self._base_url}/api/v2/search"
        params = {"search_terms": query, "page": page, "page_size": page_size}
        response = await self._get(url, params=params)

        try:
            data = _OffSearchResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise UpstreamError(_SOURCE, f"Malformed search response: {e}") from e

        products: list[RawProductRecord] = []
        for raw_product in data.products:
            if isinstance(raw_product, dict):
                products.append(raw_product)
            else:
                logger.warning("Skipping malformed product in OFF search results")
        return RawSearchResult(count=data.count, products=products)

    # ------------------------------------------------------------------
    # HTTP und Fehlerklassifikation
    # ------------------------------------------------------------------

    async def _get(
        self, url: str, params: dict[str, Any], not_found_id: str | None = None
    ) -> httpx.Response:
        with EXTERNAL_API_DURATION.labels(source=_SOURCE).time():
            try:
                response = await self._client.get(url, params=params, timeout=self._timeout)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code
                EXTERNAL_API_COUNT.labels(source=_SOURCE, status=str(status_code)).inc()
                logger.error("OpenFoodFacts API call failed: %s (status %s)", url, status_code)
                if status_code == 404:
                    raise ProductNotFoundError(not_found_id or url, _SOURCE) from e
                if status_code == 429:
                    raise UpstreamRateLimitedError(_SOURCE) from e
                raise UpstreamError(_SOURCE, str(e)) from e
            except httpx.RequestError as e:
                EXTERNAL_API_COUNT.labels(source=_SOURCE, status="unavailable").inc()
                logger.error("OpenFoodFacts API unreachable: %s (%s)", url, e)
                raise UpstreamUnavailableError(_SOURCE, str(e) or type(e).__name__) from e

        EXTERNAL_API_COUNT.labels(source=_SOURCE, status=str(response.status_code)).inc()
        logger.debug("OpenFoodFacts API call successful: %s", url)
        return response
