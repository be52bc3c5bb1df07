from __future__ import annotations

import logging

from barcode_gateway.core.metrics import QUOTA_REJECTIONS
from barcode_gateway.domain.models import (
    RateLimitCategory,
    RateLimitStatus,
    SearchPage,
    SimplifiedProduct,
)
from barcode_gateway.domain.ports import (
    InvalidInputError,
    ProductSourcePort,
    RateLimitedError,
    RawSearchResult,
)
from barcode_gateway.services import barcode as barcodes
from barcode_gateway.services.product_cache import ProductCache
from barcode_gateway.services.product_transformer import PRODUCT_FIELDS, transform
from barcode_gateway.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class LookupGateway:
    """
    Orchestriert Barcode-Lookups gegen die externe Produktdatenbank:
    normalisieren, Cache prüfen, Kontingent prüfen, abrufen, zählen,
    transformieren, cachen.
    """

    def __init__(
        self,
        source: ProductSourcePort,
        rate_limiter: RateLimiter,
        cache: ProductCache,
    ) -> None:
        self._source = source
        self._limiter = rate_limiter
        self._cache = cache

    async def lookup_by_barcode(self, raw_barcode: str) -> SimplifiedProduct:
        """
        Raises:
            InvalidInputError: Barcode ist nach der Normalisierung ungültig.
            RateLimitedError: Lokales Produkt-Kontingent erschöpft.
            ProductNotFoundError, UpstreamRateLimitedError,
            UpstreamUnavailableError, UpstreamError: vom Adapter (propagiert).
        """
        barcode = barcodes.normalize(raw_barcode)
        if not barcodes.is_valid(barcode):
            raise InvalidInputError(f"Invalid barcode format: {raw_barcode}")

        cached = self._cache.get(barcode)
        if cached is not None:
            logger.debug("Product found in cache: %s", barcode)
            return cached

        self._ensure_quota(RateLimitCategory.PRODUCT)

        try:
            raw = await self._source.fetch_product(barcode, PRODUCT_FIELDS)
        finally:
            # Jeder Versuch zählt gegen das Kontingent, auch fehlgeschlagene.
            self._limiter.record(RateLimitCategory.PRODUCT)

        product = transform(raw, barcode)
        self._cache.set(barcode, product)
        logger.info("Product retrieved successfully: %s", barcode)
        return product

    async def search_products(self, query: str, page: int, page_size: int) -> SearchPage:
        """Erwartet bereits validierte Paginierung (page >= 1, 1 <= page_size <= 100)."""
        self._ensure_quota(RateLimitCategory.SEARCH)

        try:
            result: RawSearchResult = await self._source.search(query, page, page_size)
        finally:
            self._limiter.record(RateLimitCategory.SEARCH)

        products = []
        for raw in result.products:
            code = raw.get("code")
            if not isinstance(code, str) or not code:
                logger.warning("Skipping search result without barcode for query %r", query)
                continue
            products.append(transform(raw, code))

        return SearchPage.build(
            products=products, total_count=result.count, page=page, page_size=page_size
        )

    def get_rate_limit_status(self) -> RateLimitStatus:
        return self._limiter.get_status()

    def clear_cache(self) -> None:
        self._cache.clear()

    def _ensure_quota(self, category: RateLimitCategory) -> None:
        if not self._limiter.can_make(category):
            QUOTA_REJECTIONS.labels(category=category.value).inc()
            raise RateLimitedError(category.value, self._limiter.reset_time_remaining(category))
