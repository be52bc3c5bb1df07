# src/barcode_gateway/api/dependencies.py
from __future__ import annotations

from dataclasses import dataclass

import httpx
from fastapi import Request

from barcode_gateway.adapters.open_food_facts import OpenFoodFactsAdapter
from barcode_gateway.core.config import Settings
from barcode_gateway.domain.models import RateLimitCategory
from barcode_gateway.services.lookup_gateway import LookupGateway
from barcode_gateway.services.product_cache import ProductCache
from barcode_gateway.services.rate_limiter import RateLimiter, RateLimitRule


@dataclass
class GatewayContext:
    """
    Prozessweiter Zustand: wird einmal im Lifespan gebaut und über
    app.state an die Endpoints gereicht.
    """

    http_client: httpx.AsyncClient
    gateway: LookupGateway

    async def aclose(self) -> None:
        await self.http_client.aclose()


def build_rate_limiter(settings: Settings) -> RateLimiter:
    window = settings.rate_limit_window_ms
    return RateLimiter(
        rules={
            RateLimitCategory.PRODUCT: RateLimitRule(settings.product_rate_limit, window),
            RateLimitCategory.SEARCH: RateLimitRule(settings.search_rate_limit, window),
            RateLimitCategory.FACET: RateLimitRule(settings.facet_rate_limit, window),
        }
    )


def build_context(
    settings: Settings, http_client: httpx.AsyncClient | None = None
) -> GatewayContext:
    # Shared HTTP Client (Connection Pooling)
    client = http_client or httpx.AsyncClient(
        headers={"User-Agent": settings.off_user_agent, "Accept": "application/json"},
        follow_redirects=True,
    )
    rate_limiter = build_rate_limiter(settings)
    cache = ProductCache(
        ttl_seconds=settings.cache_ttl_seconds, max_entries=settings.cache_max_entries
    )
    adapter = OpenFoodFactsAdapter(
        http_client=client,
        base_url=settings.off_base_url,
        timeout=settings.off_timeout_seconds,
    )
    return GatewayContext(
        http_client=client,
        gateway=LookupGateway(source=adapter, rate_limiter=rate_limiter, cache=cache),
    )


def get_context(request: Request) -> GatewayContext:
    context: GatewayContext = request.app.state.context
    return context


def get_lookup_gateway(request: Request) -> LookupGateway:
    return get_context(request).gateway
