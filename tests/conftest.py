# tests/conftest.py
from collections.abc import Generator
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from barcode_gateway.api.dependencies import get_lookup_gateway
from barcode_gateway.core.config import Settings, get_settings
from barcode_gateway.core.limiter import limiter
from barcode_gateway.domain.ports import ProductSourcePort
from barcode_gateway.main import app
from barcode_gateway.services.lookup_gateway import LookupGateway
from barcode_gateway.services.product_cache import ProductCache
from barcode_gateway.services.rate_limiter import RateLimiter


class FakeClock:
    """Steuerbare Uhr in Sekunden für Limiter und Cache."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def source() -> AsyncMock:
    return AsyncMock(spec=ProductSourcePort)


@pytest.fixture
def rate_limiter(clock: FakeClock) -> RateLimiter:
    return RateLimiter(clock=clock)


@pytest.fixture
def cache(clock: FakeClock) -> ProductCache:
    return ProductCache(ttl_seconds=24 * 60 * 60, max_entries=1000, clock=clock)


@pytest.fixture
def gateway(source: AsyncMock, rate_limiter: RateLimiter, cache: ProductCache) -> LookupGateway:
    return LookupGateway(source=source, rate_limiter=rate_limiter, cache=cache)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(api_keys={"test-key-alice": "client_alice", "test-key-bob": "client_bob"})


@pytest.fixture
def client(test_settings: Settings, gateway: LookupGateway) -> Generator[TestClient, None, None]:
    # Jeder Test bekommt einen frischen Gateway statt des Lifespan-Kontexts.
    limiter.reset()
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_lookup_gateway] = lambda: gateway
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def alice_headers() -> dict:
    return {"X-API-Key": "test-key-alice"}
