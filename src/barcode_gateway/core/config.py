# src/barcode_gateway/core/config.py
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    app_name: str = "Barcode Gateway API"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # API Keys: Mapping von API-Key zu Client-ID (JSON-String als Env-Var)
    # Format: '{"key_abc123": "client_alice", "key_xyz789": "client_bob"}'
    api_keys: dict[str, str] = Field(default_factory=dict)

    # CORS
    cors_origins: list[str] = Field(default=["*"])

    # Eingehendes Rate Limiting pro Client-IP
    rate_limit_requests: int = 100
    rate_limit_window_seconds: int = 900

    # Open Food Facts
    off_base_url: str = "https://world.openfoodfacts.org"
    off_user_agent: str = "BarcodeGateway/1.0 (+https://github.com/barcode-gateway)"
    off_timeout_seconds: float = 10.0

    # Upstream-Kontingente (Fixed Window, pro Kategorie)
    product_rate_limit: int = 100
    search_rate_limit: int = 10
    facet_rate_limit: int = 2
    rate_limit_window_ms: int = 60_000

    # Response Cache
    cache_ttl_seconds: int = 24 * 60 * 60
    cache_max_entries: int = 1000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def inbound_rate_limit(self) -> str:
        return f"{self.rate_limit_requests}/{self.rate_limit_window_seconds} seconds"


@lru_cache
def get_settings() -> Settings:
    return Settings()
