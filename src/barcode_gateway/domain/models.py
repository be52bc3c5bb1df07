# src/barcode_gateway/domain/models.py
from __future__ import annotations

import math
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------


class RateLimitCategory(StrEnum):
    PRODUCT = "product"
    SEARCH = "search"
    FACET = "facet"


class Nutriments(BaseModel):
    """Nährwerte per 100g. Schlüssel entsprechen den Open-Food-Facts-Feldnamen."""

    energy_kcal_100g: float | None = None
    proteins_100g: float | None = None
    carbohydrates_100g: float | None = None
    fat_100g: float | None = None
    fiber_100g: float | None = None
    sugars_100g: float | None = None
    salt_100g: float | None = None
    sodium_100g: float | None = None

    model_config = {"frozen": True}


class EcoScore(BaseModel):
    grade: str | None = None
    score: int | float | None = None

    model_config = {"frozen": True}


class NutriScore(BaseModel):
    grade: str | None = None
    score: int | float | None = None

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Aggregate: SimplifiedProduct
# Kernkonzept: Anwesenheit eines Feldes bedeutet, dass der Upstream den Wert
# geliefert hat. Nicht gesetzte Felder werden nie serialisiert (exclude_unset).
# ---------------------------------------------------------------------------


class SimplifiedProduct(BaseModel):
    """
    Stabiles, minimales Produktmodell.
    Bis auf `barcode` sind alle Felder optional; fehlende Daten werden
    weggelassen statt als null oder 0 ausgegeben.
    """

    barcode: str = Field(description="Kanonischer, zero-padded Barcode")
    name: str | None = None
    brand: str | None = None
    image_url: str | None = None
    categories: list[str] | None = None
    ingredients: str | None = None
    allergens: list[str] | None = None
    nutrition_grade: str | None = None
    nova_group: int | None = None
    ecoscore: EcoScore | None = None
    nutriments: Nutriments | None = None
    nutriscore: NutriScore | None = None

    model_config = {"frozen": True, "alias_generator": to_camel, "populate_by_name": True}

    def to_payload(self) -> dict[str, Any]:
        """JSON-Repräsentation, die nur tatsächlich vorhandene Felder enthält."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


# ---------------------------------------------------------------------------
# Rate-Limit Status
# ---------------------------------------------------------------------------


class CategoryStatus(BaseModel):
    remaining: int = Field(ge=0)
    reset_in: int = Field(ge=0, description="Millisekunden bis zum Reset des Fensters")
    limit: int = Field(ge=0)

    model_config = {"frozen": True, "alias_generator": to_camel, "populate_by_name": True}


class RateLimitStatus(BaseModel):
    product_queries: CategoryStatus
    search_queries: CategoryStatus
    facet_queries: CategoryStatus

    model_config = {"frozen": True, "alias_generator": to_camel, "populate_by_name": True}


# ---------------------------------------------------------------------------
# Suche
# ---------------------------------------------------------------------------


class SearchPage(BaseModel):
    products: list[SimplifiedProduct]
    total_count: int = Field(ge=0)
    page: int = Field(ge=1)
    page_size: int = Field(ge=1, le=100)
    total_pages: int = Field(ge=0)

    model_config = {"frozen": True, "alias_generator": to_camel, "populate_by_name": True}

    @classmethod
    def build(
        cls, products: list[SimplifiedProduct], total_count: int, page: int, page_size: int
    ) -> SearchPage:
        return cls(
            products=products,
            total_count=total_count,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total_count / page_size),
        )


class BarcodeServiceHealth(BaseModel):
    service: str
    rate_limits: RateLimitStatus

    model_config = {"frozen": True, "alias_generator": to_camel, "populate_by_name": True}
