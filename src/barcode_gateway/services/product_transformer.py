# src/barcode_gateway/services/product_transformer.py
from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any

from barcode_gateway.domain.models import EcoScore, NutriScore, Nutriments, SimplifiedProduct

# Felder, die beim Upstream angefragt werden. Entspricht genau dem, was
# `transform` auswertet.
PRODUCT_FIELDS: tuple[str, ...] = (
    "product_name",
    "brands",
    "image_front_url",
    "categories_tags",
    "ingredients_text",
    "allergens_tags",
    "nutrition_grades",
    "nova_group",
    "ecoscore_grade",
    "ecoscore_score",
    "nutriments",
    "nutriscore_data",
    "nutriscore_grade",
)

# Upstream-Schlüssel -> Feld in Nutriments
_NUTRIMENT_KEYS: dict[str, str] = {
    "energy-kcal_100g": "energy_kcal_100g",
    "proteins_100g": "proteins_100g",
    "carbohydrates_100g": "carbohydrates_100g",
    "fat_100g": "fat_100g",
    "fiber_100g": "fiber_100g",
    "sugars_100g": "sugars_100g",
    "salt_100g": "salt_100g",
    "sodium_100g": "sodium_100g",
}

_LANGUAGE_PREFIX = re.compile(r"^[a-z]{2}:")


# ---------------------------------------------------------------------------
# Defensive Leser: liefern None für fehlende oder unbrauchbare Werte
# ---------------------------------------------------------------------------


def _text(raw: Mapping[str, Any], key: str) -> str | None:
    value = raw.get(key)
    if isinstance(value, str) and value:
        return value
    return None


def _number(value: Any) -> int | float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        try:
            return value if math.isfinite(value) else None
        except OverflowError:
            # int jenseits des float-Bereichs
            return None
    if isinstance(value, str):
        try:
            parsed = float(value)
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def _integer(value: Any) -> int | None:
    number = _number(value)
    if number is None:
        return None
    try:
        if not float(number).is_integer():
            return None
    except OverflowError:
        return None
    return int(number)


def _mapping(raw: Mapping[str, Any], key: str) -> Mapping[str, Any] | None:
    value = raw.get(key)
    return value if isinstance(value, Mapping) else None


def clean_tag(tag: str) -> str:
    """'en:breakfast-cereals' -> 'breakfast cereals'"""
    return _LANGUAGE_PREFIX.sub("", tag).replace("-", " ")


def _tags(raw: Mapping[str, Any], key: str) -> list[str] | None:
    value = raw.get(key)
    if not isinstance(value, list):
        return None
    return [clean_tag(tag) for tag in value if isinstance(tag, str)]


def _first_brand(raw: Mapping[str, Any]) -> str | None:
    brands = _text(raw, "brands")
    if brands is None:
        return None
    first = brands.split(",")[0].strip()
    return first or None


# ---------------------------------------------------------------------------
# Teilobjekte
# ---------------------------------------------------------------------------


def _ecoscore(raw: Mapping[str, Any]) -> EcoScore | None:
    fields: dict[str, Any] = {}
    grade = _text(raw, "ecoscore_grade")
    if grade is not None:
        fields["grade"] = grade
    score = _number(raw.get("ecoscore_score"))
    if score is not None:
        fields["score"] = score
    return EcoScore(**fields) if fields else None


def _nutriments(raw: Mapping[str, Any]) -> Nutriments | None:
    source = _mapping(raw, "nutriments")
    if source is None:
        return None
    fields: dict[str, Any] = {}
    for upstream_key, field_name in _NUTRIMENT_KEYS.items():
        value = _number(source.get(upstream_key))
        if value is not None:
            fields[field_name] = value
    return Nutriments(**fields) if fields else None


def _nutriscore(raw: Mapping[str, Any]) -> NutriScore | None:
    fields: dict[str, Any] = {}
    grade = _text(raw, "nutriscore_grade") or _text(raw, "nutrition_grades")
    if grade is not None:
        fields["grade"] = grade
    details = _mapping(raw, "nutriscore_data")
    if details is not None:
        score = _number(details.get("score"))
        if score is not None:
            fields["score"] = score
    return NutriScore(**fields) if fields else None


# ---------------------------------------------------------------------------
# Öffentliche API
# ---------------------------------------------------------------------------


def transform(raw: Mapping[str, Any], barcode: str) -> SimplifiedProduct:
    """
    Überführt einen beliebig lückenhaften Open-Food-Facts-Datensatz in ein
    SimplifiedProduct. Nur Felder, die der Upstream tatsächlich liefert,
    werden gesetzt; alles andere bleibt unset und wird nicht serialisiert.
    """
    candidates: dict[str, Any] = {
        "name": _text(raw, "product_name"),
        "brand": _first_brand(raw),
        "image_url": _text(raw, "image_front_url"),
        "categories": _tags(raw, "categories_tags"),
        "ingredients": _text(raw, "ingredients_text"),
        "allergens": _tags(raw, "allergens_tags"),
        "nutrition_grade": _text(raw, "nutrition_grades"),
        "nova_group": _integer(raw.get("nova_group")),
        "ecoscore": _ecoscore(raw),
        "nutriments": _nutriments(raw),
        "nutriscore": _nutriscore(raw),
    }
    present = {key: value for key, value in candidates.items() if value is not None}
    return SimplifiedProduct(barcode=barcode, **present)
