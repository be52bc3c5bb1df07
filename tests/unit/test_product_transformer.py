from barcode_gateway.services.product_transformer import PRODUCT_FIELDS, clean_tag, transform

_FULL_PRODUCT = {
    "product_name": "Nutella",
    "brands": "Ferrero, Nutella",
    "image_front_url": "https://images.openfoodfacts.org/images/products/3017620422003/front.jpg",
    "categories_tags": ["en:spreads", "en:sweet-spreads", "fr:pates-a-tartiner"],
    "ingredients_text": "Sugar, palm oil, hazelnuts 13%",
    "allergens_tags": ["en:milk", "en:nuts", "en:soybeans"],
    "nutrition_grades": "e",
    "nova_group": 4,
    "ecoscore_grade": "d",
    "ecoscore_score": 24,
    "nutriments": {
        "energy-kcal_100g": 539,
        "proteins_100g": 6.3,
        "carbohydrates_100g": 57.5,
        "fat_100g": 30.9,
        "fiber_100g": 0,
        "sugars_100g": 56.3,
        "salt_100g": 0.107,
        "sodium_100g": 0.0428,
        "energy-kj_100g": 2252,
    },
    "nutriscore_grade": "e",
    "nutriscore_data": {"score": 26, "grade": "e"},
    "countries_tags": ["en:france"],
}


def test_full_product_mapping() -> None:
    product = transform(_FULL_PRODUCT, "3017620422003")

    assert product.barcode == "3017620422003"
    assert product.name == "Nutella"
    assert product.brand == "Ferrero"
    assert product.image_url is not None
    assert product.categories == ["spreads", "sweet spreads", "pates a tartiner"]
    assert product.allergens == ["milk", "nuts", "soybeans"]
    assert product.ingredients == "Sugar, palm oil, hazelnuts 13%"
    assert product.nutrition_grade == "e"
    assert product.nova_group == 4
    assert product.ecoscore is not None
    assert product.ecoscore.grade == "d"
    assert product.ecoscore.score == 24
    assert product.nutriments is not None
    assert product.nutriments.energy_kcal_100g == 539
    assert product.nutriments.fiber_100g == 0
    assert product.nutriscore is not None
    assert product.nutriscore.grade == "e"
    assert product.nutriscore.score == 26


def test_sparse_product_omits_absent_keys() -> None:
    product = transform({"product_name": "Apple Juice", "brands": "A, B"}, "12345678")
    payload = product.to_payload()

    assert payload == {"barcode": "12345678", "name": "Apple Juice", "brand": "A"}
    for key in ("categories", "ecoscore", "nutriments", "nutriscore", "novaGroup"):
        assert key not in payload


def test_empty_record_yields_only_barcode() -> None:
    assert transform({}, "12345678").to_payload() == {"barcode": "12345678"}


def test_nova_group_zero_is_present() -> None:
    payload = transform({"nova_group": 0}, "12345678").to_payload()

    assert payload["novaGroup"] == 0


def test_nova_group_numeric_string_coerced() -> None:
    assert transform({"nova_group": "3"}, "12345678").nova_group == 3
    assert "novaGroup" not in transform({"nova_group": "n/a"}, "12345678").to_payload()


def test_null_values_are_absent() -> None:
    raw = {"product_name": None, "nova_group": None, "ecoscore_score": None, "nutriments": None}

    assert transform(raw, "12345678").to_payload() == {"barcode": "12345678"}


def test_brand_blank_first_token_omitted() -> None:
    assert "brand" not in transform({"brands": " , Other"}, "12345678").to_payload()
    assert "brand" not in transform({"brands": ""}, "12345678").to_payload()


def test_empty_tag_list_is_kept_as_present() -> None:
    payload = transform({"categories_tags": []}, "12345678").to_payload()

    assert payload["categories"] == []
    assert "allergens" not in payload


def test_ecoscore_with_only_score_zero() -> None:
    payload = transform({"ecoscore_score": 0}, "12345678").to_payload()

    assert payload["ecoscore"] == {"score": 0}


def test_nutriments_only_present_fields() -> None:
    raw = {"nutriments": {"proteins_100g": 3.2, "salt_100g": "0.5", "fat_100g": "unknown"}}

    payload = transform(raw, "12345678").to_payload()

    assert payload["nutriments"] == {"proteins_100g": 3.2, "salt_100g": 0.5}


def test_nutriments_without_known_fields_omitted() -> None:
    raw = {"nutriments": {"energy-kj_100g": 100, "vitamin-c_100g": 0.01}}

    assert "nutriments" not in transform(raw, "12345678").to_payload()


def test_nutriscore_falls_back_to_nutrition_grade() -> None:
    payload = transform({"nutrition_grades": "b"}, "12345678").to_payload()

    assert payload["nutritionGrade"] == "b"
    assert payload["nutriscore"] == {"grade": "b"}


def test_nutriscore_prefers_dedicated_grade() -> None:
    raw = {"nutriscore_grade": "a", "nutrition_grades": "c"}

    assert transform(raw, "12345678").to_payload()["nutriscore"] == {"grade": "a"}


def test_nutriscore_score_from_details_only() -> None:
    payload = transform({"nutriscore_data": {"score": -2}}, "12345678").to_payload()

    assert payload["nutriscore"] == {"score": -2}


def test_malformed_shapes_are_ignored() -> None:
    raw = {
        "product_name": 42,
        "categories_tags": "en:snacks",
        "allergens_tags": ["en:milk", 7, None],
        "nutriments": ["proteins_100g"],
        "nutriscore_data": "26",
        "nova_group": True,
    }

    payload = transform(raw, "12345678").to_payload()

    assert payload == {"barcode": "12345678", "allergens": ["milk"]}


def test_oversized_integers_are_absent() -> None:
    raw = {
        "nutriments": {"proteins_100g": 10**400, "fat_100g": 1.5},
        "nova_group": 10**400,
        "ecoscore_score": 10**400,
    }

    payload = transform(raw, "12345678").to_payload()

    assert payload == {"barcode": "12345678", "nutriments": {"fat_100g": 1.5}}


def test_clean_tag() -> None:
    assert clean_tag("en:breakfast-cereals") == "breakfast cereals"
    assert clean_tag("de:milch") == "milch"
    assert clean_tag("no-prefix-here") == "no prefix here"
    assert clean_tag("eng:kept") == "eng:kept"


def test_requested_fields_cover_transformer_inputs() -> None:
    for field in ("product_name", "brands", "nutriments", "nutriscore_data", "nova_group"):
        assert field in PRODUCT_FIELDS
