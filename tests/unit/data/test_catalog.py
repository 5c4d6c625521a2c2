import math

import pytest

from game_recommender.catalog import CatalogItem, InMemoryGameCatalog


def test_from_document_maps_source_keys():
    doc = {
        "_id": "ignored",
        "steam_appid": 1245620,
        "name": "Elden Ring",
        "genres": ["Action", "RPG"],
        "categories": ["Single-player"],
        "platforms": ["windows"],
        "review_score": 92,
        "metacritic": "94",
        "price_initial_usd": 59.99,
        "required_age": 16,
        "n_achievements": 42,
        "positive_percentual": 92.5,
    }

    item = CatalogItem.from_document(doc)

    assert item.identifier == "1245620"
    assert item.genres == ("Action", "RPG")
    assert item.metacritic == 94.0
    assert item.price == 59.99
    assert item.positive_ratio == 92.5


def test_from_document_coerces_loose_values():
    item = CatalogItem.from_document(
        {
            "_id": 7,
            "genres": None,
            "categories": "Single-player",
            "platforms": ["windows", None, 3],
            "review_score": math.nan,
            "metacritic": "n/a",
            "price_initial_usd": True,
        }
    )

    assert item.identifier == "7"
    assert item.name == ""
    assert item.genres == ()
    assert item.categories == ("Single-player",)
    assert item.platforms == ("windows",)
    assert item.review_score is None
    assert item.metacritic is None
    assert item.price is None
    assert item.numeric_value("price") == 0.0


def test_from_document_without_identifier_raises():
    with pytest.raises(ValueError):
        CatalogItem.from_document({"name": "Orphan"})


def test_lookup_by_exact_name(sample_catalog, seed_names):
    items = sample_catalog.get_items_by_names(seed_names + ["dark souls iii", "Missing"])
    assert sorted(item.identifier for item in items) == ["100", "200", "300"]


def test_candidates_exclude_names_and_respect_limit(sample_catalog, seed_names):
    candidates = sample_catalog.get_all_items_excluding(seed_names, limit=3)
    assert [c.identifier for c in candidates] == ["400", "500", "600"]
    assert sample_catalog.get_all_items_excluding(seed_names, limit=0) == []


def test_iter_all_items_in_identifier_order(game_factory):
    catalog = InMemoryGameCatalog([game_factory("b"), game_factory("a"), game_factory("c")])
    assert [item.identifier for item in catalog.iter_all_items()] == ["a", "b", "c"]
    assert len(catalog) == 3


def test_numeric_ranges_skip_untagged_rows(sample_catalog):
    ranges = sample_catalog.get_numeric_attribute_ranges()

    assert ranges.review_score.minimum == 80.0
    assert ranges.review_score.maximum == 95.0
    assert ranges.price.minimum == 0.0
    assert ranges.price.maximum == 59.99


def test_from_documents(game_factory):
    catalog = InMemoryGameCatalog.from_documents(
        [{"steam_appid": 1, "name": "A"}, {"steam_appid": 2, "name": "B"}]
    )
    assert [item.name for item in catalog.iter_all_items()] == ["A", "B"]
