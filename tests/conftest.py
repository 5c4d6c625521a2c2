import logging

import pytest

from game_recommender.catalog import CatalogItem, InMemoryGameCatalog


def make_game(identifier, name=None, **overrides):
    """CatalogItem with sensible defaults; tag lists accept plain lists."""
    values = {
        "genres": (),
        "categories": (),
        "platforms": (),
        "review_score": None,
        "metacritic": None,
        "price": None,
        "required_age": None,
        "n_achievements": None,
        "positive_ratio": None,
    }
    values.update(overrides)
    for key in ("genres", "categories", "platforms"):
        values[key] = tuple(values[key])
    return CatalogItem(identifier=str(identifier), name=name or f"Game {identifier}", **values)


@pytest.fixture
def game_factory():
    return make_game


@pytest.fixture
def quiet_logger():
    logger = logging.getLogger("tests.game_recommender")
    logger.handlers = []
    logger.propagate = True
    return logger


@pytest.fixture
def sample_catalog():
    """Small catalog: three action RPG seeds plus mixed candidates."""
    items = [
        make_game(
            "100", "Dark Souls III",
            genres=["Action", "RPG"],
            categories=["Single-player", "Online PvP"],
            platforms=["windows"],
            review_score=89, metacritic=89, price=59.99,
            required_age=16, n_achievements=43, positive_ratio=94,
        ),
        make_game(
            "200", "The Witcher 3: Wild Hunt",
            genres=["RPG", "Adventure"],
            categories=["Single-player", "Steam Cloud"],
            platforms=["windows"],
            review_score=93, metacritic=92, price=39.99,
            required_age=18, n_achievements=78, positive_ratio=96,
        ),
        make_game(
            "300", "Monster Hunter: World",
            genres=["Action"],
            categories=["Single-player", "Multi-player", "Co-op"],
            platforms=["windows"],
            review_score=85, metacritic=88, price=29.99,
            required_age=16, n_achievements=51, positive_ratio=88,
        ),
        make_game(
            "400", "Elden Ring",
            genres=["Action", "RPG"],
            categories=["Single-player", "Online PvP", "Co-op"],
            platforms=["windows"],
            review_score=92, metacritic=94, price=59.99,
            required_age=16, n_achievements=42, positive_ratio=92,
        ),
        make_game(
            "500", "Stardew Valley",
            genres=["Indie", "Simulation", "RPG"],
            categories=["Single-player", "Multi-player", "Co-op"],
            platforms=["windows", "mac", "linux"],
            review_score=95, metacritic=89, price=14.99,
            required_age=0, n_achievements=40, positive_ratio=98,
        ),
        make_game(
            "600", "Counter-Strike 2",
            genres=["Action", "Free to Play"],
            categories=["Multi-player", "Online PvP"],
            platforms=["windows", "linux"],
            review_score=80, metacritic=83, price=0,
            required_age=0, n_achievements=1, positive_ratio=86,
        ),
        make_game(
            "700", "Untagged Prototype",
        ),
    ]
    return InMemoryGameCatalog(items)


SEED_NAMES = ["Dark Souls III", "The Witcher 3: Wild Hunt", "Monster Hunter: World"]


@pytest.fixture
def seed_names():
    return list(SEED_NAMES)
