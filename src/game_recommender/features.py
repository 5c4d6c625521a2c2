"""
Feature encoding for catalog items.

Each game is turned into 32 boolean one-hot fields (19 genre, 3 platform,
10 category) and 6 normalized numeric fields, then flattened into a
38-position vector. `FEATURE_LAYOUT` is the single source of truth for the
vector order: stored vectors are only comparable position-for-position if
they were produced from the same layout, so any change to it must bump
`FEATURE_VECTOR_VERSION`.

Tag classification is keyword containment on lower-cased, trimmed tags. One
raw tag may set several fields ("Action RPG" sets both genre_action and
genre_rpg).
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields, replace
from operator import attrgetter
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple

import numpy as np

from .catalog import CatalogItem
from .logging_utils import configure_logger
from .normalizer import NormalizationStatistics

FEATURE_VECTOR_VERSION = 1

KeywordTable = Tuple[Tuple[str, Tuple[str, ...]], ...]

GENRE_KEYWORDS: KeywordTable = (
    ("genre_action", ("action",)),
    ("genre_adventure", ("adventure",)),
    ("genre_rpg", ("rpg", "role-playing")),
    ("genre_strategy", ("strategy",)),
    ("genre_simulation", ("simulation",)),
    ("genre_sports", ("sports",)),
    ("genre_racing", ("racing",)),
    ("genre_casual", ("casual",)),
    ("genre_indie", ("indie",)),
    ("genre_massively_multiplayer", ("massively multiplayer", "mmo")),
    ("genre_free_to_play", ("free to play",)),
    ("genre_early_access", ("early access",)),
    ("genre_mature", ("mature",)),
    ("genre_puzzle", ("puzzle",)),
    ("genre_shooter", ("shooter",)),
    ("genre_horror", ("horror",)),
    ("genre_survival", ("survival",)),
    ("genre_open_world", ("open world",)),
    ("genre_sandbox", ("sandbox",)),
)

PLATFORM_KEYWORDS: KeywordTable = (
    ("platform_windows", ("windows",)),
    ("platform_mac", ("mac",)),
    ("platform_linux", ("linux",)),
)

CATEGORY_KEYWORDS: KeywordTable = (
    ("category_single_player", ("single",)),
    ("category_multi_player", ("multi",)),
    ("category_coop", ("co-op",)),
    ("category_online_pvp", ("pvp",)),
    ("category_achievements", ("achievement",)),
    ("category_cloud_saves", ("cloud",)),
    ("category_trading_cards", ("trading",)),
    ("category_workshop", ("workshop",)),
    ("category_vr_support", ("vr",)),
    ("category_controller_support", ("controller", "gamepad")),
)

# (encoded field, CatalogItem numeric attribute)
NORMALIZED_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("normalized_review_score", "review_score"),
    ("normalized_metacritic", "metacritic"),
    ("normalized_price", "price"),
    ("normalized_required_age", "required_age"),
    ("normalized_n_achievements", "n_achievements"),
    ("normalized_positive_ratio", "positive_ratio"),
)

GENRE_FIELDS = tuple(name for name, _ in GENRE_KEYWORDS)
PLATFORM_FIELDS = tuple(name for name, _ in PLATFORM_KEYWORDS)
CATEGORY_FIELDS = tuple(name for name, _ in CATEGORY_KEYWORDS)
NUMERIC_FEATURE_FIELDS = tuple(name for name, _ in NORMALIZED_FIELDS)


@dataclass(frozen=True)
class EncodedFeatures:
    """Encoded representation of one catalog item."""

    identifier: str
    name: str

    genre_action: bool = False
    genre_adventure: bool = False
    genre_rpg: bool = False
    genre_strategy: bool = False
    genre_simulation: bool = False
    genre_sports: bool = False
    genre_racing: bool = False
    genre_casual: bool = False
    genre_indie: bool = False
    genre_massively_multiplayer: bool = False
    genre_free_to_play: bool = False
    genre_early_access: bool = False
    genre_mature: bool = False
    genre_puzzle: bool = False
    genre_shooter: bool = False
    genre_horror: bool = False
    genre_survival: bool = False
    genre_open_world: bool = False
    genre_sandbox: bool = False

    platform_windows: bool = False
    platform_mac: bool = False
    platform_linux: bool = False

    category_single_player: bool = False
    category_multi_player: bool = False
    category_coop: bool = False
    category_online_pvp: bool = False
    category_achievements: bool = False
    category_cloud_saves: bool = False
    category_trading_cards: bool = False
    category_workshop: bool = False
    category_vr_support: bool = False
    category_controller_support: bool = False

    normalized_review_score: float = 0.0
    normalized_metacritic: float = 0.0
    normalized_price: float = 0.0
    normalized_required_age: float = 0.0
    normalized_n_achievements: float = 0.0
    normalized_positive_ratio: float = 0.0

    feature_vector: Tuple[float, ...] = ()

    def as_array(self) -> np.ndarray:
        return np.asarray(self.feature_vector, dtype=float)

    def as_record(self) -> Dict[str, Any]:
        """Flat dict of every field; the vector is a plain list."""
        record = asdict(self)
        record["feature_vector"] = list(self.feature_vector)
        return record

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "EncodedFeatures":
        """
        Rebuild from a stored record, ignoring storage-only keys (_id, version, timestamps).
        """
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in record.items() if key in known}
        if "identifier" not in values and "_id" in record:
            values["identifier"] = str(record["_id"])
        values["feature_vector"] = tuple(float(v) for v in values.get("feature_vector") or ())
        return cls(**values)


Accessor = Callable[[EncodedFeatures], Any]

# Canonical vector order: genre (19) -> platform (3) -> category (10) -> numeric (6).
FEATURE_LAYOUT: Tuple[Tuple[str, Accessor], ...] = tuple(
    (field_name, attrgetter(field_name))
    for field_name in GENRE_FIELDS + PLATFORM_FIELDS + CATEGORY_FIELDS + NUMERIC_FEATURE_FIELDS
)

FEATURE_VECTOR_LENGTH = len(FEATURE_LAYOUT)


def _normalize_tags(tags: Iterable[str]) -> Tuple[str, ...]:
    return tuple(tag.strip().lower() for tag in tags if isinstance(tag, str))


def classify_tags(tags: Iterable[str], table: KeywordTable) -> Dict[str, bool]:
    """
    Map raw tags onto the one-hot fields of `table`.

    A field is set when any tag contains any of its keywords.
    """
    normalized = _normalize_tags(tags)
    return {
        field_name: any(keyword in tag for tag in normalized for keyword in keywords)
        for field_name, keywords in table
    }


def assemble_vector(features: EncodedFeatures) -> Tuple[float, ...]:
    return tuple(float(accessor(features)) for _, accessor in FEATURE_LAYOUT)


class FeatureEncoder:
    """
    Encodes catalog items against fixed normalization statistics.

    The statistics are computed once per batch run and shared by every item
    so that all vectors of a run live in the same numeric space.
    """

    def __init__(
        self,
        statistics: NormalizationStatistics,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.statistics = statistics
        self.logger = logger or configure_logger("game_recommender.features")

    def encode(self, item: CatalogItem) -> EncodedFeatures:
        values: Dict[str, Any] = {}
        values.update(classify_tags(item.genres, GENRE_KEYWORDS))
        values.update(classify_tags(item.platforms, PLATFORM_KEYWORDS))
        values.update(classify_tags(item.categories, CATEGORY_KEYWORDS))

        for encoded_field, source_field in NORMALIZED_FIELDS:
            values[encoded_field] = self.statistics.normalize_field(
                source_field, item.numeric_value(source_field)
            )

        features = EncodedFeatures(identifier=item.identifier, name=item.name, **values)
        features = replace(features, feature_vector=assemble_vector(features))

        self.logger.debug(
            "Item encoded",
            extra={"event": "encode_item", "game_id": item.identifier},
        )
        return features
