from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.metrics.pairwise import cosine_similarity

from .catalog import CatalogItem
from .features import (
    CATEGORY_FIELDS,
    FEATURE_LAYOUT,
    GENRE_FIELDS,
    PLATFORM_FIELDS,
    EncodedFeatures,
)
from .logging_utils import configure_logger
from .validators import validate_feature_frame

NEUTRAL_PRICE_SIMILARITY = 0.5
FREE_VS_PAID_PRICE_SIMILARITY = 0.3
FALLBACK_SCORE_CAP = 0.8
FALLBACK_FLOOR_RANGE = (0.1, 0.3)
REVIEW_SCORE_SPAN = 100.0


@dataclass(frozen=True)
class ScoringWeights:
    """Weights of the primary similarity signals. They sum to 1.0."""
    genre: float = 0.40
    category: float = 0.25
    platform: float = 0.15
    review: float = 0.15
    price: float = 0.05


@dataclass(frozen=True)
class UserProfile:
    """
    Request-scoped aggregate of the seed games.

    Tag lists are the flattened union of the seeds' tags (duplicates kept;
    the Jaccard step deduplicates). Numeric means treat a missing value as 0.
    """
    genres: Tuple[str, ...] = ()
    categories: Tuple[str, ...] = ()
    platforms: Tuple[str, ...] = ()
    mean_review_score: float = 0.0
    mean_price: float = 0.0
    seed_count: int = 0
    seed_identifiers: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_items(cls, items: Sequence[CatalogItem]) -> "UserProfile":
        if not items:
            return cls()

        review_scores = [item.numeric_value("review_score") for item in items]
        prices = [item.numeric_value("price") for item in items]

        return cls(
            genres=tuple(tag for item in items for tag in item.genres if tag),
            categories=tuple(tag for item in items for tag in item.categories if tag),
            platforms=tuple(tag for item in items for tag in item.platforms if tag),
            mean_review_score=float(np.mean(review_scores)),
            mean_price=float(np.mean(prices)),
            seed_count=len(items),
            seed_identifiers=frozenset(item.identifier for item in items),
        )


@dataclass(frozen=True)
class SimilarityBreakdown:
    genre: float
    category: float
    platform: float
    review: float
    price: float
    total: float


def _normalized_tag_set(tags: Iterable[str]) -> FrozenSet[str]:
    return frozenset(
        tag.strip().lower() for tag in tags if isinstance(tag, str) and tag.strip()
    )


def _finite_or(value: float, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def jaccard_similarity(tags_a: Iterable[str], tags_b: Iterable[str]) -> float:
    """
    Jaccard index over case-normalized, trimmed, deduplicated tags.

    Two empty sets are treated as identical (1.0); exactly one empty set gives 0.0.
    """
    set_a = _normalized_tag_set(tags_a or ())
    set_b = _normalized_tag_set(tags_b or ())

    if not set_a and not set_b:
        return 1.0
    if not set_a or not set_b:
        return 0.0

    return len(set_a & set_b) / len(set_a | set_b)


def review_similarity(user_review_score: float, candidate_review_score: Optional[float]) -> float:
    """Closeness of review scores on a 0-100 scale; invalid input scores 0."""
    candidate = 0.0 if candidate_review_score is None else candidate_review_score
    diff = abs(_finite_or(user_review_score, math.nan) - _finite_or(candidate, math.nan))
    if math.isnan(diff):
        return 0.0
    return max(0.0, 1.0 - diff / REVIEW_SCORE_SPAN)


def price_similarity(user_price: float, candidate_price: Optional[float]) -> float:
    """
    Price closeness with explicit free-game handling.

    Both free -> 1.0, free vs paid -> 0.3, otherwise relative difference
    against the larger price. Anything unusable scores the neutral 0.5.
    """
    candidate = 0.0 if candidate_price is None else candidate_price

    if candidate == 0 and user_price == 0:
        return 1.0
    if candidate == 0 or user_price == 0:
        return FREE_VS_PAID_PRICE_SIMILARITY

    user = _finite_or(user_price, math.nan)
    cand = _finite_or(candidate, math.nan)
    if math.isnan(user) or math.isnan(cand):
        return NEUTRAL_PRICE_SIMILARITY

    max_price = max(user, cand)
    if max_price <= 0:
        return NEUTRAL_PRICE_SIMILARITY
    return max(0.0, 1.0 - abs(user - cand) / max_price)


class GameSimilarityEngine:
    """
    Scores one candidate game against a user profile.

    Primary score: weighted genre/category/platform Jaccard plus review and
    price closeness, clamped to [0, 1]. When the primary score is exactly 0
    a genre substring-overlap estimate is used instead, floored by a random
    value in [0.1, 0.3) drawn from the injected random source.
    """

    def __init__(
        self,
        weights: Optional[ScoringWeights] = None,
        rng: Optional[random.Random] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.weights = weights or ScoringWeights()
        self.rng = rng or random.Random()
        self.logger = logger or configure_logger("game_recommender.similarity")

    def breakdown(self, profile: UserProfile, candidate: CatalogItem) -> SimilarityBreakdown:
        genre = _finite_or(jaccard_similarity(profile.genres, candidate.genres), 0.0)
        category = _finite_or(jaccard_similarity(profile.categories, candidate.categories), 0.0)
        platform = _finite_or(jaccard_similarity(profile.platforms, candidate.platforms), 0.0)
        review = _finite_or(review_similarity(profile.mean_review_score, candidate.review_score), 0.0)
        price = _finite_or(
            price_similarity(profile.mean_price, candidate.price), NEUTRAL_PRICE_SIMILARITY
        )

        w = self.weights
        total = (
            genre * w.genre
            + category * w.category
            + platform * w.platform
            + review * w.review
            + price * w.price
        )
        total = max(0.0, min(1.0, _finite_or(total, 0.0)))

        return SimilarityBreakdown(
            genre=genre,
            category=category,
            platform=platform,
            review=review,
            price=price,
            total=total,
        )

    def score(self, profile: UserProfile, candidate: CatalogItem) -> float:
        if profile.seed_count == 0:
            return 0.0

        result = self.breakdown(profile, candidate)
        if result.total == 0:
            self.logger.debug(
                "Primary similarity collapsed to zero",
                extra={
                    "event": "similarity_zero",
                    "game": candidate.name,
                    "step": {
                        "genre": result.genre,
                        "category": result.category,
                        "platform": result.platform,
                        "review": result.review,
                        "price": result.price,
                    },
                },
            )
        return result.total

    def _random_floor(self) -> float:
        low, high = FALLBACK_FLOOR_RANGE
        return low + self.rng.random() * (high - low)

    def fallback_score(self, profile: UserProfile, candidate: CatalogItem) -> float:
        """
        Genre substring-overlap estimate, capped at 0.8 and floored randomly in [0.1, 0.3).
        """
        floor = self._random_floor()
        if profile.seed_count == 0:
            return floor

        user_genres = [tag.strip().lower() for tag in profile.genres if tag and tag.strip()]
        candidate_genres = [tag.strip().lower() for tag in candidate.genres if tag and tag.strip()]

        matches = [
            genre
            for genre in candidate_genres
            if any(user_genre in genre or genre in user_genre for user_genre in user_genres)
        ]

        similarity = 0.0
        if matches:
            denominator = max(len(candidate_genres), len(user_genres) / profile.seed_count)
            if denominator > 0:
                similarity = min(len(matches) / denominator, FALLBACK_SCORE_CAP)

        result = max(similarity, floor)
        self.logger.debug(
            "Fallback similarity used",
            extra={"event": "similarity_fallback", "game": candidate.name, "score": result},
        )
        return _finite_or(result, floor)


# ----------------------------------------------------------------------
# Offline similarity over stored feature vectors
# ----------------------------------------------------------------------


def _boolean_jaccard(a: Sequence[bool], b: Sequence[bool]) -> float:
    intersection = sum(1 for x, y in zip(a, b) if x and y)
    union = sum(1 for x, y in zip(a, b) if x or y)
    return 0.0 if union == 0 else intersection / union


def feature_group_breakdown(a: EncodedFeatures, b: EncodedFeatures) -> Dict[str, float]:
    """
    Explain the similarity of two encoded games per feature group.

    Group similarities are Jaccard over the boolean fields (0 when neither
    game sets any field of the group).
    """
    def _values(features: EncodedFeatures, names: Sequence[str]) -> Tuple[bool, ...]:
        return tuple(bool(getattr(features, name)) for name in names)

    return {
        "genre_similarity": _boolean_jaccard(_values(a, GENRE_FIELDS), _values(b, GENRE_FIELDS)),
        "platform_similarity": _boolean_jaccard(_values(a, PLATFORM_FIELDS), _values(b, PLATFORM_FIELDS)),
        "category_similarity": _boolean_jaccard(_values(a, CATEGORY_FIELDS), _values(b, CATEGORY_FIELDS)),
        "review_similarity": 1.0 - abs(a.normalized_review_score - b.normalized_review_score),
        "metacritic_similarity": 1.0 - abs(a.normalized_metacritic - b.normalized_metacritic),
        "overall_similarity": FeatureVectorSimilarityEngine.cosine(a.as_array(), b.as_array()),
    }


class FeatureVectorSimilarityEngine:
    """
    Cosine similarity between stored feature vectors.

    High-level workflow:
        1. Validate the stored feature frame.
        2. Expand vectors into an identifier-indexed matrix.
        3. Compute item-item cosine similarity.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or configure_logger("game_recommender.similarity")

    @staticmethod
    def cosine(vector_a: np.ndarray, vector_b: np.ndarray) -> float:
        a = np.asarray(vector_a, dtype=float)
        b = np.asarray(vector_b, dtype=float)
        if a.shape != b.shape:
            raise ValueError(f"Vectors must have the same length, got {a.shape} and {b.shape}")
        if not np.any(a) or not np.any(b):
            return 0.0
        return float(cosine_similarity(a.reshape(1, -1), b.reshape(1, -1))[0, 0])

    @staticmethod
    def profile_vector(vectors: Sequence[np.ndarray]) -> np.ndarray:
        """Element-wise mean of the seed vectors."""
        if len(vectors) == 0:
            raise ValueError("At least one vector is required to build a profile vector.")
        return np.mean(np.vstack([np.asarray(v, dtype=float) for v in vectors]), axis=0)

    def prepare_feature_matrix(self, feature_frame: pd.DataFrame) -> pd.DataFrame:
        """
        Rows: identifier
        Columns: feature layout names
        Values: vector components
        """
        self.logger.info(
            "Validating stored feature frame",
            extra={"event": "validate_feature_frame"},
        )
        validate_feature_frame(feature_frame)

        matrix = pd.DataFrame(
            np.vstack(feature_frame["feature_vector"].map(lambda v: np.asarray(v, dtype=float)).to_list()),
            index=feature_frame["identifier"].astype(str),
            columns=[name for name, _ in FEATURE_LAYOUT],
        )

        self.logger.info(
            "Feature matrix prepared",
            extra={"event": "prepare_feature_matrix_success", "shape": matrix.shape},
        )
        return matrix

    def compute_similarity(self, feature_matrix: pd.DataFrame) -> pd.DataFrame:
        self.logger.info(
            "Computing item-item cosine similarity",
            extra={"event": "compute_item_item_cosine", "shape": feature_matrix.shape},
        )

        similarity_df = pd.DataFrame(
            cosine_similarity(feature_matrix.values),
            index=feature_matrix.index,
            columns=feature_matrix.index,
        )

        self.logger.info(
            "Item-item cosine similarity computed",
            extra={"event": "compute_item_item_cosine_success", "shape": similarity_df.shape},
        )
        return similarity_df

    def run_full_pipeline(self, feature_frame: pd.DataFrame) -> pd.DataFrame:
        """
        Full pipeline: validate -> expand vectors -> compute similarity.
        """
        return self.compute_similarity(self.prepare_feature_matrix(feature_frame))
