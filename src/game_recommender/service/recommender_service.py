"""
Service layer for the game recommender.

This module orchestrates one recommendation request:
    seed names -> seed games -> user profile -> candidate scoring -> top-K.

Catalog access is injected (any object satisfying `CatalogReader`), so the
same service runs against MongoDB in production and an in-memory catalog in
tests and demos.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..catalog import CatalogItem, CatalogReader
from ..config import RecommenderConfig
from ..core.ranking import RankParams, RecommendationResult, rank_candidates
from ..logging_utils import configure_logger
from ..similarity_engine import GameSimilarityEngine, ScoringWeights, UserProfile

REQUIRED_SEED_COUNT = 3


class SeedListError(ValueError):
    """The seed name list is not exactly three distinct, non-empty names."""


class ResolutionError(Exception):
    """
    Raised when fewer than three seed names resolve to catalog games.

    Attributes
    ----------
    requested:
        The names supplied by the caller.
    found_names:
        Names of the games that were found.
    """

    def __init__(self, requested: Sequence[str], found_names: Sequence[str]) -> None:
        self.requested = list(requested)
        self.found_names = list(found_names)
        super().__init__(
            f"Only found {self.found_count} games in database: {', '.join(self.found_names)}"
        )

    @property
    def found_count(self) -> int:
        return len(self.found_names)


@dataclass(frozen=True)
class RecommendationResponse:
    recommendations: List[RecommendationResult]
    seed_games: List[CatalogItem]


def _validate_seed_names(names: Sequence[str]) -> List[str]:
    cleaned = [name.strip() for name in names if isinstance(name, str)]
    if len(cleaned) != REQUIRED_SEED_COUNT or any(not name for name in cleaned):
        raise SeedListError(f"Please provide exactly {REQUIRED_SEED_COUNT} game names")
    if len(set(cleaned)) != REQUIRED_SEED_COUNT:
        raise SeedListError(f"Please provide {REQUIRED_SEED_COUNT} distinct game names")
    return cleaned


class RecommenderService:
    """
    High-level service for the three-liked-games recommendation use case.

    Design principles:
        - No connection management here; the catalog reader is injected.
        - A fresh random source per request, seeded when configured, so that
          fallback scores are reproducible.
    """

    def __init__(
        self,
        catalog: CatalogReader,
        config: Optional[RecommenderConfig] = None,
        weights: Optional[ScoringWeights] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._catalog = catalog
        self._config = config or RecommenderConfig()
        self._weights = weights or ScoringWeights()
        self.logger = logger or configure_logger("game_recommender.service")

    def _new_rng(self) -> random.Random:
        return random.Random(self._config.random_seed)

    def resolve_seed_games(self, names: Sequence[str]) -> List[CatalogItem]:
        """
        Look up the seed games, keeping one record per requested name.

        Raises:
            SeedListError: Not exactly three distinct names.
            ResolutionError: Fewer than three names matched a catalog game.
        """
        cleaned = _validate_seed_names(names)
        found = self._catalog.get_items_by_names(cleaned)

        by_name = {}
        for item in found:
            by_name.setdefault(item.name, item)
        seeds = [by_name[name] for name in cleaned if name in by_name]

        if len(seeds) != REQUIRED_SEED_COUNT:
            self.logger.info(
                "Seed games could not all be resolved",
                extra={"event": "service_resolution_failed", "count": len(seeds)},
            )
            raise ResolutionError(cleaned, [item.name for item in seeds])
        return seeds

    def recommend(self, names: Sequence[str], top_k: Optional[int] = None) -> RecommendationResponse:
        """
        Recommend games similar to the three named games.

        Returns
        -------
        RecommendationResponse
            Ranked recommendations (at most `top_k`) and the resolved seed games.

        Raises
        ------
        ValueError
            If `top_k` is given and not positive.
        """
        limit = self._config.top_k if top_k is None else top_k
        if limit <= 0:
            raise ValueError(f"top_k must be positive, got {limit}")

        seeds = self.resolve_seed_games(names)
        profile = UserProfile.from_items(seeds)

        self.logger.info(
            "Generating recommendations",
            extra={"event": "service_recommend_start", "top_k": limit},
        )

        candidates = self._catalog.get_all_items_excluding(
            [item.name for item in seeds], self._config.candidate_limit
        )

        rng = self._new_rng()
        engine = GameSimilarityEngine(weights=self._weights, rng=rng, logger=self.logger)
        recommendations = rank_candidates(
            profile,
            candidates,
            scorer=engine,
            params=RankParams(top_k=limit, fallback_pool_size=self._config.fallback_pool_size),
            rng=rng,
            logger=self.logger,
        )

        self.logger.info(
            "Recommendations generated",
            extra={"event": "service_recommend_done", "count": len(recommendations)},
        )
        return RecommendationResponse(recommendations=recommendations, seed_games=seeds)
