from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

import pandas as pd

from ..catalog import CatalogItem
from ..logging_utils import configure_logger
from ..similarity_engine import UserProfile

LAST_RESORT_SCORE_RANGE = (0.1, 0.5)


@dataclass(frozen=True)
class RankParams:
    top_k: int = 5
    # Prefix of the candidate list sampled when every score collapses to zero
    fallback_pool_size: int = 50


@dataclass(frozen=True)
class RecommendationResult:
    identifier: str
    name: str
    score: float
    genres: Tuple[str, ...] = ()
    categories: Tuple[str, ...] = ()
    platforms: Tuple[str, ...] = ()

    @classmethod
    def from_item(cls, item: CatalogItem, score: float) -> "RecommendationResult":
        return cls(
            identifier=item.identifier,
            name=item.name,
            score=score,
            genres=item.genres,
            categories=item.categories,
            platforms=item.platforms,
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "steam_appid": self.identifier,
            "name": self.name,
            "similarity_score": self.score,
            "genres": list(self.genres),
            "categories": list(self.categories),
            "platforms": list(self.platforms),
        }


class SimilarityScorer(Protocol):
    def score(self, profile: UserProfile, candidate: CatalogItem) -> float:
        ...

    def fallback_score(self, profile: UserProfile, candidate: CatalogItem) -> float:
        ...


def _score_candidate(
    scorer: SimilarityScorer,
    profile: UserProfile,
    candidate: CatalogItem,
    logger: logging.Logger,
) -> float:
    similarity = scorer.score(profile, candidate)
    if math.isnan(similarity):
        logger.warning(
            "NaN primary similarity, using fallback",
            extra={"event": "ranking_nan_primary", "game": candidate.name},
        )
        similarity = 0.0

    if similarity == 0:
        similarity = scorer.fallback_score(profile, candidate)

    if math.isnan(similarity):
        return similarity
    return max(0.0, min(1.0, similarity))


def _stable_rank(results: List[RecommendationResult]) -> List[RecommendationResult]:
    """Score descending; ties keep candidate input order."""
    if not results:
        return []
    frame = pd.DataFrame(
        {"position": range(len(results)), "score": [r.score for r in results]}
    )
    frame = frame.sort_values(["score", "position"], ascending=[False, True])
    return [results[int(pos)] for pos in frame["position"]]


def _last_resort(
    candidates: Sequence[CatalogItem],
    params: RankParams,
    rng: random.Random,
) -> List[RecommendationResult]:
    pool = list(candidates[: params.fallback_pool_size])
    rng.shuffle(pool)
    low, high = LAST_RESORT_SCORE_RANGE
    return [
        RecommendationResult.from_item(item, low + rng.random() * (high - low))
        for item in pool[: params.top_k]
    ]


def rank_candidates(
    profile: UserProfile,
    candidates: Sequence[CatalogItem],
    *,
    scorer: SimilarityScorer,
    params: Optional[RankParams] = None,
    rng: Optional[random.Random] = None,
    logger: Optional[logging.Logger] = None,
) -> List[RecommendationResult]:
    """
    Score every candidate that is not a seed game and return the top_k.

    If nothing usable remains, or every kept score is exactly 0, a random
    sample of the first `fallback_pool_size` candidates is returned instead,
    each with a random score in [0.1, 0.5).
    """
    params = params or RankParams()
    rng = rng or random.Random()
    _logger = logger or configure_logger("game_recommender.ranking")

    eligible = [c for c in candidates if c.identifier not in profile.seed_identifiers]

    scored: List[RecommendationResult] = []
    for candidate in eligible:
        similarity = _score_candidate(scorer, profile, candidate, _logger)
        if math.isnan(similarity):
            _logger.warning(
                "Discarding candidate with NaN similarity",
                extra={"event": "ranking_nan_discarded", "game": candidate.name},
            )
            continue
        scored.append(RecommendationResult.from_item(candidate, similarity))

    top = _stable_rank(scored)[: params.top_k]

    if not top or all(result.score == 0 for result in top):
        _logger.warning(
            "All similarities are zero or invalid, using random fallback",
            extra={"event": "ranking_last_resort", "count": len(eligible)},
        )
        top = _last_resort(eligible, params, rng)

    _logger.info(
        "Candidates ranked",
        extra={"event": "ranking_done", "count": len(eligible), "top_k": params.top_k},
    )
    return top
