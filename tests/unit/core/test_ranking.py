import random

import pytest

from game_recommender.core.ranking import (
    LAST_RESORT_SCORE_RANGE,
    RankParams,
    RecommendationResult,
    rank_candidates,
)
from game_recommender.similarity_engine import GameSimilarityEngine, UserProfile


class StubScorer:
    """Scores from lookup tables keyed by identifier."""

    def __init__(self, primary=None, fallback=None, default=0.0):
        self.primary = primary or {}
        self.fallback = fallback or {}
        self.default = default
        self.fallback_calls = []

    def score(self, profile, candidate):
        return self.primary.get(candidate.identifier, self.default)

    def fallback_score(self, profile, candidate):
        self.fallback_calls.append(candidate.identifier)
        return self.fallback.get(candidate.identifier, 0.0)


@pytest.fixture
def seeds(game_factory):
    return [game_factory(f"s{i}", genres=["Action"]) for i in range(3)]


@pytest.fixture
def profile(seeds):
    return UserProfile.from_items(seeds)


def test_returns_top_k_in_descending_order(game_factory, profile, quiet_logger):
    candidates = [game_factory(str(i)) for i in range(6)]
    scorer = StubScorer(primary={"0": 0.2, "1": 0.9, "2": 0.5, "3": 0.7, "4": 0.1, "5": 0.3})

    results = rank_candidates(
        profile, candidates, scorer=scorer, params=RankParams(top_k=3), logger=quiet_logger
    )

    assert [r.identifier for r in results] == ["1", "3", "2"]
    assert [r.score for r in results] == [0.9, 0.7, 0.5]


def test_ties_keep_candidate_order(game_factory, profile, quiet_logger):
    candidates = [game_factory(i) for i in ("a", "b", "c", "d")]
    scorer = StubScorer(primary={"a": 0.4, "b": 0.6, "c": 0.6, "d": 0.4})

    results = rank_candidates(profile, candidates, scorer=scorer, logger=quiet_logger)

    assert [r.identifier for r in results] == ["b", "c", "a", "d"]


def test_seed_games_are_never_recommended(game_factory, seeds, profile, quiet_logger):
    candidates = seeds + [game_factory("x")]
    scorer = StubScorer(primary={"s0": 1.0, "s1": 1.0, "s2": 1.0, "x": 0.2})

    results = rank_candidates(profile, candidates, scorer=scorer, logger=quiet_logger)

    assert [r.identifier for r in results] == ["x"]


def test_zero_primary_score_uses_fallback(game_factory, profile, quiet_logger):
    candidates = [game_factory("a"), game_factory("b")]
    scorer = StubScorer(primary={"a": 0.0, "b": 0.5}, fallback={"a": 0.25})

    results = rank_candidates(profile, candidates, scorer=scorer, logger=quiet_logger)

    assert scorer.fallback_calls == ["a"]
    assert [(r.identifier, r.score) for r in results] == [("b", 0.5), ("a", 0.25)]


def test_nan_primary_is_rescored_and_nan_fallback_is_discarded(game_factory, profile, quiet_logger):
    nan = float("nan")
    candidates = [game_factory("a"), game_factory("b"), game_factory("c")]
    scorer = StubScorer(
        primary={"a": nan, "b": nan, "c": 0.4},
        fallback={"a": 0.2, "b": nan},
    )

    results = rank_candidates(profile, candidates, scorer=scorer, logger=quiet_logger)

    assert [(r.identifier, r.score) for r in results] == [("c", 0.4), ("a", 0.2)]


def test_scores_are_clamped(game_factory, profile, quiet_logger):
    scorer = StubScorer(primary={"a": 1.7, "b": -0.2}, fallback={"b": 0.0})

    results = rank_candidates(
        profile, [game_factory("a"), game_factory("b")], scorer=scorer, logger=quiet_logger
    )

    assert results[0].score == 1.0
    # the only other result would be 0, so not all-zero: kept as is
    assert results[1].score == 0.0


def test_all_zero_scores_use_last_resort_sample(game_factory, profile, quiet_logger):
    candidates = [game_factory(str(i)) for i in range(80)]
    scorer = StubScorer(default=0.0)

    results = rank_candidates(
        profile,
        candidates,
        scorer=scorer,
        params=RankParams(top_k=5, fallback_pool_size=50),
        rng=random.Random(11),
        logger=quiet_logger,
    )

    low, high = LAST_RESORT_SCORE_RANGE
    assert len(results) == 5
    assert all(low <= r.score < high for r in results)
    # sample only comes from the first fallback_pool_size candidates
    assert all(int(r.identifier) < 50 for r in results)
    assert len({r.identifier for r in results}) == 5


def test_last_resort_is_reproducible_with_same_seed(game_factory, profile, quiet_logger):
    candidates = [game_factory(str(i)) for i in range(20)]

    def run():
        return rank_candidates(
            profile,
            candidates,
            scorer=StubScorer(),
            rng=random.Random(99),
            logger=quiet_logger,
        )

    assert run() == run()


def test_no_candidates_returns_empty(profile, quiet_logger):
    assert rank_candidates(profile, [], scorer=StubScorer(), logger=quiet_logger) == []


def test_fewer_candidates_than_top_k(game_factory, profile, quiet_logger):
    scorer = StubScorer(primary={"a": 0.3, "b": 0.6})
    results = rank_candidates(
        profile,
        [game_factory("a"), game_factory("b")],
        scorer=scorer,
        params=RankParams(top_k=10),
        logger=quiet_logger,
    )
    assert [r.identifier for r in results] == ["b", "a"]


def test_ranking_with_real_engine_is_deterministic(sample_catalog, seed_names, quiet_logger):
    seeds = sample_catalog.get_items_by_names(seed_names)
    profile = UserProfile.from_items(seeds)
    candidates = sample_catalog.get_all_items_excluding(seed_names, limit=100)

    def run():
        rng = random.Random(2024)
        engine = GameSimilarityEngine(rng=rng, logger=quiet_logger)
        return rank_candidates(profile, candidates, scorer=engine, rng=rng, logger=quiet_logger)

    first, second = run(), run()

    assert first == second
    assert first[0].name == "Elden Ring"
    assert all(0.0 <= r.score <= 1.0 for r in first)
    assert not {r.identifier for r in first} & profile.seed_identifiers


def test_result_as_dict():
    result = RecommendationResult(
        identifier="10", name="Portal", score=0.75, genres=("Puzzle",), platforms=("windows",)
    )
    assert result.as_dict() == {
        "steam_appid": "10",
        "name": "Portal",
        "similarity_score": 0.75,
        "genres": ["Puzzle"],
        "categories": [],
        "platforms": ["windows"],
    }
