"""
Sanity report over the encoded feature table.

Used after an encoding run to check vector widths, flag coverage and the
spread of the normalized scores, and to eyeball the closest action-game pairs.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
from sklearn.metrics.pairwise import cosine_similarity

from .config import load_app_config
from .logging_utils import configure_logger
from .mongo_loader import get_collections, mongo_client
from .writers import MongoFeatureStoreWriter


def _mean_or_none(series: pd.Series) -> Optional[float]:
    if series.empty:
        return None
    return float(series.astype(float).mean())


def _count_true(frame: pd.DataFrame, column: str) -> int:
    if column not in frame.columns:
        return 0
    return int(frame[column].fillna(False).astype(bool).sum())


def top_action_pairs(frame: pd.DataFrame, limit: int = 3) -> List[Dict[str, Any]]:
    """
    Most similar distinct pairs among games flagged genre_action.
    """
    if "genre_action" not in frame.columns:
        return []

    action = frame[frame["genre_action"].fillna(False).astype(bool)].reset_index(drop=True)
    if len(action) < 2:
        return []

    vectors = np.vstack(action["feature_vector"].map(lambda v: np.asarray(v, dtype=float)).to_list())
    sims = cosine_similarity(vectors)

    upper_i, upper_j = np.triu_indices(len(action), k=1)
    order = np.argsort(-sims[upper_i, upper_j], kind="stable")[:limit]

    return [
        {
            "game_a": action.loc[int(upper_i[k]), "name"],
            "game_b": action.loc[int(upper_j[k]), "name"],
            "cosine_similarity": round(float(sims[upper_i[k], upper_j[k]]), 4),
        }
        for k in order
    ]


def build_feature_report(frame: pd.DataFrame) -> Dict[str, Any]:
    """
    Summary statistics of the stored encodings.
    """
    if frame.empty:
        return {"total_games": 0}

    vector_lengths = frame["feature_vector"].map(lambda v: len(v) if v is not None else 0)
    review = frame.get("normalized_review_score", pd.Series(dtype=float))

    top_by_review = (
        frame.sort_values("normalized_review_score", ascending=False, kind="stable")
        .head(5)[["name", "normalized_review_score", "normalized_metacritic"]]
        .to_dict("records")
        if "normalized_review_score" in frame.columns
        else []
    )

    return {
        "total_games": int(len(frame)),
        "avg_vector_length": float(vector_lengths.mean()),
        "action_games": _count_true(frame, "genre_action"),
        "rpg_games": _count_true(frame, "genre_rpg"),
        "windows_games": _count_true(frame, "platform_windows"),
        "avg_normalized_review": _mean_or_none(review),
        "avg_normalized_metacritic": _mean_or_none(frame.get("normalized_metacritic", pd.Series(dtype=float))),
        "min_normalized_review": float(review.min()) if not review.empty else None,
        "max_normalized_review": float(review.max()) if not review.empty else None,
        "top_by_review": top_by_review,
        "top_action_pairs": top_action_pairs(frame),
    }


def main() -> None:
    logger = configure_logger(name="game_recommender.feature_validation", level=logging.INFO)
    app_config = load_app_config()

    with mongo_client(config=app_config.mongo, logger=logger) as client:
        db = client[app_config.mongo.db_name]
        _, features_collection = get_collections(db, app_config.mongo)
        frame = MongoFeatureStoreWriter(features_collection, logger=logger).load_feature_frame()

    report = build_feature_report(frame)
    logger.info(
        "Feature validation completed",
        extra={"event": "feature_validation_done", "total": report["total_games"]},
    )
    print(json.dumps(report, indent=2, default=str))


if __name__ == "__main__":
    main()
