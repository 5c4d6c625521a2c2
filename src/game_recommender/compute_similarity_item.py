"""
Orchestrator for the offline game-game cosine similarity matrix.

Reads the stored feature vectors, compares them position-for-position and
writes the resulting matrix to CSV. No scoring logic lives here.
"""

from __future__ import annotations

import logging

from .config import load_app_config
from .logging_utils import configure_logger
from .mongo_loader import get_collections, mongo_client
from .similarity_engine import FeatureVectorSimilarityEngine
from .writers import MongoFeatureStoreWriter, save_similarity_matrix_to_csv


def main() -> None:
    """
    Entry point for the item-item similarity computation pipeline.

    Steps:
        1. Load configuration (Mongo settings, output path).
        2. Load stored feature vectors from MongoDB.
        3. Compute item-item cosine similarity.
        4. Save the resulting matrix to CSV.
    """
    logger = configure_logger(
        name="game_recommender.similarity.item_item",
        level=logging.INFO,
    )

    logger.info(
        "Starting item-item similarity computation pipeline",
        extra={"event": "pipeline_start"},
    )

    app_config = load_app_config()

    with mongo_client(config=app_config.mongo, logger=logger) as client:
        db = client[app_config.mongo.db_name]
        _, features_collection = get_collections(db, app_config.mongo)
        feature_frame = MongoFeatureStoreWriter(features_collection, logger=logger).load_feature_frame()

    engine = FeatureVectorSimilarityEngine(logger=logger)
    similarity_df = engine.run_full_pipeline(feature_frame)

    save_similarity_matrix_to_csv(
        similarity_df=similarity_df,
        output_path=app_config.encoding.similarity_output_csv_path,
        logger=logger,
    )

    logger.info(
        "Item-item similarity computation pipeline completed successfully",
        extra={"event": "pipeline_end"},
    )

    print(f"Item-item similarity matrix saved to: {app_config.encoding.similarity_output_csv_path}")


if __name__ == "__main__":
    main()
