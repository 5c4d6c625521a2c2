import os
import uuid

import pytest
pytestmark = pytest.mark.integration

from game_recommender.config import MongoConfig
from game_recommender.encode_features import run_encoding_job
from game_recommender.mongo_loader import MongoGameCatalog, get_collections, mongo_client
from game_recommender.service.recommender_service import RecommenderService
from game_recommender.validators import validate_feature_frame
from game_recommender.writers import MongoFeatureStoreWriter

MONGO_URI = os.getenv("MONGO_URI")


@pytest.mark.skipif(not MONGO_URI, reason="MONGO_URI not set")
def test_encode_and_recommend_against_live_mongo(sample_catalog, seed_names, quiet_logger):
    config = MongoConfig(uri=MONGO_URI, db_name=f"game_rec_test_{uuid.uuid4().hex[:8]}")

    with mongo_client(config, logger=quiet_logger) as client:
        try:
            db = client[config.db_name]
            games, features = get_collections(db, config)
            games.insert_many(
                [
                    {
                        "steam_appid": int(item.identifier),
                        "name": item.name,
                        "genres": list(item.genres),
                        "categories": list(item.categories),
                        "platforms": list(item.platforms),
                        "review_score": item.review_score,
                        "metacritic": item.metacritic,
                        "price_initial_usd": item.price,
                        "required_age": item.required_age,
                        "n_achievements": item.n_achievements,
                        "positive_percentual": item.positive_ratio,
                    }
                    for item in sample_catalog.iter_all_items()
                ]
            )

            catalog = MongoGameCatalog(db, config, logger=quiet_logger)
            writer = MongoFeatureStoreWriter(features, logger=quiet_logger)

            summary = run_encoding_job(catalog, writer, batch_size=3, logger=quiet_logger)
            frame = writer.load_feature_frame()
            response = RecommenderService(catalog, logger=quiet_logger).recommend(seed_names)
        finally:
            client.drop_database(config.db_name)

    assert summary.total == len(sample_catalog)
    validate_feature_frame(frame)
    assert len(frame) == len(sample_catalog)
    assert response.recommendations[0].name == "Elden Ring"
