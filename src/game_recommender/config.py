from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


class ConfigError(RuntimeError):
    """Raised when required configuration is missing or invalid."""


@dataclass(frozen=True)
class MongoConfig:
    """
    Configuration for connecting to MongoDB.

    Attributes:
        uri: Full MongoDB connection string (from environment).
        db_name: Name of the database.
        games_collection: Collection holding the released games catalog.
        features_collection: Collection holding one encoded feature record per game.
    """
    uri: str
    db_name: str = "game_recommender_db"
    games_collection: str = "released_games"
    features_collection: str = "game_features"


@dataclass(frozen=True)
class RecommenderConfig:
    """
    Request-time ranking policy.

    Attributes:
        top_k: Number of recommendations returned per request.
        candidate_limit: Maximum catalog items scored per request.
        fallback_pool_size: Prefix of the candidate list sampled by the last-resort path.
        random_seed: Seed for the fallback random source; None means unseeded.
    """
    top_k: int = 5
    candidate_limit: int = 100
    fallback_pool_size: int = 50
    random_seed: Optional[int] = None


@dataclass(frozen=True)
class EncodingConfig:
    """
    Configuration for the feature encoding batch job and offline similarity output.
    """
    batch_size: int = 100
    similarity_output_csv_path: Path = Path("data/game_similarity_item_item.csv")


@dataclass(frozen=True)
class AppConfig:
    """
    Top-level configuration object for the recommender jobs and API.
    """
    mongo: MongoConfig
    recommender: RecommenderConfig = field(default_factory=RecommenderConfig)
    encoding: EncodingConfig = field(default_factory=EncodingConfig)


def _positive_int_from_env(env_var_name: str, default: int) -> int:
    raw = os.getenv(env_var_name)
    if raw is None or not raw.strip():
        return default

    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"Environment variable {env_var_name!r} must be an integer, got {raw!r}.") from exc

    if value <= 0:
        raise ConfigError(f"Environment variable {env_var_name!r} must be positive, got {value}.")
    return value


def load_mongo_config_from_env(env_var_name: str = "MONGO_URI") -> MongoConfig:
    """
    Load MongoDB configuration from environment variables.

    Args:
        env_var_name: Name of the environment variable that stores the Mongo URI.

    Raises:
        ConfigError: If the environment variable is missing or empty.
    """
    load_dotenv()
    uri = os.getenv(env_var_name)

    if not uri:
        raise ConfigError(f"Environment variable {env_var_name!r} is not set or empty.")

    defaults = MongoConfig(uri=uri)
    return MongoConfig(
        uri=uri,
        db_name=os.getenv("MONGO_DB_NAME") or defaults.db_name,
        games_collection=os.getenv("MONGO_GAMES_COLLECTION") or defaults.games_collection,
        features_collection=os.getenv("MONGO_FEATURES_COLLECTION") or defaults.features_collection,
    )


def load_recommender_config_from_env() -> RecommenderConfig:
    """
    Load ranking policy constants, falling back to the reference deployment values.
    """
    load_dotenv()
    defaults = RecommenderConfig()

    seed_raw = os.getenv("GAME_REC_RANDOM_SEED")
    random_seed: Optional[int] = None
    if seed_raw is not None and seed_raw.strip():
        try:
            random_seed = int(seed_raw)
        except ValueError as exc:
            raise ConfigError(f"GAME_REC_RANDOM_SEED must be an integer, got {seed_raw!r}.") from exc

    return RecommenderConfig(
        top_k=_positive_int_from_env("GAME_REC_TOP_K", defaults.top_k),
        candidate_limit=_positive_int_from_env("GAME_REC_CANDIDATE_LIMIT", defaults.candidate_limit),
        fallback_pool_size=_positive_int_from_env("GAME_REC_FALLBACK_POOL_SIZE", defaults.fallback_pool_size),
        random_seed=random_seed,
    )


def load_encoding_config_from_env() -> EncodingConfig:
    load_dotenv()
    defaults = EncodingConfig()
    output_path = os.getenv("GAME_REC_SIMILARITY_CSV")
    return EncodingConfig(
        batch_size=_positive_int_from_env("GAME_REC_BATCH_SIZE", defaults.batch_size),
        similarity_output_csv_path=Path(output_path) if output_path else defaults.similarity_output_csv_path,
    )


def load_app_config(env_var_name: str = "MONGO_URI") -> AppConfig:
    """
    Construct and return the full application configuration.

    Args:
        env_var_name: Environment variable from which to load the Mongo URI.

    Returns:
        AppConfig
    """
    return AppConfig(
        mongo=load_mongo_config_from_env(env_var_name),
        recommender=load_recommender_config_from_env(),
        encoding=load_encoding_config_from_env(),
    )
