"""
Wiring for long-running processes (the HTTP API).

The caller owns the Mongo client: it is opened once by the API lifespan
handler, handed to `build_service`, and closed on shutdown.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from .config import AppConfig, load_app_config
from .logging_utils import configure_logger
from .mongo_loader import MongoGameCatalog, mongo_client
from .service.recommender_service import RecommenderService


def build_service(client, app_config: AppConfig, logger: Optional[logging.Logger] = None) -> RecommenderService:
    _logger = logger or configure_logger("game_recommender.bootstrap")
    db = client[app_config.mongo.db_name]
    catalog = MongoGameCatalog(db, app_config.mongo, logger=_logger)
    return RecommenderService(catalog, config=app_config.recommender, logger=_logger)


@contextmanager
def bootstrap_service(
    app_config: Optional[AppConfig] = None,
    logger: Optional[logging.Logger] = None,
) -> Iterator[RecommenderService]:
    """
    Yield a RecommenderService bound to a live Mongo client for the duration of the block.
    """
    _logger = logger or configure_logger("game_recommender.bootstrap")
    app_config = app_config or load_app_config()

    with mongo_client(app_config.mongo, logger=_logger) as client:
        _logger.info("Recommender service ready", extra={"event": "bootstrap_ready"})
        yield build_service(client, app_config, logger=_logger)
