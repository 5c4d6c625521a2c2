from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, List, Sequence, Tuple

from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError, ServerSelectionTimeoutError

from .catalog import DOCUMENT_NUMERIC_KEYS, CatalogItem
from .config import MongoConfig
from .logging_utils import configure_logger
from .normalizer import CALIBRATION_FIELDS, NormalizationStatistics


@contextmanager
def mongo_client(config: MongoConfig, logger: logging.Logger | None = None) -> Iterator[MongoClient]:
    """
    Context manager that opens, pings and always closes a MongoClient.
    """
    _logger = logger or configure_logger()
    _logger.info("Opening MongoDB connection", extra={"event": "mongo_connect"})

    client = MongoClient(config.uri, serverSelectionTimeoutMS=10_000)

    try:
        client.admin.command("ping")  # Fail fast if unreachable
        _logger.info("MongoDB connection established", extra={"event": "mongo_connect_success"})
        yield client
    except (ServerSelectionTimeoutError, PyMongoError) as exc:
        _logger.error(
            "MongoDB operation failed",
            extra={"event": "mongo_connect_failure", "exception_type": type(exc).__name__},
            exc_info=True,
        )
        raise
    finally:
        client.close()
        _logger.info("MongoDB connection closed", extra={"event": "mongo_disconnect"})


def get_collections(db: Database, config: MongoConfig) -> Tuple[Collection, Collection]:
    """
    Retrieve the games catalog and encoded features collections from the database.
    """
    return db[config.games_collection], db[config.features_collection]


class MongoGameCatalog:
    """
    Catalog reader backed by the released games collection.

    The database handle is passed in by the caller, who owns the client's lifetime.
    """

    def __init__(
        self,
        db: Database,
        config: MongoConfig,
        logger: logging.Logger | None = None,
    ) -> None:
        self._games = db[config.games_collection]
        self.logger = logger or configure_logger("game_recommender.catalog")

    def _to_items(self, docs) -> List[CatalogItem]:
        return [CatalogItem.from_document(doc) for doc in docs]

    # `_id` stays in the projection: documents without steam_appid fall back to it.
    def get_items_by_names(self, names: Sequence[str]) -> List[CatalogItem]:
        items = self._to_items(self._games.find({"name": {"$in": list(names)}}))
        self.logger.info(
            "Seed games resolved",
            extra={"event": "catalog_get_by_names", "count": len(items)},
        )
        return items

    def get_all_items_excluding(self, names: Sequence[str], limit: int) -> List[CatalogItem]:
        cursor = self._games.find({"name": {"$nin": list(names)}}).limit(limit)
        items = self._to_items(cursor)
        self.logger.info(
            "Candidate games loaded",
            extra={"event": "catalog_get_candidates", "count": len(items)},
        )
        return items

    def iter_all_items(self) -> Iterator[CatalogItem]:
        for doc in self._games.find({}).sort("steam_appid", ASCENDING):
            yield CatalogItem.from_document(doc)

    def count_items(self) -> int:
        return self._games.count_documents({})

    def get_numeric_attribute_ranges(self) -> NormalizationStatistics:
        """
        Min/max of every numeric attribute over games with review score and metacritic set.

        NaN counts as missing: it is excluded from the calibration filter and
        mapped to null before grouping, since `$min` orders NaN below every number.
        """
        match = {
            DOCUMENT_NUMERIC_KEYS[name]: {"$nin": [None, float("nan")]}
            for name in CALIBRATION_FIELDS
        }
        project = {
            field_name: {"$cond": [{"$eq": [f"${doc_key}", float("nan")]}, None, f"${doc_key}"]}
            for field_name, doc_key in DOCUMENT_NUMERIC_KEYS.items()
        }
        group = {"_id": None}
        for field_name in DOCUMENT_NUMERIC_KEYS:
            group[f"min_{field_name}"] = {"$min": f"${field_name}"}
            group[f"max_{field_name}"] = {"$max": f"${field_name}"}

        rows = list(
            self._games.aggregate([{"$match": match}, {"$project": project}, {"$group": group}])
        )

        if not rows:
            self.logger.warning(
                "No calibrated games found; all normalization ranges are degenerate",
                extra={"event": "catalog_ranges_empty"},
            )
            return NormalizationStatistics()

        row = rows[0]
        statistics = NormalizationStatistics.from_bounds(
            {
                field_name: (row.get(f"min_{field_name}"), row.get(f"max_{field_name}"))
                for field_name in DOCUMENT_NUMERIC_KEYS
            }
        )
        self.logger.info(
            "Normalization ranges computed",
            extra={"event": "catalog_ranges_computed"},
        )
        return statistics
