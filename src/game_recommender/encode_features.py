"""
Batch job that encodes every catalog game and writes it to the feature store.

Steps:
    1. Compute normalization ranges once for the whole run.
    2. Walk the catalog in identifier order, in fixed-size batches.
    3. Encode and upsert each game sequentially.
    4. Prune stored encodings whose game left the catalog.

A failed write aborts the run: later games are not written, so a partially
encoded catalog is never reported as complete.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol

from .catalog import CatalogItem, CatalogReader
from .config import load_app_config
from .features import EncodedFeatures, FeatureEncoder
from .logging_utils import configure_logger
from .mongo_loader import MongoGameCatalog, get_collections, mongo_client
from .writers import MongoFeatureStoreWriter, StoreWriteError


class FeatureStoreWriter(Protocol):
    def upsert_encoded_features(self, features: EncodedFeatures) -> None:
        ...

    def delete_orphaned_features(self, valid_ids: List[str]) -> int:
        ...


@dataclass(frozen=True)
class EncodingRunSummary:
    total: int
    batches: int
    pruned: int


def run_encoding_job(
    catalog: CatalogReader,
    writer: FeatureStoreWriter,
    batch_size: int = 100,
    logger: Optional[logging.Logger] = None,
) -> EncodingRunSummary:
    """
    Encode the full catalog and upsert one feature record per game.

    Raises:
        StoreWriteError: If any upsert fails; the remaining games are skipped.
        ValueError: If batch_size is not positive.
    """
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    _logger = logger or configure_logger("game_recommender.encode_features")

    statistics = catalog.get_numeric_attribute_ranges()
    encoder = FeatureEncoder(statistics, logger=_logger)

    items: List[CatalogItem] = list(catalog.iter_all_items())
    total = len(items)
    _logger.info(
        "Encoding catalog games",
        extra={"event": "encode_start", "total": total, "batch": batch_size},
    )

    batches = 0
    for start in range(0, total, batch_size):
        batch = items[start:start + batch_size]
        batch_index = start // batch_size

        for item in batch:
            try:
                writer.upsert_encoded_features(encoder.encode(item))
            except StoreWriteError as exc:
                _logger.error(
                    "Feature upsert failed; aborting encoding run",
                    extra={
                        "event": "encode_batch_aborted",
                        "batch": batch_index,
                        "game_id": item.identifier,
                        "processed": start,
                        "total": total,
                        "exception_type": type(exc).__name__,
                    },
                    exc_info=True,
                )
                raise

        batches += 1
        _logger.info(
            f"Processed {min(start + batch_size, total)}/{total} games",
            extra={
                "event": "encode_batch_done",
                "batch": batch_index,
                "processed": min(start + batch_size, total),
                "total": total,
            },
        )

    pruned = writer.delete_orphaned_features([item.identifier for item in items])

    _logger.info(
        "Encoding run completed",
        extra={"event": "encode_done", "total": total, "count": pruned},
    )
    return EncodingRunSummary(total=total, batches=batches, pruned=pruned)


def main() -> None:
    """
    Entry point: load config, connect to MongoDB and run the encoding job.
    """
    logger = configure_logger(name="game_recommender.encode_features", level=logging.INFO)
    logger.info("Starting feature encoding pipeline", extra={"event": "pipeline_start"})

    app_config = load_app_config()

    with mongo_client(config=app_config.mongo, logger=logger) as client:
        db = client[app_config.mongo.db_name]
        _, features_collection = get_collections(db, app_config.mongo)

        summary = run_encoding_job(
            catalog=MongoGameCatalog(db, app_config.mongo, logger=logger),
            writer=MongoFeatureStoreWriter(features_collection, logger=logger),
            batch_size=app_config.encoding.batch_size,
            logger=logger,
        )

    logger.info(
        "Feature encoding pipeline completed successfully",
        extra={"event": "pipeline_end", "total": summary.total},
    )
    print(f"Encoded {summary.total} games in {summary.batches} batches ({summary.pruned} orphaned records pruned)")


if __name__ == "__main__":
    main()
