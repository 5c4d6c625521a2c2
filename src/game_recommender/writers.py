from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable

import pandas as pd
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from .features import FEATURE_VECTOR_VERSION, EncodedFeatures
from .logging_utils import configure_logger

PRUNE_BATCH_SIZE = 500


class StoreWriteError(RuntimeError):
    """Raised when an encoded feature record cannot be written to the feature store."""

    def __init__(self, message: str, game_id: str | None = None) -> None:
        super().__init__(message)
        self.game_id = game_id


def features_to_document(features: EncodedFeatures) -> Dict[str, Any]:
    """
    Storage document for one encoding, keyed by the game identifier.
    """
    doc = features.as_record()
    doc["_id"] = features.identifier
    doc["feature_version"] = FEATURE_VECTOR_VERSION
    doc["updated_at"] = datetime.now(timezone.utc)
    return doc


class MongoFeatureStoreWriter:
    """
    Feature store backed by a Mongo collection with one document per game.
    """

    def __init__(self, collection: Collection, logger: logging.Logger | None = None) -> None:
        self._collection = collection
        self.logger = logger or configure_logger("game_recommender.writers")

    def upsert_encoded_features(self, features: EncodedFeatures) -> None:
        """
        Replace the stored encoding of a game, inserting it when absent.

        Raises:
            StoreWriteError: If the write fails.
        """
        try:
            self._collection.replace_one(
                {"_id": features.identifier},
                features_to_document(features),
                upsert=True,
            )
        except PyMongoError as exc:
            raise StoreWriteError(
                f"Failed to upsert features for game {features.identifier!r}: {exc}",
                game_id=features.identifier,
            ) from exc

    def delete_orphaned_features(
        self, valid_ids: Iterable[str], batch_size: int = PRUNE_BATCH_SIZE
    ) -> int:
        """
        Remove encodings whose catalog game no longer exists.

        Stored ids are streamed and compared locally; orphans are deleted with
        `$in` filters of at most `batch_size` ids, so no command grows with the
        catalog size.

        Returns:
            Number of deleted documents.
        """
        keep = set(valid_ids)
        deleted = 0
        try:
            orphans = [
                doc["_id"]
                for doc in self._collection.find({}, {"_id": 1})
                if doc["_id"] not in keep
            ]
            for start in range(0, len(orphans), batch_size):
                chunk = orphans[start:start + batch_size]
                deleted += self._collection.delete_many({"_id": {"$in": chunk}}).deleted_count
        except PyMongoError as exc:
            raise StoreWriteError(f"Failed to prune orphaned features: {exc}") from exc

        self.logger.info(
            "Orphaned features pruned",
            extra={"event": "prune_orphaned_features", "count": deleted},
        )
        return deleted

    def load_feature_frame(self) -> pd.DataFrame:
        """
        All stored encodings as a DataFrame (one row per game).
        """
        docs = list(self._collection.find({}))
        frame = pd.DataFrame(docs)
        if "_id" in frame.columns:
            frame = frame.drop(columns="_id")

        self.logger.info(
            "Feature frame loaded",
            extra={"event": "load_feature_frame", "shape": frame.shape},
        )
        return frame


def save_similarity_matrix_to_csv(
    similarity_df: pd.DataFrame,
    output_path: Path,
    logger: logging.Logger | None = None,
) -> None:
    """
    Save the similarity matrix to a CSV file, creating the output folder if needed.
    """
    _logger = logger or configure_logger()

    _logger.info(
        "Saving similarity matrix to CSV",
        extra={
            "event": "save_similarity_csv",
            "shape": similarity_df.shape,
            "output_path": str(output_path),
        },
    )

    output_path.parent.mkdir(parents=True, exist_ok=True)
    similarity_df.to_csv(output_path, encoding="utf-8-sig")

    _logger.info(
        "Similarity matrix saved",
        extra={"event": "save_similarity_csv_success", "output_path": str(output_path)},
    )
