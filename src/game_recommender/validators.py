from __future__ import annotations

import logging
from typing import Optional

import pandas as pd

from .features import FEATURE_VECTOR_LENGTH


class ValidationError(Exception):
    """Raised when input data fails validation."""


CATALOG_REQUIRED_COLUMNS = {"steam_appid", "name"}
FEATURE_REQUIRED_COLUMNS = {"identifier", "feature_vector"}


def validate_required_columns(df: pd.DataFrame, required: set[str]) -> None:
    """
    Validate that DataFrame contains all required columns.
    """
    missing = required - set(df.columns)
    if missing:
        raise ValidationError(f"Missing required columns: {sorted(missing)}")


def validate_catalog_frame(
    df: pd.DataFrame,
    logger: Optional[logging.Logger] = None,
    step_name: str = "catalog_schema_validation",
) -> None:
    """
    Validate a catalog DataFrame before it is turned into CatalogItems.

    Checks:
        - identifier and name columns exist
        - identifiers are present and unique
    """
    if logger:
        logger.info("Validating catalog schema", extra={"event": f"validate_schema_{step_name}"})

    validate_required_columns(df, CATALOG_REQUIRED_COLUMNS)

    if df["steam_appid"].isna().any():
        raise ValidationError("Column 'steam_appid' must not contain nulls.")

    duplicated = df["steam_appid"].astype(str).duplicated()
    if duplicated.any():
        raise ValidationError(
            f"Column 'steam_appid' has duplicates: {sorted(df.loc[duplicated, 'steam_appid'].astype(str))}"
        )

    if logger:
        logger.info(
            "Catalog schema validated successfully",
            extra={"event": f"validate_schema_{step_name}_success", "shape": df.shape},
        )


def validate_feature_frame(df: pd.DataFrame) -> None:
    """
    Validate stored encodings: required columns and a fixed vector width.
    """
    validate_required_columns(df, FEATURE_REQUIRED_COLUMNS)

    lengths = df["feature_vector"].map(lambda v: len(v) if v is not None else 0)
    bad = df.loc[lengths != FEATURE_VECTOR_LENGTH, "identifier"]
    if not bad.empty:
        raise ValidationError(
            f"Feature vectors must have length {FEATURE_VECTOR_LENGTH}; "
            f"offending identifiers: {sorted(bad.astype(str))}"
        )
