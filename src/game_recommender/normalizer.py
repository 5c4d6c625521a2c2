"""
Min/max statistics and [0, 1] scaling for numeric catalog attributes.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

import pandas as pd

NUMERIC_FIELDS: Tuple[str, ...] = (
    "review_score",
    "metacritic",
    "price",
    "required_age",
    "n_achievements",
    "positive_ratio",
)

# Only items with both core quality signals calibrate the ranges.
CALIBRATION_FIELDS: Tuple[str, ...] = ("review_score", "metacritic")


@dataclass(frozen=True)
class NumericRange:
    minimum: float = 0.0
    maximum: float = 0.0


@dataclass(frozen=True)
class NormalizationStatistics:
    """One (min, max) pair per numeric catalog attribute."""

    review_score: NumericRange = NumericRange()
    metacritic: NumericRange = NumericRange()
    price: NumericRange = NumericRange()
    required_age: NumericRange = NumericRange()
    n_achievements: NumericRange = NumericRange()
    positive_ratio: NumericRange = NumericRange()

    def range_for(self, field_name: str) -> NumericRange:
        if field_name not in NUMERIC_FIELDS:
            raise KeyError(f"Unknown numeric attribute: {field_name!r}")
        return getattr(self, field_name)

    def normalize_field(self, field_name: str, value: Optional[float]) -> float:
        bounds = self.range_for(field_name)
        return normalize(value, bounds.minimum, bounds.maximum)

    @classmethod
    def from_bounds(cls, bounds: Mapping[str, Tuple[Any, Any]]) -> "NormalizationStatistics":
        """
        Build statistics from raw (min, max) pairs.

        Missing attributes and NULL/NaN bounds become the degenerate (0, 0) range.
        """
        ranges: Dict[str, NumericRange] = {}
        for field_name in NUMERIC_FIELDS:
            low, high = bounds.get(field_name, (None, None))
            ranges[field_name] = NumericRange(minimum=_finite_or_zero(low), maximum=_finite_or_zero(high))
        return cls(**ranges)


def _finite_or_zero(value: Any) -> float:
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def normalize(value: Optional[float], minimum: float, maximum: float) -> float:
    """
    Scale `value` from [minimum, maximum] to [0, 1].

    NULL/NaN input is treated as 0 before scaling. A degenerate range
    (minimum == maximum) carries no information and always maps to 0.
    Values outside the calibration range are clamped.
    """
    if maximum == minimum:
        return 0.0

    raw = _finite_or_zero(value)
    scaled = (raw - minimum) / (maximum - minimum)
    return max(0.0, min(1.0, scaled))


def compute_statistics(items: Iterable[Any]) -> NormalizationStatistics:
    """
    Compute per-attribute min/max over items with non-null review score and metacritic.

    Args:
        items: CatalogItem-like objects exposing the NUMERIC_FIELDS attributes,
            or a DataFrame with those columns.

    Returns:
        NormalizationStatistics; all-zero ranges when no item qualifies.
    """
    if isinstance(items, pd.DataFrame):
        frame = items.reindex(columns=list(NUMERIC_FIELDS))
    else:
        frame = pd.DataFrame(
            [{field_name: getattr(item, field_name) for field_name in NUMERIC_FIELDS} for item in items],
            columns=list(NUMERIC_FIELDS),
        )

    frame = frame.apply(pd.to_numeric, errors="coerce")
    calibrated = frame.dropna(subset=list(CALIBRATION_FIELDS))

    if calibrated.empty:
        return NormalizationStatistics()

    mins = calibrated.min()
    maxs = calibrated.max()
    return NormalizationStatistics.from_bounds(
        {field_name: (mins[field_name], maxs[field_name]) for field_name in NUMERIC_FIELDS}
    )
