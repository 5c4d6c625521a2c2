"""
Catalog records and an in-memory catalog reader.

`CatalogItem` is the read-only view of one row of the released games catalog.
The raw source is loosely typed (tag arrays may be missing, numbers may be
NULL or NaN), so every field is coerced once here and the encoding and
scoring code can rely on plain tuples and Optional floats.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Protocol, Sequence, Tuple

from .normalizer import NormalizationStatistics, compute_statistics

# Source document key for each numeric CatalogItem attribute.
DOCUMENT_NUMERIC_KEYS = {
    "review_score": "review_score",
    "metacritic": "metacritic",
    "price": "price_initial_usd",
    "required_age": "required_age",
    "n_achievements": "n_achievements",
    "positive_ratio": "positive_percentual",
}


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _to_tags(value: Any) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    try:
        return tuple(tag for tag in value if isinstance(tag, str))
    except TypeError:
        return ()


@dataclass(frozen=True)
class CatalogItem:
    """One released game as stored in the catalog."""

    identifier: str
    name: str
    genres: Tuple[str, ...] = ()
    categories: Tuple[str, ...] = ()
    platforms: Tuple[str, ...] = ()
    review_score: Optional[float] = None
    metacritic: Optional[float] = None
    price: Optional[float] = None
    required_age: Optional[float] = None
    n_achievements: Optional[float] = None
    positive_ratio: Optional[float] = None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "CatalogItem":
        """
        Build a CatalogItem from a catalog document (Mongo document or DataFrame row dict).

        Raises:
            ValueError: If the document has no identifier.
        """
        raw_id = doc.get("steam_appid")
        if raw_id is None:
            raw_id = doc.get("_id")
        if raw_id is None:
            raise ValueError(f"Catalog document has no identifier: {dict(doc)!r}")

        numerics = {
            field_name: _to_float(doc.get(doc_key))
            for field_name, doc_key in DOCUMENT_NUMERIC_KEYS.items()
        }
        return cls(
            identifier=str(raw_id),
            name=str(doc.get("name") or ""),
            genres=_to_tags(doc.get("genres")),
            categories=_to_tags(doc.get("categories")),
            platforms=_to_tags(doc.get("platforms")),
            **numerics,
        )

    def numeric_value(self, field_name: str) -> float:
        """Numeric attribute with the missing-value default (0) applied."""
        value = getattr(self, field_name)
        return 0.0 if value is None else float(value)


class CatalogReader(Protocol):
    """Read side of the catalog used at request time and by the batch job."""

    def get_items_by_names(self, names: Sequence[str]) -> List[CatalogItem]:
        ...

    def get_all_items_excluding(self, names: Sequence[str], limit: int) -> List[CatalogItem]:
        ...

    def iter_all_items(self) -> Iterator[CatalogItem]:
        ...

    def get_numeric_attribute_ranges(self) -> NormalizationStatistics:
        ...


class InMemoryGameCatalog:
    """
    Catalog reader over a list of items.

    Mirrors the Mongo reader's contract: exact name matching, natural order
    for candidate listing and identifier order for the batch job.
    """

    def __init__(self, items: Iterable[CatalogItem]) -> None:
        self._items: List[CatalogItem] = list(items)

    @classmethod
    def from_documents(cls, docs: Iterable[Mapping[str, Any]]) -> "InMemoryGameCatalog":
        return cls(CatalogItem.from_document(doc) for doc in docs)

    def __len__(self) -> int:
        return len(self._items)

    def get_items_by_names(self, names: Sequence[str]) -> List[CatalogItem]:
        wanted = set(names)
        return [item for item in self._items if item.name in wanted]

    def get_all_items_excluding(self, names: Sequence[str], limit: int) -> List[CatalogItem]:
        excluded = set(names)
        return [item for item in self._items if item.name not in excluded][: max(0, limit)]

    def iter_all_items(self) -> Iterator[CatalogItem]:
        return iter(sorted(self._items, key=lambda item: item.identifier))

    def get_numeric_attribute_ranges(self) -> NormalizationStatistics:
        return compute_statistics(self._items)
