# src/rarity_checker/services/rarity.py
"""Attribute frequency counting, rarity scoring and ranking.

Everything here is pure and CPU-bound: callers pass a snapshot of the
collection in and get plain values back. Scores are the sum of inverse
occurrence counts of an item's (category, value) pairs; ranks are 1-based
positions after sorting by score descending, ties broken by ascending item id.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

AttributePair = tuple[str, str]


@dataclass(frozen=True)
class CollectionItem:
    """The subset of an item that scoring needs."""

    item_id: int
    attributes: tuple[AttributePair, ...] = ()


@dataclass(frozen=True)
class RankingRecord:
    """Final position of an item in the rarity ranking."""

    item_id: int
    rarity_score: float
    rank: int


@dataclass
class FrequencyTable:
    """Occurrence counts per category and value across a collection."""

    counts: dict[str, dict[str, int]] = field(default_factory=dict)

    def count(self, category: str, value: str) -> int:
        """Return how many items carry the pair, or 0 when never seen."""
        return self.counts.get(category, {}).get(value, 0)

    def as_dict(self) -> dict[str, dict[str, int]]:
        """Return a plain nested-dict copy suitable for JSON output."""
        return {category: dict(values) for category, values in self.counts.items()}


def normalize_attributes(raw: Iterable[Mapping[str, object]] | None) -> tuple[AttributePair, ...]:
    """Turn a metadata ``attributes`` array into ordered string pairs.

    Entries without a ``trait_type`` are dropped; values are stringified so
    numeric and string traits land in the same table.
    """
    if not raw:
        return ()
    pairs: list[AttributePair] = []
    for entry in raw:
        if not isinstance(entry, Mapping):
            continue
        category = entry.get("trait_type")
        if category is None:
            continue
        pairs.append((str(category), str(entry.get("value"))))
    return tuple(pairs)


def build_frequency_table(items: Iterable[CollectionItem]) -> FrequencyTable:
    """Count every (category, value) pair over the given items."""
    counts: defaultdict[str, defaultdict[str, int]] = defaultdict(lambda: defaultdict(int))
    for item in items:
        for category, value in item.attributes:
            counts[category][value] += 1
    return FrequencyTable({category: dict(values) for category, values in counts.items()})


def score_attributes(attributes: Sequence[AttributePair], table: FrequencyTable) -> float:
    """Return the summed inverse frequency of the pairs.

    A pair missing from the table counts as 1, so unseen combinations score
    as if unique instead of raising.
    """
    score = 0.0
    for category, value in attributes:
        frequency = table.count(category, value) or 1
        score += 1 / frequency
    return score


def score_item(item: CollectionItem, table: FrequencyTable) -> float:
    """Return the rarity score of a single item."""
    return score_attributes(item.attributes, table)


def rank_all(
    items: Sequence[CollectionItem],
    table: FrequencyTable | None = None,
) -> list[RankingRecord]:
    """Score and rank the whole collection.

    Args:
        items: Complete snapshot of the collection.
        table: Frequency table to score against. Built from ``items`` when omitted.

    Returns:
        One record per item ordered by rank (1 is rarest).
    """
    if not items:
        return []
    if table is None:
        table = build_frequency_table(items)

    scored = [(item.item_id, score_item(item, table)) for item in items]
    scored.sort(key=lambda pair: (-pair[1], pair[0]))
    return [
        RankingRecord(item_id=item_id, rarity_score=score, rank=position)
        for position, (item_id, score) in enumerate(scored, start=1)
    ]
