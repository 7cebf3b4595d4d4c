# tests/test_rarity.py
"""Tests for frequency counting, scoring and ranking."""

from __future__ import annotations

import pytest

from rarity_checker.services.rarity import (
    CollectionItem,
    FrequencyTable,
    build_frequency_table,
    normalize_attributes,
    rank_all,
    score_attributes,
    score_item,
)


def _collection() -> list[CollectionItem]:
    return [
        CollectionItem(1, (("Color", "Red"),)),
        CollectionItem(2, (("Color", "Red"),)),
        CollectionItem(3, (("Color", "Blue"),)),
    ]


def test_frequency_table_counts_pairs() -> None:
    table = build_frequency_table(_collection())
    assert table.count("Color", "Red") == 2
    assert table.count("Color", "Blue") == 1
    assert table.count("Color", "Green") == 0
    assert table.as_dict() == {"Color": {"Red": 2, "Blue": 1}}


def test_counts_sum_to_items_carrying_category() -> None:
    items = _collection() + [CollectionItem(4, (("Hat", "Cap"),))]
    table = build_frequency_table(items)
    assert sum(table.counts["Color"].values()) == 3
    assert sum(table.counts["Hat"].values()) == 1


def test_red_blue_scenario() -> None:
    records = rank_all(_collection())

    assert [(r.item_id, r.rank) for r in records] == [(3, 1), (1, 2), (2, 3)]
    assert records[0].rarity_score == pytest.approx(1.0)
    assert records[1].rarity_score == pytest.approx(0.5)
    assert records[2].rarity_score == pytest.approx(0.5)


def test_unseen_pair_counts_as_unique() -> None:
    table = FrequencyTable({"Color": {"Red": 4}})
    assert score_attributes([("Color", "Red"), ("Eyes", "Laser")], table) == pytest.approx(1.25)


def test_item_without_attributes_scores_zero() -> None:
    table = build_frequency_table(_collection())
    assert score_item(CollectionItem(9), table) == 0.0


def test_ranks_are_a_permutation_and_scores_non_increasing() -> None:
    items = [
        CollectionItem(i, (("Bg", str(i % 3)), ("Body", str(i % 5)), ("Hat", str(i % 7))))
        for i in range(1, 41)
    ]
    records = rank_all(items)

    assert sorted(r.rank for r in records) == list(range(1, 41))
    scores = [r.rarity_score for r in records]
    assert scores == sorted(scores, reverse=True)
    for before, after in zip(records, records[1:]):
        if before.rarity_score == after.rarity_score:
            assert before.item_id < after.item_id


def test_rank_all_empty_collection() -> None:
    assert rank_all([]) == []


def test_rank_all_is_deterministic_regardless_of_input_order() -> None:
    items = _collection()
    assert rank_all(items) == rank_all(list(reversed(items)))


def test_normalize_attributes_stringifies_and_drops_untyped() -> None:
    raw = [
        {"trait_type": "Level", "value": 5},
        {"value": "orphan"},
        "not-a-mapping",
        {"trait_type": "Color", "value": "Red"},
    ]
    assert normalize_attributes(raw) == (("Level", "5"), ("Color", "Red"))  # type: ignore[arg-type]


def test_normalize_attributes_handles_missing_array() -> None:
    assert normalize_attributes(None) == ()
    assert normalize_attributes([]) == ()


def test_rare_trait_outranks_common_trait() -> None:
    items = [CollectionItem(1, (("Color", "Red"),))]
    items += [CollectionItem(i, (("Color", "Blue"),)) for i in range(2, 11)]

    records = rank_all(items)

    assert records[0].item_id == 1
    assert records[0].rarity_score == pytest.approx(1.0)
    assert records[1].rarity_score == pytest.approx(1 / 9)
