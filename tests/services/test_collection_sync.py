# tests/services/test_collection_sync.py
"""Tests for syncing the collection from chain and metadata sources."""

from __future__ import annotations

from typing import Any

import pytest
from sqlalchemy import select

from rarity_checker.core.errors import UpstreamError
from rarity_checker.models import Item
from rarity_checker.services.collection_sync import CollectionSync

OWNER = "0x" + "Ab" * 20


class FakeChain:
    def __init__(self, supply: int, broken: set[int] | None = None) -> None:
        self.supply = supply
        self.broken = broken or set()

    def total_supply(self) -> int:
        return self.supply

    def owner_of(self, token_id: int) -> str:
        if token_id in self.broken:
            raise UpstreamError(f"Contract call ownerOf failed for {token_id}")
        return OWNER.lower()

    def token_uri(self, token_id: int) -> str:
        return f"ipfs://collection/{token_id}"


class FakeMetadata:
    def __init__(self, documents: dict[int, dict[str, Any]]) -> None:
        self.documents = documents
        self.requested: list[int] = []

    async def fetch(self, token_id: int, token_uri: str) -> dict[str, Any]:
        self.requested.append(token_id)
        if token_id not in self.documents:
            raise UpstreamError(f"Metadata for token {token_id} is missing")
        return self.documents[token_id]


def _documents() -> dict[int, dict[str, Any]]:
    return {
        1: {"name": "#1", "attributes": [{"trait_type": "Color", "value": "Red"}]},
        2: {"name": "#2", "attributes": [{"trait_type": "Color", "value": "Red"}]},
        3: {"name": "#3", "attributes": [{"trait_type": "Color", "value": "Blue"}]},
    }


@pytest.mark.asyncio
async def test_sync_stores_items_and_ranks(ranking, session_factory, db_session) -> None:
    sync = CollectionSync(FakeChain(3), FakeMetadata(_documents()), ranking, session_factory)

    report = await sync.run()

    assert report.total_supply == 3
    assert sorted(report.stored) == [1, 2, 3]
    assert report.skipped == {}
    assert report.ranking_version == 1
    assert report.ranked == 3
    assert ranking.get_rarity(3).rank == 1

    items = db_session.execute(select(Item).order_by(Item.id)).scalars().all()
    assert [item.attribute_pairs for item in items] == [
        (("Color", "Red"),),
        (("Color", "Red"),),
        (("Color", "Blue"),),
    ]
    assert items[0].owner == OWNER.lower()
    assert items[0].metadata_["name"] == "#1"


@pytest.mark.asyncio
async def test_failing_tokens_are_skipped(ranking, session_factory) -> None:
    documents = _documents()
    del documents[2]
    sync = CollectionSync(
        FakeChain(4, broken={4}), FakeMetadata(documents), ranking, session_factory
    )

    report = await sync.run()

    assert sorted(report.stored) == [1, 3]
    assert set(report.skipped) == {2, 4}
    assert report.ranked == 2


@pytest.mark.asyncio
async def test_resync_preserves_staking_state(
    ranking, session_factory, make_user, stake_directly, db_session
) -> None:
    sync = CollectionSync(FakeChain(3), FakeMetadata(_documents()), ranking, session_factory)
    await sync.run()
    make_user(OWNER)
    stake_directly(1, OWNER.lower())

    documents = _documents()
    documents[1]["attributes"] = [{"trait_type": "Color", "value": "Green"}]
    await CollectionSync(FakeChain(3), FakeMetadata(documents), ranking, session_factory).run()

    db_session.expire_all()
    item = db_session.get(Item, 1)
    assert item.staked is True
    assert item.staked_by == OWNER.lower()
    assert item.attribute_pairs == (("Color", "Green"),)


@pytest.mark.asyncio
async def test_empty_collection(ranking, session_factory) -> None:
    metadata = FakeMetadata({})
    report = await CollectionSync(FakeChain(0), metadata, ranking, session_factory).run()

    assert report.total_supply == 0
    assert report.stored == []
    assert report.ranked == 0
    assert metadata.requested == []


@pytest.mark.asyncio
async def test_fetch_all_respects_token_list(ranking, session_factory) -> None:
    metadata = FakeMetadata(_documents())
    sync = CollectionSync(FakeChain(3), metadata, ranking, session_factory, concurrency=2)

    fetched, skipped = await sync.fetch_all([3, 1])

    assert sorted(token.token_id for token in fetched) == [1, 3]
    assert skipped == {}
    assert sorted(metadata.requested) == [1, 3]
