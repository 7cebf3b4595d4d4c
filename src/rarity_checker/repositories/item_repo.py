"""Data access helpers for working with collection items."""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from rarity_checker.models import Item, ItemAttribute

__all__ = ["ItemRepository"]


class ItemRepository:
    """Thin wrapper around database access for item entities."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, item_id: int) -> Item | None:
        """Return an item with its attributes loaded."""
        result = self.session.execute(
            select(Item).options(selectinload(Item.attributes)).where(Item.id == item_id)
        )
        return result.scalars().first()

    def list_staked_by(self, wallet_address: str) -> list[Item]:
        """Return items currently staked by a wallet, lowest id first."""
        result = self.session.execute(
            select(Item).where(Item.staked_by == wallet_address).order_by(Item.id)
        )
        return list(result.scalars())

    def upsert(
        self,
        *,
        item_id: int,
        owner: str,
        token_uri: str,
        metadata: Mapping[str, Any] | None,
        attributes: Sequence[tuple[str, str]],
    ) -> Item:
        """Insert or refresh an item from chain data.

        Staking fields, score and rank are left untouched on existing rows.
        """
        item = self.get_by_id(item_id)
        if item is None:
            item = Item(id=item_id)
            self.session.add(item)
        item.owner = owner.lower()
        item.token_uri = token_uri
        item.metadata_ = dict(metadata) if metadata is not None else None
        item.attributes.clear()
        self.session.flush()
        item.attributes.extend(
            ItemAttribute(position=position, trait_type=category, value=value)
            for position, (category, value) in enumerate(attributes)
        )
        self.session.flush()
        return item
