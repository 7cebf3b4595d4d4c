"""Stake ledger: the per-item Unstaked <-> Staked state machine.

Each transition is a conditional UPDATE on the item row that only matches the
expected prior state, so concurrent calls for one item are linearized by the
database: exactly one stake wins and every other sees ``AlreadyStaked``. The
item row and the user's ``staked_item`` entry are written in one transaction;
if the user-side write fails the whole transaction is rolled back, which also
reverts the item-side write.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy import delete, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rarity_checker.core.errors import (
    AlreadyStakedError,
    NotFoundError,
    NotOwnerError,
    NotStakedError,
    PersistenceError,
)
from rarity_checker.db.time import utcnow
from rarity_checker.models import Item, StakedItem, User

logger = logging.getLogger(__name__)


class StakeLedger:
    """Stake and unstake items on behalf of an authenticated wallet."""

    def __init__(self, db: Session, *, clock: Callable[[], datetime] = utcnow) -> None:
        self.db = db
        self._clock = clock

    def _get_item(self, item_id: int) -> Item:
        item = self.db.get(Item, item_id)
        if item is None:
            raise NotFoundError("NFT not found.", code="item_not_found")
        return item

    def stake(self, item_id: int, wallet_address: str) -> Item:
        """Stake ``item_id`` for ``wallet_address``.

        Raises:
            NotFoundError: If the item or the user does not exist.
            AlreadyStakedError: If anyone, the caller included, already staked it.
            PersistenceError: If the transaction could not be committed.
        """
        item = self._get_item(item_id)
        if item.staked:
            raise AlreadyStakedError("NFT is already staked.")
        if self.db.get(User, wallet_address) is None:
            raise NotFoundError("User not found.", code="user_not_found")

        now = self._clock()
        try:
            result = self.db.execute(
                update(Item)
                .where(Item.id == item_id, Item.staked.is_(False))
                .values(staked=True, staked_by=wallet_address, staked_at=now)
            )
            if result.rowcount != 1:
                self.db.rollback()
                raise AlreadyStakedError("NFT is already staked.")

            self.db.add(StakedItem(item_id=item_id, wallet_address=wallet_address, staked_at=now))
            self.db.flush()
            self.db.commit()
        except SQLAlchemyError as err:
            self.db.rollback()
            logger.error("Stake of item %d for %s rolled back: %s", item_id, wallet_address, err)
            raise PersistenceError("Could not stake the NFT. Please try again.") from err

        logger.info("Item %d staked by %s", item_id, wallet_address)
        self.db.refresh(item)
        return item

    def unstake(self, item_id: int, wallet_address: str) -> Item:
        """Release ``item_id`` if ``wallet_address`` is its staker.

        Raises:
            NotFoundError: If the item does not exist.
            NotStakedError: If the item is not staked.
            NotOwnerError: If another wallet staked it. Nothing is modified.
            PersistenceError: If the transaction could not be committed.
        """
        item = self._get_item(item_id)
        if not item.staked:
            raise NotStakedError("NFT is not staked.")
        if item.staked_by != wallet_address:
            raise NotOwnerError("NFT is not staked by you.")

        try:
            result = self.db.execute(
                update(Item)
                .where(
                    Item.id == item_id,
                    Item.staked.is_(True),
                    Item.staked_by == wallet_address,
                )
                .values(staked=False, staked_by=None, staked_at=None)
            )
            if result.rowcount != 1:
                self.db.rollback()
                raise NotStakedError("NFT is not staked.")

            self.db.execute(
                delete(StakedItem).where(
                    StakedItem.item_id == item_id,
                    StakedItem.wallet_address == wallet_address,
                )
            )
            self.db.commit()
        except SQLAlchemyError as err:
            self.db.rollback()
            logger.error("Unstake of item %d for %s rolled back: %s", item_id, wallet_address, err)
            raise PersistenceError("Could not unstake the NFT. Please try again.") from err

        logger.info("Item %d unstaked by %s", item_id, wallet_address)
        self.db.refresh(item)
        return item
