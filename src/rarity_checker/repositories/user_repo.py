"""Data access helpers for wallet users."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from rarity_checker.models import User

__all__ = ["UserRepository"]


class UserRepository:
    """Thin wrapper around database access for user entities."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, wallet_address: str) -> User | None:
        """Return a user with their staked items loaded."""
        result = self.session.execute(
            select(User)
            .options(selectinload(User.staked_items))
            .where(User.wallet_address == wallet_address)
        )
        return result.scalars().first()

    def get_or_create(self, wallet_address: str) -> tuple[User, bool]:
        """Return the user for an address, inserting one if needed."""
        user = self.get(wallet_address)
        if user is not None:
            return user, False
        user = User(wallet_address=wallet_address)
        self.session.add(user)
        self.session.flush()
        return user, True

    def top_by_points(self, limit: int) -> list[User]:
        """Return users sorted by descending points."""
        result = self.session.execute(
            select(User)
            .options(selectinload(User.staked_items))
            .order_by(User.points.desc(), User.wallet_address)
            .limit(limit)
        )
        return list(result.scalars())

