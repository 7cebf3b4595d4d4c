# src/rarity_checker/models/user.py
"""SQLAlchemy models for wallet users and their staked items."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rarity_checker.db.session import Base
from rarity_checker.db.time import utcnow


class Tier(str, Enum):
    """Reward tiers, lowest first."""

    BRONZE = "Bronze"
    SILVER = "Silver"
    GOLD = "Gold"


class User(Base):
    """Identity keyed by a lowercase hex wallet address."""

    __tablename__ = "wallet_user"

    wallet_address: Mapped[str] = mapped_column(Text, primary_key=True)
    points: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    tier: Mapped[str] = mapped_column(Text, nullable=False, default=Tier.BRONZE.value)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    staked_items: Mapped[list[StakedItem]] = relationship(
        "StakedItem",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="StakedItem.id",
    )


class StakedItem(Base):
    """Entry in a user's staked-items collection.

    The unique item_id column allows at most one staker per item.
    """

    __tablename__ = "staked_item"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("item.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    wallet_address: Mapped[str] = mapped_column(
        Text,
        ForeignKey("wallet_user.wallet_address", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    staked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    user: Mapped[User] = relationship("User", back_populates="staked_items")
