# src/rarity_checker/models/item.py
"""SQLAlchemy models for collection items and their attributes."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rarity_checker.db.session import Base


class Item(Base):
    """One token of the collection, keyed by its on-chain token id."""

    __tablename__ = "item"
    __table_args__ = (Index("ix_item_staked_by", "staked_by"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    owner: Mapped[str] = mapped_column(Text, nullable=False, default="")
    token_uri: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # Column is named "metadata" in the database; the attribute avoids Base.metadata.
    metadata_: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON, nullable=True)

    # Frozen at the last ranking build.
    rarity_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    rank: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    staked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    staked_by: Mapped[str | None] = mapped_column(Text, nullable=True)
    staked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    attributes: Mapped[list[ItemAttribute]] = relationship(
        "ItemAttribute",
        back_populates="item",
        cascade="all, delete-orphan",
        order_by="ItemAttribute.position",
    )

    @property
    def attribute_pairs(self) -> tuple[tuple[str, str], ...]:
        """Return the ordered (category, value) pairs of this item."""
        return tuple((attr.trait_type, attr.value) for attr in self.attributes)


class ItemAttribute(Base):
    """A single (trait_type, value) pair, kept in metadata order."""

    __tablename__ = "item_attribute"

    item_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("item.id", ondelete="CASCADE"),
        primary_key=True,
    )
    position: Mapped[int] = mapped_column(Integer, primary_key=True)
    trait_type: Mapped[str] = mapped_column(Text, nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)

    item: Mapped[Item] = relationship("Item", back_populates="attributes")
