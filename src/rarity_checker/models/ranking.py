# src/rarity_checker/models/ranking.py
"""Persisted rarity ranking and its build history."""

from datetime import datetime

from sqlalchemy import JSON, DateTime, Float, Integer
from sqlalchemy.orm import Mapped, mapped_column

from rarity_checker.db.session import Base
from rarity_checker.db.time import utcnow


class RarityRanking(Base):
    """One row per ranked item. The whole table is replaced on every build."""

    __tablename__ = "rarity_ranking"

    item_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    rarity_score: Mapped[float] = mapped_column(Float, nullable=False)
    rank: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    build_version: Mapped[int] = mapped_column(Integer, nullable=False)


class RankingBuild(Base):
    """Bookkeeping row written in the same transaction as a ranking build."""

    __tablename__ = "ranking_build"

    version: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    built_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # category -> value -> count, as computed for this build.
    frequencies: Mapped[dict[str, dict[str, int]]] = mapped_column(
        JSON, nullable=False, default=dict
    )
