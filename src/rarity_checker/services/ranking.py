# src/rarity_checker/services/ranking.py
"""Ranking builds and the in-memory ranking snapshot served to readers."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from threading import Lock
from types import MappingProxyType

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from rarity_checker.core.errors import NotFoundError, PersistenceError
from rarity_checker.db.session import SessionLocal
from rarity_checker.models import Item, RankingBuild, RarityRanking
from rarity_checker.services.rarity import (
    CollectionItem,
    FrequencyTable,
    RankingRecord,
    build_frequency_table,
    rank_all,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RankingSnapshot:
    """Immutable, versioned view of a complete ranking build."""

    version: int = 0
    records: tuple[RankingRecord, ...] = ()
    built_at: datetime | None = None
    frequencies: FrequencyTable = field(default_factory=FrequencyTable)
    _by_item: Mapping[int, RankingRecord] = field(
        default_factory=lambda: MappingProxyType({}),
        repr=False,
        compare=False,
    )

    @classmethod
    def from_records(
        cls,
        version: int,
        records: list[RankingRecord] | tuple[RankingRecord, ...],
        built_at: datetime | None = None,
        frequencies: FrequencyTable | None = None,
    ) -> RankingSnapshot:
        ordered = tuple(sorted(records, key=lambda record: record.rank))
        return cls(
            version=version,
            records=ordered,
            built_at=built_at,
            frequencies=frequencies or FrequencyTable(),
            _by_item=MappingProxyType({record.item_id: record for record in ordered}),
        )

    @property
    def total(self) -> int:
        return len(self.records)

    def get(self, item_id: int) -> RankingRecord | None:
        return self._by_item.get(item_id)

    def top(self, limit: int) -> list[RankingRecord]:
        return list(self.records[: max(limit, 0)])


class RankingService:
    """Rebuilds the ranking from stored items and serves lookups from memory.

    A rebuild reads every item in one session, scores them, and replaces the
    ``rarity_ranking`` table plus each item's stored score and rank in a single
    transaction. Only after the commit is the new snapshot swapped in, so
    readers see either the previous build or the new one, never a mix.
    """

    def __init__(self, session_factory: sessionmaker[Session] = SessionLocal) -> None:
        self._session_factory = session_factory
        self._snapshot = RankingSnapshot()
        self._rebuild_lock = Lock()
        self._load_lock = Lock()

    @property
    def snapshot(self) -> RankingSnapshot:
        return self._snapshot

    def latest_version(self) -> int:
        """Return the newest stored build version, 0 when nothing was built."""
        try:
            with self._session_factory() as db:
                version = db.execute(select(func.max(RankingBuild.version))).scalar_one_or_none()
        except SQLAlchemyError as err:
            raise PersistenceError("Could not read the ranking build version") from err
        return int(version or 0)

    def current(self) -> RankingSnapshot:
        """Return the snapshot, first loading any newer build stored by another process."""
        if self.latest_version() > self._snapshot.version:
            with self._load_lock:
                if self.latest_version() > self._snapshot.version:
                    return self.load()
        return self._snapshot

    def load(self) -> RankingSnapshot:
        """Load the most recent persisted build into memory."""
        with self._session_factory() as db:
            build = db.execute(
                select(RankingBuild).order_by(RankingBuild.version.desc()).limit(1)
            ).scalar_one_or_none()
            if build is None:
                return self._snapshot
            rows = db.execute(select(RarityRanking).order_by(RarityRanking.rank)).scalars()
            records = [
                RankingRecord(item_id=row.item_id, rarity_score=row.rarity_score, rank=row.rank)
                for row in rows
            ]
            frequencies = FrequencyTable(
                {category: dict(values) for category, values in (build.frequencies or {}).items()}
            )
            snapshot = RankingSnapshot.from_records(
                build.version, records, build.built_at, frequencies
            )

        # A concurrent rebuild in this process may already have swapped in something newer.
        if snapshot.version < self._snapshot.version:
            return self._snapshot
        self._snapshot = snapshot
        logger.info("Loaded ranking build %d with %d items", snapshot.version, snapshot.total)
        return snapshot

    def rebuild(self) -> RankingSnapshot:
        """Recompute the full ranking from the current item set."""
        with self._rebuild_lock, self._session_factory() as db:
            items = (
                db.execute(select(Item).options(selectinload(Item.attributes)).order_by(Item.id))
                .scalars()
                .all()
            )
            collection = [CollectionItem(item.id, item.attribute_pairs) for item in items]
            table = build_frequency_table(collection)
            records = rank_all(collection, table)
            by_item = {record.item_id: record for record in records}

            try:
                build = RankingBuild(total=len(records), frequencies=table.as_dict())
                db.add(build)
                db.flush()
                db.execute(delete(RarityRanking))
                db.add_all(
                    RarityRanking(
                        item_id=record.item_id,
                        rarity_score=record.rarity_score,
                        rank=record.rank,
                        build_version=build.version,
                    )
                    for record in records
                )
                for item in items:
                    record = by_item[item.id]
                    item.rarity_score = record.rarity_score
                    item.rank = record.rank
                db.commit()
            except SQLAlchemyError as err:
                db.rollback()
                logger.error("Ranking build failed: %s", err, exc_info=True)
                raise PersistenceError("Could not store the ranking build") from err

            snapshot = RankingSnapshot.from_records(build.version, records, build.built_at, table)
            self._snapshot = snapshot

        logger.info("Ranking build %d stored for %d items", snapshot.version, snapshot.total)
        return snapshot

    def get_rarity(self, item_id: int) -> RankingRecord:
        """Return the ranking record for an item or raise ``NotFoundError``."""
        record = self.current().get(item_id)
        if record is None:
            raise NotFoundError(
                f"NFT #{item_id} not found in rarity rankings.",
                code="ranking_not_found",
            )
        return record

    def top(self, limit: int) -> list[RankingRecord]:
        return self.current().top(limit)

