"""Loading the collection from chain into the database, then re-ranking it."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from rarity_checker.core.errors import PersistenceError, UpstreamError
from rarity_checker.repositories import ItemRepository
from rarity_checker.services.chain import ChainSource
from rarity_checker.services.metadata import MetadataClient
from rarity_checker.services.ranking import RankingService
from rarity_checker.services.rarity import AttributePair, normalize_attributes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchedToken:
    """Everything learned about one token during a sync."""

    token_id: int
    owner: str
    token_uri: str
    metadata: dict[str, Any]
    attributes: tuple[AttributePair, ...]


@dataclass
class SyncReport:
    """Outcome of a collection sync."""

    total_supply: int = 0
    stored: list[int] = field(default_factory=list)
    skipped: dict[int, str] = field(default_factory=dict)
    ranking_version: int | None = None
    ranked: int = 0


class CollectionSync:
    """Fetches every token with bounded concurrency and rebuilds the ranking.

    Work is an explicit list of token ids. Each id is fetched under a
    semaphore, and its result or failure is collected individually, so one
    unreachable token only removes that token from this sync.
    """

    def __init__(
        self,
        chain: ChainSource,
        metadata: MetadataClient,
        ranking: RankingService,
        session_factory: sessionmaker[Session],
        *,
        concurrency: int = 5,
    ) -> None:
        self.chain = chain
        self.metadata = metadata
        self.ranking = ranking
        self._session_factory = session_factory
        self._concurrency = max(1, concurrency)

    async def fetch_token(self, token_id: int) -> FetchedToken:
        owner = await asyncio.to_thread(self.chain.owner_of, token_id)
        token_uri = await asyncio.to_thread(self.chain.token_uri, token_id)
        document = await self.metadata.fetch(token_id, token_uri)
        return FetchedToken(
            token_id=token_id,
            owner=owner,
            token_uri=token_uri,
            metadata=document,
            attributes=normalize_attributes(document.get("attributes")),
        )

    async def fetch_all(
        self, token_ids: Iterable[int]
    ) -> tuple[list[FetchedToken], dict[int, str]]:
        """Fetch tokens concurrently; return successes and per-token failures."""
        semaphore = asyncio.Semaphore(self._concurrency)

        async def guarded(token_id: int) -> tuple[int, FetchedToken | None, str | None]:
            async with semaphore:
                try:
                    return token_id, await self.fetch_token(token_id), None
                except UpstreamError as e:
                    logger.warning("Skipping token %d: %s", token_id, e.message)
                    return token_id, None, e.message

        results = await asyncio.gather(*(guarded(token_id) for token_id in token_ids))

        fetched: list[FetchedToken] = []
        skipped: dict[int, str] = {}
        for token_id, token, error in results:
            if token is not None:
                fetched.append(token)
            else:
                skipped[token_id] = error or "unknown error"
        return fetched, skipped

    def store(self, tokens: list[FetchedToken]) -> list[int]:
        """Upsert fetched tokens in a single transaction."""
        with self._session_factory() as db:
            repo = ItemRepository(db)
            try:
                for token in tokens:
                    repo.upsert(
                        item_id=token.token_id,
                        owner=token.owner,
                        token_uri=token.token_uri,
                        metadata=token.metadata,
                        attributes=token.attributes,
                    )
                db.commit()
            except SQLAlchemyError as err:
                db.rollback()
                raise PersistenceError("Could not store fetched items") from err
        return [token.token_id for token in tokens]

    async def run(self) -> SyncReport:
        """Sync the whole collection and rebuild the ranking."""
        report = SyncReport()
        report.total_supply = await asyncio.to_thread(self.chain.total_supply)
        logger.info("Syncing collection with total supply %d", report.total_supply)

        if report.total_supply > 0:
            tokens, report.skipped = await self.fetch_all(range(1, report.total_supply + 1))
            report.stored = await asyncio.to_thread(self.store, tokens)
        else:
            logger.info("No tokens found")

        snapshot = await asyncio.to_thread(self.ranking.rebuild)
        report.ranking_version = snapshot.version
        report.ranked = snapshot.total
        logger.info(
            "Sync finished: %d stored, %d skipped, ranking build %d",
            len(report.stored),
            len(report.skipped),
            snapshot.version,
        )
        return report
