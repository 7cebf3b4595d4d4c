# src/rarity_checker/scripts/cli.py
"""Command-line entry point for collection maintenance and batch jobs.

Usage::

    rarity-checker sync        # fetch the collection from chain and rank it
    rarity-checker rebuild     # re-rank the items already stored
    rarity-checker rank 42     # print one token's rank
    rarity-checker frequencies # print the trait frequency table as JSON
    rarity-checker accrue      # run one points accrual pass
    rarity-checker migrate     # upgrade the database schema
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from rarity_checker.core.errors import NotFoundError, RarityCheckerError
from rarity_checker.core.logging import configure_logging
from rarity_checker.core.settings import settings
from rarity_checker.db.session import SessionLocal
from rarity_checker.services.accrual import AccrualEngine
from rarity_checker.services.chain import ChainSource
from rarity_checker.services.collection_sync import CollectionSync, SyncReport
from rarity_checker.services.metadata import MetadataClient
from rarity_checker.services.ranking import RankingService

logger = logging.getLogger(__name__)


async def _sync(ranking: RankingService) -> SyncReport:
    chain = ChainSource.from_settings(settings)
    metadata = MetadataClient.from_settings(settings)
    sync = CollectionSync(
        chain,
        metadata,
        ranking,
        SessionLocal,
        concurrency=settings.metadata_fetch_concurrency,
    )
    try:
        return await sync.run()
    finally:
        await metadata.close()


def cmd_sync(args: argparse.Namespace) -> int:
    report = asyncio.run(_sync(RankingService(SessionLocal)))
    print(
        f"Stored {len(report.stored)} of {report.total_supply} tokens; "
        f"ranking build {report.ranking_version} ranks {report.ranked} items"
    )
    for token_id, reason in sorted(report.skipped.items()):
        print(f"  skipped #{token_id}: {reason}")
    return 0


def cmd_rebuild(args: argparse.Namespace) -> int:
    snapshot = RankingService(SessionLocal).rebuild()
    print(f"Ranking build {snapshot.version} ranks {snapshot.total} items")
    return 0


def cmd_rank(args: argparse.Namespace) -> int:
    ranking = RankingService(SessionLocal)
    snapshot = ranking.load()
    record = ranking.get_rarity(args.token_id)
    print(f"NFT #{record.item_id} is ranked #{record.rank} out of {snapshot.total}")
    return 0


def cmd_frequencies(args: argparse.Namespace) -> int:
    snapshot = RankingService(SessionLocal).load()
    if snapshot.version == 0:
        raise NotFoundError("No ranking build stored yet.", code="ranking_not_found")
    document = json.dumps(snapshot.frequencies.as_dict(), indent=2, sort_keys=True)
    if args.output is None:
        print(document)
    else:
        args.output.write_text(document + "\n", encoding="utf-8")
        print(f"Wrote trait frequencies of build {snapshot.version} to {args.output}")
    return 0


def cmd_accrue(args: argparse.Namespace) -> int:
    report = AccrualEngine(SessionLocal).run()
    print(
        f"Accrued {report.points_awarded:.2f} points for {report.processed} users "
        f"({len(report.failures)} failed)"
    )
    for failure in report.failures:
        print(f"  {failure.wallet_address}: [{failure.code}] {failure.message}")
    return 1 if report.failures else 0


def cmd_migrate(args: argparse.Namespace) -> int:
    from rarity_checker.scripts.migrate import run_upgrade_head

    run_upgrade_head()
    print("Database upgraded to head")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rarity-checker",
        description="NFT rarity ranking and staking rewards maintenance",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("sync", help="Fetch the collection and rebuild the ranking").set_defaults(
        handler=cmd_sync
    )
    subparsers.add_parser("rebuild", help="Rebuild the ranking from stored items").set_defaults(
        handler=cmd_rebuild
    )
    rank = subparsers.add_parser("rank", help="Print the rank of one token")
    rank.add_argument("token_id", type=int)
    rank.set_defaults(handler=cmd_rank)
    frequencies = subparsers.add_parser(
        "frequencies", help="Print how often each trait value occurs"
    )
    frequencies.add_argument("-o", "--output", type=Path, default=None, help="Write JSON to a file")
    frequencies.set_defaults(handler=cmd_frequencies)
    subparsers.add_parser("accrue", help="Run one points accrual pass").set_defaults(
        handler=cmd_accrue
    )
    subparsers.add_parser("migrate", help="Upgrade the database schema").set_defaults(
        handler=cmd_migrate
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    try:
        return int(args.handler(args))
    except RarityCheckerError as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"error [{e.code}]: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
