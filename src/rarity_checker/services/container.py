"""Explicit construction of the long-lived service objects."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session, sessionmaker

from rarity_checker.core.settings import Settings
from rarity_checker.db.session import SessionLocal
from rarity_checker.services.accrual import AccrualEngine
from rarity_checker.services.accrual_worker import AccrualWorker
from rarity_checker.services.auth import WalletAuthenticator
from rarity_checker.services.ephemeral import EphemeralStore, build_ephemeral_store
from rarity_checker.services.ranking import RankingService


@dataclass
class Services:
    """Everything the API needs, built once per process and kept on ``app.state``."""

    config: Settings
    store: EphemeralStore
    authenticator: WalletAuthenticator
    ranking: RankingService
    accrual: AccrualEngine
    accrual_worker: AccrualWorker


def build_services(
    config: Settings,
    session_factory: sessionmaker[Session] = SessionLocal,
    *,
    store: EphemeralStore | None = None,
) -> Services:
    store = store or build_ephemeral_store(config)
    accrual = AccrualEngine(session_factory)
    return Services(
        config=config,
        store=store,
        authenticator=WalletAuthenticator(store, config),
        ranking=RankingService(session_factory),
        accrual=accrual,
        accrual_worker=AccrualWorker(accrual, config),
    )
