# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from typing import Any

import pytest
from eth_account import Account
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REDIS_URL", "")
os.environ.setdefault("ACCRUAL_ENABLED", "false")

from rarity_checker.core.settings import Settings
from rarity_checker.db.session import Base
from rarity_checker.db.session import get_db as app_get_session
from rarity_checker.main import app as fastapi_app
from rarity_checker.models import Item, ItemAttribute, StakedItem, User
from rarity_checker.services.container import Services, build_services
from rarity_checker.services.crypto import CryptoService
from rarity_checker.services.ephemeral import EphemeralStore
from rarity_checker.services.ranking import RankingService

TEST_DB_URL = "sqlite://"


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> Iterator[sessionmaker[Session]]:
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    try:
        yield factory
    finally:
        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def test_settings() -> Settings:
    """Provide explicit settings so tests never depend on a local .env file."""
    return Settings(  # type: ignore[call-arg]
        _env_file=None,
        SECRET_KEY="test-secret-key",
        DATABASE_URL=TEST_DB_URL,
        REDIS_URL="",
        ACCRUAL_ENABLED=False,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store(clock: FakeClock) -> EphemeralStore:
    return EphemeralStore(clock=clock)


@pytest.fixture()
def services(
    test_settings: Settings,
    session_factory: sessionmaker[Session],
    store: EphemeralStore,
) -> Services:
    return build_services(test_settings, session_factory, store=store)


@pytest.fixture()
def ranking(services: Services) -> RankingService:
    return services.ranking


@pytest.fixture()
def app(services: Services, session_factory: sessionmaker[Session]) -> Iterator[FastAPI]:
    def _get_session_override() -> Generator[Session, None, None]:
        with session_factory() as session:
            yield session

    fastapi_app.state.services = services
    fastapi_app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield fastapi_app
    finally:
        fastapi_app.dependency_overrides.pop(app_get_session, None)
        del fastapi_app.state.services


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def wallet() -> Any:
    """A fresh local Ethereum account acting as the test user's wallet."""
    return Account.create()


@pytest.fixture()
def other_wallet() -> Any:
    return Account.create()


def sign_challenge(account: Any, nonce: str) -> str:
    """Sign the login challenge for ``nonce`` with a local account."""
    return CryptoService.sign_message(account.key, CryptoService.challenge_message(nonce))


@pytest.fixture()
def make_item(db_session: Session) -> Callable[..., Item]:
    """Persist an item with ordered attributes and commit it."""

    def _make_item(
        item_id: int,
        attributes: list[tuple[str, str]] | None = None,
        *,
        owner: str = "0x" + "ab" * 20,
        rarity_score: float = 0.0,
    ) -> Item:
        item = Item(
            id=item_id,
            owner=owner,
            token_uri=f"ipfs://collection/{item_id}",
            rarity_score=rarity_score,
        )
        item.attributes = [
            ItemAttribute(position=position, trait_type=category, value=value)
            for position, (category, value) in enumerate(attributes or [])
        ]
        db_session.add(item)
        db_session.commit()
        return item

    return _make_item


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Persist a wallet user and commit it."""

    def _make_user(wallet_address: str, *, points: float = 0.0, tier: str = "Bronze") -> User:
        user = User(wallet_address=wallet_address.lower(), points=points, tier=tier)
        db_session.add(user)
        db_session.commit()
        return user

    return _make_user


@pytest.fixture()
def stake_directly(db_session: Session) -> Callable[[int, str], None]:
    """Mark an item as staked without going through the ledger."""

    def _stake(item_id: int, wallet_address: str) -> None:
        from rarity_checker.db.time import utcnow

        now = utcnow()
        item = db_session.get(Item, item_id)
        assert item is not None
        item.staked = True
        item.staked_by = wallet_address
        item.staked_at = now
        db_session.add(StakedItem(item_id=item_id, wallet_address=wallet_address, staked_at=now))
        db_session.commit()

    return _stake


@pytest.fixture()
def auth_headers(client: TestClient, wallet: Any) -> dict[str, str]:
    """Log the test wallet in through the API and return bearer headers."""
    address = wallet.address.lower()
    nonce = client.get("/api/v1/auth/nonce", params={"wallet_address": address}).json()["nonce"]
    response = client.post(
        "/api/v1/auth/verify",
        json={"wallet_address": address, "signature": sign_challenge(wallet, nonce)},
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
