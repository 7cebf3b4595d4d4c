"""Daily points accrual and tier re-evaluation."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from rarity_checker.core.errors import NotFoundError, PersistenceError, RarityCheckerError
from rarity_checker.db.session import SessionLocal
from rarity_checker.db.time import utcnow
from rarity_checker.models import Item, StakedItem, Tier, User

logger = logging.getLogger(__name__)

BASE_POINTS_PER_RARITY = 10.0

TIER_MULTIPLIERS: dict[Tier, float] = {
    Tier.BRONZE: 1.0,
    Tier.SILVER: 1.5,
    Tier.GOLD: 2.0,
}

# Checked top-down: (tier, minimum points, minimum staked items).
TIER_THRESHOLDS: tuple[tuple[Tier, float, int], ...] = (
    (Tier.GOLD, 1000.0, 5),
    (Tier.SILVER, 500.0, 3),
)


def parse_tier(value: str | Tier | None) -> Tier:
    """Return the Tier for a stored value; unknown values map to the lowest tier."""
    if isinstance(value, Tier):
        return value
    try:
        return Tier(value)
    except ValueError:
        return Tier.BRONZE


def tier_multiplier(tier: str | Tier | None) -> float:
    return TIER_MULTIPLIERS[parse_tier(tier)]


def compute_daily_points(rarity_scores: Iterable[float], tier: str | Tier | None) -> float:
    """Return ``10 * sum(scores) * multiplier(tier)``."""
    return BASE_POINTS_PER_RARITY * sum(rarity_scores) * tier_multiplier(tier)


def evaluate_tier(points: float, staked_count: int) -> Tier:
    """Return the tier earned by the current points and staked count."""
    for tier, min_points, min_staked in TIER_THRESHOLDS:
        if points >= min_points and staked_count >= min_staked:
            return tier
    return Tier.BRONZE


@dataclass(frozen=True)
class UserAccrual:
    """Outcome of one user's accrual step."""

    wallet_address: str
    staked_count: int
    daily_points: float
    points: float
    previous_tier: Tier
    tier: Tier


@dataclass(frozen=True)
class AccrualFailure:
    wallet_address: str
    code: str
    message: str


@dataclass
class AccrualReport:
    """Summary of an accrual run. Failures never stop the remaining users."""

    started_at: datetime
    finished_at: datetime | None = None
    results: list[UserAccrual] = field(default_factory=list)
    failures: list[AccrualFailure] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.results)

    @property
    def points_awarded(self) -> float:
        return sum(result.daily_points for result in self.results)


class AccrualEngine:
    """Awards daily points for staked items and moves users between tiers.

    Each user is handled in its own transaction: the staked set is read as a
    point-in-time snapshot, points are incremented in the database and the
    tier is rewritten, all before one commit. Rarity scores come from the
    items as stored by the last ranking build.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session] = SessionLocal,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock

    def _eligible_wallets(self) -> list[str]:
        # Users without stakes are still re-evaluated while above the lowest tier.
        with self._session_factory() as db:
            staked = select(StakedItem.wallet_address)
            try:
                result = db.execute(
                    select(User.wallet_address)
                    .where(
                        or_(
                            User.wallet_address.in_(staked),
                            User.tier != Tier.BRONZE.value,
                        )
                    )
                    .order_by(User.wallet_address)
                )
                return list(result.scalars())
            except SQLAlchemyError as err:
                raise PersistenceError("Could not list users for accrual") from err

    def run(self) -> AccrualReport:
        """Run one accrual period for every eligible user."""
        report = AccrualReport(started_at=self._clock())
        wallets = self._eligible_wallets()
        logger.info("Accrual run started for %d users", len(wallets))

        for wallet in wallets:
            try:
                report.results.append(self.accrue_user(wallet))
            except RarityCheckerError as err:
                logger.warning("Accrual failed for %s: %s", wallet, err.message)
                report.failures.append(AccrualFailure(wallet, err.code, err.message))
            except Exception as err:  # one user's failure must not end the run
                logger.error("Unexpected accrual error for %s", wallet, exc_info=True)
                report.failures.append(AccrualFailure(wallet, "internal_error", str(err)))

        report.finished_at = self._clock()
        logger.info(
            "Accrual run finished: %d users updated, %d failures, %.4f points awarded",
            report.processed,
            len(report.failures),
            report.points_awarded,
        )
        return report

    def accrue_user(self, wallet_address: str) -> UserAccrual:
        """Apply one period of accrual to a single user atomically."""
        with self._session_factory() as db:
            try:
                user = db.execute(
                    select(User).where(User.wallet_address == wallet_address).with_for_update()
                ).scalar_one_or_none()
                if user is None:
                    raise NotFoundError("User not found.", code="user_not_found")
                previous_tier = parse_tier(user.tier)

                scores = list(
                    db.execute(
                        select(Item.rarity_score)
                        .join(StakedItem, StakedItem.item_id == Item.id)
                        .where(StakedItem.wallet_address == wallet_address)
                    ).scalars()
                )
                daily_points = compute_daily_points(scores, previous_tier)

                db.execute(
                    update(User)
                    .where(User.wallet_address == wallet_address)
                    .values(points=User.points + daily_points)
                    .execution_options(synchronize_session=False)
                )
                points = db.execute(
                    select(User.points).where(User.wallet_address == wallet_address)
                ).scalar_one()
                tier = evaluate_tier(points, len(scores))
                db.execute(
                    update(User)
                    .where(User.wallet_address == wallet_address)
                    .values(tier=tier.value)
                    .execution_options(synchronize_session=False)
                )
                db.commit()
            except SQLAlchemyError as err:
                db.rollback()
                raise PersistenceError(f"Could not update points for {wallet_address}") from err

        if tier != previous_tier:
            logger.info("%s moved from %s to %s", wallet_address, previous_tier.value, tier.value)
        return UserAccrual(
            wallet_address=wallet_address,
            staked_count=len(scores),
            daily_points=daily_points,
            points=points,
            previous_tier=previous_tier,
            tier=tier,
        )
