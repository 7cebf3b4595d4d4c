"""Leaderboards for the rarest tokens and the highest-earning wallets."""

from __future__ import annotations

from fastapi import APIRouter, Query

from rarity_checker.api.v1.dependencies import RankingServiceDep, SessionDep
from rarity_checker.api.v1.endpoints.users import user_summary
from rarity_checker.repositories import UserRepository
from rarity_checker.schemas.item import RankedItem, TopItemsResponse
from rarity_checker.schemas.user import TopUsersResponse

DEFAULT_LIMIT = 10
MAX_LIMIT = 100

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


@router.get("/top-items", response_model=TopItemsResponse)
async def top_items(
    ranking: RankingServiceDep,
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
) -> TopItemsResponse:
    """Return the rarest tokens from the current ranking build."""
    return TopItemsResponse(
        top_nfts=[
            RankedItem(token_id=record.item_id, rarity_score=record.rarity_score, rank=record.rank)
            for record in ranking.top(limit)
        ]
    )


@router.get("/top-users", response_model=TopUsersResponse)
async def top_users(
    db: SessionDep,
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
) -> TopUsersResponse:
    users = UserRepository(db).top_by_points(limit)
    return TopUsersResponse(top_users=[user_summary(user) for user in users])
