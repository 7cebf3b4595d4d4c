"""Endpoints describing the authenticated wallet user."""

from __future__ import annotations

from fastapi import APIRouter

from rarity_checker.api.v1.dependencies import CurrentUserDep, SessionDep
from rarity_checker.models import User
from rarity_checker.repositories import ItemRepository
from rarity_checker.schemas.user import (
    CurrentUserResponse,
    StakedItemOut,
    StakedItemsResponse,
    UserSummary,
)

router = APIRouter(prefix="/user", tags=["users"])


def user_summary(user: User) -> UserSummary:
    """Build the public view of a user, staked items ordered by token id."""
    return UserSummary(
        wallet_address=user.wallet_address,
        points=user.points,
        tier=user.tier,
        staked_items=_staked_items(user),
    )


def _staked_items(user: User) -> list[StakedItemOut]:
    entries = sorted(user.staked_items, key=lambda entry: entry.item_id)
    return [StakedItemOut(token_id=entry.item_id, staked_at=entry.staked_at) for entry in entries]


@router.get("", response_model=CurrentUserResponse)
async def get_current_user_info(current_user: CurrentUserDep) -> CurrentUserResponse:
    """Return the caller's wallet, points, tier and staked items."""
    return CurrentUserResponse(user=user_summary(current_user))


@router.get("/staked-items", response_model=StakedItemsResponse)
async def get_staked_items(current_user: CurrentUserDep, db: SessionDep) -> StakedItemsResponse:
    """List the items the caller currently has staked, lowest token id first."""
    items = ItemRepository(db).list_staked_by(current_user.wallet_address)
    return StakedItemsResponse(
        staked_items=[
            StakedItemOut(token_id=item.id, staked_at=item.staked_at)
            for item in items
            if item.staked_at is not None
        ],
        points=current_user.points,
        tier=current_user.tier,
    )
