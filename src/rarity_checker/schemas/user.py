# src/rarity_checker/schemas/user.py
"""User and staking schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class StakedItemOut(BaseModel):
    token_id: int
    staked_at: datetime


class UserSummary(BaseModel):
    """Public view of a wallet user."""

    wallet_address: str
    points: float
    tier: str
    staked_items: list[StakedItemOut]


class CurrentUserResponse(BaseModel):
    user: UserSummary


class StakedItemsResponse(BaseModel):
    staked_items: list[StakedItemOut]
    points: float
    tier: str


class StakeRequest(BaseModel):
    """Body for stake and unstake requests."""

    token_id: int = Field(..., ge=1, description="Token to stake or unstake")


class StakeResponse(BaseModel):
    message: str
    token_id: int


class TopUsersResponse(BaseModel):
    top_users: list[UserSummary]
