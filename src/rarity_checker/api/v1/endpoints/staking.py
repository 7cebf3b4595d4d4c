"""Stake and unstake endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from rarity_checker.api.v1.dependencies import CurrentWalletDep, SessionDep
from rarity_checker.schemas.user import StakeRequest, StakeResponse
from rarity_checker.services.staking import StakeLedger

router = APIRouter(tags=["staking"])


@router.post("/stake", response_model=StakeResponse)
async def stake_item(
    payload: StakeRequest,
    wallet_address: CurrentWalletDep,
    db: SessionDep,
) -> StakeResponse:
    """Stake a token for the caller.

    Any stored token may be staked by any authenticated wallet; on-chain
    ownership is not checked here.
    """
    item = StakeLedger(db).stake(payload.token_id, wallet_address)
    return StakeResponse(message=f"NFT #{item.id} staked successfully.", token_id=item.id)


@router.post("/unstake", response_model=StakeResponse)
async def unstake_item(
    payload: StakeRequest,
    wallet_address: CurrentWalletDep,
    db: SessionDep,
) -> StakeResponse:
    """Unstake a token the caller staked earlier."""
    item = StakeLedger(db).unstake(payload.token_id, wallet_address)
    return StakeResponse(message=f"NFT #{item.id} unstaked successfully.", token_id=item.id)
