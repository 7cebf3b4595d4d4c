"""Rarity lookups for individual tokens."""

from __future__ import annotations

from fastapi import APIRouter, Path

from rarity_checker.api.v1.dependencies import RankingServiceDep, SessionDep
from rarity_checker.core.errors import NotFoundError
from rarity_checker.repositories import ItemRepository
from rarity_checker.schemas.item import (
    ItemResponse,
    RarityResponse,
    TraitFrequenciesResponse,
    TraitOut,
)

router = APIRouter(tags=["rarity"])


@router.get("/rarity/frequencies", response_model=TraitFrequenciesResponse)
async def get_trait_frequencies(ranking: RankingServiceDep) -> TraitFrequenciesResponse:
    """Return per-category value counts from the current ranking build."""
    snapshot = ranking.current()
    return TraitFrequenciesResponse(
        version=snapshot.version,
        total=snapshot.total,
        frequencies=snapshot.frequencies.as_dict(),
    )


@router.get("/rarity/{token_id}", response_model=RarityResponse)
async def get_rarity(
    ranking: RankingServiceDep,
    token_id: int = Path(..., ge=1),
) -> RarityResponse:
    """Return a token's rank out of the ranked collection size."""
    snapshot = ranking.current()
    record = snapshot.get(token_id)
    if record is None:
        raise NotFoundError(
            f"NFT #{token_id} not found in rarity rankings.",
            code="ranking_not_found",
        )
    return RarityResponse(
        token_id=record.item_id,
        rank=record.rank,
        total=snapshot.total,
        rarity_score=record.rarity_score,
    )


@router.get("/items/{token_id}", response_model=ItemResponse)
async def get_item(db: SessionDep, token_id: int = Path(..., ge=1)) -> ItemResponse:
    item = ItemRepository(db).get_by_id(token_id)
    if item is None:
        raise NotFoundError("NFT not found.", code="item_not_found")

    return ItemResponse(
        token_id=item.id,
        owner=item.owner,
        token_uri=item.token_uri,
        traits=[TraitOut.model_validate(attribute) for attribute in item.attributes],
        rarity_score=item.rarity_score,
        rank=item.rank,
        staked=item.staked,
        staked_by=item.staked_by,
        staked_at=item.staked_at,
    )
