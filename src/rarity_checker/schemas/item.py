# src/rarity_checker/schemas/item.py
"""Item and rarity schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class RarityResponse(BaseModel):
    """Rank of a single token within the collection."""

    token_id: int
    rank: int
    total: int = Field(..., description="Number of ranked tokens")
    rarity_score: float


class TraitOut(BaseModel):
    trait_type: str
    value: str

    model_config = ConfigDict(from_attributes=True)


class ItemResponse(BaseModel):
    """Stored view of a token, its traits and staking state."""

    token_id: int
    owner: str
    token_uri: str
    traits: list[TraitOut]
    rarity_score: float
    rank: int
    staked: bool
    staked_by: str | None = None
    staked_at: datetime | None = None


class RankedItem(BaseModel):
    token_id: int
    rarity_score: float
    rank: int


class TopItemsResponse(BaseModel):
    top_nfts: list[RankedItem]


class TraitFrequenciesResponse(BaseModel):
    """How often each trait value occurs, as counted by a ranking build."""

    version: int = Field(..., description="Ranking build the counts belong to")
    total: int
    frequencies: dict[str, dict[str, int]]
