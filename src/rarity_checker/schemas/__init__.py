# src/rarity_checker/schemas/__init__.py
"""Pydantic schemas for the Rarity Checker API."""

from .auth import NonceResponse, SessionResponse, VerifyRequest
from .common import ErrorResponse, MessageResponse
from .item import ItemResponse, RankedItem, RarityResponse, TopItemsResponse, TraitOut
from .user import (
    CurrentUserResponse,
    StakedItemOut,
    StakedItemsResponse,
    StakeRequest,
    StakeResponse,
    TopUsersResponse,
    UserSummary,
)

__all__ = [
    "NonceResponse", "SessionResponse", "VerifyRequest",
    "ErrorResponse", "MessageResponse",
    "ItemResponse", "RankedItem", "RarityResponse", "TopItemsResponse", "TraitOut",
    "CurrentUserResponse", "StakedItemOut", "StakedItemsResponse",
    "StakeRequest", "StakeResponse", "TopUsersResponse", "UserSummary",
]
