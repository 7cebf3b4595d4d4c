# src/rarity_checker/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    auth_router,
    leaderboard_router,
    rarity_router,
    staking_router,
    users_router,
)

__all__ = [
    "auth_router",
    "leaderboard_router",
    "rarity_router",
    "staking_router",
    "users_router",
]
