# src/rarity_checker/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .auth import router as auth_router
from .leaderboard import router as leaderboard_router
from .rarity import router as rarity_router
from .staking import router as staking_router
from .users import router as users_router

__all__ = [
    "auth_router",
    "leaderboard_router",
    "rarity_router",
    "staking_router",
    "users_router",
]
