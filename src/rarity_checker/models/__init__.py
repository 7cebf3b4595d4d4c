# src/rarity_checker/models/__init__.py
"""SQLAlchemy models for the Rarity Checker application."""

from .item import Item, ItemAttribute
from .ranking import RankingBuild, RarityRanking
from .user import StakedItem, Tier, User

__all__ = [
    "Item", "ItemAttribute",
    "RankingBuild", "RarityRanking",
    "StakedItem", "Tier", "User",
]
