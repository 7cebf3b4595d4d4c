"""Data access helpers."""

from .item_repo import ItemRepository
from .user_repo import UserRepository

__all__ = ["ItemRepository", "UserRepository"]
