"""Rarity Checker: NFT rarity ranking and staking rewards."""

__version__ = "0.1.0"
