# src/rarity_checker/services/__init__.py
"""Business logic services for the Rarity Checker application."""

from .accrual import AccrualEngine
from .auth import WalletAuthenticator
from .crypto import CryptoService
from .ephemeral import EphemeralStore
from .ranking import RankingService
from .staking import StakeLedger

__all__ = [
    "AccrualEngine",
    "CryptoService",
    "EphemeralStore",
    "RankingService",
    "StakeLedger",
    "WalletAuthenticator",
]
