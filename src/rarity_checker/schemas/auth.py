# src/rarity_checker/schemas/auth.py
"""Wallet authentication schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class NonceResponse(BaseModel):
    """Challenge returned to a wallet before it signs in."""

    nonce: str = Field(..., description="Single-use hex nonce")
    message: str = Field(..., description="Exact text the wallet must sign")
    expires_in: int = Field(..., description="Seconds until the nonce expires")


class VerifyRequest(BaseModel):
    """Signed challenge submitted by a wallet."""

    wallet_address: str = Field(..., min_length=1, description="0x-prefixed wallet address")
    signature: str = Field(..., min_length=1, description="0x-prefixed personal_sign signature")


class SessionResponse(BaseModel):
    """Response returned after a successful verification."""

    access_token: str = Field(..., description="Bearer token for this session")
    token_type: str = Field("bearer", description="Token type (always 'bearer')")
    wallet_address: str
    expires_at: datetime
