# src/rarity_checker/api/v1/endpoints/auth.py
"""Wallet authentication endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Query

from rarity_checker.api.v1.dependencies import AuthenticatorDep, SessionDep, SessionTokenDep
from rarity_checker.schemas.auth import NonceResponse, SessionResponse, VerifyRequest
from rarity_checker.schemas.common import MessageResponse
from rarity_checker.services.crypto import CryptoService

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.get(
    "/nonce",
    summary="Issue a one-time signing challenge",
    response_model=NonceResponse,
)
async def issue_nonce(
    authenticator: AuthenticatorDep,
    wallet_address: str = Query(..., description="0x-prefixed wallet address"),
) -> NonceResponse:
    """Return a fresh nonce; any earlier nonce for the wallet stops working."""
    nonce = authenticator.issue_nonce(wallet_address)
    return NonceResponse(
        nonce=nonce,
        message=CryptoService.challenge_message(nonce),
        expires_in=authenticator.nonce_ttl_seconds,
    )


@router.post(
    "/verify",
    summary="Verify a signed nonce and open a session",
    response_model=SessionResponse,
)
async def verify_signature(
    payload: VerifyRequest,
    db: SessionDep,
    authenticator: AuthenticatorDep,
) -> SessionResponse:
    """Authenticate by providing the signature over the issued challenge."""
    session = authenticator.verify(db, payload.wallet_address, payload.signature)
    return SessionResponse(
        access_token=session.access_token,
        token_type="bearer",
        wallet_address=session.wallet_address,
        expires_at=session.expires_at,
    )


@router.post("/logout", summary="Close the current session", response_model=MessageResponse)
async def logout(token: SessionTokenDep, authenticator: AuthenticatorDep) -> MessageResponse:
    authenticator.logout(token)
    return MessageResponse(message="Logged out successfully.")
