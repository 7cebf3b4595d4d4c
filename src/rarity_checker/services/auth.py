"""Challenge-response wallet authentication and session handling.

Flow per wallet address::

    NoChallenge --issue_nonce--> Issued --verify ok--> Consumed
                                   |
                                   +--ttl elapsed--> Expired

Issuing again overwrites the pending nonce, so only the latest challenge is
valid. A failed verification leaves the nonce in place for a retry; a
successful one deletes it, which is what makes replays fail.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from sqlalchemy.orm import Session

from rarity_checker.core.errors import (
    AuthError,
    NonceNotFoundError,
    SignatureMismatchError,
)
from rarity_checker.core.settings import Settings
from rarity_checker.repositories import UserRepository
from rarity_checker.services.crypto import CryptoService
from rarity_checker.services.ephemeral import EphemeralStore

logger = logging.getLogger(__name__)

NONCE_KEY_PREFIX = "nonce:"
SESSION_KEY_PREFIX = "session:"


@dataclass(frozen=True)
class WalletSession:
    """An authenticated session bound to a wallet address."""

    session_id: str
    wallet_address: str
    access_token: str
    expires_at: datetime


class WalletAuthenticator:
    """Issues nonces, verifies wallet signatures and tracks sessions."""

    def __init__(
        self,
        store: EphemeralStore,
        config: Settings,
        crypto: CryptoService | None = None,
    ) -> None:
        self._store = store
        self._config = config
        self._crypto = crypto or CryptoService()

    @property
    def nonce_ttl_seconds(self) -> int:
        return self._config.nonce_ttl_seconds

    @staticmethod
    def _nonce_key(address: str) -> str:
        return f"{NONCE_KEY_PREFIX}{address}"

    @staticmethod
    def _session_key(session_id: str) -> str:
        return f"{SESSION_KEY_PREFIX}{session_id}"

    def issue_nonce(self, address: str) -> str:
        """Create a fresh challenge for ``address``, replacing any pending one."""
        wallet = self._crypto.normalize_address(address)
        nonce = self._crypto.generate_nonce()
        self._store.set(self._nonce_key(wallet), nonce, self._config.nonce_ttl_seconds)
        logger.debug("Issued nonce for %s", wallet)
        return nonce

    def verify(self, db: Session, address: str, signature: str) -> WalletSession:
        """Check a signed challenge and open a session for its signer.

        Raises:
            ValidationError: If the address is malformed.
            NonceNotFoundError: If no live nonce exists for the address.
            SignatureMismatchError: If the signature was not made by the address.
        """
        wallet = self._crypto.normalize_address(address)
        key = self._nonce_key(wallet)
        nonce = self._store.get(key)
        if nonce is None:
            raise NonceNotFoundError("Nonce not found or expired.")

        message = self._crypto.challenge_message(nonce)
        try:
            recovered = self._crypto.recover_signer(message, signature)
        except ValueError as err:
            logger.info("Rejected undecodable signature for %s", wallet)
            raise SignatureMismatchError("Signature verification failed.") from err

        if recovered != wallet:
            logger.info("Signature for %s was produced by %s", wallet, recovered)
            raise SignatureMismatchError("Signature verification failed.")

        # Only the request that removes this exact nonce may proceed; a
        # nonce reissued since the read stays in place.
        if not self._store.delete_if(key, nonce):
            raise NonceNotFoundError("Nonce not found or expired.")

        _, created = UserRepository(db).get_or_create(wallet)
        db.commit()
        if created:
            logger.info("Registered wallet %s", wallet)
        return self.create_session(wallet)

    def create_session(self, wallet_address: str) -> WalletSession:
        """Mint a bearer token and record its session id."""
        session_id = secrets.token_urlsafe(24)
        ttl = self._config.session_ttl_seconds
        expires_at = datetime.now(UTC) + timedelta(seconds=ttl)
        claims: dict[str, object] = {
            "sub": wallet_address,
            "jti": session_id,
            "exp": expires_at,
        }
        token: str = jwt.encode(
            claims,
            self._config.secret_key,
            algorithm=self._config.jwt_algorithm,
        )
        self._store.set(self._session_key(session_id), wallet_address, ttl)
        return WalletSession(
            session_id=session_id,
            wallet_address=wallet_address,
            access_token=token,
            expires_at=expires_at,
        )

    def _decode(self, token: str) -> tuple[str, str]:
        try:
            payload = jwt.decode(
                token,
                self._config.secret_key,
                algorithms=[self._config.jwt_algorithm],
            )
        except JWTError as err:
            raise AuthError("Could not validate credentials") from err
        subject = payload.get("sub")
        session_id = payload.get("jti")
        if not subject or not session_id:
            raise AuthError("Could not validate credentials")
        return str(subject), str(session_id)

    def resolve_session(self, token: str) -> str:
        """Return the wallet address of a live session token."""
        wallet, session_id = self._decode(token)
        if self._store.get(self._session_key(session_id)) != wallet:
            raise AuthError("Session expired or logged out.")
        return wallet

    def logout(self, token: str) -> None:
        """Revoke the session behind ``token``."""
        wallet, session_id = self._decode(token)
        self._store.delete(self._session_key(session_id))
        logger.debug("Session closed for %s", wallet)
