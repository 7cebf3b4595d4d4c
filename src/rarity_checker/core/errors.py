"""Error taxonomy shared by services and the HTTP layer.

Every error carries a stable machine-readable ``code`` and a human-readable
message. The API layer turns them into ``{"error": {"code", "message"}}``
responses; nothing else about the failure leaves the process.
"""

from __future__ import annotations

from typing import ClassVar


class RarityCheckerError(Exception):
    """Base class for all domain errors."""

    default_code: ClassVar[str] = "internal_error"
    status_code: ClassVar[int] = 500

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code

    def to_dict(self) -> dict[str, str]:
        """Return the public representation of the error."""
        return {"code": self.code, "message": self.message}


class ValidationError(RarityCheckerError):
    """Malformed identifier or missing required field."""

    default_code = "validation_error"
    status_code = 400


class NotFoundError(RarityCheckerError):
    """Unknown item, user or ranking entry."""

    default_code = "not_found"
    status_code = 404


class ConflictError(RarityCheckerError):
    """Operation refused because of the current state of an entity."""

    default_code = "conflict"
    status_code = 409


class AlreadyStakedError(ConflictError):
    default_code = "already_staked"


class NotStakedError(ConflictError):
    default_code = "not_staked"


class NotOwnerError(ConflictError):
    default_code = "not_owner"
    status_code = 403


class AuthError(RarityCheckerError):
    """Nonce, signature or session failures. Never mutates state."""

    default_code = "not_authenticated"
    status_code = 401


class NonceNotFoundError(AuthError):
    default_code = "nonce_not_found"


class SignatureMismatchError(AuthError):
    default_code = "signature_mismatch"


class UpstreamError(RarityCheckerError):
    """Chain or metadata source failure."""

    default_code = "upstream_error"
    status_code = 502


class PersistenceError(RarityCheckerError):
    """Backing store unavailable or a write failed."""

    default_code = "persistence_error"
    status_code = 503
