# src/rarity_checker/services/crypto.py
"""Wallet address handling and signed-message recovery."""

from __future__ import annotations

import re
import secrets

from eth_account import Account
from eth_account.messages import encode_defunct

from rarity_checker.core.errors import ValidationError

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
NONCE_BYTES = 16
CHALLENGE_TEMPLATE = "I am signing my one-time nonce: {nonce}"


class CryptoService:
    """Service handling wallet cryptography."""

    @staticmethod
    def normalize_address(address: str | None) -> str:
        """Validate a hex wallet address and return it lowercased.

        Raises:
            ValidationError: If the address is missing or malformed.
        """
        cleaned = (address or "").strip()
        if not cleaned:
            raise ValidationError("Wallet address is required.")
        if not ADDRESS_PATTERN.match(cleaned):
            raise ValidationError("Wallet address must be 0x followed by 40 hex characters.")
        return cleaned.lower()

    @staticmethod
    def generate_nonce() -> str:
        """Generate a cryptographically secure nonce.

        Returns:
            Hex-encoded nonce
        """
        return secrets.token_hex(NONCE_BYTES)

    @staticmethod
    def challenge_message(nonce: str) -> str:
        """Return the exact text a wallet signs for ``nonce``."""
        return CHALLENGE_TEMPLATE.format(nonce=nonce)

    @staticmethod
    def recover_signer(message: str, signature: str) -> str:
        """Recover the lowercase address that produced an EIP-191 signature.

        Raises:
            ValueError: If the signature cannot be decoded or recovered.
        """
        try:
            recovered = Account.recover_message(encode_defunct(text=message), signature=signature)
        except Exception as err:
            raise ValueError(f"Invalid signature: {err}") from err
        return str(recovered).lower()

    @staticmethod
    def sign_message(private_key: str | bytes, message: str) -> str:
        """Sign ``message`` with a hex private key and return the 0x signature.

        Used by the CLI and tests to act as a wallet.
        """
        signed = Account.sign_message(encode_defunct(text=message), private_key=private_key)
        signature = signed.signature.hex()
        return signature if signature.startswith("0x") else f"0x{signature}"
