"""Read-only access to the ERC-721 contract that defines the collection."""

from __future__ import annotations

import logging
from typing import Any

from web3 import Web3
from web3.exceptions import Web3Exception

from rarity_checker.core.errors import UpstreamError
from rarity_checker.core.settings import Settings

logger = logging.getLogger(__name__)

ERC721_ABI: list[dict[str, Any]] = [
    {
        "name": "totalSupply",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "tokenURI",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "tokenId", "type": "uint256"}],
        "outputs": [{"name": "", "type": "string"}],
    },
    {
        "name": "ownerOf",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "tokenId", "type": "uint256"}],
        "outputs": [{"name": "", "type": "address"}],
    },
]

IPFS_SCHEME = "ipfs://"


def resolve_token_uri(token_uri: str, gateway: str) -> str:
    """Rewrite an ``ipfs://`` URI onto an HTTP gateway; other URIs pass through."""
    if token_uri.startswith(IPFS_SCHEME):
        return gateway.rstrip("/") + "/" + token_uri[len(IPFS_SCHEME):]
    return token_uri


class ChainSource:
    """Thin wrapper over the contract's view functions.

    Calls are blocking; async callers run them through ``asyncio.to_thread``.
    """

    def __init__(self, web3: Web3, contract_address: str) -> None:
        self.web3 = web3
        self.contract = web3.eth.contract(
            address=Web3.to_checksum_address(contract_address),
            abi=ERC721_ABI,
        )

    @classmethod
    def from_settings(cls, config: Settings) -> ChainSource:
        if not config.chain_configured:
            raise UpstreamError("RPC_URL and CONTRACT_ADDRESS must be configured")
        web3 = Web3(Web3.HTTPProvider(config.rpc_url))
        return cls(web3, str(config.contract_address))

    def _call(self, function_name: str, *args: int) -> Any:
        try:
            return getattr(self.contract.functions, function_name)(*args).call()
        except (Web3Exception, ValueError, OSError) as e:
            logger.warning("Contract call %s%s failed: %s", function_name, args, e)
            raise UpstreamError(f"Contract call {function_name} failed: {e}") from e

    def total_supply(self) -> int:
        return int(self._call("totalSupply"))

    def owner_of(self, token_id: int) -> str:
        return str(self._call("ownerOf", token_id)).lower()

    def token_uri(self, token_id: int) -> str:
        return str(self._call("tokenURI", token_id))
