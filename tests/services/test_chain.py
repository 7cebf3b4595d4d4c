# tests/services/test_chain.py
"""Tests for the contract wrapper."""

from __future__ import annotations

import pytest
from web3.exceptions import ContractLogicError

from rarity_checker.core.errors import UpstreamError
from rarity_checker.services.chain import ChainSource, resolve_token_uri

CONTRACT = "0x" + "12" * 20


@pytest.mark.parametrize(
    ("uri", "expected"),
    [
        ("ipfs://QmHash/1", "https://ipfs.io/ipfs/QmHash/1"),
        ("https://example.test/1.json", "https://example.test/1.json"),
    ],
)
def test_resolve_token_uri(uri, expected) -> None:
    assert resolve_token_uri(uri, "https://ipfs.io/ipfs/") == expected


@pytest.fixture()
def chain(mocker) -> ChainSource:
    web3 = mocker.MagicMock()
    return ChainSource(web3, CONTRACT)


def test_view_calls(chain) -> None:
    functions = chain.contract.functions
    functions.totalSupply.return_value.call.return_value = 3
    functions.ownerOf.return_value.call.return_value = "0x" + "AB" * 20
    functions.tokenURI.return_value.call.return_value = "ipfs://QmHash/2"

    assert chain.total_supply() == 3
    assert chain.owner_of(2) == "0x" + "ab" * 20
    assert chain.token_uri(2) == "ipfs://QmHash/2"
    functions.ownerOf.assert_called_with(2)


def test_contract_errors_become_upstream_errors(chain) -> None:
    chain.contract.functions.ownerOf.return_value.call.side_effect = ContractLogicError(
        "execution reverted: nonexistent token"
    )

    with pytest.raises(UpstreamError):
        chain.owner_of(99)


def test_from_settings_requires_chain_config(test_settings) -> None:
    with pytest.raises(UpstreamError):
        ChainSource.from_settings(test_settings)
