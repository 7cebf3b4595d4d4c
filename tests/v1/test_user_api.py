# tests/v1/test_user_api.py
"""Tests for the current-user endpoints."""

from __future__ import annotations

from fastapi import status


def test_current_user(client, auth_headers, wallet, make_item, stake_directly) -> None:
    make_item(9)
    make_item(4)
    stake_directly(9, wallet.address.lower())
    stake_directly(4, wallet.address.lower())

    response = client.get("/api/v1/user", headers=auth_headers)

    assert response.status_code == status.HTTP_200_OK
    user = response.json()["user"]
    assert user["wallet_address"] == wallet.address.lower()
    assert user["points"] == 0
    assert user["tier"] == "Bronze"
    assert [entry["token_id"] for entry in user["staked_items"]] == [4, 9]


def test_staked_items_empty(client, auth_headers) -> None:
    response = client.get("/api/v1/user/staked-items", headers=auth_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"staked_items": [], "points": 0.0, "tier": "Bronze"}


def test_staked_items_lists_only_callers_items(
    client, auth_headers, wallet, make_item, make_user, stake_directly
) -> None:
    for token_id in (7, 2, 5):
        make_item(token_id)
    make_user("0x" + "ee" * 20)
    stake_directly(7, wallet.address.lower())
    stake_directly(2, wallet.address.lower())
    stake_directly(5, "0x" + "ee" * 20)

    response = client.get("/api/v1/user/staked-items", headers=auth_headers)

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert [entry["token_id"] for entry in body["staked_items"]] == [2, 7]
    assert all(entry["staked_at"] for entry in body["staked_items"])


def test_current_user_requires_token(client) -> None:
    response = client.get("/api/v1/user")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_garbage_token(client) -> None:
    response = client.get("/api/v1/user", headers={"Authorization": "Bearer nope"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["error"]["code"] == "not_authenticated"
