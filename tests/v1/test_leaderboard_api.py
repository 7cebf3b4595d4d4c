# tests/v1/test_leaderboard_api.py
"""Tests for leaderboard endpoints."""

from __future__ import annotations

from fastapi import status


def test_top_items(client, make_item, ranking) -> None:
    make_item(1, [("Color", "Red")])
    make_item(2, [("Color", "Red")])
    make_item(3, [("Color", "Blue")])
    ranking.rebuild()

    response = client.get("/api/v1/leaderboard/top-items", params={"limit": 2})

    assert response.status_code == status.HTTP_200_OK
    assert [entry["token_id"] for entry in response.json()["top_nfts"]] == [3, 1]


def test_top_items_before_any_build(client) -> None:
    response = client.get("/api/v1/leaderboard/top-items")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"top_nfts": []}


def test_top_users_sorted_by_points(client, make_user) -> None:
    make_user("0x" + "a1" * 20, points=10.0)
    make_user("0x" + "b2" * 20, points=250.0, tier="Silver")
    make_user("0x" + "c3" * 20, points=75.5)

    response = client.get("/api/v1/leaderboard/top-users")

    assert response.status_code == status.HTTP_200_OK
    users = response.json()["top_users"]
    assert [user["points"] for user in users] == [250.0, 75.5, 10.0]
    assert users[0]["tier"] == "Silver"


def test_limit_is_bounded(client) -> None:
    assert client.get("/api/v1/leaderboard/top-users", params={"limit": 0}).status_code == 400
    assert client.get("/api/v1/leaderboard/top-items", params={"limit": 101}).status_code == 400
