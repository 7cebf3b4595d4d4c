# tests/test_ephemeral_store.py
"""Tests for the expiring key/value store."""

from __future__ import annotations

import pytest
import redis

from rarity_checker.core.errors import PersistenceError
from rarity_checker.core.settings import Settings
from rarity_checker.services.ephemeral import EphemeralStore, build_ephemeral_store


def test_memory_store_round_trip(store: EphemeralStore) -> None:
    store.set("nonce:a", "abc", 300)
    assert store.backend == "memory"
    assert store.get("nonce:a") == "abc"


def test_set_overwrites_previous_value(store: EphemeralStore) -> None:
    store.set("nonce:a", "first", 300)
    store.set("nonce:a", "second", 300)
    assert store.get("nonce:a") == "second"


def test_entry_expires_after_ttl(store: EphemeralStore, clock) -> None:
    store.set("nonce:a", "abc", 300)
    clock.advance(299)
    assert store.get("nonce:a") == "abc"
    clock.advance(1)
    assert store.get("nonce:a") is None


def test_delete_reports_whether_a_live_entry_was_removed(store: EphemeralStore, clock) -> None:
    store.set("k", "v", 10)
    assert store.delete("k") is True
    assert store.delete("k") is False

    store.set("k", "v", 10)
    clock.advance(11)
    assert store.delete("k") is False


def test_delete_if_only_removes_matching_value(store: EphemeralStore) -> None:
    store.set("nonce:a", "old", 300)
    store.set("nonce:a", "new", 300)

    assert store.delete_if("nonce:a", "old") is False
    assert store.get("nonce:a") == "new"
    assert store.delete_if("nonce:a", "new") is True
    assert store.get("nonce:a") is None
    assert store.delete_if("nonce:a", "new") is False


def test_delete_if_ignores_expired_entry(store: EphemeralStore, clock) -> None:
    store.set("nonce:a", "abc", 10)
    clock.advance(10)
    assert store.delete_if("nonce:a", "abc") is False
    assert len(store) == 0


def test_set_sweeps_expired_entries(store: EphemeralStore, clock) -> None:
    store.set("session:never-read", "0xabc", 10)
    store.set("session:live", "0xdef", 100)
    clock.advance(10)

    store.set("nonce:b", "n", 300)

    assert len(store) == 2
    assert store.get("session:live") == "0xdef"
    assert store.get("session:never-read") is None


def test_rejects_non_positive_ttl(store: EphemeralStore) -> None:
    with pytest.raises(ValueError):
        store.set("k", "v", 0)


def test_redis_backend_delegates(mocker) -> None:
    client = mocker.MagicMock()
    client.get.return_value = b"value"
    client.delete.return_value = 1
    store = EphemeralStore(client)

    store.set("k", "value", 30)
    client.set.assert_called_once_with("k", "value", ex=30)
    assert store.get("k") == "value"
    assert store.delete("k") is True
    assert store.backend == "redis"


def test_redis_delete_if_runs_compare_and_delete_script(mocker) -> None:
    client = mocker.MagicMock()
    client.eval.side_effect = [1, 0]
    store = EphemeralStore(client)

    assert store.delete_if("nonce:a", "abc") is True
    assert store.delete_if("nonce:a", "abc") is False

    script, numkeys, key, expected = client.eval.call_args.args
    assert "redis.call('get', KEYS[1]) == ARGV[1]" in script
    assert (numkeys, key, expected) == (1, "nonce:a", "abc")
    client.delete.assert_not_called()


def test_redis_errors_become_persistence_errors(mocker) -> None:
    client = mocker.MagicMock()
    client.get.side_effect = redis.ConnectionError("down")
    store = EphemeralStore(client)

    with pytest.raises(PersistenceError):
        store.get("k")


def test_build_store_uses_redis_url(mocker, test_settings: Settings) -> None:
    from_url = mocker.patch("rarity_checker.services.ephemeral.redis.from_url")
    test_settings.redis_url = "redis://localhost:6379/0"

    store = build_ephemeral_store(test_settings)

    from_url.assert_called_once_with("redis://localhost:6379/0")
    assert store.backend == "redis"


def test_build_store_without_redis_url(test_settings: Settings) -> None:
    assert build_ephemeral_store(test_settings).backend == "memory"
