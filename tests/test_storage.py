"""Tests for the key/value store, settings, the daily counter and host lookup."""

import sqlite3

import pytest

from tab_hibernate.backends import get_host
from tab_hibernate.backends.memory import MemoryHost
from tab_hibernate.core import Settings
from tab_hibernate.counter import DailyCounter
from tab_hibernate.errors import ConfigError
from tab_hibernate.storage import (
    SETTINGS_KEY,
    SUSPENDED_TODAY_DATE_KEY,
    SUSPENDED_TODAY_KEY,
    KeyValueStore,
    load_settings,
    save_settings,
)


class TestKeyValueStore:
    def test_set_get_remove(self, store):
        store.set("a", {"x": [1, 2]})
        assert store.get("a") == {"x": [1, 2]}
        store.remove("a")
        assert store.get("a", "gone") == "gone"

    def test_values_survive_reopen(self, store):
        store.set("a", 1)
        assert KeyValueStore(store.path).get("a") == 1

    def test_items_by_prefix_treats_underscore_literally(self, store):
        store.set_many({"backup_2025-01-01": [], "backupX": [], "other": 1})
        assert list(store.items("backup_")) == ["backup_2025-01-01"]

    def test_malformed_value_reads_as_missing(self, store):
        conn = sqlite3.connect(str(store.path))
        conn.execute("INSERT INTO ItemTable (key, value) VALUES ('broken', '{not json')")
        conn.commit()
        conn.close()

        assert store.get("broken") is None
        assert store.get_many(["broken"]) == {}


class TestSettings:
    def test_defaults_when_missing(self, store):
        assert load_settings(store) == Settings(enabled=True, timeout_minutes=5, mode="discard")

    def test_round_trip(self, store):
        save_settings(store, Settings(enabled=False, timeout_minutes=20, mode="placeholder"))
        assert load_settings(store) == Settings(enabled=False, timeout_minutes=20, mode="placeholder")

    @pytest.mark.parametrize("raw,expected", [
        ("garbage", Settings()),
        ({"timeoutMinutes": "ten"}, Settings()),
        ({"timeoutMinutes": 0}, Settings()),
        ({"mode": "hibernate"}, Settings()),
        ({"enabled": False, "timeoutMinutes": True}, Settings(enabled=False)),
    ])
    def test_malformed_fields_fall_back(self, store, raw, expected):
        store.set(SETTINGS_KEY, raw)
        assert load_settings(store) == expected


class TestDailyCounter:
    def test_increments_within_a_day(self, store, clock):
        counter = DailyCounter(store, clock)
        counter.increment()
        counter.increment()
        assert counter.today() == 2

    def test_resets_on_new_day(self, store, clock):
        counter = DailyCounter(store, clock)
        counter.increment()
        clock.advance(minutes=24 * 60)

        assert counter.today() == 0
        assert counter.increment() == 1
        assert store.get(SUSPENDED_TODAY_DATE_KEY) == "2025-01-16"

    def test_malformed_count_reads_as_zero(self, store, clock):
        store.set_many({SUSPENDED_TODAY_KEY: "many", SUSPENDED_TODAY_DATE_KEY: "2025-01-15"})
        assert DailyCounter(store, clock).today() == 0


class TestHostRegistry:
    def test_memory_host_is_default(self, monkeypatch):
        monkeypatch.delenv("TAB_HIBERNATE_HOST", raising=False)
        monkeypatch.setenv("TAB_HIBERNATE_ORIGIN", "chrome-extension://abc/")
        host = get_host()
        assert isinstance(host, MemoryHost)
        assert host.origin == "chrome-extension://abc"

    def test_unknown_host(self):
        with pytest.raises(ConfigError):
            get_host("netscape")
