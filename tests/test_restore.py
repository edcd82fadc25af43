"""Tests for restoring placeholder-suspended tabs."""

import asyncio
from unittest.mock import patch

import pytest

from tab_hibernate.backends.memory import MemoryHost
from tab_hibernate.core import Settings
from tab_hibernate.errors import HostError
from tab_hibernate.service import Hibernator
from tab_hibernate.storage import save_settings, suspended_key
from tab_hibernate.stub import build_stub_url

ORIGIN = "chrome-extension://currentinstall"


@pytest.fixture
def article_host():
    return MemoryHost(
        tabs=[
            {"id": 1, "url": "https://mail.example.com/inbox", "active": True},
            {"id": 9, "url": "https://news.example.com/article?id=42", "title": "Article"},
        ],
        origin=ORIGIN,
    )


@pytest.mark.asyncio
async def test_record_survives_crash_during_navigation(article_host, store, clock):
    hibernator = Hibernator(article_host, store, clock)
    tab = await article_host.get_tab(9)

    with patch.object(article_host, "navigate_tab", side_effect=asyncio.CancelledError):
        with pytest.raises(asyncio.CancelledError):
            await hibernator.engine.suspend(tab, "placeholder")

    restarted = Hibernator(article_host, store, clock)
    assert restarted.restorer.resolve(9) == "https://news.example.com/article?id=42"

    result = await restarted.restorer.restore(9)
    assert result.ok is True
    assert article_host.tabs[9].url == "https://news.example.com/article?id=42"
    assert store.get(suspended_key(9)) is None


@pytest.mark.asyncio
async def test_restore_navigates_back_and_drops_record(article_host, store, clock):
    hibernator = Hibernator(article_host, store, clock)
    await hibernator.engine.suspend(await article_host.get_tab(9), "placeholder")
    stub_url = article_host.tabs[9].url

    result = await hibernator.restorer.restore(9, stub_url)

    assert result.to_dict() == {"ok": True, "url": "https://news.example.com/article?id=42"}
    assert article_host.tabs[9].url == "https://news.example.com/article?id=42"
    assert store.get(suspended_key(9)) is None


@pytest.mark.asyncio
async def test_restore_uses_fallback_when_record_is_gone(article_host, store, clock):
    hibernator = Hibernator(article_host, store, clock)
    await hibernator.engine.suspend(await article_host.get_tab(9), "placeholder")
    store.remove(suspended_key(9))

    result = await hibernator.restorer.restore(9, article_host.tabs[9].url)

    assert result.ok is True
    assert article_host.tabs[9].url == "https://news.example.com/article?id=42"


@pytest.mark.asyncio
async def test_restore_after_tab_id_changed(article_host, store, clock):
    """The stub remembers the id the tab had when it was suspended."""
    hibernator = Hibernator(article_host, store, clock)
    await hibernator.engine.suspend(await article_host.get_tab(9), "placeholder")
    stub_url = article_host.tabs[9].url
    await article_host.close_tabs([9])
    article_host.add_tab({"id": 40, "url": stub_url})

    result = await hibernator.restorer.restore(40, stub_url)

    assert result.ok is True
    assert article_host.tabs[40].url == "https://news.example.com/article?id=42"
    assert store.get(suspended_key(9)) is None


@pytest.mark.asyncio
async def test_restore_without_data(article_host, store, clock):
    hibernator = Hibernator(article_host, store, clock)
    stub_url = f"{ORIGIN}/suspended.html?tabId=9&v=1"

    result = await hibernator.restorer.restore(9, stub_url)

    assert result.ok is False
    assert result.reason == "no-restore-data"


def test_restore_ignores_unrestorable_record(article_host, store, clock):
    store.set(suspended_key(9), {"tabId": 9, "url": "javascript:alert(1)", "title": "x"})
    hibernator = Hibernator(article_host, store, clock)
    assert hibernator.restorer.restore_data(9) is None


@pytest.mark.asyncio
async def test_restore_of_closed_tab(article_host, store, clock):
    hibernator = Hibernator(article_host, store, clock)
    await hibernator.engine.suspend(await article_host.get_tab(9), "placeholder")
    await article_host.close_tabs([9])

    result = await hibernator.restorer.restore(9)

    assert result.reason == "tab-gone"
    # The record stays until the tab's removal is handled.
    assert store.get(suspended_key(9)) is not None


@pytest.mark.asyncio
async def test_restore_keeps_record_on_host_error(article_host, store, clock):
    hibernator = Hibernator(article_host, store, clock)
    await hibernator.engine.suspend(await article_host.get_tab(9), "placeholder")

    with patch.object(article_host, "navigate_tab", side_effect=HostError("blocked")):
        result = await hibernator.restorer.restore(9)

    assert result.reason == "host-error"
    assert store.get(suspended_key(9)) is not None


@pytest.mark.asyncio
async def test_restore_all_includes_stubs_from_previous_install(article_host, store, clock):
    hibernator = Hibernator(article_host, store, clock)
    await hibernator.engine.suspend(await article_host.get_tab(9), "placeholder")
    article_host.add_tab({
        "id": 12,
        "url": build_stub_url("chrome-extension://oldinstall", 12, "https://old.example.com/"),
    })
    article_host.add_tab({"id": 13, "url": "https://example.org/suspended.html?tabId=13&v=1"})

    restored = await hibernator.restorer.restore_all()

    assert restored == 2
    assert article_host.tabs[9].url == "https://news.example.com/article?id=42"
    assert article_host.tabs[12].url == "https://old.example.com/"
    assert article_host.tabs[13].url == "https://example.org/suspended.html?tabId=13&v=1"


@pytest.mark.asyncio
async def test_tab_removal_clears_restore_data(article_host, store, clock):
    hibernator = Hibernator(article_host, store, clock)
    await hibernator.engine.suspend(await article_host.get_tab(9), "placeholder")

    hibernator.on_tab_removed(9)

    assert store.get(suspended_key(9)) is None


@pytest.mark.asyncio
async def test_restored_tab_starts_a_fresh_idle_window(article_host, store, clock):
    save_settings(store, Settings(enabled=True, timeout_minutes=5, mode="placeholder"))
    hibernator = Hibernator(article_host, store, clock)
    hibernator.on_activity(9)
    clock.advance(minutes=6)
    assert (await hibernator.scheduler.tick()).suspended == [9]

    assert await hibernator.restorer.restore_all() == 1
    clock.advance(minutes=1)
    report = await hibernator.scheduler.tick()

    assert report.suspended == []
    assert article_host.tabs[9].url == "https://news.example.com/article?id=42"
