"""Tests for the suspend engine."""

from unittest.mock import patch

import pytest

from tab_hibernate.core import TabSnapshot
from tab_hibernate.errors import HostError, TabGoneError
from tab_hibernate.storage import suspended_key
from tab_hibernate.stub import parse_stub_url


@pytest.mark.asyncio
async def test_discard_unloads_tab_and_counts(hibernator, host):
    tab = await host.get_tab(2)
    outcome = await hibernator.engine.suspend(tab, "discard")

    assert outcome.ok is True
    assert host.tabs[2].discarded is True
    assert hibernator.counter.today() == 1


@pytest.mark.asyncio
async def test_discard_of_closed_tab_is_soft_skip(hibernator, host):
    tab = await host.get_tab(2)
    await host.close_tabs([2])

    outcome = await hibernator.engine.suspend(tab, "discard")

    assert outcome.ok is False
    assert outcome.reason == "tab-gone"
    assert hibernator.counter.today() == 0


@pytest.mark.asyncio
async def test_discard_refused_by_host(hibernator, host):
    tab = await host.get_tab(1)  # the active tab
    outcome = await hibernator.engine.suspend(tab, "discard")

    assert outcome.reason == "host-error"
    assert hibernator.counter.today() == 0


@pytest.mark.asyncio
async def test_placeholder_writes_record_and_navigates(hibernator, host, store):
    tab = await host.get_tab(5)
    outcome = await hibernator.engine.suspend(tab, "placeholder")

    assert outcome.ok is True
    assert store.get(suspended_key(5)) == {
        "tabId": 5,
        "url": "https://example.com",
        "title": "Example",
        "stubVersion": 1,
    }
    address = parse_stub_url(host.tabs[5].url, host.origin)
    assert address.tab_id == 5
    assert hibernator.counter.today() == 1


@pytest.mark.asyncio
async def test_placeholder_then_restore_lookup_returns_original_url(hibernator, host):
    tab = await host.get_tab(5)
    await hibernator.engine.suspend(tab, "placeholder")

    assert hibernator.restorer.resolve(5) == "https://example.com"
    assert hibernator.restorer.resolve(5, host.tabs[5].url) == "https://example.com"


@pytest.mark.asyncio
async def test_record_is_durable_before_navigation(hibernator, host, store):
    seen = {}

    async def navigate(tab_id, url):
        seen["record"] = store.get(suspended_key(tab_id))

    tab = await host.get_tab(5)
    with patch.object(host, "navigate_tab", side_effect=navigate):
        await hibernator.engine.suspend(tab, "placeholder")

    assert seen["record"]["url"] == "https://example.com"


@pytest.mark.asyncio
async def test_placeholder_rolls_back_record_on_host_error(hibernator, host, store):
    tab = await host.get_tab(5)
    with patch.object(host, "navigate_tab", side_effect=HostError("navigation refused")):
        outcome = await hibernator.engine.suspend(tab, "placeholder")

    assert outcome.reason == "host-error"
    assert store.get(suspended_key(5)) is None
    assert hibernator.counter.today() == 0


@pytest.mark.asyncio
async def test_placeholder_rolls_back_record_when_tab_closes(hibernator, host, store):
    tab = await host.get_tab(5)
    with patch.object(host, "navigate_tab", side_effect=TabGoneError(5)):
        outcome = await hibernator.engine.suspend(tab, "placeholder")

    assert outcome.reason == "tab-gone"
    assert store.get(suspended_key(5)) is None


@pytest.mark.asyncio
async def test_placeholder_skips_unrestorable_url(hibernator, host, store):
    host.add_tab({"id": 20, "url": "ftp://files.example.com/pub"})
    tab = await host.get_tab(20)

    outcome = await hibernator.engine.suspend(tab, "placeholder")

    assert outcome.reason == "not-restorable"
    assert store.get(suspended_key(20)) is None
    assert host.tabs[20].url == "ftp://files.example.com/pub"


@pytest.mark.asyncio
async def test_unknown_mode(hibernator):
    outcome = await hibernator.engine.suspend(TabSnapshot(id=2, url="https://docs.python.org/3/"), "freeze")
    assert outcome.to_dict() == {"ok": False, "reason": "unknown-mode"}


@pytest.mark.asyncio
async def test_failure_on_one_tab_does_not_affect_siblings(hibernator, host):
    async def navigate(tab_id, url):
        if tab_id == 2:
            raise RuntimeError("renderer crashed")
        host.tabs[tab_id].url = url

    tabs = [await host.get_tab(2), await host.get_tab(5)]
    with patch.object(host, "navigate_tab", side_effect=navigate):
        suspended = await hibernator.engine.suspend_many(tabs, "placeholder")

    assert [tab.id for tab in suspended] == [5]
    assert hibernator.counter.today() == 1
