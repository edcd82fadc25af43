"""Suspend eligible, timed-out tabs with one of two strategies.

Discard unloads the tab in place. Placeholder sends the tab to a stub page;
its restore record is written to durable storage *before* the navigation,
because the navigation is irreversible and the record is the only way back
to the original URL.
"""

import logging
from dataclasses import dataclass

from .core import Clock, SuspendedTabRecord, TabSnapshot, now_ms
from .counter import DailyCounter
from .eligibility import is_restorable_url
from .errors import HostError, TabGoneError
from .host import BrowserHost
from .storage import KeyValueStore, suspended_key
from .stub import build_stub_url

logger = logging.getLogger(__name__)


@dataclass
class SuspendOutcome:
    """Result of one tab's suspension attempt."""

    tab_id: int
    ok: bool
    reason: str | None = None  # "tab-gone" | "not-restorable" | "host-error" | "unknown-mode" | ...

    def to_dict(self) -> dict:
        result = {"ok": self.ok}
        if self.reason:
            result["reason"] = self.reason
        return result


class SuspendEngine:
    """Applies a suspend mode to tabs and counts the successes."""

    def __init__(
        self,
        host: BrowserHost,
        store: KeyValueStore,
        counter: DailyCounter,
        clock: Clock = now_ms,
    ):
        self.host = host
        self.store = store
        self.counter = counter
        self.clock = clock

    async def suspend(self, tab: TabSnapshot, mode: str) -> SuspendOutcome:
        """Apply mode to one tab. Eligibility is the caller's responsibility."""
        if mode == "discard":
            return await self._discard(tab)
        if mode == "placeholder":
            return await self._placeholder(tab)
        return SuspendOutcome(tab.id, False, "unknown-mode")

    async def suspend_many(self, tabs: list[TabSnapshot], mode: str) -> list[TabSnapshot]:
        """Suspend each tab independently; return the tabs that were suspended."""
        suspended = []
        for tab in tabs:
            try:
                outcome = await self.suspend(tab, mode)
            except Exception as e:
                logger.warning("Suspending tab %s failed: %s", tab.id, e)
                continue
            if outcome.ok:
                suspended.append(tab)
        return suspended

    # ── Strategies ───────────────────────────────────────────────────

    async def _discard(self, tab: TabSnapshot) -> SuspendOutcome:
        try:
            current = await self.host.get_tab(tab.id)
            if current is None:
                return SuspendOutcome(tab.id, False, "tab-gone")
            await self.host.discard_tab(tab.id)
        except TabGoneError:
            return SuspendOutcome(tab.id, False, "tab-gone")
        except HostError as e:
            logger.warning("Discard failed for tab %s: %s", tab.id, e)
            return SuspendOutcome(tab.id, False, "host-error")

        self.counter.increment()
        logger.info("Discarded tab %s (%s)", tab.id, tab.url)
        return SuspendOutcome(tab.id, True)

    async def _placeholder(self, tab: TabSnapshot) -> SuspendOutcome:
        if not is_restorable_url(tab.url):
            return SuspendOutcome(tab.id, False, "not-restorable")

        key = suspended_key(tab.id)
        record = SuspendedTabRecord(tab_id=tab.id, url=tab.url, title=tab.title or "")
        self.store.set(key, record.to_dict())

        target = build_stub_url(self.host.origin, tab.id, tab.url)
        try:
            await self.host.navigate_tab(tab.id, target)
        except HostError as e:
            # Covers TabGoneError: the record must not outlive a stub that never loaded.
            self.store.remove(key)
            if isinstance(e, TabGoneError):
                return SuspendOutcome(tab.id, False, "tab-gone")
            logger.warning("Placeholder redirect failed for tab %s: %s", tab.id, e)
            return SuspendOutcome(tab.id, False, "host-error")

        self.counter.increment()
        logger.info("Placed tab %s (%s) on stub page", tab.id, tab.url)
        return SuspendOutcome(tab.id, True)
