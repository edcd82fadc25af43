"""Composition root: one Hibernator per process.

The Hibernator owns every component and the activity state they share.
Nothing here assumes state survives a restart; building a new Hibernator
over the same store is exactly what happens when the process comes back.
"""

import logging

from .backup import BackupManager, BackupResult
from .commands import parse_command
from .config import SCHEDULER_PERIOD_SECONDS
from .core import Clock, now_ms
from .counter import DailyCounter
from .eligibility import ineligibility_reason, is_backup_eligible
from .errors import HostError
from .history import ClosedSavedHistory
from .host import BrowserHost
from .restore import RestoreFlow
from .router import MessageRouter
from .scheduler import IntervalTrigger, PeriodicScheduler
from .storage import LAST_RUN_KEY, KeyValueStore, load_settings
from .suspend import SuspendEngine, SuspendOutcome
from .tracker import ActivityTracker

logger = logging.getLogger(__name__)

STATE_CHANGES = frozenset({"audible", "pinned"})


class Hibernator:
    """Wires every component together over one host and one store."""

    def __init__(self, host: BrowserHost, store: KeyValueStore, clock: Clock = now_ms):
        self.host = host
        self.store = store
        self.clock = clock
        self.tracker = ActivityTracker(store, clock)
        self.counter = DailyCounter(store, clock)
        self.engine = SuspendEngine(host, store, self.counter, clock)
        self.backups = BackupManager(host, store, clock)
        self.history = ClosedSavedHistory(store, clock)
        self.restorer = RestoreFlow(host, store, self.tracker)
        self.scheduler = PeriodicScheduler(host, store, self.tracker, self.engine, self.backups, clock)
        self.router = MessageRouter(self)

    # ── Lifecycle ────────────────────────────────────────────────────

    def arm(self, period_s: float = SCHEDULER_PERIOD_SECONDS) -> IntervalTrigger:
        """Register the recurring trigger; must be called from a running loop."""
        if self.scheduler.trigger is None:
            self.scheduler.trigger = IntervalTrigger(self.scheduler.fire, period_s)
        self.scheduler.trigger.ensure()
        return self.scheduler.trigger

    async def start(self, period_s: float = SCHEDULER_PERIOD_SECONDS) -> None:
        """Recover activity state, seed open tabs and arm the scheduler."""
        self.tracker.load()
        try:
            tabs = await self.host.query_tabs()
        except HostError as e:
            logger.warning("Could not list tabs at startup: %s", e)
        else:
            self.tracker.seed({tab.id for tab in tabs})
        self.arm(period_s)
        logger.info("Hibernator started on host '%s'", self.host.name)

    async def stop(self) -> None:
        """Stop the trigger and flush pending activity."""
        if self.scheduler.trigger is not None:
            await self.scheduler.trigger.stop()
        if self.tracker.dirty:
            self.tracker.persist(force=True)

    async def handle(self, payload: object) -> dict:
        """Parse a wire request and route it."""
        return await self.router.handle(parse_command(payload))

    # ── Tab events ───────────────────────────────────────────────────

    def on_activity(self, tab_id: int) -> None:
        """The user interacted with a tab."""
        self.tracker.record_activity(tab_id)

    def on_tab_updated(self, tab_id: int, changes: frozenset[str]) -> None:
        """Audible or pinned changes count as activity."""
        if changes & STATE_CHANGES:
            self.tracker.record_activity(tab_id)

    def on_tab_removed(self, tab_id: int) -> None:
        """Forget everything kept for a closed tab."""
        self.tracker.forget(tab_id)
        self.restorer.clear(tab_id)

    # ── Manual actions ───────────────────────────────────────────────

    async def backup_now(self) -> BackupResult:
        """Back up every open web tab."""
        tabs = [tab for tab in await self.host.query_tabs() if is_backup_eligible(tab)]
        return await self.backups.run_backup(tabs)

    async def suspend_current_tab(self) -> SuspendOutcome | None:
        """Suspend the focused tab, even though it is active."""
        tab = await self.host.get_active_tab()
        if tab is None:
            return None
        reason = ineligibility_reason(tab, self.host.origin, allow_active=True)
        if reason is not None:
            return SuspendOutcome(tab.id, False, reason)
        return await self.scheduler.suspend_one(tab, load_settings(self.store).mode)

    async def close_and_save_all(self) -> int:
        """Save eligible tabs to history, then close them.

        Discarded tabs are closed too: they are idle, just already unloaded.
        """
        tabs = [
            tab for tab in await self.host.query_tabs()
            if ineligibility_reason(tab, self.host.origin) in (None, "discarded") and is_backup_eligible(tab)
        ]
        if not tabs:
            return 0
        self.history.prepend(tabs)
        try:
            await self.host.close_tabs([tab.id for tab in tabs])
        except HostError as e:
            logger.error("Closing saved tabs failed: %s", e)
            return 0
        for tab in tabs:
            self.on_tab_removed(tab.id)
        logger.info("Closed and saved %d tab(s)", len(tabs))
        return len(tabs)

    async def open_all_saved(self) -> int:
        """Reopen every closed-and-saved entry, then clear the list."""
        opened = 0
        for entry in self.history.entries():
            try:
                await self.host.create_tab(entry["url"])
            except HostError as e:
                logger.warning("Could not reopen %s: %s", entry["url"], e)
                continue
            opened += 1
        self.history.clear()
        return opened

    async def open_saved(self, urls: list[str]) -> int:
        """Reopen the given URLs and drop the opened ones from the saved list."""
        opened = []
        for url in dict.fromkeys(urls):
            try:
                await self.host.create_tab(url)
            except HostError as e:
                logger.warning("Could not reopen %s: %s", url, e)
                continue
            opened.append(url)
        self.history.remove(opened)
        return len(opened)

    async def status(self) -> dict:
        """Counters shown by the popup."""
        return {
            "suspendedToday": self.counter.today(),
            "lastRun": self.store.get(LAST_RUN_KEY),
            "eligibleCount": await self.scheduler.eligible_count(),
        }

