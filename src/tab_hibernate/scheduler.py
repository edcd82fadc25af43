"""The recurring suspend cycle and the trigger that drives it.

A firing may be cut short at any ``await`` (the process can be stopped by
its environment, or the firing can time out). Every step is written so the
next firing reaches the same end state:

- placeholder restore records are durable before the tab navigates away,
- a tab already on a stub page is ineligible, so it is never suspended twice,
- suspended tabs go into a durable ``pendingBackup`` journal as they succeed;
  the journal is backed up at the end of the firing and the flushed entries
  are removed, and a journal left behind by a dead firing is flushed first
  thing next time.
  Backups skip URLs already present, so replaying the journal adds nothing.
"""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from .backup import BackupManager, BackupResult
from .config import SCHEDULER_FIRING_TIMEOUT_SECONDS, SCHEDULER_PERIOD_SECONDS
from .core import Clock, TabSnapshot, now_ms
from .eligibility import is_eligible
from .host import BrowserHost
from .storage import LAST_RUN_KEY, PENDING_BACKUP_KEY, KeyValueStore, load_settings
from .suspend import SuspendEngine, SuspendOutcome
from .tasks import TaskPolicy, run_with_policy
from .tracker import ActivityTracker

logger = logging.getLogger(__name__)

FIRING_POLICY = TaskPolicy(timeout_s=SCHEDULER_FIRING_TIMEOUT_SECONDS, attempts=1)


@dataclass
class TickReport:
    fired_at: int
    enabled: bool = True
    suspended: list[int] = field(default_factory=list)
    backup: BackupResult | None = None
    recovered: BackupResult | None = None  # journal left over from an interrupted firing


class IntervalTrigger:
    """Calls callback every period_s seconds from an asyncio task.

    ensure() re-creates the task if it was never started or has died, so
    calling it on every firing keeps the schedule registered.
    """

    def __init__(
        self,
        callback: Callable[[], Awaitable[object]],
        period_s: float = SCHEDULER_PERIOD_SECONDS,
        policy: TaskPolicy = FIRING_POLICY,
    ):
        self.callback = callback
        self.period_s = period_s
        self.policy = policy
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def ensure(self) -> bool:
        """Start the recurring task if it is not running; True if started."""
        if self.running:
            return False
        self._task = asyncio.get_running_loop().create_task(self._run(), name="tab-hibernate-scheduler")
        logger.info("Scheduler armed (every %ss)", self.period_s)
        return True

    async def stop(self) -> None:
        """Cancel the recurring task and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.period_s)
            await run_with_policy(self.callback, self.policy, name="scheduler firing")


class PeriodicScheduler:
    """Suspends timed-out tabs on each firing and backs them up."""

    def __init__(
        self,
        host: BrowserHost,
        store: KeyValueStore,
        tracker: ActivityTracker,
        engine: SuspendEngine,
        backups: BackupManager,
        clock: Clock = now_ms,
        trigger: IntervalTrigger | None = None,
    ):
        self.host = host
        self.store = store
        self.tracker = tracker
        self.engine = engine
        self.backups = backups
        self.clock = clock
        self.trigger = trigger

    async def fire(self) -> TickReport | None:
        """Run one firing; failures are logged and never propagate."""
        try:
            return await self.tick()
        except Exception:
            logger.exception("Scheduler firing failed")
            return None

    async def tick(self) -> TickReport:
        now = self.clock()
        report = TickReport(fired_at=now)

        # Record the firing and keep the trigger registered.
        self.store.set(LAST_RUN_KEY, now)
        if self.trigger is not None:
            self.trigger.ensure()

        # Rebuild tracker state and reconcile it with the open tabs.
        self.tracker.load()
        tabs = await self.host.query_tabs()
        open_ids = {tab.id for tab in tabs}
        self.tracker.prune(open_ids)
        self.tracker.seed(open_ids)

        report.recovered = await self._flush_pending_backup()

        # Policy switch.
        settings = load_settings(self.store)
        if not settings.enabled:
            report.enabled = False
            self._flush_activity()
            return report

        # Suspend eligible, timed-out tabs.
        candidates = [
            tab for tab in tabs
            if is_eligible(tab, self.host.origin)
            and self.tracker.is_inactive(tab.id, settings.timeout_minutes)
        ]
        suspended = await self._suspend_and_journal(candidates, settings.mode)
        report.suspended = [tab.id for tab in suspended]

        # One deduplicated backup for everything suspended.
        report.backup = await self._flush_pending_backup()
        self._flush_activity()

        if report.suspended:
            logger.info("Firing suspended %d tab(s): %s", len(report.suspended), report.suspended)
        return report

    async def suspend_all(self) -> list[int]:
        """Suspend every eligible tab now, ignoring the inactivity timeout."""
        settings = load_settings(self.store)
        tabs = [tab for tab in await self.host.query_tabs() if is_eligible(tab, self.host.origin)]
        suspended = await self.suspend_and_backup(tabs, settings.mode)
        return [tab.id for tab in suspended]

    async def suspend_and_backup(self, tabs: list[TabSnapshot], mode: str) -> list[TabSnapshot]:
        """Suspend tabs outside a firing, then back up the ones that succeeded."""
        suspended = await self._suspend_and_journal(tabs, mode)
        await self._flush_pending_backup()
        return suspended

    async def suspend_one(self, tab: TabSnapshot, mode: str) -> SuspendOutcome:
        """Suspend a single tab and back it up through the journal."""
        outcome = await self.engine.suspend(tab, mode)
        if outcome.ok:
            self._journal(tab)
            await self._flush_pending_backup()
        return outcome

    async def eligible_count(self) -> int:
        """Number of open tabs that could be suspended right now."""
        return sum(1 for tab in await self.host.query_tabs() if is_eligible(tab, self.host.origin))

    # ── Private helpers ──────────────────────────────────────────────

    async def _suspend_and_journal(self, tabs: list[TabSnapshot], mode: str) -> list[TabSnapshot]:
        suspended = []
        for tab in tabs:
            done = await self.engine.suspend_many([tab], mode)
            if not done:
                continue
            self._journal(tab)
            suspended.append(tab)
        return suspended

    def _journal(self, tab: TabSnapshot) -> None:
        journal = self._pending()
        journal.append({"id": tab.id, "url": tab.url, "title": tab.title})
        self.store.set(PENDING_BACKUP_KEY, journal)

    def _pending(self) -> list[dict]:
        raw = self.store.get(PENDING_BACKUP_KEY)
        if not isinstance(raw, list):
            return []
        return [item for item in raw if isinstance(item, dict) and isinstance(item.get("url"), str)]

    async def _flush_pending_backup(self) -> BackupResult | None:
        pending = self._pending()
        if not pending:
            return None
        tabs = [
            TabSnapshot(id=item.get("id") or 0, url=item["url"], title=item.get("title") or "")
            for item in pending
        ]
        result = await self.backups.run_backup(tabs)
        self._drop_from_journal(pending)
        return result

    def _drop_from_journal(self, flushed: list[dict]) -> None:
        # Entries journaled while the backup was awaited stay for the next flush.
        remaining = self._pending()
        for item in flushed:
            if item in remaining:
                remaining.remove(item)
        if remaining:
            self.store.set(PENDING_BACKUP_KEY, remaining)
        else:
            self.store.remove(PENDING_BACKUP_KEY)

    def _flush_activity(self) -> None:
        if self.tracker.dirty:
            self.tracker.persist()
