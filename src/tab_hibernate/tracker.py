"""Per-tab activity tracking with throttled durable persistence.

The in-memory map is always current; durable writes of the whole map are
throttled so rapid-fire activity signals cost at most one write per
persist interval. After a restart the map is rebuilt from storage.

A tab with no record is treated as *not* inactive: a tab the tracker never
observed is never suspended. The scheduler seeds a record for every open tab,
so such a tab becomes a candidate one full timeout after it was first seen.
"""

import logging
import math

from .config import ACTIVITY_PERSIST_INTERVAL_MS
from .core import Clock, now_ms
from .storage import ACTIVITY_KEY, KeyValueStore

logger = logging.getLogger(__name__)


class ActivityTracker:
    """Owns the tab id -> last activity timestamp (ms) map."""

    def __init__(
        self,
        store: KeyValueStore,
        clock: Clock = now_ms,
        persist_interval_ms: int = ACTIVITY_PERSIST_INTERVAL_MS,
    ):
        self.store = store
        self.clock = clock
        self.persist_interval_ms = persist_interval_ms
        self._activity: dict[int, int] = {}
        self._last_write: int | None = None
        self._dirty = False
        self._loaded = False

    def __contains__(self, tab_id: int) -> bool:
        return tab_id in self._activity

    def snapshot(self) -> dict[int, int]:
        """Copy of the tab id to last-activity map."""
        return dict(self._activity)

    def last_activity(self, tab_id: int) -> int | None:
        """Last activity of a tab in epoch ms, or None if unknown."""
        return self._activity.get(tab_id)

    @property
    def dirty(self) -> bool:
        return self._dirty

    def record_activity(self, tab_id: int) -> None:
        """Mark a tab active now and schedule a durable write."""
        self._ensure_loaded()
        self._activity[tab_id] = self.clock()
        self._dirty = True
        self.persist()

    def persist(self, force: bool = False) -> bool:
        """Write the map to storage unless a write happened too recently.

        Returns True if a write happened. A skipped write keeps the map
        dirty, so the next call past the interval picks it up.
        """
        now = self.clock()
        if not force and self._last_write is not None and now - self._last_write < self.persist_interval_ms:
            logger.debug("Activity write throttled (%d entries pending)", len(self._activity))
            return False
        self.store.set(ACTIVITY_KEY, {str(tab_id): ts for tab_id, ts in self._activity.items()})
        self._last_write = now
        self._dirty = False
        return True

    def load(self) -> None:
        """Rebuild the map from storage, merging with what is in memory.

        Invalid stored timestamps are coerced to now rather than to "very
        old", so a damaged store cannot trigger mass suspension. For a tab
        present in both, the newer timestamp wins. Coerced entries mark the
        map dirty so the repaired values get written back.
        """
        self._loaded = True
        raw = self.store.get(ACTIVITY_KEY)
        if not isinstance(raw, dict):
            if raw is not None:
                logger.warning("Ignoring malformed activity map of type %s", type(raw).__name__)
            return

        now = self.clock()
        for key, value in raw.items():
            try:
                tab_id = int(key)
            except (TypeError, ValueError):
                logger.warning("Dropping activity entry with invalid tab id %r", key)
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
                value = now
                self._dirty = True
            ts = int(value)
            current = self._activity.get(tab_id)
            if current is None or ts > current:
                self._activity[tab_id] = ts

    def prune(self, open_tab_ids: set[int]) -> int:
        """Remove entries for tabs that are no longer open."""
        stale = [tab_id for tab_id in self._activity if tab_id not in open_tab_ids]
        for tab_id in stale:
            del self._activity[tab_id]
        if stale:
            self.persist(force=True)
        return len(stale)

    def seed(self, open_tab_ids: set[int]) -> int:
        """Give every open tab without a record a timestamp of now."""
        now = self.clock()
        missing = [tab_id for tab_id in open_tab_ids if tab_id not in self._activity]
        for tab_id in missing:
            self._activity[tab_id] = now
        if missing:
            self.persist(force=True)
        return len(missing)

    def forget(self, tab_id: int) -> None:
        """Drop a closed tab's entry."""
        self._ensure_loaded()
        if self._activity.pop(tab_id, None) is not None:
            self.persist(force=True)

    def is_inactive(self, tab_id: int, timeout_minutes: int) -> bool:
        """True iff at least timeout_minutes passed since the tab's last activity."""
        last = self._activity.get(tab_id)
        if last is None:
            return False
        return self.clock() - last >= timeout_minutes * 60_000

    def _ensure_loaded(self) -> None:
        # A signal arriving before the first load must not overwrite the stored map.
        if not self._loaded:
            self.load()
