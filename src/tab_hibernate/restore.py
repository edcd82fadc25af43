"""Send a placeholder-suspended tab back to its original URL.

The original URL comes from the durable ``suspended_<tabId>`` record. When
that record is gone (for instance after a reinstall wiped storage) the
fallback copy embedded in the stub page's own address is used instead.
"""

import logging
from dataclasses import dataclass

from .core import SuspendedTabRecord
from .eligibility import is_restorable_url
from .errors import HostError, TabGoneError
from .host import BrowserHost
from .storage import KeyValueStore, suspended_key
from .stub import parse_stub_url
from .tracker import ActivityTracker

logger = logging.getLogger(__name__)


@dataclass
class RestoreResult:
    tab_id: int
    ok: bool
    url: str | None = None
    reason: str | None = None  # "no-restore-data" | "tab-gone" | "host-error"

    def to_dict(self) -> dict:
        result = {"ok": self.ok, "url": self.url}
        if self.reason:
            result["reason"] = self.reason
        return result


class RestoreFlow:
    """Looks up restore records and sends stub tabs home."""

    def __init__(self, host: BrowserHost, store: KeyValueStore, tracker: ActivityTracker | None = None):
        self.host = host
        self.store = store
        self.tracker = tracker

    def _record_id(self, tab_id: int, stub_url: str | None) -> int:
        # Tab ids change across browser restarts; the stub remembers the old one.
        address = parse_stub_url(stub_url, self.host.origin)
        if address is not None and address.tab_id is not None:
            return address.tab_id
        return tab_id

    def restore_data(self, tab_id: int, stub_url: str | None = None) -> SuspendedTabRecord | None:
        """Return what the stub page needs to show and restore, or None."""
        record_id = self._record_id(tab_id, stub_url)
        record = SuspendedTabRecord.from_dict(self.store.get(suspended_key(record_id)))
        if record is not None and is_restorable_url(record.url):
            return record

        address = parse_stub_url(stub_url, self.host.origin)
        if address is not None and is_restorable_url(address.fallback_url):
            return SuspendedTabRecord(tab_id=record_id, url=address.fallback_url, stub_version=address.version or 0)
        return None

    def resolve(self, tab_id: int, stub_url: str | None = None) -> str | None:
        """The URL a restore would navigate to, if any."""
        record = self.restore_data(tab_id, stub_url)
        return record.url if record else None

    async def restore(self, tab_id: int, stub_url: str | None = None) -> RestoreResult:
        """Navigate the tab back to its original URL, then drop its record."""
        url = self.resolve(tab_id, stub_url)
        if url is None:
            return RestoreResult(tab_id, False, reason="no-restore-data")

        try:
            await self.host.navigate_tab(tab_id, url)
        except HostError as e:
            logger.warning("Restore failed for tab %s: %s", tab_id, e)
            reason = "tab-gone" if isinstance(e, TabGoneError) else "host-error"
            return RestoreResult(tab_id, False, url=url, reason=reason)

        self.store.remove(suspended_key(self._record_id(tab_id, stub_url)))
        if self.tracker is not None:
            # A restored tab starts a fresh inactivity window.
            self.tracker.record_activity(tab_id)
        logger.info("Restored tab %s to %s", tab_id, url)
        return RestoreResult(tab_id, True, url=url)

    async def restore_all(self) -> int:
        """Restore every open tab that is showing a stub page."""
        restored = 0
        for tab in await self.host.query_tabs():
            if parse_stub_url(tab.url, self.host.origin) is None:
                continue
            try:
                result = await self.restore(tab.id, tab.url)
            except Exception as e:
                logger.warning("Restoring tab %s failed: %s", tab.id, e)
                continue
            if result.ok:
                restored += 1
        return restored

    def clear(self, tab_id: int) -> None:
        """Forget the restore record of a tab."""
        self.store.remove(suspended_key(tab_id))
