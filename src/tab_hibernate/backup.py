"""Date-bucketed tab backups, mirrored into a bookmark hierarchy.

Backups land in two places:

- ``backup_<YYYY-MM-DD>`` in durable storage: an ordered list of
  ``{url, title, ts}`` with at most one entry per URL,
- bookmarks under ``Tab Backup/<YYYY-MM-DD>``, folders looked up by title
  before being created.

Both sides skip URLs they already hold, so running the same backup twice
(for instance after a tick that died half-way) adds nothing.
"""

import logging
from dataclasses import dataclass

from .config import BACKUP_FOLDER_TITLE, BOOKMARK_TITLE_MAX
from .core import BackupEntry, Clock, TabSnapshot, date_key, now_ms
from .errors import HostError
from .host import BrowserHost
from .storage import BACKUP_PREFIX, KeyValueStore, backup_key

logger = logging.getLogger(__name__)


@dataclass
class BackupResult:
    count: int
    location: str | None  # bookmark folder id of the day's backup

    def to_dict(self) -> dict:
        return {"count": self.count, "location": self.location}


def dedupe_by_url(tabs: list[TabSnapshot]) -> list[TabSnapshot]:
    """Drop tabs whose URL appeared earlier in the list."""
    seen = set()
    unique = []
    for tab in tabs:
        if not tab.url or tab.url in seen:
            continue
        seen.add(tab.url)
        unique.append(tab)
    return unique


def read_bucket(raw: object) -> list[dict]:
    """Return the well-formed entries of a stored bucket."""
    if not isinstance(raw, list):
        return []
    return [item for item in raw if isinstance(item, dict) and isinstance(item.get("url"), str) and item["url"]]


def load_buckets(store: KeyValueStore) -> dict[str, list[dict]]:
    """Return every stored bucket keyed by date."""
    return {
        key[len(BACKUP_PREFIX):]: read_bucket(value)
        for key, value in store.items(BACKUP_PREFIX).items()
    }


class BackupManager:
    """Keeps dated backups of tab URLs and mirrors them into bookmarks."""

    def __init__(self, host: BrowserHost, store: KeyValueStore, clock: Clock = now_ms):
        self.host = host
        self.store = store
        self.clock = clock

    async def run_backup(self, tabs: list[TabSnapshot]) -> BackupResult:
        """Record tabs into today's bucket and bookmark folder."""
        unique = dedupe_by_url(tabs)
        if not unique:
            return BackupResult(count=0, location=None)

        now = self.clock()
        today = date_key(now)
        self._append_to_bucket(today, unique, now)
        location = await self._mirror_to_bookmarks(today, unique)

        logger.info("Backed up %d tab(s) for %s", len(unique), today)
        return BackupResult(count=len(unique), location=location)

    def buckets(self) -> dict[str, list[dict]]:
        """Every backup bucket keyed by date."""
        return load_buckets(self.store)

    # ── Private helpers ──────────────────────────────────────────────

    def _append_to_bucket(self, day: str, tabs: list[TabSnapshot], now: int) -> None:
        key = backup_key(day)
        bucket = read_bucket(self.store.get(key))
        present = {item["url"] for item in bucket}
        for tab in tabs:
            if tab.url in present:
                continue
            bucket.append(BackupEntry(url=tab.url, title=tab.title or tab.url, ts=now).to_dict())
            present.add(tab.url)
        self.store.set(key, bucket)

    async def _mirror_to_bookmarks(self, day: str, tabs: list[TabSnapshot]) -> str | None:
        try:
            root_id = await self.host.bookmark_root_id()
            backup_root = await self._get_or_create_folder(root_id, BACKUP_FOLDER_TITLE)
            folder_id = await self._get_or_create_folder(backup_root, day)
            existing = {node.url for node in await self.host.bookmark_children(folder_id) if node.url}
        except HostError as e:
            logger.warning("Bookmark backup folder unavailable: %s", e)
            return None

        for tab in tabs:
            if tab.url in existing:
                continue
            title = (tab.title or tab.url)[:BOOKMARK_TITLE_MAX]
            try:
                await self.host.create_bookmark(folder_id, title, tab.url)
            except HostError as e:
                logger.warning("Bookmark create failed for %s: %s", tab.url, e)
                continue
            existing.add(tab.url)
        return folder_id

    async def _get_or_create_folder(self, parent_id: str, title: str) -> str:
        for node in await self.host.bookmark_children(parent_id):
            if node.is_folder and node.title == title:
                return node.id
        created = await self.host.create_bookmark(parent_id, title)
        return created.id
