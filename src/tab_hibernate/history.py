"""Closed-and-saved history, and export/import of history and backups."""

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone

from .backup import load_buckets, read_bucket
from .config import CLOSED_SAVED_MAX
from .core import BackupEntry, ClosedSavedEntry, Clock, TabSnapshot, now_ms
from .errors import InvalidImportError
from .storage import CLOSED_SAVED_KEY, KeyValueStore, backup_key

logger = logging.getLogger(__name__)

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass
class ImportSummary:
    closed_saved: int
    backup_dates: int

    def to_dict(self) -> dict:
        return {"ok": True, "closedAndSaved": self.closed_saved, "backupDates": self.backup_dates}


def _merge_unique(*lists: list[dict], limit: int | None = None) -> list[dict]:
    """Concatenate entry lists keeping the first entry per URL."""
    seen = set()
    merged = []
    for entries in lists:
        for item in entries:
            url = item["url"]
            if url in seen:
                continue
            seen.add(url)
            merged.append(item)
    return merged if limit is None else merged[:limit]


class ClosedSavedHistory:
    """The bounded closed-and-saved list; newest first, oldest evicted."""

    def __init__(self, store: KeyValueStore, clock: Clock = now_ms, max_entries: int = CLOSED_SAVED_MAX):
        self.store = store
        self.clock = clock
        self.max_entries = max_entries

    def entries(self) -> list[dict]:
        """Saved entries, newest first."""
        return read_bucket(self.store.get(CLOSED_SAVED_KEY))

    def prepend(self, tabs: list[TabSnapshot]) -> int:
        """Put tabs at the front of the list; return how many were added."""
        now = self.clock()
        batch = _merge_unique([
            ClosedSavedEntry(url=t.url, title=t.title or t.url, saved_at=now).to_dict()
            for t in tabs if t.url
        ])
        if not batch:
            return 0
        self.store.set(CLOSED_SAVED_KEY, _merge_unique(batch, self.entries(), limit=self.max_entries))
        return len(batch)

    def clear(self) -> None:
        """Empty the list."""
        self.store.set(CLOSED_SAVED_KEY, [])

    def remove(self, urls: list[str]) -> int:
        """Drop the entries for urls; return how many were removed."""
        drop = set(urls)
        if not drop:
            return 0
        entries = self.entries()
        kept = [entry for entry in entries if entry["url"] not in drop]
        if len(kept) != len(entries):
            self.store.set(CLOSED_SAVED_KEY, kept)
        return len(entries) - len(kept)

    def export(self) -> dict:
        """Return the history and every backup bucket as one JSON-ready dict."""
        return {
            "closedAndSaved": self.entries(),
            "backups": load_buckets(self.store),
            "exportedAt": datetime.fromtimestamp(self.clock() / 1000, tz=timezone.utc).isoformat(),
        }

    def import_text(self, text: str) -> ImportSummary:
        """Parse exported JSON text and import it."""
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            raise InvalidImportError("Invalid JSON file.")
        return self.import_data(data)

    def import_data(self, data: object) -> ImportSummary:
        """Merge an exported payload into storage.

        The payload is validated in full before anything is written; an
        invalid payload raises InvalidImportError and changes nothing.
        """
        closed, backups = self._validate(data)

        merged_closed = _merge_unique(closed, self.entries(), limit=self.max_entries)
        writes: dict[str, object] = {CLOSED_SAVED_KEY: merged_closed}
        for day, items in backups.items():
            key = backup_key(day)
            writes[key] = _merge_unique(read_bucket(self.store.get(key)), items)
        self.store.set_many(writes)

        logger.info("Imported %d history entries and %d backup date(s)", len(closed), len(backups))
        return ImportSummary(closed_saved=len(merged_closed), backup_dates=len(backups))

    # ── Private helpers ──────────────────────────────────────────────

    def _validate(self, data: object) -> tuple[list[dict], dict[str, list[dict]]]:
        if not isinstance(data, dict):
            raise InvalidImportError("Invalid history file: expected a JSON object.")

        raw_closed = data.get("closedAndSaved", [])
        if not isinstance(raw_closed, list):
            raise InvalidImportError("Invalid history file: 'closedAndSaved' must be a list.")
        now = self.clock()
        closed = []
        for index, item in enumerate(raw_closed):
            url = self._require_url(item, f"closedAndSaved[{index}]")
            saved_at = item.get("savedAt")
            closed.append(ClosedSavedEntry(
                url=url,
                title=item.get("title") if isinstance(item.get("title"), str) and item.get("title") else url,
                saved_at=saved_at if isinstance(saved_at, int) and not isinstance(saved_at, bool) else now,
            ).to_dict())

        raw_backups = data.get("backups", {})
        if not isinstance(raw_backups, dict):
            raise InvalidImportError("Invalid history file: 'backups' must be an object.")
        backups = {}
        for day, items in raw_backups.items():
            if not isinstance(day, str) or not _DATE_RE.match(day):
                raise InvalidImportError(f"Invalid history file: bad backup date {day!r}.")
            if not isinstance(items, list):
                raise InvalidImportError(f"Invalid history file: backup {day} must be a list.")
            entries = []
            for index, item in enumerate(items):
                url = self._require_url(item, f"backups[{day}][{index}]")
                ts = item.get("ts")
                entries.append(BackupEntry(
                    url=url,
                    title=item.get("title") if isinstance(item.get("title"), str) and item.get("title") else url,
                    ts=ts if isinstance(ts, int) and not isinstance(ts, bool) else now,
                ).to_dict())
            backups[day] = entries

        return _merge_unique(closed), backups

    @staticmethod
    def _require_url(item: object, where: str) -> str:
        if not isinstance(item, dict):
            raise InvalidImportError(f"Invalid history file: {where} must be an object.")
        url = item.get("url")
        if not isinstance(url, str) or not url:
            raise InvalidImportError(f"Invalid history file: {where} has no url.")
        return url
