"""Route commands to the components that answer them."""

import logging
from typing import TYPE_CHECKING, assert_never

from .commands import (
    ActivityPing,
    BackupNow,
    ClearRestoreData,
    CloseAndSaveAll,
    Command,
    ExportHistory,
    GetConstants,
    GetRestoreData,
    GetSettings,
    GetStatus,
    ImportHistory,
    OpenAllSaved,
    OpenSaved,
    RestoreAllSuspended,
    RestoreTab,
    SuspendAllNow,
    SuspendCurrentTab,
    TabActivated,
    TabRemoved,
    TabUpdated,
    UpdateSettings,
)
from .config import FALLBACK_URL_MAX, SCHEDULER_PERIOD_SECONDS
from .storage import load_settings, save_settings

if TYPE_CHECKING:
    from .service import Hibernator

logger = logging.getLogger(__name__)


class MessageRouter:
    """Answers each command with a JSON-ready dict."""

    def __init__(self, hibernator: "Hibernator"):
        self.hibernator = hibernator

    async def handle(self, command: Command) -> dict:
        h = self.hibernator
        match command:
            case ActivityPing(tab_id=tab_id) | TabActivated(tab_id=tab_id):
                h.on_activity(tab_id)
                return {"ok": True}
            case TabUpdated(tab_id=tab_id, changes=changes):
                h.on_tab_updated(tab_id, changes)
                return {"ok": True}
            case TabRemoved(tab_id=tab_id):
                h.on_tab_removed(tab_id)
                return {"ok": True}
            case BackupNow():
                return (await h.backup_now()).to_dict()
            case SuspendCurrentTab():
                outcome = await h.suspend_current_tab()
                if outcome is None:
                    return {"ok": False, "reason": "no-active-tab"}
                return outcome.to_dict()
            case SuspendAllNow():
                return {"suspended": len(await h.scheduler.suspend_all())}
            case RestoreAllSuspended():
                return {"restored": await h.restorer.restore_all()}
            case RestoreTab(tab_id=tab_id, stub_url=stub_url):
                return (await h.restorer.restore(tab_id, stub_url)).to_dict()
            case GetRestoreData(tab_id=tab_id, stub_url=stub_url):
                record = h.restorer.restore_data(tab_id, stub_url)
                return {"record": record.to_dict() if record else None}
            case ClearRestoreData(tab_id=tab_id):
                h.restorer.clear(tab_id)
                return {"ok": True}
            case CloseAndSaveAll():
                return {"closed": await h.close_and_save_all()}
            case OpenAllSaved():
                return {"opened": await h.open_all_saved()}
            case OpenSaved(urls=urls):
                return {"opened": await h.open_saved(list(urls))}
            case ExportHistory():
                return h.history.export()
            case ImportHistory(data=data):
                return h.history.import_data(data).to_dict()
            case GetStatus():
                return await h.status()
            case GetConstants():
                return {
                    "closedSavedMax": h.history.max_entries,
                    "fallbackUrlMax": FALLBACK_URL_MAX,
                    "schedulerPeriodSeconds": SCHEDULER_PERIOD_SECONDS,
                }
            case GetSettings():
                return load_settings(h.store).to_dict()
            case UpdateSettings(enabled=enabled, timeout_minutes=timeout, mode=mode):
                settings = load_settings(h.store)
                if enabled is not None:
                    settings.enabled = enabled
                if timeout is not None:
                    settings.timeout_minutes = timeout
                if mode is not None:
                    settings.mode = mode
                save_settings(h.store, settings)
                logger.info("Settings updated: %s", settings)
                return settings.to_dict()
            case _:
                assert_never(command)
