"""Requests the service answers, as a closed union of command types.

On the wire a request is a JSON object whose ``type`` names the command in
kebab-case (``{"type": "activity-ping", "tabId": 3}``). parse_command turns
it into one of the dataclasses below; MessageRouter handles every one of them.
"""

from dataclasses import dataclass, field
from typing import Any, Union

from .core import MODES
from .errors import InvalidCommandError, UnknownCommandError


# Tab events and activity
@dataclass(frozen=True)
class ActivityPing:
    tab_id: int


@dataclass(frozen=True)
class TabActivated:
    tab_id: int


@dataclass(frozen=True)
class TabUpdated:
    tab_id: int
    changes: frozenset[str] = field(default_factory=frozenset)  # changed tab properties


@dataclass(frozen=True)
class TabRemoved:
    tab_id: int


# Suspension and backup
@dataclass(frozen=True)
class BackupNow:
    pass


@dataclass(frozen=True)
class SuspendCurrentTab:
    pass


@dataclass(frozen=True)
class SuspendAllNow:
    pass


@dataclass(frozen=True)
class RestoreAllSuspended:
    pass


@dataclass(frozen=True)
class RestoreTab:
    tab_id: int
    stub_url: str | None = None


@dataclass(frozen=True)
class GetRestoreData:
    tab_id: int
    stub_url: str | None = None


@dataclass(frozen=True)
class ClearRestoreData:
    tab_id: int


# History
@dataclass(frozen=True)
class CloseAndSaveAll:
    pass


@dataclass(frozen=True)
class OpenAllSaved:
    pass


@dataclass(frozen=True)
class OpenSaved:
    urls: tuple[str, ...] = ()


@dataclass(frozen=True)
class ExportHistory:
    pass


@dataclass(frozen=True)
class ImportHistory:
    data: Any


# Status and settings
@dataclass(frozen=True)
class GetStatus:
    pass


@dataclass(frozen=True)
class GetConstants:
    pass


@dataclass(frozen=True)
class GetSettings:
    pass


@dataclass(frozen=True)
class UpdateSettings:
    enabled: bool | None = None
    timeout_minutes: int | None = None
    mode: str | None = None


Command = Union[
    ActivityPing,
    TabActivated,
    TabUpdated,
    TabRemoved,
    BackupNow,
    SuspendCurrentTab,
    SuspendAllNow,
    RestoreAllSuspended,
    RestoreTab,
    GetRestoreData,
    ClearRestoreData,
    CloseAndSaveAll,
    OpenAllSaved,
    OpenSaved,
    ExportHistory,
    ImportHistory,
    GetStatus,
    GetConstants,
    GetSettings,
    UpdateSettings,
]


def _tab_id(payload: dict) -> int:
    value = payload.get("tabId")
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidCommandError("tabId must be a positive integer", {"tabId": value})
    return value


def _optional_str(payload: dict, key: str) -> str | None:
    value = payload.get(key)
    if value is not None and not isinstance(value, str):
        raise InvalidCommandError(f"{key} must be a string", {key: value})
    return value


def _parse_update_settings(payload: dict) -> UpdateSettings:
    enabled = payload.get("enabled")
    if enabled is not None and not isinstance(enabled, bool):
        raise InvalidCommandError("enabled must be a boolean", {"enabled": enabled})
    timeout = payload.get("timeoutMinutes")
    if timeout is not None and (isinstance(timeout, bool) or not isinstance(timeout, int) or timeout <= 0):
        raise InvalidCommandError("timeoutMinutes must be a positive integer", {"timeoutMinutes": timeout})
    mode = payload.get("mode")
    if mode is not None and mode not in MODES:
        raise InvalidCommandError(f"mode must be one of {', '.join(MODES)}", {"mode": mode})
    return UpdateSettings(enabled=enabled, timeout_minutes=timeout, mode=mode)


def _parse_open_saved(payload: dict) -> OpenSaved:
    urls = payload.get("urls", [])
    if not isinstance(urls, list) or not all(isinstance(u, str) and u for u in urls):
        raise InvalidCommandError("urls must be a list of URLs", {"urls": urls})
    return OpenSaved(urls=tuple(urls))


def _parse_tab_updated(payload: dict) -> TabUpdated:
    changes = payload.get("changes") or []
    if not isinstance(changes, (list, dict)):
        raise InvalidCommandError("changes must be a list or an object", {"changes": changes})
    return TabUpdated(tab_id=_tab_id(payload), changes=frozenset(str(c) for c in changes))


PARSERS = {
    "activity-ping": lambda p: ActivityPing(tab_id=_tab_id(p)),
    "tab-activated": lambda p: TabActivated(tab_id=_tab_id(p)),
    "tab-updated": _parse_tab_updated,
    "tab-removed": lambda p: TabRemoved(tab_id=_tab_id(p)),
    "backup-now": lambda p: BackupNow(),
    "suspend-current-tab": lambda p: SuspendCurrentTab(),
    "suspend-all-now": lambda p: SuspendAllNow(),
    "restore-all-suspended": lambda p: RestoreAllSuspended(),
    "restore-tab": lambda p: RestoreTab(tab_id=_tab_id(p), stub_url=_optional_str(p, "stubUrl")),
    "get-restore-data": lambda p: GetRestoreData(tab_id=_tab_id(p), stub_url=_optional_str(p, "stubUrl")),
    "clear-restore-data": lambda p: ClearRestoreData(tab_id=_tab_id(p)),
    "close-and-save-all": lambda p: CloseAndSaveAll(),
    "open-all-saved": lambda p: OpenAllSaved(),
    "open-saved": _parse_open_saved,
    "export-history": lambda p: ExportHistory(),
    "import-history": lambda p: ImportHistory(data=p.get("data")),
    "get-status": lambda p: GetStatus(),
    "get-constants": lambda p: GetConstants(),
    "get-settings": lambda p: GetSettings(),
    "update-settings": _parse_update_settings,
}


def parse_command(payload: object) -> Command:
    """Turn a wire request into a command."""
    if not isinstance(payload, dict):
        raise InvalidCommandError("Request must be a JSON object")
    kind = payload.get("type")
    parser = PARSERS.get(kind) if isinstance(kind, str) else None
    if parser is None:
        raise UnknownCommandError(f"Unknown request type: {kind!r}", {"type": kind})
    return parser(payload)
