"""Platform-aware paths, environment overrides and policy constants."""

import os
import sys
from pathlib import Path

# Scheduler
SCHEDULER_PERIOD_SECONDS = 60
SCHEDULER_FIRING_TIMEOUT_SECONDS = 300.0
DEFAULT_TIMEOUT_MINUTES = 5
DEFAULT_MODE = "discard"

# Activity tracking
ACTIVITY_PERSIST_INTERVAL_MS = 4000

# Limits
CLOSED_SAVED_MAX = 2000
FALLBACK_URL_MAX = 1800
BOOKMARK_TITLE_MAX = 255

# Stub page and bookmarks
STUB_PAGE_PATH = "/suspended.html"
STUB_VERSION = 1
BACKUP_FOLDER_TITLE = "Tab Backup"
DEFAULT_ORIGIN = "chrome-extension://tabhibernate"

# Client retry policy for a service that has not woken up yet
CLIENT_RETRIES = 3
CLIENT_RETRY_DELAY_SECONDS = 0.5


def get_data_dir() -> Path:
    """Return the directory that holds the durable store."""
    env = os.environ.get("TAB_HIBERNATE_DATA_DIR")
    if env:
        return Path(env)

    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "tab-hibernate"
    elif sys.platform == "win32":
        return Path(os.environ.get("APPDATA", "")) / "tab-hibernate"
    else:  # Linux
        return Path.home() / ".local" / "share" / "tab-hibernate"


def get_storage_path() -> Path:
    """Return the path of the SQLite key/value store."""
    env = os.environ.get("TAB_HIBERNATE_DB")
    if env:
        return Path(env)

    return get_data_dir() / "storage.sqlite3"


def get_host_name() -> str:
    """Return the name of the browser host backend to use."""
    return os.environ.get("TAB_HIBERNATE_HOST", "memory")


def get_origin() -> str:
    """Return the installation origin stub pages are served from."""
    return os.environ.get("TAB_HIBERNATE_ORIGIN", DEFAULT_ORIGIN).rstrip("/")


def scheduler_enabled() -> bool:
    """Return False when the background scheduler is switched off."""
    return os.environ.get("TAB_HIBERNATE_SCHEDULER", "1").strip().lower() not in ("0", "false", "no", "off")
