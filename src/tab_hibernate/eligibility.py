"""Decide whether a tab may be suspended, closed or backed up.

Every function here is pure: it looks only at the tab snapshot and its
arguments.
"""

from .core import TabSnapshot
from .stub import parse_stub_url

PRIVILEGED_SCHEMES = (
    "chrome",
    "chrome-extension",
    "chrome-search",
    "chrome-untrusted",
    "devtools",
    "edge",
    "about",
    "view-source",
    "moz-extension",
)

RESTORABLE_SCHEMES = ("http", "https", "file")


def url_scheme(url: str | None) -> str:
    """Lower-cased scheme of url, or an empty string."""
    if not url or ":" not in url:
        return ""
    return url.split(":", 1)[0].strip().lower()


def is_privileged_url(url: str | None) -> bool:
    """True for the browser's internal pages, which cannot be suspended."""
    return url_scheme(url) in PRIVILEGED_SCHEMES


def is_restorable_url(url: str | None) -> bool:
    """True if a placeholder could send the tab back to url."""
    return url_scheme(url) in RESTORABLE_SCHEMES


def ineligibility_reason(tab: TabSnapshot, origin: str, allow_active: bool = False) -> str | None:
    """Return the first rule that excludes tab from suspension, or None."""
    if tab.active and not allow_active:
        return "active"
    if tab.pinned:
        return "pinned"
    if tab.audible:
        return "audible"
    if tab.incognito:
        return "incognito"
    if tab.discarded:
        return "discarded"
    if parse_stub_url(tab.url, origin) is not None:
        return "stub-page"
    if is_privileged_url(tab.url):
        return "privileged-url"
    return None


def is_eligible(tab: TabSnapshot, origin: str, allow_active: bool = False) -> bool:
    """True if tab may be suspended.

    allow_active is set only for an explicit "suspend current tab" request.
    """
    return ineligibility_reason(tab, origin, allow_active) is None


def is_backup_eligible(tab: TabSnapshot) -> bool:
    """True if tab belongs in a backup: a real, non-incognito page."""
    if not tab.id or not tab.url:
        return False
    if is_privileged_url(tab.url):
        return False
    return not tab.incognito
