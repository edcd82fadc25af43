"""Stub-page address contract.

A stub page lives at ``<origin>/suspended.html`` and carries:

- ``tabId`` (required): the id of the tab that was suspended,
- ``v``: the stub marker version,
- ``url`` (optional): the original URL, present only when short enough.

Stub pages outlive upgrades and reinstalls, so a stub from an earlier
installation identity is recognized by its extension scheme, page path and
``v`` marker even when its origin no longer matches.
"""

from dataclasses import dataclass
from urllib.parse import parse_qs, quote_plus, urlencode, urlsplit

from .config import FALLBACK_URL_MAX, STUB_PAGE_PATH, STUB_VERSION

EXTENSION_SCHEMES = ("chrome-extension", "moz-extension", "extension")


@dataclass(frozen=True)
class StubAddress:
    """The parsed address of a stub page."""

    origin: str
    tab_id: int | None
    fallback_url: str | None
    version: int | None


def build_stub_url(origin: str, tab_id: int, original_url: str) -> str:
    """Return the stub-page address for a tab suspended away from original_url."""
    params = {"tabId": str(tab_id), "v": str(STUB_VERSION)}
    if original_url and len(quote_plus(original_url)) <= FALLBACK_URL_MAX:
        params["url"] = original_url
    return f"{origin.rstrip('/')}{STUB_PAGE_PATH}?{urlencode(params)}"


def parse_stub_url(url: str | None, origin: str | None = None) -> StubAddress | None:
    """Parse url as a stub page address, or return None if it is not one."""
    if not url:
        return None
    try:
        parts = urlsplit(url)
    except ValueError:
        return None
    if parts.path != STUB_PAGE_PATH or not parts.netloc:
        return None

    page_origin = f"{parts.scheme}://{parts.netloc}".lower()
    params = parse_qs(parts.query)
    version = _int_param(params, "v")

    current = origin is not None and page_origin == origin.rstrip("/").lower()
    past_install = parts.scheme.lower() in EXTENSION_SCHEMES and version is not None
    if not (current or past_install):
        return None

    fallback = params.get("url", [None])[0] or None
    return StubAddress(
        origin=page_origin,
        tab_id=_int_param(params, "tabId"),
        fallback_url=fallback,
        version=version,
    )


def _int_param(params: dict[str, list[str]], name: str) -> int | None:
    values = params.get(name)
    if not values:
        return None
    try:
        return int(values[0])
    except ValueError:
        return None
