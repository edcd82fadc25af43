"""Browser host backends and a name-based registry."""

from ..config import get_host_name, get_origin
from ..errors import ConfigError
from ..host import BrowserHost
from .memory import MemoryHost

HOSTS: dict[str, type[BrowserHost]] = {
    MemoryHost.name: MemoryHost,
}


def get_host(name: str | None = None) -> BrowserHost:
    """Return a host backend by name (defaults to the configured one)."""
    name = name or get_host_name()
    host_class = HOSTS.get(name)
    if host_class is None:
        raise ConfigError(f"Unknown browser host: {name}", {"available": sorted(HOSTS)})
    return host_class(origin=get_origin())
