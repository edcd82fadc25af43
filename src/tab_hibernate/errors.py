"""Exception hierarchy for tab-hibernate.

All domain errors inherit from HibernateError.
"""

from typing import Any


class HibernateError(Exception):
    """Base exception for all tab-hibernate errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigError(HibernateError):
    """Raised when configuration is invalid or missing."""


# Browser host errors
class HostError(HibernateError):
    """Raised when a browser host operation fails."""


class TabGoneError(HostError):
    """Raised when a tab closed between lookup and action."""

    def __init__(self, tab_id: int):
        super().__init__(f"Tab {tab_id} no longer exists", {"tab_id": tab_id})
        self.tab_id = tab_id


# Data errors
class InvalidImportError(HibernateError):
    """Raised when an imported history payload has the wrong shape."""


# Request boundary errors
class CommandError(HibernateError):
    """Base exception for malformed requests."""


class UnknownCommandError(CommandError):
    """Raised for a request type no command handles."""


class InvalidCommandError(CommandError):
    """Raised when a request is missing or has malformed fields."""


class ChannelUnavailableError(HibernateError):
    """Raised by the client when the service did not answer after all retries."""


class CommandRejectedError(HibernateError):
    """Raised by the client when the service rejected a request."""
