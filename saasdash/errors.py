"""Exception hierarchy shared by the data-access layer and the HTTP apps."""

from __future__ import annotations


class SaasdashError(Exception):
    """Base class for all saasdash failures."""


class ConfigError(SaasdashError):
    """Required configuration is missing or invalid."""


class DataAccessError(SaasdashError):
    """The persistence provider rejected a query.

    ``message`` is the provider's message, unchanged.
    """

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code
        super().__init__(message)


class NotFoundError(DataAccessError):
    """A single-row lookup matched zero (or more than one) rows."""


class DuplicateError(DataAccessError):
    """A write violated a uniqueness constraint."""
