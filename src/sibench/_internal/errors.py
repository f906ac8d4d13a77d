"""Exception hierarchy for sibench."""

from __future__ import annotations


class SibenchError(Exception):
    """Base exception for all sibench errors."""


class ConfigError(SibenchError):
    """Raised when a benchmark setting is invalid.

    Examples:
        - ``rows`` is zero, so no update can target an existing key.
        - An ``SIBENCH_*`` environment variable is not an integer.
    """


class EngineError(SibenchError):
    """Raised when the run as a whole cannot proceed.

    Examples:
        - A worker thread or process could not be launched.
        - The benchmark table could not be provisioned.
    """


class StoreError(SibenchError):
    """Raised when the data store rejects an operation.

    Attributes:
        sqlstate: The five-character SQLSTATE reported by the server, if any.
            ``40001`` is a serialization failure.
    """

    def __init__(self, message: str, *, sqlstate: str | None = None) -> None:
        super().__init__(message)
        self.sqlstate = sqlstate
