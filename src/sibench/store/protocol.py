"""Data-store capabilities the benchmark core depends on."""

from __future__ import annotations

from enum import Enum
from typing import Protocol


class IsolationMode(Enum):
    """Session-level transaction isolation under test.

    Each member's value is the SQL spelling accepted by
    ``SET default_transaction_isolation``.
    """

    REPEATABLE_READ = "repeatable read"
    SERIALIZABLE = "serializable"

    @classmethod
    def from_ssi(cls, ssi: bool) -> IsolationMode:
        return cls.SERIALIZABLE if ssi else cls.REPEATABLE_READ


class Session(Protocol):
    """One open connection, used by exactly one worker.

    Statement methods raise ``StoreError`` when the statement does not
    complete successfully.
    """

    def set_isolation(self, mode: IsolationMode) -> None: ...

    def update_row(self, key: int) -> None: ...

    def read_all(self) -> None: ...

    def close(self) -> None: ...


class SessionFactory(Protocol):
    """Opens sessions against the benchmark table.

    Implementations used in process mode must be picklable.
    """

    def open(self) -> Session: ...
