from __future__ import annotations

import threading
from typing import Protocol

from snipvault.services._shared.errors import AuditWriteError
from snipvault.services.audit.dto import AuditEntryIn


class AuditSink(Protocol):
    """
    Durable destination for audit entries.

    ``write`` either persists the entry or raises :class:`AuditWriteError`.
    It is called off the request thread when the recorder runs async.
    """

    def write(self, entry: AuditEntryIn) -> None: ...


class InMemoryAuditSink(AuditSink):
    """
    List-backed sink used in unit tests.

    Set :attr:`fail` to make every write raise :class:`AuditWriteError`.
    """

    def __init__(self) -> None:
        self.entries: list[AuditEntryIn] = []
        self.fail = False
        self._lock = threading.Lock()

    def write(self, entry: AuditEntryIn) -> None:
        if self.fail:
            raise AuditWriteError("in-memory sink configured to fail")
        with self._lock:
            self.entries.append(entry)

    def actions(self) -> list[str]:
        return [e.action for e in self.entries]
