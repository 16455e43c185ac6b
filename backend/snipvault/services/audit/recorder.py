"""Best-effort audit recording, inline or on a small worker pool."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

from snipvault.services._shared.ports.audit_sink import AuditSink
from snipvault.services.audit.dto import AuditEntryIn

log = logging.getLogger(__name__)


class AuditRecorder:
    """
    Hand audit entries to a sink without ever failing the caller.

    In async mode the write runs on a thread pool and :meth:`record` returns
    immediately; otherwise it runs inline. Either way, any exception raised
    by the sink is logged and dropped.

    :param sink: Durable destination.
    :param async_mode: Write off the request thread.
    :param max_workers: Pool size in async mode.
    """

    def __init__(self, sink: AuditSink, *, async_mode: bool = True, max_workers: int = 2) -> None:
        self.sink = sink
        self.async_mode = async_mode
        self._pool = (
            ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="audit")
            if async_mode
            else None
        )

    def record(self, entry: AuditEntryIn) -> None:
        """Schedule (or perform) the write of ``entry``; never raises."""
        if self._pool is None:
            self._write(entry)
            return
        try:
            self._pool.submit(self._write, entry)
        except RuntimeError:
            # Pool already shut down (interpreter exit)
            log.warning("audit.dropped", extra={"action": entry.action})

    def _write(self, entry: AuditEntryIn) -> None:
        try:
            self.sink.write(entry)
        except Exception:
            log.exception(
                "audit.write_failed",
                extra={"action": entry.action, "status": entry.status.value},
            )

    def shutdown(self, wait: bool = True) -> None:
        """Drain pending writes and stop the pool."""
        if self._pool is not None:
            self._pool.shutdown(wait=wait)
