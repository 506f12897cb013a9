"""Background thread that periodically sweeps a :class:`PendingImportStore`.

Correctness never depends on this running (``get`` expires entries itself);
it only keeps abandoned uploads from accumulating in memory.
"""

from __future__ import annotations

import threading

from .logging_setup import get_logger
from .pending_imports import PendingImportStore

_logger = get_logger("statement_import.sweeper")


class ExpirySweeper:
    """Call ``store.sweep()`` every ``interval`` seconds on a daemon thread.

    Usage
    -----
    sweeper = ExpirySweeper(store, interval=60.0)
    sweeper.start()
    ...
    sweeper.stop()
    """

    def __init__(self, store: PendingImportStore, *, interval: float = 60.0) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._store = store
        self._interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="pending-import-sweeper", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            try:
                self._store.sweep()
            except Exception:
                # Keep the thread alive; the next tick retries.
                _logger.exception("pending import sweep failed")

    def __enter__(self) -> ExpirySweeper:
        self.start()
        return self

    def __exit__(self, *exc: object) -> None:
        self.stop()


__all__ = ["ExpirySweeper"]
