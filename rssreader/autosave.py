"""Background persistence: one worker thread, one pending-save slot."""
from __future__ import annotations

import logging
import threading

from rssreader.errors import PersistenceError
from rssreader.logging_utils import log_event
from rssreader.persistence import FeedStore


class AutoSaver:
    """
    Fire-and-forget saves after registry mutations.

    request() only sets an event, so any number of requests made while a save
    is running coalesce into one more save_if_needed(). Failures are logged and
    the registry stays dirty, so the next request retries.
    """

    def __init__(self, store: FeedStore):
        self.store = store
        self._pending = threading.Event()
        self._stopping = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stopping.clear()
        self._thread = threading.Thread(target=self._run, name="feeds-autosave", daemon=True)
        self._thread.start()

    def request(self) -> None:
        self._pending.set()

    def stop(self, timeout: float | None = 5.0) -> None:
        """Stop the worker, then flush pending changes synchronously."""
        self._stopping.set()
        self._pending.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        self.store.save_if_needed()

    def _run(self) -> None:
        while True:
            self._pending.wait()
            if self._stopping.is_set():
                return
            self._pending.clear()
            try:
                self.store.save_if_needed()
            except PersistenceError as exc:
                log_event("autosave_failed", level=logging.ERROR, path=str(self.store.path), error=str(exc))
