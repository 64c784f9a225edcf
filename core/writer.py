"""
Background persistence worker.

Single Responsibility: Run store writes off the sampling tick.

Each submitted write gets a Future carrying either the stored record or the
exception the store raised, so callers choose whether to wait.
"""
import queue
import threading
from concurrent.futures import Future
from typing import Any, Callable, Optional

from logger import get_logger

log = get_logger(__name__)

_STOP = object()


class StoreWriter:
    """Single worker thread draining a queue of write jobs in order."""

    def __init__(self, name: str = "store-writer"):
        self._queue: "queue.Queue" = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._name = name

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()

    def submit(self, fn: Callable[..., Any], *args) -> Future:
        """Queue fn(*args); the returned Future resolves once it has run."""
        if self._thread is None:
            self.start()
        future: Future = Future()
        self._queue.put((fn, args, future))
        return future

    def join(self) -> None:
        """Block until every queued write has run."""
        self._queue.join()

    def close(self) -> None:
        """Drain pending writes and stop the worker."""
        if self._thread is None:
            return
        self._queue.put(_STOP)
        self._thread.join()
        self._thread = None

    def _run(self) -> None:
        while True:
            job = self._queue.get()
            try:
                if job is _STOP:
                    return
                fn, args, future = job
                if not future.set_running_or_notify_cancel():
                    continue
                try:
                    future.set_result(fn(*args))
                except Exception as e:
                    future.set_exception(e)
            finally:
                self._queue.task_done()

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
