"""Recurring background tasks with deterministic teardown.

Each PeriodicTask runs its function on a daemon thread, then waits on a
stop event for the interval.  A cycle always finishes before the next one
starts, so a slow poll never stacks up concurrent outstanding calls.
"""

import sys
import threading


class PeriodicTask:

    def __init__(self, name: str, interval_s: float, fn, run_immediately: bool = False):
        self.name = name
        self.interval_s = interval_s
        self._fn = fn
        self._run_immediately = run_immediately
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return (self._thread is not None and self._thread.is_alive()
                and not self._stop.is_set())

    def start(self) -> None:
        previous = self._thread
        if previous is not None and previous.is_alive():
            if not self._stop.is_set():
                return
            # An earlier stop() timed out; let its last cycle finish first.
            if previous is not threading.current_thread():
                previous.join()
        # Each run owns its event, so a restart cannot wake an old loop.
        self._stop = stop = threading.Event()
        self._thread = threading.Thread(
            target=self._loop, args=(stop,), name=self.name, daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return
        thread.join(timeout)
        # Keep the reference while the thread lives so start() can wait on it.
        if not thread.is_alive():
            self._thread = None

    def _loop(self, stop: threading.Event) -> None:
        if not self._run_immediately and stop.wait(self.interval_s):
            return
        while not stop.is_set():
            try:
                self._fn()
            except Exception as e:
                print(f"Task '{self.name}' failed: {e!r}", file=sys.stderr)
            if stop.wait(self.interval_s):
                return
