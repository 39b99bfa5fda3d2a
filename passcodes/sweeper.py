"""Periodic background sweep of expired passcodes."""

import threading
from typing import Optional

from . import config
from .logging_config import log
from .store import PasscodeStore


class PasscodeSweeper:
    """Call `store.cleanup_expired()` on a daemon thread every `interval_s` seconds."""

    def __init__(self, store: PasscodeStore, interval_s: Optional[float] = None) -> None:
        """Initialize PasscodeSweeper state and collaborator references."""
        self.store = store
        self._interval_s = interval_s
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    def interval_s(self) -> float:
        """Return sweep interval, at least one second."""
        if self._interval_s is not None:
            return max(1.0, float(self._interval_s))
        try:
            return max(1.0, float(int(getattr(config, "SWEEP_INTERVAL_S", 60) or 60)))
        except (TypeError, ValueError):
            return 60.0

    def run_once(self) -> int:
        """Run one sweep and return the number of passcodes removed."""
        return self.store.cleanup_expired()

    def _loop(self, stop: threading.Event) -> None:
        """Sweep until `stop` is set."""
        interval = self.interval_s()
        log.info("Passcode sweeper started (interval=%.0fs)", interval)
        while not stop.wait(interval):
            try:
                self.run_once()
            except Exception:
                log.exception("Passcode sweep failed")
        log.info("Passcode sweeper stopped")

    def start(self) -> None:
        """Start the sweep thread; no-op when already running.

        A previous thread that was told to stop but has not exited yet is
        joined first, so at most one loop is ever alive.
        """
        with self._lock:
            old = self._thread
            if old is not None and old.is_alive():
                if not self._stop.is_set():
                    return
                old.join()
            # each thread owns its event; a later start() cannot revive a stopped loop
            self._stop = threading.Event()
            self._thread = threading.Thread(
                target=self._loop, args=(self._stop,), name="passcode-sweeper", daemon=True
            )
            self._thread.start()

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Signal the sweep thread and wait for it to exit."""
        with self._lock:
            self._stop.set()
            thread = self._thread
        if thread is not None:
            thread.join(timeout)

    def is_running(self) -> bool:
        """Return whether the sweep thread is alive and not stopping."""
        with self._lock:
            thread = self._thread
            stopping = self._stop.is_set()
        return bool(thread is not None and thread.is_alive() and not stopping)
