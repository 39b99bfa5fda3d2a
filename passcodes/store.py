"""In-memory one-time passcode storage with per-entry expiration."""

import threading
import time
from typing import Dict, Optional

from . import config
from .logging_config import log


class InvalidArgument(ValueError):
    """Raised when a passcode or duration has the wrong type or value."""


def _is_int(value: object) -> bool:
    """Return True for real integers; bool is rejected."""
    return isinstance(value, int) and not isinstance(value, bool)


def _now_ms() -> int:
    """Return current wall-clock time in integer milliseconds."""
    return int(time.time() * 1000)


class PasscodeStore:
    """Thread-safe passcode -> expiration mapping.

    Expired entries are dropped lazily by `validate` and in bulk by
    `cleanup_expired`. Either path alone keeps `validate` correct; the sweep
    only bounds memory held by passcodes nobody checks again.
    """

    def __init__(self, default_ttl_ms: Optional[int] = None) -> None:
        """Initialize PasscodeStore state."""
        if default_ttl_ms is not None and (not _is_int(default_ttl_ms) or default_ttl_ms <= 0):
            raise InvalidArgument("Default duration must be a positive integer in milliseconds")
        self._default_ttl_ms = default_ttl_ms
        self._lock = threading.Lock()
        self._passcodes: Dict[int, int] = {}

    def default_ttl_ms(self) -> int:
        """Return the duration applied when a caller omits one."""
        if self._default_ttl_ms is not None:
            return int(self._default_ttl_ms)
        try:
            ttl = int(getattr(config, "PASSCODE_TTL_MS", config.DEFAULT_PASSCODE_TTL_MS))
        except (TypeError, ValueError):
            return config.DEFAULT_PASSCODE_TTL_MS
        return ttl if ttl > 0 else config.DEFAULT_PASSCODE_TTL_MS

    def insert_or_refresh(self, passcode: int, duration_ms: Optional[int] = None) -> bool:
        """Store `passcode` until now + `duration_ms`.

        Returns True when the passcode was already held, even if its previous
        expiration had passed without being swept.
        """
        if not _is_int(passcode):
            raise InvalidArgument("Passcode must be an integer")
        if duration_ms is None:
            duration_ms = self.default_ttl_ms()
        elif not _is_int(duration_ms) or duration_ms <= 0:
            raise InvalidArgument("Duration must be a positive integer in milliseconds")

        expires_ms = _now_ms() + duration_ms
        with self._lock:
            existed = passcode in self._passcodes
            self._passcodes[passcode] = expires_ms
        log.debug("Passcode %s (ttl=%sms)", "refreshed" if existed else "stored", duration_ms)
        return existed

    def _sweep_locked(self, now: int) -> int:
        """Remove entries expired at `now` while holding the store lock."""
        expired = [p for p, exp in self._passcodes.items() if now > exp]
        for p in expired:
            del self._passcodes[p]
        return len(expired)

    def validate(self, passcode: int) -> bool:
        """Return whether `passcode` is held and unexpired.

        An expired entry is removed as a side effect.
        """
        if not _is_int(passcode):
            return False
        now = _now_ms()
        with self._lock:
            expires_ms = self._passcodes.get(passcode)
            if expires_ms is None:
                return False
            if now > expires_ms:
                del self._passcodes[passcode]
                log.debug("Expired passcode evicted on validate")
                return False
            return True

    def consume(self, passcode: int) -> bool:
        """Validate and remove `passcode` in one step.

        Of several concurrent callers presenting the same passcode, at most
        one gets True.
        """
        if not _is_int(passcode):
            return False
        now = _now_ms()
        with self._lock:
            expires_ms = self._passcodes.pop(passcode, None)
        return expires_ms is not None and now <= expires_ms

    def remove(self, passcode: int) -> bool:
        """Remove `passcode`; return whether it was held."""
        if not _is_int(passcode):
            return False
        with self._lock:
            return self._passcodes.pop(passcode, None) is not None

    def remaining_time(self, passcode: int) -> int:
        """Return milliseconds left before `passcode` expires, or 0."""
        if not _is_int(passcode):
            return 0
        now = _now_ms()
        with self._lock:
            expires_ms = self._passcodes.get(passcode)
        if expires_ms is None:
            return 0
        return max(0, expires_ms - now)

    def cleanup_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = _now_ms()
        with self._lock:
            removed = self._sweep_locked(now)
        if removed:
            log.info("Swept %d expired passcode(s)", removed)
        return removed

    def active_count(self) -> int:
        """Sweep expired entries, then return the number still held."""
        now = _now_ms()
        with self._lock:
            removed = self._sweep_locked(now)
            count = len(self._passcodes)
        if removed:
            log.info("Swept %d expired passcode(s)", removed)
        return count

    def stats(self) -> dict:
        """Return a snapshot of store size without sweeping."""
        with self._lock:
            entries = len(self._passcodes)
        return {"entries": entries, "default_ttl_ms": self.default_ttl_ms()}

    def clear(self) -> None:
        """Drop all entries."""
        with self._lock:
            self._passcodes.clear()
