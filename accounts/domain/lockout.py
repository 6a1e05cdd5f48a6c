"""
Failed-login lockout.

Process-local and lost on restart. Entries older than the lockout window
are swept on every access.
"""
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

DEFAULT_THRESHOLD = 5
DEFAULT_WINDOW = timedelta(minutes=30)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _Attempts:
    count: int
    last_attempt: datetime


class LoginAttemptTracker:
    """
    Counts failed logins per identifier ("{email}-{ip}").

    An identifier is locked once it reaches threshold failures and stays
    locked until window has passed since its last failure.
    """

    def __init__(
        self,
        threshold: int = DEFAULT_THRESHOLD,
        window: timedelta = DEFAULT_WINDOW,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.threshold = threshold
        self.window = window
        self._clock = clock
        self._attempts: Dict[str, _Attempts] = {}
        self._lock = threading.Lock()

    @staticmethod
    def identifier(email: str, ip_address: Optional[str]) -> str:
        return f"{(email or '').strip().lower()}-{ip_address or 'unknown'}"

    def _sweep(self, now: datetime) -> None:
        cutoff = now - self.window
        stale = [key for key, entry in self._attempts.items() if entry.last_attempt < cutoff]
        for key in stale:
            del self._attempts[key]

    def is_locked(self, identifier: str) -> bool:
        """Whether identifier has reached the threshold within the window."""
        with self._lock:
            self._sweep(self._clock())
            entry = self._attempts.get(identifier)
            return entry is not None and entry.count >= self.threshold

    def record_failure(self, identifier: str) -> int:
        """Record a failed attempt; return the current failure count."""
        with self._lock:
            now = self._clock()
            self._sweep(now)
            entry = self._attempts.get(identifier)
            if entry is None:
                entry = self._attempts[identifier] = _Attempts(count=0, last_attempt=now)
            entry.count += 1
            entry.last_attempt = now
            return entry.count

    def clear(self, identifier: str) -> None:
        """Forget identifier after a successful login."""
        with self._lock:
            self._attempts.pop(identifier, None)

    def __len__(self) -> int:
        with self._lock:
            self._sweep(self._clock())
            return len(self._attempts)
