"""
Key lifecycle decisions.

Pure functions that decide whether a key may be used right now and which
mutations a successful use implies. Persistence and logging happen in the
application layer; nothing here touches storage.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Union

from core.domain.value_objects import KeyStatus
from keys.domain.key import Key

NO_KEY_PROVIDED = "No key provided"
INVALID_KEY_FORMAT = "Invalid key format"
INVALID_KEY = "Invalid key"
KEY_EXPIRED = "Key has expired"
REGISTRATION_REQUIRED = (
    "Key requires registration. Please register at ransxm.com to activate your key."
)
HWID_MISMATCH = "Key is locked to another device"
MAX_USES_REACHED = "Key has reached maximum uses"
VALIDATION_FAILED = "Validation failed"
VALIDATION_SUCCEEDED = "Key validated successfully"


@dataclass(frozen=True)
class Rejection:
    """The key may not be used; expire is set when the key must move to expired."""

    reason: str
    requires_registration: bool = False
    expire: bool = False


@dataclass(frozen=True)
class Acceptance:
    """
    The key may be used.

    first_activation binds hwid to an unbound key. A returning device
    (bound hwid equal to the supplied one) never consumes a use.
    """

    hwid: Optional[str]
    first_activation: bool = False
    returning_device: bool = False

    @property
    def consumes_use(self) -> bool:
        return not self.returning_device


ValidationDecision = Union[Rejection, Acceptance]


@dataclass(frozen=True)
class UsageSummary:
    """Client-facing summary of an accepted validation."""

    tier: str
    expires_at: Optional[datetime]
    time_remaining: Optional[str]
    uses_remaining: Union[int, str]


@dataclass(frozen=True)
class StatusSnapshot:
    """Read-only view of a key's usability."""

    valid: bool
    status: str
    tier: str
    expires_at: Optional[datetime]


def status_rejection(key: Key) -> Optional[Rejection]:
    """Status check: only active keys can be used."""
    if key.status != KeyStatus.ACTIVE:
        return Rejection(reason=f"Key is {key.status.value}")
    return None


def evaluate(key: Key, hwid: Optional[str], now: datetime) -> ValidationDecision:
    """
    Decide whether key may be used by the caller identified by hwid.

    Checks run in order: status, expiry, registration, device binding,
    usage ceiling. The first failing check wins.

    Args:
        key: Current key state
        hwid: Caller's hardware id, or None to skip device binding
        now: Current time

    Returns:
        Rejection or Acceptance
    """
    rejection = status_rejection(key)
    if rejection:
        return rejection

    if key.is_expired(now):
        return Rejection(reason=KEY_EXPIRED, expire=True)

    if key.needs_validation and not key.validated:
        return Rejection(reason=REGISTRATION_REQUIRED, requires_registration=True)

    hwid = hwid or None
    first_activation = False
    returning_device = False
    if hwid is not None:
        if key.hwid is None:
            first_activation = True
        elif key.hwid == hwid:
            returning_device = True
        else:
            return Rejection(reason=HWID_MISMATCH)

    if not returning_device and key.uses_exhausted:
        return Rejection(reason=MAX_USES_REACHED)

    return Acceptance(
        hwid=hwid,
        first_activation=first_activation,
        returning_device=returning_device,
    )


def format_time_remaining(expires_at: Optional[datetime], now: datetime) -> Optional[str]:
    """Format remaining time as '{days}d {hours}h', or None without expiry."""
    if expires_at is None:
        return None
    remaining = max(expires_at - now, timedelta(0))
    days = remaining.days
    hours = remaining.seconds // 3600
    return f"{days}d {hours}h"


def summarize(key: Key, decision: Acceptance, now: datetime) -> UsageSummary:
    """
    Build the success payload for an accepted validation.

    key is the state that was evaluated, before the use was recorded.
    """
    if key.is_unlimited:
        uses_remaining: Union[int, str] = "unlimited"
    else:
        consumed = 1 if decision.consumes_use else 0
        uses_remaining = max(0, key.max_uses - key.current_uses - consumed)

    return UsageSummary(
        tier=key.tier.value,
        expires_at=key.expires_at,
        time_remaining=format_time_remaining(key.expires_at, now),
        uses_remaining=uses_remaining,
    )


def snapshot(key: Key, now: datetime) -> StatusSnapshot:
    """Read-only status: valid only when active and not past expiry."""
    return StatusSnapshot(
        valid=key.status == KeyStatus.ACTIVE and not key.is_expired(now),
        status=key.status.value,
        tier=key.tier.value,
        expires_at=key.expires_at,
    )
