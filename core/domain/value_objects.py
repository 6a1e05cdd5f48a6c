"""
Value objects for the domain.

Value objects are immutable objects that are defined by their attributes
rather than their identity. They have no identity and are compared by value.
"""
import re
from abc import ABC
from dataclasses import dataclass
from enum import Enum

DEFAULT_KEY_PREFIX = "RNSXM"


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects.

    Value objects are immutable and compared by value.
    """

    def __eq__(self, other):
        """Compare value objects by their attributes."""
        if not isinstance(other, self.__class__):
            return False
        return self.__dict__ == other.__dict__

    def __hash__(self):
        """Make value objects hashable."""
        return hash(tuple(sorted(self.__dict__.items())))


@dataclass(frozen=True)
class Email(ValueObject):
    """Email value object with validation."""

    value: str

    def __post_init__(self):
        """Validate email format."""
        if not self.value or "@" not in self.value:
            raise ValueError(f"Invalid email address: {self.value}")

    def __str__(self) -> str:
        """Return email as string."""
        return self.value


@dataclass(frozen=True)
class KeyValue(ValueObject):
    """
    Canonical license key string.

    Format: PREFIX-XXXX-XXXX-XXXX-XXXX where each X is A-Z or 0-9.
    Input is trimmed and upper-cased before matching, so lookups are
    case-insensitive.
    """

    value: str
    prefix: str = DEFAULT_KEY_PREFIX

    def __post_init__(self):
        """Validate key format."""
        pattern = rf"^{re.escape(self.prefix)}(-[A-Z0-9]{{4}}){{4}}$"
        if not self.value or not re.match(pattern, self.value):
            raise ValueError(f"Invalid key format: {self.value}")

    @classmethod
    def parse(cls, raw: str, prefix: str = DEFAULT_KEY_PREFIX) -> "KeyValue":
        """Canonicalize and validate a raw key string."""
        return cls(value=(raw or "").strip().upper(), prefix=prefix.upper())

    def __str__(self) -> str:
        """Return key as string."""
        return self.value


class KeyStatus(Enum):
    """Key status value object."""

    ACTIVE = "active"
    DISABLED = "disabled"
    BANNED = "banned"
    EXPIRED = "expired"

    def __str__(self) -> str:
        return self.value


class KeyTier(Enum):
    """Key tier value object."""

    BASIC = "basic"
    PREMIUM = "premium"
    ELEVATED = "elevated"

    def __str__(self) -> str:
        return self.value


class Role(Enum):
    """Account role, ordered user < admin < super_admin."""

    USER = "user"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

    @property
    def level(self) -> int:
        return _ROLE_LEVELS[self]

    @property
    def label(self) -> str:
        """Human-readable role name used in access messages."""
        return self.value.replace("_", " ").title()

    def __ge__(self, other: "Role") -> bool:
        if not isinstance(other, Role):
            return NotImplemented
        return self.level >= other.level

    def __gt__(self, other: "Role") -> bool:
        if not isinstance(other, Role):
            return NotImplemented
        return self.level > other.level

    def __le__(self, other: "Role") -> bool:
        if not isinstance(other, Role):
            return NotImplemented
        return self.level <= other.level

    def __lt__(self, other: "Role") -> bool:
        if not isinstance(other, Role):
            return NotImplemented
        return self.level < other.level

    def __str__(self) -> str:
        return self.value


_ROLE_LEVELS = {Role.USER: 1, Role.ADMIN: 2, Role.SUPER_ADMIN: 3}
