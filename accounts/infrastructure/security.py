"""
Password hashing and bearer tokens.

Passwords use Django's configured password hashers. Tokens are HS256 JWTs
signed with settings.JWT_SECRET.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from django.conf import settings
from django.contrib.auth.hashers import check_password, make_password
from jose import ExpiredSignatureError, JWTError, jwt

from accounts.domain.account import Account
from core.domain.exceptions import InvalidTokenError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    """Return a salted hash of password."""
    return make_password(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check password against a stored hash."""
    return check_password(password, password_hash)


@dataclass(frozen=True)
class TokenClaims:
    """Verified claims of a bearer token."""

    account_id: uuid.UUID
    email: str
    role: str
    key_id: Optional[str]
    expires_at: datetime


class TokenService:
    """Issues and verifies bearer tokens."""

    def __init__(self, secret: Optional[str] = None, ttl: Optional[timedelta] = None):
        self._secret = secret
        self._ttl = ttl

    @property
    def secret(self) -> str:
        return self._secret or getattr(settings, "JWT_SECRET", settings.SECRET_KEY)

    @property
    def ttl(self) -> timedelta:
        if self._ttl is not None:
            return self._ttl
        return timedelta(days=getattr(settings, "TOKEN_TTL_DAYS", 7))

    def issue(self, account: Account, now: Optional[datetime] = None) -> str:
        """
        Create a signed token for account.

        Args:
            account: Authenticated account
            now: Issue time (defaults to now, UTC)

        Returns:
            Encoded JWT
        """
        now = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(account.id),
            "email": account.email.value,
            "role": account.role.value,
            "key_id": str(account.key_id) if account.key_id else None,
            "iat": now,
            "exp": now + self.ttl,
        }
        return jwt.encode(payload, self.secret, algorithm=ALGORITHM)

    def decode(self, token: str) -> TokenClaims:
        """
        Verify token and return its claims.

        Raises:
            InvalidTokenError: If the token is malformed, forged or expired
        """
        try:
            payload = jwt.decode(token, self.secret, algorithms=[ALGORITHM])
        except ExpiredSignatureError:
            raise InvalidTokenError("Token has expired") from None
        except JWTError as e:
            logger.debug("Rejected bearer token: %s", e)
            raise InvalidTokenError() from None

        subject = payload.get("sub")
        try:
            account_id = uuid.UUID(subject)
        except (TypeError, ValueError):
            raise InvalidTokenError() from None

        return TokenClaims(
            account_id=account_id,
            email=payload.get("email", ""),
            role=payload.get("role", ""),
            key_id=payload.get("key_id"),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
