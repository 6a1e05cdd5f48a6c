"""
Domain exceptions.

Domain exceptions represent business rule violations
and domain-specific error conditions.
"""


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    def __init__(self, message: str, code: str = None):
        """
        Initialize domain exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class KeyException(DomainException):
    """Base exception for key-related errors."""

    pass


class KeyNotFoundError(KeyException):
    """Raised when a key is not found."""

    def __init__(self, message: str = "Key not found"):
        super().__init__(message, code="KEY_NOT_FOUND")


class InvalidKeyFormatError(KeyException):
    """Raised when a key string does not match the key pattern."""

    def __init__(self, message: str = "Invalid key format"):
        super().__init__(message, code="INVALID_KEY_FORMAT")


class InvalidTierError(KeyException):
    """Raised when an unknown tier is requested."""

    def __init__(self, message: str = "Invalid tier"):
        super().__init__(message, code="INVALID_TIER")


class InvalidKeyStatusError(KeyException):
    """Raised when an operation is invalid for the key's current status."""

    def __init__(self, message: str = "Invalid key status"):
        super().__init__(message, code="INVALID_KEY_STATUS")


class BatchLimitExceededError(KeyException):
    """Raised when a batch request exceeds the batch size bound."""

    def __init__(self, message: str = "Maximum 100 keys per batch"):
        super().__init__(message, code="BATCH_LIMIT_EXCEEDED")


class KeyAlreadyClaimedError(KeyException):
    """Raised when a key is already owned by another account."""

    def __init__(self, message: str = "Key already claimed"):
        super().__init__(message, code="KEY_ALREADY_CLAIMED")


class DuplicateKeyValueError(KeyException):
    """Raised by the store when a generated key value collides."""

    def __init__(self, message: str = "Key value already exists"):
        super().__init__(message, code="DUPLICATE_KEY_VALUE")


class KeyGenerationError(KeyException):
    """Raised when unique key values could not be produced."""

    def __init__(self, message: str = "Could not generate a unique key"):
        super().__init__(message, code="KEY_GENERATION_FAILED")


class AccountException(DomainException):
    """Base exception for account-related errors."""

    pass


class AccountNotFoundError(AccountException):
    """Raised when an account is not found."""

    def __init__(self, message: str = "User not found"):
        super().__init__(message, code="ACCOUNT_NOT_FOUND")


class EmailAlreadyRegisteredError(AccountException):
    """Raised when an email is already in use."""

    def __init__(self, message: str = "Email already registered"):
        super().__init__(message, code="EMAIL_ALREADY_REGISTERED")


class InvalidRoleError(AccountException):
    """Raised when an unknown or disallowed role is requested."""

    def __init__(self, message: str = "Invalid role"):
        super().__init__(message, code="INVALID_ROLE")


class SelfModificationError(AccountException):
    """Raised when an account tries to delete or demote itself."""

    def __init__(self, message: str = "Cannot modify your own account"):
        super().__init__(message, code="SELF_MODIFICATION")


class AuthenticationException(DomainException):
    """Base exception for authentication errors."""

    pass


class NotAuthenticatedError(AuthenticationException):
    """Raised when a protected operation has no authenticated caller."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, code="NOT_AUTHENTICATED")


class InvalidCredentialsError(AuthenticationException):
    """Raised when email/password do not match."""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message, code="INVALID_CREDENTIALS")


class InvalidTokenError(AuthenticationException):
    """Raised when a bearer token cannot be verified."""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message, code="INVALID_TOKEN")


class AccountLockedError(AuthenticationException):
    """Raised when too many failed logins locked an identifier."""

    def __init__(
        self,
        message: str = (
            "Account temporarily locked due to too many failed attempts. "
            "Try again in 30 minutes."
        ),
    ):
        super().__init__(message, code="ACCOUNT_LOCKED")


class AccessDeniedError(DomainException):
    """Raised when the caller's role is below the required role."""

    def __init__(self, message: str = "Access denied"):
        super().__init__(message, code="ACCESS_DENIED")


class InvalidInputError(DomainException):
    """Raised when a request value violates a domain constraint."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, code="INVALID_INPUT")
