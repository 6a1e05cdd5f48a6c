"""
Authentication API views.

Registration (optionally claiming a key), login with lockout, and the
authenticated caller's profile.
"""

from datetime import timedelta

from asgiref.sync import async_to_sync
from django.conf import settings
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.application.commands.login import LoginCommand
from accounts.application.commands.register_account import RegisterAccountCommand
from accounts.application.handlers.account_admin_handlers import GetProfileHandler
from accounts.application.handlers.login_handler import LoginHandler
from accounts.application.handlers.register_account_handler import RegisterAccountHandler
from accounts.domain.lockout import LoginAttemptTracker
from accounts.infrastructure.repositories.django_account_repository import (
    DjangoAccountRepository,
)
from accounts.infrastructure.security import TokenService
from api.permissions import current_account
from api.v1.auth.serializers import (
    AuthTokenSerializer,
    LoginRequestSerializer,
    ProfileSerializer,
    RegisterRequestSerializer,
)
from core.http import get_client_ip
from core.instrumentation import Status, StatusCode, get_tracer
from keys.infrastructure.repositories.django_key_repository import DjangoKeyRepository

# Initialize repositories (in production, use DI container)
_account_repo = DjangoAccountRepository()
_key_repo = DjangoKeyRepository()

# Failed-login counts live as long as this process
_attempt_tracker = LoginAttemptTracker(
    threshold=settings.LOGIN_LOCKOUT_THRESHOLD,
    window=timedelta(minutes=settings.LOGIN_LOCKOUT_MINUTES),
)

tracer = get_tracer(__name__)


def _validation_error(span, serializer) -> Response:
    span.set_attribute("error", "validation_failed")
    span.set_status(Status(StatusCode.ERROR, "Validation failed"))
    return Response(
        {"error": {"code": "VALIDATION_ERROR", "message": serializer.errors}},
        status=status.HTTP_400_BAD_REQUEST,
    )


class RegisterView(APIView):
    """View for account registration."""

    @extend_schema(
        operation_id="register",
        summary="Register",
        description=(
            "Create a user account. When a key is given it is claimed by the new "
            "account and marked validated in the same transaction."
        ),
        tags=["Auth"],
        request=RegisterRequestSerializer,
        responses={
            201: AuthTokenSerializer,
            400: {"description": "Bad Request"},
            404: {"description": "Key not found"},
            409: {"description": "Email registered or key already claimed"},
        },
    )
    def post(self, request: Request) -> Response:
        """Register an account."""
        return async_to_sync(self._handle_register)(request)

    async def _handle_register(self, request: Request) -> Response:
        """Async handler for registration."""
        with tracer.start_as_current_span("register") as span:
            span.set_attribute("operation", "register")

            serializer = RegisterRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return _validation_error(span, serializer)

            data = serializer.validated_data
            command = RegisterAccountCommand(
                email=data["email"],
                password=data["password"],
                key=data.get("key") or None,
            )
            span.set_attribute("register.with_key", command.key is not None)

            handler = RegisterAccountHandler(
                account_repository=_account_repo,
                key_repository=_key_repo,
                token_service=TokenService(),
                key_prefix=settings.KEY_PREFIX,
            )
            result = await handler.handle(command)

            span.set_attribute("account.id", str(result.account.id))
            span.set_status(Status(StatusCode.OK))
            return Response(AuthTokenSerializer(result).data, status=status.HTTP_201_CREATED)


class LoginView(APIView):
    """View for login."""

    @extend_schema(
        operation_id="login",
        summary="Login",
        description=(
            "Exchange credentials for a bearer token. Repeated failures from the "
            "same email and address lock further attempts for a while."
        ),
        tags=["Auth"],
        request=LoginRequestSerializer,
        responses={
            200: AuthTokenSerializer,
            401: {"description": "Invalid credentials"},
            429: {"description": "Temporarily locked"},
        },
    )
    def post(self, request: Request) -> Response:
        """Log in."""
        return async_to_sync(self._handle_login)(request)

    async def _handle_login(self, request: Request) -> Response:
        """Async handler for login."""
        with tracer.start_as_current_span("login") as span:
            span.set_attribute("operation", "login")

            serializer = LoginRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return _validation_error(span, serializer)

            command = LoginCommand(
                email=serializer.validated_data["email"],
                password=serializer.validated_data["password"],
                ip_address=get_client_ip(request),
            )
            handler = LoginHandler(
                account_repository=_account_repo,
                attempt_tracker=_attempt_tracker,
                token_service=TokenService(),
            )
            result = await handler.handle(command)

            span.set_attribute("account.id", str(result.account.id))
            span.set_status(Status(StatusCode.OK))
            return Response(AuthTokenSerializer(result).data, status=status.HTTP_200_OK)


class ProfileView(APIView):
    """View for the authenticated caller's profile."""

    @extend_schema(
        operation_id="me",
        summary="Current Account",
        description="The authenticated account and its key.",
        tags=["Auth"],
        responses={200: ProfileSerializer, 401: {"description": "Unauthorized"}},
    )
    def get(self, request: Request) -> Response:
        """Get the caller's profile."""
        return async_to_sync(self._handle_me)(request)

    async def _handle_me(self, request: Request) -> Response:
        """Async handler for the profile."""
        with tracer.start_as_current_span("me") as span:
            span.set_attribute("operation", "me")
            account = current_account(request)

            result = await GetProfileHandler(
                account_repository=_account_repo, key_repository=_key_repo
            ).handle(account.id)

            span.set_status(Status(StatusCode.OK))
            return Response(ProfileSerializer(result).data, status=status.HTTP_200_OK)
