"""
Administrative API views.

Dashboard statistics, the usage log, analytics and account management.
"""

import uuid

from asgiref.sync import async_to_sync
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.application.commands.manage_accounts import (
    CreateAdminAccountCommand,
    DeleteAccountCommand,
    UpdateAccountRoleCommand,
)
from accounts.application.handlers.account_admin_handlers import (
    CreateAdminAccountHandler,
    DeleteAccountHandler,
    ListAccountsHandler,
    UpdateAccountRoleHandler,
)
from accounts.infrastructure.repositories.django_account_repository import (
    DjangoAccountRepository,
)
from api.permissions import require_modify, require_view
from api.v1.admin.serializers import (
    AccountListItemSerializer,
    AccountSerializer,
    AnalyticsQuerySerializer,
    AnalyticsSerializer,
    CreateAdminAccountRequestSerializer,
    LogsQuerySerializer,
    StatsSerializer,
    UpdateRoleRequestSerializer,
    UsageLogPageSerializer,
)
from core.instrumentation import Status, StatusCode, get_tracer
from keys.application.handlers.usage_report_handlers import (
    GetAnalyticsHandler,
    GetStatsHandler,
    ListUsageLogsHandler,
)
from keys.application.queries.usage_reports import (
    GetAnalyticsQuery,
    GetStatsQuery,
    ListUsageLogsQuery,
)
from keys.infrastructure.repositories.django_key_repository import DjangoKeyRepository
from keys.infrastructure.repositories.django_usage_log_repository import (
    DjangoUsageLogRepository,
)

# Initialize repositories (in production, use DI container)
_key_repo = DjangoKeyRepository()
_usage_log_repo = DjangoUsageLogRepository()
_account_repo = DjangoAccountRepository()

tracer = get_tracer(__name__)

ACCOUNT_ID_PARAMETER = OpenApiParameter(
    name="account_id",
    type=uuid.UUID,
    location=OpenApiParameter.PATH,
    description="Account ID",
)


def _validation_error(span, serializer) -> Response:
    span.set_attribute("error", "validation_failed")
    span.set_status(Status(StatusCode.ERROR, "Validation failed"))
    return Response(
        {"error": {"code": "VALIDATION_ERROR", "message": serializer.errors}},
        status=status.HTTP_400_BAD_REQUEST,
    )


class StatsView(APIView):
    """View for dashboard statistics."""

    @extend_schema(
        operation_id="get_stats",
        summary="Get Stats",
        description="Key and account totals, today's validations and recent activity.",
        tags=["Admin"],
        responses={200: StatsSerializer, 403: {"description": "Forbidden"}},
    )
    def get(self, request: Request) -> Response:
        """Get dashboard statistics."""
        return async_to_sync(self._handle_stats)(request)

    async def _handle_stats(self, request: Request) -> Response:
        """Async handler for stats."""
        with tracer.start_as_current_span("get_stats") as span:
            span.set_attribute("operation", "get_stats")
            require_view(request)

            handler = GetStatsHandler(
                key_repository=_key_repo,
                usage_log_repository=_usage_log_repo,
                account_repository=_account_repo,
            )
            result = await handler.handle(GetStatsQuery())

            span.set_status(Status(StatusCode.OK))
            return Response(StatsSerializer(result).data, status=status.HTTP_200_OK)


class UsageLogsView(APIView):
    """View for the usage log."""

    @extend_schema(
        operation_id="list_usage_logs",
        summary="List Usage Logs",
        description="Page through validation records, newest first, optionally for one key.",
        tags=["Admin"],
        parameters=[LogsQuerySerializer],
        responses={200: UsageLogPageSerializer, 403: {"description": "Forbidden"}},
    )
    def get(self, request: Request) -> Response:
        """List usage log entries."""
        return async_to_sync(self._handle_logs)(request)

    async def _handle_logs(self, request: Request) -> Response:
        """Async handler for usage logs."""
        with tracer.start_as_current_span("list_usage_logs") as span:
            span.set_attribute("operation", "list_usage_logs")
            require_view(request)

            serializer = LogsQuerySerializer(data=request.query_params)
            if not serializer.is_valid():
                return _validation_error(span, serializer)

            data = serializer.validated_data
            query = ListUsageLogsQuery(
                key_id=data.get("key_id"), page=data["page"], limit=data["limit"]
            )
            result = await ListUsageLogsHandler(usage_log_repository=_usage_log_repo).handle(query)

            span.set_attribute("logs.total", result.total)
            span.set_status(Status(StatusCode.OK))
            return Response(UsageLogPageSerializer(result).data, status=status.HTTP_200_OK)


class AnalyticsView(APIView):
    """View for usage analytics."""

    @extend_schema(
        operation_id="get_analytics",
        summary="Get Analytics",
        description="Daily validation counts and the most frequent game ids.",
        tags=["Admin"],
        parameters=[AnalyticsQuerySerializer],
        responses={200: AnalyticsSerializer, 403: {"description": "Forbidden"}},
    )
    def get(self, request: Request) -> Response:
        """Get analytics."""
        return async_to_sync(self._handle_analytics)(request)

    async def _handle_analytics(self, request: Request) -> Response:
        """Async handler for analytics."""
        with tracer.start_as_current_span("get_analytics") as span:
            span.set_attribute("operation", "get_analytics")
            require_view(request)

            serializer = AnalyticsQuerySerializer(data=request.query_params)
            if not serializer.is_valid():
                return _validation_error(span, serializer)

            days = serializer.validated_data["days"]
            span.set_attribute("analytics.days", days)
            result = await GetAnalyticsHandler(usage_log_repository=_usage_log_repo).handle(
                GetAnalyticsQuery(days=days)
            )

            span.set_status(Status(StatusCode.OK))
            return Response(AnalyticsSerializer(result).data, status=status.HTTP_200_OK)


class AccountListView(APIView):
    """View for listing accounts and creating admin accounts."""

    @extend_schema(
        operation_id="list_accounts",
        summary="List Accounts",
        description="Every account with a summary of its key.",
        tags=["Admin"],
        responses={200: AccountListItemSerializer(many=True), 403: {"description": "Forbidden"}},
    )
    def get(self, request: Request) -> Response:
        """List accounts."""
        return async_to_sync(self._handle_list_accounts)(request)

    async def _handle_list_accounts(self, request: Request) -> Response:
        """Async handler for list accounts."""
        with tracer.start_as_current_span("list_accounts") as span:
            span.set_attribute("operation", "list_accounts")
            require_view(request)

            accounts = await ListAccountsHandler(
                account_repository=_account_repo, key_repository=_key_repo
            ).handle()

            span.set_attribute("accounts.count", len(accounts))
            span.set_status(Status(StatusCode.OK))
            return Response(
                AccountListItemSerializer(accounts, many=True).data, status=status.HTTP_200_OK
            )

    @extend_schema(
        operation_id="create_admin_account",
        summary="Create Admin Account",
        description="Create an admin or super admin account.",
        tags=["Admin"],
        request=CreateAdminAccountRequestSerializer,
        responses={
            201: AccountSerializer,
            400: {"description": "Bad Request"},
            409: {"description": "Email already registered"},
        },
    )
    def post(self, request: Request) -> Response:
        """Create an admin account."""
        return async_to_sync(self._handle_create_account)(request)

    async def _handle_create_account(self, request: Request) -> Response:
        """Async handler for admin account creation."""
        with tracer.start_as_current_span("create_admin_account") as span:
            span.set_attribute("operation", "create_admin_account")
            require_modify(request)

            serializer = CreateAdminAccountRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return _validation_error(span, serializer)

            data = serializer.validated_data
            command = CreateAdminAccountCommand(
                email=data["email"], password=data["password"], role=data["role"]
            )
            result = await CreateAdminAccountHandler(account_repository=_account_repo).handle(
                command
            )

            span.set_attribute("account.id", str(result.id))
            span.set_attribute("account.role", result.role)
            span.set_status(Status(StatusCode.OK))
            return Response(AccountSerializer(result).data, status=status.HTTP_201_CREATED)


class AccountRoleView(APIView):
    """View for changing an account's role."""

    @extend_schema(
        operation_id="update_account_role",
        summary="Update Account Role",
        description="Change an account's role. Super admins cannot demote themselves.",
        tags=["Admin"],
        parameters=[ACCOUNT_ID_PARAMETER],
        request=UpdateRoleRequestSerializer,
        responses={
            200: AccountSerializer,
            400: {"description": "Bad Request"},
            404: {"description": "Account not found"},
        },
    )
    def put(self, request: Request, account_id: uuid.UUID) -> Response:
        """Update an account's role."""
        return async_to_sync(self._handle_update_role)(request, account_id)

    async def _handle_update_role(self, request: Request, account_id: uuid.UUID) -> Response:
        """Async handler for role updates."""
        with tracer.start_as_current_span("update_account_role") as span:
            span.set_attribute("operation", "update_account_role")
            span.set_attribute("account.id", str(account_id))
            actor = require_modify(request)

            serializer = UpdateRoleRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return _validation_error(span, serializer)

            command = UpdateAccountRoleCommand(
                actor_id=actor.id,
                account_id=account_id,
                role=serializer.validated_data["role"],
            )
            result = await UpdateAccountRoleHandler(account_repository=_account_repo).handle(
                command
            )

            span.set_attribute("account.role", result.role)
            span.set_status(Status(StatusCode.OK))
            return Response(AccountSerializer(result).data, status=status.HTTP_200_OK)


class AccountDetailView(APIView):
    """View for deleting an account."""

    @extend_schema(
        operation_id="delete_account",
        summary="Delete Account",
        description="Delete an account. Its key stays and becomes unowned.",
        tags=["Admin"],
        parameters=[ACCOUNT_ID_PARAMETER],
        responses={
            204: None,
            400: {"description": "Cannot delete yourself"},
            404: {"description": "Account not found"},
        },
    )
    def delete(self, request: Request, account_id: uuid.UUID) -> Response:
        """Delete an account."""
        return async_to_sync(self._handle_delete_account)(request, account_id)

    async def _handle_delete_account(self, request: Request, account_id: uuid.UUID) -> Response:
        """Async handler for account deletion."""
        with tracer.start_as_current_span("delete_account") as span:
            span.set_attribute("operation", "delete_account")
            span.set_attribute("account.id", str(account_id))
            actor = require_modify(request)

            await DeleteAccountHandler(account_repository=_account_repo).handle(
                DeleteAccountCommand(actor_id=actor.id, account_id=account_id)
            )

            span.set_status(Status(StatusCode.OK))
            return Response(status=status.HTTP_204_NO_CONTENT)
