"""
Key management API views.

These endpoints are used by administrators to:
- Issue keys, singly or in batches
- Inspect, edit and delete keys
- Reset device binding and usage counters
- Export keys

Reads need the admin role; every change needs super admin.
"""

import uuid

from asgiref.sync import async_to_sync
from django.conf import settings
from django.http import HttpResponse
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.domain.access import can_view
from accounts.infrastructure.repositories.django_account_repository import (
    DjangoAccountRepository,
)
from api.permissions import current_account, require_modify, require_view
from api.v1.keys.serializers import (
    BatchDeleteRequestSerializer,
    BatchResultSerializer,
    BatchStatusRequestSerializer,
    CreateKeyBatchRequestSerializer,
    CreateKeyRequestSerializer,
    ExportQuerySerializer,
    KeyBatchSerializer,
    KeyExportSerializer,
    KeyListQuerySerializer,
    KeyPageSerializer,
    KeySerializer,
    UpdateKeyRequestSerializer,
)
from core.domain.exceptions import AccessDeniedError, KeyNotFoundError
from core.instrumentation import Status, StatusCode, get_tracer
from keys.application.commands.create_key import CreateKeyBatchCommand, CreateKeyCommand
from keys.application.commands.key_maintenance import (
    BatchDeleteKeysCommand,
    BatchUpdateStatusCommand,
    DeleteKeyCommand,
    ResetHwidCommand,
    ResetUsageCommand,
)
from keys.application.commands.update_key import UpdateKeyCommand
from keys.application.handlers.issue_key_handlers import CreateKeyBatchHandler, CreateKeyHandler
from keys.application.handlers.key_admin_handlers import (
    BatchDeleteKeysHandler,
    BatchUpdateStatusHandler,
    DeleteKeyHandler,
    ResetHwidHandler,
    ResetUsageHandler,
    UpdateKeyHandler,
)
from keys.application.handlers.key_query_handlers import (
    ExportKeysHandler,
    GetKeyHandler,
    ListKeysHandler,
    ListOwnKeysHandler,
)
from keys.application.queries.list_keys import (
    ExportKeysQuery,
    GetKeyQuery,
    ListKeysQuery,
    ListOwnKeysQuery,
)
from keys.domain.issuance import KeyIssuer
from keys.infrastructure.repositories.django_key_repository import DjangoKeyRepository

# Initialize repositories (in production, use DI container)
_key_repo = DjangoKeyRepository()
_account_repo = DjangoAccountRepository()

tracer = get_tracer(__name__)

KEY_ID_PARAMETER = OpenApiParameter(
    name="key_id",
    type=uuid.UUID,
    location=OpenApiParameter.PATH,
    description="Key ID",
)


def _issuer() -> KeyIssuer:
    return KeyIssuer(prefix=settings.KEY_PREFIX, max_batch_size=settings.KEY_BATCH_LIMIT)


def _validation_error(span, serializer) -> Response:
    span.set_attribute("error", "validation_failed")
    span.set_attribute("error.details", str(serializer.errors))
    span.set_status(Status(StatusCode.ERROR, "Validation failed"))
    return Response(
        {"error": {"code": "VALIDATION_ERROR", "message": serializer.errors}},
        status=status.HTTP_400_BAD_REQUEST,
    )


class KeyListView(APIView):
    """View for listing and creating keys."""

    @extend_schema(
        operation_id="list_keys",
        summary="List Keys",
        description="Page through keys, optionally filtered by status, tier or a value search.",
        tags=["Keys"],
        parameters=[KeyListQuerySerializer],
        responses={
            200: KeyPageSerializer,
            401: {"description": "Unauthorized"},
            403: {"description": "Forbidden"},
        },
    )
    def get(self, request: Request) -> Response:
        """List keys."""
        return async_to_sync(self._handle_list_keys)(request)

    async def _handle_list_keys(self, request: Request) -> Response:
        """Async handler for list keys."""
        with tracer.start_as_current_span("list_keys") as span:
            span.set_attribute("operation", "list_keys")
            require_view(request)

            serializer = KeyListQuerySerializer(data=request.query_params)
            if not serializer.is_valid():
                return _validation_error(span, serializer)

            data = serializer.validated_data
            query = ListKeysQuery(
                search=data.get("search") or None,
                status=data.get("status"),
                tier=data.get("tier"),
                page=data["page"],
                limit=data["limit"],
            )
            result = await ListKeysHandler(key_repository=_key_repo).handle(query)

            span.set_attribute("keys.total", result.total)
            span.set_status(Status(StatusCode.OK))
            return Response(KeyPageSerializer(result).data, status=status.HTTP_200_OK)

    @extend_schema(
        operation_id="create_key",
        summary="Create Key",
        description="Issue one key. Elevated keys are always registration-free and validated.",
        tags=["Keys"],
        request=CreateKeyRequestSerializer,
        responses={
            201: KeySerializer,
            400: {"description": "Bad Request"},
            401: {"description": "Unauthorized"},
            403: {"description": "Forbidden"},
        },
    )
    def post(self, request: Request) -> Response:
        """Create a key."""
        return async_to_sync(self._handle_create_key)(request)

    async def _handle_create_key(self, request: Request) -> Response:
        """Async handler for create key."""
        with tracer.start_as_current_span("create_key") as span:
            span.set_attribute("operation", "create_key")
            require_modify(request)

            serializer = CreateKeyRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return _validation_error(span, serializer)

            data = serializer.validated_data
            command = CreateKeyCommand(
                tier=data["tier"],
                expires_at=data.get("expires_at"),
                max_uses=data["max_uses"],
                skip_validation=data["skip_validation"],
                note=data["note"],
                owner_id=data.get("owner_id"),
            )
            span.set_attribute("key.tier", command.tier)

            handler = CreateKeyHandler(
                key_repository=_key_repo,
                account_repository=_account_repo,
                issuer=_issuer(),
            )
            result = await handler.handle(command)

            span.set_attribute("key.id", str(result.id))
            span.set_status(Status(StatusCode.OK))
            return Response(KeySerializer(result).data, status=status.HTTP_201_CREATED)


class KeyBulkCreateView(APIView):
    """View for batch key creation."""

    @extend_schema(
        operation_id="create_key_batch",
        summary="Create Key Batch",
        description="Issue up to 100 keys sharing the same settings, all or nothing.",
        tags=["Keys"],
        request=CreateKeyBatchRequestSerializer,
        responses={
            201: KeyBatchSerializer,
            400: {"description": "Bad Request"},
            401: {"description": "Unauthorized"},
            403: {"description": "Forbidden"},
        },
    )
    def post(self, request: Request) -> Response:
        """Create a batch of keys."""
        return async_to_sync(self._handle_create_batch)(request)

    async def _handle_create_batch(self, request: Request) -> Response:
        """Async handler for batch creation."""
        with tracer.start_as_current_span("create_key_batch") as span:
            span.set_attribute("operation", "create_key_batch")
            require_modify(request)

            serializer = CreateKeyBatchRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return _validation_error(span, serializer)

            data = serializer.validated_data
            command = CreateKeyBatchCommand(
                count=data["count"],
                tier=data["tier"],
                expires_at=data.get("expires_at"),
                max_uses=data["max_uses"],
                skip_validation=data["skip_validation"],
                prefix=data.get("prefix") or None,
            )
            span.set_attribute("batch.count", command.count)
            span.set_attribute("key.tier", command.tier)

            keys = await CreateKeyBatchHandler(key_repository=_key_repo, issuer=_issuer()).handle(
                command
            )

            span.set_status(Status(StatusCode.OK))
            return Response(
                KeyBatchSerializer({"count": len(keys), "keys": keys}).data,
                status=status.HTTP_201_CREATED,
            )


class KeyBatchDeleteView(APIView):
    """View for batch key deletion."""

    @extend_schema(
        operation_id="batch_delete_keys",
        summary="Batch Delete Keys",
        description="Delete up to 100 keys by id.",
        tags=["Keys"],
        request=BatchDeleteRequestSerializer,
        responses={200: BatchResultSerializer, 400: {"description": "Bad Request"}},
    )
    def post(self, request: Request) -> Response:
        """Delete several keys."""
        return async_to_sync(self._handle_batch_delete)(request)

    async def _handle_batch_delete(self, request: Request) -> Response:
        """Async handler for batch delete."""
        with tracer.start_as_current_span("batch_delete_keys") as span:
            span.set_attribute("operation", "batch_delete_keys")
            require_modify(request)

            serializer = BatchDeleteRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return _validation_error(span, serializer)

            command = BatchDeleteKeysCommand(key_ids=serializer.validated_data["ids"])
            result = await BatchDeleteKeysHandler(key_repository=_key_repo).handle(command)

            span.set_attribute("batch.affected", result.affected)
            span.set_status(Status(StatusCode.OK))
            return Response(BatchResultSerializer(result).data, status=status.HTTP_200_OK)


class KeyBatchStatusView(APIView):
    """View for batch status updates."""

    @extend_schema(
        operation_id="batch_update_key_status",
        summary="Batch Update Key Status",
        description="Set the status of up to 100 keys.",
        tags=["Keys"],
        request=BatchStatusRequestSerializer,
        responses={200: BatchResultSerializer, 400: {"description": "Bad Request"}},
    )
    def post(self, request: Request) -> Response:
        """Update the status of several keys."""
        return async_to_sync(self._handle_batch_status)(request)

    async def _handle_batch_status(self, request: Request) -> Response:
        """Async handler for batch status update."""
        with tracer.start_as_current_span("batch_update_key_status") as span:
            span.set_attribute("operation", "batch_update_key_status")
            require_modify(request)

            serializer = BatchStatusRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return _validation_error(span, serializer)

            command = BatchUpdateStatusCommand(
                key_ids=serializer.validated_data["ids"],
                status=serializer.validated_data["status"],
            )
            result = await BatchUpdateStatusHandler(key_repository=_key_repo).handle(command)

            span.set_attribute("batch.affected", result.affected)
            span.set_status(Status(StatusCode.OK))
            return Response(BatchResultSerializer(result).data, status=status.HTTP_200_OK)


class KeyExportView(APIView):
    """View for exporting keys."""

    @extend_schema(
        operation_id="export_keys",
        summary="Export Keys",
        description="Export keys as JSON records or as a text file with one value per line.",
        tags=["Keys"],
        parameters=[ExportQuerySerializer],
        responses={200: KeyExportSerializer},
    )
    def get(self, request: Request) -> Response:
        """Export keys."""
        return async_to_sync(self._handle_export)(request)

    async def _handle_export(self, request: Request):
        """Async handler for export."""
        with tracer.start_as_current_span("export_keys") as span:
            span.set_attribute("operation", "export_keys")
            require_view(request)

            serializer = ExportQuerySerializer(data=request.query_params)
            if not serializer.is_valid():
                return _validation_error(span, serializer)

            data = serializer.validated_data
            query = ExportKeysQuery(
                status=data.get("status"), tier=data.get("tier"), format=data["format"]
            )
            result = await ExportKeysHandler(key_repository=_key_repo).handle(query)

            span.set_attribute("export.format", result.format)
            span.set_attribute("export.count", result.count)
            span.set_status(Status(StatusCode.OK))

            if result.format == "txt":
                response = HttpResponse(result.text, content_type="text/plain; charset=utf-8")
                response["Content-Disposition"] = 'attachment; filename="keys.txt"'
                return response
            return Response(KeyExportSerializer(result).data, status=status.HTTP_200_OK)


class OwnKeysView(APIView):
    """View for the caller's own keys."""

    @extend_schema(
        operation_id="list_own_keys",
        summary="List Own Keys",
        description="Keys owned by the authenticated account.",
        tags=["Keys"],
        responses={200: KeySerializer(many=True), 401: {"description": "Unauthorized"}},
    )
    def get(self, request: Request) -> Response:
        """List the caller's keys."""
        return async_to_sync(self._handle_own_keys)(request)

    async def _handle_own_keys(self, request: Request) -> Response:
        """Async handler for own keys."""
        with tracer.start_as_current_span("list_own_keys") as span:
            span.set_attribute("operation", "list_own_keys")
            account = current_account(request)

            keys = await ListOwnKeysHandler(key_repository=_key_repo).handle(
                ListOwnKeysQuery(owner_id=account.id)
            )

            span.set_attribute("keys.count", len(keys))
            span.set_status(Status(StatusCode.OK))
            return Response(KeySerializer(keys, many=True).data, status=status.HTTP_200_OK)


class KeyDetailView(APIView):
    """View for reading, editing and deleting one key."""

    @extend_schema(
        operation_id="get_key",
        summary="Get Key",
        description="Read one key. Available to admins and to the key's owner.",
        tags=["Keys"],
        parameters=[KEY_ID_PARAMETER],
        responses={
            200: KeySerializer,
            403: {"description": "Forbidden"},
            404: {"description": "Key not found"},
        },
    )
    def get(self, request: Request, key_id: uuid.UUID) -> Response:
        """Get a key."""
        return async_to_sync(self._handle_get_key)(request, key_id)

    async def _handle_get_key(self, request: Request, key_id: uuid.UUID) -> Response:
        """Async handler for get key."""
        with tracer.start_as_current_span("get_key") as span:
            span.set_attribute("operation", "get_key")
            span.set_attribute("key.id", str(key_id))
            account = current_account(request)
            viewer = can_view(account.role)

            try:
                result = await GetKeyHandler(key_repository=_key_repo).handle(
                    GetKeyQuery(key_id=key_id)
                )
            except KeyNotFoundError:
                if not viewer:
                    raise AccessDeniedError() from None
                raise

            if not viewer and result.owner_id != account.id:
                span.set_status(Status(StatusCode.ERROR, "Access denied"))
                raise AccessDeniedError()

            span.set_status(Status(StatusCode.OK))
            return Response(KeySerializer(result).data, status=status.HTTP_200_OK)

    @extend_schema(
        operation_id="update_key",
        summary="Update Key",
        description=(
            "Change a key's status, tier, expiry, usage ceiling, note, owner or "
            "registration flags. Tier defaults are re-applied to the result."
        ),
        tags=["Keys"],
        parameters=[KEY_ID_PARAMETER],
        request=UpdateKeyRequestSerializer,
        responses={
            200: KeySerializer,
            400: {"description": "Bad Request"},
            404: {"description": "Key not found"},
        },
    )
    def put(self, request: Request, key_id: uuid.UUID) -> Response:
        """Update a key."""
        return async_to_sync(self._handle_update_key)(request, key_id)

    async def _handle_update_key(self, request: Request, key_id: uuid.UUID) -> Response:
        """Async handler for update key."""
        with tracer.start_as_current_span("update_key") as span:
            span.set_attribute("operation", "update_key")
            span.set_attribute("key.id", str(key_id))
            require_modify(request)

            serializer = UpdateKeyRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return _validation_error(span, serializer)

            command = UpdateKeyCommand(key_id=key_id, changes=dict(serializer.validated_data))
            span.set_attribute("key.changes", ",".join(sorted(command.changes)))

            handler = UpdateKeyHandler(key_repository=_key_repo, account_repository=_account_repo)
            result = await handler.handle(command)

            span.set_status(Status(StatusCode.OK))
            return Response(KeySerializer(result).data, status=status.HTTP_200_OK)

    @extend_schema(
        operation_id="delete_key",
        summary="Delete Key",
        description="Delete a key and its usage log.",
        tags=["Keys"],
        parameters=[KEY_ID_PARAMETER],
        responses={204: None, 404: {"description": "Key not found"}},
    )
    def delete(self, request: Request, key_id: uuid.UUID) -> Response:
        """Delete a key."""
        return async_to_sync(self._handle_delete_key)(request, key_id)

    async def _handle_delete_key(self, request: Request, key_id: uuid.UUID) -> Response:
        """Async handler for delete key."""
        with tracer.start_as_current_span("delete_key") as span:
            span.set_attribute("operation", "delete_key")
            span.set_attribute("key.id", str(key_id))
            require_modify(request)

            await DeleteKeyHandler(key_repository=_key_repo).handle(DeleteKeyCommand(key_id=key_id))

            span.set_status(Status(StatusCode.OK))
            return Response(status=status.HTTP_204_NO_CONTENT)


class ResetHwidView(APIView):
    """View for clearing a key's device binding."""

    @extend_schema(
        operation_id="reset_key_hwid",
        summary="Reset HWID",
        description="Unbind a key from its device; the next validation binds again.",
        tags=["Keys"],
        parameters=[KEY_ID_PARAMETER],
        request=None,
        responses={200: KeySerializer, 404: {"description": "Key not found"}},
    )
    def post(self, request: Request, key_id: uuid.UUID) -> Response:
        """Reset a key's hwid."""
        return async_to_sync(self._handle_reset_hwid)(request, key_id)

    async def _handle_reset_hwid(self, request: Request, key_id: uuid.UUID) -> Response:
        """Async handler for hwid reset."""
        with tracer.start_as_current_span("reset_key_hwid") as span:
            span.set_attribute("operation", "reset_key_hwid")
            span.set_attribute("key.id", str(key_id))
            require_modify(request)

            result = await ResetHwidHandler(key_repository=_key_repo).handle(
                ResetHwidCommand(key_id=key_id)
            )

            span.set_status(Status(StatusCode.OK))
            return Response(KeySerializer(result).data, status=status.HTTP_200_OK)


class ResetUsageView(APIView):
    """View for zeroing a key's usage counter."""

    @extend_schema(
        operation_id="reset_key_usage",
        summary="Reset Usage",
        description="Set a key's use count back to zero.",
        tags=["Keys"],
        parameters=[KEY_ID_PARAMETER],
        request=None,
        responses={200: KeySerializer, 404: {"description": "Key not found"}},
    )
    def post(self, request: Request, key_id: uuid.UUID) -> Response:
        """Reset a key's usage."""
        return async_to_sync(self._handle_reset_usage)(request, key_id)

    async def _handle_reset_usage(self, request: Request, key_id: uuid.UUID) -> Response:
        """Async handler for usage reset."""
        with tracer.start_as_current_span("reset_key_usage") as span:
            span.set_attribute("operation", "reset_key_usage")
            span.set_attribute("key.id", str(key_id))
            require_modify(request)

            result = await ResetUsageHandler(key_repository=_key_repo).handle(
                ResetUsageCommand(key_id=key_id)
            )

            span.set_status(Status(StatusCode.OK))
            return Response(KeySerializer(result).data, status=status.HTTP_200_OK)
