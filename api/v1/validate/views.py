"""
Validation API views.

These endpoints are called by the client application:
- Validate a key and record one use
- Check a key's status without recording a use

Both always answer HTTP 200; failures are reported in the body.
"""

import logging

from asgiref.sync import async_to_sync
from django.conf import settings
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from api.v1.validate.serializers import (
    KeyStatusSerializer,
    ValidateKeyRequestSerializer,
    ValidationResultSerializer,
)
from core.http import get_client_ip
from core.instrumentation import Status, StatusCode, get_tracer
from core.metrics import key_validations_total
from keys.application.commands.validate_key import ValidateKeyCommand
from keys.application.dto.key_dto import KeyStatusDTO, ValidationResultDTO
from keys.application.handlers.check_key_status_handler import CheckKeyStatusHandler
from keys.application.handlers.validate_key_handler import ValidateKeyHandler
from keys.application.queries.check_key_status import CheckKeyStatusQuery
from keys.domain.lifecycle import INVALID_KEY_FORMAT, VALIDATION_FAILED
from keys.infrastructure.repositories.django_key_repository import DjangoKeyRepository

logger = logging.getLogger(__name__)

# Initialize repository (in production, use DI container)
_key_repo = DjangoKeyRepository()

tracer = get_tracer(__name__)


def _outcome(result: ValidationResultDTO) -> str:
    if result.valid:
        return "valid"
    if result.requires_registration:
        return "registration_required"
    return "rejected"


class ValidateKeyView(APIView):
    """View for validating keys."""

    @extend_schema(
        operation_id="validate_key",
        summary="Validate Key",
        description=(
            "Validate a key for the calling device and record one use. "
            "The first validation with a hwid binds the key to that device."
        ),
        tags=["Validation"],
        request=ValidateKeyRequestSerializer,
        responses={200: ValidationResultSerializer},
    )
    def post(self, request: Request) -> Response:
        """Validate a key."""
        return async_to_sync(self._handle_validate_key)(request)

    async def _handle_validate_key(self, request: Request) -> Response:
        """Async handler for validate key."""
        with tracer.start_as_current_span("validate_key") as span:
            span.set_attribute("operation", "validate_key")

            serializer = ValidateKeyRequestSerializer(data=request.data)
            if not serializer.is_valid():
                span.set_attribute("error", "validation_failed")
                span.set_attribute("error.details", str(serializer.errors))
                span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                key_validations_total.labels(outcome="malformed").inc()
                reason = INVALID_KEY_FORMAT if "key" in serializer.errors else "Invalid request"
                result = ValidationResultDTO.rejected(reason)
                return Response(ValidationResultSerializer(result).data, status=status.HTTP_200_OK)

            data = serializer.validated_data
            command = ValidateKeyCommand(
                key=data.get("key"),
                hwid=data.get("hwid") or None,
                ip_address=get_client_ip(request),
                game_id=data.get("game_id") or None,
                executor=data.get("executor") or None,
            )
            span.set_attribute("hwid.present", bool(command.hwid))
            if command.game_id:
                span.set_attribute("game_id", command.game_id)

            handler = ValidateKeyHandler(
                key_repository=_key_repo,
                key_prefix=settings.KEY_PREFIX,
            )

            try:
                result = await handler.handle(command)
            except Exception as e:  # pylint: disable=broad-exception-caught
                logger.error("Validation error: %s", e, exc_info=True)
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, "Validation error"))
                key_validations_total.labels(outcome="error").inc()
                result = ValidationResultDTO.rejected(VALIDATION_FAILED)
                return Response(ValidationResultSerializer(result).data, status=status.HTTP_200_OK)

            outcome = _outcome(result)
            key_validations_total.labels(outcome=outcome).inc()
            span.set_attribute("validation.outcome", outcome)
            if not result.valid:
                span.set_attribute("validation.reason", result.error or "")
            span.set_status(Status(StatusCode.OK))
            return Response(ValidationResultSerializer(result).data, status=status.HTTP_200_OK)


class CheckKeyStatusView(APIView):
    """View for read-only key status checks."""

    @extend_schema(
        operation_id="check_key_status",
        summary="Check Key Status",
        description="Report a key's status, tier and expiry without recording a use.",
        tags=["Validation"],
        parameters=[
            OpenApiParameter(
                name="key",
                type=str,
                location=OpenApiParameter.PATH,
                description="Key value",
            ),
        ],
        responses={200: KeyStatusSerializer},
    )
    def get(self, request: Request, key: str) -> Response:
        """Check a key's status."""
        return async_to_sync(self._handle_check_status)(request, key)

    async def _handle_check_status(self, request: Request, key: str) -> Response:
        """Async handler for check key status."""
        with tracer.start_as_current_span("check_key_status") as span:
            span.set_attribute("operation", "check_key_status")

            handler = CheckKeyStatusHandler(
                key_repository=_key_repo,
                key_prefix=settings.KEY_PREFIX,
            )
            try:
                result = await handler.handle(CheckKeyStatusQuery(key=key))
            except Exception as e:  # pylint: disable=broad-exception-caught
                logger.error("Status check error: %s", e, exc_info=True)
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, "Status check error"))
                result = KeyStatusDTO(valid=False)
                return Response(KeyStatusSerializer(result).data, status=status.HTTP_200_OK)

            span.set_attribute("key.valid", result.valid)
            span.set_status(Status(StatusCode.OK))
            return Response(KeyStatusSerializer(result).data, status=status.HTTP_200_OK)
