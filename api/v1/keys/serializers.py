"""
Serializers for key management endpoints.
"""

from rest_framework import serializers

from core.application.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from core.domain.value_objects import KeyStatus, KeyTier

TIER_CHOICES = [tier.value for tier in KeyTier]
STATUS_CHOICES = [key_status.value for key_status in KeyStatus]


class KeySerializer(serializers.Serializer):
    """Serializer for KeyDTO."""

    id = serializers.UUIDField()
    key_value = serializers.CharField()
    status = serializers.CharField()
    tier = serializers.CharField()
    skip_validation = serializers.BooleanField()
    validated = serializers.BooleanField()
    validated_at = serializers.DateTimeField(allow_null=True)
    expires_at = serializers.DateTimeField(allow_null=True)
    max_uses = serializers.IntegerField()
    current_uses = serializers.IntegerField()
    hwid = serializers.CharField(allow_null=True)
    last_used = serializers.DateTimeField(allow_null=True)
    owner_id = serializers.UUIDField(allow_null=True)
    note = serializers.CharField(allow_blank=True)
    created_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField()


class KeyPageSerializer(serializers.Serializer):
    """Serializer for KeyPageDTO."""

    keys = KeySerializer(many=True)
    total = serializers.IntegerField()
    page = serializers.IntegerField()
    total_pages = serializers.IntegerField()


class KeyListQuerySerializer(serializers.Serializer):
    """Query parameters for listing keys."""

    search = serializers.CharField(required=False, allow_blank=True, max_length=64)
    status = serializers.ChoiceField(choices=STATUS_CHOICES, required=False)
    tier = serializers.ChoiceField(choices=TIER_CHOICES, required=False)
    page = serializers.IntegerField(required=False, default=1, min_value=1)
    limit = serializers.IntegerField(
        required=False, default=DEFAULT_PAGE_SIZE, min_value=1, max_value=MAX_PAGE_SIZE
    )


class CreateKeyRequestSerializer(serializers.Serializer):
    """Serializer for create key request."""

    tier = serializers.ChoiceField(choices=TIER_CHOICES, required=False, default="basic")
    expires_at = serializers.DateTimeField(required=False, allow_null=True)
    max_uses = serializers.IntegerField(required=False, default=1, min_value=0)
    skip_validation = serializers.BooleanField(required=False, default=False)
    note = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)
    owner_id = serializers.UUIDField(required=False, allow_null=True)


class CreateKeyBatchRequestSerializer(serializers.Serializer):
    """
    Serializer for batch key creation.

    The upper bound on count is enforced by the issuance rules so the
    caller gets the same message as every other batch operation.
    """

    count = serializers.IntegerField(required=False, default=10)
    tier = serializers.ChoiceField(choices=TIER_CHOICES, required=False, default="basic")
    expires_at = serializers.DateTimeField(required=False, allow_null=True)
    max_uses = serializers.IntegerField(required=False, default=1, min_value=0)
    skip_validation = serializers.BooleanField(required=False, default=False)
    prefix = serializers.CharField(required=False, allow_blank=True, max_length=50)


class KeyBatchSerializer(serializers.Serializer):
    """Serializer for a created batch."""

    count = serializers.IntegerField()
    keys = KeySerializer(many=True)


class UpdateKeyRequestSerializer(serializers.Serializer):
    """Serializer for key updates; only the fields sent are changed."""

    status = serializers.ChoiceField(choices=STATUS_CHOICES, required=False)
    tier = serializers.ChoiceField(choices=TIER_CHOICES, required=False)
    expires_at = serializers.DateTimeField(required=False, allow_null=True)
    max_uses = serializers.IntegerField(required=False, min_value=0)
    skip_validation = serializers.BooleanField(required=False)
    validated = serializers.BooleanField(required=False)
    note = serializers.CharField(required=False, allow_blank=True, max_length=255)
    owner_id = serializers.UUIDField(required=False, allow_null=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("No fields to update")
        return attrs


class BatchDeleteRequestSerializer(serializers.Serializer):
    """Serializer for batch delete."""

    ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)


class BatchStatusRequestSerializer(serializers.Serializer):
    """Serializer for batch status update."""

    ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)
    status = serializers.ChoiceField(choices=STATUS_CHOICES)


class BatchResultSerializer(serializers.Serializer):
    """Serializer for BatchResultDTO."""

    affected = serializers.IntegerField()


class ExportQuerySerializer(serializers.Serializer):
    """Query parameters for export."""

    status = serializers.ChoiceField(choices=STATUS_CHOICES, required=False)
    tier = serializers.ChoiceField(choices=TIER_CHOICES, required=False)
    format = serializers.ChoiceField(choices=["json", "txt"], required=False, default="json")


class KeyExportSerializer(serializers.Serializer):
    """Serializer for a json export."""

    count = serializers.IntegerField()
    keys = KeySerializer(many=True)
