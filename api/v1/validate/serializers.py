"""
Serializers for the public validation endpoints.
"""

from rest_framework import serializers


class ValidateKeyRequestSerializer(serializers.Serializer):
    """Serializer for validate key request."""

    key = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)
    hwid = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, max_length=255
    )
    game_id = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, max_length=64
    )
    executor = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, max_length=128
    )


class ValidationDataSerializer(serializers.Serializer):
    """Serializer for ValidationDataDTO."""

    tier = serializers.CharField()
    expires_at = serializers.DateTimeField(allow_null=True)
    time_remaining = serializers.CharField(allow_null=True)
    uses_remaining = serializers.SerializerMethodField()

    def get_uses_remaining(self, obj):
        """Either a count or "unlimited"."""
        return obj.uses_remaining


class ValidationResultSerializer(serializers.Serializer):
    """
    Serializer for ValidationResultDTO.

    Only the fields relevant to the outcome are emitted.
    """

    valid = serializers.BooleanField()
    message = serializers.CharField(required=False)
    error = serializers.CharField(required=False)
    requires_registration = serializers.BooleanField(required=False)
    data = ValidationDataSerializer(required=False)

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if not instance.requires_registration:
            data.pop("requires_registration", None)
        return {name: value for name, value in data.items() if value is not None}


class KeyStatusSerializer(serializers.Serializer):
    """Serializer for KeyStatusDTO."""

    valid = serializers.BooleanField()
    status = serializers.CharField(required=False)
    tier = serializers.CharField(required=False)
    expires_at = serializers.DateTimeField(required=False, allow_null=True)

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if instance.status is None:
            return {"valid": data["valid"]}
        return data
