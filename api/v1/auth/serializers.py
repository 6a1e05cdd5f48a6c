"""
Serializers for registration, login and the caller's profile.
"""

from rest_framework import serializers

from api.v1.admin.serializers import AccountSerializer
from api.v1.keys.serializers import KeySerializer


class RegisterRequestSerializer(serializers.Serializer):
    """Serializer for registration."""

    email = serializers.EmailField()
    password = serializers.CharField(min_length=8, max_length=128, write_only=True)
    key = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)


class LoginRequestSerializer(serializers.Serializer):
    """Serializer for login."""

    email = serializers.EmailField()
    password = serializers.CharField(max_length=128, write_only=True)


class AuthTokenSerializer(serializers.Serializer):
    """Serializer for AuthTokenDTO."""

    token = serializers.CharField()
    user = AccountSerializer(source="account")


class ProfileSerializer(serializers.Serializer):
    """Serializer for ProfileDTO."""

    user = AccountSerializer(source="account")
    key = KeySerializer(allow_null=True)
