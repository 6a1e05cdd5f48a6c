"""
Serializers for administrative reporting and account management.
"""

from rest_framework import serializers

from core.application.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from core.domain.value_objects import Role


class UsageLogSerializer(serializers.Serializer):
    """Serializer for UsageLogDTO."""

    id = serializers.UUIDField()
    key_id = serializers.UUIDField()
    key_value = serializers.CharField(allow_null=True)
    used_at = serializers.DateTimeField()
    ip_address = serializers.CharField(allow_null=True)
    hwid = serializers.CharField(allow_null=True)
    game_id = serializers.CharField(allow_null=True)
    executor = serializers.CharField(allow_null=True)


class UsageLogPageSerializer(serializers.Serializer):
    """Serializer for UsageLogPageDTO."""

    logs = UsageLogSerializer(many=True)
    total = serializers.IntegerField()
    page = serializers.IntegerField()
    total_pages = serializers.IntegerField()


class StatsSerializer(serializers.Serializer):
    """Serializer for StatsDTO."""

    total_keys = serializers.IntegerField()
    active_keys = serializers.IntegerField()
    total_users = serializers.IntegerField()
    today_validations = serializers.IntegerField()
    unique_users_today = serializers.IntegerField()
    status_breakdown = serializers.DictField(child=serializers.IntegerField())
    tier_breakdown = serializers.DictField(child=serializers.IntegerField())
    recent_activity = UsageLogSerializer(many=True)


class DailyUsageSerializer(serializers.Serializer):
    date = serializers.DateField()
    count = serializers.IntegerField()


class GameUsageSerializer(serializers.Serializer):
    game_id = serializers.CharField()
    count = serializers.IntegerField()


class AnalyticsSerializer(serializers.Serializer):
    """Serializer for AnalyticsDTO."""

    days = serializers.IntegerField()
    daily_usage = DailyUsageSerializer(many=True)
    top_games = GameUsageSerializer(many=True)


class LogsQuerySerializer(serializers.Serializer):
    """Query parameters for the usage log."""

    key_id = serializers.UUIDField(required=False)
    page = serializers.IntegerField(required=False, default=1, min_value=1)
    limit = serializers.IntegerField(
        required=False, default=DEFAULT_PAGE_SIZE, min_value=1, max_value=MAX_PAGE_SIZE
    )


class AnalyticsQuerySerializer(serializers.Serializer):
    """Query parameters for analytics."""

    days = serializers.IntegerField(required=False, default=7, min_value=1, max_value=90)


class KeySummarySerializer(serializers.Serializer):
    key_value = serializers.CharField()
    tier = serializers.CharField()
    status = serializers.CharField()
    expires_at = serializers.DateTimeField(allow_null=True)


class AccountListItemSerializer(serializers.Serializer):
    """Serializer for AccountListItemDTO."""

    id = serializers.UUIDField()
    email = serializers.EmailField()
    role = serializers.CharField()
    created_at = serializers.DateTimeField()
    key = KeySummarySerializer(allow_null=True)


class AccountSerializer(serializers.Serializer):
    """Serializer for AccountDTO."""

    id = serializers.UUIDField()
    email = serializers.EmailField()
    role = serializers.CharField()
    key_id = serializers.UUIDField(allow_null=True)
    created_at = serializers.DateTimeField()


class CreateAdminAccountRequestSerializer(serializers.Serializer):
    """Serializer for creating an admin account."""

    email = serializers.EmailField()
    password = serializers.CharField(min_length=8, max_length=128, write_only=True)
    role = serializers.ChoiceField(
        choices=[Role.ADMIN.value, Role.SUPER_ADMIN.value], required=False, default="admin"
    )


class UpdateRoleRequestSerializer(serializers.Serializer):
    """Serializer for a role change."""

    role = serializers.ChoiceField(choices=[role.value for role in Role])
