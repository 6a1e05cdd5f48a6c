"""
Django admin configuration for keys app.
"""

from django.contrib import admin

from keys.infrastructure.models import Key, UsageLog


@admin.register(Key)
class KeyAdmin(admin.ModelAdmin):
    """Admin interface for Key model."""

    list_display = ["key_value", "status", "tier", "current_uses", "max_uses", "expires_at"]
    list_filter = ["status", "tier", "skip_validation", "validated"]
    search_fields = ["key_value", "hwid", "note"]
    readonly_fields = ["id", "created_at", "updated_at", "last_used"]
    fieldsets = (
        (
            "Key",
            {
                "fields": ("id", "key_value", "status", "tier", "note", "owner"),
            },
        ),
        (
            "Validation",
            {
                "fields": ("skip_validation", "validated", "validated_at"),
            },
        ),
        (
            "Usage",
            {
                "fields": ("hwid", "max_uses", "current_uses", "expires_at", "last_used"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
                "classes": ("collapse",),
            },
        ),
    )

    def get_queryset(self, request):
        """Optimize queryset."""
        return super().get_queryset(request).select_related("owner")


@admin.register(UsageLog)
class UsageLogAdmin(admin.ModelAdmin):
    """Admin interface for UsageLog model."""

    list_display = ["key", "used_at", "ip_address", "game_id", "executor"]
    list_filter = ["used_at"]
    search_fields = ["key__key_value", "ip_address", "hwid", "game_id"]
    readonly_fields = ["id", "key", "used_at", "ip_address", "hwid", "game_id", "executor"]

    def get_queryset(self, request):
        """Optimize queryset."""
        return super().get_queryset(request).select_related("key")
