"""
Django admin configuration for accounts app.
"""

from django.contrib import admin

from accounts.infrastructure.models import Account


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    """Admin interface for Account model."""

    list_display = ["email", "role", "key", "created_at"]
    list_filter = ["role", "created_at"]
    search_fields = ["email", "key__key_value"]
    readonly_fields = ["id", "password_hash", "created_at"]

    def get_queryset(self, request):
        """Optimize queryset."""
        return super().get_queryset(request).select_related("key")
