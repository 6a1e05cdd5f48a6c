"""
Key and UsageLog models.
"""
import uuid

from django.db import models
from django.utils import timezone

from core.http import MAX_CLIENT_ADDRESS_LENGTH


class Key(models.Model):
    """
    A license key handed to a client.
    Optionally bound to one device and owned by one account.
    """

    STATUS_CHOICES = [
        ("active", "Active"),
        ("disabled", "Disabled"),
        ("banned", "Banned"),
        ("expired", "Expired"),
    ]

    TIER_CHOICES = [
        ("basic", "Basic"),
        ("premium", "Premium"),
        ("elevated", "Elevated"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    key_value = models.CharField(max_length=64, unique=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="active")
    tier = models.CharField(max_length=20, choices=TIER_CHOICES, default="basic")
    skip_validation = models.BooleanField(default=False)
    validated = models.BooleanField(default=False)
    validated_at = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)
    max_uses = models.PositiveIntegerField(default=1, help_text="0 means unlimited")
    current_uses = models.PositiveIntegerField(default=0)
    hwid = models.CharField(max_length=255, null=True, blank=True)
    last_used = models.DateTimeField(null=True, blank=True)
    owner = models.OneToOneField(
        "accounts.Account",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="owned_key",
    )
    note = models.CharField(max_length=255, blank=True, default="")
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "keys"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "expires_at"]),
            models.Index(fields=["tier"]),
        ]

    def __str__(self):
        return self.key_value


class UsageLog(models.Model):
    """
    One successful validation of a key.
    Rows are only ever inserted.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    key = models.ForeignKey(Key, on_delete=models.CASCADE, related_name="usage_logs")
    used_at = models.DateTimeField(default=timezone.now)
    ip_address = models.CharField(max_length=MAX_CLIENT_ADDRESS_LENGTH, null=True, blank=True)
    hwid = models.CharField(max_length=255, null=True, blank=True)
    game_id = models.CharField(max_length=64, null=True, blank=True)
    executor = models.CharField(max_length=128, null=True, blank=True)

    class Meta:
        db_table = "usage_logs"
        ordering = ["-used_at"]
        indexes = [
            models.Index(fields=["key", "used_at"]),
            models.Index(fields=["used_at"]),
        ]

    def __str__(self):
        return f"{self.key_id} @ {self.used_at}"
