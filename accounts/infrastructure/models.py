"""
Account model.
"""
import uuid

from django.db import models
from django.utils import timezone


class Account(models.Model):
    """
    A user of the key service.
    Role gates the administrative API; key is the key claimed at registration.
    """

    ROLE_CHOICES = [
        ("user", "User"),
        ("admin", "Admin"),
        ("super_admin", "Super Admin"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True)
    password_hash = models.CharField(max_length=255)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default="user")
    key = models.OneToOneField(
        "keys.Key",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="account",
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "accounts"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["role"]),
        ]

    def __str__(self):
        return self.email
