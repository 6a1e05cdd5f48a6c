"""
URL configuration for validation endpoints.
"""

from django.urls import path

from api.v1.validate import views

urlpatterns = [
    path(
        "",
        views.ValidateKeyView.as_view(),
        name="validate-key",
    ),
    path(
        "check/<str:key>/",
        views.CheckKeyStatusView.as_view(),
        name="check-key-status",
    ),
]
