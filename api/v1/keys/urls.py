"""
URL configuration for key management endpoints.
"""

from django.urls import path

from api.v1.keys import views

urlpatterns = [
    path("", views.KeyListView.as_view(), name="key-list"),
    path("bulk/", views.KeyBulkCreateView.as_view(), name="key-bulk-create"),
    path("batch-delete/", views.KeyBatchDeleteView.as_view(), name="key-batch-delete"),
    path("batch-status/", views.KeyBatchStatusView.as_view(), name="key-batch-status"),
    path("export/", views.KeyExportView.as_view(), name="key-export"),
    path("mine/", views.OwnKeysView.as_view(), name="key-mine"),
    path("<uuid:key_id>/", views.KeyDetailView.as_view(), name="key-detail"),
    path(
        "<uuid:key_id>/reset-hwid/",
        views.ResetHwidView.as_view(),
        name="key-reset-hwid",
    ),
    path(
        "<uuid:key_id>/reset-usage/",
        views.ResetUsageView.as_view(),
        name="key-reset-usage",
    ),
]
