"""
URL configuration for administrative endpoints.
"""

from django.urls import path

from api.v1.admin import views

urlpatterns = [
    path("stats/", views.StatsView.as_view(), name="admin-stats"),
    path("logs/", views.UsageLogsView.as_view(), name="admin-logs"),
    path("analytics/", views.AnalyticsView.as_view(), name="admin-analytics"),
    path("users/", views.AccountListView.as_view(), name="admin-users"),
    path(
        "users/<uuid:account_id>/role/",
        views.AccountRoleView.as_view(),
        name="admin-user-role",
    ),
    path(
        "users/<uuid:account_id>/",
        views.AccountDetailView.as_view(),
        name="admin-user-detail",
    ),
]
