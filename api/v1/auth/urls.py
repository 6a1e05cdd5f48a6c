"""
URL configuration for authentication endpoints.
"""

from django.urls import path

from api.v1.auth import views

urlpatterns = [
    path("register/", views.RegisterView.as_view(), name="auth-register"),
    path("login/", views.LoginView.as_view(), name="auth-login"),
    path("me/", views.ProfileView.as_view(), name="auth-me"),
]
