"""
Authentication URL configuration.
"""

from django.urls import path
from .views import (
    RegisterView,
    LoginView,
    RefreshTokenView,
    LogoutView,
    CurrentUserView,
    ScopesView,
    ApiKeyView,
    PasswordForgotView,
    PasswordResetView,
    PasswordChangeView,
)

app_name = 'authentication'

urlpatterns = [
    # POST /api/v1/auth/register
    path('register', RegisterView.as_view(), name='register'),

    # POST /api/v1/auth/login
    path('login', LoginView.as_view(), name='login'),

    # POST /api/v1/auth/refresh
    path('refresh', RefreshTokenView.as_view(), name='refresh'),

    # GET /api/v1/auth/scopes
    path('scopes', ScopesView.as_view(), name='scopes'),

    # POST /api/v1/auth/logout
    path('logout', LogoutView.as_view(), name='logout'),

    # GET /api/v1/auth/me
    path('me', CurrentUserView.as_view(), name='current_user'),

    # POST /api/v1/auth/api-keys
    path('api-keys', ApiKeyView.as_view(), name='api_keys'),

    # POST /api/v1/auth/password/{forgot,reset,change}
    path('password/forgot', PasswordForgotView.as_view(), name='password_forgot'),
    path('password/reset', PasswordResetView.as_view(), name='password_reset'),
    path('password/change', PasswordChangeView.as_view(), name='password_change'),
]
