"""
Authentication views.
"""

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated

from apps.core.exceptions import Forbidden
from .services import auth_service, jwt_service
from .serializers import (
    RegisterSerializer,
    LoginSerializer,
    RefreshTokenSerializer,
    ApiKeySerializer,
    PasswordForgotSerializer,
    PasswordResetSerializer,
    PasswordChangeSerializer,
    CurrentUserSerializer,
)


class RegisterView(APIView):
    """
    Register a new user

    POST /api/v1/auth/register
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user = auth_service.register(
            data['username'],
            data['email'],
            data['password'],
            invitation_code=data.get('invitation_code') or None,
        )
        tokens = auth_service.generate_tokens(user)

        return Response({
            'user': CurrentUserSerializer(user).data,
            'tokens': tokens,
        }, status=status.HTTP_201_CREATED)


class LoginView(APIView):
    """
    Login with username or email

    POST /api/v1/auth/login
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user, tokens = auth_service.login(
            serializer.validated_data['username'],
            serializer.validated_data['password'],
        )

        return Response({
            'user': CurrentUserSerializer(user).data,
            'tokens': tokens,
        }, status=status.HTTP_200_OK)


class RefreshTokenView(APIView):
    """
    POST /api/v1/auth/refresh
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = RefreshTokenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        tokens = auth_service.refresh_access_token(serializer.validated_data['refreshToken'])
        return Response({'tokens': tokens}, status=status.HTTP_200_OK)


class LogoutView(APIView):
    """
    Revoke the given refresh token

    POST /api/v1/auth/logout
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = RefreshTokenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        auth_service.logout(serializer.validated_data['refreshToken'])
        return Response({'message': 'Logged out successfully'}, status=status.HTTP_200_OK)


class CurrentUserView(APIView):
    """
    GET /api/v1/auth/me
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        data = {'user': CurrentUserSerializer(request.user).data}
        if request.auth and request.auth.get('type') == 'api_key':
            data['scopes'] = request.auth.get('scopes', [])
        return Response(data, status=status.HTTP_200_OK)


class ScopesView(APIView):
    """
    GET /api/v1/auth/scopes
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        return Response({'scopes': jwt_service.get_available_scopes()})


class ApiKeyView(APIView):
    """
    Issue an API key for the current user

    POST /api/v1/auth/api-keys
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        if request.auth and request.auth.get('type') == 'api_key':
            raise Forbidden('API keys cannot be used to create new API keys')

        serializer = ApiKeySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        api_key = jwt_service.generate_api_key(
            request.user,
            name=data.get('name', ''),
            scopes=data.get('scopes'),
            expires_in_days=data.get('expires_in_days'),
        )
        return Response(api_key, status=status.HTTP_201_CREATED)


class PasswordForgotView(APIView):
    """
    POST /api/v1/auth/password/forgot
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = PasswordForgotSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        auth_service.request_password_reset(serializer.validated_data['email'])
        return Response({
            'message': 'If an account exists for that address, a reset link has been sent',
        })


class PasswordResetView(APIView):
    """
    POST /api/v1/auth/password/reset
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = PasswordResetSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        auth_service.reset_password(
            serializer.validated_data['token'],
            serializer.validated_data['password'],
        )
        return Response({'message': 'Password has been reset'})


class PasswordChangeView(APIView):
    """
    POST /api/v1/auth/password/change
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = PasswordChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        auth_service.change_password(
            request.user,
            serializer.validated_data['current_password'],
            serializer.validated_data['new_password'],
        )
        return Response({'message': 'Password changed; please log in again'})
