"""
Custom exceptions and error handlers.

Every API error leaves the server in the same envelope:
{'error': {'code', 'message', 'retryable', 'details'}}
"""

from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
from django.http import JsonResponse, Http404
import logging

logger = logging.getLogger(__name__)


class AppError(Exception):
    """
    Base application error carrying an HTTP status and a machine readable code
    """
    status_code = 500
    code = 'INTERNAL_ERROR'
    retryable = False

    def __init__(
        self,
        message: str,
        status_code: int = None,
        code: str = None,
        retryable: bool = None,
        details: dict = None
    ):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        if retryable is not None:
            self.retryable = retryable
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {
            'code': self.code,
            'message': self.message,
            'retryable': self.retryable,
        }
        if self.details:
            body['details'] = self.details
        return {'error': body}


class ValidationFailed(AppError):
    status_code = 400
    code = 'VALIDATION_ERROR'


class NotAuthenticated(AppError):
    status_code = 401
    code = 'UNAUTHORIZED'


class Forbidden(AppError):
    status_code = 403
    code = 'FORBIDDEN'


class NotFound(AppError):
    status_code = 404
    code = 'NOT_FOUND'


class Conflict(AppError):
    status_code = 409
    code = 'CONFLICT'


class RateLimited(AppError):
    status_code = 429
    code = 'RATE_LIMIT_EXCEEDED'
    retryable = True


def custom_exception_handler(exc, context):
    """
    Custom exception handler for DRF

    Args:
        exc: The exception instance
        context: The context in which the exception occurred

    Returns:
        Response object with error details
    """
    if isinstance(exc, AppError):
        if exc.status_code >= 500:
            logger.error(f'Application error: {exc.message}', exc_info=True)
        return Response(exc.to_dict(), status=exc.status_code)

    # Call REST framework's default exception handler
    response = exception_handler(exc, context)

    # Handle DRF exceptions
    if response is not None:
        error_code = 'VALIDATION_ERROR'
        retryable = False

        # Determine error code based on status
        if response.status_code == 401:
            error_code = 'UNAUTHORIZED'
        elif response.status_code == 403:
            error_code = 'FORBIDDEN'
        elif response.status_code == 404:
            error_code = 'NOT_FOUND'
        elif response.status_code == 405:
            error_code = 'METHOD_NOT_ALLOWED'
        elif response.status_code == 429:
            error_code = 'RATE_LIMIT_EXCEEDED'
            retryable = True
        elif response.status_code >= 500:
            error_code = 'INTERNAL_ERROR'
            retryable = True

        details = None
        error_message = response.data
        if isinstance(error_message, dict):
            if 'detail' in error_message:
                error_message = str(error_message['detail'])
            else:
                details = error_message
                error_message = 'Invalid request data'
        elif isinstance(error_message, list):
            details = {'non_field_errors': error_message}
            error_message = 'Invalid request data'

        body = {
            'code': error_code,
            'message': error_message,
            'retryable': retryable,
        }
        if details:
            body['details'] = details

        return Response({'error': body}, status=response.status_code, headers=_auth_headers(response))

    # Handle unexpected exceptions
    logger.error(f'Unexpected error: {exc}', exc_info=True)
    return Response({
        'error': {
            'code': 'INTERNAL_ERROR',
            'message': 'An unexpected error occurred',
            'retryable': False,
        }
    }, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


def _auth_headers(response):
    headers = {}
    for name in ('WWW-Authenticate', 'Retry-After'):
        if name in response:
            headers[name] = response[name]
    return headers


class ErrorHandlerMiddleware:
    """
    Formats errors raised by non-DRF views under /api/ and /health
    """
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)
        return response

    def process_exception(self, request, exception):
        """Handle exceptions that occur during request processing"""
        if isinstance(exception, AppError):
            return JsonResponse(exception.to_dict(), status=exception.status_code)

        # Pages fall through to Django's own 404/500 handling
        if not request.path.startswith('/api/'):
            return None

        if isinstance(exception, Http404):
            return JsonResponse({
                'error': {
                    'code': 'NOT_FOUND',
                    'message': str(exception) or 'Not found',
                    'retryable': False,
                }
            }, status=404)

        logger.error(f'Unexpected error: {exception}', exc_info=True)
        return JsonResponse({
            'error': {
                'code': 'INTERNAL_ERROR',
                'message': 'An unexpected error occurred',
                'retryable': False,
            }
        }, status=500)
