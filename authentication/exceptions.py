from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
from django.core.exceptions import ValidationError
from django.db import IntegrityError
import logging
from django.conf import settings

logger = logging.getLogger(__name__)

STATUS_MESSAGES = {
    400: 'Validation error',
    401: 'Authentication required',
    403: 'Permission denied',
    404: 'Resource not found',
    405: 'Method not allowed',
    409: 'Conflict with current state',
    500: 'Internal server error',
}


def error_payload(message, details, status_code, code=None):
    payload = {
        'error': True,
        'message': message,
        'details': details,
        'status_code': status_code,
    }
    if code:
        payload['code'] = code
    return payload


def custom_exception_handler(exc, context):
    """
    Exception handler for the POS API.

    Every error leaves the API with the same envelope:
    ``{"error", "message", "details", "status_code"}`` plus the exception
    ``code`` for domain errors (table_unavailable, invalid_transition...).
    """
    response = exception_handler(exc, context)
    view = context.get('view')
    view_name = view.__class__.__name__ if view is not None else 'unknown'

    if response is not None:
        code = getattr(exc, 'default_code', None)
        message = STATUS_MESSAGES.get(response.status_code, 'An error occurred')
        # Domain errors carry their own human readable message
        if response.status_code in (400, 403, 409) and isinstance(response.data, dict) and 'detail' in response.data:
            message = str(response.data['detail'])
        if response.status_code >= 500:
            logger.error("API error in %s: %s", view_name, exc)
        elif response.status_code in (403, 409):
            logger.warning("Rejected request in %s: %s", view_name, exc)
        response.data = error_payload(message, response.data, response.status_code, code)

    elif isinstance(exc, ValidationError):
        logger.error("Validation Error in %s: %s", view_name, exc)
        response = Response(
            error_payload('Validation error', {'non_field_errors': exc.messages}, 400),
            status=status.HTTP_400_BAD_REQUEST,
        )

    elif isinstance(exc, IntegrityError):
        logger.error("Integrity Error in %s: %s", view_name, exc)
        response = Response(
            error_payload(
                'Database integrity error',
                {'error': 'This operation violates database constraints'},
                400,
            ),
            status=status.HTTP_400_BAD_REQUEST,
        )

    else:
        logger.exception("Unexpected Error in %s: %s", view_name, exc)
        response = Response(
            error_payload(
                'An unexpected error occurred',
                {'error': str(exc)} if settings.DEBUG else {},
                500,
            ),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return response
