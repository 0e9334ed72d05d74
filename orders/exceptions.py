from rest_framework import status
from rest_framework.exceptions import APIException


class TableUnavailable(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Table is not available for a new order.'
    default_code = 'table_unavailable'


class InvalidStatusTransition(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Order cannot move to the requested status.'
    default_code = 'invalid_transition'


class PaymentError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Payment could not be processed.'
    default_code = 'payment_error'


class PaymentConflict(PaymentError):
    """The order is not in a payable state"""
    status_code = status.HTTP_409_CONFLICT
    default_code = 'payment_conflict'


class InsufficientStock(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Not enough stock for this order.'
    default_code = 'insufficient_stock'


class SelfOrderingDisabled(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Ordering from the table is currently disabled.'
    default_code = 'self_ordering_disabled'
