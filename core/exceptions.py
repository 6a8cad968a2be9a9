"""
Core — Exception Handling

Domain exceptions for the inventory and redistribution workflows, and the
DRF exception handler producing consistent API error envelopes.

@file core/exceptions.py
"""

import logging

from django.core.exceptions import PermissionDenied, ValidationError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.exceptions import ValidationError as SerializerValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger('rxbridge')


# ---------------------------------------------------------------------------
# Domain exceptions
# ---------------------------------------------------------------------------

class BusinessRuleViolation(APIException):
    """Raised when a business rule is violated at the service layer."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Business rule violation.'
    default_code = 'BUSINESS_RULE_VIOLATION'


class RequestValidationError(BusinessRuleViolation):
    """Missing or malformed input; raised before any lookup is made."""
    default_detail = 'Invalid request data.'
    default_code = 'VALIDATION_ERROR'


class SelfTransferError(BusinessRuleViolation):
    """Source and destination facility of a redistribution are the same."""
    default_detail = 'Cannot redistribute drugs within the same facility.'
    default_code = 'SELF_TRANSFER'


class InvalidStateTransition(BusinessRuleViolation):
    """Raised when a state machine transition is not allowed."""
    default_detail = 'Invalid state transition.'
    default_code = 'INVALID_STATE_TRANSITION'


class InsufficientStockError(APIException):
    """Raised when an outbound stock change exceeds the lot's current stock (e.g. concurrent dispensation)."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Insufficient stock for this operation.'
    default_code = 'INSUFFICIENT_STOCK'


class TransactionError(APIException):
    """The atomic commit could not be applied (lock conflict, deadlock). Safe to retry."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The operation conflicted with a concurrent change. Please retry.'
    default_code = 'TRANSACTION_CONFLICT'


class DuplicateResourceError(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Resource already exists.'
    default_code = 'DUPLICATE_RESOURCE'


class ResourceNotFoundError(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Resource not found.'
    default_code = 'RESOURCE_NOT_FOUND'


class AuthorizationError(APIException):
    """The actor's facility does not match the side of the transaction it acts on."""
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Not authorized to perform this action.'
    default_code = 'NOT_AUTHORIZED'


# ---------------------------------------------------------------------------
# Standard exception handler
# ---------------------------------------------------------------------------

def standard_exception_handler(exc, context):
    """
    Wraps every error response in the standard envelope:
      { "success": false, "errors": {...}, "code": "ERROR_CODE" }
    """
    if isinstance(exc, Http404):
        exc = ResourceNotFoundError()
    elif isinstance(exc, PermissionDenied):
        exc = AuthorizationError(detail='Permission denied.')
    elif isinstance(exc, ValidationError):
        data = {
            'success': False,
            'errors': exc.message_dict if hasattr(exc, 'message_dict') else {'detail': exc.messages},
            'code': 'VALIDATION_ERROR',
        }
        return Response(data, status=status.HTTP_400_BAD_REQUEST)

    response = exception_handler(exc, context)

    if response is not None:
        errors = {}
        code = getattr(exc, 'default_code', 'ERROR')

        if isinstance(response.data, dict):
            errors = response.data
            code = response.data.pop('code', code) if 'code' in response.data else code
        elif isinstance(response.data, list):
            errors = {'detail': response.data}
        else:
            errors = {'detail': [str(response.data)]}

        if isinstance(exc, SerializerValidationError):
            code = 'VALIDATION_ERROR'

        response.data = {
            'success': False,
            'errors': errors,
            'code': code,
        }

    if response is None:
        logger.exception('Unhandled exception in view: %s', exc)
        return Response(
            {'success': False, 'errors': {'detail': ['Internal server error.']}, 'code': 'INTERNAL_ERROR'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return response
