"""
Billing error types and the unified API exception handler.

Domain code raises the :class:`BillingError` subclasses below and never
catches them itself; the DRF exception handler turns them into the
``{'ok': False, 'error': {...}}`` envelope used by every endpoint.
"""
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler


class BillingError(Exception):
    """Base class for billing failures."""
    code = 'billing_error'
    http_status = status.HTTP_400_BAD_REQUEST
    retryable = False


class InvalidAmount(BillingError):
    """A negative or non-numeric amount reached a cost-bearing constructor."""
    code = 'invalid_amount'


class PreconditionViolated(BillingError):
    """Order data broke an upstream guarantee (e.g. mixed categories)."""
    code = 'precondition_violated'


class EmptyOrderSet(BillingError):
    """The caller required at least one line item and none were given."""
    code = 'empty_order_set'


class LedgerUnavailable(BillingError):
    """The copayment ledger could not be read or written.

    The surrounding transaction has been rolled back, so the caller may
    retry the whole adjudication.
    """
    code = 'ledger_unavailable'
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True


class LedgerConflict(LedgerUnavailable):
    """Two adjudications raced to create the same ledger row."""
    code = 'ledger_conflict'


class DuplicateInvoiceNumber(BillingError):
    """The invoice number generator produced a number already on file."""
    code = 'duplicate_invoice_number'
    http_status = status.HTTP_409_CONFLICT
    retryable = True


def api_exception_handler(exc, context):
    if isinstance(exc, BillingError):
        error = {'code': exc.code, 'message': str(exc)}
        if exc.retryable:
            error['retryable'] = True
        return Response({'ok': False, 'error': error}, status=exc.http_status)
    resp = drf_exception_handler(exc, context)
    if resp is None:
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': str(exc)}}, status=500)
    # normalize response
    detail = None
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = str(resp.data)
    return Response({'ok': False, 'error': {'code': 'api_error', 'message': detail}}, status=resp.status_code)
