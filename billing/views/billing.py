"""
Billing endpoints.

Quote and invoice requests carry the patient's insurance and the priced
orders in the body; the clinic's order and patient services are
responsible for producing that payload.  Only billing staff may call
these endpoints.  Domain errors are not caught here: the project-wide
exception handler renders them.
"""
from __future__ import annotations

from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import IsBillingStaff
from ..serializers.billing import BillingRequestSerializer, HistoryQuerySerializer, InsuranceSerializer
from ..services.billing import bill_patient, copayment_status, insurance_is_valid, quote_patient
from ..services.invoices import billing_history, billing_statistics, format_invoice


def _adjudication_payload(adjudication) -> dict:
    return {
        **adjudication.result.as_dict(),
        'patientId': adjudication.patient_id,
        'year': adjudication.year,
        'ledgerTotal': str(adjudication.ledger_total),
        'orders': [o.as_dict() for o in adjudication.orders],
    }


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsBillingStaff])
def calculate_billing(request):
    """Preview who pays what without charging the copayment ledger."""
    s = BillingRequestSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    adjudication = quote_patient(s.validated_data['patientId'], s.order_summaries(), s.coverage())
    return Response({'ok': True, 'data': _adjudication_payload(adjudication)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsBillingStaff])
def generate_invoice(request):
    """Adjudicate the orders, charge the ledger and store the invoice."""
    s = BillingRequestSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    adjudication, record = bill_patient(
        s.validated_data['patientId'],
        s.order_summaries(),
        s.coverage(),
        patient_name=s.validated_data.get('patientName', ''),
        notes=s.validated_data.get('notes', ''),
    )
    return Response(
        {'ok': True, 'data': {'invoice': format_invoice(record), 'adjudication': _adjudication_payload(adjudication)}},
        status=status.HTTP_201_CREATED,
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsBillingStaff])
def invoice_history(request, patient_id: str):
    q = HistoryQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    records = billing_history(patient_id, year=q.validated_data.get('year'))
    return Response({'ok': True, 'data': [format_invoice(r) for r in records]})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsBillingStaff])
def invoice_statistics(request, patient_id: str):
    return Response({'ok': True, 'data': {'patientId': patient_id, **billing_statistics(patient_id)}})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsBillingStaff])
def annual_copayment(request, patient_id: str, year: int):
    return Response({'ok': True, 'data': copayment_status(patient_id, year)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsBillingStaff])
def validate_insurance(request):
    """Whether the given policy would be billed as active today."""
    if request.data.get('insurance') is None:
        return Response({'ok': True, 'data': {'active': False}})
    s = InsuranceSerializer(data=request.data['insurance'])
    s.is_valid(raise_exception=True)
    coverage = s.to_coverage()
    today = timezone.localdate()
    return Response({'ok': True, 'data': {
        'active': insurance_is_valid(coverage, today),
        'validityDays': coverage.validity_days(today),
    }})
