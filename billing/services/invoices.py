import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from django.db.models import Count, Sum

from billing.invoices import Invoice
from billing.models import InvoiceRecord

logger = logging.getLogger(__name__)

ZERO = Decimal('0')


def save_invoice(invoice: Invoice) -> InvoiceRecord:
    record = InvoiceRecord.objects.create(
        invoice_number=invoice.invoice_number,
        patient_id=invoice.patient_id,
        patient_name=invoice.patient_name,
        insurance_company=invoice.insurance_company,
        policy_number=invoice.policy_number,
        total_amount=invoice.total_amount.amount,
        copayment_amount=invoice.copayment_amount.amount,
        insurance_coverage=invoice.insurance_coverage_amount.amount,
        patient_responsibility=invoice.patient_responsibility.amount,
        billing_date=invoice.billing_date,
        due_date=invoice.due_date,
        status=invoice.status.value,
        year=invoice.year,
        notes=invoice.notes,
        order_summaries=[s.as_dict() for s in invoice.order_summaries],
        extra=dict(invoice.extra),
    )
    logger.info("saved invoice %s for patient %s total=%s", record.invoice_number, record.patient_id, record.total_amount)
    return record


def format_invoice(record: InvoiceRecord) -> dict:
    return {
        'invoiceNumber': record.invoice_number,
        'patientId': record.patient_id,
        'patientName': record.patient_name,
        'insuranceCompany': record.insurance_company,
        'policyNumber': record.policy_number,
        'billingDate': record.billing_date.isoformat(),
        'dueDate': record.due_date.isoformat(),
        'totalAmount': str(record.total_amount),
        'copaymentAmount': str(record.copayment_amount),
        'insuranceCoverageAmount': str(record.insurance_coverage),
        'patientResponsibility': str(record.patient_responsibility),
        'status': record.status,
        'year': record.year,
        'notes': record.notes,
        'orderSummaries': record.order_summaries,
    }


def billing_history(patient_id: str, *, year: Optional[int] = None):
    qs = InvoiceRecord.objects.filter(patient_id=patient_id)
    if year:
        qs = qs.filter(year=year)
    return list(qs.order_by('-billing_date', '-id'))


def billing_statistics(patient_id: str) -> dict:
    """Totals over a patient's invoices, cancelled ones excluded."""
    agg = (
        InvoiceRecord.objects.filter(patient_id=patient_id)
        .exclude(status=InvoiceRecord.STATUS_CANCELLED)
        .aggregate(
            total_billed=Sum('total_amount'),
            total_patient=Sum('patient_responsibility'),
            total_insurance=Sum('insurance_coverage'),
            count=Count('id'),
        )
    )
    count = agg['count'] or 0
    total_billed = agg['total_billed'] or ZERO
    average = (total_billed / count).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP) if count else ZERO
    return {
        'totalBilled': str(total_billed),
        'totalPaidByPatient': str(agg['total_patient'] or ZERO),
        'totalPaidByInsurance': str(agg['total_insurance'] or ZERO),
        'numberOfInvoices': count,
        'averageBillingAmount': str(average),
    }
