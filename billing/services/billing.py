from datetime import date
from typing import Iterable, Optional, Tuple

from django.db import IntegrityError, transaction
from django.utils import timezone

from billing.adjudicator import Adjudication, BillingAdjudicator
from billing.exceptions import DuplicateInvoiceNumber
from billing.insurance import InsuranceCoverage, coverage_is_active
from billing.invoices import InvoiceComposer
from billing.ledger import CopaymentLedger, DjangoCopaymentLedger
from billing.money import Money
from billing.models import InvoiceRecord, check_storable
from billing.orders import OrderCostSummary, total_cost
from billing.policy import CopaymentPolicy
from billing.services.invoices import save_invoice


def quote_patient(patient_id: str, orders: Iterable[OrderCostSummary], coverage: Optional[InsuranceCoverage], *,
                  adjudicator: Optional[BillingAdjudicator] = None) -> Adjudication:
    adjudicator = adjudicator or BillingAdjudicator.from_settings()
    return adjudicator.quote(patient_id, orders, coverage)


def bill_patient(patient_id: str, orders: Iterable[OrderCostSummary], coverage: Optional[InsuranceCoverage], *,
                 patient_name: str = '', notes: str = '', extra: Optional[dict] = None,
                 adjudicator: Optional[BillingAdjudicator] = None,
                 composer: Optional[InvoiceComposer] = None) -> Tuple[Adjudication, InvoiceRecord]:
    """Adjudicate, compose and store an invoice in a single transaction.

    If the invoice cannot be stored the ledger update is rolled back with
    it, so a patient is never charged a copayment without an invoice.
    Totals too large for the invoice columns are rejected with
    :class:`~billing.exceptions.InvalidAmount` before anything is written.
    """
    orders = tuple(orders)
    check_storable(total_cost(orders), 'invoice total')
    adjudicator = adjudicator or BillingAdjudicator.from_settings()
    composer = composer or InvoiceComposer.from_settings()
    try:
        with transaction.atomic():
            adjudication = adjudicator.adjudicate(patient_id, orders, coverage, require_items=True)
            invoice = composer.compose(
                adjudication, coverage=coverage, patient_name=patient_name, notes=notes, extra=extra,
            )
            record = save_invoice(invoice)
    except IntegrityError as exc:
        raise DuplicateInvoiceNumber('invoice number already exists; retry') from exc
    return adjudication, record


def copayment_status(patient_id: str, year: int, *, ledger: Optional[CopaymentLedger] = None,
                     policy: Optional[CopaymentPolicy] = None) -> dict:
    ledger = ledger or DjangoCopaymentLedger()
    policy = policy or CopaymentPolicy.from_settings()
    accumulated = ledger.accumulated(patient_id, year)
    remaining = max(policy.annual_cap - accumulated, Money.zero())
    return {
        'patientId': patient_id,
        'year': year,
        'accumulated': str(accumulated),
        'annualCap': str(policy.annual_cap),
        'capReached': accumulated >= policy.annual_cap,
        'remaining': str(remaining),
    }


def insurance_is_valid(coverage: Optional[InsuranceCoverage], today: Optional[date] = None) -> bool:
    return coverage_is_active(coverage, today or timezone.localdate())
