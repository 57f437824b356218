"""
Invoice composition.

:class:`InvoiceComposer` turns an :class:`~billing.adjudicator.Adjudication`
into a pending :class:`Invoice` ready to be persisted.  Invoice numbers
and due dates come from injected callables so that deployments can plug
in their own numbering scheme and payment terms.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Mapping, Optional

import bleach
from django.conf import settings

from .adjudicator import Adjudication
from .insurance import InsuranceCoverage
from .money import Money
from .orders import OrderCostSummary

DEFAULT_NOTE = "Invoice generated automatically."

NumberGenerator = Callable[[], str]
DueDatePolicy = Callable[[datetime], datetime]


class InvoiceStatus(str, Enum):
    PENDING = 'pending'
    PAID = 'paid'
    OVERDUE = 'overdue'
    CANCELLED = 'cancelled'


@dataclass(frozen=True)
class Invoice:
    invoice_number: str
    patient_id: str
    billing_date: datetime
    due_date: datetime
    total_amount: Money
    copayment_amount: Money
    insurance_coverage_amount: Money
    patient_responsibility: Money
    order_summaries: tuple[OrderCostSummary, ...]
    year: int
    status: InvoiceStatus = InvoiceStatus.PENDING
    patient_name: str = ''
    insurance_company: str = ''
    policy_number: str = ''
    notes: str = ''
    # Free-form extension payload carried as-is to storage.
    extra: Mapping[str, Any] = field(default_factory=dict)


def prefixed_number_generator(prefix: str = 'INV') -> NumberGenerator:
    """``<prefix>-<epoch ms>-<6 hex>``; the unique DB column is the real guard."""
    def generate() -> str:
        millis = int(datetime.now().timestamp() * 1000)
        return f"{prefix}-{millis}-{uuid.uuid4().hex[:6].upper()}"
    return generate


def due_after_days(days: int) -> DueDatePolicy:
    if days < 0:
        raise ValueError('due days cannot be negative')

    def due(billing_date: datetime) -> datetime:
        return billing_date + timedelta(days=days)
    return due


class InvoiceComposer:
    def __init__(self, number_generator: NumberGenerator, due_date_policy: DueDatePolicy) -> None:
        self.number_generator = number_generator
        self.due_date_policy = due_date_policy

    @classmethod
    def from_settings(cls) -> 'InvoiceComposer':
        return cls(
            prefixed_number_generator(settings.BILLING_INVOICE_PREFIX),
            due_after_days(settings.BILLING_INVOICE_DUE_DAYS),
        )

    def compose(
        self,
        adjudication: Adjudication,
        *,
        coverage: Optional[InsuranceCoverage] = None,
        patient_name: str = '',
        notes: str = '',
        extra: Optional[Mapping[str, Any]] = None,
    ) -> Invoice:
        result = adjudication.result
        billing_date = adjudication.adjudicated_at
        notes = bleach.clean((notes or '').strip(), tags=[], strip=True) or DEFAULT_NOTE
        return Invoice(
            invoice_number=self.number_generator(),
            patient_id=adjudication.patient_id,
            patient_name=(patient_name or '').strip(),
            billing_date=billing_date,
            due_date=self.due_date_policy(billing_date),
            total_amount=result.total_cost,
            copayment_amount=result.copayment_amount,
            insurance_coverage_amount=result.insurance_coverage_amount,
            patient_responsibility=result.patient_responsibility,
            order_summaries=adjudication.orders,
            year=adjudication.year,
            insurance_company=coverage.company_name if coverage else '',
            policy_number=coverage.policy_number if coverage else '',
            notes=notes[:500],
            extra=dict(extra or {}),
        )
