"""
Database models for the billing app.

Only two things outlive a billing request: the per-patient, per-year
copayment ledger row and the persisted invoice.  Patients themselves are
owned by the clinic's patient service and are referenced here by their
cedula (``patient_id``).
"""
from __future__ import annotations

from decimal import Decimal

from django.db import models

from .exceptions import InvalidAmount
from .money import CENT, Money

MONEY_MAX_DIGITS = 14
MONEY_DECIMAL_PLACES = 2
MONEY_FIELD = dict(max_digits=MONEY_MAX_DIGITS, decimal_places=MONEY_DECIMAL_PLACES)
# Largest amount a money column can hold: 999999999999.99
MAX_STORABLE_AMOUNT = Money(Decimal(10) ** (MONEY_MAX_DIGITS - MONEY_DECIMAL_PLACES) - CENT)


def check_storable(amount: Money, label: str = 'amount') -> Money:
    """Raise :class:`InvalidAmount` if ``amount`` does not fit a money column."""
    if amount > MAX_STORABLE_AMOUNT:
        raise InvalidAmount(f"{label} {amount} exceeds the storable maximum of {MAX_STORABLE_AMOUNT}")
    if not amount.is_whole_cents():
        raise InvalidAmount(f"{label} {amount} has fractions of a cent")
    return amount


class AnnualCopayment(models.Model):
    """Running copayment total of one patient for one calendar year.

    Rows are only ever incremented, under a row lock, by
    :class:`billing.ledger.DjangoCopaymentLedger`.
    """
    patient_id = models.CharField(max_length=32, help_text="Patient cedula")
    year = models.PositiveSmallIntegerField()
    amount = models.DecimalField(default=0, **MONEY_FIELD)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['patient_id', 'year'], name='uniq_copayment_patient_year'),
        ]
        indexes = [
            models.Index(fields=['year', 'patient_id'], name='billing_ann_year_5c1f0e_idx'),
        ]

    def __str__(self) -> str:
        return f"copay {self.patient_id}/{self.year} = {self.amount}"


class InvoiceRecord(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_PAID = 'paid'
    STATUS_OVERDUE = 'overdue'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = (
        (STATUS_PENDING, 'pending'),
        (STATUS_PAID, 'paid'),
        (STATUS_OVERDUE, 'overdue'),
        (STATUS_CANCELLED, 'cancelled'),
    )

    invoice_number = models.CharField(max_length=64, unique=True)
    patient_id = models.CharField(max_length=32, db_index=True)
    patient_name = models.CharField(max_length=255, blank=True)
    insurance_company = models.CharField(max_length=255, blank=True)
    policy_number = models.CharField(max_length=64, blank=True)

    total_amount = models.DecimalField(**MONEY_FIELD)
    copayment_amount = models.DecimalField(**MONEY_FIELD)
    insurance_coverage = models.DecimalField(**MONEY_FIELD)
    patient_responsibility = models.DecimalField(**MONEY_FIELD)

    billing_date = models.DateTimeField()
    due_date = models.DateTimeField()
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    year = models.PositiveSmallIntegerField()
    notes = models.CharField(max_length=500, blank=True)
    order_summaries = models.JSONField(default=list, blank=True)
    extra = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['patient_id', 'billing_date'], name='billing_inv_patient_8a2d41_idx'),
            models.Index(fields=['patient_id', 'year'], name='billing_inv_patient_3b7e90_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.invoice_number} {self.patient_id} {self.total_amount} ({self.status})"
