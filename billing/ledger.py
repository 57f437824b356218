"""
Annual copayment ledger.

The ledger is the only billing state shared between requests: one
running total per ``(patient_id, year)``.  An adjudication reads the
total and may then add to it, and those two steps must not interleave
with another adjudication for the same patient.  Callers therefore wrap
them in :meth:`CopaymentLedger.atomic`; the Django implementation reads
the row with ``SELECT ... FOR UPDATE`` inside that block.
"""
from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from typing import Optional

from django.db import DEFAULT_DB_ALIAS, DatabaseError, IntegrityError, transaction

from .exceptions import LedgerConflict, LedgerUnavailable
from .models import AnnualCopayment, check_storable
from .money import AmountLike, Money

logger = logging.getLogger(__name__)


class CopaymentLedger:
    """Storage interface for per-patient yearly copayment totals."""

    def atomic(self) -> AbstractContextManager:
        """Transaction boundary for a read-then-record sequence."""
        raise NotImplementedError

    def accumulated(self, patient_id: str, year: int) -> Money:
        raise NotImplementedError

    def record_copayment(self, patient_id: str, year: int, amount: AmountLike) -> Money:
        """Add ``amount`` to the year's total and return the new total."""
        raise NotImplementedError

    def has_reached_cap(self, patient_id: str, year: int, cap: Money) -> bool:
        return self.accumulated(patient_id, year) >= cap


class DjangoCopaymentLedger(CopaymentLedger):
    """Ledger stored in :class:`billing.models.AnnualCopayment` rows."""

    def __init__(self, using: Optional[str] = None) -> None:
        self.using = using or DEFAULT_DB_ALIAS

    def atomic(self) -> AbstractContextManager:
        return transaction.atomic(using=self.using)

    def _rows(self, patient_id: str, year: int):
        return AnnualCopayment.objects.using(self.using).filter(patient_id=patient_id, year=year)

    def accumulated(self, patient_id: str, year: int) -> Money:
        try:
            qs = self._rows(patient_id, year)
            # Row locks only make sense inside a transaction.
            if transaction.get_connection(self.using).in_atomic_block:
                qs = qs.select_for_update()
            amount = qs.values_list('amount', flat=True).first()
        except DatabaseError as exc:
            logger.warning("ledger read failed for %s/%s: %s", patient_id, year, exc)
            raise LedgerUnavailable(f'copayment ledger unavailable: {exc}') from exc
        return Money.zero() if amount is None else Money(amount)

    def record_copayment(self, patient_id: str, year: int, amount: AmountLike) -> Money:
        amount = check_storable(Money.of(amount), 'copayment')
        try:
            with transaction.atomic(using=self.using):
                row = self._rows(patient_id, year).select_for_update().first()
                if row is None:
                    if amount.is_zero():
                        return Money.zero()
                    try:
                        with transaction.atomic(using=self.using):
                            row = AnnualCopayment.objects.using(self.using).create(
                                patient_id=patient_id, year=year, amount=amount.amount
                            )
                    except IntegrityError as exc:
                        logger.warning("ledger row for %s/%s created concurrently", patient_id, year)
                        raise LedgerConflict(
                            f'copayment ledger for {patient_id}/{year} was created concurrently; retry'
                        ) from exc
                else:
                    new_total = check_storable(Money(row.amount) + amount, f"ledger total for {patient_id}/{year}")
                    row.amount = new_total.amount
                    row.save(update_fields=['amount', 'updated_at'])
        except DatabaseError as exc:
            logger.warning("ledger write failed for %s/%s: %s", patient_id, year, exc)
            raise LedgerUnavailable(f'copayment ledger unavailable: {exc}') from exc
        total = Money(row.amount)
        logger.info("ledger %s/%s +%s -> %s", patient_id, year, amount, total)
        return total
