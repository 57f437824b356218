"""
Billing adjudication: ledger read, policy decision and ledger update as
one unit of work.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Iterable, Optional

from django.utils import timezone

from .insurance import InsuranceCoverage
from .ledger import CopaymentLedger, DjangoCopaymentLedger
from .money import Money
from .orders import OrderCostSummary, total_cost
from .policy import AdjudicationResult, CopaymentBranch, CopaymentPolicy

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class Adjudication:
    """Outcome of adjudicating one billing event for one patient."""

    patient_id: str
    year: int
    adjudicated_at: datetime
    orders: tuple[OrderCostSummary, ...]
    result: AdjudicationResult
    ledger_total: Money
    committed: bool = True


class BillingAdjudicator:
    def __init__(self, ledger: CopaymentLedger, policy: CopaymentPolicy, clock: Clock = timezone.now) -> None:
        self.ledger = ledger
        self.policy = policy
        self.clock = clock

    @classmethod
    def from_settings(cls, clock: Optional[Clock] = None) -> 'BillingAdjudicator':
        return cls(DjangoCopaymentLedger(), CopaymentPolicy.from_settings(), clock or timezone.now)

    def _now(self) -> tuple[datetime, date]:
        now = self.clock()
        today = timezone.localdate(now) if timezone.is_aware(now) else now.date()
        return now, today

    def adjudicate(
        self,
        patient_id: str,
        orders: Iterable[OrderCostSummary],
        coverage: Optional[InsuranceCoverage],
        *,
        require_items: bool = False,
    ) -> Adjudication:
        """Decide the split for ``orders`` and charge the copayment to the ledger.

        The standard copayment is recorded even when it takes the year's
        total past the cap.  Any ledger failure propagates out of the
        transaction, so no partial state is committed.
        """
        orders = tuple(orders)
        total = total_cost(orders, require_items=require_items)
        now, today = self._now()
        year = today.year

        with self.ledger.atomic():
            accumulated = self.ledger.accumulated(patient_id, year)
            result = self.policy.evaluate(total, coverage, accumulated, today)
            ledger_total = accumulated
            if result.branch is CopaymentBranch.STANDARD_COPAYMENT and not result.copayment_amount.is_zero():
                ledger_total = self.ledger.record_copayment(patient_id, year, result.copayment_amount)

        logger.info(
            "adjudicated patient=%s year=%s branch=%s total=%s copay=%s insurer=%s ledger=%s",
            patient_id, year, result.branch.value, result.total_cost,
            result.copayment_amount, result.insurance_coverage_amount, ledger_total,
        )
        return Adjudication(
            patient_id=patient_id,
            year=year,
            adjudicated_at=now,
            orders=orders,
            result=result,
            ledger_total=ledger_total,
        )

    def quote(
        self,
        patient_id: str,
        orders: Iterable[OrderCostSummary],
        coverage: Optional[InsuranceCoverage],
    ) -> Adjudication:
        """Same decision as :meth:`adjudicate` without touching the ledger."""
        orders = tuple(orders)
        now, today = self._now()
        accumulated = self.ledger.accumulated(patient_id, today.year)
        result = self.policy.evaluate(total_cost(orders), coverage, accumulated, today)
        return Adjudication(
            patient_id=patient_id,
            year=today.year,
            adjudicated_at=now,
            orders=orders,
            result=result,
            ledger_total=accumulated,
            committed=False,
        )
