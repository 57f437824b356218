"""
Copayment policy: who pays what for one billing event.

:meth:`CopaymentPolicy.evaluate` is a pure function of the total cost,
the patient's coverage, the copayment already accumulated this year and
the current date.  Branches are checked in a fixed order:

1. no active insurance: the patient pays everything;
2. the annual cap was already reached before this bill: the insurer pays
   everything;
3. otherwise the patient pays the standard copayment (never more than
   the bill) and the insurer pays the rest.

The cap test in branch 2 uses the total *before* this bill, so the bill
that pushes a patient over the cap still carries a full copayment; only
later bills in the same year are fully covered.

Without an active policy the patient owes the whole bill through
``patient_responsibility``; ``copayment_amount`` stays zero there, since
a copayment only exists under insurance.  Earlier versions of the clinic
system reported the full total as the copayment in that case, so clients
that read ``copaymentAmount`` to find what the patient owes should read
``patientResponsibility`` instead.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from django.conf import settings

from .exceptions import InvalidAmount
from .insurance import InsuranceCoverage, coverage_is_active
from .money import AmountLike, Money

MSG_NO_ACTIVE_POLICY = "no active policy - patient pays full amount."
MSG_CAP_REACHED = "annual cap already reached - insurer covers the full amount."
MSG_STANDARD_COPAYMENT = "patient owes the standard copayment; insurer covers the rest."


class CopaymentBranch(str, Enum):
    NO_ACTIVE_POLICY = 'no_active_policy'
    CAP_REACHED = 'cap_reached'
    STANDARD_COPAYMENT = 'standard_copayment'


@dataclass(frozen=True)
class AdjudicationResult:
    total_cost: Money
    copayment_amount: Money
    insurance_coverage_amount: Money
    patient_responsibility: Money
    requires_copayment: bool
    copayment_limit_exceeded: bool
    message: str
    branch: CopaymentBranch

    def as_dict(self) -> dict:
        return {
            'totalCost': str(self.total_cost),
            'copaymentAmount': str(self.copayment_amount),
            'insuranceCoverageAmount': str(self.insurance_coverage_amount),
            'patientResponsibility': str(self.patient_responsibility),
            'requiresCopayment': self.requires_copayment,
            'copaymentLimitExceeded': self.copayment_limit_exceeded,
            'message': self.message,
        }


class CopaymentPolicy:
    """Standard copayment and annual cap, supplied as configuration."""

    def __init__(self, standard_copayment: AmountLike, annual_cap: AmountLike) -> None:
        self.standard_copayment = Money.of(standard_copayment)
        self.annual_cap = Money.of(annual_cap)
        if self.annual_cap.is_zero():
            raise InvalidAmount('annual copayment cap must be greater than zero')

    @classmethod
    def from_settings(cls) -> 'CopaymentPolicy':
        return cls(
            standard_copayment=settings.BILLING_STANDARD_COPAYMENT,
            annual_cap=settings.BILLING_ANNUAL_COPAYMENT_CAP,
        )

    def __repr__(self) -> str:
        return f"CopaymentPolicy(standard={self.standard_copayment}, cap={self.annual_cap})"

    def evaluate(
        self,
        total_cost: Money,
        coverage: Optional[InsuranceCoverage],
        ledger_accumulated: Money,
        today: date,
    ) -> AdjudicationResult:
        total = Money.of(total_cost)
        zero = Money.zero()

        if not coverage_is_active(coverage, today):
            return AdjudicationResult(
                total_cost=total,
                copayment_amount=zero,
                insurance_coverage_amount=zero,
                patient_responsibility=total,
                requires_copayment=True,
                copayment_limit_exceeded=False,
                message=MSG_NO_ACTIVE_POLICY,
                branch=CopaymentBranch.NO_ACTIVE_POLICY,
            )

        if ledger_accumulated >= self.annual_cap:
            return AdjudicationResult(
                total_cost=total,
                copayment_amount=zero,
                insurance_coverage_amount=total,
                patient_responsibility=zero,
                requires_copayment=False,
                copayment_limit_exceeded=True,
                message=MSG_CAP_REACHED,
                branch=CopaymentBranch.CAP_REACHED,
            )

        copayment = min(self.standard_copayment, total)
        return AdjudicationResult(
            total_cost=total,
            copayment_amount=copayment,
            insurance_coverage_amount=total - copayment,
            patient_responsibility=copayment,
            requires_copayment=True,
            copayment_limit_exceeded=False,
            message=MSG_STANDARD_COPAYMENT,
            branch=CopaymentBranch.STANDARD_COPAYMENT,
        )
