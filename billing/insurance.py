"""Insurance coverage as seen by billing."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional


class PolicyStatus(str, Enum):
    ACTIVE = 'active'
    INACTIVE = 'inactive'
    EXPIRED = 'expired'
    CANCELLED = 'cancelled'


@dataclass(frozen=True)
class InsuranceCoverage:
    """A patient's insurance policy on file."""

    company_name: str
    policy_number: str
    status: PolicyStatus
    expiration_date: date

    def is_active(self, today: date) -> bool:
        """Active status and an expiration date strictly after ``today``."""
        return self.status is PolicyStatus.ACTIVE and self.expiration_date > today

    def validity_days(self, today: date) -> int:
        return max(0, (self.expiration_date - today).days)

    def as_dict(self) -> dict:
        return {
            'companyName': self.company_name,
            'policyNumber': self.policy_number,
            'status': self.status.value,
            'expirationDate': self.expiration_date.isoformat(),
        }


def coverage_is_active(coverage: Optional[InsuranceCoverage], today: date) -> bool:
    # No policy on file counts as inactive.
    return coverage is not None and coverage.is_active(today)
