"""
Copayment policy decisions.

The default policy used throughout is the clinic's: 50,000 standard
copayment and a 1,000,000 annual cap.
"""
from datetime import date, timedelta

import pytest

from billing.exceptions import InvalidAmount
from billing.insurance import InsuranceCoverage, PolicyStatus
from billing.money import Money
from billing.policy import CopaymentBranch, CopaymentPolicy

TODAY = date(2024, 6, 15)


@pytest.fixture
def policy():
    return CopaymentPolicy(standard_copayment=50000, annual_cap=1000000)


def coverage(status=PolicyStatus.ACTIVE, expires=TODAY + timedelta(days=200)):
    return InsuranceCoverage('Sura EPS', 'POL-123', status, expires)


def test_active_policy_below_cap(policy):
    r = policy.evaluate(Money(600000), coverage(), Money(100000), TODAY)
    assert r.branch is CopaymentBranch.STANDARD_COPAYMENT
    assert r.copayment_amount == Money(50000)
    assert r.insurance_coverage_amount == Money(550000)
    assert r.patient_responsibility == Money(50000)
    assert r.requires_copayment is True
    assert r.copayment_limit_exceeded is False


def test_cap_already_reached(policy):
    r = policy.evaluate(Money(400000), coverage(), Money(1000000), TODAY)
    assert r.branch is CopaymentBranch.CAP_REACHED
    assert r.copayment_amount == Money.zero()
    assert r.insurance_coverage_amount == Money(400000)
    assert r.patient_responsibility == Money.zero()
    assert r.requires_copayment is False
    assert r.copayment_limit_exceeded is True


@pytest.mark.parametrize('cov', [
    None,
    coverage(status=PolicyStatus.INACTIVE),
    coverage(status=PolicyStatus.CANCELLED),
    coverage(expires=TODAY),
    coverage(expires=TODAY - timedelta(days=1)),
])
def test_no_active_policy_patient_pays_everything(policy, cov):
    r = policy.evaluate(Money(200000), cov, Money.zero(), TODAY)
    assert r.branch is CopaymentBranch.NO_ACTIVE_POLICY
    assert r.copayment_amount == Money.zero()
    assert r.insurance_coverage_amount == Money.zero()
    assert r.patient_responsibility == Money(200000)
    assert r.requires_copayment is True


def test_bill_crossing_the_cap_still_pays_copayment(policy):
    r = policy.evaluate(Money(300000), coverage(), Money(960000), TODAY)
    assert r.branch is CopaymentBranch.STANDARD_COPAYMENT
    assert r.copayment_amount == Money(50000)
    assert r.copayment_limit_exceeded is False


def test_copayment_never_exceeds_the_bill(policy):
    r = policy.evaluate(Money(20000), coverage(), Money.zero(), TODAY)
    assert r.copayment_amount == Money(20000)
    assert r.insurance_coverage_amount == Money.zero()

    r = policy.evaluate(Money.zero(), coverage(), Money.zero(), TODAY)
    assert r.copayment_amount == Money.zero()


@pytest.mark.parametrize('total,accumulated', [
    (0, 0), (1, 0), (49999, 0), (50000, 0), (50001, 999999), (123456789, 0), (10, 1000000), (10, 2000000),
])
def test_split_always_adds_up_under_active_policy(policy, total, accumulated):
    r = policy.evaluate(Money(total), coverage(), Money(accumulated), TODAY)
    assert r.copayment_amount + r.insurance_coverage_amount == Money(total)
    assert not r.insurance_coverage_amount.is_negative()


def test_evaluate_is_idempotent(policy):
    args = (Money(600000), coverage(), Money(100000), TODAY)
    assert policy.evaluate(*args) == policy.evaluate(*args)


def test_result_as_dict_is_camel_case(policy):
    data = policy.evaluate(Money(600000), coverage(), Money.zero(), TODAY).as_dict()
    assert data['totalCost'] == '600000'
    assert data['copaymentAmount'] == '50000'
    assert data['insuranceCoverageAmount'] == '550000'
    assert 'branch' not in data


def test_policy_validates_configuration():
    with pytest.raises(InvalidAmount):
        CopaymentPolicy(standard_copayment=-1, annual_cap=1000000)
    with pytest.raises(InvalidAmount):
        CopaymentPolicy(standard_copayment=50000, annual_cap=0)


def test_policy_rejects_sub_cent_amounts():
    with pytest.raises(InvalidAmount):
        CopaymentPolicy(standard_copayment='0.005', annual_cap=1000000)
    with pytest.raises(InvalidAmount):
        CopaymentPolicy(standard_copayment=50000, annual_cap='1000000.001')
