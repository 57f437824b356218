"""Billing application for the clinic backend.

This package holds the copayment adjudication core (money, order costs,
insurance coverage, the annual copayment ledger, the copayment policy and
invoice composition) together with the models, services and API views
that expose it to the rest of the clinic system.
"""
