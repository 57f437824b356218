"""
Integration tests for the billing API.

Requests go through DRF's APIClient with a forced staff login; the
copayment ledger is seeded directly through the model where a test needs
a patient close to the annual cap.
"""
from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.contrib.auth.models import Group, User
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from ..exceptions import LedgerUnavailable
from ..models import AnnualCopayment, InvoiceRecord


class BillingAPITests(APITestCase):
    def setUp(self) -> None:
        self.staff = User.objects.create_user(username='cashier', password='P@ssw0rd1', is_staff=True)
        self.year = timezone.localdate().year
        self.insurance = {
            'companyName': 'Sura EPS',
            'policyNumber': 'POL-123',
            'status': 'active',
            'expirationDate': (timezone.localdate() + timedelta(days=365)).isoformat(),
        }
        self.client.force_authenticate(self.staff)

    def payload(self, **overrides):
        data = {
            'patientId': '1017234567',
            'patientName': 'Ana Gómez',
            'insurance': self.insurance,
            'orders': [
                {'orderId': 'o1', 'lines': [
                    {'category': 'procedure', 'itemName': 'Suture', 'unitCost': '200000.00', 'quantity': 3},
                ]},
            ],
        }
        data.update(overrides)
        return data

    def test_requires_authentication(self):
        self.client.force_authenticate(None)
        resp = self.client.post(reverse('billing_calculate'), self.payload(), format='json')
        self.assertIn(resp.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))
        self.assertFalse(resp.data['ok'])

    def test_non_billing_user_is_forbidden(self):
        nurse = User.objects.create_user(username='nurse', password='P@ssw0rd1')
        self.client.force_authenticate(nurse)
        resp = self.client.post(reverse('billing_calculate'), self.payload(), format='json')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_billing_group_member_is_allowed(self):
        clerk = User.objects.create_user(username='clerk', password='P@ssw0rd1')
        clerk.groups.add(Group.objects.create(name='billing'))
        self.client.force_authenticate(clerk)
        resp = self.client.post(reverse('billing_calculate'), self.payload(), format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)

    def test_calculate_is_a_quote(self):
        resp = self.client.post(reverse('billing_calculate'), self.payload(), format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        data = resp.data['data']
        self.assertEqual(Decimal(data['totalCost']), Decimal('600000'))
        self.assertEqual(Decimal(data['copaymentAmount']), Decimal('50000'))
        self.assertEqual(Decimal(data['insuranceCoverageAmount']), Decimal('550000'))
        self.assertTrue(data['requiresCopayment'])
        self.assertFalse(data['copaymentLimitExceeded'])
        self.assertFalse(AnnualCopayment.objects.exists())
        self.assertFalse(InvoiceRecord.objects.exists())

    def test_invoice_charges_ledger(self):
        resp = self.client.post(reverse('billing_invoice'), self.payload(notes='first visit'), format='json')
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        invoice = resp.data['data']['invoice']
        self.assertTrue(invoice['invoiceNumber'].startswith('INV-'))
        self.assertEqual(invoice['status'], 'pending')
        self.assertEqual(invoice['notes'], 'first visit')
        row = AnnualCopayment.objects.get(patient_id='1017234567', year=self.year)
        self.assertEqual(row.amount, Decimal('50000'))

    def test_cap_crossing_then_fully_covered(self):
        AnnualCopayment.objects.create(patient_id='1017234567', year=self.year, amount=Decimal('960000'))
        first = self.client.post(reverse('billing_invoice'), self.payload(), format='json')
        self.assertEqual(Decimal(first.data['data']['adjudication']['copaymentAmount']), Decimal('50000'))

        second = self.client.post(reverse('billing_invoice'), self.payload(), format='json')
        adjudication = second.data['data']['adjudication']
        self.assertEqual(Decimal(adjudication['copaymentAmount']), Decimal('0'))
        self.assertEqual(Decimal(adjudication['insuranceCoverageAmount']), Decimal('600000'))
        self.assertTrue(adjudication['copaymentLimitExceeded'])

        row = AnnualCopayment.objects.get(patient_id='1017234567', year=self.year)
        self.assertEqual(row.amount, Decimal('1010000'))

    def test_without_insurance_patient_pays_all(self):
        resp = self.client.post(reverse('billing_invoice'), self.payload(insurance=None), format='json')
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        adjudication = resp.data['data']['adjudication']
        self.assertEqual(Decimal(adjudication['patientResponsibility']), Decimal('600000'))
        self.assertEqual(Decimal(adjudication['copaymentAmount']), Decimal('0'))
        self.assertFalse(AnnualCopayment.objects.exists())

    def test_mixed_categories_rejected(self):
        orders = [{'orderId': 'o1', 'lines': [
            {'category': 'procedure', 'itemName': 'Suture', 'unitCost': '1000'},
            {'category': 'medication', 'itemName': 'Ibuprofen', 'unitCost': '500'},
        ]}]
        resp = self.client.post(reverse('billing_invoice'), self.payload(orders=orders), format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data['error']['code'], 'precondition_violated')
        self.assertFalse(InvoiceRecord.objects.exists())

    def test_invoice_needs_line_items(self):
        resp = self.client.post(reverse('billing_invoice'), self.payload(orders=[]), format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data['error']['code'], 'empty_order_set')

    def test_total_beyond_storage_is_rejected(self):
        orders = [{'orderId': 'o1', 'lines': [
            {'category': 'procedure', 'itemName': 'x', 'unitCost': '999999999999.99', 'quantity': 1000},
        ]}]
        resp = self.client.post(reverse('billing_invoice'), self.payload(orders=orders), format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data['error']['code'], 'invalid_amount')
        self.assertFalse(InvoiceRecord.objects.exists())
        self.assertFalse(AnnualCopayment.objects.exists())

    def test_negative_unit_cost_is_a_validation_error(self):
        orders = [{'orderId': 'o1', 'lines': [{'category': 'procedure', 'itemName': 'x', 'unitCost': '-1'}]}]
        resp = self.client.post(reverse('billing_calculate'), self.payload(orders=orders), format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data['error']['code'], 'api_error')

    def test_ledger_outage_is_retryable(self):
        with mock.patch('billing.ledger.DjangoCopaymentLedger.accumulated', side_effect=LedgerUnavailable('down')):
            resp = self.client.post(reverse('billing_invoice'), self.payload(), format='json')
        self.assertEqual(resp.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(resp.data['error']['code'], 'ledger_unavailable')
        self.assertTrue(resp.data['error']['retryable'])
        self.assertFalse(InvoiceRecord.objects.exists())

    def test_history_statistics_and_copayment(self):
        self.client.post(reverse('billing_invoice'), self.payload(), format='json')
        self.client.post(reverse('billing_invoice'), self.payload(insurance=None), format='json')

        history = self.client.get(reverse('billing_history', args=['1017234567']))
        self.assertEqual(history.status_code, status.HTTP_200_OK)
        self.assertEqual(len(history.data['data']), 2)
        filtered = self.client.get(reverse('billing_history', args=['1017234567']), {'year': self.year - 1})
        self.assertEqual(filtered.data['data'], [])

        stats = self.client.get(reverse('billing_statistics', args=['1017234567'])).data['data']
        self.assertEqual(stats['numberOfInvoices'], 2)
        self.assertEqual(Decimal(stats['totalBilled']), Decimal('1200000'))
        self.assertEqual(Decimal(stats['totalPaidByPatient']), Decimal('650000'))

        copay = self.client.get(reverse('billing_copayment', args=['1017234567', self.year])).data['data']
        self.assertEqual(Decimal(copay['accumulated']), Decimal('50000'))
        self.assertFalse(copay['capReached'])
        self.assertEqual(Decimal(copay['remaining']), Decimal('950000'))

    def test_validate_insurance(self):
        resp = self.client.post(reverse('billing_validate_insurance'), {'insurance': self.insurance}, format='json')
        self.assertTrue(resp.data['data']['active'])
        self.assertEqual(resp.data['data']['validityDays'], 365)

        expired = dict(self.insurance, expirationDate=timezone.localdate().isoformat())
        resp = self.client.post(reverse('billing_validate_insurance'), {'insurance': expired}, format='json')
        self.assertFalse(resp.data['data']['active'])

        resp = self.client.post(reverse('billing_validate_insurance'), {'insurance': None}, format='json')
        self.assertFalse(resp.data['data']['active'])

    def test_healthz(self):
        resp = self.client.get(reverse('healthz'))
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()['ok'])
        self.assertEqual(resp.json()['annualCap'], '1000000')
