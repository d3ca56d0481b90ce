"""
Tests for customers and payment terms
"""
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase
from rest_framework import status

from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.parties.models import Customer, CustomerType


class CustomerModelTests(TestCase):

    def test_codes_are_sequential(self):
        first = TestDataFactory.create_customer()
        second = TestDataFactory.create_customer()
        self.assertEqual(first.code, 'C000001')
        self.assertEqual(second.code, 'C000002')

    def test_explicit_code_is_kept(self):
        customer = TestDataFactory.create_customer(code='VIP01')
        self.assertEqual(customer.code, 'VIP01')

    def test_full_address_skips_blanks(self):
        customer = TestDataFactory.create_customer(address='Via Roma 1', city='Torino', country='Italia')
        self.assertEqual(customer.full_address, 'Via Roma 1, Torino, Italia')


class PaymentTermTests(TestCase):

    def test_plain_term_display(self):
        term = TestDataFactory.create_payment_term(name='30 days', days=30)
        self.assertFalse(term.has_tranches)
        self.assertEqual(term.tranches_display, '30 giorni')

    def test_tranche_display_and_validation(self):
        term = TestDataFactory.create_payment_term(name='Split', tranches=[(30, 0), (70, 60)])
        self.assertTrue(term.has_tranches)
        self.assertEqual(term.tranches_display, '30/70')
        self.assertEqual(term.tranches_total(), Decimal('100'))
        term.validate_tranches()

    def test_tranches_must_sum_to_hundred(self):
        term = TestDataFactory.create_payment_term(tranches=[(30, 0), (60, 30)])
        with self.assertRaises(ValidationError):
            term.validate_tranches()

    def test_tranche_description(self):
        term = TestDataFactory.create_payment_term(tranches=[(100, 30)])
        tranche = term.tranches.get()
        tranche.trigger_event = 'delivery'
        self.assertEqual(tranche.full_description, 'Tranche 1 (100%) - 30 giorni (alla consegna)')


class CustomerAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_customer_assigns_code(self):
        response = self.client.post('/api/v1/customers/', {'company_name': 'ACME Srl'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['code'].startswith('C'))

    def test_search(self):
        TestDataFactory.create_customer(company_name='ACME Srl', vat_number='IT01234567890')
        TestDataFactory.create_customer(company_name='Globex')
        response = self.client.get('/api/v1/customers/', {'search': '0123456'})
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['company_name'], 'ACME Srl')

    def test_delete_blocked_by_projects(self):
        customer = TestDataFactory.create_customer()
        TestDataFactory.create_project(customer=customer)
        response = self.client.delete(f'/api/v1/customers/{customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(Customer.objects.filter(pk=customer.pk).exists())

    def test_delete_blocked_by_quotations_and_contracts(self):
        customer = TestDataFactory.create_customer()
        TestDataFactory.create_quotation(customer=customer)
        TestDataFactory.create_contract(customer=customer)
        response = self.client.delete(f'/api/v1/customers/{customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['references'], {'quotations': 1, 'contracts': 1})
        self.assertIn('1 quotations', response.data['error'])
        self.assertTrue(Customer.objects.filter(pk=customer.pk).exists())

    def test_delete_unused_customer(self):
        customer = TestDataFactory.create_customer()
        response = self.client.delete(f'/api/v1/customers/{customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_payment_terms_include_tranches(self):
        TestDataFactory.create_payment_term(name='Split', tranches=[(50, 0), (50, 30)])
        response = self.client.get('/api/v1/payment-terms/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data[0]['tranches']), 2)
        self.assertEqual(response.data[0]['tranches_display'], '50/50')

    def test_customer_types(self):
        CustomerType.objects.create(name='Distributor')
        CustomerType.objects.create(name='Archived', is_active=False)
        response = self.client.get('/api/v1/customer-types/')
        self.assertEqual([t['name'] for t in response.data], ['Archived', 'Distributor'])
        response = self.client.get('/api/v1/customer-types/', {'active': 'true'})
        self.assertEqual([t['name'] for t in response.data], ['Distributor'])
