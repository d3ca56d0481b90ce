"""
Tests for quotations, issued invoices, contracts, AI contract services and PDFs
"""
import json
import shutil
import tempfile
from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import MagicMock, patch

from django.contrib import admin
from django.test import TestCase
from rest_framework import status

from backoffice.core.models import AuditLog
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.sales.admin import CustomerContractAdmin
from backoffice.sales.contract_analysis import ContractAnalysisError, ContractAnalysisService
from backoffice.sales.contract_review import ContractReviewService
from backoffice.sales.models import CustomerContract
from backoffice.sales.pdf_generator import PdfGeneratorService, format_currency


def fake_ai(reply):
    ai_service = MagicMock()
    ai_service.is_configured.return_value = True
    ai_service.complete.return_value = reply if isinstance(reply, str) else json.dumps(reply)
    return ai_service


class QuotationTests(TestCase):

    def test_numbering_resumes_after_paper_quotations(self):
        first = TestDataFactory.create_quotation(date=date(2025, 3, 1))
        second = TestDataFactory.create_quotation(date=date(2025, 3, 2))
        self.assertEqual(first.number, '007-25')
        self.assertEqual(second.number, '008-25')

    def test_valid_until_defaults_to_thirty_days(self):
        quotation = TestDataFactory.create_quotation(date=date(2025, 3, 1))
        self.assertEqual(quotation.valid_until, date(2025, 3, 31))

    def test_hourly_item_uses_profile_rate(self):
        quotation = TestDataFactory.create_quotation()
        item = TestDataFactory.create_quotation_item(quotation, item_type='design', hours=Decimal('10.00'))
        self.assertEqual(item.hourly_rate, Decimal('50.00'))
        self.assertEqual(item.total, Decimal('500.00'))
        self.assertEqual(item.description, 'Electronic design and schematic capture')

    def test_pcb_item_uses_standard_cost(self):
        quotation = TestDataFactory.create_quotation()
        item = TestDataFactory.create_quotation_item(quotation, item_type='pcb_production', quantity=Decimal('2'))
        self.assertEqual(item.total, Decimal('400.00'))
        self.assertEqual(item.unit_price, Decimal('200.0000'))
        self.assertEqual(item.description, 'PCB production + shipping (5 boards)')

    def test_material_item_uses_material_cost(self):
        quotation = TestDataFactory.create_quotation()
        item = TestDataFactory.create_quotation_item(quotation, item_type='electronics_materials',
                                                     quantity=Decimal('4'), material_cost=Decimal('120.00'))
        self.assertEqual(item.total, Decimal('120.00'))
        self.assertEqual(item.unit_price, Decimal('30.0000'))

    def test_totals_apply_discount_then_tax(self):
        quotation = TestDataFactory.create_quotation(discount_rate=Decimal('10.00'))
        TestDataFactory.create_quotation_item(quotation, quantity=Decimal('2'), unit_price=Decimal('50.00'))
        quotation.refresh_from_db()
        self.assertEqual(quotation.subtotal, Decimal('100.00'))
        self.assertEqual(quotation.discount_amount, Decimal('10.00'))
        self.assertEqual(quotation.tax_amount, Decimal('19.80'))
        self.assertEqual(quotation.total, Decimal('109.80'))

    def test_deleting_item_updates_totals(self):
        quotation = TestDataFactory.create_quotation()
        item = TestDataFactory.create_quotation_item(quotation, unit_price=Decimal('10.00'))
        item.delete()
        quotation.refresh_from_db()
        self.assertEqual(quotation.total, Decimal('0.00'))

    def test_expired_only_when_sent(self):
        quotation = TestDataFactory.create_quotation(date=date(2020, 1, 1), status='sent')
        self.assertTrue(quotation.is_expired)
        quotation.status = 'accepted'
        self.assertFalse(quotation.is_expired)


class InvoiceTests(TestCase):

    def setUp(self):
        self.term = TestDataFactory.create_payment_term(days=30)
        self.customer = TestDataFactory.create_customer(payment_term=self.term)

    def test_numbering_per_year(self):
        first = TestDataFactory.create_invoice(self.customer, issue_date=date(2025, 1, 10))
        second = TestDataFactory.create_invoice(self.customer, issue_date=date(2025, 2, 10))
        other_year = TestDataFactory.create_invoice(self.customer, issue_date=date(2026, 1, 5))
        self.assertEqual(first.invoice_number, 'INV-2025-0001')
        self.assertEqual(second.invoice_number, 'INV-2025-0002')
        self.assertEqual(other_year.invoice_number, 'INV-2026-0001')

    def test_due_date_from_customer_term(self):
        invoice = TestDataFactory.create_invoice(self.customer, issue_date=date(2025, 1, 10))
        self.assertEqual(invoice.payment_term, self.term)
        self.assertEqual(invoice.due_date, date(2025, 2, 9))

    def test_tranche_due_date_and_amount(self):
        term = TestDataFactory.create_payment_term(tranches=[(30, 0), (70, 60)])
        balance = term.tranches.get(percentage=Decimal('70'))
        invoice = TestDataFactory.create_invoice(self.customer, issue_date=date(2025, 1, 10), payment_term=term,
                                                 payment_term_tranche=balance)
        self.assertEqual(invoice.due_date, date(2025, 1, 10) + timedelta(days=60))
        self.assertEqual(invoice.calculate_tranche_amount(Decimal('1000.00')), Decimal('700.00'))

    def test_all_tranches_invoiced(self):
        term = TestDataFactory.create_payment_term(tranches=[(30, 0), (70, 60)])
        project = TestDataFactory.create_project(customer=self.customer)
        advance, balance = term.tranches.order_by('sort_order')
        first = TestDataFactory.create_invoice(self.customer, project=project, payment_term=term,
                                               payment_term_tranche=advance)
        self.assertFalse(first.are_all_tranches_invoiced())
        TestDataFactory.create_invoice(self.customer, project=project, payment_term=term,
                                       payment_term_tranche=balance)
        self.assertTrue(first.are_all_tranches_invoiced())

    def test_totals_with_item_and_invoice_discounts(self):
        invoice = TestDataFactory.create_invoice(self.customer, discount_amount=Decimal('19.60'))
        item = TestDataFactory.create_invoice_item(invoice, quantity=Decimal('2'), unit_price=Decimal('100.00'),
                                                   discount_percentage=Decimal('10.00'))
        self.assertEqual(item.subtotal, Decimal('180.00'))
        self.assertEqual(item.tax_amount, Decimal('39.60'))
        invoice.refresh_from_db()
        self.assertEqual(invoice.total, Decimal('200.00'))

    def test_partial_then_full_payment(self):
        invoice = TestDataFactory.create_invoice(self.customer, status='sent')
        TestDataFactory.create_invoice_item(invoice, unit_price=Decimal('100.00'))
        invoice.refresh_from_db()

        invoice.mark_as_paid(amount=Decimal('50.00'))
        self.assertEqual(invoice.payment_status, 'partial')
        self.assertEqual(invoice.status, 'sent')
        self.assertEqual(invoice.remaining_amount, Decimal('72.00'))

        invoice.mark_as_paid(method='bank_transfer')
        self.assertEqual(invoice.payment_status, 'paid')
        self.assertEqual(invoice.status, 'paid')
        self.assertIsNotNone(invoice.paid_at)


class ContractTests(TestCase):

    def test_numbering(self):
        first = TestDataFactory.create_contract(start_date=date(2025, 1, 1))
        second = TestDataFactory.create_contract(start_date=date(2025, 6, 1))
        self.assertEqual(first.contract_number, 'CTR-2025-001')
        self.assertEqual(second.contract_number, 'CTR-2025-002')

    def test_risk_counts_and_score_color(self):
        contract = TestDataFactory.create_contract(ai_risk_flags=[
            {'severity': 'high'}, {'severity': 'low'}, {'severity': 'high'}, {'severity': 'unknown'},
        ])
        self.assertEqual(contract.risk_count_by_severity(), {'high': 2, 'medium': 0, 'low': 1})
        self.assertTrue(contract.has_high_risk_flags)
        self.assertEqual(contract.review_score_color, 'gray')
        contract.ai_review_score = 85
        self.assertEqual(contract.review_score_color, 'success')
        contract.ai_review_score = 60
        self.assertEqual(contract.review_score_color, 'warning')


class ContractAnalysisTests(TestCase):

    def setUp(self):
        self.contract = TestDataFactory.create_contract(terms='The supplier delivers 100 boards by June.')

    def test_analysis_is_stored(self):
        service = ContractAnalysisService(ai_service=fake_ai('Result:\n```json\n' + json.dumps({
            'parties': [{'name': 'ACME', 'role': 'customer'}],
            'risk_clauses': [
                {'type': 'penalty', 'severity': 'high', 'description': 'Unlimited penalties'},
                {'type': 'ip', 'severity': 'extreme', 'description': 'IP transfer'},
            ],
            'key_dates': [{'label': 'Delivery', 'date': '2025-06-30'}],
            'summary': 'Supply of boards.',
        }) + '\n```'))
        service.analyze(self.contract)

        self.contract.refresh_from_db()
        self.assertEqual(self.contract.ai_risk_flags[1]['severity'], 'medium')
        self.assertEqual(self.contract.risk_count_by_severity(), {'high': 1, 'medium': 1, 'low': 0})
        summary = service.generate_analysis_summary(self.contract)
        self.assertIn('Risks: 1 high, 1 medium', summary)
        self.assertTrue(summary.endswith('Supply of boards.'))

    def test_nothing_to_analyze(self):
        contract = TestDataFactory.create_contract()
        with self.assertRaises(ContractAnalysisError):
            ContractAnalysisService(ai_service=fake_ai('{}')).analyze(contract)

    def test_unconfigured_ai(self):
        ai_service = fake_ai('{}')
        ai_service.is_configured.return_value = False
        with self.assertRaises(ContractAnalysisError):
            ContractAnalysisService(ai_service=ai_service).analyze(self.contract)

    def test_non_object_reply(self):
        with self.assertRaises(ContractAnalysisError):
            ContractAnalysisService(ai_service=fake_ai('[1, 2]')).analyze(self.contract)


class ContractReviewTests(TestCase):

    REVIEW = {
        'checklist_results': {
            'parties_identified': {'status': 'present', 'risk_level': 'high'},
            'clear_dates': {'status': 'needs_improvement', 'risk_level': 'medium',
                            'suggested_text': 'Effective from the date of signature.'},
            'competent_court': {'status': 'missing', 'risk_level': 'low'},
        },
        'legal_risks': [{'title': 'Unlimited liability', 'severity': 'high'}],
    }

    def test_score_and_issue_count(self):
        self.assertEqual(ContractReviewService.calculate_score(self.REVIEW), 63)
        self.assertEqual(ContractReviewService.count_issues(self.REVIEW), 3)

    def test_critical_issues_lower_the_score(self):
        review = dict(self.REVIEW, compliance_issues=[{'regulation': 'GDPR', 'severity': 'critical'}])
        self.assertEqual(ContractReviewService.calculate_score(review), 53)

    def test_empty_checklist_scores_zero(self):
        self.assertEqual(ContractReviewService.calculate_score({}), 0)

    def test_review_is_stored(self):
        contract = TestDataFactory.create_contract(type='nda', terms='<p>Confidential information ...</p>')
        service = ContractReviewService(ai_service=fake_ai(self.REVIEW))
        review = service.review(contract)

        contract.refresh_from_db()
        self.assertEqual(contract.ai_review_score, 63)
        self.assertEqual(contract.ai_review_issues_count, 3)
        self.assertEqual(contract.review_score_color, 'warning')
        self.assertEqual(review['overall_assessment']['readiness'], 'needs_revision')
        prompt = service.ai_service.complete.call_args.args[0]
        self.assertIn('Confidential information', prompt)
        self.assertNotIn('<p>', prompt)

    def test_review_requires_terms(self):
        contract = TestDataFactory.create_contract()
        with self.assertRaises(ContractAnalysisError):
            ContractReviewService(ai_service=fake_ai(self.REVIEW)).review(contract)

    def test_apply_suggestions(self):
        contract = TestDataFactory.create_contract(terms='Original terms.', ai_review_data=self.REVIEW)
        text = ContractReviewService(ai_service=fake_ai('{}')).apply_suggestions(contract)
        self.assertTrue(text.startswith('Original terms.'))
        self.assertIn('Clear dates:\nEffective from the date of signature.', text)

    def test_admin_applies_suggestions_to_terms(self):
        reviewed = TestDataFactory.create_contract(terms='Original terms.', ai_review_data=self.REVIEW)
        unreviewed = TestDataFactory.create_contract(terms='Untouched.')
        model_admin = CustomerContractAdmin(CustomerContract, admin.site)
        with patch.object(model_admin, 'message_user') as message_user:
            model_admin.apply_review_suggestions(None, CustomerContract.objects.all())

        reviewed.refresh_from_db()
        unreviewed.refresh_from_db()
        self.assertIn('Effective from the date of signature.', reviewed.terms)
        self.assertEqual(unreviewed.terms, 'Untouched.')
        self.assertTrue(AuditLog.objects.filter(object_reference=reviewed.contract_number).exists())
        self.assertEqual(message_user.call_count, 2)


class PdfGeneratorTests(TestCase):

    def setUp(self):
        self.output_dir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.output_dir, ignore_errors=True)
        self.service = PdfGeneratorService(output_dir=self.output_dir)

    def read(self, path):
        with open(path, 'rb') as handle:
            return handle.read()

    def test_format_currency(self):
        self.assertEqual(format_currency(Decimal('1234.5')), '€ 1,234.50')
        self.assertEqual(format_currency(Decimal('10'), 'USD'), 'USD  10.00')
        self.assertEqual(format_currency(None), '-')

    def test_quotation_pdf(self):
        quotation = TestDataFactory.create_quotation(terms='Payment 30 days')
        TestDataFactory.create_quotation_item(quotation, item_type='design', hours=Decimal('4.00'))
        path = self.service.generate_quotation_pdf(quotation, upload=False)
        self.assertTrue(self.read(path).startswith(b'%PDF'))
        quotation.refresh_from_db()
        self.assertEqual(quotation.pdf_path, path)

    def test_invoice_pdf(self):
        invoice = TestDataFactory.create_invoice()
        TestDataFactory.create_invoice_item(invoice, description='Prototype boards')
        path = self.service.generate_invoice_pdf(invoice, upload=False)
        self.assertTrue(path.endswith(f'{invoice.invoice_number}_{invoice.issue_date:%Y-%m-%d}.pdf'))
        self.assertTrue(self.read(path).startswith(b'%PDF'))

    def test_contract_pdf(self):
        contract = TestDataFactory.create_contract(terms='Line one\nLine two', contract_value=Decimal('5000'))
        path = self.service.generate_contract_pdf(contract, upload=False)
        self.assertTrue(self.read(path).startswith(b'%PDF'))


class SalesAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.customer = TestDataFactory.create_customer()

    def test_create_quotation_with_items(self):
        response = self.client.post('/api/v1/quotations/', {
            'customer': self.customer.id,
            'title': 'Sensor board',
            'items': [{'item_type': 'custom', 'quantity': '2', 'unit_price': '50.00'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['total'], '122.00')
        self.assertEqual(len(response.data['items']), 1)

    def test_accepting_quotation_updates_project(self):
        project = TestDataFactory.create_project(customer=self.customer)
        quotation = TestDataFactory.create_quotation(self.customer, boards_quantity=25)
        quotation.projects.add(project)
        TestDataFactory.create_quotation_item(quotation, unit_price=Decimal('100.00'))

        response = self.client.patch(f'/api/v1/quotations/{quotation.id}/', {'status': 'accepted'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        project.refresh_from_db()
        self.assertEqual(project.budget, Decimal('122.00'))
        self.assertEqual(project.total_boards_ordered, 25)

    def test_rejecting_accepted_quotation_resets_boards(self):
        project = TestDataFactory.create_project(customer=self.customer)
        quotation = TestDataFactory.create_quotation(self.customer, boards_quantity=50)
        quotation.projects.add(project)

        self.client.patch(f'/api/v1/quotations/{quotation.id}/', {'status': 'accepted'}, format='json')
        project.refresh_from_db()
        self.assertEqual(project.total_boards_ordered, 50)

        response = self.client.patch(f'/api/v1/quotations/{quotation.id}/', {'status': 'rejected'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        project.refresh_from_db()
        self.assertEqual(project.total_boards_ordered, 0)

    def test_unlinked_project_is_recalculated(self):
        kept = TestDataFactory.create_project(customer=self.customer)
        dropped = TestDataFactory.create_project(customer=self.customer, total_boards_ordered=10)
        quotation = TestDataFactory.create_quotation(self.customer, status='accepted', boards_quantity=10)
        quotation.projects.add(kept)

        quotation.refresh_project_figures([dropped])
        kept.refresh_from_db()
        dropped.refresh_from_db()
        self.assertEqual(kept.total_boards_ordered, 10)
        self.assertEqual(dropped.total_boards_ordered, 0)

    def test_deleting_quotation_updates_project(self):
        project = TestDataFactory.create_project(customer=self.customer)
        quotation = TestDataFactory.create_quotation(self.customer, status='rejected', boards_quantity=10)
        quotation.projects.add(project)
        project.total_boards_ordered = 10
        project.save()

        response = self.client.delete(f'/api/v1/quotations/{quotation.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        project.refresh_from_db()
        self.assertEqual(project.total_boards_ordered, 0)

    def test_sent_quotation_is_read_only(self):
        quotation = TestDataFactory.create_quotation(self.customer, status='sent')
        response = self.client.patch(f'/api/v1/quotations/{quotation.id}/', {'title': 'New'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_quotation_with_invoice_cannot_be_deleted(self):
        quotation = TestDataFactory.create_quotation(self.customer)
        TestDataFactory.create_invoice(self.customer, quotation=quotation)
        response = self.client.delete(f'/api/v1/quotations/{quotation.id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_only_draft_invoices_are_deleted(self):
        invoice = TestDataFactory.create_invoice(self.customer, status='sent')
        response = self.client.delete(f'/api/v1/invoices/{invoice.id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(AuditLog.objects.filter(action='delete_blocked',
                                                object_reference=invoice.invoice_number).exists())

        draft = TestDataFactory.create_invoice(self.customer)
        response = self.client.delete(f'/api/v1/invoices/{draft.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_mark_paid(self):
        invoice = TestDataFactory.create_invoice(self.customer, status='sent')
        TestDataFactory.create_invoice_item(invoice, unit_price=Decimal('100.00'))
        response = self.client.post(f'/api/v1/invoices/{invoice.id}/mark-paid/', {'amount': '22.00'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['payment_status'], 'partial')
        self.assertEqual(response.data['remaining_amount'], '100.00')

    def test_cancelled_invoice_cannot_be_paid(self):
        invoice = TestDataFactory.create_invoice(self.customer, status='cancelled')
        response = self.client.post(f'/api/v1/invoices/{invoice.id}/mark-paid/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_contract_analyze_without_text(self):
        contract = TestDataFactory.create_contract(self.customer)
        response = self.client.post(f'/api/v1/contracts/{contract.id}/analyze/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @patch('backoffice.sales.views.ContractAnalysisService.analyze')
    def test_contract_analyze_failure(self, mock_analyze):
        mock_analyze.side_effect = ContractAnalysisError('Claude API key not configured')
        contract = TestDataFactory.create_contract(self.customer, terms='Some terms')
        response = self.client.post(f'/api/v1/contracts/{contract.id}/analyze/')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(response.data['error'], 'Claude API key not configured')
