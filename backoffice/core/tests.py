"""
Tests for the core app: helpers, audit log, AI clients, Nextcloud client and API
"""
from datetime import date
from unittest.mock import MagicMock, patch

import requests
from django.test import TestCase, override_settings
from rest_framework import status

from backoffice.core.ai_services import (
    AiServiceError, AiServiceFactory, ClaudeAiService, OllamaAiService, extract_json
)
from backoffice.core.models import AuditLog, CompanyProfile
from backoffice.core.nextcloud import NextcloudError, NextcloudService, get_nextcloud_service
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.core.utils import add_months, create_audit_log, format_blocked_list


def fake_response(status_code=200, json_data=None, content=b''):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = json_data or {}
    response.content = content
    response.text = str(json_data)
    return response


class HelperTests(TestCase):

    def test_add_months_clamps_day(self):
        self.assertEqual(add_months(date(2024, 1, 31), 1), date(2024, 2, 29))
        self.assertEqual(add_months(date(2023, 1, 31), 1), date(2023, 2, 28))

    def test_add_months_crosses_year(self):
        self.assertEqual(add_months(date(2024, 11, 15), 3), date(2025, 2, 15))

    def test_format_blocked_list_truncates(self):
        names = [f'C{i}' for i in range(8)]
        self.assertEqual(format_blocked_list(names), 'C0, C1, C2, C3, C4 ... and 3 more')
        self.assertEqual(format_blocked_list(['A', 'B']), 'A, B')


class AuditLogTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()

    def test_create_audit_log(self):
        log = create_audit_log(user=self.user, action='create', model_name='Component', object_id=7,
                               object_name='Resistor', object_reference='R-10K')
        self.assertIsNotNone(log)
        self.assertEqual(log.object_id, '7')
        self.assertEqual(log.user, self.user)
        self.assertEqual(log.changes, {})

    def test_missing_fields_skip_entry(self):
        self.assertIsNone(create_audit_log(user=self.user, action='create', model_name='Component'))
        self.assertEqual(AuditLog.objects.count(), 0)


class CompanyProfileTests(TestCase):

    def test_current_is_a_single_row(self):
        first = CompanyProfile.current()
        second = CompanyProfile.current()
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(CompanyProfile.objects.count(), 1)

    def test_formatted_address(self):
        profile = CompanyProfile.current()
        profile.legal_address = 'Via Roma 1'
        profile.legal_postal_code = '20100'
        profile.legal_city = 'Milano'
        profile.legal_province = 'MI'
        self.assertEqual(profile.formatted_address, 'Via Roma 1, 20100 Milano (MI), Italia')

    def test_claude_requires_flag_and_key(self):
        profile = CompanyProfile.current()
        profile.claude_api_key = 'sk-test'
        self.assertFalse(profile.is_claude_enabled())
        profile.claude_enabled = True
        self.assertTrue(profile.is_claude_enabled())


class ExtractJsonTests(TestCase):

    def test_fenced_json(self):
        self.assertEqual(extract_json('```json\n{"a": 1}\n```'), {'a': 1})

    def test_json_after_prose(self):
        self.assertEqual(extract_json('Here you go: [1, 2, 3] hope it helps'), [1, 2, 3])

    def test_invalid_json_raises(self):
        with self.assertRaises(AiServiceError):
            extract_json('no json here')
        with self.assertRaises(AiServiceError):
            extract_json('')


class ClaudeAiServiceTests(TestCase):

    def setUp(self):
        self.profile = CompanyProfile.current()

    @patch('backoffice.core.ai_services.requests.post')
    def test_complete_returns_text(self, mock_post):
        mock_post.return_value = fake_response(json_data={
            'content': [{'type': 'text', 'text': 'Hello '}, {'type': 'text', 'text': 'world'}]
        })
        service = ClaudeAiService(api_key='sk-test', profile=self.profile)
        self.assertEqual(service.complete('hi', max_tokens=50), 'Hello world')
        payload = mock_post.call_args.kwargs['json']
        self.assertEqual(payload['max_tokens'], 50)
        self.assertEqual(mock_post.call_args.kwargs['headers']['x-api-key'], 'sk-test')

    @patch('backoffice.core.ai_services.requests.post')
    def test_http_error_raises(self, mock_post):
        mock_post.return_value = fake_response(status_code=529)
        service = ClaudeAiService(api_key='sk-test', profile=self.profile)
        with self.assertRaises(AiServiceError):
            service.complete('hi')

    @patch('backoffice.core.ai_services.requests.post')
    def test_network_error_raises(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError('down')
        service = ClaudeAiService(api_key='sk-test', profile=self.profile)
        with self.assertRaises(AiServiceError):
            service.complete('hi')

    @override_settings(ANTHROPIC_API_KEY='')
    def test_unconfigured_raises(self):
        service = ClaudeAiService(profile=self.profile)
        self.assertFalse(service.is_configured())
        with self.assertRaises(AiServiceError):
            service.complete('hi')

    @override_settings(AI_LANGUAGE='English')
    def test_notification_email_prompt(self):
        service = ClaudeAiService(api_key='sk-test', profile=self.profile)
        with patch.object(service, 'complete', return_value='  Dear ACME,\n...  ') as complete:
            text = service.generate_project_notification_email(
                'Smart meter', 'ACME', date(2025, 3, 7), context={'next_milestone': 'Layout', 'status': None}
            )
        self.assertEqual(text, 'Dear ACME,\n...')
        prompt = complete.call_args.args[0]
        self.assertIn('in English', prompt)
        self.assertIn('07/03/2025', prompt)
        self.assertIn('- next_milestone: Layout', prompt)
        self.assertNotIn('status', prompt)

    def test_failed_request_returns_none(self):
        service = ClaudeAiService(api_key='sk-test', profile=self.profile)
        with patch.object(service, 'complete', side_effect=AiServiceError('overloaded')):
            self.assertIsNone(service.generate_project_notification_email('P', 'C', date(2025, 1, 1)))


class AiServiceFactoryTests(TestCase):

    @override_settings(AI_PROVIDER='claude')
    def test_explicit_provider(self):
        self.assertIsInstance(AiServiceFactory.make(), ClaudeAiService)

    @override_settings(AI_PROVIDER='ollama', OLLAMA_URL='http://localhost:11434')
    def test_ollama_provider(self):
        self.assertIsInstance(AiServiceFactory.make(), OllamaAiService)

    @override_settings(AI_PROVIDER='auto', ANTHROPIC_API_KEY='', OLLAMA_URL='')
    def test_auto_falls_back_to_unconfigured_claude(self):
        service = AiServiceFactory.make()
        self.assertIsInstance(service, ClaudeAiService)
        self.assertFalse(service.is_configured())


class NextcloudServiceTests(TestCase):

    def setUp(self):
        self.service = NextcloudService(base_url='https://cloud.example.com', username='office', password='pw')

    @override_settings(NEXTCLOUD_URL='', NEXTCLOUD_USERNAME='')
    def test_unconfigured_service(self):
        self.assertIsNone(get_nextcloud_service())
        with self.assertRaises(NextcloudError):
            NextcloudService().download_file('a.pdf')

    def test_ensure_folder_creates_each_segment(self):
        with patch.object(self.service.session, 'request', return_value=fake_response(status_code=201)) as req:
            self.service.ensure_folder_exists('Clienti/C000001 - ACME/01_Preventivi')
        self.assertEqual(req.call_count, 3)
        methods = {call.args[0] for call in req.call_args_list}
        self.assertEqual(methods, {'MKCOL'})

    def test_existing_folder_is_accepted(self):
        with patch.object(self.service.session, 'request', return_value=fake_response(status_code=405)):
            self.assertTrue(self.service.ensure_folder_exists('Clienti'))

    def test_download_failure_raises(self):
        with patch.object(self.service.session, 'request', return_value=fake_response(status_code=404)):
            with self.assertRaises(NextcloudError):
                self.service.download_file('missing.pdf')

    def test_upload_quotation_path_follows_status(self):
        quotation = TestDataFactory.create_quotation(status='accepted')
        with patch.object(self.service, 'upload_file', return_value='ok') as upload:
            self.service.upload_quotation(quotation, '/tmp/q.pdf')
        remote_path = upload.call_args.args[1]
        self.assertIn('/01_Preventivi/Accettati/', remote_path)
        self.assertTrue(remote_path.endswith(f'preventivo-{quotation.number}.pdf'))

    def test_archive_folder_moves_beside_parent(self):
        with patch.object(self.service, 'file_exists', return_value=True), \
                patch.object(self.service, 'ensure_folder_exists') as ensure, \
                patch.object(self.service, 'move', side_effect=lambda src, dst: dst) as move:
            path = self.service.archive_folder('Clienti/C000001 - ACME/03_Progetti/P1 - Meter/', 'Completati')
        ensure.assert_called_once_with('Clienti/C000001 - ACME/03_Progetti/__Completati')
        move.assert_called_once_with('Clienti/C000001 - ACME/03_Progetti/P1 - Meter/', path)
        self.assertEqual(path, 'Clienti/C000001 - ACME/03_Progetti/__Completati/P1 - Meter')

    def test_archive_missing_folder_raises(self):
        with patch.object(self.service.session, 'request', return_value=fake_response(status_code=404)):
            with self.assertRaises(NextcloudError):
                self.service.archive_folder('Progetti/P1 - Meter')


class CoreAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.staff = TestDataFactory.create_user(is_staff=True)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_me(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['username'], self.user.username)

    def test_unauthenticated_request_rejected(self):
        self.client.logout()
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_profile_update_requires_staff(self):
        response = self.client.patch('/api/v1/company-profile/', {'company_name': 'ACME'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.staff)
        response = self.client.patch('/api/v1/company-profile/', {'company_name': 'ACME'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(CompanyProfile.current().company_name, 'ACME')
        self.assertNotIn('claude_api_key', response.data)

    def test_audit_log_filters(self):
        create_audit_log(user=self.user, action='create', model_name='Component', object_id=1,
                         object_reference='R-1')
        create_audit_log(user=self.user, action='delete', model_name='Project', object_id=2,
                         object_reference='P-1')
        response = self.client.get('/api/v1/audit-logs/', {'action': 'delete'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['model_name'], 'Project')
