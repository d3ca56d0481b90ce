"""
Tests for components: stock flags, delete guard, lifecycle alerts,
alternatives, certifications, ArUco markers and the component API
"""
import shutil
import tempfile
from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from django.contrib import admin
from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from backoffice.core.models import AuditLog
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.components.admin import ComponentCertificationAdmin
from backoffice.components.aruco import ArUcoService, marker_pattern
from backoffice.components.certification import CertificationManagementService, expiry_urgency
from backoffice.components.deletion import ComponentInUseError, bulk_delete_components, delete_component
from backoffice.components.label_generator import generate_sku_label
from backoffice.components.lifecycle import ComponentLifecycleService
from backoffice.components.models import (
    Component, ComponentCertification, ComponentLifecycleStatus, ObsolescenceAlert
)


class ComponentModelTests(TestCase):

    def test_low_stock_and_reorder(self):
        component = TestDataFactory.create_component(stock_quantity=5, min_stock_level=10)
        self.assertTrue(component.is_low_stock)
        self.assertFalse(component.needs_reorder)
        component.reorder_quantity = 100
        self.assertTrue(component.needs_reorder)

    def test_total_value(self):
        component = TestDataFactory.create_component(stock_quantity=250, unit_price=Decimal('0.0123'))
        self.assertEqual(component.total_value, Decimal('3.08'))

    def test_reference_counts_start_empty(self):
        component = TestDataFactory.create_component()
        self.assertFalse(any(component.reference_counts().values()))


class ComponentDeletionTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()

    def test_unreferenced_component_is_deleted(self):
        component = TestDataFactory.create_component()
        delete_component(component)
        self.assertFalse(Component.objects.filter(sku=component.sku).exists())
        self.assertTrue(AuditLog.objects.filter(action='delete', object_reference=component.sku).exists())

    def test_referenced_component_is_kept(self):
        component = TestDataFactory.create_component()
        quotation = TestDataFactory.create_quotation()
        TestDataFactory.create_quotation_item(quotation, component=component, unit_price=Decimal('1.0000'))

        with self.assertRaises(ComponentInUseError) as ctx:
            delete_component(component)
        self.assertEqual(ctx.exception.counts, {'quotation_items': 1})
        self.assertIn('1 quotation items', str(ctx.exception))
        self.assertTrue(Component.objects.filter(pk=component.pk).exists())
        self.assertTrue(AuditLog.objects.filter(action='delete_blocked', object_reference=component.sku).exists())

    def test_bulk_delete_skips_components_in_use(self):
        free = TestDataFactory.create_component(name='Free')
        used = TestDataFactory.create_component(name='Used')
        project = TestDataFactory.create_project()
        TestDataFactory.create_bom_item(project, used)

        deleted, blocked, message = bulk_delete_components(Component.objects.filter(pk__in=[free.pk, used.pk]))
        self.assertEqual(deleted, 1)
        self.assertEqual(blocked, ['Used'])
        self.assertIn('Used', message)
        self.assertTrue(Component.objects.filter(pk=used.pk).exists())


class LifecycleServiceTests(TestCase):

    def setUp(self):
        self.service = ComponentLifecycleService()
        self.component = TestDataFactory.create_component()
        self.today = timezone.localdate()

    def lifecycle(self, **fields):
        return ComponentLifecycleStatus.objects.create(component=self.component, **fields)

    def test_distant_eol_creates_warning(self):
        self.lifecycle(lifecycle_stage='eol_announced', eol_date=self.today + timedelta(days=400))
        alerts = self.service.generate_alerts_for_component(self.component)
        self.assertEqual([(a.alert_type, a.severity) for a in alerts], [('eol_warning', 'medium')])

    def test_near_eol_is_imminent(self):
        lifecycle = self.lifecycle(lifecycle_stage='eol_announced', eol_date=self.today + timedelta(days=30))
        alerts = self.service.generate_alerts_for_component(self.component)
        self.assertEqual([(a.alert_type, a.severity) for a in alerts], [('eol_imminent', 'high')])
        self.assertEqual(lifecycle.urgency_level, 'high')

    def test_obsolete_and_last_time_buy(self):
        self.lifecycle(lifecycle_stage='obsolete', last_time_buy_date=self.today + timedelta(days=10))
        alert_types = {a.alert_type for a in self.service.generate_alerts_for_component(self.component)}
        self.assertEqual(alert_types, {'obsolete', 'last_time_buy'})

    def test_alerts_are_not_duplicated(self):
        self.lifecycle(lifecycle_stage='obsolete')
        self.service.generate_alerts_for_component(self.component)
        self.assertEqual(self.service.generate_alerts_for_component(self.component), [])
        self.assertEqual(ObsolescenceAlert.objects.filter(component=self.component).count(), 1)

    def test_affected_projects_come_from_boms(self):
        project = TestDataFactory.create_project()
        TestDataFactory.create_bom_item(project, self.component)
        self.lifecycle(lifecycle_stage='obsolete')
        alert = self.service.generate_alerts_for_component(self.component)[0]
        self.assertEqual(alert.affected_projects, [project.id])

    def test_check_lifecycle_status_counts(self):
        self.lifecycle(lifecycle_stage='obsolete')
        results = self.service.check_lifecycle_status()
        self.assertEqual(results['components_checked'], 1)
        self.assertEqual(results['alerts_created'], 1)
        self.assertEqual(results['critical_issues'], 1)


class AlternativeTests(TestCase):

    def setUp(self):
        self.service = ComponentLifecycleService()
        self.category = TestDataFactory.create_category()

    def test_identical_components_score_one(self):
        specs = {'value': '10k', 'tolerance': '1%'}
        a = TestDataFactory.create_component(category=self.category, package='0603', manufacturer='Yageo',
                                             specifications=specs)
        b = TestDataFactory.create_component(category=self.category, package='0603', manufacturer='Yageo',
                                             specifications=specs)
        self.assertEqual(self.service.calculate_compatibility_score(a, b), 1.0)

    def test_missing_specs_count_half(self):
        self.assertEqual(ComponentLifecycleService.compare_specifications({}, {'a': 1}), 0.5)
        self.assertEqual(ComponentLifecycleService.compare_specifications({'a': 1}, {'b': 1}), 0.0)

    def test_add_alternative_records_price_difference(self):
        a = TestDataFactory.create_component(category=self.category, unit_price=Decimal('0.5000'))
        b = TestDataFactory.create_component(category=self.category, unit_price=Decimal('0.7500'))
        alternative = self.service.add_alternative(a, b)
        self.assertEqual(alternative.price_difference, Decimal('0.2500'))
        self.assertEqual(list(self.service.suggest_alternatives(a)), [alternative])

    def test_candidates_skip_linked_and_obsolete(self):
        specs = {'value': '100n'}
        original = TestDataFactory.create_component(category=self.category, package='0402', specifications=specs)
        close = TestDataFactory.create_component(category=self.category, package='0402', specifications=specs)
        TestDataFactory.create_component(category=self.category, package='0402', specifications=specs,
                                         status='obsolete')
        TestDataFactory.create_component(category=self.category, package='1206', specifications={'value': '1u'})

        candidates = self.service.find_candidate_alternatives(original)
        self.assertEqual([c for c, _ in candidates], [close])

        self.service.add_alternative(original, close)
        self.assertEqual(self.service.find_candidate_alternatives(original), [])


class CertificationTests(TestCase):

    def setUp(self):
        self.service = CertificationManagementService()
        self.component = TestDataFactory.create_component()

    def certify(self, cert_type, expiry_date=None):
        return ComponentCertification.objects.create(
            component=self.component, certification_type=cert_type, status='valid', expiry_date=expiry_date
        )

    def test_partial_coverage_is_high_risk(self):
        self.certify('CE')
        self.certify('EMC')
        analysis = self.service.analyze_component_certifications(self.component)
        self.assertEqual(analysis['compliance_score'], 40)
        self.assertEqual(analysis['risk_level'], 'high')
        self.assertEqual(set(analysis['missing_certifications']), {'LVD', 'RoHS', 'REACH'})

    def test_statistics_coverage(self):
        self.certify('CE')
        self.certify('RED')
        TestDataFactory.create_component()
        stats = self.service.get_certification_statistics()
        self.assertEqual(stats['total_components'], 2)
        self.assertEqual(stats['certification_coverage']['CE']['coverage_percentage'], 50)
        self.assertEqual(stats['certification_coverage']['EMC']['components_with_cert'], 0)
        self.assertNotIn('RED', stats['certification_coverage'])
        relevant = self.component.certifications.ce_relevant().values_list('certification_type', flat=True)
        self.assertEqual(list(relevant), ['CE'])

    def test_expiring_certifications(self):
        self.certify('RoHS', expiry_date=timezone.localdate() + timedelta(days=20))
        expiring = self.service.check_expiring_certifications(days_ahead=90)
        self.assertEqual(len(expiring), 1)
        self.assertEqual(expiring[0]['urgency'], 'critical')

    def test_expiring_soon_window(self):
        today = timezone.localdate()
        inside = self.certify('RoHS', expiry_date=today + timedelta(days=10))
        self.certify('REACH', expiry_date=today + timedelta(days=40))
        self.certify('CE', expiry_date=today)
        self.assertEqual(list(ComponentCertification.objects.expiring_soon(days=30)), [inside])

    def test_expiry_urgency_bands(self):
        self.assertEqual(expiry_urgency(30), 'critical')
        self.assertEqual(expiry_urgency(45), 'high')
        self.assertEqual(expiry_urgency(80), 'medium')

    def test_mark_expired(self):
        cert = self.certify('CE', expiry_date=timezone.localdate() - timedelta(days=1))
        self.assertEqual(self.service.mark_expired(), 1)
        cert.refresh_from_db()
        self.assertEqual(cert.status, 'expired')

    @patch('backoffice.components.admin.invalidate_compliance_cache')
    def test_admin_expire_action_clears_compliance_cache(self, invalidate):
        cert = self.certify('CE')
        model_admin = ComponentCertificationAdmin(ComponentCertification, admin.site)
        with patch.object(model_admin, 'message_user'):
            model_admin.mark_expired(None, ComponentCertification.objects.filter(pk=cert.pk))
        cert.refresh_from_db()
        self.assertEqual(cert.status, 'expired')
        invalidate.assert_called_once_with()

        invalidate.reset_mock()
        with patch.object(model_admin, 'message_user'):
            model_admin.mark_expired(None, ComponentCertification.objects.filter(pk=cert.pk))
        invalidate.assert_not_called()


class ArUcoTests(TestCase):

    def setUp(self):
        self.media_root = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.media_root, ignore_errors=True)

    def test_marker_pattern_bits(self):
        pattern = marker_pattern(1)
        self.assertTrue(pattern[3][3])
        self.assertEqual(sum(bit for row in pattern for bit in row), 1)

    def test_generate_and_find(self):
        component = TestDataFactory.create_component()
        service = ArUcoService(media_root=self.media_root)
        code = service.generate_for_component(component)
        self.assertEqual(code, f"ARUCO-{component.id:06d}")
        self.assertEqual(service.find_by_aruco_code(code), component)
        self.assertEqual(component.aruco_image_path, f"aruco/{code}.png")

    def test_label_is_png(self):
        component = TestDataFactory.create_component(sku='R-10K-0603')
        self.assertTrue(generate_sku_label(component).startswith(b'\x89PNG'))


class ComponentAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.category = TestDataFactory.create_category(name='Resistors')

    def test_create_component(self):
        data = {'sku': 'R-10K', 'name': '10k resistor', 'category': self.category.id, 'unit_price': '0.0100'}
        response = self.client.post('/api/v1/components/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['category_name'], 'Resistors')
        self.assertTrue(AuditLog.objects.filter(action='create', object_reference='R-10K').exists())

    def test_search_matches_every_word(self):
        TestDataFactory.create_component(name='Resistor 10k 0603', manufacturer='Yageo')
        TestDataFactory.create_component(name='Resistor 1k 0805', manufacturer='Vishay')
        response = self.client.get('/api/v1/components/', {'search': 'resistor yageo'})
        self.assertEqual(response.data['count'], 1)

    def test_low_stock_filter(self):
        TestDataFactory.create_component(stock_quantity=2, min_stock_level=10)
        TestDataFactory.create_component(stock_quantity=50, min_stock_level=10)
        response = self.client.get('/api/v1/components/', {'low_stock': 'true'})
        self.assertEqual(response.data['count'], 1)

    def test_delete_in_use_returns_conflict(self):
        component = TestDataFactory.create_component()
        project = TestDataFactory.create_project()
        TestDataFactory.create_bom_item(project, component)
        response = self.client.delete(f'/api/v1/components/{component.id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['references'], {'project_bom_items': 1})

    def test_acknowledge_alert(self):
        component = TestDataFactory.create_component()
        alert = ObsolescenceAlert.objects.create(component=component, alert_type='obsolete',
                                                 severity='critical', title='Obsolete')
        response = self.client.post(f'/api/v1/obsolescence-alerts/{alert.id}/acknowledge/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        alert.refresh_from_db()
        self.assertEqual(alert.acknowledged_by, self.user)

    def test_aruco_lookup_not_found(self):
        response = self.client.get('/api/v1/components/aruco/ARUCO-999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_certification_statistics(self):
        TestDataFactory.create_component()
        response = self.client.get('/api/v1/certifications/statistics/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_components'], 1)
        self.assertEqual(response.data['certification_coverage']['CE']['coverage_percentage'], 0)

    def test_alternatives_reject_non_numeric_compatibility(self):
        component = TestDataFactory.create_component()
        url = f'/api/v1/components/{component.id}/alternatives/'
        response = self.client.get(url, {'min_compatibility': 'high'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('min_compatibility', response.data['error'])

        alternative = TestDataFactory.create_component()
        response = self.client.post(url, {'alternative_component': alternative.id,
                                          'compatibility_score': 'abc'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('compatibility_score', response.data['error'])
        self.assertFalse(component.alternatives.exists())

    def test_link_and_filter_alternatives(self):
        component = TestDataFactory.create_component()
        alternative = TestDataFactory.create_component()
        url = f'/api/v1/components/{component.id}/alternatives/'
        response = self.client.post(url, {'alternative_component': alternative.id,
                                          'compatibility_score': '0.80'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.get(url, {'min_compatibility': '0.9'})
        self.assertEqual(response.data, [])
        response = self.client.get(url, {'min_compatibility': '0.5'})
        self.assertEqual(len(response.data), 1)

    @patch('backoffice.core.cache_signals.invalidate_compliance_cache')
    def test_record_certification(self, invalidate):
        component = TestDataFactory.create_component(sku='U-ESP32')
        url = f'/api/v1/components/{component.id}/certifications/'
        response = self.client.post(url, {
            'certification_type': 'CE', 'certificate_number': 'CE-2025-001', 'status': 'valid',
            'expiry_date': (timezone.localdate() + timedelta(days=365)).isoformat(),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['component'], component.id)
        self.assertTrue(response.data['is_valid'])
        self.assertTrue(invalidate.called)

        response = self.client.get(url)
        self.assertEqual([c['certificate_number'] for c in response.data], ['CE-2025-001'])

        response = self.client.post(url, {'certification_type': 'XYZ'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
