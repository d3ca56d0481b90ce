"""
Tests for stock movements, equipment, materials and the Excel exports
"""
import io
from datetime import date, timedelta
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase
from django.utils import timezone
from openpyxl import load_workbook
from rest_framework import status

from backoffice.core.models import AuditLog
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.inventory.exports import XLSX_CONTENT_TYPE, ExportFilterError, InventoryExportService
from backoffice.inventory.models import Equipment, InventoryMovement, Material


class InventoryMovementTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.component = TestDataFactory.create_component(stock_quantity=10, unit_price=Decimal('0.2500'))

    def test_stock_in_uses_component_price(self):
        movement = InventoryMovement.record_movement(self.component, 'in', 40, user=self.user)
        self.assertEqual((movement.quantity_before, movement.quantity_after), (10, 50))
        self.assertEqual(movement.unit_cost, Decimal('0.2500'))
        self.assertEqual(movement.total_cost, Decimal('10.00'))
        self.component.refresh_from_db()
        self.assertEqual(self.component.stock_quantity, 50)

    def test_stock_out_without_cost(self):
        movement = InventoryMovement.record_movement(self.component, 'out', 4)
        self.assertEqual(movement.quantity_after, 6)
        self.assertIsNone(movement.total_cost)
        self.assertEqual(movement.direction, 'out')

    def test_adjustment_is_signed(self):
        InventoryMovement.record_movement(self.component, 'adjustment', -3, reason='Cycle count')
        self.component.refresh_from_db()
        self.assertEqual(self.component.stock_quantity, 7)

    def test_return_adds_stock(self):
        project = TestDataFactory.create_project()
        movement = InventoryMovement.record_movement(self.component, 'return', 2, destination_project=project)
        self.assertEqual(movement.quantity_after, 12)
        self.assertEqual(movement.direction, 'in')

    def test_insufficient_stock_changes_nothing(self):
        with self.assertRaises(ValidationError):
            InventoryMovement.record_movement(self.component, 'out', 11)
        self.component.refresh_from_db()
        self.assertEqual(self.component.stock_quantity, 10)
        self.assertFalse(InventoryMovement.objects.exists())

    def test_invalid_quantities(self):
        with self.assertRaises(ValidationError):
            InventoryMovement.record_movement(self.component, 'in', 0)
        with self.assertRaises(ValidationError):
            InventoryMovement.record_movement(self.component, 'out', -2)
        with self.assertRaises(ValidationError):
            InventoryMovement.record_movement(self.component, 'transfer', 2)


class EquipmentTests(TestCase):

    def test_sequential_codes(self):
        first = TestDataFactory.create_equipment()
        second = TestDataFactory.create_equipment()
        self.assertEqual(first.code, 'EQ-00001')
        self.assertEqual(second.code, 'EQ-00002')

    def test_depreciation_counts_whole_years(self):
        equipment = TestDataFactory.create_equipment(purchase_price=Decimal('1000.00'),
                                                     purchase_date=date(2022, 6, 15),
                                                     depreciation_rate=Decimal('20.00'))
        self.assertEqual(equipment.calculate_current_value(date(2024, 6, 14)), Decimal('800.00'))
        self.assertEqual(equipment.calculate_current_value(date(2024, 6, 15)), Decimal('600.00'))
        self.assertEqual(equipment.calculate_current_value(date(2030, 1, 1)), Decimal('0.00'))

    def test_value_needs_price_date_and_rate(self):
        equipment = TestDataFactory.create_equipment(purchase_price=Decimal('1000.00'))
        self.assertIsNone(equipment.calculate_current_value())

    def test_record_maintenance_schedules_next(self):
        equipment = TestDataFactory.create_equipment(maintenance_interval_months=6)
        equipment.record_maintenance(date(2024, 8, 31))
        self.assertEqual(equipment.last_maintenance, date(2024, 8, 31))
        self.assertEqual(equipment.next_maintenance, date(2025, 2, 28))

    def test_due_flags_and_querysets(self):
        today = timezone.localdate()
        due = TestDataFactory.create_equipment(next_maintenance=today, calibration_required=True,
                                               next_calibration=today - timedelta(days=1))
        TestDataFactory.create_equipment(next_maintenance=today + timedelta(days=30),
                                         next_calibration=today - timedelta(days=1))
        self.assertTrue(due.needs_maintenance)
        self.assertTrue(due.needs_calibration)
        self.assertEqual(list(Equipment.objects.needs_maintenance()), [due])
        self.assertEqual(list(Equipment.objects.needs_calibration()), [due])


class MaterialTests(TestCase):

    def test_low_stock_and_expired(self):
        yesterday = timezone.localdate() - timedelta(days=1)
        low = TestDataFactory.create_material(stock_quantity=2, min_stock_level=5, expiry_date=yesterday)
        TestDataFactory.create_material(stock_quantity=20, min_stock_level=5)
        self.assertTrue(low.is_low_stock)
        self.assertTrue(low.is_expired)
        self.assertEqual(list(Material.objects.low_stock()), [low])
        self.assertEqual(list(Material.objects.expired()), [low])

    def test_temperature_range(self):
        material = Material(code='IPA-1', name='Isopropyl alcohol', temperature_storage_min=Decimal('25'),
                            temperature_storage_max=Decimal('5'))
        with self.assertRaises(ValidationError):
            material.clean()


class InventoryExportTests(TestCase):

    def setUp(self):
        self.service = InventoryExportService()
        self.category = TestDataFactory.create_category(name='Capacitors')
        TestDataFactory.create_component(sku='C-100N', category=self.category, stock_quantity=500)
        TestDataFactory.create_material(code='PLA-BLK', name='PLA black')
        TestDataFactory.create_equipment(name='Rigol DS1054Z', category='oscilloscope')

    def workbook(self, content):
        return load_workbook(io.BytesIO(content))

    def test_component_export(self):
        filename, content = self.service.export('components')
        self.assertTrue(filename.startswith('components_'))
        sheet = self.workbook(content)['Electronic Components']
        self.assertEqual(sheet['A1'].value, 'SKU')
        self.assertEqual(sheet['A2'].value, 'C-100N')
        self.assertEqual(sheet['E2'].value, 'Capacitors')
        self.assertEqual(sheet.max_row, 2)

    def test_category_filter(self):
        _, content = self.service.export('equipment', {'category': 'microscope'})
        self.assertEqual(self.workbook(content)['Equipment'].max_row, 1)

    def test_date_filter_excludes_older_rows(self):
        tomorrow = timezone.localdate() + timedelta(days=1)
        _, content = self.service.export('materials', {'date_from': tomorrow.isoformat()})
        self.assertEqual(self.workbook(content)['Materials'].max_row, 1)

    def test_complete_inventory_has_three_sheets(self):
        _, content = self.service.export('complete')
        self.assertEqual(self.workbook(content).sheetnames, ['Electronic Components', 'Materials', 'Equipment'])

    def test_component_category_by_name_or_id(self):
        for value in ('capacitors', str(self.category.id)):
            _, content = self.service.export('components', {'category': value})
            self.assertEqual(self.workbook(content)['Electronic Components'].max_row, 2)
        _, content = self.service.export('components', {'category': 'Resistors'})
        self.assertEqual(self.workbook(content)['Electronic Components'].max_row, 1)

    def test_invalid_filter_values_raise(self):
        with self.assertRaises(ExportFilterError):
            self.service.export('equipment', {'status': 'lost'})
        with self.assertRaises(ExportFilterError):
            self.service.export('materials', {'category': 'oscilloscope'})
        with self.assertRaises(ExportFilterError):
            self.service.export('components', {'date_from': 'yesterday'})
        with self.assertRaises(ExportFilterError):
            self.service.export('complete', {'status': 'lost'})

    def test_complete_inventory_applies_filters(self):
        TestDataFactory.create_equipment(name='Hakko FX-951', category='soldering', location='Lab 2')
        _, content = self.service.export('complete', {'location': 'lab'})
        workbook = self.workbook(content)
        self.assertEqual(workbook['Equipment'].max_row, 2)
        self.assertEqual(workbook['Equipment']['B2'].value, 'Hakko FX-951')
        self.assertEqual(workbook['Electronic Components'].max_row, 2)

        _, content = self.service.export('complete', {'status': 'discontinued'})
        workbook = self.workbook(content)
        self.assertEqual([workbook[name].max_row for name in workbook.sheetnames], [1, 1, 1])

    def test_unknown_export(self):
        with self.assertRaises(ValueError):
            self.service.export('suppliers')

    def test_date_ranges(self):
        ranges = InventoryExportService.date_ranges(today=date(2025, 1, 20))
        self.assertEqual(ranges['last_month']['from'], date(2024, 12, 1))
        self.assertEqual(ranges['last_month']['to'], date(2024, 12, 31))
        self.assertEqual(ranges['current_quarter']['to'], date(2025, 3, 31))
        self.assertEqual(ranges['last_3_months']['from'], date(2024, 10, 1))
        self.assertIsNone(ranges['all_time']['from'])


class InventoryAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.component = TestDataFactory.create_component(stock_quantity=5)

    def test_record_movement(self):
        response = self.client.post('/api/v1/inventory/movements/', {
            'component': self.component.id, 'type': 'in', 'quantity': 20, 'supplier': 'Mouser',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['quantity_after'], 25)
        self.assertEqual(response.data['user'], self.user.id)
        self.assertTrue(AuditLog.objects.filter(action='stock_movement',
                                                object_reference=self.component.sku).exists())

    def test_insufficient_stock_returns_400(self):
        response = self.client.post('/api/v1/inventory/movements/', {
            'component': self.component.id, 'type': 'out', 'quantity': 6,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Insufficient stock', response.data['error'])

    def test_export_download(self):
        response = self.client.get('/api/v1/inventory/export/components/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], XLSX_CONTENT_TYPE)
        self.assertIn('attachment; filename="components_', response['Content-Disposition'])

    def test_unknown_export_returns_404(self):
        response = self.client.get('/api/v1/inventory/export/suppliers/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_export_bad_filter_returns_400(self):
        response = self.client.get('/api/v1/inventory/export/equipment/', {'status': 'lost'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('status', response.data['error'])
        response = self.client.get('/api/v1/inventory/export/complete/', {'date_to': '2025-13-01'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_export_components_by_category_name(self):
        response = self.client.get('/api/v1/inventory/export/components/', {'category': 'Resistors'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], XLSX_CONTENT_TYPE)

    def test_export_date_ranges(self):
        response = self.client.get('/api/v1/inventory/export/date-ranges/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['all_time']['from'])

    def test_equipment_maintenance(self):
        equipment = TestDataFactory.create_equipment(maintenance_interval_months=12, calibration_required=True,
                                                     calibration_interval_months=12)
        response = self.client.post(f'/api/v1/equipment/{equipment.id}/maintenance/', {'calibrated': True},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        equipment.refresh_from_db()
        self.assertEqual(equipment.last_maintenance, timezone.localdate())
        self.assertEqual(equipment.last_calibration, timezone.localdate())
        self.assertIsNotNone(equipment.next_calibration)

    def test_material_low_stock_filter(self):
        TestDataFactory.create_material(stock_quantity=0, min_stock_level=3)
        TestDataFactory.create_material(stock_quantity=10, min_stock_level=3)
        response = self.client.get('/api/v1/materials/', {'low_stock': 'true'})
        self.assertEqual(response.data['count'], 1)
