"""
Excel exports of components, materials and equipment.

Every export returns `(filename, bytes)` so the caller decides whether to
stream it as a download or store it.
"""
import calendar
import io
import logging
from datetime import date, datetime, time

from django.http import HttpResponse
from django.utils import timezone
from django.utils.dateparse import parse_date
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from backoffice.components.models import Component
from .models import Equipment, Material

logger = logging.getLogger(__name__)

XLSX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

HEADER_FONT = Font(name='Calibri', bold=True, size=11, color='FFFFFF')
HEADER_FILL = PatternFill(start_color='2F5496', end_color='2F5496', fill_type='solid')

COMPONENT_HEADINGS = [
    'SKU', 'Manufacturer Part Number', 'Name', 'Description', 'Category', 'Manufacturer', 'Package',
    'Unit Price', 'Currency', 'Stock', 'Min Stock', 'Location', 'Status', 'Supplier', 'Purchase Date',
    'Invoice Reference', 'Created',
]
MATERIAL_HEADINGS = [
    'Code', 'Name', 'Category', 'Brand', 'Model', 'Color', 'Material Type', 'Diameter (mm)', 'Weight (kg)',
    'Unit Price', 'Currency', 'Stock', 'Min Stock', 'Unit', 'Location', 'Status', 'Supplier',
    'Purchase Date', 'Expiry Date', 'Created',
]
EQUIPMENT_HEADINGS = [
    'Code', 'Name', 'Category', 'Brand', 'Model', 'Serial Number', 'Purchase Price', 'Currency',
    'Current Value', 'Status', 'Location', 'Responsible', 'Purchase Date', 'Warranty Expiry',
    'Last Maintenance', 'Next Maintenance', 'Calibration Required', 'Created',
]

COMPONENT_FILTERS = ('date_from', 'date_to', 'category', 'status', 'supplier')
MATERIAL_FILTERS = ('date_from', 'date_to', 'category', 'status', 'supplier')
EQUIPMENT_FILTERS = ('date_from', 'date_to', 'category', 'status', 'location')


def _date(value):
    return value.strftime('%d/%m/%Y') if value else ''


def _datetime(value):
    return timezone.localtime(value).strftime('%d/%m/%Y %H:%M') if value else ''


def _number(value):
    return float(value) if value is not None else None


def xlsx_response(filename, content):
    response = HttpResponse(content, content_type=XLSX_CONTENT_TYPE)
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


class ExportFilterError(Exception):
    """Raised when an export filter value is not valid"""


class InventoryExportService:
    # ==================== FILTERS ====================

    @staticmethod
    def _parse_day(filters, key):
        value = filters.get(key)
        if not value or not isinstance(value, str):
            return value
        try:
            parsed = parse_date(value)
        except ValueError:
            parsed = None
        if parsed is None:
            raise ExportFilterError(f"Invalid {key}: {value}")
        return parsed

    def _bounds(self, filters):
        """date_from/date_to as aware datetimes covering whole days"""
        start = end = None
        date_from = self._parse_day(filters, 'date_from')
        date_to = self._parse_day(filters, 'date_to')
        if date_from:
            start = timezone.make_aware(datetime.combine(date_from, time.min))
        if date_to:
            end = timezone.make_aware(datetime.combine(date_to, time.max))
        return start, end

    def _filter_created(self, queryset, filters):
        start, end = self._bounds(filters)
        if start:
            queryset = queryset.filter(created_at__gte=start)
        if end:
            queryset = queryset.filter(created_at__lte=end)
        return queryset

    @staticmethod
    def _only(filters, keys):
        return {key: value for key, value in filters.items() if key in keys}

    @staticmethod
    def _check_choice(filters, key, choices):
        value = filters.get(key)
        if value and value not in dict(choices):
            raise ExportFilterError(f"Invalid {key}: {value}")

    def component_queryset(self, filters=None, strict=True):
        """Components by creation date, category (id or name), status and supplier"""
        filters = filters or {}
        if strict:
            self._check_choice(filters, 'status', Component.STATUS_CHOICES)
        queryset = self._filter_created(Component.objects.select_related('category'), filters)
        category = filters.get('category')
        if category:
            category = str(category)
            if category.isdigit():
                queryset = queryset.filter(category_id=int(category))
            else:
                queryset = queryset.filter(category__name__iexact=category)
        if filters.get('status'):
            queryset = queryset.filter(status=filters['status'])
        if filters.get('supplier'):
            queryset = queryset.filter(supplier__icontains=filters['supplier'])
        return queryset

    def material_queryset(self, filters=None, strict=True):
        filters = filters or {}
        if strict:
            self._check_choice(filters, 'category', Material.CATEGORY_CHOICES)
            self._check_choice(filters, 'status', Material.STATUS_CHOICES)
        queryset = self._filter_created(Material.objects.all(), filters)
        if filters.get('category'):
            queryset = queryset.filter(category=filters['category'])
        if filters.get('status'):
            queryset = queryset.filter(status=filters['status'])
        if filters.get('supplier'):
            queryset = queryset.filter(supplier__icontains=filters['supplier'])
        return queryset

    def equipment_queryset(self, filters=None, strict=True):
        filters = filters or {}
        if strict:
            self._check_choice(filters, 'category', Equipment.CATEGORY_CHOICES)
            self._check_choice(filters, 'status', Equipment.STATUS_CHOICES)
        queryset = self._filter_created(Equipment.objects.select_related('responsible_user'), filters)
        if filters.get('category'):
            queryset = queryset.filter(category=filters['category'])
        if filters.get('status'):
            queryset = queryset.filter(status=filters['status'])
        if filters.get('location'):
            queryset = queryset.filter(location__icontains=filters['location'])
        return queryset

    # ==================== ROWS ====================

    @staticmethod
    def component_row(c):
        return [
            c.sku, c.manufacturer_part_number, c.name, c.description, c.category.name if c.category else '',
            c.manufacturer, c.package_type or c.package, _number(c.unit_price), c.currency, c.stock_quantity,
            c.min_stock_level, c.storage_location, c.get_status_display(), c.supplier, _date(c.purchase_date),
            c.invoice_reference, _datetime(c.created_at),
        ]

    @staticmethod
    def material_row(m):
        return [
            m.code, m.name, m.get_category_display(), m.brand, m.model, m.color, m.material_type,
            _number(m.diameter), _number(m.weight_kg), _number(m.unit_price), m.currency, m.stock_quantity,
            m.min_stock_level, m.get_unit_of_measure_display(), m.storage_location, m.get_status_display(),
            m.supplier, _date(m.purchase_date), _date(m.expiry_date), _datetime(m.created_at),
        ]

    @staticmethod
    def equipment_row(e):
        current_value = e.current_value if e.current_value is not None else e.calculate_current_value()
        responsible = (e.responsible_user.get_full_name() or e.responsible_user.username) if e.responsible_user else ''
        return [
            e.code, e.name, e.get_category_display(), e.brand, e.model, e.serial_number,
            _number(e.purchase_price), e.currency, _number(current_value), e.get_status_display(), e.location,
            responsible, _date(e.purchase_date), _date(e.warranty_expiry), _date(e.last_maintenance),
            _date(e.next_maintenance), 'Yes' if e.calibration_required else 'No', _datetime(e.created_at),
        ]

    # ==================== WORKBOOK ====================

    @staticmethod
    def _write_sheet(ws, title, headings, rows):
        ws.title = title
        ws.append(headings)
        for cell in ws[1]:
            cell.font = HEADER_FONT
            cell.fill = HEADER_FILL
            cell.alignment = Alignment(horizontal='center', vertical='center')
        widths = [len(h) for h in headings]
        count = 0
        for row in rows:
            ws.append(row)
            count += 1
            for index, value in enumerate(row):
                if value is not None:
                    widths[index] = max(widths[index], min(len(str(value)), 60))
        for index, width in enumerate(widths, start=1):
            ws.column_dimensions[get_column_letter(index)].width = width + 2
        ws.freeze_panes = 'A2'
        return count

    @staticmethod
    def _save(wb, prefix):
        buffer = io.BytesIO()
        wb.save(buffer)
        filename = f"{prefix}_{timezone.localtime():%Y-%m-%d_%H-%M-%S}.xlsx"
        return filename, buffer.getvalue()

    def export_components(self, filters=None, queryset=None):
        queryset = self.component_queryset(filters) if queryset is None else queryset.select_related('category')
        wb = Workbook()
        count = self._write_sheet(wb.active, 'Electronic Components', COMPONENT_HEADINGS,
                                  (self.component_row(c) for c in queryset))
        logger.info(f"Exported {count} component(s) to Excel")
        return self._save(wb, 'components')

    def export_materials(self, filters=None, queryset=None):
        queryset = self.material_queryset(filters) if queryset is None else queryset
        wb = Workbook()
        count = self._write_sheet(wb.active, 'Materials', MATERIAL_HEADINGS,
                                  (self.material_row(m) for m in queryset))
        logger.info(f"Exported {count} material(s) to Excel")
        return self._save(wb, 'materials')

    def export_equipment(self, filters=None, queryset=None):
        queryset = self.equipment_queryset(filters) if queryset is None else queryset
        wb = Workbook()
        count = self._write_sheet(wb.active, 'Equipment', EQUIPMENT_HEADINGS,
                                  (self.equipment_row(e) for e in queryset))
        logger.info(f"Exported {count} equipment item(s) to Excel")
        return self._save(wb, 'equipment')

    def export_complete_inventory(self, filters=None):
        """One workbook with a sheet each for components, materials and equipment"""
        filters = filters or {}
        self._check_choice(filters, 'status',
                           Component.STATUS_CHOICES + Material.STATUS_CHOICES + Equipment.STATUS_CHOICES)
        # a filter only narrows the sheets whose rows carry that field
        components = self.component_queryset(self._only(filters, COMPONENT_FILTERS), strict=False)
        materials = self.material_queryset(self._only(filters, MATERIAL_FILTERS), strict=False)
        equipment = self.equipment_queryset(self._only(filters, EQUIPMENT_FILTERS), strict=False)

        wb = Workbook()
        self._write_sheet(wb.active, 'Electronic Components', COMPONENT_HEADINGS,
                          (self.component_row(c) for c in components))
        self._write_sheet(wb.create_sheet(), 'Materials', MATERIAL_HEADINGS,
                          (self.material_row(m) for m in materials))
        self._write_sheet(wb.create_sheet(), 'Equipment', EQUIPMENT_HEADINGS,
                          (self.equipment_row(e) for e in equipment))
        logger.info("Exported complete inventory to Excel")
        return self._save(wb, 'complete_inventory')

    EXPORTS = {
        'components': 'export_components',
        'materials': 'export_materials',
        'equipment': 'export_equipment',
        'complete': 'export_complete_inventory',
    }

    def export(self, kind, filters=None):
        if kind not in self.EXPORTS:
            raise ValueError(f"Unknown export: {kind}")
        return getattr(self, self.EXPORTS[kind])(filters)

    # ==================== PRESETS ====================

    @staticmethod
    def date_ranges(today=None):
        """Named date ranges offered by the export forms"""
        today = today or timezone.localdate()

        def month_end(year, month):
            return date(year, month, calendar.monthrange(year, month)[1])

        first_of_month = today.replace(day=1)
        last_month_year = today.year if today.month > 1 else today.year - 1
        last_month = today.month - 1 if today.month > 1 else 12
        quarter_start_month = 3 * ((today.month - 1) // 3) + 1

        def months_back(n):
            index = today.year * 12 + today.month - 1 - n
            return date(index // 12, index % 12 + 1, 1)

        return {
            'current_month': {'label': 'Current month', 'from': first_of_month,
                              'to': month_end(today.year, today.month)},
            'last_month': {'label': 'Last month', 'from': date(last_month_year, last_month, 1),
                           'to': month_end(last_month_year, last_month)},
            'current_quarter': {'label': 'Current quarter', 'from': date(today.year, quarter_start_month, 1),
                                'to': month_end(today.year, quarter_start_month + 2)},
            'current_year': {'label': 'Current year', 'from': date(today.year, 1, 1),
                             'to': date(today.year, 12, 31)},
            'last_year': {'label': 'Last year', 'from': date(today.year - 1, 1, 1),
                          'to': date(today.year - 1, 12, 31)},
            'last_3_months': {'label': 'Last 3 months', 'from': months_back(3),
                              'to': month_end(today.year, today.month)},
            'last_6_months': {'label': 'Last 6 months', 'from': months_back(6),
                              'to': month_end(today.year, today.month)},
            'all_time': {'label': 'All time', 'from': None, 'to': None},
        }
