from django import forms
from django.contrib import admin

from backoffice.core.utils import create_audit_log, status_badge
from .exports import InventoryExportService, xlsx_response
from .models import InventoryMovement, Equipment, Material


class LowStockMaterialFilter(admin.SimpleListFilter):
    title = 'low stock'
    parameter_name = 'low_stock'

    def lookups(self, request, model_admin):
        return [('yes', 'Low stock')]

    def queryset(self, request, queryset):
        if self.value() == 'yes':
            return queryset.low_stock()
        return queryset


class MaintenanceDueFilter(admin.SimpleListFilter):
    title = 'due'
    parameter_name = 'due'

    def lookups(self, request, model_admin):
        return [('maintenance', 'Maintenance due'), ('calibration', 'Calibration due')]

    def queryset(self, request, queryset):
        if self.value() == 'maintenance':
            return queryset.needs_maintenance()
        if self.value() == 'calibration':
            return queryset.needs_calibration()
        return queryset


class InventoryMovementForm(forms.ModelForm):
    class Meta:
        model = InventoryMovement
        fields = '__all__'

    def clean(self):
        cleaned = super().clean()
        component = cleaned.get('component')
        movement_type = cleaned.get('type')
        quantity = cleaned.get('quantity')
        if component is None or movement_type is None or quantity is None:
            return cleaned
        if quantity == 0 or (movement_type != 'adjustment' and quantity < 0):
            raise forms.ValidationError({'quantity': 'Quantity must be a positive number'})
        after = component.stock_quantity + InventoryMovement.signed_delta(movement_type, quantity)
        if after < 0:
            raise forms.ValidationError(
                {'quantity': f"Insufficient stock: {component.stock_quantity} available"}
            )
        return cleaned


@admin.register(InventoryMovement)
class InventoryMovementAdmin(admin.ModelAdmin):
    form = InventoryMovementForm
    list_display = ['created_at', 'component', 'type_display', 'quantity', 'quantity_before', 'quantity_after',
                    'total_cost', 'user', 'destination_project']
    list_filter = ['type', 'created_at']
    search_fields = ['component__sku', 'component__name', 'reason', 'invoice_number', 'supplier']
    autocomplete_fields = ['component', 'destination_project']
    readonly_fields = ['quantity_before', 'quantity_after', 'total_cost', 'user', 'created_at']
    date_hierarchy = 'created_at'

    def type_display(self, obj):
        color = '#28a745' if obj.direction == 'in' else '#dc3545'
        return status_badge(obj.get_type_display(), color)
    type_display.short_description = 'Type'
    type_display.admin_order_field = 'type'

    def has_change_permission(self, request, obj=None):
        # movements are append-only once stock has been updated
        if obj is not None and obj.pk:
            return False
        return super().has_change_permission(request, obj)

    def has_delete_permission(self, request, obj=None):
        return False

    def save_model(self, request, obj, form, change):
        # stock is re-checked under a row lock; the form only validated a snapshot
        movement = InventoryMovement.record_movement(
            obj.component, obj.type, obj.quantity, unit_cost=obj.unit_cost, user=request.user,
            reason=obj.reason, notes=obj.notes, invoice_number=obj.invoice_number,
            invoice_date=obj.invoice_date, supplier=obj.supplier,
            destination_project=obj.destination_project,
        )
        obj.pk = movement.pk
        obj.quantity_before = movement.quantity_before
        obj.quantity_after = movement.quantity_after
        create_audit_log(
            request=request, action='stock_movement', model_name='Component', object_id=movement.component_id,
            changes={'type': movement.type, 'quantity': movement.quantity,
                     'before': movement.quantity_before, 'after': movement.quantity_after},
            object_name=movement.component.name, object_reference=movement.component.sku,
        )


@admin.register(Equipment)
class EquipmentAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'category', 'brand', 'model', 'status', 'location', 'responsible_user',
                    'maintenance_display', 'calibration_display', 'value_display']
    list_filter = ['category', 'status', 'calibration_required', MaintenanceDueFilter]
    search_fields = ['code', 'name', 'brand', 'model', 'serial_number', 'location']
    autocomplete_fields = ['responsible_user']
    readonly_fields = ['code', 'created_at', 'updated_at']
    actions = ['record_maintenance', 'record_calibration', 'update_current_value', 'export_excel']

    fieldsets = (
        ('Identification', {'fields': ('code', 'name', 'description', 'category', 'brand', 'model',
                                       'serial_number', 'technical_specs')}),
        ('Purchase', {'fields': ('purchase_price', 'currency', 'purchase_date', 'supplier',
                                 'invoice_reference', 'warranty_expiry', 'depreciation_rate', 'current_value')}),
        ('Assignment', {'fields': ('status', 'location', 'responsible_user')}),
        ('Maintenance', {'fields': ('last_maintenance', 'next_maintenance', 'maintenance_interval_months')}),
        ('Calibration', {'fields': ('calibration_required', 'last_calibration', 'next_calibration',
                                    'calibration_interval_months')}),
        ('Notes', {'fields': ('notes', 'created_at', 'updated_at'), 'classes': ('collapse',)}),
    )

    def maintenance_display(self, obj):
        if not obj.next_maintenance:
            return '-'
        if obj.needs_maintenance:
            return status_badge(f"Due {obj.next_maintenance:%d/%m/%Y}", '#dc3545')
        return obj.next_maintenance.strftime('%d/%m/%Y')
    maintenance_display.short_description = 'Next maintenance'
    maintenance_display.admin_order_field = 'next_maintenance'

    def calibration_display(self, obj):
        if not obj.calibration_required:
            return '-'
        if obj.needs_calibration:
            return status_badge('Calibration due', '#fd7e14')
        return obj.next_calibration.strftime('%d/%m/%Y') if obj.next_calibration else 'Not scheduled'
    calibration_display.short_description = 'Calibration'
    calibration_display.admin_order_field = 'next_calibration'

    def value_display(self, obj):
        value = obj.current_value if obj.current_value is not None else obj.calculate_current_value()
        return f"{value} {obj.currency}" if value is not None else '-'
    value_display.short_description = 'Current value'

    def record_maintenance(self, request, queryset):
        for equipment in queryset:
            equipment.record_maintenance()
        self.message_user(request, f"Recorded maintenance for {queryset.count()} item(s).", level='success')
    record_maintenance.short_description = "Record maintenance today"

    def record_calibration(self, request, queryset):
        calibrated = 0
        for equipment in queryset.filter(calibration_required=True):
            equipment.record_calibration()
            calibrated += 1
        self.message_user(request, f"Recorded calibration for {calibrated} item(s).", level='success')
        if calibrated < queryset.count():
            self.message_user(request, "Items without calibration requirement were skipped.", level='warning')
    record_calibration.short_description = "Record calibration today"

    def update_current_value(self, request, queryset):
        updated = 0
        for equipment in queryset:
            value = equipment.calculate_current_value()
            if value is not None:
                equipment.current_value = value
                equipment.save(update_fields=['current_value', 'updated_at'])
                updated += 1
        self.message_user(request, f"Updated current value of {updated} item(s).", level='success')
    update_current_value.short_description = "Recalculate depreciated value"

    def export_excel(self, request, queryset):
        try:
            filename, content = InventoryExportService().export_equipment(queryset=queryset)
        except Exception as e:
            self.message_user(request, f"Error exporting equipment: {str(e)}", level='error')
            return None
        return xlsx_response(filename, content)
    export_excel.short_description = "Export selected to Excel"


@admin.register(Material)
class MaterialAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'category', 'brand', 'color', 'stock_display', 'unit_of_measure',
                    'unit_price', 'storage_location', 'expiry_display', 'status']
    list_filter = ['category', 'status', 'unit_of_measure', LowStockMaterialFilter]
    search_fields = ['code', 'name', 'brand', 'material_type', 'supplier', 'supplier_code']
    readonly_fields = ['created_at', 'updated_at']
    actions = ['export_excel']

    def stock_display(self, obj):
        if obj.is_low_stock:
            return status_badge(f"{obj.stock_quantity} (low)", '#dc3545')
        return obj.stock_quantity
    stock_display.short_description = 'Stock'
    stock_display.admin_order_field = 'stock_quantity'

    def expiry_display(self, obj):
        if not obj.expiry_date:
            return '-'
        if obj.is_expired:
            return status_badge('Expired', '#6c757d')
        return obj.expiry_date.strftime('%d/%m/%Y')
    expiry_display.short_description = 'Expiry'
    expiry_display.admin_order_field = 'expiry_date'

    def export_excel(self, request, queryset):
        try:
            filename, content = InventoryExportService().export_materials(queryset=queryset)
        except Exception as e:
            self.message_user(request, f"Error exporting materials: {str(e)}", level='error')
            return None
        return xlsx_response(filename, content)
    export_excel.short_description = "Export selected to Excel"
