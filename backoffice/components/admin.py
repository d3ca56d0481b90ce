from django.contrib import admin
from django.db.models import F
from django.http import HttpResponse, HttpResponseRedirect
from django.urls import reverse
from django.utils import timezone
from django.utils.safestring import mark_safe
from decimal import Decimal

from backoffice.core.cache_utils import (
    cached_query, invalidate_compliance_cache, BADGE_COUNTS_CACHE_TTL, BADGE_COUNTS_PREFIX
)
from backoffice.core.utils import create_audit_log, status_badge
from .models import (
    Category, Component, ComponentLifecycleStatus, ComponentAlternative,
    ComponentCertification, ObsolescenceAlert
)
from .aruco import ArUcoService
from .certification import CertificationManagementService
from .deletion import bulk_delete_components, blocking_references, describe_references
from .label_generator import generate_sku_label_data_url
from .lifecycle import ComponentLifecycleService

URGENCY_COLORS = {
    'critical': '#dc3545',
    'high': '#fd7e14',
    'medium': '#ffc107',
    'low': '#28a745',
}


@cached_query(cache_ttl=BADGE_COUNTS_CACHE_TTL, key_prefix=BADGE_COUNTS_PREFIX)
def unacknowledged_alert_count():
    return ObsolescenceAlert.objects.unresolved().unacknowledged().count()


class InStockFilter(admin.SimpleListFilter):
    title = 'in stock'
    parameter_name = 'in_stock'

    def lookups(self, request, model_admin):
        return [('yes', 'Yes'), ('no', 'No')]

    def queryset(self, request, queryset):
        if self.value() == 'yes':
            return queryset.filter(stock_quantity__gt=0)
        if self.value() == 'no':
            return queryset.filter(stock_quantity__lte=0)
        return queryset


class LowStockFilter(admin.SimpleListFilter):
    title = 'low stock'
    parameter_name = 'low_stock'

    def lookups(self, request, model_admin):
        return [('yes', 'Low stock')]

    def queryset(self, request, queryset):
        if self.value() == 'yes':
            return queryset.filter(stock_quantity__lte=F('min_stock_level'))
        return queryset


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'parent', 'is_active', 'created_at']
    list_filter = ['is_active', 'created_at']
    search_fields = ['name']
    ordering = ['name']


class ComponentLifecycleStatusInline(admin.StackedInline):
    model = ComponentLifecycleStatus
    extra = 0
    max_num = 1


class ComponentCertificationInline(admin.TabularInline):
    model = ComponentCertification
    extra = 0
    fields = ['certification_type', 'certificate_number', 'issuing_authority', 'expiry_date', 'status',
              'certificate_file']


@admin.register(Component)
class ComponentAdmin(admin.ModelAdmin):
    list_display = ['sku', 'name', 'category', 'manufacturer', 'package_type', 'stock_display',
                    'unit_price', 'storage_location', 'status', 'aruco_code']
    list_filter = ['category', 'mounting_type', 'package_type', 'status', InStockFilter, LowStockFilter]
    search_fields = ['sku', 'manufacturer_part_number', 'name', 'description', 'manufacturer']
    ordering = ['name']
    readonly_fields = ['aruco_code', 'aruco_preview', 'aruco_generated_at', 'label_preview', 'created_at',
                       'updated_at']
    inlines = [ComponentLifecycleStatusInline, ComponentCertificationInline]
    actions = ['generate_aruco_codes', 'print_aruco_sheet', 'suggest_alternatives', 'export_excel',
               'safe_bulk_delete']

    fieldsets = (
        ('Component', {
            'fields': ('sku', 'manufacturer_part_number', 'name', 'description', 'category',
                       'manufacturer', 'package', 'status', 'datasheet_url')
        }),
        ('Technical Specifications', {
            'fields': ('value', 'tolerance', 'voltage_rating', 'current_rating', 'power_rating',
                       'package_type', 'mounting_type', 'case_style', 'dielectric',
                       'temperature_coefficient', 'operating_temperature', 'specifications',
                       'technical_attributes'),
            'classes': ('collapse',),
        }),
        ('Purchasing', {
            'fields': ('unit_price', 'currency', 'supplier', 'invoice_reference', 'purchase_date',
                       'supplier_links')
        }),
        ('Stock', {
            'fields': ('stock_quantity', 'min_stock_level', 'reorder_quantity', 'storage_location',
                       'label_preview')
        }),
        ('ArUco', {
            'fields': ('aruco_code', 'aruco_preview', 'aruco_generated_at')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at')
        }),
    )

    def get_actions(self, request):
        actions = super().get_actions(request)
        # Replaced by safe_bulk_delete
        actions.pop('delete_selected', None)
        return actions

    def stock_display(self, obj):
        if obj.is_low_stock:
            return status_badge(obj.stock_quantity, URGENCY_COLORS['critical'])
        return obj.stock_quantity
    stock_display.short_description = 'Stock'
    stock_display.admin_order_field = 'stock_quantity'

    def aruco_preview(self, obj):
        if not obj.aruco_image_path:
            return 'No ArUco marker generated'
        from django.conf import settings
        return mark_safe(
            f'<img src="{settings.MEDIA_URL}{obj.aruco_image_path}" alt="{obj.aruco_code}" '
            f'style="max-width: 150px; border: 1px solid #ddd; padding: 5px;" />'
        )
    aruco_preview.short_description = 'Marker'

    def label_preview(self, obj):
        if not obj.pk:
            return '-'
        return mark_safe(
            f'<img src="{generate_sku_label_data_url(obj)}" alt="{obj.sku}" style="max-width: 300px;" />'
        )
    label_preview.short_description = 'Label'

    def delete_view(self, request, object_id, extra_context=None):
        component = self.get_object(request, object_id)
        if component is not None:
            counts = blocking_references(component)
            if counts:
                create_audit_log(
                    request=request, action='delete_blocked', model_name='Component',
                    object_id=component.pk, changes={'references': counts},
                    object_name=component.name, object_reference=component.sku,
                )
                self.message_user(
                    request,
                    f"Cannot delete '{component.name}': it is used by {describe_references(counts)}.",
                    level='error'
                )
                return HttpResponseRedirect(
                    reverse('admin:components_component_change', args=[component.pk])
                )
        return super().delete_view(request, object_id, extra_context)

    def generate_aruco_codes(self, request, queryset):
        service = ArUcoService()
        generated = 0
        errors = []
        for component in queryset:
            try:
                code = service.generate_for_component(component)
                create_audit_log(
                    request=request, action='aruco_generate', model_name='Component',
                    object_id=component.pk, object_name=component.name, object_reference=code,
                )
                generated += 1
            except Exception as e:
                errors.append(f"{component.sku}: {str(e)}")

        if generated:
            self.message_user(request, f"Generated {generated} ArUco code(s).", level='success')
        if errors:
            self.message_user(request, f"ArUco generation failed for: {'; '.join(errors[:5])}", level='error')
    generate_aruco_codes.short_description = "Generate ArUco codes"

    def print_aruco_sheet(self, request, queryset):
        try:
            html = ArUcoService().generate_print_sheet(list(queryset.values_list('id', flat=True)))
        except Exception as e:
            self.message_user(request, f"Error generating ArUco sheet: {str(e)}", level='error')
            return None
        return HttpResponse(html, content_type='text/html')
    print_aruco_sheet.short_description = "Print ArUco sheet"

    def suggest_alternatives(self, request, queryset):
        service = ComponentLifecycleService()
        created = 0
        try:
            for component in queryset:
                for candidate, score in service.find_candidate_alternatives(component):
                    service.add_alternative(component, candidate, {
                        'compatibility_score': score,
                        'compatibility_notes': 'Suggested from catalogue',
                    })
                    created += 1
        except Exception as e:
            self.message_user(request, f"Error suggesting alternatives: {str(e)}", level='error')
            return
        self.message_user(request, f"Linked {created} candidate alternative(s).", level='success')
    suggest_alternatives.short_description = "Suggest alternatives from catalogue"

    def export_excel(self, request, queryset):
        from backoffice.inventory.exports import InventoryExportService, xlsx_response
        try:
            filename, content = InventoryExportService().export_components(queryset=queryset)
        except Exception as e:
            self.message_user(request, f"Error exporting components: {str(e)}", level='error')
            return None
        return xlsx_response(filename, content)
    export_excel.short_description = "Export selected to Excel"

    def safe_bulk_delete(self, request, queryset):
        try:
            deleted, blocked, message = bulk_delete_components(queryset, request=request)
        except Exception as e:
            self.message_user(request, f"Error deleting components: {str(e)}", level='error')
            return

        if deleted:
            self.message_user(request, f"Deleted {deleted} component(s).", level='success')
        if blocked:
            self.message_user(request, message, level='warning')
    safe_bulk_delete.short_description = "Delete selected components (skip those in use)"


@admin.register(ComponentLifecycleStatus)
class ComponentLifecycleStatusAdmin(admin.ModelAdmin):
    list_display = ['component', 'lifecycle_stage', 'eol_date', 'last_time_buy_date', 'urgency_display',
                    'days_until_eol_display']
    list_filter = ['lifecycle_stage', 'eol_date']
    search_fields = ['component__sku', 'component__name', 'eol_reason']
    autocomplete_fields = ['component']
    readonly_fields = ['created_at', 'updated_at']
    actions = ['generate_alerts', 'check_all_components']

    def urgency_display(self, obj):
        urgency = obj.urgency_level
        return status_badge(urgency.upper(), URGENCY_COLORS.get(urgency, '#6c757d'))
    urgency_display.short_description = 'Urgency'

    def days_until_eol_display(self, obj):
        days = obj.days_until_eol
        return '-' if days is None else days
    days_until_eol_display.short_description = 'Days to EOL'
    days_until_eol_display.admin_order_field = 'eol_date'

    def generate_alerts(self, request, queryset):
        service = ComponentLifecycleService()
        created = 0
        try:
            for status in queryset.select_related('component'):
                created += len(service.generate_alerts_for_component(status.component, lifecycle=status))
        except Exception as e:
            self.message_user(request, f"Error generating alerts: {str(e)}", level='error')
            return
        self.message_user(request, f"Created {created} new alert(s).", level='success')
    generate_alerts.short_description = "Generate alerts for selected"

    def check_all_components(self, request, queryset):
        try:
            results = ComponentLifecycleService().check_lifecycle_status()
        except Exception as e:
            self.message_user(request, f"Lifecycle check failed: {str(e)}", level='error')
            return
        self.message_user(
            request,
            f"Checked {results['components_checked']} components: {results['alerts_created']} new alerts, "
            f"{results['critical_issues']} critical issues.",
            level='warning' if results['critical_issues'] else 'success'
        )
    check_all_components.short_description = "Check lifecycle of all components"


@admin.register(ComponentAlternative)
class ComponentAlternativeAdmin(admin.ModelAdmin):
    list_display = ['original_component', 'alternative_component', 'alternative_type',
                    'compatibility_score', 'level_display', 'is_recommended', 'verified_by']
    list_filter = ['alternative_type', 'is_recommended']
    search_fields = ['original_component__sku', 'original_component__name',
                     'alternative_component__sku', 'alternative_component__name']
    autocomplete_fields = ['original_component', 'alternative_component']
    readonly_fields = ['verified_by', 'verified_at', 'created_at', 'updated_at']
    actions = ['recalculate_score', 'mark_verified']

    def level_display(self, obj):
        level = obj.compatibility_level
        colors = {'Excellent': '#28a745', 'Good': '#17a2b8', 'Fair': '#ffc107', 'Poor': '#dc3545'}
        return status_badge(f"{level} ({obj.compatibility_percentage}%)", colors[level])
    level_display.short_description = 'Compatibility'
    level_display.admin_order_field = 'compatibility_score'

    def recalculate_score(self, request, queryset):
        service = ComponentLifecycleService()
        updated = 0
        try:
            for alt in queryset.select_related('original_component', 'alternative_component'):
                alt.compatibility_score = Decimal(str(
                    service.calculate_compatibility_score(alt.original_component, alt.alternative_component)
                ))
                alt.save(update_fields=['compatibility_score', 'updated_at'])
                updated += 1
        except Exception as e:
            self.message_user(request, f"Error recalculating scores: {str(e)}", level='error')
            return
        self.message_user(request, f"Recalculated {updated} compatibility score(s).", level='success')
    recalculate_score.short_description = "Recalculate compatibility score"

    def mark_verified(self, request, queryset):
        updated = queryset.update(verified_by=request.user, verified_at=timezone.now())
        self.message_user(request, f"Marked {updated} alternative(s) as verified.", level='success')
    mark_verified.short_description = "Mark as verified"


@admin.register(ComponentCertification)
class ComponentCertificationAdmin(admin.ModelAdmin):
    list_display = ['component', 'certification_type', 'certificate_number', 'issuing_authority',
                    'expiry_display', 'status']
    list_filter = ['certification_type', 'status', 'expiry_date']
    search_fields = ['component__sku', 'component__name', 'certificate_number', 'issuing_authority']
    autocomplete_fields = ['component']
    readonly_fields = ['created_at', 'updated_at']
    actions = ['mark_expired', 'mark_all_past_expiry']

    def expiry_display(self, obj):
        if not obj.expiry_date:
            return '-'
        days = obj.days_until_expiry
        if days <= 0:
            color = URGENCY_COLORS['critical']
        elif days <= 30:
            color = URGENCY_COLORS['high']
        elif days <= 90:
            color = URGENCY_COLORS['medium']
        else:
            return obj.expiry_date
        return mark_safe(f'<span style="color: {color}; font-weight: bold;">{obj.expiry_date}</span>')
    expiry_display.short_description = 'Expiry'
    expiry_display.admin_order_field = 'expiry_date'

    def mark_expired(self, request, queryset):
        updated = queryset.exclude(status='expired').update(status='expired', updated_at=timezone.now())
        if updated:
            invalidate_compliance_cache()
        self.message_user(request, f"Marked {updated} certification(s) as expired.", level='success')
    mark_expired.short_description = "Mark selected as expired"

    def mark_all_past_expiry(self, request, queryset):
        try:
            updated = CertificationManagementService().mark_expired()
        except Exception as e:
            self.message_user(request, f"Error updating certifications: {str(e)}", level='error')
            return
        self.message_user(request, f"{updated} certification(s) past expiry marked as expired.", level='success')
    mark_all_past_expiry.short_description = "Expire every certification past its expiry date"


@admin.register(ObsolescenceAlert)
class ObsolescenceAlertAdmin(admin.ModelAdmin):
    list_display = ['title', 'component', 'alert_type', 'severity_display', 'alert_date',
                    'acknowledged_at', 'is_resolved']
    list_filter = ['severity', 'alert_type', 'is_resolved', 'alert_date']
    search_fields = ['title', 'message', 'component__sku', 'component__name']
    readonly_fields = ['component', 'alert_type', 'severity', 'title', 'message', 'affected_projects',
                       'alert_date', 'acknowledged_at', 'acknowledged_by', 'resolved_at', 'created_at']
    ordering = ['-alert_date']
    actions = ['acknowledge', 'resolve']

    def changelist_view(self, request, extra_context=None):
        extra_context = extra_context or {}
        count = unacknowledged_alert_count()
        if count:
            extra_context['title'] = f"Obsolescence alerts ({count} unacknowledged)"
        return super().changelist_view(request, extra_context=extra_context)

    def has_add_permission(self, request):
        return False

    def severity_display(self, obj):
        return status_badge(obj.get_severity_display(), URGENCY_COLORS.get(obj.severity, '#6c757d'))
    severity_display.short_description = 'Severity'
    severity_display.admin_order_field = 'severity'

    def acknowledge(self, request, queryset):
        count = 0
        for alert in queryset.unacknowledged().select_related('component'):
            alert.acknowledge(request.user)
            create_audit_log(
                request=request, action='alert_acknowledge', model_name='ObsolescenceAlert',
                object_id=alert.pk, object_name=alert.title, object_reference=alert.component.sku,
            )
            count += 1
        self.message_user(request, f"Acknowledged {count} alert(s).", level='success')
    acknowledge.short_description = "Acknowledge selected alerts"

    def resolve(self, request, queryset):
        count = 0
        for alert in queryset.unresolved().select_related('component'):
            alert.resolve(request.user)
            create_audit_log(
                request=request, action='alert_resolve', model_name='ObsolescenceAlert',
                object_id=alert.pk, object_name=alert.title, object_reference=alert.component.sku,
            )
            count += 1
        self.message_user(request, f"Resolved {count} alert(s).", level='success')
    resolve.short_description = "Resolve selected alerts"
