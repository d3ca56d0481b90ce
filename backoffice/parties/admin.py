from django.contrib import admin
from django.core.exceptions import ValidationError
from django.forms.models import BaseInlineFormSet
from decimal import Decimal

from backoffice.core.nextcloud import get_nextcloud_service
from .models import CustomerType, PaymentTerm, PaymentTermTranche, Customer


class TrancheInlineFormSet(BaseInlineFormSet):
    """Tranche percentages of a payment term must add up to exactly 100"""

    def clean(self):
        super().clean()
        total = Decimal('0')
        rows = 0
        for form in self.forms:
            if not hasattr(form, 'cleaned_data') or not form.cleaned_data:
                continue
            if form.cleaned_data.get('DELETE'):
                continue
            percentage = form.cleaned_data.get('percentage')
            if percentage is not None:
                total += percentage
                rows += 1
        if rows and total != Decimal('100'):
            raise ValidationError(f"Tranche percentages must sum to 100% (current total: {total}%)")


class PaymentTermTrancheInline(admin.TabularInline):
    model = PaymentTermTranche
    formset = TrancheInlineFormSet
    extra = 0
    fields = ['name', 'percentage', 'days_offset', 'trigger_event', 'sort_order']
    ordering = ['sort_order']


@admin.register(CustomerType)
class CustomerTypeAdmin(admin.ModelAdmin):
    list_display = ['name', 'color', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['name']
    ordering = ['name']


@admin.register(PaymentTerm)
class PaymentTermAdmin(admin.ModelAdmin):
    list_display = ['name', 'days', 'tranches_display', 'discount_percentage', 'active']
    list_filter = ['active']
    search_fields = ['name', 'description']
    ordering = ['name']
    inlines = [PaymentTermTrancheInline]

    def tranches_display(self, obj):
        return obj.tranches_display
    tranches_display.short_description = 'Tranches'


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ['code', 'company_name', 'customer_type', 'vat_number', 'email', 'city',
                    'payment_term', 'is_active', 'nextcloud_folder_created']
    list_filter = ['is_active', 'customer_type', 'payment_term', 'nextcloud_folder_created']
    search_fields = ['code', 'company_name', 'vat_number', 'tax_code', 'email', 'city']
    ordering = ['company_name']
    readonly_fields = ['code', 'nextcloud_folder_created', 'nextcloud_base_path', 'created_at', 'updated_at']
    actions = ['create_nextcloud_folders']

    fieldsets = (
        ('Customer', {
            'fields': ('code', 'company_name', 'customer_type', 'is_active')
        }),
        ('Tax Data', {
            'fields': ('vat_number', 'tax_code', 'sdi_code')
        }),
        ('Contacts', {
            'fields': ('email', 'pec_email', 'phone', 'mobile')
        }),
        ('Address', {
            'fields': ('address', 'city', 'postal_code', 'province', 'country')
        }),
        ('Billing', {
            'fields': ('payment_term', 'billing_email', 'billing_contact_name', 'billing_phone',
                       'credit_limit', 'current_balance')
        }),
        ('Nextcloud', {
            'fields': ('nextcloud_folder_created', 'nextcloud_base_path'),
            'classes': ('collapse',),
        }),
        ('Notes', {
            'fields': ('notes', 'created_at', 'updated_at')
        }),
    )

    def create_nextcloud_folders(self, request, queryset):
        service = get_nextcloud_service()
        if service is None:
            self.message_user(request, "Nextcloud is not configured.", level='error')
            return

        created = 0
        failed = []
        for customer in queryset.select_related('payment_term'):
            try:
                service.create_customer_folder_structure(customer)
                service.generate_customer_info_json(customer)
                created += 1
            except Exception as e:
                failed.append(f"{customer.code}: {str(e)}")

        if created:
            self.message_user(request, f"Created Nextcloud folders for {created} customer(s).", level='success')
        if failed:
            self.message_user(request, f"Nextcloud folder creation failed for: {'; '.join(failed[:5])}",
                              level='error')
    create_nextcloud_folders.short_description = "Create Nextcloud folders"
