from django.contrib import admin

from backoffice.core.utils import create_audit_log, status_badge
from backoffice.projects.models import Project
from .contract_analysis import ContractAnalysisService
from .contract_review import ContractReviewService
from .models import (
    Quotation, QuotationItem, InvoiceIssued, InvoiceIssuedItem, CustomerContract, refresh_projects
)
from .pdf_generator import PdfGeneratorService

SCORE_COLORS = {
    'success': '#28a745',
    'warning': '#ffc107',
    'danger': '#dc3545',
    'gray': '#6c757d',
}


def _generate_pdfs(model_admin, request, queryset, render, reference):
    """Shared body of the 'Generate PDF' actions"""
    try:
        service = PdfGeneratorService()
    except Exception as e:
        model_admin.message_user(request, f"Error preparing PDF generation: {str(e)}", level='error')
        return

    generated = 0
    failed = []
    for obj in queryset:
        try:
            render(service, obj)
        except Exception as e:
            failed.append(f"{reference(obj)}: {str(e)}")
            continue
        create_audit_log(
            request=request, action='pdf_generate', model_name=obj.__class__.__name__, object_id=obj.pk,
            object_reference=reference(obj),
        )
        generated += 1

    if generated:
        model_admin.message_user(request, f"Generated {generated} PDF(s).", level='success')
    if failed:
        model_admin.message_user(request, f"PDF generation failed for: {'; '.join(failed[:5])}", level='error')


class QuotationItemInline(admin.TabularInline):
    model = QuotationItem
    extra = 0
    fields = ['item_type', 'description', 'component', 'quantity', 'hours', 'hourly_rate', 'material_cost',
              'unit_price', 'discount_rate', 'total', 'sort_order']
    readonly_fields = ['total']
    autocomplete_fields = ['component']
    ordering = ['sort_order']


@admin.register(Quotation)
class QuotationAdmin(admin.ModelAdmin):
    list_display = ['number', 'title', 'customer', 'date', 'valid_until', 'status_display', 'total',
                    'pdf_generated_at']
    list_filter = ['status', 'date', 'customer']
    search_fields = ['number', 'title', 'description', 'customer__company_name']
    ordering = ['-date', '-incremental_id']
    date_hierarchy = 'date'
    readonly_fields = ['number', 'incremental_id', 'subtotal', 'discount_amount', 'tax_amount', 'total',
                       'pdf_path', 'pdf_generated_at', 'nextcloud_path', 'created_by', 'created_at', 'updated_at']
    autocomplete_fields = ['customer', 'projects']
    inlines = [QuotationItemInline]
    actions = ['recalculate_totals', 'generate_pdf', 'mark_accepted']

    fieldsets = (
        ('Quotation', {
            'fields': ('number', 'incremental_id', 'customer', 'projects', 'title', 'description', 'status')
        }),
        ('Dates', {
            'fields': ('date', 'valid_until')
        }),
        ('Totals', {
            'fields': ('boards_quantity', 'subtotal', 'discount_rate', 'discount_amount', 'tax_rate',
                       'tax_amount', 'total')
        }),
        ('Terms', {
            'fields': ('terms', 'notes')
        }),
        ('Documents', {
            'fields': ('pdf_path', 'pdf_generated_at', 'nextcloud_path'),
            'classes': ('collapse',),
        }),
        ('Meta', {
            'fields': ('created_by', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    STATUS_COLORS = {
        'draft': '#6c757d',
        'sent': '#17a2b8',
        'accepted': '#28a745',
        'rejected': '#dc3545',
        'expired': '#fd7e14',
    }

    def status_display(self, obj):
        if obj.is_expired:
            return status_badge('Expired', self.STATUS_COLORS['expired'])
        return status_badge(obj.get_status_display(), self.STATUS_COLORS.get(obj.status, '#6c757d'))
    status_display.short_description = 'Status'
    status_display.admin_order_field = 'status'

    def save_model(self, request, obj, form, change):
        if not change:
            obj.created_by = request.user
        super().save_model(request, obj, form, change)

    def save_related(self, request, form, formsets, change):
        previous_projects = list(form.instance.projects.all()) if change else []
        super().save_related(request, form, formsets, change)
        quotation = form.instance
        quotation.calculate_totals()
        quotation.refresh_project_figures(previous_projects)

    def delete_model(self, request, obj):
        linked_projects = list(obj.projects.all())
        super().delete_model(request, obj)
        refresh_projects(linked_projects)

    def delete_queryset(self, request, queryset):
        linked_projects = list(Project.objects.filter(quotations__in=queryset).distinct())
        super().delete_queryset(request, queryset)
        refresh_projects(linked_projects)

    def recalculate_totals(self, request, queryset):
        try:
            for quotation in queryset:
                for item in quotation.items.all():
                    item.calculate_total_by_type()
                    item.save()
                quotation.calculate_totals()
        except Exception as e:
            self.message_user(request, f"Error recalculating totals: {str(e)}", level='error')
            return
        self.message_user(request, f"Recalculated {queryset.count()} quotation(s).", level='success')
    recalculate_totals.short_description = "Recalculate totals"

    def generate_pdf(self, request, queryset):
        _generate_pdfs(self, request, queryset.select_related('customer'),
                       lambda service, q: service.generate_quotation_pdf(q), lambda q: q.number)
    generate_pdf.short_description = "Generate PDF"

    def mark_accepted(self, request, queryset):
        accepted = 0
        for quotation in queryset.exclude(status='accepted'):
            quotation.status = 'accepted'
            quotation.save(update_fields=['status', 'updated_at'])
            quotation.refresh_project_figures()
            accepted += 1
        self.message_user(request, f"Marked {accepted} quotation(s) as accepted and updated project budgets.",
                          level='success')
    mark_accepted.short_description = "Mark as accepted"


class InvoiceIssuedItemInline(admin.TabularInline):
    model = InvoiceIssuedItem
    extra = 0
    fields = ['description', 'component', 'quantity', 'unit_price', 'discount_percentage', 'tax_rate',
              'subtotal', 'tax_amount', 'total', 'sort_order']
    readonly_fields = ['subtotal', 'tax_amount', 'total']
    autocomplete_fields = ['component']
    ordering = ['sort_order']


@admin.register(InvoiceIssued)
class InvoiceIssuedAdmin(admin.ModelAdmin):
    list_display = ['invoice_number', 'type', 'customer', 'project', 'issue_date', 'due_date_display', 'total',
                    'amount_paid', 'payment_status_display', 'status']
    list_filter = ['status', 'payment_status', 'type', 'issue_date']
    search_fields = ['invoice_number', 'customer__company_name', 'project__code', 'notes']
    ordering = ['-issue_date', '-incremental_id']
    date_hierarchy = 'issue_date'
    readonly_fields = ['invoice_number', 'incremental_id', 'subtotal', 'tax_amount', 'total', 'amount_paid',
                       'payment_status', 'paid_at', 'nextcloud_path', 'pdf_generated_at', 'created_at',
                       'updated_at']
    autocomplete_fields = ['customer', 'project']
    inlines = [InvoiceIssuedItemInline]
    actions = ['mark_as_paid', 'generate_pdf']

    fieldsets = (
        ('Invoice', {
            'fields': ('invoice_number', 'incremental_id', 'type', 'customer', 'project', 'quotation',
                       'related_invoice', 'status')
        }),
        ('Payment terms', {
            'fields': ('issue_date', 'due_date', 'payment_term', 'payment_term_tranche')
        }),
        ('Totals', {
            'fields': ('subtotal', 'tax_rate', 'tax_amount', 'discount_amount', 'total')
        }),
        ('Payment', {
            'fields': ('amount_paid', 'payment_status', 'paid_at', 'payment_method')
        }),
        ('Documents', {
            'fields': ('nextcloud_path', 'pdf_generated_at', 'notes', 'created_at', 'updated_at'),
        }),
    )

    PAYMENT_COLORS = {
        'unpaid': '#dc3545',
        'partial': '#fd7e14',
        'paid': '#28a745',
    }

    def due_date_display(self, obj):
        if obj.due_date and obj.is_overdue:
            return status_badge(f"{obj.due_date} (overdue)", '#dc3545')
        return obj.due_date or '-'
    due_date_display.short_description = 'Due date'
    due_date_display.admin_order_field = 'due_date'

    def payment_status_display(self, obj):
        return status_badge(obj.get_payment_status_display(), self.PAYMENT_COLORS.get(obj.payment_status))
    payment_status_display.short_description = 'Payment'
    payment_status_display.admin_order_field = 'payment_status'

    def save_related(self, request, form, formsets, change):
        super().save_related(request, form, formsets, change)
        form.instance.calculate_totals()

    def has_delete_permission(self, request, obj=None):
        if obj is not None and not obj.can_be_deleted:
            return False
        return super().has_delete_permission(request, obj)

    def delete_queryset(self, request, queryset):
        blocked = queryset.exclude(status='draft')
        blocked_numbers = list(blocked.values_list('invoice_number', flat=True))
        for invoice in blocked:
            create_audit_log(
                request=request, action='delete_blocked', model_name='InvoiceIssued', object_id=invoice.pk,
                changes={'status': invoice.status}, object_reference=invoice.invoice_number,
            )
        queryset.filter(status='draft').delete()
        if blocked_numbers:
            self.message_user(request, f"Skipped non-draft invoices: {', '.join(blocked_numbers[:5])}",
                              level='warning')

    def mark_as_paid(self, request, queryset):
        paid = 0
        for invoice in queryset.exclude(payment_status='paid').exclude(status='cancelled'):
            try:
                invoice.mark_as_paid()
            except Exception as e:
                self.message_user(request, f"Error marking {invoice.invoice_number} as paid: {str(e)}",
                                  level='error')
                continue
            create_audit_log(
                request=request, action='invoice_paid', model_name='InvoiceIssued', object_id=invoice.pk,
                changes={'amount_paid': str(invoice.amount_paid)}, object_reference=invoice.invoice_number,
            )
            paid += 1
        self.message_user(request, f"Marked {paid} invoice(s) as paid.", level='success')
    mark_as_paid.short_description = "Mark as paid"

    def generate_pdf(self, request, queryset):
        _generate_pdfs(self, request, queryset.select_related('customer', 'project', 'payment_term'),
                       lambda service, i: service.generate_invoice_pdf(i), lambda i: i.invoice_number)
    generate_pdf.short_description = "Generate PDF"


@admin.register(CustomerContract)
class CustomerContractAdmin(admin.ModelAdmin):
    list_display = ['contract_number', 'title', 'customer', 'type', 'status', 'start_date', 'end_date',
                    'review_score_display', 'risk_display']
    list_filter = ['type', 'status', 'start_date']
    search_fields = ['contract_number', 'title', 'customer__company_name', 'terms']
    ordering = ['-created_at']
    readonly_fields = ['contract_number', 'nextcloud_path', 'pdf_generated_at', 'analysis_summary',
                       'ai_analysis_data', 'ai_extracted_parties', 'ai_risk_flags', 'ai_key_dates',
                       'ai_analyzed_at', 'ai_review_data', 'ai_review_score', 'ai_review_issues_count',
                       'ai_reviewed_at', 'created_at', 'updated_at']
    autocomplete_fields = ['customer']
    actions = ['analyze_with_ai', 'review_with_ai', 'apply_review_suggestions', 'generate_pdf']

    fieldsets = (
        ('Contract', {
            'fields': ('contract_number', 'customer', 'title', 'type', 'status')
        }),
        ('Value and dates', {
            'fields': ('contract_value', 'currency', 'start_date', 'end_date', 'signed_date')
        }),
        ('Terms', {
            'fields': ('terms', 'notes')
        }),
        ('AI analysis', {
            'fields': ('analysis_summary', 'ai_extracted_parties', 'ai_risk_flags', 'ai_key_dates',
                       'ai_analyzed_at', 'ai_analysis_data'),
            'classes': ('collapse',),
        }),
        ('AI review', {
            'fields': ('ai_review_score', 'ai_review_issues_count', 'ai_reviewed_at', 'ai_review_data'),
            'classes': ('collapse',),
        }),
        ('Documents', {
            'fields': ('nextcloud_path', 'pdf_generated_at', 'created_at', 'updated_at'),
        }),
    )

    def review_score_display(self, obj):
        if obj.ai_review_score is None:
            return '-'
        return status_badge(f"{obj.ai_review_score}/100", SCORE_COLORS[obj.review_score_color])
    review_score_display.short_description = 'Review score'
    review_score_display.admin_order_field = 'ai_review_score'

    def risk_display(self, obj):
        if obj.ai_risk_flags is None:
            return '-'
        counts = obj.risk_count_by_severity()
        label = f"{counts['high']}H / {counts['medium']}M / {counts['low']}L"
        return status_badge(label, '#dc3545' if obj.has_high_risk_flags else '#6c757d')
    risk_display.short_description = 'Risks'

    def analysis_summary(self, obj):
        return ContractAnalysisService.generate_analysis_summary(obj)
    analysis_summary.short_description = 'Analysis summary'

    def analyze_with_ai(self, request, queryset):
        try:
            service = ContractAnalysisService()
        except Exception as e:
            self.message_user(request, f"Error preparing contract analysis: {str(e)}", level='error')
            return

        analyzed = 0
        failed = []
        for contract in queryset.select_related('customer'):
            if not service.can_analyze(contract):
                failed.append(f"{contract.contract_number}: no PDF or terms")
                continue
            try:
                service.analyze(contract)
            except Exception as e:
                failed.append(f"{contract.contract_number}: {str(e)}")
                continue
            create_audit_log(
                request=request, action='contract_analyze', model_name='CustomerContract', object_id=contract.pk,
                changes={'risk_flags': len(contract.ai_risk_flags or [])},
                object_name=contract.title, object_reference=contract.contract_number,
            )
            analyzed += 1

        if analyzed:
            self.message_user(request, f"Analyzed {analyzed} contract(s).", level='success')
        if failed:
            self.message_user(request, f"Analysis failed for: {'; '.join(failed[:5])}", level='error')
    analyze_with_ai.short_description = "Analyze with AI"

    def review_with_ai(self, request, queryset):
        try:
            service = ContractReviewService()
        except Exception as e:
            self.message_user(request, f"Error preparing contract review: {str(e)}", level='error')
            return

        reviewed = 0
        failed = []
        for contract in queryset.select_related('customer'):
            try:
                service.review(contract)
            except Exception as e:
                failed.append(f"{contract.contract_number}: {str(e)}")
                continue
            create_audit_log(
                request=request, action='contract_review', model_name='CustomerContract', object_id=contract.pk,
                changes={'score': contract.ai_review_score, 'issues': contract.ai_review_issues_count},
                object_name=contract.title, object_reference=contract.contract_number,
            )
            reviewed += 1

        if reviewed:
            self.message_user(request, f"Reviewed {reviewed} contract(s).", level='success')
        if failed:
            self.message_user(request, f"Review failed for: {'; '.join(failed[:5])}", level='error')
    review_with_ai.short_description = "Review with AI"

    def apply_review_suggestions(self, request, queryset):
        service = ContractReviewService()
        applied = 0
        skipped = []
        for contract in queryset:
            if not contract.ai_review_data:
                skipped.append(contract.contract_number)
                continue
            terms = service.apply_suggestions(contract)
            if terms == contract.terms:
                skipped.append(contract.contract_number)
                continue
            contract.terms = terms
            contract.save(update_fields=['terms', 'updated_at'])
            create_audit_log(
                request=request, action='update', model_name='CustomerContract', object_id=contract.pk,
                changes={'terms': 'review suggestions applied'},
                object_name=contract.title, object_reference=contract.contract_number,
            )
            applied += 1

        if applied:
            self.message_user(request, f"Applied review suggestions to {applied} contract(s).", level='success')
        if skipped:
            self.message_user(request, f"Nothing to apply for: {', '.join(skipped[:5])}", level='warning')
    apply_review_suggestions.short_description = "Apply AI review suggestions to terms"

    def generate_pdf(self, request, queryset):
        _generate_pdfs(self, request, queryset.select_related('customer'),
                       lambda service, c: service.generate_contract_pdf(c), lambda c: c.contract_number)
    generate_pdf.short_description = "Generate PDF"
