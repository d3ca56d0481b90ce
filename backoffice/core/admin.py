from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User, CompanyProfile, AuditLog


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['username', 'email', 'first_name', 'last_name', 'hourly_rate', 'is_active', 'is_staff', 'date_joined']
    list_filter = ['is_active', 'is_staff', 'is_superuser', 'date_joined']
    search_fields = ['username', 'email', 'first_name', 'last_name']
    ordering = ['username']
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Additional Info', {'fields': ('phone', 'hourly_rate')}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Additional Info', {'fields': ('phone', 'hourly_rate')}),
    )


@admin.register(CompanyProfile)
class CompanyProfileAdmin(admin.ModelAdmin):
    list_display = ['company_name', 'vat_number', 'email', 'claude_enabled', 'updated_at']
    readonly_fields = ['updated_at']
    actions = ['test_ai_connection']

    fieldsets = (
        ('Company', {
            'fields': ('company_name', 'owner_name', 'owner_title', 'vat_number', 'tax_code', 'sdi_code')
        }),
        ('Legal Address', {
            'fields': ('legal_address', 'legal_city', 'legal_postal_code', 'legal_province', 'legal_country')
        }),
        ('Contacts & Bank', {
            'fields': ('email', 'pec', 'phone', 'website', 'iban', 'bic')
        }),
        ('Quotation Rates', {
            'fields': ('hourly_rate_design', 'hourly_rate_assembly', 'pcb_standard_cost', 'pcb_standard_quantity')
        }),
        ('AI', {
            'fields': ('claude_enabled', 'claude_api_key', 'claude_model', 'ollama_url', 'ollama_model',
                       'auto_generate_milestones'),
            'classes': ('collapse',),
        }),
        ('Other', {
            'fields': ('notes', 'updated_at')
        }),
    )

    def has_add_permission(self, request):
        # Single row, created on first access
        return not CompanyProfile.objects.exists()

    def has_delete_permission(self, request, obj=None):
        return False

    def test_ai_connection(self, request, queryset):
        """Admin action to check the configured AI provider"""
        from .ai_services import AiServiceFactory
        try:
            result = AiServiceFactory.make().test_connection()
            level = 'success' if result['success'] else 'error'
            self.message_user(request, result['message'], level=level)
        except Exception as e:
            self.message_user(request, f'AI connection test failed: {str(e)}', level='error')
    test_ai_connection.short_description = 'Test AI connection'


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['user', 'action', 'model_name', 'object_id', 'object_reference', 'ip_address', 'created_at']
    list_filter = ['action', 'model_name', 'created_at']
    search_fields = ['user__username', 'model_name', 'object_id', 'object_reference']
    ordering = ['-created_at']
    readonly_fields = ['user', 'action', 'model_name', 'object_id', 'object_name', 'object_reference',
                       'changes', 'ip_address', 'created_at']
