from django.contrib.auth.models import AbstractUser
from django.db import models
from decimal import Decimal


class User(AbstractUser):
    """Extended user model with additional fields"""
    phone = models.CharField(max_length=20, blank=True, null=True)
    hourly_rate = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal('0.00'),
                                      help_text="Default rate used for new time entries")
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'users'


class CompanyProfile(models.Model):
    """Company identity, quotation rates and AI credentials (single row)"""
    company_name = models.CharField(max_length=255, blank=True)
    owner_name = models.CharField(max_length=255, blank=True)
    owner_title = models.CharField(max_length=100, blank=True)
    vat_number = models.CharField(max_length=30, blank=True)
    tax_code = models.CharField(max_length=30, blank=True)
    sdi_code = models.CharField(max_length=10, blank=True)
    legal_address = models.CharField(max_length=255, blank=True)
    legal_city = models.CharField(max_length=100, blank=True)
    legal_postal_code = models.CharField(max_length=10, blank=True)
    legal_province = models.CharField(max_length=5, blank=True)
    legal_country = models.CharField(max_length=100, blank=True, default='Italia')
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=30, blank=True)
    website = models.URLField(blank=True)
    pec = models.EmailField(blank=True)
    iban = models.CharField(max_length=34, blank=True)
    bic = models.CharField(max_length=11, blank=True)

    # AI providers
    claude_api_key = models.CharField(max_length=255, blank=True)
    claude_model = models.CharField(max_length=100, blank=True, default='claude-3-5-sonnet-latest')
    claude_enabled = models.BooleanField(default=False)
    ollama_url = models.CharField(max_length=255, blank=True)
    ollama_model = models.CharField(max_length=100, blank=True)
    auto_generate_milestones = models.BooleanField(default=False)

    # Quotation defaults
    hourly_rate_design = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal('50.00'))
    hourly_rate_assembly = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal('50.00'))
    pcb_standard_cost = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal('200.00'))
    pcb_standard_quantity = models.PositiveIntegerField(default=5)

    notes = models.TextField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.company_name or 'Company Profile'

    @classmethod
    def current(cls):
        """Return the single profile row, creating it on first access"""
        profile, _ = cls.objects.get_or_create(pk=1)
        return profile

    def is_claude_enabled(self):
        return self.claude_enabled and bool(self.claude_api_key)

    @property
    def formatted_address(self):
        city_line = ' '.join(p for p in [self.legal_postal_code, self.legal_city] if p)
        if self.legal_province:
            city_line = f"{city_line} ({self.legal_province})"
        parts = [self.legal_address, city_line, self.legal_country]
        return ', '.join(p for p in parts if p)

    class Meta:
        db_table = 'company_profiles'
        verbose_name = 'Company Profile'
        verbose_name_plural = 'Company Profile'


class AuditLog(models.Model):
    """Audit log for critical operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('delete_blocked', 'Delete Blocked'),
        ('stock_movement', 'Stock Movement'),
        ('aruco_generate', 'ArUco Generated'),
        ('alert_acknowledge', 'Alert Acknowledged'),
        ('alert_resolve', 'Alert Resolved'),
        ('invoice_paid', 'Invoice Paid'),
        ('pdf_generate', 'PDF Generated'),
        ('contract_analyze', 'Contract Analyzed'),
        ('contract_review', 'Contract Reviewed'),
        ('time_submit', 'Time Entry Submitted'),
        ('time_approve', 'Time Entry Approved'),
        ('time_reject', 'Time Entry Rejected'),
        ('pcb_upload', 'PCB File Uploaded'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., component name, invoice number)")
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., SKU, invoice number, contract number)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_logs_created_b1e3f0_idx'),
            models.Index(fields=['action'], name='audit_logs_action_5c2d7a_idx'),
            models.Index(fields=['model_name'], name='audit_logs_model_n_8e4b1c_idx'),
            models.Index(fields=['object_reference'], name='audit_logs_object__2f9a6d_idx'),
        ]
