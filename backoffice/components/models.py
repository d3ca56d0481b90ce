from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import timezone
from datetime import timedelta
from decimal import Decimal

from backoffice.core.utils import add_months


class Category(models.Model):
    """Component categories (resistors, capacitors, ICs, ...)"""
    name = models.CharField(max_length=200, db_index=True)
    parent = models.ForeignKey('self', on_delete=models.SET_NULL, null=True, blank=True, related_name='children')
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'component_categories'
        verbose_name_plural = 'categories'
        ordering = ['name']


class Component(models.Model):
    """Electronic component kept in stock"""
    MOUNTING_TYPE_CHOICES = [
        ('smd', 'SMD'),
        ('through_hole', 'Through Hole'),
    ]
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('discontinued', 'Discontinued'),
        ('obsolete', 'Obsolete'),
    ]

    sku = models.CharField(max_length=100, unique=True, db_index=True)
    manufacturer_part_number = models.CharField(max_length=100, blank=True, db_index=True)
    name = models.CharField(max_length=255, db_index=True)
    description = models.TextField(blank=True)
    category = models.ForeignKey(Category, on_delete=models.SET_NULL, null=True, blank=True, related_name='components')
    manufacturer = models.CharField(max_length=150, blank=True)
    package = models.CharField(max_length=100, blank=True)
    specifications = models.JSONField(default=dict, blank=True)

    # Technical specs
    value = models.CharField(max_length=50, blank=True, help_text="e.g. 10k, 100nF")
    tolerance = models.CharField(max_length=20, blank=True)
    voltage_rating = models.CharField(max_length=30, blank=True)
    current_rating = models.CharField(max_length=30, blank=True)
    power_rating = models.CharField(max_length=30, blank=True)
    package_type = models.CharField(max_length=50, blank=True, help_text="e.g. 0603, SOIC-8")
    mounting_type = models.CharField(max_length=20, choices=MOUNTING_TYPE_CHOICES, blank=True)
    case_style = models.CharField(max_length=50, blank=True)
    dielectric = models.CharField(max_length=20, blank=True)
    temperature_coefficient = models.CharField(max_length=30, blank=True)
    operating_temperature = models.CharField(max_length=50, blank=True)
    technical_attributes = models.JSONField(default=dict, blank=True)

    # Purchasing
    unit_price = models.DecimalField(max_digits=10, decimal_places=4, default=Decimal('0.0000'))
    currency = models.CharField(max_length=3, default='EUR')
    supplier = models.CharField(max_length=150, blank=True)
    invoice_reference = models.CharField(max_length=100, blank=True)
    purchase_date = models.DateField(null=True, blank=True)
    supplier_links = models.JSONField(default=list, blank=True)
    datasheet_url = models.URLField(max_length=500, blank=True)

    # Stock
    stock_quantity = models.IntegerField(default=0)
    min_stock_level = models.IntegerField(default=0)
    reorder_quantity = models.IntegerField(default=0)
    storage_location = models.CharField(max_length=100, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active', db_index=True)

    # ArUco marker
    aruco_code = models.CharField(max_length=20, unique=True, null=True, blank=True)
    aruco_image_path = models.CharField(max_length=255, blank=True)
    aruco_generated_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.sku})"

    @property
    def is_low_stock(self):
        return self.stock_quantity <= self.min_stock_level

    @property
    def needs_reorder(self):
        return self.is_low_stock and self.reorder_quantity > 0

    @property
    def total_value(self):
        return (Decimal(self.stock_quantity) * self.unit_price).quantize(Decimal('0.01'))

    def reference_counts(self):
        """Rows in other tables that point at this component, keyed by relation"""
        return {
            'inventory_movements': self.inventory_movements.count(),
            'project_bom_items': self.bom_items.count(),
            'quotation_items': self.quotation_items.count(),
            'component_alternatives': (
                ComponentAlternative.objects.filter(
                    models.Q(original_component=self) | models.Q(alternative_component=self)
                ).count()
            ),
            'certifications': self.certifications.count(),
        }

    class Meta:
        db_table = 'components'
        ordering = ['name']


class ComponentLifecycleStatus(models.Model):
    """Manufacturer lifecycle stage of a component (EOL tracking)"""
    STAGE_CHOICES = [
        ('active', 'Active'),
        ('nrnd', 'Not Recommended for New Designs'),
        ('eol_announced', 'EOL Announced'),
        ('eol', 'End of Life'),
        ('obsolete', 'Obsolete'),
    ]

    component = models.OneToOneField(Component, on_delete=models.CASCADE, related_name='lifecycle_status')
    lifecycle_stage = models.CharField(max_length=20, choices=STAGE_CHOICES, default='active', db_index=True)
    eol_announcement_date = models.DateField(null=True, blank=True)
    eol_date = models.DateField(null=True, blank=True)
    last_time_buy_date = models.DateField(null=True, blank=True)
    eol_reason = models.TextField(blank=True)
    manufacturer_notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.component.name} - {self.get_lifecycle_stage_display()}"

    @property
    def days_until_eol(self):
        if not self.eol_date:
            return None
        return (self.eol_date - timezone.localdate()).days

    @property
    def urgency_level(self):
        today = timezone.localdate()
        if self.lifecycle_stage in ('obsolete', 'eol'):
            return 'critical'
        if self.eol_date and self.eol_date < today:
            return 'critical'
        if self.lifecycle_stage == 'eol_announced':
            if self.eol_date and self.eol_date < add_months(today, 6):
                return 'high'
            return 'medium'
        if self.lifecycle_stage == 'nrnd':
            return 'medium'
        return 'low'

    @property
    def is_at_risk(self):
        return self.urgency_level in ('medium', 'high', 'critical')

    class Meta:
        db_table = 'component_lifecycle_statuses'
        verbose_name = 'component lifecycle status'
        verbose_name_plural = 'component lifecycle statuses'


class ComponentAlternative(models.Model):
    """A replacement candidate for a component, with a compatibility score in [0, 1]"""
    ALTERNATIVE_TYPE_CHOICES = [
        ('direct_replacement', 'Direct Replacement'),
        ('functional_equivalent', 'Functional Equivalent'),
        ('pin_compatible', 'Pin Compatible'),
        ('form_factor_compatible', 'Form Factor Compatible'),
    ]

    original_component = models.ForeignKey(Component, on_delete=models.CASCADE, related_name='alternatives')
    alternative_component = models.ForeignKey(Component, on_delete=models.CASCADE, related_name='alternative_for')
    alternative_type = models.CharField(max_length=30, choices=ALTERNATIVE_TYPE_CHOICES, default='functional_equivalent')
    compatibility_score = models.DecimalField(
        max_digits=3, decimal_places=2, default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00')), MaxValueValidator(Decimal('1.00'))]
    )
    compatibility_notes = models.TextField(blank=True)
    price_difference = models.DecimalField(max_digits=10, decimal_places=4, null=True, blank=True)
    is_recommended = models.BooleanField(default=False)
    verified_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                    related_name='verified_alternatives')
    verified_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.original_component.sku} -> {self.alternative_component.sku}"

    def clean(self):
        if self.original_component_id and self.original_component_id == self.alternative_component_id:
            raise ValidationError({'alternative_component': 'A component cannot be an alternative to itself.'})
        if self.compatibility_score is not None and not (Decimal('0') <= Decimal(self.compatibility_score) <= Decimal('1')):
            raise ValidationError({'compatibility_score': 'Compatibility score must be between 0 and 1.'})

    @property
    def compatibility_level(self):
        score = Decimal(self.compatibility_score or 0)
        if score >= Decimal('0.95'):
            return 'Excellent'
        if score >= Decimal('0.85'):
            return 'Good'
        if score >= Decimal('0.70'):
            return 'Fair'
        return 'Poor'

    @property
    def compatibility_percentage(self):
        return int(Decimal(self.compatibility_score or 0) * 100)

    class Meta:
        db_table = 'component_alternatives'
        ordering = ['-compatibility_score']
        constraints = [
            models.UniqueConstraint(fields=['original_component', 'alternative_component'],
                                    name='unique_component_alternative'),
        ]


class CertificationQuerySet(models.QuerySet):
    def valid(self):
        today = timezone.localdate()
        return self.filter(status='valid').filter(models.Q(expiry_date__isnull=True) | models.Q(expiry_date__gt=today))

    def expiring_soon(self, days=90):
        today = timezone.localdate()
        return self.filter(status='valid', expiry_date__gt=today,
                           expiry_date__lte=today + timedelta(days=days))

    def ce_relevant(self):
        return self.filter(certification_type__in=['CE', 'EMC', 'LVD', 'RoHS', 'REACH'])


class ComponentCertification(models.Model):
    """Compliance certificate (CE, RoHS, ...) held for a component"""
    CERTIFICATION_TYPE_CHOICES = [
        ('CE', 'CE Marking'),
        ('EMC', 'Electromagnetic Compatibility'),
        ('LVD', 'Low Voltage Directive'),
        ('RoHS', 'RoHS'),
        ('REACH', 'REACH'),
        ('RED', 'Radio Equipment Directive'),
        ('MD', 'Machinery Directive'),
        ('PED', 'Pressure Equipment Directive'),
        ('other', 'Other'),
    ]
    STATUS_CHOICES = [
        ('valid', 'Valid'),
        ('expired', 'Expired'),
        ('pending', 'Pending'),
        ('revoked', 'Revoked'),
    ]

    component = models.ForeignKey(Component, on_delete=models.CASCADE, related_name='certifications')
    certification_type = models.CharField(max_length=10, choices=CERTIFICATION_TYPE_CHOICES, db_index=True)
    certificate_number = models.CharField(max_length=100, blank=True)
    issuing_authority = models.CharField(max_length=200, blank=True)
    issue_date = models.DateField(null=True, blank=True)
    expiry_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='valid', db_index=True)
    scope = models.TextField(blank=True)
    test_standards = models.JSONField(default=list, blank=True)
    certificate_file = models.FileField(upload_to='certifications/', blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CertificationQuerySet.as_manager()

    def __str__(self):
        return f"{self.component.sku} - {self.certification_type}"

    @property
    def days_until_expiry(self):
        if not self.expiry_date:
            return None
        return (self.expiry_date - timezone.localdate()).days

    def is_expiring_soon(self, days=90):
        remaining = self.days_until_expiry
        return remaining is not None and 0 < remaining <= days

    @property
    def is_valid(self):
        if self.status != 'valid':
            return False
        return self.expiry_date is None or self.expiry_date > timezone.localdate()

    class Meta:
        db_table = 'component_certifications'
        ordering = ['expiry_date']


class AlertQuerySet(models.QuerySet):
    def unacknowledged(self):
        return self.filter(acknowledged_at__isnull=True)

    def unresolved(self):
        return self.filter(is_resolved=False)

    def critical(self):
        return self.filter(severity__in=['high', 'critical'])


class ObsolescenceAlert(models.Model):
    """Alert raised when a component approaches or reaches end of life"""
    ALERT_TYPE_CHOICES = [
        ('eol_warning', 'EOL Warning'),
        ('eol_imminent', 'EOL Imminent'),
        ('last_time_buy', 'Last Time Buy'),
        ('obsolete', 'Obsolete'),
    ]
    SEVERITY_CHOICES = [
        ('low', 'Low'),
        ('medium', 'Medium'),
        ('high', 'High'),
        ('critical', 'Critical'),
    ]

    component = models.ForeignKey(Component, on_delete=models.CASCADE, related_name='obsolescence_alerts')
    alert_type = models.CharField(max_length=20, choices=ALERT_TYPE_CHOICES, db_index=True)
    severity = models.CharField(max_length=10, choices=SEVERITY_CHOICES, default='medium', db_index=True)
    title = models.CharField(max_length=255)
    message = models.TextField(blank=True)
    affected_projects = models.JSONField(default=list, blank=True)
    alert_date = models.DateTimeField(default=timezone.now)
    acknowledged_at = models.DateTimeField(null=True, blank=True)
    acknowledged_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                        related_name='acknowledged_alerts')
    is_resolved = models.BooleanField(default=False, db_index=True)
    resolved_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = AlertQuerySet.as_manager()

    def __str__(self):
        return self.title

    @property
    def is_acknowledged(self):
        return self.acknowledged_at is not None

    def acknowledge(self, user=None):
        self.acknowledged_at = timezone.now()
        self.acknowledged_by = user if user and user.is_authenticated else None
        self.save(update_fields=['acknowledged_at', 'acknowledged_by', 'updated_at'])

    def resolve(self, user=None):
        if not self.acknowledged_at:
            self.acknowledged_at = timezone.now()
            self.acknowledged_by = user if user and user.is_authenticated else None
        self.is_resolved = True
        self.resolved_at = timezone.now()
        self.save(update_fields=['acknowledged_at', 'acknowledged_by', 'is_resolved', 'resolved_at', 'updated_at'])

    class Meta:
        db_table = 'obsolescence_alerts'
        ordering = ['-alert_date']
