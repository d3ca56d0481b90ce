from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models, transaction
from decimal import Decimal


class CustomerType(models.Model):
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    color = models.CharField(max_length=20, blank=True, default='gray')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'customer_types'
        ordering = ['name']


class PaymentTerm(models.Model):
    """Payment conditions, either a plain number of days or a set of tranches"""
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    days = models.PositiveIntegerField(default=30)
    discount_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    discount_days = models.PositiveIntegerField(null=True, blank=True)
    active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    @property
    def has_tranches(self):
        return self.tranches.exists()

    @property
    def tranches_display(self):
        """'30/70' for tranche terms, '{days} giorni' otherwise"""
        tranches = list(self.tranches.all())
        if not tranches:
            return f"{self.days} giorni"
        return '/'.join(f"{t.percentage:.0f}" for t in tranches)

    @property
    def full_description(self):
        tranches = list(self.tranches.all())
        if not tranches:
            return f"{self.name} - {self.days} giorni"
        return f"{self.name}: {', '.join(t.full_description for t in tranches)}"

    def tranches_total(self):
        return sum((t.percentage for t in self.tranches.all()), Decimal('0'))

    def validate_tranches(self):
        if self.tranches.exists():
            total = self.tranches_total()
            if total != Decimal('100'):
                raise ValidationError(f"Tranche percentages must sum to 100% (current total: {total}%)")

    class Meta:
        db_table = 'payment_terms'
        ordering = ['name']


class PaymentTermTranche(models.Model):
    TRIGGER_EVENT_CHOICES = [
        ('contract', 'Alla firma del contratto'),
        ('delivery', 'Alla consegna'),
        ('completion', 'A completamento'),
        ('custom', 'Personalizzato'),
    ]
    TRIGGER_LABELS = {
        'delivery': 'alla consegna',
        'completion': 'a completamento',
        'custom': 'personalizzato',
    }

    payment_term = models.ForeignKey(PaymentTerm, on_delete=models.CASCADE, related_name='tranches')
    name = models.CharField(max_length=100)
    percentage = models.DecimalField(
        max_digits=5, decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01')), MaxValueValidator(Decimal('100.00'))]
    )
    days_offset = models.PositiveIntegerField(default=0)
    trigger_event = models.CharField(max_length=20, choices=TRIGGER_EVENT_CHOICES, default='contract')
    sort_order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.full_description

    @property
    def percentage_display(self):
        return f"{self.percentage:.0f}%"

    @property
    def full_description(self):
        desc = f"{self.name} ({self.percentage_display})"
        if self.days_offset > 0:
            desc += f" - {self.days_offset} giorni"
        if self.trigger_event != 'contract':
            desc += f" ({self.TRIGGER_LABELS.get(self.trigger_event, self.trigger_event)})"
        return desc

    class Meta:
        db_table = 'payment_term_tranches'
        ordering = ['sort_order', 'id']


class Customer(models.Model):
    code = models.CharField(max_length=20, unique=True, db_index=True, blank=True)
    company_name = models.CharField(max_length=255, db_index=True)
    customer_type = models.ForeignKey(CustomerType, on_delete=models.SET_NULL, null=True, blank=True,
                                      related_name='customers')
    payment_term = models.ForeignKey(PaymentTerm, on_delete=models.SET_NULL, null=True, blank=True,
                                     related_name='customers')
    vat_number = models.CharField(max_length=30, blank=True)
    tax_code = models.CharField(max_length=30, blank=True)
    sdi_code = models.CharField(max_length=10, blank=True)
    email = models.EmailField(blank=True)
    pec_email = models.EmailField(blank=True)
    phone = models.CharField(max_length=30, blank=True)
    mobile = models.CharField(max_length=30, blank=True)
    address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    postal_code = models.CharField(max_length=10, blank=True)
    province = models.CharField(max_length=5, blank=True)
    country = models.CharField(max_length=100, blank=True, default='Italia')

    # Billing
    billing_email = models.EmailField(blank=True)
    billing_contact_name = models.CharField(max_length=255, blank=True)
    billing_phone = models.CharField(max_length=30, blank=True)
    credit_limit = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    current_balance = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    notes = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    nextcloud_folder_created = models.BooleanField(default=False)
    nextcloud_base_path = models.CharField(max_length=500, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.code} - {self.company_name}"

    @classmethod
    def generate_next_code(cls):
        last = cls.objects.order_by('-id').only('code').first()
        next_number = 1
        if last and last.code[1:].isdigit():
            next_number = int(last.code[1:]) + 1
        return f"C{next_number:06d}"

    def save(self, *args, **kwargs):
        if not self.code:
            with transaction.atomic():
                self.code = self.generate_next_code()
                super().save(*args, **kwargs)
            return
        super().save(*args, **kwargs)

    def reference_counts(self):
        """Documents that keep this customer from being deleted, keyed by relation"""
        return {
            'projects': self.projects.count(),
            'quotations': self.quotations.count(),
            'invoices': self.invoices_issued.count(),
            'contracts': self.contracts.count(),
        }

    @property
    def full_address(self):
        parts = [self.address, self.postal_code, self.city, self.province, self.country]
        return ', '.join(p for p in parts if p)

    class Meta:
        db_table = 'customers'
        ordering = ['company_name']
