from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models, transaction
from django.db.models import Max
from django.utils import timezone
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP
import logging

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal('0.01')
FOUR_PLACES = Decimal('0.0001')
DEFAULT_TAX_RATE = Decimal('22.00')
# Quotation numbering resumes after the last paper quotation
QUOTATION_NUMBER_START = 6
QUOTATION_VALIDITY_DAYS = 30


def money(value):
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def refresh_projects(projects):
    for project in projects:
        project.calculate_budget_from_quotations()
        project.calculate_total_boards_ordered()


class Quotation(models.Model):
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('sent', 'Sent'),
        ('accepted', 'Accepted'),
        ('rejected', 'Rejected'),
        ('expired', 'Expired'),
    ]
    EDITABLE_STATUSES = ('draft', 'rejected')

    number = models.CharField(max_length=20, unique=True, db_index=True, blank=True)
    incremental_id = models.PositiveIntegerField(null=True, blank=True, db_index=True)
    customer = models.ForeignKey('parties.Customer', on_delete=models.PROTECT, related_name='quotations')
    projects = models.ManyToManyField('projects.Project', related_name='quotations', blank=True)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    date = models.DateField(default=timezone.localdate)
    valid_until = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft', db_index=True)
    boards_quantity = models.PositiveIntegerField(default=0, help_text="Boards ordered when accepted")

    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    discount_rate = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('100'))]
    )
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=DEFAULT_TAX_RATE)
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    notes = models.TextField(blank=True)
    terms = models.TextField(blank=True)
    pdf_path = models.CharField(max_length=500, blank=True)
    pdf_generated_at = models.DateTimeField(null=True, blank=True)
    nextcloud_path = models.CharField(max_length=500, blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='quotations')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.number} - {self.title}"

    @classmethod
    def next_incremental_id(cls):
        last = cls.objects.aggregate(last=Max('incremental_id'))['last']
        return (last or QUOTATION_NUMBER_START) + 1

    def assign_number(self):
        self.incremental_id = self.next_incremental_id()
        self.number = f"{self.incremental_id:03d}-{self.date:%y}"

    def save(self, *args, **kwargs):
        if not self.valid_until and self.date:
            self.valid_until = self.date + timedelta(days=QUOTATION_VALIDITY_DAYS)
        if not self.number:
            with transaction.atomic():
                self.assign_number()
                super().save(*args, **kwargs)
            return
        super().save(*args, **kwargs)

    def calculate_totals(self):
        """Recompute subtotal, discount, tax and total from the items and save"""
        self.subtotal = money(sum((item.total for item in self.items.all()), Decimal('0')))
        self.discount_amount = money(self.subtotal * self.discount_rate / 100)
        taxable = self.subtotal - self.discount_amount
        tax_rate = self.tax_rate if self.tax_rate is not None else DEFAULT_TAX_RATE
        self.tax_amount = money(taxable * tax_rate / 100)
        self.total = money(taxable + self.tax_amount)
        if self.pk:
            self.save(update_fields=['subtotal', 'discount_amount', 'tax_amount', 'total', 'updated_at'])
        return self.total

    def refresh_project_figures(self, extra_projects=()):
        """Recalculate budget and boards of the linked projects, plus any that were just unlinked"""
        projects = {project.pk: project for project in extra_projects}
        projects.update((project.pk, project) for project in self.projects.all())
        refresh_projects(projects.values())

    @property
    def can_be_edited(self):
        return self.status in self.EDITABLE_STATUSES

    @property
    def is_expired(self):
        return (self.status == 'sent' and self.valid_until is not None
                and self.valid_until < timezone.localdate())

    class Meta:
        db_table = 'quotations'
        ordering = ['-date', '-incremental_id']


class QuotationItem(models.Model):
    ITEM_TYPE_CHOICES = [
        ('design', 'Electronic design'),
        ('electronics_materials', 'Electronics materials'),
        ('pcb_production', 'PCB production'),
        ('assembly', 'Assembly'),
        ('housing_design', 'Housing design'),
        ('housing_production', 'Housing production'),
        ('housing_materials', 'Housing materials'),
        ('custom', 'Custom'),
    ]
    HOURLY_TYPES = ('design', 'assembly', 'housing_design')
    MATERIAL_TYPES = ('electronics_materials', 'housing_materials')
    DEFAULT_DESCRIPTIONS = {
        'design': 'Electronic design and schematic capture',
        'electronics_materials': 'Electronic components and materials',
        'assembly': 'Board assembly',
        'housing_design': 'Housing design',
        'housing_production': 'Housing production',
        'housing_materials': 'Housing materials',
    }

    quotation = models.ForeignKey(Quotation, on_delete=models.CASCADE, related_name='items')
    item_type = models.CharField(max_length=30, choices=ITEM_TYPE_CHOICES, default='custom')
    description = models.TextField(blank=True)
    component = models.ForeignKey('components.Component', on_delete=models.PROTECT, null=True, blank=True,
                                  related_name='quotation_items')
    quantity = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('1.00'))
    hours = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    hourly_rate = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    material_cost = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    unit_price = models.DecimalField(max_digits=12, decimal_places=4, default=Decimal('0.0000'))
    discount_rate = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('100'))]
    )
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    sort_order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.get_item_type_display()}: {self.description[:50]}"

    def populate_by_item_type(self, profile=None):
        """Fill missing rates, descriptions and PCB prices from the company profile"""
        from backoffice.core.models import CompanyProfile

        profile = profile or CompanyProfile.current()
        if self.item_type in ('design', 'housing_design') and self.hourly_rate is None:
            self.hourly_rate = profile.hourly_rate_design
        elif self.item_type == 'assembly' and self.hourly_rate is None:
            self.hourly_rate = profile.hourly_rate_assembly
        elif self.item_type == 'pcb_production':
            if not self.unit_price:
                self.unit_price = profile.pcb_standard_cost
            if not self.description:
                self.description = f"PCB production + shipping ({profile.pcb_standard_quantity} boards)"

        if not self.description:
            self.description = self.DEFAULT_DESCRIPTIONS.get(self.item_type, '')

    def calculate_total_by_type(self, profile=None):
        if self.item_type in self.HOURLY_TYPES:
            gross = (self.hours or Decimal('0')) * (self.hourly_rate or Decimal('0'))
        elif self.item_type in self.MATERIAL_TYPES:
            gross = self.material_cost or Decimal('0')
        elif self.item_type == 'pcb_production':
            from backoffice.core.models import CompanyProfile

            profile = profile or CompanyProfile.current()
            gross = profile.pcb_standard_cost * self.quantity
        else:
            gross = self.quantity * self.unit_price

        self.discount_amount = money(gross * (self.discount_rate or Decimal('0')) / 100)
        self.total = money(gross - self.discount_amount)
        if self.quantity:
            self.unit_price = (self.total / self.quantity).quantize(FOUR_PLACES, rounding=ROUND_HALF_UP)
        return self.total

    def save(self, *args, **kwargs):
        if not self.pk:
            self.populate_by_item_type()
        self.calculate_total_by_type()
        super().save(*args, **kwargs)
        self.quotation.calculate_totals()

    def delete(self, *args, **kwargs):
        quotation = self.quotation
        result = super().delete(*args, **kwargs)
        quotation.calculate_totals()
        return result

    class Meta:
        db_table = 'quotation_items'
        ordering = ['sort_order', 'id']


class InvoiceIssued(models.Model):
    TYPE_CHOICES = [
        ('standard', 'Standard'),
        ('advance_payment', 'Advance payment'),
        ('balance', 'Balance'),
        ('credit_note', 'Credit note'),
    ]
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('sent', 'Sent'),
        ('paid', 'Paid'),
        ('overdue', 'Overdue'),
        ('cancelled', 'Cancelled'),
    ]
    PAYMENT_STATUS_CHOICES = [
        ('unpaid', 'Unpaid'),
        ('partial', 'Partially paid'),
        ('paid', 'Paid'),
    ]
    PAYMENT_METHOD_CHOICES = [
        ('bank_transfer', 'Bank transfer'),
        ('cash', 'Cash'),
        ('card', 'Card'),
        ('riba', 'RiBa'),
        ('other', 'Other'),
    ]

    invoice_number = models.CharField(max_length=30, unique=True, db_index=True, blank=True)
    incremental_id = models.PositiveIntegerField(null=True, blank=True)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='standard')
    customer = models.ForeignKey('parties.Customer', on_delete=models.PROTECT, related_name='invoices_issued')
    project = models.ForeignKey('projects.Project', on_delete=models.SET_NULL, null=True, blank=True,
                                related_name='invoices_issued')
    quotation = models.ForeignKey(Quotation, on_delete=models.SET_NULL, null=True, blank=True,
                                  related_name='invoices')
    payment_term = models.ForeignKey('parties.PaymentTerm', on_delete=models.SET_NULL, null=True, blank=True,
                                     related_name='invoices_issued')
    payment_term_tranche = models.ForeignKey('parties.PaymentTermTranche', on_delete=models.SET_NULL,
                                             null=True, blank=True, related_name='invoices_issued')
    related_invoice = models.ForeignKey('self', on_delete=models.SET_NULL, null=True, blank=True,
                                        related_name='related_invoices',
                                        help_text="Advance invoice settled by a balance, or the credited invoice")
    issue_date = models.DateField(default=timezone.localdate)
    due_date = models.DateField(null=True, blank=True)

    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=DEFAULT_TAX_RATE)
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    amount_paid = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft', db_index=True)
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default='unpaid',
                                      db_index=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, blank=True)
    notes = models.TextField(blank=True)
    nextcloud_path = models.CharField(max_length=500, blank=True)
    pdf_generated_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.invoice_number

    def assign_number(self):
        year = self.issue_date.year
        last = (InvoiceIssued.objects.filter(issue_date__year=year)
                .aggregate(last=Max('incremental_id'))['last'])
        self.incremental_id = (last or 0) + 1
        self.invoice_number = f"INV-{year}-{self.incremental_id:04d}"

    def save(self, *args, **kwargs):
        if not self.payment_term_id and self.customer_id and self.customer.payment_term_id:
            self.payment_term_id = self.customer.payment_term_id
        if not self.due_date and self.issue_date:
            days = self.payment_term.days if self.payment_term else 0
            if self.payment_term_tranche:
                days = self.payment_term_tranche.days_offset
            self.due_date = self.issue_date + timedelta(days=days)
        if not self.invoice_number:
            with transaction.atomic():
                self.assign_number()
                super().save(*args, **kwargs)
            return
        super().save(*args, **kwargs)

    def calculate_totals(self):
        """Sum the items, subtract the invoice-level discount and save"""
        items = list(self.items.all())
        self.subtotal = money(sum((i.subtotal for i in items), Decimal('0')))
        self.tax_amount = money(sum((i.tax_amount for i in items), Decimal('0')))
        gross = sum((i.total for i in items), Decimal('0'))
        self.total = money(gross - (self.discount_amount or Decimal('0')))
        if self.pk:
            self.save(update_fields=['subtotal', 'tax_amount', 'total', 'updated_at'])
        return self.total

    def mark_as_paid(self, amount=None, method=None):
        """Record a payment; an amount below the total leaves the invoice partially paid"""
        amount = self.total if amount is None else money(amount)
        self.amount_paid = amount
        if method:
            self.payment_method = method
        if amount < self.total:
            self.payment_status = 'partial'
        else:
            self.payment_status = 'paid'
            self.status = 'paid'
            self.paid_at = timezone.now()
        self.save(update_fields=['amount_paid', 'payment_method', 'payment_status', 'status', 'paid_at',
                                 'updated_at'])
        logger.info(f"Invoice {self.invoice_number} payment recorded: {amount} ({self.payment_status})")

    @property
    def is_overdue(self):
        return (self.due_date is not None and self.due_date < timezone.localdate()
                and self.payment_status != 'paid')

    @property
    def remaining_amount(self):
        return money(self.total - self.amount_paid)

    @property
    def can_be_deleted(self):
        return self.status == 'draft'

    def calculate_tranche_amount(self, base_amount):
        if not self.payment_term_tranche:
            return money(base_amount)
        return money(Decimal(base_amount) * self.payment_term_tranche.percentage / 100)

    def are_all_tranches_invoiced(self):
        """True when every tranche of the payment term has its own invoice for this project/quotation"""
        if not self.payment_term:
            return False
        expected = self.payment_term.tranches.count()
        if expected == 0:
            return False

        invoices = InvoiceIssued.objects.filter(
            payment_term_tranche__payment_term=self.payment_term
        ).exclude(status='cancelled')
        if self.project_id:
            invoices = invoices.filter(project_id=self.project_id)
        elif self.quotation_id:
            invoices = invoices.filter(quotation_id=self.quotation_id)
        else:
            invoices = invoices.filter(pk=self.pk)
        invoiced = invoices.order_by().values('payment_term_tranche').distinct().count()
        return invoiced >= expected

    class Meta:
        db_table = 'invoices_issued'
        ordering = ['-issue_date', '-incremental_id']
        verbose_name = 'Issued invoice'
        indexes = [
            models.Index(fields=['customer', 'issue_date'], name='invoices_is_custome_3e8b2f_idx'),
            models.Index(fields=['due_date'], name='invoices_is_due_dat_7a1c4d_idx'),
        ]


class InvoiceIssuedItem(models.Model):
    invoice = models.ForeignKey(InvoiceIssued, on_delete=models.CASCADE, related_name='items')
    description = models.CharField(max_length=500)
    component = models.ForeignKey('components.Component', on_delete=models.SET_NULL, null=True, blank=True,
                                  related_name='invoice_items')
    quantity = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('1.00'))
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    discount_percentage = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('100'))]
    )
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=DEFAULT_TAX_RATE)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    sort_order = models.PositiveIntegerField(default=0)

    def __str__(self):
        return f"{self.invoice.invoice_number}: {self.description[:50]}"

    def calculate_totals(self):
        gross = self.quantity * self.unit_price
        discount = gross * (self.discount_percentage or Decimal('0')) / 100
        self.subtotal = money(gross - discount)
        self.tax_amount = money(self.subtotal * self.tax_rate / 100)
        self.total = money(self.subtotal + self.tax_amount)
        return self.total

    def save(self, *args, **kwargs):
        self.calculate_totals()
        super().save(*args, **kwargs)
        self.invoice.calculate_totals()

    def delete(self, *args, **kwargs):
        invoice = self.invoice
        result = super().delete(*args, **kwargs)
        invoice.calculate_totals()
        return result

    class Meta:
        db_table = 'invoice_issued_items'
        ordering = ['sort_order', 'id']


class CustomerContract(models.Model):
    TYPE_CHOICES = [
        ('nda', 'Non-disclosure agreement'),
        ('service_agreement', 'Service agreement'),
        ('supply_contract', 'Supply contract'),
        ('partnership', 'Partnership'),
    ]
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('active', 'Active'),
        ('expired', 'Expired'),
        ('terminated', 'Terminated'),
    ]

    contract_number = models.CharField(max_length=30, unique=True, db_index=True, blank=True)
    customer = models.ForeignKey('parties.Customer', on_delete=models.PROTECT, related_name='contracts')
    title = models.CharField(max_length=255)
    type = models.CharField(max_length=30, choices=TYPE_CHOICES, default='service_agreement')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft', db_index=True)
    contract_value = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    currency = models.CharField(max_length=3, default='EUR')
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    signed_date = models.DateField(null=True, blank=True)
    terms = models.TextField(blank=True)
    notes = models.TextField(blank=True)
    nextcloud_path = models.CharField(max_length=500, blank=True)
    pdf_generated_at = models.DateTimeField(null=True, blank=True)

    # AI analysis
    ai_analysis_data = models.JSONField(null=True, blank=True)
    ai_extracted_parties = models.JSONField(null=True, blank=True)
    ai_risk_flags = models.JSONField(null=True, blank=True)
    ai_key_dates = models.JSONField(null=True, blank=True)
    ai_analyzed_at = models.DateTimeField(null=True, blank=True)

    # AI review
    ai_review_data = models.JSONField(null=True, blank=True)
    ai_review_score = models.PositiveIntegerField(null=True, blank=True)
    ai_review_issues_count = models.PositiveIntegerField(null=True, blank=True)
    ai_reviewed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.contract_number} - {self.title}"

    def assign_number(self):
        year = (self.start_date or timezone.localdate()).year
        prefix = f"CTR-{year}-"
        last = (CustomerContract.objects.filter(contract_number__startswith=prefix)
                .order_by('-contract_number').values_list('contract_number', flat=True).first())
        next_number = int(last[len(prefix):]) + 1 if last else 1
        self.contract_number = f"{prefix}{next_number:03d}"

    def save(self, *args, **kwargs):
        if not self.contract_number:
            with transaction.atomic():
                self.assign_number()
                super().save(*args, **kwargs)
            return
        super().save(*args, **kwargs)

    @property
    def is_active(self):
        today = timezone.localdate()
        return (self.status == 'active'
                and self.start_date is not None and self.start_date <= today
                and (self.end_date is None or self.end_date >= today))

    @property
    def is_expired(self):
        return self.end_date is not None and self.end_date < timezone.localdate()

    @property
    def days_until_expiry(self):
        if self.end_date is None:
            return None
        return (self.end_date - timezone.localdate()).days

    @property
    def review_score_color(self):
        if self.ai_review_score is None:
            return 'gray'
        if self.ai_review_score >= 80:
            return 'success'
        if self.ai_review_score >= 60:
            return 'warning'
        return 'danger'

    @property
    def has_high_risk_flags(self):
        return any(flag.get('severity') == 'high' for flag in (self.ai_risk_flags or []))

    def risk_count_by_severity(self):
        counts = {'high': 0, 'medium': 0, 'low': 0}
        for flag in self.ai_risk_flags or []:
            severity = flag.get('severity')
            if severity in counts:
                counts[severity] += 1
        return counts

    class Meta:
        db_table = 'customer_contracts'
        ordering = ['-created_at']
