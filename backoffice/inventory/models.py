from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.utils import timezone
from decimal import Decimal, ROUND_HALF_UP
import logging

from backoffice.core.utils import add_months

logger = logging.getLogger(__name__)


class InventoryMovement(models.Model):
    """Stock movement of a component; the component's stock follows every movement"""
    TYPE_CHOICES = [
        ('in', 'Stock In'),
        ('out', 'Stock Out'),
        ('adjustment', 'Adjustment'),
        ('return', 'Return'),
    ]
    INCOMING_TYPES = ('in', 'return')

    component = models.ForeignKey('components.Component', on_delete=models.PROTECT,
                                  related_name='inventory_movements')
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, db_index=True)
    quantity = models.IntegerField(help_text="Positive for in/out/return, signed for adjustments")
    quantity_before = models.IntegerField(default=0)
    quantity_after = models.IntegerField(default=0)
    unit_cost = models.DecimalField(max_digits=10, decimal_places=4, null=True, blank=True)
    total_cost = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    reason = models.CharField(max_length=255, blank=True)
    notes = models.TextField(blank=True)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                             related_name='inventory_movements')
    invoice_number = models.CharField(max_length=100, blank=True)
    invoice_date = models.DateField(null=True, blank=True)
    supplier = models.CharField(max_length=150, blank=True)
    destination_project = models.ForeignKey('projects.Project', on_delete=models.SET_NULL, null=True, blank=True,
                                            related_name='inventory_movements')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.get_type_display()} {self.quantity} x {self.component.sku}"

    @staticmethod
    def signed_delta(movement_type, quantity):
        if movement_type == 'out':
            return -abs(quantity)
        if movement_type in InventoryMovement.INCOMING_TYPES:
            return abs(quantity)
        return quantity

    @classmethod
    def record_movement(cls, component, movement_type, quantity, unit_cost=None, user=None, **extra):
        """
        Create a movement and update the component stock in one transaction.

        The component row is locked while the new quantity is computed; a movement
        that would take stock below zero raises ValidationError and changes nothing.
        """
        if movement_type not in dict(cls.TYPE_CHOICES):
            raise ValidationError(f"Unknown movement type: {movement_type}")
        quantity = int(quantity)
        if quantity == 0 or (movement_type != 'adjustment' and quantity < 0):
            raise ValidationError("Quantity must be a positive number")

        with transaction.atomic():
            locked = component.__class__.objects.select_for_update().get(pk=component.pk)
            before = locked.stock_quantity
            after = before + cls.signed_delta(movement_type, quantity)
            if after < 0:
                raise ValidationError(
                    f"Insufficient stock for {locked.sku}: {before} available, {abs(quantity)} requested"
                )

            if unit_cost is None and movement_type in cls.INCOMING_TYPES:
                unit_cost = locked.unit_price
            total_cost = None
            if unit_cost is not None:
                total_cost = (Decimal(abs(quantity)) * Decimal(unit_cost)).quantize(
                    Decimal('0.01'), rounding=ROUND_HALF_UP
                )

            movement = cls.objects.create(
                component=locked,
                type=movement_type,
                quantity=quantity,
                quantity_before=before,
                quantity_after=after,
                unit_cost=unit_cost,
                total_cost=total_cost,
                user=user,
                **extra,
            )
            locked.stock_quantity = after
            locked.save(update_fields=['stock_quantity', 'updated_at'])

        component.stock_quantity = after
        logger.info(f"Stock movement {movement_type} {quantity} on {locked.sku}: {before} -> {after}")
        return movement

    @property
    def direction(self):
        return 'in' if self.quantity_after >= self.quantity_before else 'out'

    class Meta:
        db_table = 'inventory_movements'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['component', 'created_at'], name='inventory_m_compone_5b1e9a_idx'),
        ]


class EquipmentQuerySet(models.QuerySet):
    def active(self):
        return self.filter(status='active')

    def needs_maintenance(self):
        return self.filter(next_maintenance__isnull=False, next_maintenance__lte=timezone.localdate())

    def needs_calibration(self):
        return self.filter(calibration_required=True, next_calibration__isnull=False,
                           next_calibration__lte=timezone.localdate())


class Equipment(models.Model):
    CATEGORY_CHOICES = [
        ('computer', 'Computer'),
        ('soldering', 'Soldering station'),
        ('reflow', 'Reflow oven'),
        ('cnc', 'CNC'),
        ('3d_printer', '3D printer'),
        ('laser', 'Laser cutter'),
        ('measurement', 'Measurement instrument'),
        ('power_supply', 'Power supply'),
        ('oscilloscope', 'Oscilloscope'),
        ('multimeter', 'Multimeter'),
        ('generator', 'Signal generator'),
        ('microscope', 'Microscope'),
        ('camera', 'Camera'),
        ('tool', 'Tool'),
        ('furniture', 'Furniture'),
        ('other', 'Other'),
    ]
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('maintenance', 'In maintenance'),
        ('broken', 'Broken'),
        ('retired', 'Retired'),
        ('sold', 'Sold'),
    ]

    code = models.CharField(max_length=20, unique=True, db_index=True, blank=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='other', db_index=True)
    brand = models.CharField(max_length=100, blank=True)
    model = models.CharField(max_length=100, blank=True)
    serial_number = models.CharField(max_length=100, blank=True)
    purchase_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    currency = models.CharField(max_length=3, default='EUR')
    purchase_date = models.DateField(null=True, blank=True)
    supplier = models.CharField(max_length=150, blank=True)
    invoice_reference = models.CharField(max_length=100, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active', db_index=True)
    location = models.CharField(max_length=150, blank=True)
    responsible_user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True,
                                         blank=True, related_name='equipment')
    warranty_expiry = models.DateField(null=True, blank=True)

    # Maintenance
    last_maintenance = models.DateField(null=True, blank=True)
    next_maintenance = models.DateField(null=True, blank=True)
    maintenance_interval_months = models.PositiveIntegerField(null=True, blank=True)

    # Calibration
    calibration_required = models.BooleanField(default=False)
    last_calibration = models.DateField(null=True, blank=True)
    next_calibration = models.DateField(null=True, blank=True)
    calibration_interval_months = models.PositiveIntegerField(null=True, blank=True)

    depreciation_rate = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True,
                                            help_text="Yearly depreciation in percent of the purchase price")
    current_value = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    technical_specs = models.JSONField(default=dict, blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = EquipmentQuerySet.as_manager()

    def __str__(self):
        return f"{self.code} - {self.name}"

    @classmethod
    def generate_next_code(cls):
        last = cls.objects.filter(code__startswith='EQ-').order_by('-code').values_list('code', flat=True).first()
        next_number = int(last[3:]) + 1 if last and last[3:].isdigit() else 1
        return f"EQ-{next_number:05d}"

    def save(self, *args, **kwargs):
        if not self.code:
            with transaction.atomic():
                self.code = self.generate_next_code()
                super().save(*args, **kwargs)
            return
        super().save(*args, **kwargs)

    @property
    def needs_maintenance(self):
        return self.next_maintenance is not None and self.next_maintenance <= timezone.localdate()

    @property
    def needs_calibration(self):
        return (self.calibration_required and self.next_calibration is not None
                and self.next_calibration <= timezone.localdate())

    @property
    def is_warranty_expired(self):
        return self.warranty_expiry is not None and self.warranty_expiry < timezone.localdate()

    def calculate_current_value(self, on_date=None):
        """Straight-line depreciation over whole years; None without price, date or rate"""
        if not self.purchase_price or not self.purchase_date or not self.depreciation_rate:
            return None
        on_date = on_date or timezone.localdate()
        years = on_date.year - self.purchase_date.year
        if (on_date.month, on_date.day) < (self.purchase_date.month, self.purchase_date.day):
            years -= 1
        years = max(years, 0)
        depreciation = self.purchase_price * self.depreciation_rate / 100 * years
        return max(Decimal('0.00'), self.purchase_price - depreciation).quantize(Decimal('0.01'))

    def record_maintenance(self, date=None):
        date = date or timezone.localdate()
        self.last_maintenance = date
        if self.maintenance_interval_months:
            self.next_maintenance = add_months(date, self.maintenance_interval_months)
        self.save(update_fields=['last_maintenance', 'next_maintenance', 'updated_at'])

    def record_calibration(self, date=None):
        date = date or timezone.localdate()
        self.last_calibration = date
        if self.calibration_interval_months:
            self.next_calibration = add_months(date, self.calibration_interval_months)
        self.save(update_fields=['last_calibration', 'next_calibration', 'updated_at'])

    class Meta:
        db_table = 'equipment'
        verbose_name_plural = 'equipment'
        ordering = ['code']


class MaterialQuerySet(models.QuerySet):
    def active(self):
        return self.filter(status='active')

    def low_stock(self):
        return self.filter(stock_quantity__lte=models.F('min_stock_level'))

    def expired(self):
        return self.filter(expiry_date__isnull=False, expiry_date__lt=timezone.localdate())


class Material(models.Model):
    """Consumables and raw materials that are not electronic components"""
    CATEGORY_CHOICES = [
        ('filament', '3D printing filament'),
        ('resin', 'Resin'),
        ('stationery', 'Stationery'),
        ('consumable', 'Consumable'),
        ('chemical', 'Chemical'),
        ('packaging', 'Packaging'),
        ('other', 'Other'),
    ]
    UNIT_CHOICES = [
        ('pcs', 'Pieces'),
        ('kg', 'Kilograms'),
        ('m', 'Meters'),
        ('l', 'Liters'),
        ('roll', 'Rolls'),
        ('bottle', 'Bottles'),
        ('pack', 'Packs'),
    ]
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('inactive', 'Inactive'),
        ('discontinued', 'Discontinued'),
    ]

    code = models.CharField(max_length=50, unique=True, db_index=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='other', db_index=True)
    brand = models.CharField(max_length=100, blank=True)
    model = models.CharField(max_length=100, blank=True)
    color = models.CharField(max_length=50, blank=True)
    material_type = models.CharField(max_length=50, blank=True, help_text="e.g. PLA, PETG, IPA")
    diameter = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True, help_text="mm")
    weight_kg = models.DecimalField(max_digits=8, decimal_places=3, null=True, blank=True)
    unit_price = models.DecimalField(max_digits=10, decimal_places=4, default=Decimal('0.0000'))
    currency = models.CharField(max_length=3, default='EUR')
    stock_quantity = models.IntegerField(default=0)
    min_stock_level = models.IntegerField(default=0)
    unit_of_measure = models.CharField(max_length=10, choices=UNIT_CHOICES, default='pcs')
    storage_location = models.CharField(max_length=100, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active', db_index=True)
    supplier = models.CharField(max_length=150, blank=True)
    supplier_code = models.CharField(max_length=100, blank=True)
    purchase_date = models.DateField(null=True, blank=True)
    expiry_date = models.DateField(null=True, blank=True)
    temperature_storage_min = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    temperature_storage_max = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = MaterialQuerySet.as_manager()

    def __str__(self):
        return f"{self.code} - {self.name}"

    def clean(self):
        if (self.temperature_storage_min is not None and self.temperature_storage_max is not None
                and self.temperature_storage_min > self.temperature_storage_max):
            raise ValidationError({'temperature_storage_max': 'Maximum storage temperature is below the minimum'})

    @property
    def is_low_stock(self):
        return self.stock_quantity <= self.min_stock_level

    @property
    def is_expired(self):
        return self.expiry_date is not None and self.expiry_date < timezone.localdate()

    class Meta:
        db_table = 'materials'
        ordering = ['name']
