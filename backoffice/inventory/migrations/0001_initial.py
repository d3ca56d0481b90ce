# Generated manually
import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('components', '0001_initial'),
        ('projects', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='InventoryMovement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('type', models.CharField(choices=[('in', 'Stock In'), ('out', 'Stock Out'), ('adjustment', 'Adjustment'), ('return', 'Return')], db_index=True, max_length=20)),
                ('quantity', models.IntegerField(help_text='Positive for in/out/return, signed for adjustments')),
                ('quantity_before', models.IntegerField(default=0)),
                ('quantity_after', models.IntegerField(default=0)),
                ('unit_cost', models.DecimalField(blank=True, decimal_places=4, max_digits=10, null=True)),
                ('total_cost', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('reason', models.CharField(blank=True, max_length=255)),
                ('notes', models.TextField(blank=True)),
                ('invoice_number', models.CharField(blank=True, max_length=100)),
                ('invoice_date', models.DateField(blank=True, null=True)),
                ('supplier', models.CharField(blank=True, max_length=150)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('component', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='inventory_movements', to='components.component')),
                ('destination_project', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='inventory_movements', to='projects.project')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='inventory_movements', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'inventory_movements',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['component', 'created_at'], name='inventory_m_compone_5b1e9a_idx')],
            },
        ),
        migrations.CreateModel(
            name='Equipment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(blank=True, db_index=True, max_length=20, unique=True)),
                ('name', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True)),
                ('category', models.CharField(choices=[('computer', 'Computer'), ('soldering', 'Soldering station'), ('reflow', 'Reflow oven'), ('cnc', 'CNC'), ('3d_printer', '3D printer'), ('laser', 'Laser cutter'), ('measurement', 'Measurement instrument'), ('power_supply', 'Power supply'), ('oscilloscope', 'Oscilloscope'), ('multimeter', 'Multimeter'), ('generator', 'Signal generator'), ('microscope', 'Microscope'), ('camera', 'Camera'), ('tool', 'Tool'), ('furniture', 'Furniture'), ('other', 'Other')], db_index=True, default='other', max_length=20)),
                ('brand', models.CharField(blank=True, max_length=100)),
                ('model', models.CharField(blank=True, max_length=100)),
                ('serial_number', models.CharField(blank=True, max_length=100)),
                ('purchase_price', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('currency', models.CharField(default='EUR', max_length=3)),
                ('purchase_date', models.DateField(blank=True, null=True)),
                ('supplier', models.CharField(blank=True, max_length=150)),
                ('invoice_reference', models.CharField(blank=True, max_length=100)),
                ('status', models.CharField(choices=[('active', 'Active'), ('maintenance', 'In maintenance'), ('broken', 'Broken'), ('retired', 'Retired'), ('sold', 'Sold')], db_index=True, default='active', max_length=20)),
                ('location', models.CharField(blank=True, max_length=150)),
                ('warranty_expiry', models.DateField(blank=True, null=True)),
                ('last_maintenance', models.DateField(blank=True, null=True)),
                ('next_maintenance', models.DateField(blank=True, null=True)),
                ('maintenance_interval_months', models.PositiveIntegerField(blank=True, null=True)),
                ('calibration_required', models.BooleanField(default=False)),
                ('last_calibration', models.DateField(blank=True, null=True)),
                ('next_calibration', models.DateField(blank=True, null=True)),
                ('calibration_interval_months', models.PositiveIntegerField(blank=True, null=True)),
                ('depreciation_rate', models.DecimalField(blank=True, decimal_places=2, help_text='Yearly depreciation in percent of the purchase price', max_digits=5, null=True)),
                ('current_value', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('technical_specs', models.JSONField(blank=True, default=dict)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('responsible_user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='equipment', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'equipment',
                'verbose_name_plural': 'equipment',
                'ordering': ['code'],
            },
        ),
        migrations.CreateModel(
            name='Material',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(db_index=True, max_length=50, unique=True)),
                ('name', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True)),
                ('category', models.CharField(choices=[('filament', '3D printing filament'), ('resin', 'Resin'), ('stationery', 'Stationery'), ('consumable', 'Consumable'), ('chemical', 'Chemical'), ('packaging', 'Packaging'), ('other', 'Other')], db_index=True, default='other', max_length=20)),
                ('brand', models.CharField(blank=True, max_length=100)),
                ('model', models.CharField(blank=True, max_length=100)),
                ('color', models.CharField(blank=True, max_length=50)),
                ('material_type', models.CharField(blank=True, help_text='e.g. PLA, PETG, IPA', max_length=50)),
                ('diameter', models.DecimalField(blank=True, decimal_places=2, help_text='mm', max_digits=6, null=True)),
                ('weight_kg', models.DecimalField(blank=True, decimal_places=3, max_digits=8, null=True)),
                ('unit_price', models.DecimalField(decimal_places=4, default=Decimal('0.0000'), max_digits=10)),
                ('currency', models.CharField(default='EUR', max_length=3)),
                ('stock_quantity', models.IntegerField(default=0)),
                ('min_stock_level', models.IntegerField(default=0)),
                ('unit_of_measure', models.CharField(choices=[('pcs', 'Pieces'), ('kg', 'Kilograms'), ('m', 'Meters'), ('l', 'Liters'), ('roll', 'Rolls'), ('bottle', 'Bottles'), ('pack', 'Packs')], default='pcs', max_length=10)),
                ('storage_location', models.CharField(blank=True, max_length=100)),
                ('status', models.CharField(choices=[('active', 'Active'), ('inactive', 'Inactive'), ('discontinued', 'Discontinued')], db_index=True, default='active', max_length=20)),
                ('supplier', models.CharField(blank=True, max_length=150)),
                ('supplier_code', models.CharField(blank=True, max_length=100)),
                ('purchase_date', models.DateField(blank=True, null=True)),
                ('expiry_date', models.DateField(blank=True, null=True)),
                ('temperature_storage_min', models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                ('temperature_storage_max', models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'materials',
                'ordering': ['name'],
            },
        ),
    ]
