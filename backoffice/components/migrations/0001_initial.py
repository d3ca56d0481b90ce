# Generated manually
import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Category',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(db_index=True, max_length=200)),
                ('description', models.TextField(blank=True)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('parent', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='children', to='components.category')),
            ],
            options={
                'db_table': 'component_categories',
                'verbose_name_plural': 'categories',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Component',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('sku', models.CharField(db_index=True, max_length=100, unique=True)),
                ('manufacturer_part_number', models.CharField(blank=True, db_index=True, max_length=100)),
                ('name', models.CharField(db_index=True, max_length=255)),
                ('description', models.TextField(blank=True)),
                ('manufacturer', models.CharField(blank=True, max_length=150)),
                ('package', models.CharField(blank=True, max_length=100)),
                ('specifications', models.JSONField(blank=True, default=dict)),
                ('value', models.CharField(blank=True, help_text='e.g. 10k, 100nF', max_length=50)),
                ('tolerance', models.CharField(blank=True, max_length=20)),
                ('voltage_rating', models.CharField(blank=True, max_length=30)),
                ('current_rating', models.CharField(blank=True, max_length=30)),
                ('power_rating', models.CharField(blank=True, max_length=30)),
                ('package_type', models.CharField(blank=True, help_text='e.g. 0603, SOIC-8', max_length=50)),
                ('mounting_type', models.CharField(blank=True, choices=[('smd', 'SMD'), ('through_hole', 'Through Hole')], max_length=20)),
                ('case_style', models.CharField(blank=True, max_length=50)),
                ('dielectric', models.CharField(blank=True, max_length=20)),
                ('temperature_coefficient', models.CharField(blank=True, max_length=30)),
                ('operating_temperature', models.CharField(blank=True, max_length=50)),
                ('technical_attributes', models.JSONField(blank=True, default=dict)),
                ('unit_price', models.DecimalField(decimal_places=4, default=Decimal('0.0000'), max_digits=10)),
                ('currency', models.CharField(default='EUR', max_length=3)),
                ('supplier', models.CharField(blank=True, max_length=150)),
                ('invoice_reference', models.CharField(blank=True, max_length=100)),
                ('purchase_date', models.DateField(blank=True, null=True)),
                ('supplier_links', models.JSONField(blank=True, default=list)),
                ('datasheet_url', models.URLField(blank=True, max_length=500)),
                ('stock_quantity', models.IntegerField(default=0)),
                ('min_stock_level', models.IntegerField(default=0)),
                ('reorder_quantity', models.IntegerField(default=0)),
                ('storage_location', models.CharField(blank=True, max_length=100)),
                ('status', models.CharField(choices=[('active', 'Active'), ('discontinued', 'Discontinued'), ('obsolete', 'Obsolete')], db_index=True, default='active', max_length=20)),
                ('aruco_code', models.CharField(blank=True, max_length=20, null=True, unique=True)),
                ('aruco_image_path', models.CharField(blank=True, max_length=255)),
                ('aruco_generated_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('category', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='components', to='components.category')),
            ],
            options={
                'db_table': 'components',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='ComponentLifecycleStatus',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('lifecycle_stage', models.CharField(choices=[('active', 'Active'), ('nrnd', 'Not Recommended for New Designs'), ('eol_announced', 'EOL Announced'), ('eol', 'End of Life'), ('obsolete', 'Obsolete')], db_index=True, default='active', max_length=20)),
                ('eol_announcement_date', models.DateField(blank=True, null=True)),
                ('eol_date', models.DateField(blank=True, null=True)),
                ('last_time_buy_date', models.DateField(blank=True, null=True)),
                ('eol_reason', models.TextField(blank=True)),
                ('manufacturer_notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('component', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='lifecycle_status', to='components.component')),
            ],
            options={
                'db_table': 'component_lifecycle_statuses',
                'verbose_name': 'component lifecycle status',
                'verbose_name_plural': 'component lifecycle statuses',
            },
        ),
        migrations.CreateModel(
            name='ComponentAlternative',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('alternative_type', models.CharField(choices=[('direct_replacement', 'Direct Replacement'), ('functional_equivalent', 'Functional Equivalent'), ('pin_compatible', 'Pin Compatible'), ('form_factor_compatible', 'Form Factor Compatible')], default='functional_equivalent', max_length=30)),
                ('compatibility_score', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=3, validators=[django.core.validators.MinValueValidator(Decimal('0.00')), django.core.validators.MaxValueValidator(Decimal('1.00'))])),
                ('compatibility_notes', models.TextField(blank=True)),
                ('price_difference', models.DecimalField(blank=True, decimal_places=4, max_digits=10, null=True)),
                ('is_recommended', models.BooleanField(default=False)),
                ('verified_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('alternative_component', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='alternative_for', to='components.component')),
                ('original_component', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='alternatives', to='components.component')),
                ('verified_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='verified_alternatives', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'component_alternatives',
                'ordering': ['-compatibility_score'],
                'constraints': [models.UniqueConstraint(fields=('original_component', 'alternative_component'), name='unique_component_alternative')],
            },
        ),
        migrations.CreateModel(
            name='ComponentCertification',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('certification_type', models.CharField(choices=[('CE', 'CE Marking'), ('EMC', 'Electromagnetic Compatibility'), ('LVD', 'Low Voltage Directive'), ('RoHS', 'RoHS'), ('REACH', 'REACH'), ('RED', 'Radio Equipment Directive'), ('MD', 'Machinery Directive'), ('PED', 'Pressure Equipment Directive'), ('other', 'Other')], db_index=True, max_length=10)),
                ('certificate_number', models.CharField(blank=True, max_length=100)),
                ('issuing_authority', models.CharField(blank=True, max_length=200)),
                ('issue_date', models.DateField(blank=True, null=True)),
                ('expiry_date', models.DateField(blank=True, null=True)),
                ('status', models.CharField(choices=[('valid', 'Valid'), ('expired', 'Expired'), ('pending', 'Pending'), ('revoked', 'Revoked')], db_index=True, default='valid', max_length=10)),
                ('scope', models.TextField(blank=True)),
                ('test_standards', models.JSONField(blank=True, default=list)),
                ('certificate_file', models.FileField(blank=True, upload_to='certifications/')),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('component', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='certifications', to='components.component')),
            ],
            options={
                'db_table': 'component_certifications',
                'ordering': ['expiry_date'],
            },
        ),
        migrations.CreateModel(
            name='ObsolescenceAlert',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('alert_type', models.CharField(choices=[('eol_warning', 'EOL Warning'), ('eol_imminent', 'EOL Imminent'), ('last_time_buy', 'Last Time Buy'), ('obsolete', 'Obsolete')], db_index=True, max_length=20)),
                ('severity', models.CharField(choices=[('low', 'Low'), ('medium', 'Medium'), ('high', 'High'), ('critical', 'Critical')], db_index=True, default='medium', max_length=10)),
                ('title', models.CharField(max_length=255)),
                ('message', models.TextField(blank=True)),
                ('affected_projects', models.JSONField(blank=True, default=list)),
                ('alert_date', models.DateTimeField(default=django.utils.timezone.now)),
                ('acknowledged_at', models.DateTimeField(blank=True, null=True)),
                ('is_resolved', models.BooleanField(db_index=True, default=False)),
                ('resolved_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('acknowledged_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='acknowledged_alerts', to=settings.AUTH_USER_MODEL)),
                ('component', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='obsolescence_alerts', to='components.component')),
            ],
            options={
                'db_table': 'obsolescence_alerts',
                'ordering': ['-alert_date'],
            },
        ),
    ]
