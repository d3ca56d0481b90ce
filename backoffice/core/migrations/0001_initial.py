# Generated manually
import django.contrib.auth.models
import django.contrib.auth.validators
import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='User',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('username', models.CharField(error_messages={'unique': 'A user with that username already exists.'}, help_text='Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.', max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name='username')),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('email', models.EmailField(blank=True, max_length=254, verbose_name='email address')),
                ('is_staff', models.BooleanField(default=False, help_text='Designates whether the user can log into this admin site.', verbose_name='staff status')),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('phone', models.CharField(blank=True, max_length=20, null=True)),
                ('hourly_rate', models.DecimalField(decimal_places=2, default=Decimal('0.00'), help_text='Default rate used for new time entries', max_digits=8)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'db_table': 'users',
            },
            managers=[
                ('objects', django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name='CompanyProfile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('company_name', models.CharField(blank=True, max_length=255)),
                ('owner_name', models.CharField(blank=True, max_length=255)),
                ('owner_title', models.CharField(blank=True, max_length=100)),
                ('vat_number', models.CharField(blank=True, max_length=30)),
                ('tax_code', models.CharField(blank=True, max_length=30)),
                ('sdi_code', models.CharField(blank=True, max_length=10)),
                ('legal_address', models.CharField(blank=True, max_length=255)),
                ('legal_city', models.CharField(blank=True, max_length=100)),
                ('legal_postal_code', models.CharField(blank=True, max_length=10)),
                ('legal_province', models.CharField(blank=True, max_length=5)),
                ('legal_country', models.CharField(blank=True, default='Italia', max_length=100)),
                ('email', models.EmailField(blank=True, max_length=254)),
                ('phone', models.CharField(blank=True, max_length=30)),
                ('website', models.URLField(blank=True)),
                ('pec', models.EmailField(blank=True, max_length=254)),
                ('iban', models.CharField(blank=True, max_length=34)),
                ('bic', models.CharField(blank=True, max_length=11)),
                ('claude_api_key', models.CharField(blank=True, max_length=255)),
                ('claude_model', models.CharField(blank=True, default='claude-3-5-sonnet-latest', max_length=100)),
                ('claude_enabled', models.BooleanField(default=False)),
                ('ollama_url', models.CharField(blank=True, max_length=255)),
                ('ollama_model', models.CharField(blank=True, max_length=100)),
                ('auto_generate_milestones', models.BooleanField(default=False)),
                ('hourly_rate_design', models.DecimalField(decimal_places=2, default=Decimal('50.00'), max_digits=8)),
                ('hourly_rate_assembly', models.DecimalField(decimal_places=2, default=Decimal('50.00'), max_digits=8)),
                ('pcb_standard_cost', models.DecimalField(decimal_places=2, default=Decimal('200.00'), max_digits=8)),
                ('pcb_standard_quantity', models.PositiveIntegerField(default=5)),
                ('notes', models.TextField(blank=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'company_profiles',
                'verbose_name': 'Company Profile',
                'verbose_name_plural': 'Company Profile',
            },
        ),
        migrations.CreateModel(
            name='AuditLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(choices=[('create', 'Create'), ('update', 'Update'), ('delete', 'Delete'), ('delete_blocked', 'Delete Blocked'), ('stock_movement', 'Stock Movement'), ('aruco_generate', 'ArUco Generated'), ('alert_acknowledge', 'Alert Acknowledged'), ('alert_resolve', 'Alert Resolved'), ('invoice_paid', 'Invoice Paid'), ('pdf_generate', 'PDF Generated'), ('contract_analyze', 'Contract Analyzed'), ('contract_review', 'Contract Reviewed'), ('time_submit', 'Time Entry Submitted'), ('time_approve', 'Time Entry Approved'), ('time_reject', 'Time Entry Rejected'), ('pcb_upload', 'PCB File Uploaded')], max_length=50)),
                ('model_name', models.CharField(max_length=100)),
                ('object_id', models.CharField(max_length=100)),
                ('object_name', models.CharField(blank=True, help_text='Human-readable name of the object (e.g., component name, invoice number)', max_length=255, null=True)),
                ('object_reference', models.CharField(blank=True, help_text='Reference identifier (e.g., SKU, invoice number, contract number)', max_length=255, null=True)),
                ('changes', models.JSONField(blank=True, default=dict)),
                ('ip_address', models.GenericIPAddressField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='audit_logs', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'audit_logs',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['-created_at'], name='audit_logs_created_b1e3f0_idx'), models.Index(fields=['action'], name='audit_logs_action_5c2d7a_idx'), models.Index(fields=['model_name'], name='audit_logs_model_n_8e4b1c_idx'), models.Index(fields=['object_reference'], name='audit_logs_object__2f9a6d_idx')],
            },
        ),
    ]
