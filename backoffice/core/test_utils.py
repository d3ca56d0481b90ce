"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from backoffice.components.models import Category, Component
from backoffice.inventory.models import Equipment, Material
from backoffice.parties.models import Customer, PaymentTerm, PaymentTermTranche
from backoffice.projects.models import Project, ProjectBom, ProjectBomItem, ProjectTask, TimeEntry
from backoffice.sales.models import Quotation, QuotationItem, InvoiceIssued, InvoiceIssuedItem, CustomerContract
from decimal import Decimal
from datetime import timedelta
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', is_staff=False, is_superuser=False,
                    hourly_rate=None):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        user = User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            is_superuser=is_superuser
        )
        if hourly_rate is not None:
            user.hourly_rate = hourly_rate
            user.save(update_fields=['hourly_rate'])
        return user

    @staticmethod
    def create_category(name=None):
        if not name:
            name = f'Category_{TestDataFactory.random_string(6)}'
        return Category.objects.create(name=name, description=f'Test category {name}')

    @staticmethod
    def create_component(sku=None, name=None, category=None, stock_quantity=0, unit_price=None, **extra):
        """Create a test component"""
        if not sku:
            sku = f'SKU-{TestDataFactory.random_string(8).upper()}'
        if not name:
            name = f'Component_{TestDataFactory.random_string(6)}'
        return Component.objects.create(
            sku=sku,
            name=name,
            category=category,
            stock_quantity=stock_quantity,
            unit_price=unit_price if unit_price is not None else Decimal('0.1000'),
            **extra
        )

    @staticmethod
    def create_payment_term(name=None, days=30, tranches=None):
        """Create a payment term; tranches is a list of (percentage, days_offset)"""
        term = PaymentTerm.objects.create(name=name or f'Term_{TestDataFactory.random_string(4)}', days=days)
        for index, (percentage, days_offset) in enumerate(tranches or []):
            PaymentTermTranche.objects.create(
                payment_term=term,
                name=f'Tranche {index + 1}',
                percentage=Decimal(str(percentage)),
                days_offset=days_offset,
                sort_order=index,
            )
        return term

    @staticmethod
    def create_customer(company_name=None, payment_term=None, **extra):
        """Create a test customer"""
        if not company_name:
            company_name = f'Customer_{TestDataFactory.random_string(6)}'
        return Customer.objects.create(
            company_name=company_name,
            payment_term=payment_term,
            email=f'{company_name.lower()}@test.com',
            **extra
        )

    @staticmethod
    def create_project(name=None, customer=None, **extra):
        if not name:
            name = f'Project {TestDataFactory.random_string(6)}'
        return Project.objects.create(name=name, customer=customer, **extra)

    @staticmethod
    def create_bom_item(project, component, quantity=1, estimated_unit_cost=None):
        bom = project.boms.first() or ProjectBom.objects.create(project=project, name='Main board')
        return ProjectBomItem.objects.create(
            bom=bom,
            component=component,
            quantity=quantity,
            estimated_unit_cost=estimated_unit_cost,
        )

    @staticmethod
    def create_task(project, name=None, start_date=None, end_date=None, **extra):
        start_date = start_date or timezone.localdate()
        return ProjectTask.objects.create(
            project=project,
            name=name or f'Task_{TestDataFactory.random_string(4)}',
            start_date=start_date,
            end_date=end_date or start_date + timedelta(days=4),
            **extra
        )

    @staticmethod
    def create_time_entry(user, project, hours=None, **extra):
        return TimeEntry.objects.create(
            user=user,
            project=project,
            hours=hours if hours is not None else Decimal('2.00'),
            **extra
        )

    @staticmethod
    def create_quotation(customer=None, title=None, user=None, **extra):
        """Create a test quotation (number assigned on save)"""
        if not customer:
            customer = TestDataFactory.create_customer()
        return Quotation.objects.create(
            customer=customer,
            title=title or f'Quotation {TestDataFactory.random_string(4)}',
            created_by=user,
            **extra
        )

    @staticmethod
    def create_quotation_item(quotation, item_type='custom', quantity=None, unit_price=None, **extra):
        return QuotationItem.objects.create(
            quotation=quotation,
            item_type=item_type,
            quantity=quantity if quantity is not None else Decimal('1.00'),
            unit_price=unit_price if unit_price is not None else Decimal('0.0000'),
            **extra
        )

    @staticmethod
    def create_invoice(customer=None, status='draft', **extra):
        """Create a test issued invoice (number assigned on save)"""
        if not customer:
            customer = TestDataFactory.create_customer()
        return InvoiceIssued.objects.create(customer=customer, status=status, **extra)

    @staticmethod
    def create_invoice_item(invoice, quantity=None, unit_price=None, **extra):
        return InvoiceIssuedItem.objects.create(
            invoice=invoice,
            description=extra.pop('description', 'Test item'),
            quantity=quantity if quantity is not None else Decimal('1.00'),
            unit_price=unit_price if unit_price is not None else Decimal('100.00'),
            **extra
        )

    @staticmethod
    def create_contract(customer=None, title=None, **extra):
        if not customer:
            customer = TestDataFactory.create_customer()
        return CustomerContract.objects.create(
            customer=customer,
            title=title or f'Contract {TestDataFactory.random_string(4)}',
            **extra
        )

    @staticmethod
    def create_equipment(name=None, **extra):
        return Equipment.objects.create(name=name or f'Equipment_{TestDataFactory.random_string(6)}', **extra)

    @staticmethod
    def create_material(code=None, name=None, **extra):
        return Material.objects.create(
            code=code or f'MAT-{TestDataFactory.random_string(6).upper()}',
            name=name or f'Material_{TestDataFactory.random_string(6)}',
            **extra
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
