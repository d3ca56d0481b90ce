from rest_framework import serializers
from .models import Quotation, QuotationItem, InvoiceIssued, InvoiceIssuedItem, CustomerContract


class QuotationItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = QuotationItem
        fields = ['id', 'item_type', 'description', 'component', 'quantity', 'hours', 'hourly_rate',
                  'material_cost', 'unit_price', 'discount_rate', 'discount_amount', 'total', 'sort_order']
        read_only_fields = ['discount_amount', 'total']


class QuotationListSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source='customer.company_name', read_only=True)
    is_expired = serializers.BooleanField(read_only=True)

    class Meta:
        model = Quotation
        fields = ['id', 'number', 'customer', 'customer_name', 'title', 'date', 'valid_until', 'status',
                  'total', 'is_expired']


class QuotationSerializer(serializers.ModelSerializer):
    """Quotation with nested items; items are replaced as a whole on write"""
    customer_name = serializers.CharField(source='customer.company_name', read_only=True)
    items = QuotationItemSerializer(many=True, required=False)
    can_be_edited = serializers.BooleanField(read_only=True)
    is_expired = serializers.BooleanField(read_only=True)

    class Meta:
        model = Quotation
        fields = ['id', 'number', 'incremental_id', 'customer', 'customer_name', 'projects', 'title',
                  'description', 'date', 'valid_until', 'status', 'boards_quantity', 'subtotal',
                  'discount_rate', 'discount_amount', 'tax_rate', 'tax_amount', 'total', 'notes', 'terms',
                  'pdf_generated_at', 'nextcloud_path', 'items', 'can_be_edited', 'is_expired',
                  'created_at', 'updated_at']
        read_only_fields = ['number', 'incremental_id', 'subtotal', 'discount_amount', 'tax_amount', 'total',
                            'pdf_generated_at', 'nextcloud_path', 'created_at', 'updated_at']

    def validate(self, data):
        if self.instance is not None and not self.instance.can_be_edited:
            changed = set(data) - {'status'}
            if changed:
                raise serializers.ValidationError(
                    f"A {self.instance.status} quotation cannot be edited; only its status can change"
                )
        return data

    def _write_items(self, quotation, items):
        quotation.items.all().delete()
        for item in items:
            QuotationItem.objects.create(quotation=quotation, **item)
        quotation.calculate_totals()

    def create(self, validated_data):
        items = validated_data.pop('items', [])
        projects = validated_data.pop('projects', [])
        quotation = Quotation.objects.create(**validated_data)
        quotation.projects.set(projects)
        self._write_items(quotation, items)
        quotation.refresh_project_figures()
        return quotation

    def update(self, instance, validated_data):
        items = validated_data.pop('items', None)
        projects = validated_data.pop('projects', None)
        previous_projects = list(instance.projects.all())
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save()
        if projects is not None:
            instance.projects.set(projects)
        if items is not None:
            self._write_items(instance, items)
        else:
            instance.calculate_totals()
        instance.refresh_project_figures(previous_projects)
        return instance


class InvoiceIssuedItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = InvoiceIssuedItem
        fields = ['id', 'description', 'component', 'quantity', 'unit_price', 'discount_percentage', 'tax_rate',
                  'subtotal', 'tax_amount', 'total', 'sort_order']
        read_only_fields = ['subtotal', 'tax_amount', 'total']


class InvoiceIssuedListSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source='customer.company_name', read_only=True)
    is_overdue = serializers.BooleanField(read_only=True)

    class Meta:
        model = InvoiceIssued
        fields = ['id', 'invoice_number', 'type', 'customer', 'customer_name', 'issue_date', 'due_date',
                  'total', 'amount_paid', 'status', 'payment_status', 'is_overdue']


class InvoiceIssuedSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source='customer.company_name', read_only=True)
    items = InvoiceIssuedItemSerializer(many=True, required=False)
    is_overdue = serializers.BooleanField(read_only=True)
    remaining_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = InvoiceIssued
        fields = ['id', 'invoice_number', 'incremental_id', 'type', 'customer', 'customer_name', 'project',
                  'quotation', 'payment_term', 'payment_term_tranche', 'related_invoice', 'issue_date',
                  'due_date', 'subtotal', 'tax_rate', 'tax_amount', 'discount_amount', 'total', 'amount_paid',
                  'remaining_amount', 'status', 'payment_status', 'paid_at', 'payment_method', 'notes',
                  'nextcloud_path', 'pdf_generated_at', 'items', 'is_overdue', 'created_at', 'updated_at']
        read_only_fields = ['invoice_number', 'incremental_id', 'subtotal', 'tax_amount', 'total', 'amount_paid',
                            'payment_status', 'paid_at', 'nextcloud_path', 'pdf_generated_at',
                            'created_at', 'updated_at']

    def validate(self, data):
        tranche = data.get('payment_term_tranche')
        term = data.get('payment_term', getattr(self.instance, 'payment_term', None))
        if tranche and term and tranche.payment_term_id != term.id:
            raise serializers.ValidationError({'payment_term_tranche': 'Tranche does not belong to the payment term'})
        return data

    def _write_items(self, invoice, items):
        invoice.items.all().delete()
        for item in items:
            InvoiceIssuedItem.objects.create(invoice=invoice, **item)
        invoice.calculate_totals()

    def create(self, validated_data):
        items = validated_data.pop('items', [])
        invoice = InvoiceIssued.objects.create(**validated_data)
        self._write_items(invoice, items)
        return invoice

    def update(self, instance, validated_data):
        items = validated_data.pop('items', None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save()
        if items is not None:
            self._write_items(instance, items)
        else:
            instance.calculate_totals()
        return instance


class MarkPaidSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, min_value=0)
    method = serializers.ChoiceField(choices=InvoiceIssued.PAYMENT_METHOD_CHOICES, required=False)


class CustomerContractSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source='customer.company_name', read_only=True)
    is_active = serializers.BooleanField(read_only=True)
    days_until_expiry = serializers.IntegerField(read_only=True, allow_null=True)
    has_high_risk_flags = serializers.BooleanField(read_only=True)

    class Meta:
        model = CustomerContract
        fields = ['id', 'contract_number', 'customer', 'customer_name', 'title', 'type', 'status',
                  'contract_value', 'currency', 'start_date', 'end_date', 'signed_date', 'terms', 'notes',
                  'nextcloud_path', 'pdf_generated_at', 'ai_analysis_data', 'ai_extracted_parties',
                  'ai_risk_flags', 'ai_key_dates', 'ai_analyzed_at', 'ai_review_data', 'ai_review_score',
                  'ai_review_issues_count', 'ai_reviewed_at', 'is_active', 'days_until_expiry',
                  'has_high_risk_flags', 'created_at', 'updated_at']
        read_only_fields = ['contract_number', 'pdf_generated_at', 'ai_analysis_data', 'ai_extracted_parties',
                            'ai_risk_flags', 'ai_key_dates', 'ai_analyzed_at', 'ai_review_data',
                            'ai_review_score', 'ai_review_issues_count', 'ai_reviewed_at',
                            'created_at', 'updated_at']

    def validate(self, data):
        start = data.get('start_date', getattr(self.instance, 'start_date', None))
        end = data.get('end_date', getattr(self.instance, 'end_date', None))
        if start and end and end < start:
            raise serializers.ValidationError({'end_date': 'End date cannot be before the start date'})
        return data
