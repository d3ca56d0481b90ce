from rest_framework import serializers
from .models import CustomerType, PaymentTerm, PaymentTermTranche, Customer


class CustomerTypeSerializer(serializers.ModelSerializer):
    class Meta:
        model = CustomerType
        fields = ['id', 'name', 'description', 'color', 'is_active']


class PaymentTermTrancheSerializer(serializers.ModelSerializer):
    full_description = serializers.CharField(read_only=True)

    class Meta:
        model = PaymentTermTranche
        fields = ['id', 'name', 'percentage', 'days_offset', 'trigger_event', 'sort_order', 'full_description']


class PaymentTermSerializer(serializers.ModelSerializer):
    tranches = PaymentTermTrancheSerializer(many=True, read_only=True)
    tranches_display = serializers.CharField(read_only=True)
    full_description = serializers.CharField(read_only=True)

    class Meta:
        model = PaymentTerm
        fields = ['id', 'name', 'description', 'days', 'discount_percentage', 'discount_days', 'active',
                  'tranches', 'tranches_display', 'full_description']


class CustomerSerializer(serializers.ModelSerializer):
    customer_type_name = serializers.CharField(source='customer_type.name', read_only=True, allow_null=True)
    payment_term_name = serializers.CharField(source='payment_term.name', read_only=True, allow_null=True)
    full_address = serializers.CharField(read_only=True)

    class Meta:
        model = Customer
        fields = ['id', 'code', 'company_name', 'customer_type', 'customer_type_name', 'payment_term',
                  'payment_term_name', 'vat_number', 'tax_code', 'sdi_code', 'email', 'pec_email', 'phone',
                  'mobile', 'address', 'city', 'postal_code', 'province', 'country', 'full_address',
                  'billing_email', 'billing_contact_name', 'billing_phone', 'credit_limit', 'current_balance',
                  'notes', 'is_active', 'nextcloud_folder_created', 'nextcloud_base_path',
                  'created_at', 'updated_at']
        read_only_fields = ['code', 'nextcloud_folder_created', 'nextcloud_base_path', 'created_at', 'updated_at']
