from rest_framework import serializers
from .models import (
    Category, Component, ComponentLifecycleStatus, ComponentAlternative,
    ComponentCertification, ObsolescenceAlert
)


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ['id', 'name', 'parent', 'description', 'is_active', 'created_at', 'updated_at']


class ComponentLifecycleStatusSerializer(serializers.ModelSerializer):
    urgency_level = serializers.CharField(read_only=True)
    days_until_eol = serializers.IntegerField(read_only=True, allow_null=True)
    is_at_risk = serializers.BooleanField(read_only=True)

    class Meta:
        model = ComponentLifecycleStatus
        fields = ['id', 'component', 'lifecycle_stage', 'eol_announcement_date', 'eol_date',
                  'last_time_buy_date', 'eol_reason', 'manufacturer_notes', 'urgency_level',
                  'days_until_eol', 'is_at_risk', 'updated_at']
        read_only_fields = ['component', 'updated_at']


class ComponentListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for component lists"""
    category_name = serializers.CharField(source='category.name', read_only=True, allow_null=True)
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Component
        fields = ['id', 'sku', 'manufacturer_part_number', 'name', 'category', 'category_name',
                  'manufacturer', 'package_type', 'unit_price', 'currency', 'stock_quantity',
                  'min_stock_level', 'storage_location', 'status', 'is_low_stock', 'aruco_code']


class ComponentSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True, allow_null=True)
    is_low_stock = serializers.BooleanField(read_only=True)
    needs_reorder = serializers.BooleanField(read_only=True)
    total_value = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    lifecycle_status = ComponentLifecycleStatusSerializer(read_only=True)

    class Meta:
        model = Component
        fields = [
            'id', 'sku', 'manufacturer_part_number', 'name', 'description', 'category', 'category_name',
            'manufacturer', 'package', 'specifications',
            'value', 'tolerance', 'voltage_rating', 'current_rating', 'power_rating', 'package_type',
            'mounting_type', 'case_style', 'dielectric', 'temperature_coefficient',
            'operating_temperature', 'technical_attributes',
            'unit_price', 'currency', 'supplier', 'invoice_reference', 'purchase_date',
            'supplier_links', 'datasheet_url',
            'stock_quantity', 'min_stock_level', 'reorder_quantity', 'storage_location', 'status',
            'aruco_code', 'aruco_image_path', 'aruco_generated_at',
            'is_low_stock', 'needs_reorder', 'total_value', 'lifecycle_status',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['aruco_code', 'aruco_image_path', 'aruco_generated_at', 'created_at', 'updated_at']

    def validate_unit_price(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError("Unit price cannot be negative")
        return value


class ComponentAlternativeSerializer(serializers.ModelSerializer):
    alternative_sku = serializers.CharField(source='alternative_component.sku', read_only=True)
    alternative_name = serializers.CharField(source='alternative_component.name', read_only=True)
    compatibility_level = serializers.CharField(read_only=True)
    compatibility_percentage = serializers.IntegerField(read_only=True)

    class Meta:
        model = ComponentAlternative
        fields = ['id', 'original_component', 'alternative_component', 'alternative_sku', 'alternative_name',
                  'alternative_type', 'compatibility_score', 'compatibility_level', 'compatibility_percentage',
                  'compatibility_notes', 'price_difference', 'is_recommended', 'verified_by', 'verified_at',
                  'created_at']
        read_only_fields = ['original_component', 'verified_by', 'verified_at', 'created_at']

    def validate_compatibility_score(self, value):
        if value is not None and not (0 <= value <= 1):
            raise serializers.ValidationError("Compatibility score must be between 0 and 1")
        return value


class AlternativeQuerySerializer(serializers.Serializer):
    min_compatibility = serializers.DecimalField(max_digits=4, decimal_places=3, min_value=0, max_value=1,
                                                 required=False)
    type = serializers.ChoiceField(choices=ComponentAlternative.ALTERNATIVE_TYPE_CHOICES, required=False)
    recommended_only = serializers.BooleanField(required=False, default=False)


class AlternativeLinkSerializer(serializers.Serializer):
    alternative_component = serializers.PrimaryKeyRelatedField(queryset=Component.objects.all())
    alternative_type = serializers.ChoiceField(choices=ComponentAlternative.ALTERNATIVE_TYPE_CHOICES,
                                               required=False)
    compatibility_score = serializers.DecimalField(max_digits=4, decimal_places=3, min_value=0, max_value=1,
                                                   required=False)
    compatibility_notes = serializers.CharField(required=False, allow_blank=True)
    is_recommended = serializers.BooleanField(required=False)


class ComponentCertificationSerializer(serializers.ModelSerializer):
    component_name = serializers.CharField(source='component.name', read_only=True)
    days_until_expiry = serializers.IntegerField(read_only=True, allow_null=True)
    is_valid = serializers.BooleanField(read_only=True)

    class Meta:
        model = ComponentCertification
        fields = ['id', 'component', 'component_name', 'certification_type', 'certificate_number',
                  'issuing_authority', 'issue_date', 'expiry_date', 'status', 'scope', 'test_standards',
                  'certificate_file', 'notes', 'days_until_expiry', 'is_valid', 'created_at', 'updated_at']
        read_only_fields = ['component', 'created_at', 'updated_at']


class ObsolescenceAlertSerializer(serializers.ModelSerializer):
    component_sku = serializers.CharField(source='component.sku', read_only=True)
    component_name = serializers.CharField(source='component.name', read_only=True)
    acknowledged_by_name = serializers.CharField(source='acknowledged_by.username', read_only=True, allow_null=True)
    is_acknowledged = serializers.BooleanField(read_only=True)

    class Meta:
        model = ObsolescenceAlert
        fields = ['id', 'component', 'component_sku', 'component_name', 'alert_type', 'severity', 'title',
                  'message', 'affected_projects', 'alert_date', 'is_acknowledged', 'acknowledged_at',
                  'acknowledged_by', 'acknowledged_by_name', 'is_resolved', 'resolved_at']
        read_only_fields = fields
