from rest_framework import serializers
from backoffice.components.models import Component
from .models import InventoryMovement, Equipment, Material


class InventoryMovementSerializer(serializers.ModelSerializer):
    component = serializers.PrimaryKeyRelatedField(queryset=Component.objects.all())
    component_sku = serializers.CharField(source='component.sku', read_only=True)
    user_name = serializers.CharField(source='user.username', read_only=True, allow_null=True)

    class Meta:
        model = InventoryMovement
        fields = [
            'id', 'component', 'component_sku', 'type', 'quantity', 'quantity_before', 'quantity_after',
            'unit_cost', 'total_cost', 'reason', 'notes', 'user', 'user_name', 'invoice_number',
            'invoice_date', 'supplier', 'destination_project', 'created_at',
        ]
        read_only_fields = ['quantity_before', 'quantity_after', 'total_cost', 'user', 'created_at']

    def create(self, validated_data):
        data = dict(validated_data)
        return InventoryMovement.record_movement(
            data.pop('component'), data.pop('type'), data.pop('quantity'),
            unit_cost=data.pop('unit_cost', None), **data
        )


class EquipmentSerializer(serializers.ModelSerializer):
    needs_maintenance = serializers.BooleanField(read_only=True)
    needs_calibration = serializers.BooleanField(read_only=True)
    is_warranty_expired = serializers.BooleanField(read_only=True)
    calculated_value = serializers.SerializerMethodField()

    class Meta:
        model = Equipment
        fields = [
            'id', 'code', 'name', 'description', 'category', 'brand', 'model', 'serial_number',
            'purchase_price', 'currency', 'purchase_date', 'supplier', 'invoice_reference', 'status',
            'location', 'responsible_user', 'warranty_expiry', 'last_maintenance', 'next_maintenance',
            'maintenance_interval_months', 'calibration_required', 'last_calibration', 'next_calibration',
            'calibration_interval_months', 'depreciation_rate', 'current_value', 'calculated_value',
            'technical_specs', 'notes', 'needs_maintenance', 'needs_calibration', 'is_warranty_expired',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['code', 'created_at', 'updated_at']

    def get_calculated_value(self, obj):
        value = obj.calculate_current_value()
        return str(value) if value is not None else None


class MaterialSerializer(serializers.ModelSerializer):
    is_low_stock = serializers.BooleanField(read_only=True)
    is_expired = serializers.BooleanField(read_only=True)

    class Meta:
        model = Material
        fields = [
            'id', 'code', 'name', 'description', 'category', 'brand', 'model', 'color', 'material_type',
            'diameter', 'weight_kg', 'unit_price', 'currency', 'stock_quantity', 'min_stock_level',
            'unit_of_measure', 'storage_location', 'status', 'supplier', 'supplier_code', 'purchase_date',
            'expiry_date', 'temperature_storage_min', 'temperature_storage_max', 'notes',
            'is_low_stock', 'is_expired', 'created_at', 'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']

    def validate(self, attrs):
        low = attrs.get('temperature_storage_min', getattr(self.instance, 'temperature_storage_min', None))
        high = attrs.get('temperature_storage_max', getattr(self.instance, 'temperature_storage_max', None))
        if low is not None and high is not None and low > high:
            raise serializers.ValidationError(
                {'temperature_storage_max': 'Maximum storage temperature is below the minimum'}
            )
        return attrs
