from rest_framework import serializers
from .models import User, CompanyProfile, AuditLog


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'phone', 'hourly_rate',
                  'is_active', 'is_staff', 'is_superuser', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class CompanyProfileSerializer(serializers.ModelSerializer):
    has_claude_key = serializers.SerializerMethodField()

    class Meta:
        model = CompanyProfile
        exclude = ['claude_api_key']
        read_only_fields = ['updated_at']

    def get_has_claude_key(self, obj):
        return bool(obj.claude_api_key)


class AuditLogSerializer(serializers.ModelSerializer):
    user_name = serializers.CharField(source='user.username', read_only=True, allow_null=True)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'user_name', 'action', 'model_name', 'object_id', 'object_name',
                  'object_reference', 'changes', 'ip_address', 'created_at']
