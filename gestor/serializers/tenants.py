from rest_framework import serializers

from gestor.models import Tenant, TenantStatus


class TenantSerializer(serializers.ModelSerializer):
    name = serializers.CharField(read_only=True)
    client_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Tenant
        fields = [
            'id', 'name', 'client_id', 'tenant_uuid', 'system_url', 'vps_location', 'status',
            'version', 'last_access_at', 'active_users', 'storage_used_mb', 'enabled_modules',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class TenantUpdateSerializer(serializers.Serializer):
    tenant_uuid = serializers.CharField(max_length=64, required=False)
    system_url = serializers.CharField(max_length=255, required=False)
    vps_location = serializers.CharField(max_length=50, required=False)
    status = serializers.ChoiceField(choices=TenantStatus.choices, required=False)
    version = serializers.CharField(max_length=20, required=False)
    enabled_modules = serializers.ListField(child=serializers.CharField(), required=False)


class TenantInputSerializer(TenantUpdateSerializer):
    client_id = serializers.UUIDField()
    tenant_uuid = serializers.CharField(max_length=64)
    system_url = serializers.CharField(max_length=255)
    vps_location = serializers.CharField(max_length=50)


class TenantMetricsSerializer(serializers.Serializer):
    last_access_at = serializers.DateTimeField(required=False)
    active_users = serializers.IntegerField(min_value=0, required=False)
    storage_used_mb = serializers.IntegerField(min_value=0, required=False)
