"""
Serializers de usuários, autenticação e permissões.
"""

from django.contrib.auth import get_user_model
from rest_framework import serializers

from gestor.models import PermissionModule, UserPermission, UserRole

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    gestor_id = serializers.UUIDField(read_only=True)
    gestor_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'email', 'name', 'role', 'gestor_id', 'gestor_name', 'is_active', 'last_login', 'created_at']
        read_only_fields = fields

    def get_gestor_name(self, obj):
        return obj.gestor.display_name if obj.gestor else None


class UserCreateSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(min_length=8, write_only=True)
    name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    role = serializers.ChoiceField(choices=UserRole.choices, default=UserRole.VENDEDOR)
    gestor_id = serializers.UUIDField(required=False, allow_null=True)
    is_active = serializers.BooleanField(required=False)


class UserUpdateSerializer(UserCreateSerializer):
    email = serializers.EmailField(required=False)
    password = serializers.CharField(min_length=8, write_only=True, required=False)
    role = serializers.ChoiceField(choices=UserRole.choices, required=False)


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField()
    new_password = serializers.CharField(min_length=8)

    def validate(self, attrs):
        if attrs['current_password'] == attrs['new_password']:
            raise serializers.ValidationError({'new_password': 'A nova senha deve ser diferente da atual.'})
        return attrs


class UserPermissionSerializer(serializers.ModelSerializer):

    class Meta:
        model = UserPermission
        fields = ['id', 'module', 'can_view', 'can_create', 'can_edit', 'can_delete']


class PermissionInputSerializer(serializers.Serializer):
    module = serializers.ChoiceField(choices=PermissionModule.choices)
    can_view = serializers.BooleanField(required=False)
    can_create = serializers.BooleanField(required=False)
    can_edit = serializers.BooleanField(required=False)
    can_delete = serializers.BooleanField(required=False)
