"""
Serializers de clientes e assinaturas.
"""

from rest_framework import serializers

from gestor.models import BillingCycle, Client, ClientStatus, ProductType, Subscription
from gestor.utils.documents import PENDING_DOCUMENT, clean_document, validate_cnpj, validate_cpf


class ClientSerializer(serializers.ModelSerializer):
    plan = serializers.SerializerMethodField()
    vendedor = serializers.SerializerMethodField()
    next_due_date = serializers.SerializerMethodField()

    class Meta:
        model = Client
        fields = [
            'id', 'company', 'contact_name', 'email', 'phone', 'cpf_cnpj', 'role',
            'product_type', 'plan', 'vendedor', 'status', 'billing_cycle',
            'deal_summary', 'number_of_users', 'closed_at', 'first_payment_date',
            'implementation_notes', 'lead_id', 'converted_from_lead',
            'active_subscription_id', 'notes', 'next_due_date', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_plan(self, obj):
        return {
            'id': str(obj.plan.id),
            'code': obj.plan.code,
            'name': obj.plan.name,
            'price_monthly': str(obj.plan.price_monthly),
        }

    def get_vendedor(self, obj):
        return {'id': str(obj.vendedor.id), 'name': obj.vendedor.display_name, 'email': obj.vendedor.email}

    def get_next_due_date(self, obj):
        # Preenchido pelo ClientService (find_all/find_one)
        value = getattr(obj, 'next_due_date', None)
        return value.isoformat() if value else None


class ClientInputSerializer(serializers.Serializer):
    company = serializers.CharField(max_length=255)
    contact_name = serializers.CharField(max_length=255)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True)
    cpf_cnpj = serializers.CharField(max_length=20)
    role = serializers.CharField(max_length=100, required=False, allow_blank=True)
    product_type = serializers.ChoiceField(choices=ProductType.choices)
    plan_id = serializers.UUIDField()
    vendedor_id = serializers.UUIDField(required=False, allow_null=True)
    lead_id = serializers.UUIDField(required=False, allow_null=True)
    status = serializers.ChoiceField(choices=ClientStatus.choices, required=False)
    billing_cycle = serializers.ChoiceField(choices=BillingCycle.choices, default=BillingCycle.MONTHLY)
    billing_anchor_day = serializers.IntegerField(min_value=1, max_value=31, required=False, allow_null=True)
    deal_summary = serializers.CharField(required=False, allow_blank=True)
    number_of_users = serializers.IntegerField(min_value=1, required=False)
    closed_at = serializers.DateField(required=False, allow_null=True)
    first_payment_date = serializers.DateField(required=False, allow_null=True)
    implementation_notes = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate_cpf_cnpj(self, value):
        if value == PENDING_DOCUMENT:
            return value
        digits = clean_document(value)
        if len(digits) == 11 and validate_cpf(digits):
            return value
        if len(digits) == 14 and validate_cnpj(digits):
            return value
        raise serializers.ValidationError('CPF/CNPJ inválido.')


class SubscriptionSerializer(serializers.ModelSerializer):
    plan_name = serializers.CharField(source='plan.name', read_only=True)

    class Meta:
        model = Subscription
        fields = [
            'id', 'client_id', 'plan_id', 'plan_name', 'billing_cycle', 'billing_anchor_day',
            'current_period_start', 'current_period_end', 'next_billing_date', 'status',
            'grace_period_days', 'amount', 'canceled_at', 'cancellation_reason', 'metadata',
            'created_at',
        ]
        read_only_fields = fields


class ReactivateSubscriptionSerializer(serializers.Serializer):
    plan_id = serializers.UUIDField()
    billing_cycle = serializers.ChoiceField(choices=BillingCycle.choices)
    new_payment_date = serializers.DateField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
