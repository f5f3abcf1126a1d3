"""
Serializers de planos, funil e leads.

Unicidade (código do plano, nome do estágio) é validada nos services,
que respondem 409 em vez de 400.
"""

from rest_framework import serializers

from gestor.models import (
    BillingCycle, FunnelStage, Lead, LeadInteraction, LeadOrigin, LeadStatus, Plan, ProductType
)
from gestor.services.lead_score import classify_score

# Status aceitos na edição do lead (os legados viram mudança de estágio)
LEAD_UPDATE_STATUSES = list(LeadStatus.values) + [
    'TENTATIVA_CONTATO', 'EM_CONTATO', 'DEMONSTRACAO', 'QUALIFICADO', 'PROPOSTA', 'NEGOCIACAO',
]


class PlanSerializer(serializers.ModelSerializer):

    class Meta:
        model = Plan
        fields = [
            'id', 'code', 'name', 'product', 'price_monthly', 'price_annual', 'setup_fee',
            'included_modules', 'is_active', 'sort_order', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']
        extra_kwargs = {'code': {'validators': []}}

    def validate_included_modules(self, value):
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise serializers.ValidationError('Informe uma lista de módulos.')
        return value


class FunnelStageSerializer(serializers.ModelSerializer):

    class Meta:
        model = FunnelStage
        fields = ['id', 'name', 'order', 'color', 'is_default', 'is_active', 'created_at']
        read_only_fields = ['id', 'created_at']
        extra_kwargs = {'name': {'validators': []}}


class ReorderItemSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    order = serializers.IntegerField(min_value=0)


class LeadOriginSerializer(serializers.ModelSerializer):

    class Meta:
        model = LeadOrigin
        fields = ['id', 'name', 'is_active']


class LeadInteractionSerializer(serializers.ModelSerializer):
    user_name = serializers.SerializerMethodField()

    class Meta:
        model = LeadInteraction
        fields = ['id', 'type', 'title', 'content', 'user_name', 'created_at']

    def get_user_name(self, obj):
        return obj.user.display_name if obj.user else 'Sistema'


class LeadSerializer(serializers.ModelSerializer):
    origin = serializers.CharField(source='origin.name', default=None, read_only=True)
    stage = serializers.SerializerMethodField()
    interest_plan = serializers.SerializerMethodField()
    vendedor = serializers.SerializerMethodField()
    classification = serializers.SerializerMethodField()

    class Meta:
        model = Lead
        fields = [
            'id', 'name', 'email', 'phone', 'company_name', 'cpf_cnpj', 'role', 'city',
            'origin', 'stage', 'status', 'interest_product', 'interest_plan', 'vendedor',
            'notes', 'score', 'classification', 'ai_score_factors', 'ai_score_updated_at',
            'converted_at', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_stage(self, obj):
        if not obj.stage:
            return None
        return {'id': str(obj.stage.id), 'name': obj.stage.name, 'color': obj.stage.color}

    def get_interest_plan(self, obj):
        if not obj.interest_plan:
            return None
        return {'id': str(obj.interest_plan.id), 'name': obj.interest_plan.name}

    def get_vendedor(self, obj):
        return {'id': str(obj.vendedor.id), 'name': obj.vendedor.display_name} if obj.vendedor else None

    def get_classification(self, obj):
        return classify_score(obj.score or 0)


class LeadDetailSerializer(LeadSerializer):
    interactions = LeadInteractionSerializer(many=True, read_only=True)

    class Meta(LeadSerializer.Meta):
        fields = LeadSerializer.Meta.fields + ['interactions']
        read_only_fields = fields


class LeadInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    email = serializers.EmailField(required=False, allow_blank=True)
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True)
    company_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    cpf_cnpj = serializers.CharField(max_length=20, required=False, allow_blank=True)
    role = serializers.CharField(max_length=100, required=False, allow_blank=True)
    city = serializers.CharField(max_length=120, required=False, allow_blank=True)
    origin = serializers.CharField(max_length=100, required=False, allow_blank=True)
    stage_id = serializers.UUIDField(required=False, allow_null=True)
    status = serializers.ChoiceField(choices=LEAD_UPDATE_STATUSES, required=False)
    interest_product = serializers.ChoiceField(choices=ProductType.choices, required=False)
    interest_plan_id = serializers.UUIDField(required=False, allow_null=True)
    vendedor_id = serializers.UUIDField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate_status(self, value):
        if not self.partial and value not in LeadStatus.values:
            raise serializers.ValidationError('Status inválido para criação de lead.')
        return value


class InteractionInputSerializer(serializers.Serializer):
    content = serializers.CharField()


class LeadConvertSerializer(serializers.Serializer):
    plan_id = serializers.UUIDField()
    billing_cycle = serializers.ChoiceField(choices=BillingCycle.choices, default=BillingCycle.MONTHLY)
    deal_summary = serializers.CharField(required=False, allow_blank=True)
    number_of_users = serializers.IntegerField(min_value=1, default=1)
    closed_at = serializers.DateField(required=False, allow_null=True)
    first_payment_date = serializers.DateField(required=False, allow_null=True)
    billing_anchor_day = serializers.IntegerField(min_value=1, max_value=31, required=False, allow_null=True)
    implementation_notes = serializers.CharField(required=False, allow_blank=True)
