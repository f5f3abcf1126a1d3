"""
Serializers de lançamentos financeiros e pagamentos.

Lançamentos são devolvidos pelo FinanceService.format (status calculado),
então aqui só existe o serializer de entrada.
"""

from rest_framework import serializers

from gestor.models import FinanceTransaction, Payment


class TransactionInputSerializer(serializers.ModelSerializer):

    class Meta:
        model = FinanceTransaction
        fields = [
            'description', 'amount', 'type', 'category', 'date', 'due_date', 'status',
            'paid_at', 'client', 'subscription', 'product_type', 'is_recurring',
        ]


class TransactionFilterSerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    type = serializers.CharField(required=False)
    category = serializers.CharField(required=False)
    status = serializers.CharField(required=False)
    client_id = serializers.UUIDField(required=False)
    product_type = serializers.CharField(required=False)
    sort_by_date = serializers.ChoiceField(choices=['asc', 'desc'], required=False)
    sort_by_amount = serializers.ChoiceField(choices=['asc', 'desc'], required=False)


class PdfImportSerializer(serializers.Serializer):
    file = serializers.FileField()

    def validate_file(self, value):
        if not value.name.lower().endswith('.pdf'):
            raise serializers.ValidationError('Envie um arquivo PDF.')
        return value


class PaymentSerializer(serializers.ModelSerializer):
    client_name = serializers.CharField(source='client.company', read_only=True)

    class Meta:
        model = Payment
        fields = [
            'id', 'client', 'client_name', 'subscription', 'amount', 'due_date', 'status',
            'method', 'billing_cycle', 'period_start', 'period_end', 'external_id',
            'gateway', 'gateway_id', 'gateway_data', 'paid_at', 'cancelled_at', 'notes',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'client_name', 'gateway_data', 'cancelled_at', 'created_at', 'updated_at']
