"""
Modelos do domínio financeiro do Gestor Nexus.

- FinanceTransaction: lançamento financeiro (receitas de assinatura,
  setup, suporte, despesas). O status exibido é calculado a partir de
  paid_at/due_date e nunca persistido como OVERDUE pelo sistema.
- Payment: cobrança emitida para o cliente, opcionalmente vinculada a
  um gateway (Asaas, AbacatePay).
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from gestor.models.base import ScopedQuerySet, TimestampedModel
from gestor.models.plan import BillingCycle, ProductType
from gestor.utils.dates import today as local_today


class TransactionType(models.TextChoices):
    INCOME = 'INCOME', 'Receita'
    EXPENSE = 'EXPENSE', 'Despesa'


class TransactionCategory(models.TextChoices):
    SUBSCRIPTION = 'SUBSCRIPTION', 'Assinatura'
    SETUP = 'SETUP', 'Setup'
    SUPPORT = 'SUPPORT', 'Suporte'
    CONSULTING = 'CONSULTING', 'Consultoria'
    OTHER = 'OTHER', 'Outros'


class TransactionStatus(models.TextChoices):
    PAID = 'PAID', 'Pago'
    PENDING = 'PENDING', 'Pendente'
    OVERDUE = 'OVERDUE', 'Vencido'
    CANCELLED = 'CANCELLED', 'Cancelado'


class PaymentStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pendente'
    PAID = 'PAID', 'Pago'
    OVERDUE = 'OVERDUE', 'Vencido'
    CANCELLED = 'CANCELLED', 'Cancelado'
    REFUNDED = 'REFUNDED', 'Estornado'


class PaymentMethod(models.TextChoices):
    PIX = 'PIX', 'PIX'
    CARTAO = 'CARTAO', 'Cartão'
    BOLETO = 'BOLETO', 'Boleto'
    TRANSFERENCIA = 'TRANSFERENCIA', 'Transferência'


class PaymentGateway(models.TextChoices):
    ASAAS = 'ASAAS', 'Asaas'
    ABACATEPAY = 'ABACATEPAY', 'AbacatePay'
    MANUAL = 'MANUAL', 'Manual'


def calculate_transaction_status(
    status: str,
    paid_at,
    due_date: Optional[date],
    reference: Optional[date] = None
) -> str:
    """
    Status calculado de um lançamento.

    Regras (em ordem):
    1. CANCELLED persistido prevalece
    2. paid_at preenchido -> PAID
    3. due_date anterior a hoje -> OVERDUE
    4. caso contrário -> PENDING
    """
    if status == TransactionStatus.CANCELLED:
        return TransactionStatus.CANCELLED
    if paid_at:
        return TransactionStatus.PAID
    reference = reference or local_today()
    if due_date and due_date < reference:
        return TransactionStatus.OVERDUE
    return TransactionStatus.PENDING


class FinanceTransaction(TimestampedModel):
    """
    Lançamento financeiro.

    Características:
    - Assinaturas recorrentes exigem data de vencimento
    - created_by nulo indica lançamento gerado pelo sistema (rotinas de billing)
    - product_type pode ser omitido e herdado do cliente na exibição
    """

    scope_field = 'client__vendedor'

    description = models.CharField(max_length=300, verbose_name='Descrição')

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
        verbose_name='Valor'
    )

    type = models.CharField(
        max_length=10,
        choices=TransactionType.choices,
        default=TransactionType.INCOME,
        verbose_name='Tipo'
    )

    category = models.CharField(
        max_length=15,
        choices=TransactionCategory.choices,
        default=TransactionCategory.OTHER,
        verbose_name='Categoria'
    )

    date = models.DateField(db_index=True, verbose_name='Data')

    due_date = models.DateField(null=True, blank=True, db_index=True, verbose_name='Vencimento')

    status = models.CharField(
        max_length=10,
        choices=TransactionStatus.choices,
        default=TransactionStatus.PENDING,
        db_index=True,
        verbose_name='Status'
    )

    paid_at = models.DateTimeField(null=True, blank=True, verbose_name='Pago em')

    client = models.ForeignKey(
        'gestor.Client',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='transactions',
        verbose_name='Cliente'
    )

    subscription = models.ForeignKey(
        'gestor.Subscription',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='transactions',
        verbose_name='Assinatura'
    )

    product_type = models.CharField(
        max_length=20,
        choices=ProductType.choices,
        blank=True,
        default='',
        verbose_name='Produto'
    )

    is_recurring = models.BooleanField(default=False, verbose_name='Recorrente')

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_transactions',
        verbose_name='Criado por',
        help_text='Vazio quando gerado automaticamente pelo sistema'
    )

    objects = ScopedQuerySet.as_manager()

    class Meta:
        verbose_name = 'Lançamento Financeiro'
        verbose_name_plural = 'Lançamentos Financeiros'
        ordering = ['-date', '-created_at']
        indexes = [
            models.Index(fields=['type', 'status', 'is_recurring'], name='gestor_tx_type_status_idx'),
            models.Index(fields=['client', 'status'], name='gestor_tx_client_status_idx'),
        ]

    def clean(self):
        """Assinaturas recorrentes precisam de vencimento."""
        super().clean()
        if (self.category == TransactionCategory.SUBSCRIPTION
                and self.is_recurring and not self.due_date):
            raise ValidationError({
                'due_date': 'Data de vencimento é obrigatória para assinaturas recorrentes'
            })

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)

    @property
    def calculated_status(self) -> str:
        """Status exibido (ver calculate_transaction_status)."""
        return calculate_transaction_status(self.status, self.paid_at, self.due_date)

    def __str__(self) -> str:
        return f"{self.description} - R$ {self.amount} ({self.get_status_display()})"


class Payment(TimestampedModel):
    """
    Cobrança de um cliente.

    gateway_id identifica a cobrança no gateway (usado pelos webhooks).
    """

    scope_field = 'client__vendedor'

    client = models.ForeignKey(
        'gestor.Client',
        on_delete=models.CASCADE,
        related_name='payments',
        verbose_name='Cliente'
    )

    subscription = models.ForeignKey(
        'gestor.Subscription',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payments',
        verbose_name='Assinatura'
    )

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
        verbose_name='Valor'
    )

    due_date = models.DateField(db_index=True, verbose_name='Vencimento')

    status = models.CharField(
        max_length=10,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
        db_index=True,
        verbose_name='Status'
    )

    method = models.CharField(
        max_length=15,
        choices=PaymentMethod.choices,
        default=PaymentMethod.PIX,
        verbose_name='Forma de Pagamento'
    )

    billing_cycle = models.CharField(
        max_length=12,
        choices=BillingCycle.choices,
        blank=True,
        default='',
        verbose_name='Ciclo'
    )

    period_start = models.DateField(null=True, blank=True, verbose_name='Início do Período')
    period_end = models.DateField(null=True, blank=True, verbose_name='Fim do Período')

    external_id = models.CharField(max_length=120, blank=True, default='', db_index=True, verbose_name='ID Externo')

    gateway = models.CharField(
        max_length=12,
        choices=PaymentGateway.choices,
        default=PaymentGateway.MANUAL,
        verbose_name='Gateway'
    )

    gateway_id = models.CharField(max_length=120, blank=True, default='', db_index=True, verbose_name='ID no Gateway')

    gateway_data = models.JSONField(null=True, blank=True, verbose_name='Dados do Gateway')

    paid_at = models.DateTimeField(null=True, blank=True, verbose_name='Pago em')

    cancelled_at = models.DateTimeField(null=True, blank=True, verbose_name='Cancelado em')

    notes = models.TextField(blank=True, default='', verbose_name='Observações')

    objects = ScopedQuerySet.as_manager()

    class Meta:
        verbose_name = 'Pagamento'
        verbose_name_plural = 'Pagamentos'
        ordering = ['-due_date']
        indexes = [
            models.Index(fields=['gateway', 'gateway_id'], name='gestor_pay_gateway_idx'),
            models.Index(fields=['client', '-due_date'], name='gestor_pay_client_due_idx'),
        ]

    def is_overdue(self) -> bool:
        """
        Pagamento vencido: não pago/cancelado e vencimento anterior a hoje.
        """
        if self.status in (PaymentStatus.PAID, PaymentStatus.CANCELLED, PaymentStatus.REFUNDED):
            return False
        return self.due_date < local_today()

    def __str__(self) -> str:
        return f"{self.client} - R$ {self.amount} ({self.get_status_display()})"
