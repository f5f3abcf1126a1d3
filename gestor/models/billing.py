"""
Assinaturas (ciclo de cobrança recorrente de um cliente).
"""

from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from gestor.models.base import ScopedQuerySet, TimestampedModel
from gestor.models.plan import BillingCycle


class SubscriptionStatus(models.TextChoices):
    ACTIVE = 'ACTIVE', 'Ativa'
    TRIALING = 'TRIALING', 'Em Trial'
    PAST_DUE = 'PAST_DUE', 'Em Atraso'
    CANCELED = 'CANCELED', 'Cancelada'


class CancellationReason(models.TextChoices):
    PLAN_CHANGE = 'PLAN_CHANGE', 'Troca de Plano'
    PAYMENT_FAILURE = 'PAYMENT_FAILURE', 'Falta de Pagamento'
    CUSTOMER_REQUEST = 'CUSTOMER_REQUEST', 'Solicitação do Cliente'
    OTHER = 'OTHER', 'Outro'


DEFAULT_GRACE_PERIOD_DAYS = 7


class Subscription(TimestampedModel):
    """
    Assinatura de um cliente a um plano.

    O dia âncora (1..28) fixa o dia do mês das cobranças. Após o
    vencimento, a assinatura entra em PAST_DUE e é cancelada quando o
    atraso ultrapassa grace_period_days.
    """

    scope_field = 'client__vendedor'

    client = models.ForeignKey(
        'gestor.Client',
        on_delete=models.CASCADE,
        related_name='subscriptions',
        verbose_name='Cliente'
    )

    plan = models.ForeignKey(
        'gestor.Plan',
        on_delete=models.PROTECT,
        related_name='subscriptions',
        verbose_name='Plano'
    )

    billing_cycle = models.CharField(
        max_length=12,
        choices=BillingCycle.choices,
        default=BillingCycle.MONTHLY,
        verbose_name='Ciclo'
    )

    billing_anchor_day = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(28)],
        verbose_name='Dia Âncora',
        help_text='Dia do mês das cobranças (1 a 28)'
    )

    current_period_start = models.DateField(verbose_name='Início do Período')

    current_period_end = models.DateField(verbose_name='Fim do Período')

    next_billing_date = models.DateField(db_index=True, verbose_name='Próxima Cobrança')

    status = models.CharField(
        max_length=10,
        choices=SubscriptionStatus.choices,
        default=SubscriptionStatus.ACTIVE,
        db_index=True,
        verbose_name='Status'
    )

    grace_period_days = models.PositiveSmallIntegerField(
        default=DEFAULT_GRACE_PERIOD_DAYS,
        verbose_name='Dias de Carência'
    )

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
        verbose_name='Valor'
    )

    canceled_at = models.DateTimeField(null=True, blank=True, verbose_name='Cancelada em')

    cancellation_reason = models.CharField(
        max_length=20,
        choices=CancellationReason.choices,
        blank=True,
        default='',
        verbose_name='Motivo do Cancelamento'
    )

    metadata = models.JSONField(default=dict, blank=True, verbose_name='Metadados')

    objects = ScopedQuerySet.as_manager()

    class Meta:
        verbose_name = 'Assinatura'
        verbose_name_plural = 'Assinaturas'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'next_billing_date'], name='gestor_sub_status_next_idx'),
            models.Index(fields=['client', '-created_at'], name='gestor_sub_client_created_idx'),
        ]

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.client} - {self.plan.name} ({self.get_status_display()})"
