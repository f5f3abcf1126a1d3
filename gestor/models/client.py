"""
Cliente (empresa contratante de um produto Nexus).
"""

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from gestor.models.base import ScopedQuerySet, TimestampedModel
from gestor.models.plan import BillingCycle, ProductType


class ClientStatus(models.TextChoices):
    """
    Ciclo de vida do cliente.

    EM_TRIAL -> ATIVO -> INADIMPLENTE -> BLOQUEADO/CANCELADO
    """
    EM_TRIAL = 'EM_TRIAL', 'Em Trial'
    ATIVO = 'ATIVO', 'Ativo'
    INADIMPLENTE = 'INADIMPLENTE', 'Inadimplente'
    BLOQUEADO = 'BLOQUEADO', 'Bloqueado'
    CANCELADO = 'CANCELADO', 'Cancelado'


# Status considerados "em carteira" (contam para MRR e bloqueiam desativar plano)
ACTIVE_CLIENT_STATUSES = (ClientStatus.ATIVO, ClientStatus.EM_TRIAL)


class Client(TimestampedModel):
    """
    Cliente contratante.

    Características:
    - cpf_cnpj único (comparações de duplicidade usam só os dígitos)
    - active_subscription aponta para a assinatura vigente
    - Visibilidade por role segue o vendedor responsável
    """

    scope_field = 'vendedor'

    company = models.CharField(max_length=255, verbose_name='Empresa')
    contact_name = models.CharField(max_length=255, verbose_name='Contato')
    email = models.EmailField(verbose_name='Email')
    phone = models.CharField(max_length=30, blank=True, default='', verbose_name='Telefone')

    cpf_cnpj = models.CharField(
        max_length=20,
        unique=True,
        verbose_name='CPF/CNPJ'
    )

    role = models.CharField(max_length=100, blank=True, default='', verbose_name='Cargo do Contato')

    product_type = models.CharField(
        max_length=20,
        choices=ProductType.choices,
        verbose_name='Produto'
    )

    plan = models.ForeignKey(
        'gestor.Plan',
        on_delete=models.PROTECT,
        related_name='clients',
        verbose_name='Plano'
    )

    vendedor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='clients',
        verbose_name='Vendedor'
    )

    status = models.CharField(
        max_length=15,
        choices=ClientStatus.choices,
        default=ClientStatus.EM_TRIAL,
        db_index=True,
        verbose_name='Status'
    )

    billing_cycle = models.CharField(
        max_length=12,
        choices=BillingCycle.choices,
        default=BillingCycle.MONTHLY,
        verbose_name='Ciclo de Cobrança'
    )

    deal_summary = models.TextField(blank=True, default='', verbose_name='Resumo da Negociação')

    number_of_users = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
        verbose_name='Quantidade de Usuários'
    )

    closed_at = models.DateField(null=True, blank=True, verbose_name='Data de Fechamento')

    first_payment_date = models.DateField(null=True, blank=True, verbose_name='Data do Primeiro Pagamento')

    implementation_notes = models.TextField(blank=True, default='', verbose_name='Notas de Implantação')

    lead = models.ForeignKey(
        'gestor.Lead',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='clients',
        verbose_name='Lead de Origem'
    )

    converted_from_lead = models.BooleanField(default=False, verbose_name='Convertido de Lead')

    active_subscription = models.ForeignKey(
        'gestor.Subscription',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name='Assinatura Ativa'
    )

    notes = models.TextField(blank=True, default='', verbose_name='Observações')

    objects = ScopedQuerySet.as_manager()

    class Meta:
        verbose_name = 'Cliente'
        verbose_name_plural = 'Clientes'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'product_type'], name='gestor_client_status_prod_idx'),
            models.Index(fields=['vendedor', 'status'], name='gestor_client_vend_status_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.company} ({self.get_status_display()})"
