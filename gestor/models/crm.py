"""
Modelos do funil de vendas (CRM).

- FunnelStage: estágios configuráveis do funil
- LeadOrigin: origens de captação
- Lead: oportunidade em negociação
- LeadInteraction: linha do tempo de interações com o lead
"""

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from gestor.models.base import ScopedQuerySet, TimestampedModel
from gestor.models.plan import ProductType

# Nomes dos estágios terminais do funil
STAGE_WON = 'Ganho'
STAGE_LOST = 'Perdido'


class LeadStatus(models.TextChoices):
    """Status comercial do lead."""
    ABERTO = 'ABERTO', 'Aberto'
    GANHO = 'GANHO', 'Ganho'
    PERDIDO = 'PERDIDO', 'Perdido'


class FunnelStage(TimestampedModel):
    """
    Estágio do funil de vendas.

    Apenas um estágio pode ser o padrão (is_default) para novos leads.
    """

    name = models.CharField(max_length=100, unique=True, verbose_name='Nome')

    order = models.PositiveIntegerField(default=0, verbose_name='Ordem')

    color = models.CharField(
        max_length=20,
        default='#6B7280',
        verbose_name='Cor',
        help_text='Cor hexadecimal exibida no kanban'
    )

    is_default = models.BooleanField(default=False, verbose_name='Estágio Padrão')

    is_active = models.BooleanField(default=True, verbose_name='Ativo')

    class Meta:
        verbose_name = 'Estágio do Funil'
        verbose_name_plural = 'Estágios do Funil'
        ordering = ['order']

    def __str__(self) -> str:
        return f"{self.order}. {self.name}"


class LeadOrigin(TimestampedModel):
    """Origem de captação de leads (ex: Indicação, Site, Evento)."""

    name = models.CharField(max_length=100, unique=True, verbose_name='Nome')

    is_active = models.BooleanField(default=True, verbose_name='Ativo')

    class Meta:
        verbose_name = 'Origem de Lead'
        verbose_name_plural = 'Origens de Lead'
        ordering = ['name']

    def __str__(self) -> str:
        return self.name


class Lead(TimestampedModel):
    """
    Lead (oportunidade de venda).

    Visibilidade por role segue o vendedor responsável.
    """

    scope_field = 'vendedor'

    name = models.CharField(max_length=255, verbose_name='Nome do Contato')
    email = models.EmailField(blank=True, default='', verbose_name='Email')
    phone = models.CharField(max_length=30, blank=True, default='', verbose_name='Telefone')
    company_name = models.CharField(max_length=255, blank=True, default='', verbose_name='Empresa')
    cpf_cnpj = models.CharField(max_length=20, blank=True, default='', db_index=True, verbose_name='CPF/CNPJ')
    role = models.CharField(max_length=100, blank=True, default='', verbose_name='Cargo')
    city = models.CharField(max_length=120, blank=True, default='', verbose_name='Cidade')

    origin = models.ForeignKey(
        LeadOrigin,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='leads',
        verbose_name='Origem'
    )

    stage = models.ForeignKey(
        FunnelStage,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='leads',
        verbose_name='Estágio'
    )

    status = models.CharField(
        max_length=10,
        choices=LeadStatus.choices,
        default=LeadStatus.ABERTO,
        verbose_name='Status'
    )

    interest_product = models.CharField(
        max_length=20,
        choices=ProductType.choices,
        default=ProductType.ONE_NEXUS,
        verbose_name='Produto de Interesse'
    )

    interest_plan = models.ForeignKey(
        'gestor.Plan',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='interested_leads',
        verbose_name='Plano de Interesse'
    )

    vendedor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='leads',
        verbose_name='Vendedor'
    )

    notes = models.TextField(blank=True, default='', verbose_name='Observações')

    score = models.PositiveSmallIntegerField(
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        verbose_name='Lead Score'
    )

    ai_score_factors = models.JSONField(
        null=True,
        blank=True,
        verbose_name='Fatores do Score'
    )

    ai_score_updated_at = models.DateTimeField(null=True, blank=True, verbose_name='Score atualizado em')

    converted_at = models.DateTimeField(null=True, blank=True, verbose_name='Convertido em')

    objects = ScopedQuerySet.as_manager()

    class Meta:
        verbose_name = 'Lead'
        verbose_name_plural = 'Leads'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'interest_product'], name='gestor_lead_status_prod_idx'),
            models.Index(fields=['vendedor', '-created_at'], name='gestor_lead_vend_created_idx'),
        ]

    @property
    def display_name(self) -> str:
        return self.company_name or self.name

    def __str__(self) -> str:
        return f"{self.display_name} ({self.get_status_display()})"


class LeadInteraction(TimestampedModel):
    """Interação registrada na linha do tempo do lead."""

    lead = models.ForeignKey(
        Lead,
        on_delete=models.CASCADE,
        related_name='interactions',
        verbose_name='Lead'
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='lead_interactions',
        verbose_name='Usuário'
    )

    type = models.CharField(max_length=30, default='NOTE', verbose_name='Tipo')

    title = models.CharField(max_length=150, default='Interação', verbose_name='Título')

    content = models.TextField(verbose_name='Conteúdo')

    class Meta:
        verbose_name = 'Interação'
        verbose_name_plural = 'Interações'
        ordering = ['-created_at']

    def __str__(self) -> str:
        return f"{self.type} - {self.lead_id}"
