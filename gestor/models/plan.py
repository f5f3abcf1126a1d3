"""
Planos comerciais dos produtos Nexus.
"""

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from gestor.models.base import TimestampedModel


class ProductType(models.TextChoices):
    """Produtos comercializados."""
    ONE_NEXUS = 'ONE_NEXUS', 'One Nexus'
    LOCADORAS = 'LOCADORAS', 'Locadoras'


class BillingCycle(models.TextChoices):
    """Ciclos de cobrança."""
    MONTHLY = 'MONTHLY', 'Mensal'
    QUARTERLY = 'QUARTERLY', 'Trimestral'
    SEMIANNUAL = 'SEMIANNUAL', 'Semestral'
    ANNUAL = 'ANNUAL', 'Anual'


# Desconto aplicado ao valor mensal no ciclo anual
ANNUAL_DISCOUNT = Decimal('0.9')

# Nome do módulo de clientes exibido para cada produto
PRODUCT_MODULE_NAMES = {
    ProductType.ONE_NEXUS: 'Clientes One Nexus',
    ProductType.LOCADORAS: 'Clientes NexLoc',
}


class Plan(TimestampedModel):
    """
    Plano de assinatura de um produto.

    O código é único e sempre armazenado em maiúsculas. Planos não são
    excluídos, apenas desativados (is_active=False).
    """

    code = models.CharField(
        max_length=50,
        unique=True,
        verbose_name='Código',
        help_text='Código único do plano (ex: ONE_PRO)'
    )

    name = models.CharField(max_length=120, verbose_name='Nome')

    product = models.CharField(
        max_length=20,
        choices=ProductType.choices,
        verbose_name='Produto'
    )

    price_monthly = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
        verbose_name='Preço Mensal'
    )

    price_annual = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.00'))],
        verbose_name='Preço Anual'
    )

    setup_fee = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))],
        verbose_name='Taxa de Implantação'
    )

    included_modules = models.JSONField(
        default=list,
        blank=True,
        verbose_name='Módulos Incluídos'
    )

    is_active = models.BooleanField(default=True, verbose_name='Ativo')

    sort_order = models.PositiveIntegerField(default=0, verbose_name='Ordem')

    class Meta:
        verbose_name = 'Plano'
        verbose_name_plural = 'Planos'
        ordering = ['sort_order', 'price_monthly']
        indexes = [
            models.Index(fields=['product', 'is_active'], name='gestor_plan_prod_active_idx'),
        ]

    def save(self, *args, **kwargs):
        if self.code:
            self.code = self.code.strip().upper()
        super().save(*args, **kwargs)

    def monthly_amount(self, billing_cycle: str) -> Decimal:
        """
        Valor mensal efetivo para o ciclo (anual tem 10% de desconto).
        """
        amount = self.price_monthly or Decimal('0.00')
        if billing_cycle == BillingCycle.ANNUAL:
            amount = (amount * ANNUAL_DISCOUNT).quantize(Decimal('0.01'))
        return amount

    def __str__(self) -> str:
        return f"{self.name} ({self.get_product_display()})"
