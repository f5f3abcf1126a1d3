"""
Custom Management Command para popular os dados base do Gestor Nexus.

Cria (ou atualiza) os estágios padrão do funil, as origens de leads e os
planos comerciais dos dois produtos. Pode ser executado várias vezes.

Uso:
    python manage.py seed_gestor
"""

from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from gestor.models import FunnelStage, LeadOrigin, Plan, ProductType


class Command(BaseCommand):

    help = 'Popula estágios do funil, origens de leads e planos padrão.'

    # (nome, ordem, cor)
    STAGES = [
        ('Aberto', 1, '#94A3B8'),
        ('Tentativa de contato', 2, '#60A5FA'),
        ('Contato Feito', 3, '#38BDF8'),
        ('Demonstração agendada', 4, '#818CF8'),
        ('Qualificado', 5, '#A78BFA'),
        ('Proposta Enviada', 6, '#FBBF24'),
        ('Negociação', 7, '#FF7300'),
        ('Ganho', 8, '#34D399'),
        ('Perdido', 9, '#F87171'),
    ]

    ORIGINS = [
        'Website',
        'Indicação',
        'Redes Sociais',
        'Email Marketing',
        'Evento',
        'Cold Call',
        'Outro',
    ]

    # Preço anual = (mensal * 0.9) * 12
    PLANS = [
        {'code': 'ONE-BASIC', 'name': 'One Nexus Basic', 'product': ProductType.ONE_NEXUS,
         'price_monthly': Decimal('199.90'), 'price_annual': Decimal('2158.92')},
        {'code': 'ONE-PRO', 'name': 'One Nexus Pro', 'product': ProductType.ONE_NEXUS,
         'price_monthly': Decimal('450.00'), 'price_annual': Decimal('4860.00')},
        {'code': 'ONE-ENTERPRISE', 'name': 'One Nexus Enterprise', 'product': ProductType.ONE_NEXUS,
         'price_monthly': Decimal('850.00'), 'price_annual': Decimal('9180.00')},
        {'code': 'LOC-STANDARD', 'name': 'Locadoras Standard', 'product': ProductType.LOCADORAS,
         'price_monthly': Decimal('1200.00'), 'price_annual': Decimal('12960.00')},
        {'code': 'LOC-GOLD', 'name': 'Locadoras Gold', 'product': ProductType.LOCADORAS,
         'price_monthly': Decimal('397.00'), 'price_annual': Decimal('4287.60')},
    ]

    @transaction.atomic
    def handle(self, *args, **options):
        for name, order, color in self.STAGES:
            FunnelStage.objects.update_or_create(
                name=name,
                defaults={'order': order, 'color': color, 'is_default': order == 1, 'is_active': True},
            )
        self.stdout.write(self.style.SUCCESS(f'[OK] {len(self.STAGES)} estagios do funil'))

        for name in self.ORIGINS:
            LeadOrigin.objects.update_or_create(name=name, defaults={'is_active': True})
        self.stdout.write(self.style.SUCCESS(f'[OK] {len(self.ORIGINS)} origens de leads'))

        for sort_order, plan in enumerate(self.PLANS, start=1):
            data = dict(plan)
            code = data.pop('code')
            Plan.objects.update_or_create(code=code, defaults={**data, 'sort_order': sort_order, 'is_active': True})
        self.stdout.write(self.style.SUCCESS(f'[OK] {len(self.PLANS)} planos'))
