"""
Service de planos comerciais.
"""

import logging
from typing import Dict, Optional

from gestor.exceptions import Conflict, NotFound
from gestor.models import ACTIVE_CLIENT_STATUSES, Client, Plan
from gestor.services.audit import AuditService

logger = logging.getLogger(__name__)


class PlanService:
    """CRUD de planos com desativação lógica."""

    def __init__(self):
        self.audit = AuditService()

    def find_all(self, product: Optional[str] = None, is_active: Optional[bool] = None):
        """
        Lista planos ordenados por sort_order e preço.
        """
        qs = Plan.objects.all()
        if product:
            qs = qs.filter(product=product)
        if is_active is not None:
            qs = qs.filter(is_active=is_active)
        return qs.order_by('sort_order', 'price_monthly')

    def find_one(self, plan_id) -> Plan:
        try:
            return Plan.objects.get(id=plan_id)
        except Plan.DoesNotExist:
            raise NotFound(f'Plano {plan_id} não encontrado')

    def find_by_code(self, code: str) -> Plan:
        try:
            return Plan.objects.get(code=(code or '').strip().upper())
        except Plan.DoesNotExist:
            raise NotFound(f'Plano com código {code} não encontrado')

    def _ensure_unique_code(self, code: str, exclude_id=None) -> None:
        qs = Plan.objects.filter(code=code.strip().upper())
        if exclude_id:
            qs = qs.exclude(id=exclude_id)
        if qs.exists():
            raise Conflict(f'Já existe um plano com o código {code.upper()}')

    def create(self, data: Dict, user=None) -> Plan:
        self._ensure_unique_code(data['code'])
        plan = Plan.objects.create(**data)
        logger.info(f'[PLANS] Plano criado: {plan.code} - {plan.name}')
        self.audit.log('CREATE', 'Plan', plan.id, user=user, new_data=data)
        return plan

    def update(self, plan_id, data: Dict, user=None) -> Plan:
        plan = self.find_one(plan_id)

        if data.get('code') and data['code'].strip().upper() != plan.code:
            self._ensure_unique_code(data['code'], exclude_id=plan.id)

        for field, value in data.items():
            setattr(plan, field, value)
        plan.save()

        logger.info(f'[PLANS] Plano atualizado: {plan.code}')
        self.audit.log('UPDATE', 'Plan', plan.id, user=user, new_data=data)
        return plan

    def remove(self, plan_id, user=None) -> Plan:
        """
        Desativa o plano (soft delete).

        Raises:
            Conflict: Se houver clientes ATIVO/EM_TRIAL usando o plano
        """
        plan = self.find_one(plan_id)

        active_clients = Client.objects.filter(plan=plan, status__in=ACTIVE_CLIENT_STATUSES).count()
        if active_clients > 0:
            raise Conflict(
                f'Não é possível desativar plano com {active_clients} cliente(s) ativo(s)'
            )

        plan.is_active = False
        plan.save(update_fields=['is_active', 'updated_at'])

        logger.info(f'[PLANS] Plano desativado: {plan.code}')
        self.audit.log('DELETE', 'Plan', plan.id, user=user)
        return plan

    def restore(self, plan_id, user=None) -> Plan:
        plan = self.find_one(plan_id)
        plan.is_active = True
        plan.save(update_fields=['is_active', 'updated_at'])
        logger.info(f'[PLANS] Plano reativado: {plan.code}')
        self.audit.log('RESTORE', 'Plan', plan.id, user=user)
        return plan
