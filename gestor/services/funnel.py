"""
Service dos estágios do funil de vendas e origens de leads.
"""

import logging
from typing import Dict, List

from django.db import transaction
from django.utils import timezone

from gestor.exceptions import Conflict, NotFound
from gestor.models import FunnelStage, Lead, LeadOrigin

logger = logging.getLogger(__name__)


class FunnelStageService:
    """
    Gerencia os estágios do funil.

    Apenas um estágio pode ser o padrão; marcar um novo padrão desmarca os demais.
    """

    def find_all(self, include_inactive: bool = False):
        qs = FunnelStage.objects.all()
        if not include_inactive:
            qs = qs.filter(is_active=True)
        return qs.order_by('order')

    def find_one(self, stage_id) -> FunnelStage:
        try:
            return FunnelStage.objects.get(id=stage_id)
        except FunnelStage.DoesNotExist:
            raise NotFound(f'Estágio {stage_id} não encontrado')

    def _ensure_unique_name(self, name: str, exclude_id=None) -> None:
        qs = FunnelStage.objects.filter(name__iexact=name.strip())
        if exclude_id:
            qs = qs.exclude(id=exclude_id)
        if qs.exists():
            raise Conflict(f'Já existe um estágio com o nome "{name}"')

    @transaction.atomic
    def create(self, data: Dict) -> FunnelStage:
        self._ensure_unique_name(data['name'])

        if data.get('is_default'):
            FunnelStage.objects.filter(is_default=True).update(is_default=False, updated_at=timezone.now())

        stage = FunnelStage.objects.create(**data)
        logger.info(f'[FUNNEL] Estágio criado: {stage.name} (ordem {stage.order})')
        return stage

    @transaction.atomic
    def update(self, stage_id, data: Dict) -> FunnelStage:
        stage = self.find_one(stage_id)

        if data.get('name') and data['name'].strip().lower() != stage.name.lower():
            self._ensure_unique_name(data['name'], exclude_id=stage.id)

        if data.get('is_default'):
            FunnelStage.objects.filter(is_default=True).exclude(id=stage.id).update(is_default=False, updated_at=timezone.now())

        for field, value in data.items():
            setattr(stage, field, value)
        stage.save()

        logger.info(f'[FUNNEL] Estágio atualizado: {stage.name}')
        return stage

    @transaction.atomic
    def reorder(self, items: List[Dict]) -> List[FunnelStage]:
        """
        Atualiza a ordem de vários estágios de uma vez.

        Args:
            items: Lista de {'id': UUID, 'order': int}

        Raises:
            NotFound: Se algum estágio não existir (nada é alterado)
        """
        ids = [item['id'] for item in items]
        existing = set(FunnelStage.objects.filter(id__in=ids).values_list('id', flat=True))
        missing = [str(i) for i in ids if i not in existing]
        if missing:
            raise NotFound(f'Estágio(s) não encontrado(s): {", ".join(missing)}')

        for item in items:
            FunnelStage.objects.filter(id=item['id']).update(order=item['order'], updated_at=timezone.now())

        logger.info(f'[FUNNEL] {len(items)} estágio(s) reordenado(s)')
        return list(self.find_all(include_inactive=True))

    def remove(self, stage_id) -> None:
        """
        Remove o estágio.

        Raises:
            Conflict: Se houver leads vinculados ao estágio
        """
        stage = self.find_one(stage_id)

        leads_count = Lead.objects.filter(stage=stage).count()
        if leads_count > 0:
            raise Conflict(
                f'Não é possível excluir o estágio "{stage.name}" com {leads_count} lead(s) vinculado(s)'
            )

        stage.delete()
        logger.info(f'[FUNNEL] Estágio removido: {stage.name}')

    def origins(self):
        """Origens de lead ativas, por nome."""
        return LeadOrigin.objects.filter(is_active=True).order_by('name')
