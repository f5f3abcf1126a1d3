"""
Service de Lead Score.

Calcula uma pontuação de 0 a 100 para cada lead somando quatro fatores:

- Completude dos dados (até 15): 3 pontos por campo preenchido
- Valor do plano (5 a 15): pelo nome do plano ou pela faixa de preço
- Qualidade da origem (2 a 10): indicação > evento > inbound > social > outbound
- Progresso no funil (até 60): posição do estágio entre os estágios ativos

Classificação: >= 80 QUENTE, >= 50 MORNO, abaixo disso FRIO.
"""

import logging
import math
from decimal import Decimal
from typing import Dict, List, Optional

from django.utils import timezone

from gestor.models import FunnelStage, Lead

logger = logging.getLogger(__name__)

COMPLETENESS_FIELDS = ('name', 'email', 'phone', 'company_name', 'cpf_cnpj')
POINTS_PER_FIELD = 3

STAGE_PROGRESS_MAX = 60
STAGE_PROGRESS_UNKNOWN = 30

# (palavras-chave, pontos) avaliados em ordem
PLAN_NAME_POINTS = (
    (('enterprise', 'premium'), 15),
    (('pro', 'professional'), 12),
    (('basic', 'starter'), 10),
)

ORIGIN_POINTS = (
    (('indicação', 'indicacao', 'referral'), 10),
    (('evento', 'feira', 'event'), 8),
    (('site', 'formulário', 'formulario', 'form', 'inbound'), 6),
    (('social', 'instagram', 'facebook', 'linkedin'), 4),
    (('cold', 'outbound', 'prospecção', 'prospeccao'), 2),
)
ORIGIN_DEFAULT_POINTS = 5
ORIGIN_MISSING_POINTS = 3
PLAN_MISSING_POINTS = 5


def round_half_up(value: float) -> int:
    """Arredondamento comercial (0.5 sobe)."""
    return int(math.floor(value + 0.5))


def classify_score(score: int) -> Dict[str, str]:
    """
    Classifica o score em temperatura.

    Returns:
        {'label': 'QUENTE'|'MORNO'|'FRIO', 'color': 'green'|'yellow'|'red'}
    """
    if score >= 80:
        return {'label': 'QUENTE', 'color': 'green'}
    if score >= 50:
        return {'label': 'MORNO', 'color': 'yellow'}
    return {'label': 'FRIO', 'color': 'red'}


class LeadScoreService:
    """
    Calcula e persiste o Lead Score.
    """

    def completeness_points(self, lead: Lead) -> int:
        filled = sum(1 for field in COMPLETENESS_FIELDS if (getattr(lead, field) or '').strip())
        return filled * POINTS_PER_FIELD

    def plan_points(self, lead: Lead) -> int:
        plan = lead.interest_plan
        if plan is None:
            return PLAN_MISSING_POINTS

        name = plan.name.lower()
        for keywords, points in PLAN_NAME_POINTS:
            if any(keyword in name for keyword in keywords):
                return points

        price = plan.price_monthly or Decimal('0')
        if price >= 500:
            return 15
        if price >= 200:
            return 12
        return 10

    def origin_points(self, lead: Lead) -> int:
        if lead.origin is None:
            return ORIGIN_MISSING_POINTS

        name = lead.origin.name.lower()
        for keywords, points in ORIGIN_POINTS:
            if any(keyword in name for keyword in keywords):
                return points
        return ORIGIN_DEFAULT_POINTS

    def stage_points(self, lead: Lead, active_stages: Optional[List[FunnelStage]] = None) -> int:
        """
        Progresso no funil: round((posição + 1) / total_ativos * 60).

        Lead sem estágio usa o primeiro estágio ativo (0 se não houver).
        Estágio fora da lista de ativos, ou funil sem estágios ativos, vale 30.
        """
        if active_stages is None:
            active_stages = list(FunnelStage.objects.filter(is_active=True).order_by('order'))

        if lead.stage_id is None:
            if not active_stages:
                return 0
            current_order = active_stages[0].order
        else:
            current_order = lead.stage.order

        if not active_stages:
            return STAGE_PROGRESS_UNKNOWN

        orders = [stage.order for stage in active_stages]
        if current_order not in orders:
            logger.warning(f'[LEADS] Estágio com ordem {current_order} não encontrado entre os ativos')
            return STAGE_PROGRESS_UNKNOWN

        index = orders.index(current_order)
        return round_half_up((index + 1) / len(active_stages) * STAGE_PROGRESS_MAX)

    def calculate(self, lead: Lead, active_stages: Optional[List[FunnelStage]] = None) -> Dict:
        """
        Calcula o score e os fatores de um lead (sem persistir).
        """
        factors = {
            'completeness': self.completeness_points(lead),
            'planValue': self.plan_points(lead),
            'originQuality': self.origin_points(lead),
            'stageProgress': self.stage_points(lead, active_stages),
        }
        score = min(100, round_half_up(sum(factors.values())))
        return {'score': score, 'factors': factors, **classify_score(score)}

    def update_lead_score(self, lead_id, active_stages: Optional[List[FunnelStage]] = None) -> Dict:
        """
        Recalcula e persiste score, fatores e data de atualização.
        """
        lead = Lead.objects.select_related('interest_plan', 'origin', 'stage').get(id=lead_id)
        result = self.calculate(lead, active_stages)

        Lead.objects.filter(id=lead.id).update(
            score=result['score'],
            ai_score_factors=result['factors'],
            ai_score_updated_at=timezone.now(),
            updated_at=timezone.now(),
        )
        logger.debug(f'[LEADS] Score do lead {lead.id}: {result["score"]} ({result["label"]})')
        return result

    def recalculate_all(self) -> int:
        """
        Recalcula o score de todos os leads.

        Returns:
            Quantidade de leads atualizados
        """
        active_stages = list(FunnelStage.objects.filter(is_active=True).order_by('order'))
        updated = 0
        for lead_id in Lead.objects.values_list('id', flat=True):
            try:
                self.update_lead_score(lead_id, active_stages)
                updated += 1
            except Exception as e:
                logger.error(f'[LEADS] Erro ao recalcular score do lead {lead_id}: {str(e)}', exc_info=True)
        logger.info(f'[LEADS] Scores recalculados: {updated}')
        return updated
