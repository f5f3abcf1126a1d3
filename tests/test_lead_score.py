from decimal import Decimal

import pytest

from gestor.models import Lead, Plan, ProductType
from gestor.services.lead_score import LeadScoreService, classify_score, round_half_up

from tests.conftest import CNPJ


@pytest.fixture
def service():
    return LeadScoreService()


@pytest.fixture
def full_lead(vendedor, plan, stages, origins):
    return Lead.objects.create(
        name='Carlos Lima',
        email='carlos@empresa.com',
        phone='11999990000',
        company_name='Empresa X',
        cpf_cnpj=CNPJ,
        origin=origins[0],
        stage=stages[1],
        interest_plan=plan,
        vendedor=vendedor,
    )


def test_classify_score_thresholds():
    assert classify_score(80) == {'label': 'QUENTE', 'color': 'green'}
    assert classify_score(79)['label'] == 'MORNO'
    assert classify_score(50)['label'] == 'MORNO'
    assert classify_score(49) == {'label': 'FRIO', 'color': 'red'}


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(24.0) == 24
    assert round_half_up(12.49) == 12


def test_calculate_full_lead(service, full_lead):
    result = service.calculate(full_lead)

    assert result['factors'] == {
        'completeness': 15,
        'planValue': 12,
        'originQuality': 10,
        'stageProgress': 24,
    }
    assert result['score'] == 61
    assert result['label'] == 'MORNO'


def test_won_stage_is_hot(service, full_lead, stages):
    full_lead.stage = stages[3]

    result = service.calculate(full_lead)

    assert result['factors']['stageProgress'] == 48
    assert result['score'] == 85
    assert result['label'] == 'QUENTE'


def test_empty_lead_uses_first_stage_and_missing_points(service, stages):
    lead = Lead(name='')

    result = service.calculate(lead)

    assert result['factors'] == {
        'completeness': 0,
        'planValue': 5,
        'originQuality': 3,
        'stageProgress': 12,
    }
    assert result['label'] == 'FRIO'


def test_plan_points_by_price_when_name_has_no_keyword(service, db):
    lead = Lead(name='X', interest_plan=Plan(
        code='CUSTOM', name='Personalizado', product=ProductType.ONE_NEXUS, price_monthly=Decimal('600')
    ))
    assert service.plan_points(lead) == 15

    lead.interest_plan.price_monthly = Decimal('250')
    assert service.plan_points(lead) == 12

    lead.interest_plan.price_monthly = Decimal('99')
    assert service.plan_points(lead) == 10


def test_origin_points(service, origins):
    assert service.origin_points(Lead(origin=origins[1])) == 6
    assert service.origin_points(Lead(origin=origins[2])) == 2


def test_inactive_stage_scores_unknown(service, full_lead, stages):
    stages[1].is_active = False
    stages[1].save()

    assert service.stage_points(full_lead) == 30


def test_update_and_recalculate_persist_score(service, full_lead):
    service.update_lead_score(full_lead.id)
    full_lead.refresh_from_db()

    assert full_lead.score == 61
    assert full_lead.ai_score_factors['originQuality'] == 10
    assert full_lead.ai_score_updated_at is not None
    assert service.recalculate_all() == 1
