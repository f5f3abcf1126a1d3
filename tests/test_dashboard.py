from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from django.utils import timezone

from gestor.models import ClientStatus, Lead, LeadStatus, Payment, PaymentStatus
from gestor.services.audit import AuditService
from gestor.services.dashboard import DashboardService, trend

from tests.conftest import CPF, OTHER_CNPJ

VALID_INSIGHTS = {
    'insights': [
        {'severity': 'success', 'title': 'MRR em alta', 'description': 'O MRR cresceu no mês.'},
        {'severity': 'WARNING', 'title': 'Conversão baixa', 'description': 'Poucos leads ganhos.',
         'actionable': 'Revisar o follow-up.'},
        {'severity': 'INFO', 'title': 'Base estável', 'description': 'Sem cancelamentos.'},
    ]
}


@pytest.fixture
def service():
    return DashboardService()


@pytest.fixture
def portfolio(vendedor, outro_vendedor, make_client):
    active = make_client(vendedor)
    make_client(vendedor, cpf_cnpj=OTHER_CNPJ, status=ClientStatus.EM_TRIAL)
    make_client(outro_vendedor, cpf_cnpj=CPF)

    Lead.objects.create(name='Lead aberto', vendedor=vendedor)
    Lead.objects.create(name='Lead ganho', vendedor=vendedor, status=LeadStatus.GANHO)

    Payment.objects.create(
        client=active, amount=Decimal('450.00'), due_date=timezone.localdate(),
        status=PaymentStatus.PAID, paid_at=timezone.now(),
    )
    return active


def test_trend():
    assert trend(10, 0) == {'trend': 'Novo', 'up': True}
    assert trend(0, 0) == {'trend': '0%', 'up': False}
    assert trend(15, 10) == {'trend': '+50.0%', 'up': True}
    assert trend(5, 10) == {'trend': '-50.0%', 'up': False}


class TestStats:

    def test_vendedor_sees_own_records(self, service, portfolio, vendedor):
        stats = service.stats(vendedor)
        kpis = stats['kpis']

        assert kpis['totalClients'] == 2
        assert kpis['activeClients'] == 2
        assert kpis['trialClients'] == 1
        assert kpis['mrr'] == 900.0
        assert kpis['totalLeads'] == 1
        assert kpis['conversionRate'] == 50.0
        assert kpis['totalClientsTrend'] == 'Novo'
        assert stats['clientsByPlan'] == [{'plan': 'One Nexus Pro', 'count': 2}]
        assert len(stats['revenueOverTime']) == 6
        assert stats['revenueOverTime'][-1]['revenue'] == 450.0
        assert stats['recentActivity']['auditEntries'] == []
        assert len(stats['recentActivity']['recentClients']) == 2

    def test_admin_sees_everything(self, service, portfolio, superadmin):
        kpis = service.stats(superadmin)['kpis']

        assert kpis['totalClients'] == 3
        assert kpis['mrr'] == 1350.0

    def test_product_filter_and_months(self, service, portfolio, superadmin):
        stats = service.stats(superadmin, product='LOCADORAS', months=12)

        assert stats['kpis']['totalClients'] == 0
        assert len(stats['revenueOverTime']) == 12


class TestInsights:

    def test_fallback_is_cached(self, service, portfolio, vendedor):
        first = service.insights(vendedor)
        second = service.insights(vendedor)

        assert len(first['insights']) == 3
        assert first['metadata']['cached'] is False
        assert first['metadata']['product'] == 'all'
        assert second['metadata']['cached'] is True
        assert second['insights'] == first['insights']
        assert service.insights(vendedor, refresh=True)['metadata']['cached'] is False

    def test_ia_insights(self, service, portfolio, superadmin):
        processor = MagicMock()
        processor.complete_json.return_value = VALID_INSIGHTS

        with patch('gestor.services.dashboard.IAProcessor', return_value=processor):
            result = service.insights(superadmin, product='ONE_NEXUS')

        assert [item['severity'] for item in result['insights']] == ['SUCCESS', 'WARNING', 'INFO']
        assert result['insights'][0]['actionable'] is None
        assert result['metadata']['product'] == 'ONE_NEXUS'

    def test_validate_insights_rejects_wrong_count(self, service):
        with pytest.raises(ValueError):
            service.validate_insights({'insights': VALID_INSIGHTS['insights'][:2]})
        with pytest.raises(ValueError):
            service.validate_insights({'insights': [{'severity': 'URGENT', 'title': 'x', 'description': 'y'}] * 3})


class TestAudit:

    def test_log_and_find_all(self, superadmin, vendedor):
        service = AuditService()
        service.log('CREATE', 'Plan', 'abc', user=superadmin, new_data={'price': Decimal('10.50')})
        service.log('DELETE', 'Plan', 'abc')

        result = service.find_all(superadmin, filters={'entity': 'Plan'}, limit=1)

        assert result['meta'] == {'total': 2, 'page': 1, 'limit': 1, 'totalPages': 2}
        assert service.find_all(superadmin, filters={'action': 'CREATE'})['data'][0]['newData'] == {'price': '10.50'}
        assert service.find_all(vendedor)['data'] == []

    def test_export_csv(self, superadmin, vendedor):
        service = AuditService()
        service.log('DELETE', 'Client', 'xyz')

        lines = service.export_csv(superadmin).strip().splitlines()

        assert lines[0] == 'Data,Usuário,Ação,Entidade,ID da Entidade,IP'
        assert lines[1].split(',')[1:5] == ['Sistema', 'DELETE', 'Client', 'xyz']
        assert len(service.export_csv(vendedor).strip().splitlines()) == 1
