from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest

from gestor.exceptions import BadRequest
from gestor.models import (
    Client, ClientStatus, FinanceTransaction, SubscriptionStatus, TransactionCategory,
    TransactionStatus, TransactionType, calculate_transaction_status
)
from gestor.services.finance import FinanceService
from gestor.services.finance_metrics import FinanceMetricsService, aging_bucket, format_trend, percent_change
from gestor.services.subscriptions import SubscriptionService

from tests.conftest import OTHER_CNPJ

TODAY = date(2025, 6, 10)


@pytest.fixture(autouse=True)
def fixed_today():
    with patch('gestor.services.finance.local_today', return_value=TODAY), \
            patch('gestor.services.finance_metrics.local_today', return_value=TODAY), \
            patch('gestor.services.subscriptions.local_today', return_value=TODAY):
        yield


@pytest.fixture
def service():
    return FinanceService()


@pytest.fixture
def client(vendedor, make_client):
    return make_client(vendedor)


def income(client, amount, due_date, status=TransactionStatus.PENDING, recurring=True, **extra):
    return FinanceTransaction.objects.create(
        description=f'Assinatura {client.company}' if client else 'Receita avulsa',
        amount=Decimal(amount),
        type=TransactionType.INCOME,
        category=TransactionCategory.SUBSCRIPTION,
        date=extra.pop('date', TODAY),
        due_date=due_date,
        status=status,
        client=client,
        is_recurring=recurring,
        **extra
    )


class TestCalculatedStatus:

    def test_rules(self):
        now = object()
        assert calculate_transaction_status('CANCELLED', now, TODAY, TODAY) == 'CANCELLED'
        assert calculate_transaction_status('PENDING', now, TODAY, TODAY) == 'PAID'
        assert calculate_transaction_status('PENDING', None, TODAY - timedelta(days=1), TODAY) == 'OVERDUE'
        assert calculate_transaction_status('PENDING', None, TODAY, TODAY) == 'PENDING'
        assert calculate_transaction_status('PENDING', None, None, TODAY) == 'PENDING'


class TestTransactions:

    def test_create_requires_due_date_for_recurring_subscription(self, service, superadmin):
        with pytest.raises(BadRequest):
            service.create({
                'description': 'Assinatura',
                'amount': Decimal('100'),
                'date': TODAY,
                'category': TransactionCategory.SUBSCRIPTION,
                'is_recurring': True,
            }, superadmin)

    def test_create_and_format(self, service, superadmin, client):
        data = service.create({
            'description': 'Setup inicial',
            'amount': Decimal('1500.00'),
            'date': TODAY,
            'due_date': TODAY - timedelta(days=2),
            'category': TransactionCategory.SETUP,
            'client': client,
        }, superadmin)

        assert data['clientName'] == 'Clínica Aurora'
        assert data['amountFormatted'] == 'R$ 1.500,00'
        assert data['productType'] == 'ONE_NEXUS'
        assert data['createdBy'] == superadmin.display_name
        assert data['dateFormatted'] == '10/06/2025'

    def test_find_all_filters_and_sorting(self, service, client):
        income(client, '100', TODAY)
        income(client, '300', TODAY, date=TODAY - timedelta(days=40))
        FinanceTransaction.objects.create(
            description='Servidor', amount=Decimal('80'), type=TransactionType.EXPENSE, date=TODAY,
        )

        assert len(service.find_all()) == 3
        assert len(service.find_all({'type': TransactionType.INCOME})) == 2
        assert len(service.find_all({'start_date': TODAY - timedelta(days=5)})) == 2
        amounts = [t['amount'] for t in service.find_all({'sort_by_amount': 'desc'})]
        assert amounts == [300.0, 100.0, 80.0]
        assert len(service.find_all({'product_type': 'LOCADORAS'})) == 0

    def test_paid_update_reactivates_client_and_subscription(self, service, vendedor, plan, client):
        subscription = SubscriptionService().create_from_conversion(
            client, plan, 'MONTHLY', TODAY, Decimal('450.00')
        )
        subscription.status = SubscriptionStatus.PAST_DUE
        subscription.save()
        Client.objects.filter(id=client.id).update(status=ClientStatus.INADIMPLENTE)
        transaction = income(client, '450', TODAY - timedelta(days=3), subscription=subscription)

        data = service.update(transaction.id, {'status': TransactionStatus.PAID})
        subscription.refresh_from_db()

        assert data['status'] == 'PAID'
        assert data['paidAt'] is not None
        assert subscription.status == SubscriptionStatus.ACTIVE
        assert Client.objects.get(id=client.id).status == ClientStatus.ATIVO

    def test_cancelling_last_open_transaction_cancels_client(self, service, client):
        transaction = income(client, '450', TODAY)

        service.update(transaction.id, {'status': TransactionStatus.CANCELLED})

        assert Client.objects.get(id=client.id).status == ClientStatus.CANCELADO

    def test_status_change_clears_paid_at(self, service, client):
        transaction = income(client, '450', TODAY)
        service.mark_as_paid(transaction.id)

        data = service.update(transaction.id, {'status': TransactionStatus.PENDING})

        assert data['paidAt'] is None

    def test_client_transactions(self, service, client):
        income(client, '450', TODAY + timedelta(days=3))
        income(client, '200', TODAY - timedelta(days=10))
        paid = income(client, '100', TODAY - timedelta(days=20))
        service.mark_as_paid(paid.id)

        result = service.client_transactions(client.id)

        assert result['client']['company'] == 'Clínica Aurora'
        assert result['totals']['pending'] == 450.0
        assert result['totals']['overdue'] == 200.0
        assert result['totals']['paid'] == 100.0
        assert [u['daysRemaining'] for u in result['upcoming']] == [3]
        assert len(result['transactions']) == 3

    def test_overdue_clients_and_upcoming(self, service, vendedor, client, make_client):
        other = make_client(vendedor, cpf_cnpj=OTHER_CNPJ, company='Auto Center')
        income(client, '100', TODAY - timedelta(days=5))
        income(client, '150', TODAY - timedelta(days=15))
        income(other, '900', TODAY - timedelta(days=2))
        income(other, '50', TODAY + timedelta(days=7))
        income(other, '60', TODAY + timedelta(days=8))

        overdue = service.overdue_clients()
        upcoming = service.upcoming_due_dates()

        assert [c['clientName'] for c in overdue] == ['Auto Center', 'Clínica Aurora']
        assert overdue[1]['transactionCount'] == 2
        assert overdue[1]['maxDaysOverdue'] == 15
        assert overdue[1]['overdueAmount'] == 250.0
        assert [u['amount'] for u in upcoming] == [50.0]


class TestPdfImport:

    def test_parse_statement(self, service):
        text = '15/01/2024 | Assinatura One Nexus | R$ 299,00\nCabeçalho\n02-03-24 | | R$ 1.250,50'

        items = service.parse_statement(text)

        assert items[0]['description'] == 'Assinatura One Nexus'
        assert items[0]['amount'] == 299.0
        assert items[0]['date'] == '2024-01-15'
        assert items[1]['description'] == 'Transação 3'
        assert items[1]['amount'] == 1250.5
        assert items[1]['date'] == '2024-03-02'

    def test_invalid_pdf(self, service):
        with pytest.raises(BadRequest):
            service.import_pdf(b'isto nao e um pdf')

    def test_pdf_without_transactions(self, service):
        with patch.object(FinanceService, 'extract_pdf_text', return_value='Relatório sem valores'):
            with pytest.raises(BadRequest, match='Não foi possível extrair'):
                service.import_pdf(b'%PDF')

    def test_import_returns_items_for_review(self, db, service):
        with patch.object(FinanceService, 'extract_pdf_text', return_value='15/01/2024 | Suporte | R$ 80,00'):
            result = service.import_pdf(b'%PDF')

        assert result['extracted'] == 1
        assert FinanceTransaction.objects.count() == 0


class TestMetrics:

    def test_helpers(self):
        assert percent_change(150, 100) == 50.0
        assert percent_change(10, 0) == 100.0
        assert percent_change(0, 0) == 0.0
        assert format_trend(12.34) == '+12.3%'
        assert format_trend(-5) == '-5%'

    def test_mrr_and_arr(self, client):
        income(client, '450', TODAY)
        income(client, '200', TODAY, status=TransactionStatus.PAID, paid_at=None)
        income(client, '999', TODAY, recurring=False)

        metrics = FinanceMetricsService().metrics()

        assert metrics['mrr']['value'] == 650.0
        assert metrics['newMrr']['value'] == 650.0
        assert metrics['arr']['value'] == 7800.0
        assert metrics['counts'] == {'active': 2, 'canceled': 0}
        assert metrics['mrr']['formatted'] == 'R$ 650,00'

    def test_mrr_history(self, client):
        income(client, '450', TODAY)

        history = FinanceMetricsService().mrr_history(3)

        assert [item['name'] for item in history] == ['Abr', 'Mai', 'Jun']
        assert history[0]['mrr'] == 0.0
        assert history[-1]['mrr'] == 450.0

    def test_aging_report(self, client):
        income(client, '100', TODAY - timedelta(days=10))
        income(client, '200', TODAY - timedelta(days=45))
        income(client, '300', TODAY - timedelta(days=120))

        report = FinanceMetricsService().aging_report()

        assert [item['value'] for item in report['data']] == [100.0, 200.0, 0.0, 300.0]
        assert report['total'] == 600.0

    def test_aging_boundaries(self, client):
        for days, amount in ((30, '1'), (31, '10'), (60, '20'), (61, '100'), (90, '200'), (91, '1000')):
            income(client, amount, TODAY - timedelta(days=days))

        report = FinanceMetricsService().aging_report()

        assert [item['value'] for item in report['data']] == [1.0, 30.0, 300.0, 1000.0]
        assert report['total'] == 1331.0
        assert [aging_bucket(days) for days in (1, 30, 31, 60, 61, 90, 91, 400)] == [0, 0, 1, 1, 2, 2, 3, 3]

    def test_arr_history(self, client):
        income(client, '100', TODAY, date=date(2024, 3, 1))

        assert FinanceMetricsService().arr_history() == [
            {'name': '2024', 'arr': 1200.0},
            {'name': '2025', 'arr': 1200.0},
        ]
