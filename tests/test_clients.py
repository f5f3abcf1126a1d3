from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest

from gestor.exceptions import BadRequest, Conflict, Forbidden, NotFound
from gestor.models import (
    AuditLog, Client, ClientStatus, FinanceTransaction, Lead, LeadStatus, Payment,
    PaymentStatus, Subscription, SubscriptionStatus, TransactionStatus
)
from gestor.services.clients import ClientService
from gestor.services.subscriptions import SubscriptionService

from tests.conftest import CNPJ, CPF, OTHER_CNPJ

TODAY = date(2025, 6, 10)


@pytest.fixture(autouse=True)
def fixed_today():
    with patch('gestor.services.clients.local_today', return_value=TODAY), \
            patch('gestor.services.subscriptions.local_today', return_value=TODAY):
        yield


@pytest.fixture
def service():
    return ClientService()


@pytest.fixture
def client_data(plan):
    return {
        'company': 'Locadora Sol',
        'contact_name': 'Bruno Reis',
        'email': 'bruno@sol.com',
        'cpf_cnpj': '11.222.333/0001-81',
        'product_type': 'ONE_NEXUS',
        'billing_cycle': 'MONTHLY',
        'first_payment_date': date(2025, 6, 15),
        'plan_id': plan.id,
    }


class TestCreate:

    def test_creates_subscription_and_first_transaction(self, service, client_data, vendedor):
        client = service.create(client_data, vendedor)

        subscription = Subscription.objects.get(client=client)
        transaction = FinanceTransaction.objects.get(client=client)

        assert client.vendedor == vendedor
        assert client.active_subscription_id == subscription.id
        assert subscription.billing_anchor_day == 15
        assert subscription.current_period_start == date(2025, 6, 15)
        assert subscription.next_billing_date == date(2025, 7, 15)
        assert transaction.amount == Decimal('450.00')
        assert transaction.due_date == date(2025, 7, 15)
        assert transaction.status == TransactionStatus.PENDING
        assert transaction.is_recurring
        assert client.next_due_date == date(2025, 7, 15)
        assert AuditLog.objects.filter(action='CREATE', entity='Client', entity_id=str(client.id)).exists()

    def test_vendedor_cannot_assign_other_seller(self, service, client_data, vendedor, outro_vendedor):
        client = service.create({**client_data, 'vendedor_id': outro_vendedor.id}, vendedor)

        assert client.vendedor == vendedor

    def test_gestor_assigns_team_member(self, service, client_data, gestor, vendedor, outro_vendedor):
        client = service.create({**client_data, 'vendedor_id': vendedor.id}, gestor)
        assert client.vendedor == vendedor

        with pytest.raises(Forbidden):
            service.create({**client_data, 'cpf_cnpj': OTHER_CNPJ, 'vendedor_id': outro_vendedor.id}, gestor)

    def test_duplicate_document_conflicts(self, service, client_data, vendedor, make_client):
        make_client(vendedor, cpf_cnpj=CNPJ)

        with pytest.raises(Conflict):
            service.create(client_data, vendedor)

    def test_plan_of_other_product_is_rejected(self, service, client_data, vendedor, locadoras_plan):
        with pytest.raises(BadRequest):
            service.create({**client_data, 'plan_id': locadoras_plan.id}, vendedor)

    def test_inactive_plan_is_rejected(self, service, client_data, vendedor, plan):
        plan.is_active = False
        plan.save()

        with pytest.raises(BadRequest):
            service.create(client_data, vendedor)

    def test_anchor_day_is_capped(self, service, client_data, vendedor):
        client = service.create({**client_data, 'billing_anchor_day': 31}, vendedor)

        assert client.active_subscription.billing_anchor_day == 28
        assert client.next_due_date == date(2025, 7, 28)

    def test_past_anchor_bills_next_cycle(self, service, client_data, vendedor):
        client = service.create({**client_data, 'billing_anchor_day': 1}, vendedor)

        subscription = Subscription.objects.get(client=client)
        assert subscription.current_period_start == date(2025, 6, 1)
        assert subscription.next_billing_date == date(2025, 7, 1)
        assert FinanceTransaction.objects.get(client=client).due_date == date(2025, 7, 1)

        summary = SubscriptionService().handle_overdue_detection()

        assert summary['total'] == 0
        assert Client.objects.get(id=client.id).status == ClientStatus.ATIVO

    def test_conversion_marks_lead_won(self, service, client_data, vendedor, stages):
        lead = Lead.objects.create(name='Bruno Reis', vendedor=vendedor, stage=stages[0])

        client = service.create({**client_data, 'lead_id': lead.id}, vendedor)
        lead.refresh_from_db()

        assert client.converted_from_lead
        assert lead.status == LeadStatus.GANHO
        assert lead.converted_at is not None


class TestAccess:

    def test_find_all_is_scoped(self, service, gestor, vendedor, outro_vendedor, make_client):
        own = make_client(vendedor)
        make_client(outro_vendedor, cpf_cnpj=OTHER_CNPJ)

        assert [c.id for c in service.find_all(gestor)] == [own.id]
        assert len(service.find_all(outro_vendedor)) == 1

    def test_find_all_rejects_other_seller_filter(self, service, vendedor, outro_vendedor):
        with pytest.raises(Forbidden):
            service.find_all(vendedor, vendedor_id=outro_vendedor.id)

    def test_find_one_checks_owner(self, service, vendedor, outro_vendedor, make_client):
        client = make_client(vendedor)

        with pytest.raises(Forbidden):
            service.find_one(client.id, outro_vendedor)

    def test_find_by_document_ignores_formatting(self, service, superadmin, vendedor, make_client):
        client = make_client(vendedor, cpf_cnpj='11.222.333/0001-81')

        assert service.find_by_cpf_cnpj(CNPJ, superadmin).id == client.id
        with pytest.raises(NotFound):
            service.find_by_cpf_cnpj(OTHER_CNPJ, superadmin)

    def test_next_due_date_falls_back_to_first_payment(self, service, vendedor, make_client):
        client = make_client(vendedor)

        assert service.calculate_next_due_date(client) == date(2025, 2, 10)


class TestUpdate:

    def test_cancelled_client_requires_status(self, service, superadmin, vendedor, make_client):
        client = make_client(vendedor, status=ClientStatus.CANCELADO)

        with pytest.raises(BadRequest):
            service.update(client.id, {'company': 'Outra'}, superadmin)

    def test_only_admin_reactivates_cancelled(self, service, gestor, vendedor, make_client):
        client = make_client(vendedor, status=ClientStatus.CANCELADO)

        with pytest.raises(Forbidden):
            service.update(client.id, {'status': ClientStatus.ATIVO}, gestor)

    def test_cancel_and_reopen_transactions(self, service, superadmin, client_data, vendedor):
        client = service.create(client_data, vendedor)

        service.update(client.id, {'status': ClientStatus.CANCELADO}, superadmin)
        assert FinanceTransaction.objects.get(client=client).status == TransactionStatus.CANCELLED

        service.update(client.id, {'status': ClientStatus.ATIVO}, superadmin)
        assert FinanceTransaction.objects.get(client=client).status == TransactionStatus.PENDING

    def test_vendedor_cannot_transfer(self, service, vendedor, outro_vendedor, make_client):
        client = make_client(vendedor)

        with pytest.raises(Forbidden):
            service.update(client.id, {'vendedor_id': outro_vendedor.id}, vendedor)

    def test_billing_anchor_moves_pending_transactions(self, service, superadmin, client_data, vendedor):
        client = service.create(client_data, vendedor)

        with patch('gestor.utils.dates.today', return_value=TODAY):
            service.update(client.id, {'billing_anchor_day': 5}, superadmin)

        subscription = Subscription.objects.get(client=client)
        assert subscription.billing_anchor_day == 5
        assert subscription.next_billing_date == date(2025, 7, 5)
        assert FinanceTransaction.objects.get(client=client).due_date == date(2025, 7, 5)


class TestAdminActions:

    def test_cancel_requires_admin(self, service, gestor, vendedor, make_client):
        client = make_client(vendedor)

        with pytest.raises(Forbidden):
            service.cancel(client.id, gestor)

    def test_cancel_and_reactivate(self, service, administrativo, vendedor, make_client):
        client = make_client(vendedor)

        assert service.cancel(client.id, administrativo).status == ClientStatus.CANCELADO
        assert service.reactivate(client.id, administrativo).status == ClientStatus.ATIVO

    def test_remove_only_superadmin(self, service, superadmin, administrativo, vendedor, make_client):
        client = make_client(vendedor)

        with pytest.raises(Forbidden):
            service.remove(client.id, administrativo)

        result = service.remove(client.id, superadmin)

        assert result['success'] is True
        assert result['deletedClient']['id'] == str(client.id)
        assert not Client.objects.filter(id=client.id).exists()


class TestDailyRoutines:

    def test_status_based_on_payments(self, service, vendedor, make_client):
        blocked = make_client(vendedor, cpf_cnpj=CNPJ)
        late = make_client(vendedor, cpf_cnpj=OTHER_CNPJ)
        paid = make_client(vendedor, cpf_cnpj=CPF, status=ClientStatus.EM_TRIAL)

        Payment.objects.create(client=blocked, amount=Decimal('450'), due_date=TODAY - timedelta(days=40))
        Payment.objects.create(client=late, amount=Decimal('450'), due_date=TODAY - timedelta(days=9))
        Payment.objects.create(
            client=paid, amount=Decimal('450'), due_date=TODAY - timedelta(days=2), status=PaymentStatus.PAID
        )

        summary = service.update_client_status_based_on_payments()

        assert summary == {'ativos': 1, 'inadimplentes': 1, 'bloqueados': 1, 'updated': 3}
        assert Client.objects.get(id=blocked.id).status == ClientStatus.BLOQUEADO
        assert Client.objects.get(id=late.id).status == ClientStatus.INADIMPLENTE
        assert Client.objects.get(id=paid.id).status == ClientStatus.ATIVO

    def test_short_delay_keeps_status(self, service, vendedor, make_client):
        client = make_client(vendedor)
        Payment.objects.create(client=client, amount=Decimal('450'), due_date=TODAY - timedelta(days=2))

        summary = service.update_client_status_based_on_payments()

        assert summary['updated'] == 0
        assert Client.objects.get(id=client.id).status == ClientStatus.ATIVO

    def test_create_next_payments(self, service, vendedor, make_client):
        pending = make_client(vendedor, cpf_cnpj=CNPJ)
        covered = make_client(vendedor, cpf_cnpj=OTHER_CNPJ)
        Payment.objects.create(client=covered, amount=Decimal('450'), due_date=TODAY + timedelta(days=5))

        assert service.create_next_payments_for_active_clients() == 1

        payment = Payment.objects.filter(client=pending).get()
        assert payment.due_date == date(2025, 2, 10)
        assert payment.amount == Decimal('450.00')
        assert payment.status == PaymentStatus.PENDING
