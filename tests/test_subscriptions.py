from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest

from gestor.exceptions import BadRequest
from gestor.models import (
    CancellationReason, Client, ClientStatus, FinanceTransaction, Subscription,
    SubscriptionStatus, TransactionCategory, TransactionStatus
)
from gestor.services.subscriptions import SubscriptionService

TODAY = date(2025, 6, 10)
BILLING_DAY = date(2025, 7, 10)


@pytest.fixture(autouse=True)
def fixed_today():
    with patch('gestor.services.subscriptions.local_today', return_value=TODAY):
        yield


@pytest.fixture
def service():
    return SubscriptionService()


@pytest.fixture
def subscription(service, vendedor, plan, make_client):
    client = make_client(vendedor)
    return service.create_from_conversion(
        client=client,
        plan=plan,
        billing_cycle='MONTHLY',
        first_payment_date=date(2025, 6, 10),
        amount=Decimal('450.00'),
    )


def open_transaction(subscription, due_date, status=TransactionStatus.PENDING):
    return FinanceTransaction.objects.create(
        description='Cobrança',
        amount=subscription.amount,
        category=TransactionCategory.SUBSCRIPTION,
        date=due_date,
        due_date=due_date,
        status=status,
        client=subscription.client,
        subscription=subscription,
        is_recurring=True,
    )


class TestCreateFromConversion:

    def test_initial_state(self, subscription):
        assert subscription.status == SubscriptionStatus.ACTIVE
        assert subscription.billing_anchor_day == 10
        assert subscription.current_period_start == TODAY
        assert subscription.current_period_end == date(2025, 7, 10)
        assert subscription.next_billing_date == date(2025, 7, 10)
        assert subscription.grace_period_days == 7
        assert subscription.client.active_subscription_id == subscription.id

    def test_anchor_defaults_to_today(self, service, vendedor, plan, make_client):
        client = make_client(vendedor, first_payment_date=None)

        subscription = service.create_from_conversion(client, plan, 'MONTHLY', None, Decimal('450.00'))

        assert subscription.billing_anchor_day == 10


class TestRenewal:

    def test_nothing_due_before_billing_date(self, service, subscription):
        summary = service.handle_billing_renewal()

        assert summary['total'] == 0
        assert not FinanceTransaction.objects.filter(subscription=subscription).exists()

    def test_renews_subscription_due_today(self, service, subscription):
        with patch('gestor.services.subscriptions.local_today', return_value=BILLING_DAY):
            summary = service.handle_billing_renewal()
        subscription.refresh_from_db()

        assert summary == {'total': 1, 'renewed': 1, 'skipped': 0, 'errors': 0}
        assert subscription.current_period_start == date(2025, 7, 10)
        assert subscription.current_period_end == date(2025, 8, 10)
        assert subscription.next_billing_date == date(2025, 8, 10)

        transaction = FinanceTransaction.objects.get(subscription=subscription)
        assert transaction.due_date == date(2025, 7, 10)
        assert transaction.status == TransactionStatus.PENDING
        assert transaction.created_by is None

    def test_open_debt_blocks_renewal(self, service, subscription):
        open_transaction(subscription, BILLING_DAY)

        with patch('gestor.services.subscriptions.local_today', return_value=BILLING_DAY):
            summary = service.handle_billing_renewal()
        subscription.refresh_from_db()

        assert summary['skipped'] == 1
        assert summary['renewed'] == 0
        assert subscription.next_billing_date == BILLING_DAY
        assert FinanceTransaction.objects.filter(subscription=subscription).count() == 1


class TestOverdueDetection:

    def test_within_grace_marks_past_due(self, service, subscription):
        open_transaction(subscription, TODAY - timedelta(days=3))

        summary = service.handle_overdue_detection()
        subscription.refresh_from_db()

        assert summary == {'total': 1, 'canceled': 0, 'past_due': 1, 'errors': 0}
        assert subscription.status == SubscriptionStatus.PAST_DUE
        assert Client.objects.get(id=subscription.client_id).status == ClientStatus.INADIMPLENTE

    def test_last_grace_day_keeps_subscription(self, service, subscription):
        transaction = open_transaction(subscription, TODAY - timedelta(days=7))

        summary = service.handle_overdue_detection()
        subscription.refresh_from_db()
        transaction.refresh_from_db()

        assert summary == {'total': 1, 'canceled': 0, 'past_due': 1, 'errors': 0}
        assert subscription.status == SubscriptionStatus.PAST_DUE
        assert transaction.status == TransactionStatus.PENDING
        assert Client.objects.get(id=subscription.client_id).status == ClientStatus.INADIMPLENTE

    def test_beyond_grace_cancels(self, service, subscription):
        transaction = open_transaction(subscription, TODAY - timedelta(days=8))

        summary = service.handle_overdue_detection()
        subscription.refresh_from_db()
        transaction.refresh_from_db()

        assert summary['canceled'] == 1
        assert subscription.status == SubscriptionStatus.CANCELED
        assert subscription.cancellation_reason == CancellationReason.PAYMENT_FAILURE
        assert transaction.status == TransactionStatus.CANCELLED
        assert Client.objects.get(id=subscription.client_id).status == ClientStatus.CANCELADO

    def test_future_transactions_are_ignored(self, service, subscription):
        open_transaction(subscription, TODAY)

        assert service.handle_overdue_detection()['total'] == 0


class TestReactivate:

    def test_active_client_cannot_be_reactivated(self, service, subscription, plan):
        with pytest.raises(BadRequest):
            service.reactivate(subscription.client_id, plan.id, 'MONTHLY', date(2025, 6, 20), Decimal('450.00'))

    def test_reactivates_cancelled_client(self, service, subscription, locadoras_plan, superadmin):
        Client.objects.filter(id=subscription.client_id).update(status=ClientStatus.CANCELADO)

        result = service.reactivate(
            subscription.client_id, locadoras_plan.id, 'QUARTERLY', date(2025, 6, 20), Decimal('397.00'),
            user=superadmin,
        )
        subscription.refresh_from_db()
        new_subscription = result['subscription']

        assert subscription.status == SubscriptionStatus.CANCELED
        assert subscription.cancellation_reason == CancellationReason.PLAN_CHANGE
        assert new_subscription.billing_anchor_day == 20
        assert new_subscription.current_period_start == date(2025, 6, 20)
        assert new_subscription.current_period_end == date(2025, 9, 20)
        assert new_subscription.next_billing_date == date(2025, 9, 20)
        assert new_subscription.metadata['previousSubscriptionId'] == str(subscription.id)
        assert result['transaction'].description.startswith('Reativação - Locadoras Gold')
        assert result['client'].status == ClientStatus.ATIVO
        assert result['client'].active_subscription_id == new_subscription.id

    def test_get_active(self, service, subscription):
        assert service.get_active(subscription.client_id) == subscription
        assert list(service.get_by_client_id(subscription.client_id)) == [subscription]
        assert Subscription.objects.count() == 1
