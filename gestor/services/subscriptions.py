"""
Service do ciclo de vida das assinaturas (billing recorrente).

Fluxo:
1. Conversão de lead ou cadastro de cliente cria a assinatura ACTIVE
2. Rotina diária de renovação (06:00) gera a cobrança do novo período
3. Rotina diária de atraso (09:00) aplica a carência:
   - dentro da carência: assinatura PAST_DUE e cliente INADIMPLENTE
   - além da carência: assinatura CANCELED, cliente CANCELADO e lançamento CANCELLED
4. Reativação cria uma nova assinatura para clientes cancelados/inadimplentes
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Optional

from django.db import transaction
from django.utils import timezone

from gestor.exceptions import BadRequest, NotFound
from gestor.models import (
    CancellationReason, Client, ClientStatus, FinanceTransaction, Plan,
    Subscription, SubscriptionStatus, TransactionCategory, TransactionStatus,
    TransactionType
)
from gestor.models.billing import DEFAULT_GRACE_PERIOD_DAYS
from gestor.utils.dates import (
    days_between, initial_billing_date, next_billing_date, period_end,
    safe_anchor, today as local_today
)

logger = logging.getLogger(__name__)

REACTIVABLE_STATUSES = (ClientStatus.CANCELADO, ClientStatus.INADIMPLENTE, ClientStatus.BLOQUEADO)

OPEN_TRANSACTION_STATUSES = (TransactionStatus.PENDING, TransactionStatus.OVERDUE)


class SubscriptionService:
    """
    Regras de billing das assinaturas.
    """

    def create_from_conversion(
        self,
        client: Client,
        plan: Plan,
        billing_cycle: str,
        first_payment_date: Optional[date],
        amount: Decimal,
        anchor_day: Optional[int] = None,
    ) -> Subscription:
        """
        Cria a assinatura inicial de um cliente.

        O dia âncora vem do parâmetro, do dia do primeiro pagamento ou do
        dia atual (nessa ordem), sempre limitado a 28. O período começa no
        dia âncora do mês corrente e a primeira cobrança cai no dia âncora
        do ciclo seguinte.

        Deve ser chamado dentro da transação que cria o cliente.
        """
        today = local_today()
        anchor = safe_anchor(anchor_day or (first_payment_date.day if first_payment_date else today.day))
        start = initial_billing_date(anchor, today)

        subscription = Subscription.objects.create(
            client=client,
            plan=plan,
            billing_cycle=billing_cycle,
            billing_anchor_day=anchor,
            current_period_start=start,
            current_period_end=period_end(start, billing_cycle),
            next_billing_date=next_billing_date(start, anchor, billing_cycle),
            status=SubscriptionStatus.ACTIVE,
            grace_period_days=DEFAULT_GRACE_PERIOD_DAYS,
            amount=amount,
        )

        client.active_subscription = subscription
        client.save(update_fields=['active_subscription', 'updated_at'])

        logger.info(
            f'[BILLING] Assinatura criada: {subscription.id} | Cliente: {client.company} | '
            f'Âncora: dia {anchor} | Próxima cobrança: {subscription.next_billing_date}'
        )
        return subscription

    def reactivate(
        self,
        client_id,
        plan_id,
        billing_cycle: str,
        new_payment_date: date,
        amount: Decimal,
        user=None,
    ) -> Dict:
        """
        Reativa um cliente CANCELADO, INADIMPLENTE ou BLOQUEADO.

        Cancela a assinatura anterior (PLAN_CHANGE), cria uma nova a partir
        de new_payment_date, gera o lançamento de reativação e volta o
        cliente para ATIVO com o novo plano.

        Returns:
            {'client', 'subscription', 'transaction'}
        """
        try:
            client = Client.objects.select_related('plan').get(id=client_id)
        except Client.DoesNotExist:
            raise NotFound('Cliente não encontrado')

        if client.status not in REACTIVABLE_STATUSES:
            raise BadRequest(
                f'Cliente com status "{client.status}" não pode ser reativado. '
                f'Status permitidos: {", ".join(REACTIVABLE_STATUSES)}'
            )

        try:
            plan = Plan.objects.get(id=plan_id)
        except Plan.DoesNotExist:
            raise NotFound('Plano não encontrado')

        anchor = safe_anchor(new_payment_date.day)
        previous_id = client.active_subscription_id

        with transaction.atomic():
            if previous_id:
                Subscription.objects.filter(id=previous_id).update(
                    status=SubscriptionStatus.CANCELED,
                    canceled_at=timezone.now(),
                    cancellation_reason=CancellationReason.PLAN_CHANGE,
                    updated_at=timezone.now(),
                )

            subscription = Subscription.objects.create(
                client=client,
                plan=plan,
                billing_cycle=billing_cycle,
                billing_anchor_day=anchor,
                current_period_start=new_payment_date,
                current_period_end=period_end(new_payment_date, billing_cycle),
                next_billing_date=next_billing_date(new_payment_date, anchor, billing_cycle),
                status=SubscriptionStatus.ACTIVE,
                grace_period_days=DEFAULT_GRACE_PERIOD_DAYS,
                amount=amount,
                metadata={
                    'reactivatedAt': timezone.now().isoformat(),
                    'reactivatedBy': str(user.id) if user else None,
                    'previousSubscriptionId': str(previous_id) if previous_id else None,
                },
            )

            finance_transaction = FinanceTransaction.objects.create(
                description=f'Reativação - {plan.name} - {client.company}'[:300],
                amount=amount,
                type=TransactionType.INCOME,
                category=TransactionCategory.SUBSCRIPTION,
                date=local_today(),
                due_date=new_payment_date,
                status=TransactionStatus.PENDING,
                client=client,
                subscription=subscription,
                product_type=client.product_type,
                is_recurring=True,
                created_by=user,
            )

            client.status = ClientStatus.ATIVO
            client.plan = plan
            client.billing_cycle = billing_cycle
            client.active_subscription = subscription
            client.save()

        logger.info(
            f'[BILLING] Cliente reativado: {client.company} | Nova assinatura: {subscription.id} | '
            f'Próxima cobrança: {subscription.next_billing_date}'
        )
        return {'client': client, 'subscription': subscription, 'transaction': finance_transaction}

    def _renew(self, subscription: Subscription) -> bool:
        """
        Renova uma assinatura. Retorna False se houver débito em aberto.
        """
        with transaction.atomic():
            open_debt = FinanceTransaction.objects.filter(
                subscription=subscription,
                status__in=OPEN_TRANSACTION_STATUSES,
            ).first()

            if open_debt:
                logger.warning(
                    f'[BILLING] Renovação bloqueada: {subscription.client.company} '
                    f'tem débito em aberto ({open_debt.status})'
                )
                return False

            new_start = subscription.current_period_end
            subscription.current_period_start = new_start
            subscription.current_period_end = period_end(new_start, subscription.billing_cycle)
            subscription.next_billing_date = next_billing_date(
                new_start, subscription.billing_anchor_day, subscription.billing_cycle
            )
            subscription.save()

            FinanceTransaction.objects.create(
                description=f'Cobrança {subscription.plan.name} - {subscription.client.company}'[:300],
                amount=subscription.amount,
                type=TransactionType.INCOME,
                category=TransactionCategory.SUBSCRIPTION,
                date=local_today(),
                due_date=new_start,
                status=TransactionStatus.PENDING,
                client=subscription.client,
                subscription=subscription,
                product_type=subscription.client.product_type,
                is_recurring=True,
                created_by=None,
            )

        logger.info(
            f'[BILLING] Renovado: {subscription.client.company} | Próxima: {subscription.next_billing_date}'
        )
        return True

    def handle_billing_renewal(self) -> Dict:
        """
        Rotina diária: renova as assinaturas ACTIVE com cobrança para hoje.

        Erros em uma assinatura são registrados e não interrompem as demais.

        Returns:
            {'total', 'renewed', 'skipped', 'errors'}
        """
        today = local_today()
        subscriptions = Subscription.objects.select_related('client', 'plan').filter(
            status=SubscriptionStatus.ACTIVE,
            next_billing_date=today,
        )

        summary = {'total': subscriptions.count(), 'renewed': 0, 'skipped': 0, 'errors': 0}
        logger.info(f'[BILLING] {summary["total"]} assinatura(s) para renovar hoje ({today})')

        for subscription in subscriptions:
            try:
                if self._renew(subscription):
                    summary['renewed'] += 1
                else:
                    summary['skipped'] += 1
            except Exception as e:
                summary['errors'] += 1
                logger.error(f'[BILLING] Erro ao renovar assinatura {subscription.id}: {str(e)}', exc_info=True)

        logger.info(f'[BILLING] Renovação concluída: {summary}')
        return summary

    def _cancel_for_payment_failure(self, finance_transaction: FinanceTransaction, subscription: Subscription) -> None:
        with transaction.atomic():
            now = timezone.now()
            subscription.status = SubscriptionStatus.CANCELED
            subscription.canceled_at = now
            subscription.cancellation_reason = CancellationReason.PAYMENT_FAILURE
            subscription.save()

            Client.objects.filter(id=finance_transaction.client_id).update(
                status=ClientStatus.CANCELADO, updated_at=now
            )

            finance_transaction.status = TransactionStatus.CANCELLED
            finance_transaction.save()

    def _mark_past_due(self, finance_transaction: FinanceTransaction, subscription: Subscription) -> None:
        with transaction.atomic():
            if subscription.status == SubscriptionStatus.ACTIVE:
                subscription.status = SubscriptionStatus.PAST_DUE
                subscription.save()

            Client.objects.filter(id=finance_transaction.client_id).exclude(
                status__in=[ClientStatus.INADIMPLENTE, ClientStatus.CANCELADO]
            ).update(status=ClientStatus.INADIMPLENTE, updated_at=timezone.now())

    def handle_overdue_detection(self) -> Dict:
        """
        Rotina diária: aplica a carência às cobranças recorrentes vencidas.

        Returns:
            {'total', 'canceled', 'past_due', 'errors'}
        """
        today = local_today()
        overdue = FinanceTransaction.objects.select_related('client', 'subscription').filter(
            status=TransactionStatus.PENDING,
            is_recurring=True,
            due_date__lt=today,
            subscription__isnull=False,
        )

        summary = {'total': overdue.count(), 'canceled': 0, 'past_due': 0, 'errors': 0}
        logger.info(f'[BILLING] {summary["total"]} lançamento(s) recorrente(s) em atraso')

        for finance_transaction in overdue:
            try:
                subscription = finance_transaction.subscription
                days_overdue = days_between(finance_transaction.due_date, today)
                grace = subscription.grace_period_days or DEFAULT_GRACE_PERIOD_DAYS
                company = finance_transaction.client.company if finance_transaction.client else finance_transaction.client_id

                if days_overdue > grace:
                    self._cancel_for_payment_failure(finance_transaction, subscription)
                    summary['canceled'] += 1
                    logger.warning(
                        f'[BILLING] CANCELADO: {company} | {days_overdue} dias em atraso (carência: {grace} dias)'
                    )
                elif days_overdue > 0:
                    self._mark_past_due(finance_transaction, subscription)
                    summary['past_due'] += 1
                    logger.info(f'[BILLING] INADIMPLENTE: {company} | {days_overdue}/{grace} dias')
            except Exception as e:
                summary['errors'] += 1
                logger.error(
                    f'[BILLING] Erro ao processar atraso do lançamento {finance_transaction.id}: {str(e)}',
                    exc_info=True
                )

        logger.info(f'[BILLING] Detecção de atrasos concluída: {summary}')
        return summary

    def get_by_client_id(self, client_id):
        """Assinaturas do cliente, mais recentes primeiro."""
        return Subscription.objects.select_related('plan').filter(client_id=client_id).order_by('-created_at')

    def get_active(self, client_id) -> Optional[Subscription]:
        return Subscription.objects.select_related('plan').filter(
            client_id=client_id, status=SubscriptionStatus.ACTIVE
        ).first()
