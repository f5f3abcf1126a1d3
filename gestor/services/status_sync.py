"""
Sincronização bidirecional entre status do cliente, assinatura e lançamentos.

- Pagamento confirmado: cliente EM_TRIAL/INADIMPLENTE volta a ATIVO e a
  assinatura PAST_DUE volta a ACTIVE
- Lançamento cancelado: se não restar nenhum lançamento em aberto, o
  cliente passa a CANCELADO
- Cliente cancelado: lançamentos PENDING/OVERDUE são cancelados
- Cliente reativado: lançamentos cancelados e não pagos voltam a PENDING

As sincronizações a partir de lançamentos nunca interrompem a operação
principal: erros são apenas registrados em log.
"""

import logging

from django.utils import timezone

from gestor.models import (
    Client, ClientStatus, FinanceTransaction, SubscriptionStatus, TransactionStatus
)

logger = logging.getLogger(__name__)

# Status de cliente que voltam a ATIVO quando um pagamento é confirmado
REACTIVATED_ON_PAYMENT = (ClientStatus.EM_TRIAL, ClientStatus.INADIMPLENTE)


class StatusSyncService:
    """
    Regras de sincronização de status entre Client, Subscription e FinanceTransaction.
    """

    def sync_client_on_payment(self, transaction: FinanceTransaction) -> None:
        """
        Aplica os efeitos de um lançamento pago no cliente e na assinatura.
        """
        try:
            if transaction.client_id:
                updated = Client.objects.filter(
                    id=transaction.client_id,
                    status__in=REACTIVATED_ON_PAYMENT,
                ).update(status=ClientStatus.ATIVO, updated_at=timezone.now())
                if updated:
                    logger.info(f'[FINANCE] Cliente {transaction.client_id} reativado após pagamento')

            subscription = transaction.subscription
            if subscription and subscription.status == SubscriptionStatus.PAST_DUE:
                subscription.status = SubscriptionStatus.ACTIVE
                subscription.save(update_fields=['status', 'updated_at'])
                logger.info(f'[FINANCE] Assinatura {subscription.id} voltou a ACTIVE após pagamento')
        except Exception as e:
            logger.error(f'[FINANCE] Erro ao sincronizar pagamento do lançamento {transaction.id}: {str(e)}', exc_info=True)

    def sync_client_on_cancellation(self, transaction: FinanceTransaction) -> None:
        """
        Cancela o cliente quando todos os seus lançamentos estão cancelados ou pagos.
        """
        try:
            if not transaction.client_id:
                return

            open_count = FinanceTransaction.objects.filter(
                client_id=transaction.client_id,
                paid_at__isnull=True,
            ).exclude(status=TransactionStatus.CANCELLED).count()

            if open_count == 0:
                updated = Client.objects.filter(id=transaction.client_id).exclude(
                    status=ClientStatus.CANCELADO
                ).update(status=ClientStatus.CANCELADO, updated_at=timezone.now())
                if updated:
                    logger.info(f'[FINANCE] Cliente {transaction.client_id} cancelado (sem lançamentos em aberto)')
        except Exception as e:
            logger.error(f'[FINANCE] Erro ao sincronizar cancelamento do lançamento {transaction.id}: {str(e)}', exc_info=True)

    def cancel_open_transactions(self, client: Client) -> int:
        """
        Cancela os lançamentos PENDING/OVERDUE do cliente.

        Returns:
            Quantidade de lançamentos cancelados
        """
        count = FinanceTransaction.objects.filter(
            client=client,
            status__in=[TransactionStatus.PENDING, TransactionStatus.OVERDUE],
        ).update(status=TransactionStatus.CANCELLED, updated_at=timezone.now())
        logger.info(f'[CLIENTS] {count} lançamento(s) cancelado(s) do cliente {client.company}')
        return count

    def reopen_cancelled_transactions(self, client: Client) -> int:
        """
        Reabre (PENDING) os lançamentos cancelados e não pagos do cliente.

        Returns:
            Quantidade de lançamentos reabertos
        """
        count = FinanceTransaction.objects.filter(
            client=client,
            status=TransactionStatus.CANCELLED,
            paid_at__isnull=True,
        ).update(status=TransactionStatus.PENDING, updated_at=timezone.now())
        logger.info(f'[CLIENTS] {count} lançamento(s) reaberto(s) do cliente {client.company}')
        return count
