"""
Tasks do Celery para as rotinas diárias de billing e CRM.

Agendadas via CELERY_BEAT_SCHEDULE (horário de Brasília):
- 03:00 recalculate_lead_scores
- 06:00 billing_renewal e update_client_statuses
- 07:00 create_next_payments
- 09:00 overdue_detection

Erros de um item isolado são tratados dentro dos services. Erros que
derrubam a rotina inteira (banco indisponível, por exemplo) disparam
retry automático, até 3 vezes com 60 segundos de intervalo.
"""

import logging

from celery import shared_task

from gestor.services.clients import ClientService
from gestor.services.lead_score import LeadScoreService
from gestor.services.subscriptions import SubscriptionService

logger = logging.getLogger(__name__)

RETRY_COUNTDOWN = 60


def run_with_retry(task, name: str, routine):
    """Executa a rotina e reagenda a task em caso de erro inesperado."""
    try:
        logger.info(f'[TASK] Iniciando {name}')
        result = routine()
        logger.info(f'[TASK] {name} concluída: {result}')
        return result
    except Exception as e:
        logger.error(f'[TASK] Erro em {name}: {str(e)}', exc_info=True)
        if task.request.retries < task.max_retries:
            raise task.retry(exc=e, countdown=RETRY_COUNTDOWN)
        logger.error(f'[TASK] {name}: máximo de tentativas excedido')
        raise


@shared_task(bind=True, max_retries=3)
def billing_renewal(self):
    """Renova as assinaturas com cobrança para hoje."""
    return run_with_retry(self, 'billing_renewal', SubscriptionService().handle_billing_renewal)


@shared_task(bind=True, max_retries=3)
def overdue_detection(self):
    """Aplica a carência às cobranças recorrentes vencidas."""
    return run_with_retry(self, 'overdue_detection', SubscriptionService().handle_overdue_detection)


@shared_task(bind=True, max_retries=3)
def update_client_statuses(self):
    return run_with_retry(self, 'update_client_statuses', ClientService().update_client_status_based_on_payments)


@shared_task(bind=True, max_retries=3)
def create_next_payments(self):
    return run_with_retry(self, 'create_next_payments', ClientService().create_next_payments_for_active_clients)


@shared_task(bind=True, max_retries=3)
def recalculate_lead_scores(self):
    return run_with_retry(self, 'recalculate_lead_scores', LeadScoreService().recalculate_all)
