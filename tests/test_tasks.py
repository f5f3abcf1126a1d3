from unittest.mock import MagicMock, patch

import pytest

from gestor import tasks
from gestor.models import Lead


class TestRunWithRetry:

    def test_returns_routine_result(self):
        task = MagicMock()

        assert tasks.run_with_retry(task, 'rotina', lambda: {'renewed': 2}) == {'renewed': 2}
        task.retry.assert_not_called()

    def test_schedules_retry(self):
        task = MagicMock(max_retries=3)
        task.request.retries = 0
        task.retry.side_effect = RuntimeError('retry agendado')
        error = ValueError('banco indisponível')

        def routine():
            raise error

        with pytest.raises(RuntimeError, match='retry agendado'):
            tasks.run_with_retry(task, 'rotina', routine)
        task.retry.assert_called_once_with(exc=error, countdown=tasks.RETRY_COUNTDOWN)

    def test_gives_up_after_max_retries(self):
        task = MagicMock(max_retries=3)
        task.request.retries = 3

        def routine():
            raise ValueError('banco indisponível')

        with pytest.raises(ValueError):
            tasks.run_with_retry(task, 'rotina', routine)
        task.retry.assert_not_called()


def test_billing_tasks_call_services():
    with patch('gestor.tasks.SubscriptionService') as subscriptions, \
            patch('gestor.tasks.ClientService') as clients:
        subscriptions.return_value.handle_billing_renewal.return_value = {'renewed': 1, 'errors': 0}
        subscriptions.return_value.handle_overdue_detection.return_value = {'past_due': 0, 'canceled': 0}
        clients.return_value.create_next_payments_for_active_clients.return_value = 4

        assert tasks.billing_renewal.delay().get() == {'renewed': 1, 'errors': 0}
        assert tasks.overdue_detection.delay().get() == {'past_due': 0, 'canceled': 0}
        assert tasks.create_next_payments.delay().get() == 4


@pytest.mark.django_db
def test_recalculate_lead_scores(vendedor, stages):
    Lead.objects.create(name='Lead A', vendedor=vendedor, stage=stages[0])
    Lead.objects.create(name='Lead B', vendedor=vendedor)

    assert tasks.recalculate_lead_scores.delay().get() == 2
    assert not Lead.objects.filter(ai_score_updated_at__isnull=True).exists()
