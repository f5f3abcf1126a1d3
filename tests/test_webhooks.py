import hashlib
import hmac
import json
from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest

from gestor.models import Client, ClientStatus, Payment, PaymentGateway, PaymentStatus
from gestor.services.idempotency import IdempotencyService
from gestor.services.webhooks import AbacatePayWebhookService, AsaasWebhookService, parse_gateway_datetime

ASAAS_URL = '/api/v1/webhooks/asaas/'
ABACATEPAY_URL = '/api/v1/webhooks/abacatepay/'


@pytest.fixture
def asaas_payment(vendedor, make_client):
    client = make_client(vendedor, status=ClientStatus.INADIMPLENTE)
    return Payment.objects.create(
        client=client,
        amount=Decimal('450.00'),
        due_date=date(2025, 6, 10),
        gateway=PaymentGateway.ASAAS,
        gateway_id='pay_123',
    )


@pytest.fixture
def abacatepay_payment(vendedor, make_client):
    client = make_client(vendedor, status=ClientStatus.INADIMPLENTE)
    return Payment.objects.create(
        client=client,
        amount=Decimal('450.00'),
        due_date=date(2025, 6, 10),
        gateway=PaymentGateway.ABACATEPAY,
        gateway_id='bill_abc',
    )


def sign(body: bytes) -> str:
    return hmac.new(b'abacatepay-test-secret', body, hashlib.sha256).hexdigest()


def test_parse_gateway_datetime():
    parsed = parse_gateway_datetime('2025-01-15')

    assert parsed.date() == date(2025, 1, 15)
    assert parsed.tzinfo is not None
    assert parse_gateway_datetime(None).tzinfo is not None


def test_idempotency_key_and_window(settings):
    service = IdempotencyService()

    assert service.build_key('asaas', 'PAYMENT_RECEIVED_pay_1') == 'webhook:asaas:PAYMENT_RECEIVED_pay_1'
    assert not service.is_processed('asaas', 'evt')
    assert service.claim('asaas', 'evt')
    assert service.is_processed('asaas', 'evt')
    assert not service.claim('asaas', 'evt')
    service.remove('asaas', 'evt')
    assert not service.is_processed('asaas', 'evt')
    assert service.claim('asaas', 'evt')


class TestAsaas:

    def test_validate_access_token(self, settings):
        service = AsaasWebhookService()

        assert service.validate_access_token('asaas-test-token')
        assert not service.validate_access_token('outro')
        assert not service.validate_access_token(None)

        settings.ASAAS_WEBHOOK_TOKEN = ''
        assert not service.validate_access_token('asaas-test-token')

    def test_payment_received_activates_client(self, asaas_payment):
        result = AsaasWebhookService().handle({
            'event': 'PAYMENT_RECEIVED',
            'payment': {'id': 'pay_123', 'paymentDate': '2025-06-12'},
        })
        asaas_payment.refresh_from_db()

        assert result == {'success': True}
        assert asaas_payment.status == PaymentStatus.PAID
        assert asaas_payment.paid_at.date() == date(2025, 6, 12)
        assert asaas_payment.gateway_data['id'] == 'pay_123'
        assert Client.objects.get(id=asaas_payment.client_id).status == ClientStatus.ATIVO

    def test_duplicate_event_is_ignored(self, asaas_payment):
        service = AsaasWebhookService()
        payload = {'event': 'PAYMENT_REFUNDED', 'payment': {'id': 'pay_123'}}

        service.handle(payload)
        Payment.objects.filter(id=asaas_payment.id).update(status=PaymentStatus.PAID)

        assert service.handle(payload) == {'success': True, 'duplicate': True}
        asaas_payment.refresh_from_db()
        assert asaas_payment.status == PaymentStatus.PAID

    def test_event_in_flight_is_duplicate(self, asaas_payment):
        IdempotencyService().claim('asaas', 'PAYMENT_RECEIVED_pay_123')

        result = AsaasWebhookService().handle({'event': 'PAYMENT_RECEIVED', 'payment': {'id': 'pay_123'}})
        asaas_payment.refresh_from_db()

        assert result == {'success': True, 'duplicate': True}
        assert asaas_payment.status == PaymentStatus.PENDING

    def test_failure_releases_event(self, asaas_payment):
        service = AsaasWebhookService()
        payload = {'event': 'PAYMENT_RECEIVED', 'payment': {'id': 'pay_123'}}

        with patch.object(AsaasWebhookService, '_payment_received', side_effect=RuntimeError('banco indisponível')):
            with pytest.raises(RuntimeError):
                service.handle(payload)

        assert not service.idempotency.is_processed('asaas', 'PAYMENT_RECEIVED_pay_123')
        assert service.handle(payload) == {'success': True}
        asaas_payment.refresh_from_db()
        assert asaas_payment.status == PaymentStatus.PAID

    def test_overdue_and_deleted(self, asaas_payment):
        service = AsaasWebhookService()

        service.handle({'event': 'PAYMENT_OVERDUE', 'payment': {'id': 'pay_123'}})
        asaas_payment.refresh_from_db()
        assert asaas_payment.status == PaymentStatus.OVERDUE
        assert Client.objects.get(id=asaas_payment.client_id).status == ClientStatus.INADIMPLENTE

        service.handle({'event': 'PAYMENT_DELETED', 'payment': {'id': 'pay_123'}})
        asaas_payment.refresh_from_db()
        assert asaas_payment.status == PaymentStatus.CANCELLED
        assert asaas_payment.cancelled_at is not None

    def test_unknown_payment_is_acknowledged(self, db):
        result = AsaasWebhookService().handle({'event': 'PAYMENT_RECEIVED', 'payment': {'id': 'pay_404'}})

        assert result == {'success': True}

    def test_endpoint_rejects_invalid_token(self, api_client, db):
        response = api_client.post(
            ASAAS_URL, {'event': 'PAYMENT_RECEIVED', 'payment': {'id': 'pay_123'}},
            format='json', HTTP_ASAAS_ACCESS_TOKEN='errado',
        )

        assert response.status_code == 401

    def test_endpoint_processes_event(self, api_client, asaas_payment):
        response = api_client.post(
            ASAAS_URL, {'event': 'PAYMENT_CONFIRMED', 'payment': {'id': 'pay_123'}},
            format='json', HTTP_ASAAS_ACCESS_TOKEN='asaas-test-token',
        )

        assert response.status_code == 200
        assert response.json() == {'success': True}
        asaas_payment.refresh_from_db()
        assert asaas_payment.status == PaymentStatus.PAID


class TestAbacatePay:

    def test_validate_signature(self):
        service = AbacatePayWebhookService()
        body = b'{"event": "billing.paid"}'

        assert service.validate_signature(body, sign(body))
        assert not service.validate_signature(body, sign(b'outro'))
        assert not service.validate_signature(body, None)

    def test_billing_paid_by_metadata(self, abacatepay_payment):
        result = AbacatePayWebhookService().handle({
            'event': 'billing.paid',
            'data': {'id': 'outro_id', 'metadata': {'payment_id': str(abacatepay_payment.id)}},
        })
        abacatepay_payment.refresh_from_db()

        assert result == {'success': True}
        assert abacatepay_payment.status == PaymentStatus.PAID
        assert Client.objects.get(id=abacatepay_payment.client_id).status == ClientStatus.ATIVO

    def test_billing_expired_and_refunded_by_gateway_id(self, abacatepay_payment):
        service = AbacatePayWebhookService()

        service.handle({'event': 'billing.expired', 'data': {'id': 'bill_abc'}})
        abacatepay_payment.refresh_from_db()
        assert abacatepay_payment.status == PaymentStatus.CANCELLED

        service.handle({'event': 'billing.refunded', 'data': {'id': 'bill_abc'}})
        abacatepay_payment.refresh_from_db()
        assert abacatepay_payment.status == PaymentStatus.REFUNDED

    def test_failure_releases_event(self, abacatepay_payment):
        service = AbacatePayWebhookService()
        payload = {'event': 'billing.paid', 'data': {'id': 'bill_abc'}}

        with patch.object(AbacatePayWebhookService, '_billing_paid', side_effect=RuntimeError('banco indisponível')):
            with pytest.raises(RuntimeError):
                service.handle(payload)

        assert service.handle(payload) == {'success': True}
        assert service.handle(payload) == {'success': True, 'duplicate': True}

    def test_billing_updated_keeps_status(self, abacatepay_payment):
        AbacatePayWebhookService().handle({'event': 'billing.updated', 'data': {'id': 'bill_abc', 'status': 'PENDING'}})
        abacatepay_payment.refresh_from_db()

        assert abacatepay_payment.status == PaymentStatus.PENDING
        assert abacatepay_payment.gateway_data == {'id': 'bill_abc', 'status': 'PENDING'}

    def test_endpoint_checks_signature(self, api_client, abacatepay_payment):
        body = json.dumps({'event': 'billing.paid', 'data': {'id': 'bill_abc'}}).encode()

        invalid = api_client.post(
            ABACATEPAY_URL, body, content_type='application/json', HTTP_X_SIGNATURE='invalida'
        )
        valid = api_client.post(
            ABACATEPAY_URL, body, content_type='application/json', HTTP_X_SIGNATURE=sign(body)
        )

        assert invalid.status_code == 401
        assert valid.status_code == 200
        abacatepay_payment.refresh_from_db()
        assert abacatepay_payment.status == PaymentStatus.PAID
