"""
Processamento de webhooks dos gateways de pagamento.

- Asaas (cartão e boleto): autenticado pelo header asaas-access-token
- AbacatePay (PIX): autenticado por HMAC-SHA256 do corpo no header X-Signature

Cada evento é aplicado no máximo uma vez por janela de idempotência.
Pagamentos não encontrados geram apenas aviso em log (o gateway pode
notificar antes de a cobrança existir localmente).
"""

import hashlib
import hmac
import logging
import uuid
from datetime import datetime, time
from typing import Dict, Optional

from django.conf import settings
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from gestor.models import Client, ClientStatus, Payment, PaymentGateway, PaymentStatus
from gestor.services.idempotency import IdempotencyService

logger = logging.getLogger(__name__)

SOURCE_ASAAS = 'asaas'
SOURCE_ABACATEPAY = 'abacatepay'


def parse_gateway_datetime(value: Optional[str]) -> datetime:
    """
    Converte datas dos gateways ('2025-01-15' ou ISO 8601) em datetime aware.

    Valores ausentes ou inválidos resultam no instante atual.
    """
    if not value:
        return timezone.now()

    parsed = parse_datetime(value)
    if parsed is None:
        day = parse_date(value)
        if day is None:
            return timezone.now()
        parsed = datetime.combine(day, time.min)

    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def set_client_status(payment: Payment, status: str) -> None:
    Client.objects.filter(id=payment.client_id).update(status=status, updated_at=timezone.now())


class AsaasWebhookService:
    """
    Eventos suportados:
    - PAYMENT_RECEIVED / PAYMENT_CONFIRMED: pagamento PAID, cliente ATIVO
    - PAYMENT_OVERDUE: pagamento OVERDUE, cliente INADIMPLENTE
    - PAYMENT_REFUNDED: pagamento REFUNDED
    - PAYMENT_DELETED: pagamento CANCELLED
    - PAYMENT_CREATED / PAYMENT_AWAITING_PAYMENT: apenas log
    """

    def __init__(self):
        self.idempotency = IdempotencyService()

    def validate_access_token(self, token: Optional[str]) -> bool:
        expected = settings.ASAAS_WEBHOOK_TOKEN
        if not expected:
            logger.error('[WEBHOOK] ASAAS_WEBHOOK_TOKEN não configurado')
            return False
        return bool(token) and hmac.compare_digest(token, expected)

    def _find_payment(self, gateway_id: str) -> Optional[Payment]:
        payment = Payment.objects.select_related('client').filter(
            gateway=PaymentGateway.ASAAS, gateway_id=gateway_id
        ).first()
        if payment is None:
            logger.warning(f'[WEBHOOK] Pagamento não encontrado para Asaas ID: {gateway_id}')
        return payment

    def handle(self, payload: Dict) -> Dict:
        """
        Processa um evento do Asaas.

        Returns:
            {'success': True} ou {'success': True, 'duplicate': True}
        """
        event = payload.get('event', '')
        payment_data = payload.get('payment') or {}
        event_id = f'{event}_{payment_data.get("id")}'

        if not self.idempotency.claim(SOURCE_ASAAS, event_id):
            return {'success': True, 'duplicate': True}

        logger.info(f'[WEBHOOK] Processando Asaas: {event} ({payment_data.get("id")})')

        try:
            self._dispatch(event, payment_data)
        except Exception:
            self.idempotency.remove(SOURCE_ASAAS, event_id)
            raise

        logger.info(f'[WEBHOOK] Asaas processado com sucesso: {event}')
        return {'success': True}

    def _dispatch(self, event: str, payment_data: Dict) -> None:
        if event in ('PAYMENT_RECEIVED', 'PAYMENT_CONFIRMED'):
            self._payment_received(payment_data)
        elif event == 'PAYMENT_OVERDUE':
            self._payment_overdue(payment_data)
        elif event == 'PAYMENT_REFUNDED':
            self._payment_refunded(payment_data)
        elif event == 'PAYMENT_DELETED':
            self._payment_deleted(payment_data)
        elif event in ('PAYMENT_CREATED', 'PAYMENT_AWAITING_PAYMENT'):
            logger.info(f'[WEBHOOK] Evento informativo: {event}')
        else:
            logger.warning(f'[WEBHOOK] Evento Asaas não tratado: {event}')

    def _payment_received(self, data: Dict) -> None:
        payment = self._find_payment(data.get('id'))
        if not payment:
            return

        payment.status = PaymentStatus.PAID
        payment.paid_at = parse_gateway_datetime(data.get('paymentDate'))
        payment.gateway_data = data
        payment.save(update_fields=['status', 'paid_at', 'gateway_data', 'updated_at'])

        set_client_status(payment, ClientStatus.ATIVO)
        logger.info(f'[WEBHOOK] Pagamento {payment.id} -> PAID | Cliente {payment.client.company} -> ATIVO')

    def _payment_overdue(self, data: Dict) -> None:
        payment = self._find_payment(data.get('id'))
        if not payment:
            return

        payment.status = PaymentStatus.OVERDUE
        payment.gateway_data = data
        payment.save(update_fields=['status', 'gateway_data', 'updated_at'])

        set_client_status(payment, ClientStatus.INADIMPLENTE)
        logger.warning(f'[WEBHOOK] Cliente marcado como INADIMPLENTE: {payment.client.company}')

    def _payment_refunded(self, data: Dict) -> None:
        payment = self._find_payment(data.get('id'))
        if not payment:
            return

        payment.status = PaymentStatus.REFUNDED
        payment.gateway_data = data
        payment.save(update_fields=['status', 'gateway_data', 'updated_at'])
        logger.info(f'[WEBHOOK] Pagamento estornado: {payment.id} -> REFUNDED')

    def _payment_deleted(self, data: Dict) -> None:
        payment = self._find_payment(data.get('id'))
        if not payment:
            return

        payment.status = PaymentStatus.CANCELLED
        payment.cancelled_at = timezone.now()
        payment.save(update_fields=['status', 'cancelled_at', 'updated_at'])
        logger.info(f'[WEBHOOK] Pagamento cancelado: {payment.id} -> CANCELLED')


class AbacatePayWebhookService:
    """
    Eventos suportados:
    - billing.paid: pagamento PAID, cliente ATIVO
    - billing.expired: pagamento CANCELLED
    - billing.refunded: pagamento REFUNDED
    - billing.updated: apenas atualiza gateway_data
    """

    def __init__(self):
        self.idempotency = IdempotencyService()

    def validate_signature(self, raw_body: bytes, signature: Optional[str]) -> bool:
        """
        Compara X-Signature com o HMAC-SHA256 (hex) do corpo bruto.
        """
        secret = settings.ABACATEPAY_WEBHOOK_SECRET
        if not secret:
            logger.error('[WEBHOOK] ABACATEPAY_WEBHOOK_SECRET não configurado')
            return False
        if not signature:
            return False

        expected = hmac.new(secret.encode(), raw_body, hashlib.sha256).hexdigest()
        is_valid = hmac.compare_digest(signature, expected)
        if not is_valid:
            logger.error('[WEBHOOK] Assinatura HMAC inválida')
        return is_valid

    def _find_payment(self, data: Dict) -> Optional[Payment]:
        qs = Payment.objects.select_related('client')
        payment_id = (data.get('metadata') or {}).get('payment_id')

        if payment_id:
            try:
                payment = qs.filter(id=uuid.UUID(str(payment_id))).first()
            except ValueError:
                payment = None
        else:
            payment = qs.filter(gateway=PaymentGateway.ABACATEPAY, gateway_id=data.get('id')).first()

        if payment is None:
            logger.warning(f'[WEBHOOK] Pagamento não encontrado para AbacatePay ID: {data.get("id")}')
        return payment

    def handle(self, payload: Dict) -> Dict:
        event = payload.get('event', '')
        data = payload.get('data') or {}
        event_id = f'{event}_{data.get("id")}'

        if not self.idempotency.claim(SOURCE_ABACATEPAY, event_id):
            return {'success': True, 'duplicate': True}

        logger.info(f'[WEBHOOK] Processando AbacatePay: {event} ({data.get("id")})')

        try:
            self._dispatch(event, data)
        except Exception:
            self.idempotency.remove(SOURCE_ABACATEPAY, event_id)
            raise

        logger.info(f'[WEBHOOK] AbacatePay processado com sucesso: {event}')
        return {'success': True}

    def _dispatch(self, event: str, data: Dict) -> None:
        handlers = {
            'billing.paid': self._billing_paid,
            'billing.expired': self._billing_expired,
            'billing.refunded': self._billing_refunded,
            'billing.updated': self._billing_updated,
        }
        handler = handlers.get(event)
        if handler:
            handler(data)
        else:
            logger.warning(f'[WEBHOOK] Evento AbacatePay não tratado: {event}')

    def _billing_paid(self, data: Dict) -> None:
        payment = self._find_payment(data)
        if not payment:
            return

        payment.status = PaymentStatus.PAID
        payment.paid_at = parse_gateway_datetime(data.get('paid_at'))
        payment.gateway_data = data
        payment.save(update_fields=['status', 'paid_at', 'gateway_data', 'updated_at'])

        set_client_status(payment, ClientStatus.ATIVO)
        logger.info(f'[WEBHOOK] Pagamento {payment.id} -> PAID | Cliente {payment.client.company} -> ATIVO')

    def _billing_expired(self, data: Dict) -> None:
        payment = self._find_payment(data)
        if not payment:
            return

        payment.status = PaymentStatus.CANCELLED
        payment.gateway_data = data
        payment.save(update_fields=['status', 'gateway_data', 'updated_at'])
        logger.info(f'[WEBHOOK] Pagamento expirado: {payment.id} -> CANCELLED')

    def _billing_refunded(self, data: Dict) -> None:
        payment = self._find_payment(data)
        if not payment:
            return

        payment.status = PaymentStatus.REFUNDED
        payment.gateway_data = data
        payment.save(update_fields=['status', 'gateway_data', 'updated_at'])
        logger.info(f'[WEBHOOK] Pagamento estornado: {payment.id} -> REFUNDED')

    def _billing_updated(self, data: Dict) -> None:
        logger.info(f'[WEBHOOK] Cobrança atualizada: {data.get("id")} -> {data.get("status")}')
        payment = self._find_payment(data)
        if payment:
            payment.gateway_data = data
            payment.save(update_fields=['gateway_data', 'updated_at'])
