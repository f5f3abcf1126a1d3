"""
Service de pagamentos (cobranças emitidas para clientes).

Pagamentos normalmente são criados e atualizados pelos webhooks dos
gateways. Criação e alteração manual ficam restritas a administradores.
"""

import logging
from typing import Dict, Optional

from django.db.models import Sum
from django.utils import timezone

from gestor.exceptions import BadRequest, NotFound
from gestor.models import Client, ClientStatus, Payment, PaymentStatus
from gestor.services.audit import AuditService
from gestor.utils.access import ensure_can_access, require_admin

logger = logging.getLogger(__name__)

INVALID_TRANSITIONS = {
    (PaymentStatus.PAID, PaymentStatus.PENDING),
    (PaymentStatus.PAID, PaymentStatus.OVERDUE),
    (PaymentStatus.CANCELLED, PaymentStatus.PAID),
    (PaymentStatus.CANCELLED, PaymentStatus.PENDING),
    (PaymentStatus.CANCELLED, PaymentStatus.OVERDUE),
}


def validate_status_transition(current: str, new: str) -> None:
    """
    Raises:
        BadRequest: Transição proibida (ex: PAID -> PENDING)
    """
    if (current, new) in INVALID_TRANSITIONS:
        raise BadRequest(f'Transição inválida: não é possível mudar status de {current} para {new}')


def payment_snapshot(payment: Payment) -> Dict:
    return {
        'client_id': payment.client_id,
        'amount': payment.amount,
        'due_date': payment.due_date,
        'status': payment.status,
        'method': payment.method,
        'paid_at': payment.paid_at,
        'cancelled_at': payment.cancelled_at,
    }


class PaymentService:
    """
    Pagamentos com escopo por role (via vendedor do cliente).
    """

    def __init__(self):
        self.audit = AuditService()

    def _queryset(self):
        return Payment.objects.select_related('client', 'client__vendedor', 'client__plan')

    def find_all(self, user, status: Optional[str] = None, method: Optional[str] = None, client_id=None):
        qs = self._queryset().for_user(user)

        if client_id:
            try:
                client = Client.objects.get(id=client_id)
            except Client.DoesNotExist:
                raise NotFound(f'Cliente {client_id} não encontrado')
            ensure_can_access(user, client.vendedor_id, 'Você não tem acesso aos pagamentos deste cliente')
            qs = qs.filter(client_id=client_id)

        if status:
            qs = qs.filter(status=status)
        if method:
            qs = qs.filter(method=method)

        return qs.order_by('-due_date')

    def _get(self, payment_id) -> Payment:
        try:
            return self._queryset().get(id=payment_id)
        except Payment.DoesNotExist:
            raise NotFound(f'Pagamento {payment_id} não encontrado')

    def find_one(self, payment_id, user) -> Payment:
        payment = self._get(payment_id)
        ensure_can_access(
            user, payment.client.vendedor_id,
            'Você não tem permissão para acessar pagamentos deste cliente'
        )
        return payment

    def find_by_external_id(self, external_id: str) -> Payment:
        payment = self._queryset().filter(external_id=external_id).first()
        if not payment:
            raise NotFound(f'Pagamento com external ID {external_id} não encontrado')
        return payment

    def create(self, data: Dict, user) -> Payment:
        """
        Cria um pagamento manual.

        Raises:
            Forbidden: Usuário não administrador
            BadRequest: Cliente cancelado
        """
        require_admin(user, 'Apenas administradores podem criar pagamentos manualmente')

        client = data.get('client')
        if client is None:
            raise NotFound('Cliente não encontrado')
        if client.status == ClientStatus.CANCELADO:
            raise BadRequest('Não é possível criar pagamento para cliente cancelado')

        payment = Payment.objects.create(**data)
        logger.info(f'[PAYMENTS] Pagamento criado: R$ {payment.amount} - Cliente: {client.company} - Vencimento: {payment.due_date}')
        self.audit.log('CREATE', 'Payment', payment.id, user=user, new_data=payment_snapshot(payment))
        return payment

    def update(self, payment_id, data: Dict, user) -> Payment:
        """
        Atualiza um pagamento validando a transição de status.

        PAID carimba paid_at e CANCELLED carimba cancelled_at quando ausentes.
        """
        payment = self._get(payment_id)
        require_admin(user, 'Apenas administradores podem atualizar pagamentos')

        new_status = data.get('status')
        if new_status:
            validate_status_transition(payment.status, new_status)

        if new_status == PaymentStatus.PAID and not data.get('paid_at') and not payment.paid_at:
            data['paid_at'] = timezone.now()
        if new_status == PaymentStatus.CANCELLED and not data.get('cancelled_at') and not payment.cancelled_at:
            data['cancelled_at'] = timezone.now()

        old_data = payment_snapshot(payment)
        for field, value in data.items():
            setattr(payment, field, value)
        payment.save()

        logger.info(f'[PAYMENTS] Pagamento atualizado: R$ {payment.amount} - Cliente: {payment.client.company}')
        self.audit.log('UPDATE', 'Payment', payment.id, user=user, old_data=old_data, new_data=payment_snapshot(payment))
        return payment

    def mark_as_paid(self, payment_id, user) -> Payment:
        payment = self._get(payment_id)
        require_admin(user, 'Apenas administradores podem marcar pagamentos como pagos')

        if payment.status == PaymentStatus.PAID:
            raise BadRequest('Pagamento já está marcado como pago')
        if payment.status == PaymentStatus.CANCELLED:
            raise BadRequest('Não é possível marcar pagamento cancelado como pago')

        old_data = payment_snapshot(payment)
        payment.status = PaymentStatus.PAID
        payment.paid_at = timezone.now()
        payment.save(update_fields=['status', 'paid_at', 'updated_at'])

        logger.info(f'[PAYMENTS] Pagamento marcado como pago: R$ {payment.amount} - Cliente: {payment.client.company}')
        self.audit.log('UPDATE', 'Payment', payment.id, user=user, old_data=old_data, new_data=payment_snapshot(payment))
        return payment

    def cancel(self, payment_id, user) -> Payment:
        payment = self._get(payment_id)
        require_admin(user, 'Apenas administradores podem cancelar pagamentos')

        if payment.status == PaymentStatus.PAID:
            raise BadRequest('Não é possível cancelar pagamento já pago')
        if payment.status == PaymentStatus.CANCELLED:
            raise BadRequest('Pagamento já está cancelado')

        old_data = payment_snapshot(payment)
        payment.status = PaymentStatus.CANCELLED
        payment.cancelled_at = timezone.now()
        payment.save(update_fields=['status', 'cancelled_at', 'updated_at'])

        logger.warning(f'[PAYMENTS] Pagamento cancelado: R$ {payment.amount} - Cliente: {payment.client.company}')
        self.audit.log('UPDATE', 'Payment', payment.id, user=user, old_data=old_data, new_data=payment_snapshot(payment))
        return payment

    def remove(self, payment_id, user) -> None:
        payment = self._get(payment_id)
        require_admin(user, 'Apenas administradores podem excluir pagamentos')

        old_data = payment_snapshot(payment)
        payment.delete()

        logger.info(f'[PAYMENTS] Pagamento removido: {payment_id}')
        self.audit.log('DELETE', 'Payment', payment_id, user=user, old_data=old_data)

    def get_stats(self, user) -> Dict:
        """
        Contagens e valores por status. "pending" soma PENDING e OVERDUE.
        """
        qs = Payment.objects.for_user(user)

        def amount(queryset):
            return queryset.aggregate(total=Sum('amount'))['total'] or 0

        return {
            'counts': {
                'total': qs.count(),
                'paid': qs.filter(status=PaymentStatus.PAID).count(),
                'pending': qs.filter(status=PaymentStatus.PENDING).count(),
                'overdue': qs.filter(status=PaymentStatus.OVERDUE).count(),
                'cancelled': qs.filter(status=PaymentStatus.CANCELLED).count(),
            },
            'amounts': {
                'total': amount(qs),
                'paid': amount(qs.filter(status=PaymentStatus.PAID)),
                'pending': amount(qs.filter(status__in=[PaymentStatus.PENDING, PaymentStatus.OVERDUE])),
            },
        }
