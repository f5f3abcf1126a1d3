from datetime import date
from decimal import Decimal

import pytest

from gestor.exceptions import BadRequest, Forbidden, NotFound
from gestor.models import AuditLog, ClientStatus, Payment, PaymentStatus
from gestor.services.payments import PaymentService, validate_status_transition

from tests.conftest import OTHER_CNPJ


@pytest.fixture
def service():
    return PaymentService()


@pytest.fixture
def client(vendedor, make_client):
    return make_client(vendedor)


@pytest.fixture
def payment(service, client, superadmin):
    return service.create({
        'client': client,
        'amount': Decimal('450.00'),
        'due_date': date(2025, 7, 10),
        'external_id': 'ext-001',
    }, superadmin)


def test_status_transitions():
    validate_status_transition(PaymentStatus.PENDING, PaymentStatus.PAID)
    validate_status_transition(PaymentStatus.OVERDUE, PaymentStatus.CANCELLED)

    with pytest.raises(BadRequest):
        validate_status_transition(PaymentStatus.PAID, PaymentStatus.PENDING)
    with pytest.raises(BadRequest):
        validate_status_transition(PaymentStatus.CANCELLED, PaymentStatus.PAID)


class TestCreate:

    def test_create_is_audited(self, payment):
        assert payment.status == PaymentStatus.PENDING
        assert AuditLog.objects.filter(entity='Payment', action='CREATE').count() == 1

    def test_only_admins(self, service, client, vendedor):
        with pytest.raises(Forbidden):
            service.create({'client': client, 'amount': Decimal('1'), 'due_date': date(2025, 7, 10)}, vendedor)

    def test_cancelled_client(self, service, client, superadmin):
        client.status = ClientStatus.CANCELADO
        client.save()

        with pytest.raises(BadRequest):
            service.create({'client': client, 'amount': Decimal('1'), 'due_date': date(2025, 7, 10)}, superadmin)


class TestReads:

    def test_scope(self, service, payment, vendedor, gestor, outro_vendedor, make_client, superadmin):
        other_client = make_client(outro_vendedor, cpf_cnpj=OTHER_CNPJ)
        service.create({'client': other_client, 'amount': Decimal('99'), 'due_date': date(2025, 7, 1)}, superadmin)

        assert list(service.find_all(vendedor)) == [payment]
        assert list(service.find_all(gestor)) == [payment]
        assert service.find_all(superadmin).count() == 2
        assert service.find_one(payment.id, vendedor) == payment

        with pytest.raises(Forbidden):
            service.find_one(payment.id, outro_vendedor)
        with pytest.raises(Forbidden):
            service.find_all(outro_vendedor, client_id=payment.client_id)

    def test_find_by_external_id(self, service, payment):
        assert service.find_by_external_id('ext-001') == payment
        with pytest.raises(NotFound):
            service.find_by_external_id('ext-404')

    def test_filters(self, service, payment, superadmin):
        assert service.find_all(superadmin, status=PaymentStatus.PAID).count() == 0
        assert service.find_all(superadmin, client_id=payment.client_id).count() == 1


class TestStatusChanges:

    def test_update_stamps_paid_at(self, service, payment, superadmin):
        updated = service.update(payment.id, {'status': PaymentStatus.PAID}, superadmin)

        assert updated.paid_at is not None
        with pytest.raises(BadRequest):
            service.update(payment.id, {'status': PaymentStatus.PENDING}, superadmin)

    def test_mark_as_paid(self, service, payment, superadmin):
        paid = service.mark_as_paid(payment.id, superadmin)

        assert paid.status == PaymentStatus.PAID
        with pytest.raises(BadRequest):
            service.mark_as_paid(payment.id, superadmin)
        with pytest.raises(BadRequest):
            service.cancel(payment.id, superadmin)

    def test_cancel(self, service, payment, superadmin):
        cancelled = service.cancel(payment.id, superadmin)

        assert cancelled.cancelled_at is not None
        with pytest.raises(BadRequest):
            service.mark_as_paid(payment.id, superadmin)

    def test_remove(self, service, payment, superadmin, vendedor):
        with pytest.raises(Forbidden):
            service.remove(payment.id, vendedor)

        service.remove(payment.id, superadmin)

        assert not Payment.objects.exists()
        assert AuditLog.objects.filter(entity='Payment', action='DELETE').exists()


def test_stats(service, payment, client, superadmin):
    Payment.objects.create(client=client, amount=Decimal('100.00'), due_date=date(2025, 6, 10),
                           status=PaymentStatus.OVERDUE)
    Payment.objects.create(client=client, amount=Decimal('200.00'), due_date=date(2025, 5, 10),
                           status=PaymentStatus.PAID)

    stats = service.get_stats(superadmin)

    assert stats['counts'] == {'total': 3, 'paid': 1, 'pending': 1, 'overdue': 1, 'cancelled': 0}
    assert stats['amounts'] == {
        'total': Decimal('750.00'),
        'paid': Decimal('200.00'),
        'pending': Decimal('550.00'),
    }
