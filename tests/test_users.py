import pytest

from gestor.exceptions import BadRequest, Conflict, Forbidden, NotFound
from gestor.models import AuditLog, PermissionModule, User, UserPermission, UserRole
from gestor.services.users import UserService


@pytest.fixture
def service():
    return UserService()


class TestFindAll:

    def test_admin_sees_everyone(self, service, superadmin, vendedor, outro_vendedor):
        assert service.find_all(superadmin).count() == 4

    def test_gestor_sees_team(self, service, gestor, vendedor, outro_vendedor):
        assert set(service.find_all(gestor)) == {gestor, vendedor}

    def test_vendedor_sees_self(self, service, vendedor, outro_vendedor):
        assert list(service.find_all(vendedor)) == [vendedor]

    def test_filters(self, service, superadmin, vendedor, outro_vendedor):
        outro_vendedor.is_active = False
        outro_vendedor.save()

        assert service.find_all(superadmin, role=UserRole.VENDEDOR).count() == 2
        assert list(service.find_all(superadmin, role=UserRole.VENDEDOR, is_active=True)) == [vendedor]


class TestCreate:

    def test_create_with_gestor(self, service, superadmin, gestor):
        user = service.create({
            'email': 'nova@nexus.com',
            'password': 'outra-senha-123',
            'name': 'Nova Vendedora',
            'gestor_id': gestor.id,
        }, superadmin)

        assert user.role == UserRole.VENDEDOR
        assert user.gestor == gestor
        assert user.check_password('outra-senha-123')
        assert AuditLog.objects.filter(entity='User', action='CREATE').count() == 1

    def test_only_admins_create(self, service, gestor):
        with pytest.raises(Forbidden):
            service.create({'email': 'x@nexus.com', 'password': 'senha-123456'}, gestor)

    def test_duplicate_email(self, service, superadmin, vendedor):
        with pytest.raises(Conflict):
            service.create({'email': 'VENDEDOR@nexus.com', 'password': 'senha-123456'}, superadmin)

    def test_gestor_must_have_gestor_role(self, service, superadmin, outro_vendedor):
        with pytest.raises(BadRequest):
            service.create({
                'email': 'x@nexus.com', 'password': 'senha-123456', 'gestor_id': outro_vendedor.id,
            }, superadmin)


class TestUpdate:

    def test_update_fields_and_password(self, service, superadmin, outro_vendedor):
        updated = service.update(outro_vendedor.id, {'name': 'Outro Nome', 'password': 'nova-senha-123'}, superadmin)

        assert updated.name == 'Outro Nome'
        assert User.objects.get(id=outro_vendedor.id).check_password('nova-senha-123')

    def test_email_conflict(self, service, superadmin, vendedor, outro_vendedor):
        with pytest.raises(Conflict):
            service.update(outro_vendedor.id, {'email': vendedor.email}, superadmin)

    def test_not_found(self, service, superadmin):
        with pytest.raises(NotFound):
            service.update('00000000-0000-0000-0000-000000000000', {'name': 'x'}, superadmin)


def test_change_password(service, vendedor):
    with pytest.raises(BadRequest, match='Senha atual incorreta'):
        service.change_password(vendedor, 'errada', 'nova-senha-123')

    service.change_password(vendedor, 'senha-forte-123', 'nova-senha-123')

    assert User.objects.get(id=vendedor.id).check_password('nova-senha-123')


def test_set_permission_upserts(service, superadmin, vendedor):
    service.set_permission(vendedor.id, PermissionModule.CLIENTS_LOCADORAS, {'can_view': False}, superadmin)
    permission = service.set_permission(
        vendedor.id, PermissionModule.CLIENTS_LOCADORAS, {'can_view': True, 'can_delete': True}, superadmin
    )

    assert UserPermission.objects.count() == 1
    assert permission.can_view and permission.can_delete
    assert list(service.permissions(vendedor.id)) == [permission]

    with pytest.raises(Forbidden):
        service.set_permission(vendedor.id, PermissionModule.CLIENTS_ONE_NEXUS, {'can_view': False}, vendedor)
