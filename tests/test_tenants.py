import pytest
from django.core.exceptions import ValidationError

from gestor.exceptions import BadRequest, Conflict, Forbidden, NotFound
from gestor.models import AuditLog, TenantStatus
from gestor.services.tenants import TenantService

from tests.conftest import OTHER_CNPJ


@pytest.fixture
def service():
    return TenantService()


@pytest.fixture
def tenant(service, desenvolvedor, vendedor, make_client):
    client = make_client(vendedor)
    return service.create({
        'client_id': client.id,
        'tenant_uuid': 'tenant-aurora-001',
        'system_url': 'HTTPS://Aurora.OneNexus.com.br',
        'vps_location': 'br-sp',
        'version': '2.3.1',
    }, desenvolvedor)


def test_create_normalizes_fields(tenant):
    assert tenant.system_url == 'https://aurora.onenexus.com.br'
    assert tenant.vps_location == 'BR-SP'
    assert tenant.status == TenantStatus.ATIVO
    assert tenant.name == 'Clínica Aurora'
    assert AuditLog.objects.filter(entity='Tenant', action='CREATE').count() == 1


def test_create_requires_manager_role(service, administrativo, vendedor, make_client):
    client = make_client(vendedor)

    with pytest.raises(Forbidden):
        service.create({'client_id': client.id, 'tenant_uuid': 'x', 'system_url': 'a', 'vps_location': 'b'}, administrativo)


def test_one_tenant_per_client(service, tenant, superadmin, vendedor, make_client):
    with pytest.raises(Conflict):
        service.create({
            'client_id': tenant.client_id, 'tenant_uuid': 'novo', 'system_url': 'a', 'vps_location': 'b',
        }, superadmin)

    other = make_client(vendedor, cpf_cnpj=OTHER_CNPJ)
    with pytest.raises(Conflict):
        service.create({
            'client_id': other.id, 'tenant_uuid': 'tenant-aurora-001', 'system_url': 'a', 'vps_location': 'b',
        }, superadmin)


def test_invalid_version_is_rejected(service, tenant, superadmin):
    with pytest.raises(ValidationError):
        service.update(tenant.id, {'version': '2.3'}, superadmin)


def test_status_transitions_and_roles(service, tenant, superadmin, administrativo, desenvolvedor):
    assert service.suspend(tenant.id, desenvolvedor).status == TenantStatus.SUSPENSO
    assert service.activate(tenant.id, superadmin).status == TenantStatus.ATIVO

    with pytest.raises(Forbidden):
        service.block(tenant.id, desenvolvedor)
    assert service.block(tenant.id, administrativo).status == TenantStatus.BLOQUEADO

    with pytest.raises(Forbidden):
        service.remove(tenant.id, desenvolvedor)
    assert service.remove(tenant.id, superadmin).status == TenantStatus.DELETADO

    assert AuditLog.objects.filter(entity='Tenant', action='SUSPEND').exists()


def test_deleted_tenant_is_read_only(service, tenant, superadmin):
    service.remove(tenant.id, superadmin)

    with pytest.raises(BadRequest):
        service.update(tenant.id, {'version': '3.0.0'}, superadmin)
    with pytest.raises(BadRequest):
        service.activate(tenant.id, superadmin)


def test_only_superadmin_marks_deleted_via_update(service, tenant, desenvolvedor):
    with pytest.raises(Forbidden):
        service.update(tenant.id, {'status': TenantStatus.DELETADO}, desenvolvedor)


def test_scoped_reads(service, tenant, vendedor, outro_vendedor, gestor):
    assert service.find_all(gestor).count() == 1
    assert service.find_all(outro_vendedor).count() == 0
    assert service.find_by_tenant_uuid('tenant-aurora-001', vendedor) == tenant

    with pytest.raises(Forbidden):
        service.find_by_client_id(tenant.client_id, outro_vendedor)
    with pytest.raises(NotFound):
        service.find_by_tenant_uuid('inexistente', vendedor)


def test_find_all_filters(service, tenant, superadmin):
    assert service.find_all(superadmin, search='aurora').count() == 1
    assert service.find_all(superadmin, vps_location='br-sp').count() == 1
    assert service.find_all(superadmin, status=TenantStatus.SUSPENSO).count() == 0


def test_update_metrics(service, tenant):
    updated = service.update_metrics(tenant.id, {'active_users': 12, 'storage_used_mb': 2048})

    assert updated.active_users == 12
    assert updated.storage_used_mb == 2048
