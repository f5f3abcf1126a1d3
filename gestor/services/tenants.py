"""
Service de tenants (instâncias provisionadas para clientes).

Permissões:
- Leitura: escopo por vendedor do cliente (administradores e DESENVOLVEDOR veem todos)
- Criar/editar/suspender/ativar: SUPERADMIN ou DESENVOLVEDOR
- Bloquear: SUPERADMIN ou ADMINISTRATIVO
- Excluir (status DELETADO): apenas SUPERADMIN
"""

import logging
from typing import Dict, Optional

from django.db.models import Q

from gestor.exceptions import BadRequest, Conflict, Forbidden, NotFound
from gestor.models import Client, Tenant, TenantStatus
from gestor.services.audit import AuditService
from gestor.utils.access import (
    ADMINISTRATIVO, DESENVOLVEDOR, SUPERADMIN, ensure_can_access, require_roles, scope_queryset
)

logger = logging.getLogger(__name__)

MANAGER_ROLES = (SUPERADMIN, DESENVOLVEDOR)
BLOCKER_ROLES = (SUPERADMIN, ADMINISTRATIVO)

METRIC_FIELDS = ('last_access_at', 'active_users', 'storage_used_mb')


def tenant_snapshot(tenant: Tenant) -> Dict:
    return {
        'client_id': tenant.client_id,
        'tenant_uuid': tenant.tenant_uuid,
        'system_url': tenant.system_url,
        'vps_location': tenant.vps_location,
        'status': tenant.status,
        'version': tenant.version,
        'enabled_modules': tenant.enabled_modules,
    }


class TenantService:
    """
    Gestão do ciclo de vida dos tenants.
    """

    def __init__(self):
        self.audit = AuditService()

    def _queryset(self):
        return Tenant.objects.select_related('client', 'client__vendedor', 'client__plan')

    def find_all(self, user, status: Optional[str] = None, search: Optional[str] = None, vps_location: Optional[str] = None):
        qs = scope_queryset(self._queryset(), user, 'client__vendedor')
        if status:
            qs = qs.filter(status=status)
        if vps_location:
            qs = qs.filter(vps_location=vps_location.upper())
        if search:
            qs = qs.filter(
                Q(client__company__icontains=search)
                | Q(tenant_uuid__icontains=search)
                | Q(system_url__icontains=search)
            )
        return qs.order_by('-created_at')

    def _get(self, tenant_id) -> Tenant:
        try:
            return self._queryset().get(id=tenant_id)
        except Tenant.DoesNotExist:
            raise NotFound(f'Tenant {tenant_id} não encontrado')

    def _ensure_access(self, tenant: Tenant, user) -> None:
        ensure_can_access(user, tenant.client.vendedor_id, 'Você não tem permissão para acessar este tenant')

    def find_one(self, tenant_id, user) -> Tenant:
        tenant = self._get(tenant_id)
        self._ensure_access(tenant, user)
        return tenant

    def find_by_client_id(self, client_id, user) -> Tenant:
        tenant = self._queryset().filter(client_id=client_id).first()
        if not tenant:
            raise NotFound(f'Tenant do cliente {client_id} não encontrado')
        self._ensure_access(tenant, user)
        return tenant

    def find_by_tenant_uuid(self, tenant_uuid: str, user) -> Tenant:
        tenant = self._queryset().filter(tenant_uuid=tenant_uuid).first()
        if not tenant:
            raise NotFound(f'Tenant com UUID {tenant_uuid} não encontrado')
        self._ensure_access(tenant, user)
        return tenant

    def create(self, data: Dict, user) -> Tenant:
        """
        Provisiona o tenant de um cliente.

        Raises:
            NotFound: Cliente inexistente
            Conflict: Cliente já possui tenant ou tenant_uuid duplicado
        """
        require_roles(user, MANAGER_ROLES, 'Apenas administradores podem criar tenants')

        data = dict(data)
        client_id = data.pop('client_id')
        client = Client.objects.filter(id=client_id).first()
        if client is None:
            raise NotFound(f'Cliente {client_id} não encontrado')
        if Tenant.objects.filter(client=client).exists():
            raise Conflict(f'Cliente {client_id} já possui um tenant')
        if Tenant.objects.filter(tenant_uuid=data.get('tenant_uuid')).exists():
            raise Conflict(f'Tenant UUID {data.get("tenant_uuid")} já existe')

        tenant = Tenant(client=client, **data)
        tenant.save()

        logger.info(f'[TENANTS] Tenant criado: {tenant.tenant_uuid} para cliente {client.company}')
        self.audit.log('CREATE', 'Tenant', tenant.id, user=user, new_data=tenant_snapshot(tenant))
        return tenant

    def update(self, tenant_id, data: Dict, user) -> Tenant:
        """
        Atualiza um tenant. Tenant DELETADO é somente leitura.
        """
        require_roles(user, MANAGER_ROLES, 'Apenas administradores podem atualizar tenants')
        tenant = self._get(tenant_id)

        if tenant.is_deleted:
            raise BadRequest('Tenant deletado não pode ser editado')
        if data.get('status') == TenantStatus.DELETADO and user.role != SUPERADMIN:
            raise Forbidden('Apenas SUPERADMIN pode deletar tenants')

        new_uuid = data.get('tenant_uuid')
        if new_uuid and new_uuid != tenant.tenant_uuid and Tenant.objects.filter(tenant_uuid=new_uuid).exists():
            raise Conflict(f'Tenant UUID {new_uuid} já existe')

        old_data = tenant_snapshot(tenant)
        for field, value in data.items():
            setattr(tenant, field, value)
        tenant.save()

        logger.info(f'[TENANTS] Tenant atualizado: {tenant.tenant_uuid}')
        self.audit.log('UPDATE', 'Tenant', tenant.id, user=user, old_data=old_data, new_data=tenant_snapshot(tenant))
        return tenant

    def _set_status(self, tenant_id, status: str, user, action: str) -> Tenant:
        tenant = self._get(tenant_id)
        if tenant.is_deleted:
            raise BadRequest('Tenant deletado não pode ser editado')

        old_data = tenant_snapshot(tenant)
        tenant.status = status
        tenant.save()

        logger.info(f'[TENANTS] Tenant {tenant.tenant_uuid} -> {status}')
        self.audit.log(action, 'Tenant', tenant.id, user=user, old_data=old_data, new_data=tenant_snapshot(tenant))
        return tenant

    def suspend(self, tenant_id, user) -> Tenant:
        require_roles(user, MANAGER_ROLES, 'Apenas administradores podem suspender tenants')
        return self._set_status(tenant_id, TenantStatus.SUSPENSO, user, 'SUSPEND')

    def activate(self, tenant_id, user) -> Tenant:
        require_roles(user, MANAGER_ROLES, 'Apenas administradores podem ativar tenants')
        return self._set_status(tenant_id, TenantStatus.ATIVO, user, 'ACTIVATE')

    def block(self, tenant_id, user) -> Tenant:
        require_roles(user, BLOCKER_ROLES, 'Apenas administradores podem bloquear tenants')
        return self._set_status(tenant_id, TenantStatus.BLOQUEADO, user, 'BLOCK')

    def remove(self, tenant_id, user) -> Tenant:
        """Exclusão lógica: o tenant passa a DELETADO."""
        require_roles(user, [SUPERADMIN], 'Apenas SUPERADMIN pode deletar tenants')
        return self._set_status(tenant_id, TenantStatus.DELETADO, user, 'DELETE')

    def update_metrics(self, tenant_id, data: Dict) -> Tenant:
        """
        Atualiza as métricas de uso reportadas pela instância.
        """
        tenant = self._get(tenant_id)
        fields = [field for field in METRIC_FIELDS if field in data]
        for field in fields:
            setattr(tenant, field, data[field])
        tenant.save(update_fields=fields + ['updated_at'])

        logger.debug(f'[TENANTS] Métricas atualizadas: {tenant.tenant_uuid} ({", ".join(fields)})')
        return tenant
