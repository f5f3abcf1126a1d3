"""
Service de auditoria.

Registra as operações administrativas e oferece consulta paginada e
exportação CSV. Falhas ao registrar nunca interrompem a operação auditada.
"""

import csv
import io
import json
import logging
import math
from typing import Dict, Optional

from django.core.serializers.json import DjangoJSONEncoder

from gestor.models import AuditLog, UserRole
from gestor.utils.request_context import get_current_ip, get_current_user, get_current_user_agent

logger = logging.getLogger(__name__)

AUDIT_VIEWER_ROLES = (UserRole.SUPERADMIN, UserRole.ADMINISTRATIVO, UserRole.DESENVOLVEDOR)

MAX_PAGE_SIZE = 100

SORTABLE_FIELDS = ('created_at', 'action', 'entity')

CSV_HEADER = ['Data', 'Usuário', 'Ação', 'Entidade', 'ID da Entidade', 'IP']


def to_json_safe(data):
    """Converte dicts com Decimal/date/UUID para tipos serializáveis em JSON."""
    if data is None:
        return None
    return json.loads(json.dumps(data, cls=DjangoJSONEncoder))


class AuditService:
    """
    Service de auditoria.
    """

    def log(
        self,
        action: str,
        entity: str,
        entity_id=None,
        user=None,
        old_data: Optional[Dict] = None,
        new_data: Optional[Dict] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Optional[AuditLog]:
        """
        Registra uma entrada de auditoria.

        Usuário, IP e user agent caem para o contexto da requisição
        quando não informados. Nunca levanta exceção.
        """
        try:
            user = user or get_current_user()
            return AuditLog.objects.create(
                user=user if getattr(user, 'pk', None) else None,
                action=action,
                entity=entity,
                entity_id=str(entity_id or ''),
                old_data=to_json_safe(old_data),
                new_data=to_json_safe(new_data),
                ip_address=ip_address or get_current_ip(),
                user_agent=(user_agent or get_current_user_agent() or '')[:500],
            )
        except Exception as e:
            logger.error(f'[AUDIT] Falha ao registrar {action} {entity} {entity_id}: {str(e)}', exc_info=True)
            return None

    def _filtered_queryset(self, filters: Dict):
        qs = AuditLog.objects.select_related('user')

        if filters.get('user_id'):
            qs = qs.filter(user_id=filters['user_id'])
        if filters.get('action'):
            qs = qs.filter(action=filters['action'])
        if filters.get('entity'):
            qs = qs.filter(entity=filters['entity'])
        if filters.get('entity_id'):
            qs = qs.filter(entity_id=str(filters['entity_id']))
        if filters.get('start_date'):
            qs = qs.filter(created_at__date__gte=filters['start_date'])
        if filters.get('end_date'):
            qs = qs.filter(created_at__date__lte=filters['end_date'])

        return qs

    def find_all(
        self,
        current_user,
        filters: Optional[Dict] = None,
        page: int = 1,
        limit: int = 20,
        sort_by: str = 'created_at',
        sort_order: str = 'desc',
    ) -> Dict:
        """
        Lista os logs com filtros e paginação.

        Apenas SUPERADMIN, ADMINISTRATIVO e DESENVOLVEDOR enxergam a
        auditoria; demais roles recebem uma página vazia.

        Returns:
            {'data': [...], 'meta': {'total', 'page', 'limit', 'totalPages'}}
        """
        filters = filters or {}
        page = max(1, int(page or 1))
        limit = max(1, min(int(limit or 20), MAX_PAGE_SIZE))

        if current_user.role not in AUDIT_VIEWER_ROLES:
            return {'data': [], 'meta': {'total': 0, 'page': page, 'limit': limit, 'totalPages': 0}}

        if sort_by not in SORTABLE_FIELDS:
            sort_by = 'created_at'
        ordering = sort_by if sort_order == 'asc' else f'-{sort_by}'

        qs = self._filtered_queryset(filters).order_by(ordering)
        total = qs.count()
        offset = (page - 1) * limit
        logs = qs[offset:offset + limit]

        return {
            'data': [self.format(log) for log in logs],
            'meta': {
                'total': total,
                'page': page,
                'limit': limit,
                'totalPages': math.ceil(total / limit) if total else 0,
            },
        }

    def format(self, log: AuditLog) -> Dict:
        return {
            'id': str(log.id),
            'action': log.action,
            'entity': log.entity,
            'entityId': log.entity_id,
            'oldData': log.old_data,
            'newData': log.new_data,
            'ipAddress': log.ip_address,
            'userAgent': log.user_agent,
            'createdAt': log.created_at.isoformat(),
            'user': {
                'id': str(log.user.id),
                'name': log.user.display_name,
                'email': log.user.email,
            } if log.user else None,
        }

    def export_csv(self, current_user, filters: Optional[Dict] = None) -> str:
        """
        Exporta os logs filtrados em CSV.

        Linhas sem usuário aparecem como "Sistema".
        """
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(CSV_HEADER)

        if current_user.role not in AUDIT_VIEWER_ROLES:
            return output.getvalue()

        for log in self._filtered_queryset(filters or {}).order_by('-created_at'):
            writer.writerow([
                log.created_at.isoformat(),
                log.user.display_name if log.user else 'Sistema',
                log.action,
                log.entity,
                log.entity_id,
                log.ip_address or '',
            ])

        return output.getvalue()
