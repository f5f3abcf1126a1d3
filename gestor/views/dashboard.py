"""
Views do dashboard, da auditoria e do health check.
"""

from django.conf import settings
from django.http import HttpResponse
from django.utils import timezone
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from gestor.services.audit import AuditService
from gestor.services.dashboard import REVENUE_MONTHS, DashboardService
from gestor.utils.access import ADMIN_ROLES, require_roles
from gestor.views.params import query_bool, query_int, query_str

AUDIT_FILTERS = ('user_id', 'action', 'entity', 'entity_id', 'start_date', 'end_date')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard_stats(request) -> Response:
    months = query_int(request, 'months', REVENUE_MONTHS, maximum=24)
    return Response(DashboardService().stats(request.user, product=query_str(request, 'product'), months=months))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard_insights(request) -> Response:
    result = DashboardService().insights(
        request.user,
        product=query_str(request, 'product'),
        refresh=bool(query_bool(request, 'refresh')),
    )
    return Response(result)


def audit_filters(request):
    return {name: request.query_params[name] for name in AUDIT_FILTERS if request.query_params.get(name)}


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_list(request) -> Response:
    result = AuditService().find_all(
        request.user,
        filters=audit_filters(request),
        page=query_int(request, 'page', 1),
        limit=query_int(request, 'limit', 20),
        sort_by=request.query_params.get('sort_by', 'created_at'),
        sort_order=request.query_params.get('sort_order', 'desc'),
    )
    return Response(result)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_export(request) -> HttpResponse:
    require_roles(request.user, ADMIN_ROLES, 'Apenas administradores podem exportar a auditoria')

    content = AuditService().export_csv(request.user, filters=audit_filters(request))
    response = HttpResponse(content, content_type='text/csv; charset=utf-8')
    filename = f'auditoria_{timezone.localdate():%Y%m%d}.csv'
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def health(request) -> Response:
    return Response({
        'status': 'ok',
        'timestamp': timezone.now().isoformat(),
        'service': 'Gestor Nexus API',
        'version': settings.APP_VERSION,
    })
