from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from gestor.serializers.tenants import (
    TenantInputSerializer, TenantMetricsSerializer, TenantSerializer, TenantUpdateSerializer
)
from gestor.services.tenants import MANAGER_ROLES, TenantService
from gestor.utils.access import require_roles
from gestor.views.params import query_str


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def tenant_list(request) -> Response:
    service = TenantService()

    if request.method == 'POST':
        serializer = TenantInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        tenant = service.create(serializer.validated_data, request.user)
        return Response(TenantSerializer(tenant).data, status=status.HTTP_201_CREATED)

    tenants = service.find_all(
        request.user,
        status=query_str(request, 'status'),
        search=query_str(request, 'search'),
        vps_location=query_str(request, 'vps_location'),
    )
    return Response(TenantSerializer(tenants, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def tenant_by_client(request, client_id) -> Response:
    return Response(TenantSerializer(TenantService().find_by_client_id(client_id, request.user)).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def tenant_by_uuid(request, tenant_uuid) -> Response:
    return Response(TenantSerializer(TenantService().find_by_tenant_uuid(tenant_uuid, request.user)).data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def tenant_detail(request, pk) -> Response:
    service = TenantService()

    if request.method == 'GET':
        return Response(TenantSerializer(service.find_one(pk, request.user)).data)

    if request.method == 'DELETE':
        return Response(TenantSerializer(service.remove(pk, request.user)).data)

    serializer = TenantUpdateSerializer(data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    tenant = service.update(pk, serializer.validated_data, request.user)
    return Response(TenantSerializer(tenant).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def tenant_suspend(request, pk) -> Response:
    return Response(TenantSerializer(TenantService().suspend(pk, request.user)).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def tenant_activate(request, pk) -> Response:
    return Response(TenantSerializer(TenantService().activate(pk, request.user)).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def tenant_block(request, pk) -> Response:
    return Response(TenantSerializer(TenantService().block(pk, request.user)).data)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def tenant_metrics(request, pk) -> Response:
    require_roles(request.user, MANAGER_ROLES, 'Apenas administradores podem atualizar métricas de tenants')
    serializer = TenantMetricsSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    tenant = TenantService().update_metrics(pk, serializer.validated_data)
    return Response(TenantSerializer(tenant).data)
