"""
Views de planos, funil de vendas e leads.

Endpoints:
- /api/v1/plans/ (+ code/<code>/, <id>/, <id>/restore/)
- /api/v1/funnel-stages/ (+ reorder/, <id>/)
- /api/v1/leads/ (+ origins/, cities/, check-duplicate/<doc>/, <id>/, convert, score...)
"""

import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from gestor.serializers.clients import ClientSerializer
from gestor.serializers.crm import (
    FunnelStageSerializer, InteractionInputSerializer, LeadConvertSerializer, LeadDetailSerializer,
    LeadInputSerializer, LeadInteractionSerializer, LeadOriginSerializer, LeadSerializer,
    PlanSerializer, ReorderItemSerializer
)
from gestor.services.finance import FinanceService
from gestor.services.funnel import FunnelStageService
from gestor.services.lead_score import LeadScoreService
from gestor.services.leads import LeadService
from gestor.services.plans import PlanService
from gestor.utils.access import SUPERADMIN, require_admin, require_roles
from gestor.views.params import query_bool, query_str

logger = logging.getLogger(__name__)


# =============================================
# PLANOS
# =============================================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def plan_list(request) -> Response:
    service = PlanService()

    if request.method == 'POST':
        require_admin(request.user, 'Apenas administradores podem criar planos')
        serializer = PlanSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        plan = service.create(serializer.validated_data, request.user)
        return Response(PlanSerializer(plan).data, status=status.HTTP_201_CREATED)

    plans = service.find_all(
        product=query_str(request, 'product'),
        is_active=query_bool(request, 'is_active'),
    )
    return Response(PlanSerializer(plans, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def plan_by_code(request, code) -> Response:
    return Response(PlanSerializer(PlanService().find_by_code(code)).data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def plan_detail(request, pk) -> Response:
    service = PlanService()

    if request.method == 'GET':
        return Response(PlanSerializer(service.find_one(pk)).data)

    require_admin(request.user, 'Apenas administradores podem alterar planos')

    if request.method == 'DELETE':
        plan = service.remove(pk, request.user)
        return Response(PlanSerializer(plan).data)

    serializer = PlanSerializer(data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    plan = service.update(pk, serializer.validated_data, request.user)
    return Response(PlanSerializer(plan).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def plan_restore(request, pk) -> Response:
    require_admin(request.user, 'Apenas administradores podem reativar planos')
    return Response(PlanSerializer(PlanService().restore(pk, request.user)).data)


# =============================================
# FUNIL
# =============================================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def stage_list(request) -> Response:
    service = FunnelStageService()

    if request.method == 'POST':
        require_roles(request.user, [SUPERADMIN], 'Apenas SUPERADMIN pode criar estágios')
        serializer = FunnelStageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        stage = service.create(serializer.validated_data)
        return Response(FunnelStageSerializer(stage).data, status=status.HTTP_201_CREATED)

    stages = service.find_all(include_inactive=bool(query_bool(request, 'include_inactive')))
    return Response(FunnelStageSerializer(stages, many=True).data)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def stage_reorder(request) -> Response:
    require_roles(request.user, [SUPERADMIN], 'Apenas SUPERADMIN pode reordenar estágios')
    serializer = ReorderItemSerializer(data=request.data, many=True)
    serializer.is_valid(raise_exception=True)
    stages = FunnelStageService().reorder(serializer.validated_data)
    return Response(FunnelStageSerializer(stages, many=True).data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def stage_detail(request, pk) -> Response:
    service = FunnelStageService()

    if request.method == 'GET':
        return Response(FunnelStageSerializer(service.find_one(pk)).data)

    require_roles(request.user, [SUPERADMIN], 'Apenas SUPERADMIN pode alterar estágios')

    if request.method == 'DELETE':
        service.remove(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = FunnelStageSerializer(data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    stage = service.update(pk, serializer.validated_data)
    return Response(FunnelStageSerializer(stage).data)


# =============================================
# LEADS
# =============================================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def lead_list(request) -> Response:
    service = LeadService()

    if request.method == 'POST':
        serializer = LeadInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        lead = service.create(serializer.validated_data, request.user)
        return Response(LeadSerializer(lead).data, status=status.HTTP_201_CREATED)

    leads = service.find_all(
        request.user,
        status=query_str(request, 'status'),
        product=query_str(request, 'product'),
        origin=query_str(request, 'origin'),
        vendedor_id=query_str(request, 'vendedor_id'),
    )
    return Response(LeadSerializer(leads, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def lead_origins(request) -> Response:
    return Response(LeadOriginSerializer(FunnelStageService().origins(), many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def lead_cities(request) -> Response:
    return Response(LeadService().search_cities(request.query_params.get('q', '')))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def lead_check_duplicate(request, document) -> Response:
    return Response(LeadService().check_duplicate_cnpj(document))


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def lead_detail(request, pk) -> Response:
    service = LeadService()

    if request.method == 'GET':
        return Response(LeadDetailSerializer(service.find_one(pk, request.user)).data)

    if request.method == 'DELETE':
        service.remove(pk, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = LeadInputSerializer(data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    lead = service.update(pk, serializer.validated_data, request.user)
    return Response(LeadSerializer(lead).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def lead_interactions(request, pk) -> Response:
    serializer = InteractionInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    interaction = LeadService().add_interaction(pk, request.user, serializer.validated_data['content'])
    return Response(LeadInteractionSerializer(interaction).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def lead_convert(request, pk) -> Response:
    serializer = LeadConvertSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = LeadService().convert(pk, serializer.validated_data, request.user)
    return Response({
        'client': ClientSerializer(result['client']).data,
        'transaction': FinanceService().format(result['transaction']),
        '_conversion': result['_conversion'],
    }, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def lead_generate_summary(request, pk) -> Response:
    service = LeadService()
    service.find_one(pk, request.user)
    return Response(service.generate_summary(pk, plan_id=request.data.get('plan_id')))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def lead_score(request, pk) -> Response:
    lead = LeadService().find_one(pk, request.user)
    return Response(LeadScoreService().calculate(lead))
