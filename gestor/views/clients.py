"""
Views de clientes e assinaturas.

Endpoints:
- /api/v1/clients/ (+ cpf-cnpj/<doc>/, <id>/, <id>/cancel/, <id>/reactivate/)
- /api/v1/subscriptions/client/<client_id>/ (+ active/) e reactivate/
"""

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from gestor.exceptions import NotFound
from gestor.serializers.clients import (
    ClientInputSerializer, ClientSerializer, ReactivateSubscriptionSerializer, SubscriptionSerializer
)
from gestor.services.clients import ClientService
from gestor.services.finance import FinanceService
from gestor.services.subscriptions import SubscriptionService
from gestor.views.params import query_str


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def client_list(request) -> Response:
    service = ClientService()

    if request.method == 'POST':
        serializer = ClientInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        client = service.create(serializer.validated_data, request.user)
        return Response(ClientSerializer(client).data, status=status.HTTP_201_CREATED)

    clients = service.find_all(
        request.user,
        status=query_str(request, 'status'),
        product_type=query_str(request, 'product_type'),
        plan_id=query_str(request, 'plan_id'),
        vendedor_id=query_str(request, 'vendedor_id'),
        search=query_str(request, 'search'),
    )
    return Response(ClientSerializer(clients, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def client_by_document(request, document) -> Response:
    client = ClientService().find_by_cpf_cnpj(document, request.user)
    return Response(ClientSerializer(client).data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def client_detail(request, pk) -> Response:
    service = ClientService()

    if request.method == 'GET':
        return Response(ClientSerializer(service.find_one(pk, request.user)).data)

    if request.method == 'DELETE':
        return Response(service.remove(pk, request.user))

    serializer = ClientInputSerializer(data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    client = service.update(pk, serializer.validated_data, request.user)
    return Response(ClientSerializer(client).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def client_cancel(request, pk) -> Response:
    return Response(ClientSerializer(ClientService().cancel(pk, request.user)).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def client_reactivate(request, pk) -> Response:
    return Response(ClientSerializer(ClientService().reactivate(pk, request.user)).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def client_subscriptions(request, client_id) -> Response:
    ClientService().find_one(client_id, request.user)
    subscriptions = SubscriptionService().get_by_client_id(client_id)
    return Response(SubscriptionSerializer(subscriptions, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def client_active_subscription(request, client_id) -> Response:
    ClientService().find_one(client_id, request.user)
    subscription = SubscriptionService().get_active(client_id)
    if subscription is None:
        raise NotFound('Nenhuma assinatura ativa para este cliente')
    return Response(SubscriptionSerializer(subscription).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def subscription_reactivate(request) -> Response:
    """
    Reativa um cliente cancelado/inadimplente/bloqueado com um novo plano.

    Body: client_id, plan_id, billing_cycle, new_payment_date, amount
    """
    client_id = request.data.get('client_id')
    if not client_id:
        raise NotFound('Cliente não encontrado')
    ClientService().find_one(client_id, request.user)

    serializer = ReactivateSubscriptionSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    result = SubscriptionService().reactivate(client_id, user=request.user, **serializer.validated_data)

    return Response({
        'client': ClientSerializer(result['client']).data,
        'subscription': SubscriptionSerializer(result['subscription']).data,
        'transaction': FinanceService().format(result['transaction']),
    })
