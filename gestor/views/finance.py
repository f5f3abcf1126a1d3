"""
Views do financeiro (lançamentos, métricas) e dos pagamentos.

O módulo financeiro é restrito a SUPERADMIN e ADMINISTRATIVO. Pagamentos
são listados com o escopo do vendedor; alterações exigem administrador
(validado no PaymentService).
"""

from rest_framework import status
from rest_framework.decorators import api_view, parser_classes, permission_classes
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from gestor.serializers.finance import (
    PaymentSerializer, PdfImportSerializer, TransactionFilterSerializer, TransactionInputSerializer
)
from gestor.services.finance import FinanceService
from gestor.services.finance_metrics import ALL_HISTORY_MONTHS, FinanceMetricsService
from gestor.services.payments import PaymentService
from gestor.utils.access import require_admin
from gestor.views.params import query_int, query_str

FINANCE_FORBIDDEN = 'Apenas administradores podem acessar o financeiro'


# =============================================
# LANÇAMENTOS
# =============================================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def transaction_list(request) -> Response:
    require_admin(request.user, FINANCE_FORBIDDEN)
    service = FinanceService()

    if request.method == 'POST':
        serializer = TransactionInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return Response(service.create(serializer.validated_data, request.user), status=status.HTTP_201_CREATED)

    filters = TransactionFilterSerializer(data=request.query_params)
    filters.is_valid(raise_exception=True)
    return Response(service.find_all(filters.validated_data))


@api_view(['GET', 'PATCH', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def transaction_detail(request, pk) -> Response:
    require_admin(request.user, FINANCE_FORBIDDEN)
    service = FinanceService()

    if request.method == 'GET':
        return Response(service.find_one(pk))

    if request.method == 'DELETE':
        service.delete(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = TransactionInputSerializer(data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    return Response(service.update(pk, dict(serializer.validated_data)))


@api_view(['PATCH', 'POST'])
@permission_classes([IsAuthenticated])
def transaction_pay(request, pk) -> Response:
    require_admin(request.user, FINANCE_FORBIDDEN)
    return Response(FinanceService().mark_as_paid(pk))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def transaction_import_pdf(request) -> Response:
    require_admin(request.user, FINANCE_FORBIDDEN)
    serializer = PdfImportSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    return Response(FinanceService().import_pdf(serializer.validated_data['file'].read()))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def client_transactions(request, client_id) -> Response:
    require_admin(request.user, FINANCE_FORBIDDEN)
    return Response(FinanceService().client_transactions(client_id))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def overdue_clients(request) -> Response:
    require_admin(request.user, FINANCE_FORBIDDEN)
    return Response(FinanceService().overdue_clients())


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def upcoming_due_dates(request) -> Response:
    require_admin(request.user, FINANCE_FORBIDDEN)
    return Response(FinanceService().upcoming_due_dates(days=query_int(request, 'days', 7, maximum=90)))


# =============================================
# MÉTRICAS
# =============================================

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def finance_metrics(request) -> Response:
    require_admin(request.user, FINANCE_FORBIDDEN)
    return Response(FinanceMetricsService().metrics(product_type=query_str(request, 'product_type')))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def mrr_history(request) -> Response:
    require_admin(request.user, FINANCE_FORBIDDEN)
    months = query_int(request, 'months', 6, maximum=ALL_HISTORY_MONTHS)
    return Response(FinanceMetricsService().mrr_history(months=months, product_type=query_str(request, 'product_type')))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def arr_history(request) -> Response:
    require_admin(request.user, FINANCE_FORBIDDEN)
    return Response(FinanceMetricsService().arr_history(product_type=query_str(request, 'product_type')))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def aging_report(request) -> Response:
    require_admin(request.user, FINANCE_FORBIDDEN)
    return Response(FinanceMetricsService().aging_report(product_type=query_str(request, 'product_type')))


# =============================================
# PAGAMENTOS
# =============================================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def payment_list(request) -> Response:
    service = PaymentService()

    if request.method == 'POST':
        serializer = PaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payment = service.create(dict(serializer.validated_data), request.user)
        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)

    payments = service.find_all(
        request.user,
        status=query_str(request, 'status'),
        method=query_str(request, 'method'),
        client_id=query_str(request, 'client_id'),
    )
    return Response(PaymentSerializer(payments, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def payment_stats(request) -> Response:
    return Response(PaymentService().get_stats(request.user))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def payment_by_external_id(request, external_id) -> Response:
    require_admin(request.user, 'Apenas administradores podem buscar pagamentos por ID externo')
    return Response(PaymentSerializer(PaymentService().find_by_external_id(external_id)).data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def payment_detail(request, pk) -> Response:
    service = PaymentService()

    if request.method == 'GET':
        return Response(PaymentSerializer(service.find_one(pk, request.user)).data)

    if request.method == 'DELETE':
        service.remove(pk, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = PaymentSerializer(data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    payment = service.update(pk, dict(serializer.validated_data), request.user)
    return Response(PaymentSerializer(payment).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def payment_mark_paid(request, pk) -> Response:
    return Response(PaymentSerializer(PaymentService().mark_as_paid(pk, request.user)).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def payment_cancel(request, pk) -> Response:
    return Response(PaymentSerializer(PaymentService().cancel(pk, request.user)).data)
