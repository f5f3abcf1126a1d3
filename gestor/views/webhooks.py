"""
Views de webhooks dos gateways de pagamento.

Endpoints:
- POST /api/v1/webhooks/asaas/ - eventos do Asaas (header asaas-access-token)
- POST /api/v1/webhooks/abacatepay/ - eventos do AbacatePay (header X-Signature)

Falhas de autenticação respondem 401. Erros inesperados respondem 500
para que o gateway reenvie o evento (a idempotência só marca eventos
processados com sucesso).
"""

import logging

from django.views.decorators.csrf import csrf_exempt
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from gestor.exceptions import Unauthorized
from gestor.services.webhooks import AbacatePayWebhookService, AsaasWebhookService

logger = logging.getLogger(__name__)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
@csrf_exempt
def asaas_webhook(request) -> Response:
    service = AsaasWebhookService()

    if not service.validate_access_token(request.headers.get('asaas-access-token')):
        logger.warning('[WEBHOOK] Asaas: token de acesso inválido')
        raise Unauthorized('Token de webhook inválido')

    try:
        result = service.handle(request.data)
    except Exception as e:
        logger.error(f'[WEBHOOK] Erro ao processar evento Asaas: {str(e)}', exc_info=True)
        return Response({'success': False, 'error': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return Response(result)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
@csrf_exempt
def abacatepay_webhook(request) -> Response:
    service = AbacatePayWebhookService()

    # O HMAC é calculado sobre o corpo bruto, lido antes do parse
    raw_body = request.body
    if not service.validate_signature(raw_body, request.headers.get('X-Signature')):
        raise Unauthorized('Assinatura do webhook inválida')

    try:
        result = service.handle(request.data)
    except Exception as e:
        logger.error(f'[WEBHOOK] Erro ao processar evento AbacatePay: {str(e)}', exc_info=True)
        return Response({'success': False, 'error': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return Response(result)
