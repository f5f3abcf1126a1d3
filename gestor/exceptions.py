"""
Exceções de negócio do Gestor Nexus.

Os services levantam estas exceções e o handler do DRF as converte
em respostas JSON no formato {"detail": "..."}.
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class BadRequest(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Requisição inválida.'
    default_code = 'bad_request'


class Unauthorized(APIException):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Não autorizado.'
    default_code = 'unauthorized'


class Forbidden(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Você não tem permissão para executar esta ação.'
    default_code = 'forbidden'


class NotFound(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Registro não encontrado.'
    default_code = 'not_found'


class Conflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Conflito com o estado atual do registro.'
    default_code = 'conflict'


def api_exception_handler(exc, context):
    """
    Handler de exceções do DRF.

    Além do tratamento padrão, converte ValidationError do Django
    (levantado por full_clean() nos models) em resposta 400.
    """
    if isinstance(exc, DjangoValidationError):
        if hasattr(exc, 'error_dict'):
            detail = exc.message_dict
        else:
            detail = {'detail': exc.messages}
        logger.info(f'[API] Erro de validação: {detail}')
        return Response(detail, status=status.HTTP_400_BAD_REQUEST)

    return exception_handler(exc, context)
