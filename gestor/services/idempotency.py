"""
Idempotência de webhooks.

Guarda no cache (Redis) a chave "{origem}:{id_do_evento}" por
WEBHOOK_IDEMPOTENCY_TTL segundos (padrão 24h). Gateways podem reenviar o
mesmo evento dentro dessa janela (inclusive em paralelo); a chave é
reservada antes do processamento e só a primeira entrega é tratada.
"""

import logging

from django.conf import settings
from django.core.cache import cache
from django.utils import timezone

logger = logging.getLogger(__name__)

KEY_PREFIX = 'webhook'


class IdempotencyService:
    """Registro de eventos de webhook já processados."""

    def __init__(self, ttl: int = None):
        self.ttl = ttl or settings.WEBHOOK_IDEMPOTENCY_TTL

    def build_key(self, source: str, event_id: str) -> str:
        return f'{KEY_PREFIX}:{source}:{event_id}'

    def is_processed(self, source: str, event_id: str) -> bool:
        processed_at = cache.get(self.build_key(source, event_id))
        if processed_at is None:
            return False
        logger.warning(f'[WEBHOOK] Evento duplicado detectado: {source}:{event_id} (processado em {processed_at})')
        return True

    def claim(self, source: str, event_id: str) -> bool:
        """
        Reserva o evento de forma atômica (cache.add).

        Retorna False se outra entrega do mesmo evento já reservou a chave.
        """
        claimed = cache.add(self.build_key(source, event_id), timezone.now().isoformat(), self.ttl)
        if not claimed:
            logger.warning(f'[WEBHOOK] Evento duplicado detectado: {source}:{event_id}')
            return False
        logger.debug(f'[WEBHOOK] Evento reservado para processamento: {source}:{event_id}')
        return True

    def remove(self, source: str, event_id: str) -> None:
        """Libera a chave para reprocessar o evento (falha no processamento ou uso manual)."""
        cache.delete(self.build_key(source, event_id))
