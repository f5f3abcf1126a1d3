"""
Trilha de auditoria das operações administrativas.
"""

from django.conf import settings
from django.db import models

from gestor.models.base import TimestampedModel


class AuditLog(TimestampedModel):
    """
    Registro de auditoria.

    user nulo indica ação executada pelo sistema (rotinas agendadas, webhooks).
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_logs',
        verbose_name='Usuário'
    )

    action = models.CharField(max_length=50, db_index=True, verbose_name='Ação')

    entity = models.CharField(max_length=50, db_index=True, verbose_name='Entidade')

    entity_id = models.CharField(max_length=64, blank=True, default='', db_index=True, verbose_name='ID da Entidade')

    old_data = models.JSONField(null=True, blank=True, verbose_name='Dados Anteriores')

    new_data = models.JSONField(null=True, blank=True, verbose_name='Dados Novos')

    ip_address = models.GenericIPAddressField(null=True, blank=True, verbose_name='IP')

    user_agent = models.CharField(max_length=500, blank=True, default='', verbose_name='User Agent')

    class Meta:
        verbose_name = 'Log de Auditoria'
        verbose_name_plural = 'Logs de Auditoria'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['entity', 'entity_id'], name='gestor_audit_entity_idx'),
            models.Index(fields=['user', '-created_at'], name='gestor_audit_user_created_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.action} {self.entity} ({self.entity_id})"
