"""
Modelo Tenant - Sistema provisionado para um cliente.

Cada cliente pode ter no máximo um tenant (instância do produto
hospedada em uma VPS). O tenant nunca é removido fisicamente: a exclusão
marca o status DELETADO e o registro passa a ser somente leitura.
"""

import re

from django.core.exceptions import ValidationError
from django.db import models

from gestor.models.base import TimestampedModel

SEMVER_PATTERN = re.compile(r'^\d+\.\d+\.\d+$')


class TenantStatus(models.TextChoices):
    """Status do tenant no sistema."""
    ATIVO = 'ATIVO', 'Ativo'
    SUSPENSO = 'SUSPENSO', 'Suspenso'
    BLOQUEADO = 'BLOQUEADO', 'Bloqueado'
    DELETADO = 'DELETADO', 'Deletado'


class Tenant(TimestampedModel):
    """
    Instância provisionada do produto para um cliente.

    Características:
    - Relação 1:1 com Client
    - tenant_uuid identifica a instância no provisionamento
    - system_url sempre em minúsculas, vps_location em maiúsculas
    - Métricas de uso atualizadas pela própria instância
    """

    client = models.OneToOneField(
        'gestor.Client',
        on_delete=models.CASCADE,
        related_name='tenant',
        verbose_name='Cliente'
    )

    tenant_uuid = models.CharField(
        max_length=64,
        unique=True,
        verbose_name='UUID do Tenant',
        help_text='Identificador da instância no provisionamento'
    )

    system_url = models.CharField(
        max_length=255,
        verbose_name='URL do Sistema',
        help_text='Endereço de acesso da instância'
    )

    vps_location = models.CharField(
        max_length=50,
        verbose_name='Localização da VPS',
        help_text='Região/datacenter da VPS (ex: BR-SP)'
    )

    status = models.CharField(
        max_length=10,
        choices=TenantStatus.choices,
        default=TenantStatus.ATIVO,
        db_index=True,
        verbose_name='Status'
    )

    version = models.CharField(
        max_length=20,
        default='1.0.0',
        verbose_name='Versão',
        help_text='Versão instalada (semver X.Y.Z)'
    )

    last_access_at = models.DateTimeField(null=True, blank=True, verbose_name='Último Acesso')

    active_users = models.PositiveIntegerField(default=0, verbose_name='Usuários Ativos')

    storage_used_mb = models.PositiveIntegerField(default=0, verbose_name='Armazenamento (MB)')

    enabled_modules = models.JSONField(default=list, blank=True, verbose_name='Módulos Habilitados')

    class Meta:
        verbose_name = 'Tenant'
        verbose_name_plural = 'Tenants'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='gestor_tenant_status_idx'),
        ]

    def clean(self):
        """
        Validação adicional do modelo.

        Normaliza URL e localização e valida a versão no formato semver.
        """
        super().clean()

        if self.system_url:
            self.system_url = self.system_url.strip().lower()
        if self.vps_location:
            self.vps_location = self.vps_location.strip().upper()

        if self.version and not SEMVER_PATTERN.match(self.version):
            raise ValidationError({
                'version': 'Versão deve seguir o formato semver (ex: 1.0.0).'
            })

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)

    @property
    def name(self) -> str:
        """Nome do tenant (empresa do cliente)."""
        return self.client.company

    @property
    def is_deleted(self) -> bool:
        return self.status == TenantStatus.DELETADO

    def __str__(self) -> str:
        return f"{self.name} ({self.get_status_display()})"
