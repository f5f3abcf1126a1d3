"""
Classes base dos modelos do Gestor Nexus.

Implementa TimestampedModel (UUID + timestamps) e o QuerySet com escopo
por role, que restringe automaticamente os registros visíveis para
GESTOR (equipe) e VENDEDOR (apenas os próprios).
"""

import uuid

from django.db import models

from gestor.utils.access import scope_queryset


class ScopedQuerySet(models.QuerySet):
    """
    QuerySet com filtro de visibilidade por usuário.

    Cada modelo informa em `scope_field` o caminho até o usuário dono do
    registro (ex: 'vendedor' em Client, 'client__vendedor' em Payment).
    """

    def for_user(self, user, field: str = None):
        """
        Restringe o QuerySet aos registros visíveis para o usuário.

        - GESTOR: registros da equipe (vendedores subordinados + ele mesmo)
        - VENDEDOR: apenas os próprios registros
        - Demais roles: todos os registros

        Args:
            user: Usuário autenticado
            field: Caminho do dono do registro (padrão: Model.scope_field)

        Returns:
            QuerySet filtrado
        """
        field = field or getattr(self.model, 'scope_field', 'vendedor')
        return scope_queryset(self, user, field)


class TimestampedModel(models.Model):
    """
    Classe base abstrata para os modelos do sistema.

    Características:
    - UUID como chave primária (não sequencial)
    - Timestamps automáticos (created_at, updated_at)
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        verbose_name='ID',
        help_text='Identificador único (UUID) do registro'
    )

    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name='Data de Criação',
        help_text='Data e hora em que o registro foi criado'
    )

    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name='Data de Atualização',
        help_text='Data e hora da última atualização do registro'
    )

    class Meta:
        abstract = True
        ordering = ['-created_at']

    def __str__(self) -> str:
        """Representação string do objeto (deve ser sobrescrito nos modelos filhos)."""
        return f"{self.__class__.__name__} ({self.id})"
