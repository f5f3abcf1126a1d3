"""
Modelo User customizado - Autenticação e autorização do Gestor Nexus.

Herdado de AbstractUser do Django, estende com role, nome de exibição
e vínculo hierárquico com o gestor (equipes de vendas).
"""

import uuid
from typing import Optional

from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.core.exceptions import ValidationError
from django.db import models


class UserRole(models.TextChoices):
    """Roles disponíveis no sistema."""
    SUPERADMIN = 'SUPERADMIN', 'Super Administrador'
    ADMINISTRATIVO = 'ADMINISTRATIVO', 'Administrativo'
    GESTOR = 'GESTOR', 'Gestor'
    VENDEDOR = 'VENDEDOR', 'Vendedor'
    DESENVOLVEDOR = 'DESENVOLVEDOR', 'Desenvolvedor'


class PermissionModule(models.TextChoices):
    """Módulos com permissão configurável por usuário."""
    CLIENTS_ONE_NEXUS = 'CLIENTS_ONE_NEXUS', 'Clientes One Nexus'
    CLIENTS_LOCADORAS = 'CLIENTS_LOCADORAS', 'Clientes NexLoc'


class UserManager(BaseUserManager):
    """
    Manager customizado para o modelo User.

    Usa o email como identificador único (username = email).
    """

    def create_user(
        self,
        email: str,
        password: Optional[str] = None,
        role: str = UserRole.VENDEDOR,
        **extra_fields
    ):
        """
        Cria e salva um usuário comum.

        Args:
            email: Email do usuário (usado como username)
            password: Senha do usuário
            role: Role do usuário (VENDEDOR por padrão)
            **extra_fields: Campos extras (name, gestor, ...)

        Returns:
            User criado
        """
        if not email:
            raise ValueError('Informe o email do usuário')

        email = self.normalize_email(email)

        user = self.model(
            email=email,
            username=email,
            role=role,
            **extra_fields
        )

        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(
        self,
        email: str,
        password: Optional[str] = None,
        **extra_fields
    ):
        """
        Cria e salva um superusuário (SUPERADMIN).
        """
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', UserRole.SUPERADMIN)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('SUPERADMIN precisa de is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('SUPERADMIN precisa de is_superuser=True.')

        return self.create_user(email, password, **extra_fields)


class User(AbstractUser):
    """
    Modelo User customizado herdado de AbstractUser.

    Características:
    - Usa email como username
    - role define o escopo de acesso aos dados
    - gestor: vendedores apontam para o GESTOR responsável pela equipe
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        verbose_name='ID',
        help_text='UUID do usuário'
    )

    email = models.EmailField(
        unique=True,
        db_index=True,
        verbose_name='Email',
        help_text='Login do usuário'
    )

    name = models.CharField(
        max_length=255,
        blank=True,
        default='',
        verbose_name='Nome',
        help_text='Nome de exibição do usuário'
    )

    role = models.CharField(
        max_length=20,
        choices=UserRole.choices,
        default=UserRole.VENDEDOR,
        verbose_name='Role',
        help_text='Define o escopo de acesso aos dados'
    )

    gestor = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        related_name='vendedores',
        null=True,
        blank=True,
        verbose_name='Gestor',
        help_text='Gestor responsável pela equipe deste usuário'
    )

    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name='Data de Criação'
    )

    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name='Data de Atualização'
    )

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    class Meta:
        verbose_name = 'Usuário'
        verbose_name_plural = 'Usuários'
        ordering = ['email']
        indexes = [
            models.Index(fields=['role'], name='gestor_user_role_idx'),
            models.Index(fields=['gestor'], name='gestor_user_gestor_idx'),
        ]

    def clean(self):
        """
        Valida o vínculo com o gestor.

        O gestor vinculado precisa ter role GESTOR e não pode ser o próprio usuário.
        """
        super().clean()

        if self.gestor_id:
            if self.gestor_id == self.id:
                raise ValidationError({'gestor': 'Um usuário não pode ser gestor de si mesmo.'})
            if self.gestor.role != UserRole.GESTOR:
                raise ValidationError({'gestor': 'O gestor vinculado deve ter a role GESTOR.'})

    def save(self, *args, **kwargs):
        """
        Sobrescreve save para garantir validações e username igual ao email.
        """
        if not self.username or self.username != self.email:
            self.username = self.email

        self.full_clean()
        super().save(*args, **kwargs)

    @property
    def is_admin(self) -> bool:
        """SUPERADMIN ou ADMINISTRATIVO."""
        return self.role in (UserRole.SUPERADMIN, UserRole.ADMINISTRATIVO)

    @property
    def display_name(self) -> str:
        return self.name or self.email

    def __str__(self) -> str:
        return f"{self.email} ({self.get_role_display()})"


class UserPermission(models.Model):
    """
    Permissão de um usuário sobre um módulo (ex: clientes de um produto).

    Sem registro configurado, o acesso ao módulo é liberado.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='module_permissions',
        verbose_name='Usuário'
    )

    module = models.CharField(
        max_length=30,
        choices=PermissionModule.choices,
        verbose_name='Módulo'
    )

    can_view = models.BooleanField(default=True, verbose_name='Pode visualizar')
    can_create = models.BooleanField(default=True, verbose_name='Pode criar')
    can_edit = models.BooleanField(default=True, verbose_name='Pode editar')
    can_delete = models.BooleanField(default=False, verbose_name='Pode excluir')

    class Meta:
        verbose_name = 'Permissão de Módulo'
        verbose_name_plural = 'Permissões de Módulo'
        constraints = [
            models.UniqueConstraint(fields=['user', 'module'], name='unique_user_module_permission'),
        ]

    def __str__(self) -> str:
        return f"{self.user.email} - {self.get_module_display()}"
