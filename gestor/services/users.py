"""
Service de usuários e permissões por módulo.
"""

import logging
from typing import Dict

from django.contrib.auth import get_user_model
from django.db import transaction

from gestor.exceptions import BadRequest, Conflict, NotFound
from gestor.models import UserPermission, UserRole
from gestor.services.audit import AuditService
from gestor.utils.access import GESTOR, is_admin, require_admin, scope_queryset

logger = logging.getLogger(__name__)

User = get_user_model()

PERMISSION_FLAGS = ('can_view', 'can_create', 'can_edit', 'can_delete')


def user_snapshot(user) -> Dict:
    return {
        'email': user.email,
        'name': user.name,
        'role': user.role,
        'gestor_id': user.gestor_id,
        'is_active': user.is_active,
    }


class UserService:

    def __init__(self):
        self.audit = AuditService()

    def find_all(self, user, role: str = None, is_active: bool = None):
        """
        Administradores veem todos; GESTOR vê a própria equipe; demais, só a si mesmos.
        """
        qs = User.objects.select_related('gestor')
        if not is_admin(user):
            qs = scope_queryset(qs, user, 'id')
        if role:
            qs = qs.filter(role=role)
        if is_active is not None:
            qs = qs.filter(is_active=is_active)
        return qs.order_by('name', 'email')

    def find_one(self, user_id):
        try:
            return User.objects.select_related('gestor').get(id=user_id)
        except User.DoesNotExist:
            raise NotFound(f'Usuário {user_id} não encontrado')

    def _resolve_gestor(self, gestor_id):
        if not gestor_id:
            return None
        gestor = User.objects.filter(id=gestor_id).first()
        if gestor is None:
            raise NotFound(f'Gestor {gestor_id} não encontrado')
        if gestor.role != GESTOR:
            raise BadRequest('O gestor vinculado deve ter a role GESTOR')
        return gestor

    def create(self, data: Dict, current_user):
        """
        Cria um usuário (apenas administradores).

        Raises:
            Conflict: email já cadastrado
        """
        require_admin(current_user, 'Apenas administradores podem criar usuários')

        data = dict(data)
        email = User.objects.normalize_email(data.pop('email'))
        if User.objects.filter(email__iexact=email).exists():
            raise Conflict(f'Email {email} já cadastrado')

        gestor = self._resolve_gestor(data.pop('gestor_id', None))
        password = data.pop('password')
        role = data.pop('role', UserRole.VENDEDOR)

        user = User.objects.create_user(email=email, password=password, role=role, gestor=gestor, **data)

        logger.info(f'[USERS] Usuário criado: {user.email} ({user.role}) por {current_user.email}')
        self.audit.log('CREATE', 'User', user.id, user=current_user, new_data=user_snapshot(user))
        return user

    def update(self, user_id, data: Dict, current_user):
        require_admin(current_user, 'Apenas administradores podem editar usuários')

        user = self.find_one(user_id)
        data = dict(data)
        old_data = user_snapshot(user)

        if 'email' in data:
            email = User.objects.normalize_email(data.pop('email'))
            if User.objects.filter(email__iexact=email).exclude(id=user.id).exists():
                raise Conflict(f'Email {email} já cadastrado')
            user.email = email
        if 'gestor_id' in data:
            user.gestor = self._resolve_gestor(data.pop('gestor_id'))

        password = data.pop('password', None)
        if password:
            user.set_password(password)

        for field, value in data.items():
            setattr(user, field, value)
        user.save()

        logger.info(f'[USERS] Usuário atualizado: {user.email}')
        self.audit.log('UPDATE', 'User', user.id, user=current_user, old_data=old_data, new_data=user_snapshot(user))
        return user

    def change_password(self, user, current_password: str, new_password: str) -> None:
        if not user.check_password(current_password):
            raise BadRequest('Senha atual incorreta')
        user.set_password(new_password)
        user.save()
        logger.info(f'[USERS] Senha alterada: {user.email}')

    def permissions(self, user_id):
        self.find_one(user_id)
        return UserPermission.objects.filter(user_id=user_id).order_by('module')

    @transaction.atomic
    def set_permission(self, user_id, module: str, flags: Dict, current_user) -> UserPermission:
        """
        Cria ou atualiza a permissão de um usuário em um módulo.
        """
        require_admin(current_user, 'Apenas administradores podem alterar permissões')
        user = self.find_one(user_id)

        defaults = {flag: bool(flags[flag]) for flag in PERMISSION_FLAGS if flag in flags}
        permission, created = UserPermission.objects.update_or_create(
            user=user, module=module, defaults=defaults
        )

        logger.info(f'[USERS] Permissão {module} {"criada" if created else "atualizada"} para {user.email}: {defaults}')
        return permission
