"""
Regras de visibilidade e permissão por role.

- SUPERADMIN e ADMINISTRATIVO: acesso total (administradores)
- GESTOR: acessa registros da própria equipe (vendedores com gestor = ele)
- VENDEDOR: acessa apenas os próprios registros
- DESENVOLVEDOR: sem restrição de leitura; gerencia tenants e auditoria
"""

from typing import Iterable, List

from django.contrib.auth import get_user_model

from gestor.exceptions import Forbidden

SUPERADMIN = 'SUPERADMIN'
ADMINISTRATIVO = 'ADMINISTRATIVO'
GESTOR = 'GESTOR'
VENDEDOR = 'VENDEDOR'
DESENVOLVEDOR = 'DESENVOLVEDOR'

ADMIN_ROLES = (SUPERADMIN, ADMINISTRATIVO)
SCOPED_ROLES = (GESTOR, VENDEDOR)


def is_admin(user) -> bool:
    return getattr(user, 'role', None) in ADMIN_ROLES


def sees_everything(user) -> bool:
    """Roles sem escopo de equipe (não são GESTOR nem VENDEDOR)."""
    return getattr(user, 'role', None) not in SCOPED_ROLES


def team_ids(user) -> List:
    """
    IDs dos usuários cujos registros o usuário enxerga.

    GESTOR: vendedores subordinados + ele mesmo. Demais: apenas ele mesmo.
    """
    if user.role == GESTOR:
        User = get_user_model()
        ids = list(User.objects.filter(gestor_id=user.id).values_list('id', flat=True))
        ids.append(user.id)
        return ids
    return [user.id]


def can_access_owner(user, owner_id) -> bool:
    """
    Verifica se o usuário pode acessar um registro do dono informado.
    """
    if sees_everything(user):
        return True
    if owner_id is None:
        return False
    return str(owner_id) in {str(pk) for pk in team_ids(user)}


def ensure_can_access(user, owner_id, message: str = 'Você não tem permissão para acessar este registro') -> None:
    """
    Levanta Forbidden se o usuário não puder acessar o registro.
    """
    if not can_access_owner(user, owner_id):
        raise Forbidden(message)


def require_roles(user, roles: Iterable[str], message: str = 'Você não tem permissão para executar esta ação') -> None:
    """
    Exige que o usuário tenha uma das roles informadas.
    """
    if getattr(user, 'role', None) not in tuple(roles):
        raise Forbidden(message)


def require_admin(user, message: str = 'Apenas administradores podem executar esta ação') -> None:
    require_roles(user, ADMIN_ROLES, message)


def scope_queryset(queryset, user, field: str = 'vendedor'):
    """
    Restringe um QuerySet aos registros cujo dono (field) o usuário enxerga.
    """
    if sees_everything(user):
        return queryset
    return queryset.filter(**{f'{field}__in': team_ids(user)})
