from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from gestor.models import FunnelStage, LeadOrigin, Plan, User, UserRole

pytestmark = pytest.mark.django_db


def run(*args, **options):
    out = StringIO()
    call_command(*args, stdout=out, **options)
    return out.getvalue()


def test_seed_is_idempotent():
    run('seed_gestor')
    run('seed_gestor')

    assert FunnelStage.objects.count() == 9
    assert FunnelStage.objects.get(is_default=True).name == 'Aberto'
    assert LeadOrigin.objects.count() == 7
    assert Plan.objects.count() == 5
    assert Plan.objects.get(code='ONE-PRO').sort_order == 2


def test_init_admin_creates_superadmin():
    output = run('init_admin', email='Root@Nexus.com', password='senha-forte-123')

    user = User.objects.get(email='root@nexus.com')
    assert user.role == UserRole.SUPERADMIN
    assert user.is_superuser
    assert user.check_password('senha-forte-123')
    assert 'SUPERADMIN criado' in output


def test_init_admin_keeps_existing_user():
    run('init_admin', email='root@nexus.com', password='senha-forte-123')

    output = run('init_admin', email='root@nexus.com', password='outra-senha-123')

    assert User.objects.count() == 1
    assert User.objects.get().check_password('senha-forte-123')
    assert 'Usuario ja existe' in output


def test_init_admin_requires_arguments():
    with pytest.raises(CommandError):
        call_command('init_admin', email='root@nexus.com')
