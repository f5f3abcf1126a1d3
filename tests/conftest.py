from datetime import date
from decimal import Decimal

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from gestor.models import (
    BillingCycle, Client, ClientStatus, FunnelStage, LeadOrigin, Plan, ProductType, User, UserRole
)

CNPJ = '11222333000181'
OTHER_CNPJ = '11444777000161'
CPF = '52998224725'


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


def make_user(email, role, **extra):
    return User.objects.create_user(email=email, password='senha-forte-123', role=role, name=email.split('@')[0], **extra)


@pytest.fixture
def superadmin(db):
    return make_user('super@nexus.com', UserRole.SUPERADMIN)


@pytest.fixture
def administrativo(db):
    return make_user('adm@nexus.com', UserRole.ADMINISTRATIVO)


@pytest.fixture
def desenvolvedor(db):
    return make_user('dev@nexus.com', UserRole.DESENVOLVEDOR)


@pytest.fixture
def gestor(db):
    return make_user('gestor@nexus.com', UserRole.GESTOR)


@pytest.fixture
def vendedor(gestor):
    return make_user('vendedor@nexus.com', UserRole.VENDEDOR, gestor=gestor)


@pytest.fixture
def outro_vendedor(db):
    return make_user('outro@nexus.com', UserRole.VENDEDOR)


@pytest.fixture
def plan(db):
    return Plan.objects.create(
        code='ONE-PRO',
        name='One Nexus Pro',
        product=ProductType.ONE_NEXUS,
        price_monthly=Decimal('450.00'),
    )


@pytest.fixture
def locadoras_plan(db):
    return Plan.objects.create(
        code='LOC-GOLD',
        name='Locadoras Gold',
        product=ProductType.LOCADORAS,
        price_monthly=Decimal('397.00'),
    )


@pytest.fixture
def stages(db):
    names = ['Aberto', 'Contato Feito', 'Proposta Enviada', 'Ganho', 'Perdido']
    return [
        FunnelStage.objects.create(name=name, order=index, is_default=index == 1)
        for index, name in enumerate(names, start=1)
    ]


@pytest.fixture
def origins(db):
    return [
        LeadOrigin.objects.create(name='Indicação'),
        LeadOrigin.objects.create(name='Website'),
        LeadOrigin.objects.create(name='Cold Call'),
    ]


@pytest.fixture
def make_client(plan):
    def factory(vendedor, cpf_cnpj=CNPJ, **extra):
        data = {
            'company': 'Clínica Aurora',
            'contact_name': 'Ana Souza',
            'email': 'ana@aurora.com',
            'cpf_cnpj': cpf_cnpj,
            'product_type': plan.product,
            'plan': plan,
            'vendedor': vendedor,
            'status': ClientStatus.ATIVO,
            'billing_cycle': BillingCycle.MONTHLY,
            'first_payment_date': date(2025, 1, 10),
        }
        data.update(extra)
        return Client.objects.create(**data)
    return factory


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def auth_client(api_client):
    def factory(user):
        api_client.force_authenticate(user=user)
        return api_client
    return factory
