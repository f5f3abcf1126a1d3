from datetime import date
from decimal import Decimal

import pytest

from gestor.exceptions import Forbidden
from gestor.models import Client
from gestor.utils import access
from gestor.utils.currency import currency_br, format_brl, format_compact, to_decimal
from gestor.utils.dates import (
    add_months, initial_billing_date, next_anchor_date, next_billing_date, period_end, safe_anchor
)
from gestor.utils.documents import (
    clean_document, filter_by_document, format_document, validate_cnpj, validate_cpf
)

from tests.conftest import CNPJ, CPF, OTHER_CNPJ


class TestDates:

    def test_add_months_clamps_to_month_end(self):
        assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2025, 11, 15), 3) == date(2026, 2, 15)

    def test_safe_anchor_limits(self):
        assert safe_anchor(31) == 28
        assert safe_anchor(0) == 1
        assert safe_anchor(15) == 15

    def test_next_billing_date_keeps_anchor(self):
        assert next_billing_date(date(2025, 1, 15), 15, 'MONTHLY') == date(2025, 2, 15)
        assert next_billing_date(date(2025, 1, 31), 31, 'MONTHLY') == date(2025, 2, 28)
        assert next_billing_date(date(2025, 1, 10), 10, 'QUARTERLY') == date(2025, 4, 10)
        assert next_billing_date(date(2025, 3, 5), 5, 'ANNUAL') == date(2026, 3, 5)

    def test_period_end(self):
        assert period_end(date(2025, 1, 10), 'SEMIANNUAL') == date(2025, 7, 10)

    def test_initial_billing_date_uses_current_month(self):
        assert initial_billing_date(30, date(2025, 6, 20)) == date(2025, 6, 28)

    def test_next_anchor_date_moves_to_next_month_when_passed(self):
        assert next_anchor_date(10, date(2025, 6, 20)) == date(2025, 7, 10)
        assert next_anchor_date(25, date(2025, 6, 20)) == date(2025, 6, 25)


class TestDocuments:

    def test_clean_document(self):
        assert clean_document('11.222.333/0001-81') == CNPJ
        assert clean_document(None) == ''

    def test_validate_cnpj(self):
        assert validate_cnpj(CNPJ)
        assert validate_cnpj('11.444.777/0001-61')
        assert not validate_cnpj('11222333000182')
        assert not validate_cnpj('11111111111111')
        assert not validate_cnpj('123')

    def test_validate_cpf(self):
        assert validate_cpf(CPF)
        assert validate_cpf('529.982.247-25')
        assert not validate_cpf('52998224726')
        assert not validate_cpf('00000000000')

    def test_format_document(self):
        assert format_document(CNPJ) == '11.222.333/0001-81'
        assert format_document(CPF) == '529.982.247-25'
        assert format_document('PENDING') == 'PENDING'

    def test_filter_by_document_ignores_punctuation(self, vendedor, make_client):
        client = make_client(vendedor, cpf_cnpj='11.222.333/0001-81')
        make_client(vendedor, cpf_cnpj=OTHER_CNPJ)

        found = filter_by_document(Client.objects.all(), CNPJ)

        assert list(found) == [client]


class TestCurrency:

    def test_to_decimal(self):
        assert to_decimal('10,50') == Decimal('10.50')
        assert to_decimal(None) == Decimal('0')
        assert to_decimal('abc') == Decimal('0')

    def test_currency_br(self):
        assert currency_br(1000) == '1.000,00'
        assert currency_br(Decimal('1234567.89')) == '1.234.567,89'
        assert currency_br(-50) == '-50,00'

    def test_format_brl_and_compact(self):
        assert format_brl(950) == 'R$ 950,00'
        assert format_compact(15300) == 'R$ 15.3k'
        assert format_compact(2500000) == 'R$ 2.50M'


class TestAccess:

    def test_gestor_sees_team(self, gestor, vendedor, outro_vendedor):
        ids = access.team_ids(gestor)

        assert set(ids) == {gestor.id, vendedor.id}
        assert access.can_access_owner(gestor, vendedor.id)
        assert not access.can_access_owner(gestor, outro_vendedor.id)

    def test_vendedor_sees_only_own(self, vendedor, outro_vendedor):
        assert access.can_access_owner(vendedor, vendedor.id)
        assert not access.can_access_owner(vendedor, outro_vendedor.id)
        assert not access.can_access_owner(vendedor, None)

    def test_admin_and_developer_see_everything(self, superadmin, desenvolvedor, vendedor):
        assert access.can_access_owner(superadmin, vendedor.id)
        assert access.can_access_owner(desenvolvedor, vendedor.id)
        assert access.is_admin(superadmin)
        assert not access.is_admin(desenvolvedor)

    def test_require_admin_raises_forbidden(self, gestor, administrativo):
        access.require_admin(administrativo)
        with pytest.raises(Forbidden):
            access.require_admin(gestor)

    def test_scope_queryset(self, gestor, vendedor, outro_vendedor, make_client):
        own = make_client(vendedor)
        make_client(outro_vendedor, cpf_cnpj=OTHER_CNPJ)

        assert list(Client.objects.for_user(gestor)) == [own]
        assert Client.objects.for_user(outro_vendedor).count() == 1
