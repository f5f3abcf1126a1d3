import pytest

from tests.conftest import OTHER_CNPJ

API = '/api/v1'


@pytest.mark.django_db
def test_health_is_public(api_client):
    response = api_client.get(f'{API}/health/')

    assert response.status_code == 200
    assert response.data['status'] == 'ok'
    assert response.data['service'] == 'Gestor Nexus API'


class TestAuth:

    def test_login_and_me(self, api_client, vendedor):
        response = api_client.post(
            f'{API}/auth/login/', {'email': vendedor.email, 'password': 'senha-forte-123'}, format='json'
        )

        assert response.status_code == 200
        assert response.data['user']['role'] == 'VENDEDOR'

        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {response.data["access"]}')
        me = api_client.get(f'{API}/auth/me/')

        assert me.status_code == 200
        assert me.data['email'] == vendedor.email
        assert me.data['permissions'] == []

    def test_wrong_password(self, api_client, vendedor):
        response = api_client.post(
            f'{API}/auth/login/', {'email': vendedor.email, 'password': 'errada'}, format='json'
        )

        assert response.status_code == 401

    def test_requires_authentication(self, api_client, db):
        assert api_client.get(f'{API}/clients/').status_code == 401

    def test_change_password_wrong_current(self, auth_client, vendedor):
        response = auth_client(vendedor).post(
            f'{API}/auth/change-password/',
            {'current_password': 'errada', 'new_password': 'nova-senha-123'},
            format='json',
        )

        assert response.status_code == 400
        assert response.data['detail'] == 'Senha atual incorreta'


class TestRoles:

    def test_finance_is_admin_only(self, auth_client, vendedor):
        response = auth_client(vendedor).get(f'{API}/finance/transactions/')

        assert response.status_code == 403
        assert response.data['detail'] == 'Apenas administradores podem acessar o financeiro'

    def test_audit_export(self, auth_client, vendedor, superadmin):
        assert auth_client(vendedor).get(f'{API}/audit/export/').status_code == 403

        response = auth_client(superadmin).get(f'{API}/audit/export/')

        assert response.status_code == 200
        assert response['Content-Type'].startswith('text/csv')
        assert 'attachment; filename="auditoria_' in response['Content-Disposition']


class TestClients:

    def test_list_is_scoped(self, auth_client, vendedor, outro_vendedor, make_client):
        make_client(vendedor)
        make_client(outro_vendedor, cpf_cnpj=OTHER_CNPJ, company='Auto Center')

        response = auth_client(vendedor).get(f'{API}/clients/')

        assert response.status_code == 200
        assert [item['company'] for item in response.data] == ['Clínica Aurora']
        assert response.data[0]['vendedor']['email'] == vendedor.email

    def test_invalid_document(self, auth_client, vendedor, plan):
        response = auth_client(vendedor).post(f'{API}/clients/', {
            'company': 'Clínica Aurora',
            'contact_name': 'Ana Souza',
            'email': 'ana@aurora.com',
            'cpf_cnpj': '11111111111',
            'product_type': 'ONE_NEXUS',
            'plan_id': str(plan.id),
        }, format='json')

        assert response.status_code == 400
        assert 'cpf_cnpj' in response.data


class TestCalendar:

    def test_conflict_returns_409(self, auth_client, vendedor):
        client = auth_client(vendedor)
        payload = {
            'title': 'Demo',
            'start_at': '2025-07-01T10:00:00-03:00',
            'end_at': '2025-07-01T11:00:00-03:00',
        }

        assert client.post(f'{API}/calendar/events/', payload, format='json').status_code == 201
        assert client.post(f'{API}/calendar/events/', payload, format='json').status_code == 409

    def test_holidays(self, auth_client, vendedor):
        response = auth_client(vendedor).get(f'{API}/calendar/holidays/', {'year': 2025, 'state': 'XX'})

        assert response.status_code == 400
