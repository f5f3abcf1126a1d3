"""
Service de clientes.

Regras de acesso:
- SUPERADMIN/ADMINISTRATIVO: todos os clientes
- GESTOR: clientes da equipe (vendedores vinculados + ele mesmo)
- VENDEDOR: apenas os próprios clientes

Criar um cliente abre a assinatura e o primeiro lançamento recorrente
na mesma transação. Quando o cliente vem de um lead, o lead é marcado
como GANHO.
"""

import logging
from datetime import date
from typing import Dict, Optional

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from gestor.exceptions import BadRequest, Conflict, Forbidden, NotFound
from gestor.models import (
    ACTIVE_CLIENT_STATUSES, Client, ClientStatus, FinanceTransaction, Lead,
    LeadStatus, Payment, PaymentMethod, PaymentStatus, PermissionModule, Plan,
    ProductType, Subscription, SubscriptionStatus, TransactionCategory,
    TransactionStatus, TransactionType, UserPermission
)
from gestor.services.audit import AuditService
from gestor.services.status_sync import StatusSyncService
from gestor.services.subscriptions import SubscriptionService
from gestor.utils.access import (
    GESTOR, SUPERADMIN, VENDEDOR, ensure_can_access, require_admin, require_roles,
    team_ids
)
from gestor.utils.dates import add_months, cycle_months, days_between, next_anchor_date, today as local_today
from gestor.utils.documents import filter_by_document

logger = logging.getLogger(__name__)

PRODUCT_PERMISSION_MODULES = {
    ProductType.ONE_NEXUS: PermissionModule.CLIENTS_ONE_NEXUS,
    ProductType.LOCADORAS: PermissionModule.CLIENTS_LOCADORAS,
}

# Status reavaliados pela rotina diária (CANCELADO é sempre manual)
STATUS_CHECK_STATUSES = (
    ClientStatus.ATIVO, ClientStatus.EM_TRIAL, ClientStatus.INADIMPLENTE, ClientStatus.BLOQUEADO
)

OVERDUE_GRACE_DAYS = 3
BLOCK_AFTER_DAYS = 30

CLIENT_FIELDS = (
    'company', 'contact_name', 'email', 'phone', 'cpf_cnpj', 'role', 'product_type',
    'status', 'billing_cycle', 'deal_summary', 'number_of_users', 'closed_at',
    'first_payment_date', 'implementation_notes', 'notes',
)


def client_snapshot(client: Client) -> Dict:
    data = {field: getattr(client, field) for field in CLIENT_FIELDS}
    data['plan_id'] = client.plan_id
    data['vendedor_id'] = client.vendedor_id
    return data


class ClientService:
    """
    CRUD de clientes com escopo por role e rotinas diárias de status.
    """

    def __init__(self):
        self.audit = AuditService()
        self.subscriptions = SubscriptionService()
        self.status_sync = StatusSyncService()

    def _queryset(self):
        return Client.objects.select_related('vendedor', 'vendedor__gestor', 'plan', 'active_subscription')

    def can_view_product(self, user, product_type: str) -> bool:
        """
        Permissão granular por módulo. Sem registro configurado, libera.
        """
        module = PRODUCT_PERMISSION_MODULES.get(product_type)
        permission = UserPermission.objects.filter(user=user, module=module).first()
        if permission is None:
            return True
        return permission.can_view

    def find_all(
        self,
        user,
        status: Optional[str] = None,
        product_type: Optional[str] = None,
        plan_id=None,
        vendedor_id=None,
        search: Optional[str] = None,
    ):
        """
        Lista clientes visíveis ao usuário, cada um com next_due_date.

        Raises:
            Forbidden: Produto sem permissão de visualização ou vendedor fora do escopo
        """
        if product_type and not self.can_view_product(user, product_type):
            raise Forbidden(f'Você não tem permissão para acessar clientes de {product_type}')

        qs = self._queryset().for_user(user)

        hidden_products = [p for p in PRODUCT_PERMISSION_MODULES if not self.can_view_product(user, p)]
        if hidden_products:
            qs = qs.exclude(product_type__in=hidden_products)

        if vendedor_id:
            if user.role == VENDEDOR and str(vendedor_id) != str(user.id):
                raise Forbidden('Você só pode visualizar seus próprios clientes')
            if user.role == GESTOR and str(vendedor_id) not in {str(i) for i in team_ids(user)}:
                raise Forbidden('Você não tem acesso aos clientes deste vendedor')
            qs = qs.filter(vendedor_id=vendedor_id)

        if status:
            qs = qs.filter(status=status)
        if product_type:
            qs = qs.filter(product_type=product_type)
        if plan_id:
            qs = qs.filter(plan_id=plan_id)
        if search:
            qs = qs.filter(
                Q(company__icontains=search)
                | Q(contact_name__icontains=search)
                | Q(email__icontains=search)
                | Q(cpf_cnpj__icontains=search)
            )

        clients = list(qs.order_by('-created_at'))
        for client in clients:
            client.next_due_date = self.calculate_next_due_date(client)
        return clients

    def _get(self, client_id) -> Client:
        try:
            return self._queryset().get(id=client_id)
        except Client.DoesNotExist:
            raise NotFound(f'Cliente {client_id} não encontrado')

    def find_one(self, client_id, user) -> Client:
        client = self._get(client_id)
        ensure_can_access(user, client.vendedor_id, 'Você não tem permissão para acessar este cliente')
        client.next_due_date = self.calculate_next_due_date(client)
        return client

    def find_by_cpf_cnpj(self, cpf_cnpj: str, user) -> Client:
        client = filter_by_document(self._queryset(), cpf_cnpj).first()
        if not client:
            raise NotFound(f'Cliente com CPF/CNPJ {cpf_cnpj} não encontrado')
        ensure_can_access(user, client.vendedor_id, 'Você não tem permissão para acessar este cliente')
        client.next_due_date = self.calculate_next_due_date(client)
        return client

    def calculate_next_due_date(self, client: Client) -> Optional[date]:
        """
        Próximo vencimento do cliente.

        Ordem de prioridade:
        1. next_billing_date da assinatura ACTIVE/TRIALING mais recente
        2. Lançamento recorrente PENDING com vencimento a partir de hoje
        3. first_payment_date + ciclo
        """
        subscription = Subscription.objects.filter(
            client_id=client.id,
            status__in=[SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING],
        ).order_by('-created_at').first()
        if subscription and subscription.next_billing_date:
            return subscription.next_billing_date

        next_transaction = FinanceTransaction.objects.filter(
            client_id=client.id,
            is_recurring=True,
            status=TransactionStatus.PENDING,
            due_date__gte=local_today(),
        ).order_by('due_date').first()
        if next_transaction:
            return next_transaction.due_date

        if client.first_payment_date and client.billing_cycle:
            return add_months(client.first_payment_date, cycle_months(client.billing_cycle))

        return None

    def _validate_vendedor(self, vendedor_id, user, action: str = 'criar clientes para'):
        """
        Valida o vendedor responsável informado.

        GESTOR só atribui a si mesmo ou à própria equipe.
        """
        User = get_user_model()
        vendedor = User.objects.filter(id=vendedor_id).first()

        if user.role == GESTOR:
            if vendedor is None:
                raise NotFound(f'Vendedor {vendedor_id} não encontrado')
            if vendedor.gestor_id != user.id and vendedor.id != user.id:
                raise Forbidden(f'Você só pode {action} sua equipe')

        if vendedor is None or not vendedor.is_active:
            raise BadRequest('Vendedor inválido ou inativo')
        return vendedor

    def create(self, data: Dict, user) -> Client:
        """
        Cria cliente, assinatura e o primeiro lançamento recorrente.

        Campos de controle em data: plan_id, vendedor_id, lead_id e
        billing_anchor_day. Os demais são campos do cliente.

        Raises:
            Conflict: CPF/CNPJ já cadastrado ou lead já convertido
            NotFound: Plano ou lead inexistente
            BadRequest: Vendedor inativo, plano inativo ou de outro produto
        """
        data = dict(data)
        plan_id = data.pop('plan_id', None)
        lead_id = data.pop('lead_id', None)
        anchor_day = data.pop('billing_anchor_day', None)
        vendedor_id = data.pop('vendedor_id', None)

        if user.role == VENDEDOR or not vendedor_id:
            vendedor_id = user.id

        if filter_by_document(Client.objects.all(), data['cpf_cnpj']).exists():
            raise Conflict(f'Cliente com CPF/CNPJ {data["cpf_cnpj"]} já existe')

        vendedor = self._validate_vendedor(vendedor_id, user)

        try:
            plan = Plan.objects.get(id=plan_id)
        except Plan.DoesNotExist:
            raise NotFound(f'Plano {plan_id} não encontrado')
        if not plan.is_active:
            raise BadRequest('Plano inativo não pode ser atribuído')
        if plan.product != data['product_type']:
            raise BadRequest(
                f'Plano {plan.name} é para {plan.product}, mas cliente é para {data["product_type"]}'
            )

        lead = None
        if lead_id:
            lead = Lead.objects.filter(id=lead_id).first()
            if lead is None:
                raise NotFound(f'Lead {lead_id} não encontrado')
            if lead.vendedor_id:
                ensure_can_access(user, lead.vendedor_id, 'Você não tem permissão para acessar este lead')
            if lead.status == LeadStatus.GANHO and lead.converted_at and Client.objects.filter(lead=lead).exists():
                raise Conflict(f'Lead {lead_id} já foi convertido em cliente')

        billing_cycle = data.get('billing_cycle') or Client._meta.get_field('billing_cycle').default
        amount = plan.monthly_amount(billing_cycle)

        with transaction.atomic():
            client = Client.objects.create(
                plan=plan,
                vendedor=vendedor,
                lead=lead,
                converted_from_lead=lead is not None,
                **data,
            )

            subscription = self.subscriptions.create_from_conversion(
                client=client,
                plan=plan,
                billing_cycle=client.billing_cycle,
                first_payment_date=client.first_payment_date,
                amount=amount,
                anchor_day=anchor_day,
            )

            FinanceTransaction.objects.create(
                description=f'Assinatura {plan.name} - {client.company}'[:300],
                amount=amount,
                type=TransactionType.INCOME,
                category=TransactionCategory.SUBSCRIPTION,
                date=local_today(),
                due_date=subscription.next_billing_date or subscription.current_period_end,
                status=TransactionStatus.PENDING,
                client=client,
                subscription=subscription,
                product_type=client.product_type,
                is_recurring=True,
                created_by=user,
            )

            if lead is not None:
                lead.status = LeadStatus.GANHO
                lead.converted_at = timezone.now()
                lead.save(update_fields=['status', 'converted_at', 'updated_at'])

        logger.info(
            f'[CLIENTS] Cliente criado: {client.company} ({client.contact_name}) - '
            f'Vendedor: {vendedor.display_name}{" [Convertido de Lead]" if lead else ""}'
        )
        self.audit.log('CREATE', 'Client', client.id, user=user, new_data=client_snapshot(client))

        client.next_due_date = subscription.next_billing_date
        return client

    def update(self, client_id, data: Dict, user) -> Client:
        """
        Atualiza um cliente.

        - Cliente CANCELADO só aceita alteração que inclua o status
        - Sair de CANCELADO exige administrador e reabre os lançamentos
        - Entrar em CANCELADO cancela os lançamentos em aberto
        - billing_anchor_day move a assinatura ativa e os lançamentos pendentes
        """
        data = dict(data)
        client = self._get(client_id)
        ensure_can_access(user, client.vendedor_id, 'Você não tem permissão para acessar este cliente')

        new_status = data.get('status')
        previous_status = client.status

        if previous_status == ClientStatus.CANCELADO and not new_status:
            raise BadRequest(
                'Cliente cancelado só pode ter o status alterado. Use o endpoint de reativação ou edite o status.'
            )
        if previous_status == ClientStatus.CANCELADO and new_status != ClientStatus.CANCELADO:
            require_admin(user, 'Apenas SUPERADMIN ou ADMINISTRATIVO podem reativar clientes cancelados')

        vendedor_id = data.pop('vendedor_id', None)
        if vendedor_id:
            if user.role == VENDEDOR:
                raise Forbidden('Você não pode transferir seus próprios clientes')
            client.vendedor = self._validate_vendedor(vendedor_id, user, action='transferir clientes dentro da')

        anchor_day = data.pop('billing_anchor_day', None)
        data.pop('plan_id', None)

        old_data = client_snapshot(client)
        for field, value in data.items():
            setattr(client, field, value)
        client.save()

        logger.info(f'[CLIENTS] Cliente atualizado: {client.company} ({client.contact_name})')

        if anchor_day is not None:
            self._move_billing_anchor(client, anchor_day)

        if new_status == ClientStatus.CANCELADO and previous_status != ClientStatus.CANCELADO:
            self.status_sync.cancel_open_transactions(client)
        if new_status in ACTIVE_CLIENT_STATUSES and previous_status == ClientStatus.CANCELADO:
            self.status_sync.reopen_cancelled_transactions(client)

        self.audit.log('UPDATE', 'Client', client.id, user=user, old_data=old_data, new_data=client_snapshot(client))

        client.next_due_date = self.calculate_next_due_date(client)
        return client

    def _move_billing_anchor(self, client: Client, anchor_day: int) -> None:
        subscription = Subscription.objects.filter(
            client=client,
            status__in=[SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING],
        ).order_by('-created_at').first()

        if subscription is None:
            logger.warning(f'[CLIENTS] Nenhuma assinatura ativa para atualizar o dia de cobrança de {client.company}')
            return

        next_date = next_anchor_date(anchor_day)
        subscription.billing_anchor_day = next_date.day
        subscription.next_billing_date = next_date
        subscription.save(update_fields=['billing_anchor_day', 'next_billing_date', 'updated_at'])

        moved = FinanceTransaction.objects.filter(
            client=client,
            status=TransactionStatus.PENDING,
            is_recurring=True,
        ).update(due_date=next_date, updated_at=timezone.now())

        logger.info(
            f'[CLIENTS] Dia de cobrança de {client.company} -> {next_date.day} | '
            f'Próxima: {next_date} | {moved} lançamento(s) pendente(s) ajustado(s)'
        )

    def cancel(self, client_id, user) -> Client:
        client = self._get(client_id)
        require_admin(user, 'Apenas administradores podem cancelar clientes')

        old_data = client_snapshot(client)
        client.status = ClientStatus.CANCELADO
        client.save(update_fields=['status', 'updated_at'])

        logger.warning(f'[CLIENTS] Cliente cancelado: {client.company} ({client.contact_name})')
        self.status_sync.cancel_open_transactions(client)
        self.audit.log('UPDATE', 'Client', client.id, user=user, old_data=old_data, new_data=client_snapshot(client))
        return client

    def reactivate(self, client_id, user) -> Client:
        client = self._get(client_id)
        require_admin(user, 'Apenas administradores podem reativar clientes')

        old_data = client_snapshot(client)
        client.status = ClientStatus.ATIVO
        client.save(update_fields=['status', 'updated_at'])

        logger.info(f'[CLIENTS] Cliente reativado: {client.company} ({client.contact_name})')
        self.audit.log('UPDATE', 'Client', client.id, user=user, old_data=old_data, new_data=client_snapshot(client))
        return client

    def remove(self, client_id, user) -> Dict:
        """
        Exclui o cliente permanentemente (tenant, pagamentos e lançamentos em cascata).

        Raises:
            Forbidden: Usuário não é SUPERADMIN
        """
        client = self._get(client_id)
        require_roles(user, [SUPERADMIN], 'Apenas SUPERADMIN pode excluir clientes permanentemente')

        old_data = client_snapshot(client)
        deleted = {'id': str(client.id), 'company': client.company, 'contactName': client.contact_name}

        logger.warning(
            f'[CLIENTS] Exclusão permanente: {client.company} | '
            f'Pagamentos: {client.payments.count()} | Solicitante: {user.email}'
        )

        client.delete()

        self.audit.log('DELETE', 'Client', deleted['id'], user=user, old_data=old_data)
        return {
            'success': True,
            'message': 'Cliente excluído permanentemente',
            'deletedClient': deleted,
        }

    def update_client_status_based_on_payments(self) -> Dict:
        """
        Rotina diária (06:00): recalcula o status pelos 5 pagamentos mais recentes.

        - PENDING vencido há mais de 30 dias: BLOQUEADO
        - PENDING vencido há mais de 3 dias: INADIMPLENTE
        - Sem atraso e último pagamento PAID: ATIVO

        Returns:
            {'ativos', 'inadimplentes', 'bloqueados', 'updated'}
        """
        today = local_today()
        summary = {'ativos': 0, 'inadimplentes': 0, 'bloqueados': 0, 'updated': 0}

        for client in Client.objects.filter(status__in=STATUS_CHECK_STATUSES):
            payments = list(Payment.objects.filter(client=client).order_by('-due_date')[:5])
            new_status = client.status

            overdue = [p for p in payments if p.status == PaymentStatus.PENDING and p.due_date < today]
            if overdue:
                days_overdue = days_between(overdue[-1].due_date, today)
                if days_overdue > BLOCK_AFTER_DAYS:
                    new_status = ClientStatus.BLOQUEADO
                    summary['bloqueados'] += 1
                elif days_overdue > OVERDUE_GRACE_DAYS:
                    new_status = ClientStatus.INADIMPLENTE
                    summary['inadimplentes'] += 1
            elif payments and payments[0].status == PaymentStatus.PAID:
                new_status = ClientStatus.ATIVO
                summary['ativos'] += 1

            if new_status != client.status:
                Client.objects.filter(id=client.id).update(status=new_status, updated_at=timezone.now())
                summary['updated'] += 1
                logger.info(f'[CLIENTS] {client.company} ({client.id}): {client.status} -> {new_status}')

        logger.info(
            f'[CLIENTS] Status atualizados: {summary["ativos"]} ATIVOS, '
            f'{summary["inadimplentes"]} INADIMPLENTES, {summary["bloqueados"]} BLOQUEADOS'
        )
        return summary

    def create_next_payments_for_active_clients(self) -> int:
        """
        Rotina diária (07:00): cria o próximo pagamento PIX de clientes ativos
        que não têm cobrança pendente futura.

        Returns:
            Quantidade de pagamentos criados
        """
        today = local_today()
        created = 0

        clients = Client.objects.select_related('plan').filter(
            status__in=ACTIVE_CLIENT_STATUSES,
            first_payment_date__isnull=False,
        ).exclude(billing_cycle='')

        for client in clients:
            has_future = Payment.objects.filter(
                client=client, status=PaymentStatus.PENDING, due_date__gte=today
            ).exists()
            if has_future:
                continue

            due_date = add_months(client.first_payment_date, cycle_months(client.billing_cycle))
            Payment.objects.create(
                client=client,
                amount=client.plan.price_monthly,
                due_date=due_date,
                status=PaymentStatus.PENDING,
                method=PaymentMethod.PIX,
                billing_cycle=client.billing_cycle,
                period_start=client.first_payment_date,
                period_end=due_date,
            )
            created += 1
            logger.info(f'[CLIENTS] Pagamento criado para {client.company}: vencimento {due_date}')

        logger.info(f'[CLIENTS] {created} pagamento(s) criado(s)')
        return created
