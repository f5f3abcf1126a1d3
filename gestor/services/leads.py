"""
Service de leads (funil de vendas).

Regras de acesso iguais às de clientes, pelo vendedor do lead. Leads
sem vendedor são visíveis apenas para quem enxerga tudo.

Conversão:
- Lead ABERTO ou PERDIDO pode ser convertido em cliente
- Lead GANHO precisa ser marcado como PERDIDO antes de reconverter
"""

import logging
from typing import Dict, List, Optional

import requests
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from gestor.exceptions import BadRequest, Conflict, Forbidden, NotFound
from gestor.models import (
    PRODUCT_MODULE_NAMES, STAGE_LOST, STAGE_WON, Client, ClientStatus, FinanceTransaction,
    FunnelStage, Lead, LeadInteraction, LeadOrigin, LeadStatus, Plan, TransactionCategory,
    TransactionStatus, TransactionType
)
from gestor.services.ia_processor import IAProcessor
from gestor.services.lead_score import LeadScoreService
from gestor.services.subscriptions import SubscriptionService
from gestor.utils.access import GESTOR, VENDEDOR, ensure_can_access, require_admin, team_ids
from gestor.utils.dates import today as local_today
from gestor.utils.documents import PENDING_DOCUMENT, filter_by_document

logger = logging.getLogger(__name__)

IBGE_CACHE_KEY = 'ibge:municipios'
IBGE_CACHE_TTL = 24 * 60 * 60
IBGE_TIMEOUT = 5
MAX_CITY_RESULTS = 20

# Status antigos do frontend que correspondem a estágios do funil
LEGACY_STATUS_STAGES = {
    'TENTATIVA_CONTATO': 'Tentativa de contato',
    'EM_CONTATO': 'Contato Feito',
    'DEMONSTRACAO': 'Demonstração agendada',
    'QUALIFICADO': 'Qualificado',
    'PROPOSTA': 'Proposta Enviada',
    'NEGOCIACAO': 'Negociação',
}

SUMMARY_SYSTEM_PROMPT = (
    'Você é um assistente comercial. Escreva em português do Brasil um resumo '
    'objetivo (até 5 frases) da negociação com o lead, destacando interesse, '
    'origem, tempo no funil e pontos de atenção das observações.'
)


def state_code(city: Dict) -> str:
    """Sigla da UF de um município do IBGE (microrregião ou região imediata)."""
    try:
        return city['microrregiao']['mesorregiao']['UF']['sigla']
    except (KeyError, TypeError):
        pass
    try:
        return city['regiao-imediata']['regiao-intermediaria']['UF']['sigla']
    except (KeyError, TypeError):
        return ''


class LeadService:
    """
    CRUD de leads, conversão em cliente e utilitários do funil.
    """

    def __init__(self):
        self.scores = LeadScoreService()
        self.subscriptions = SubscriptionService()

    def _queryset(self):
        return Lead.objects.select_related('vendedor', 'vendedor__gestor', 'interest_plan', 'origin', 'stage')

    def _ensure_access(self, lead: Lead, user) -> None:
        if lead.vendedor_id:
            ensure_can_access(user, lead.vendedor_id, 'Você não tem permissão para acessar este lead')

    def find_all(
        self,
        user,
        status: Optional[str] = None,
        product: Optional[str] = None,
        origin: Optional[str] = None,
        vendedor_id=None,
    ):
        qs = self._queryset().prefetch_related('interactions__user').for_user(user)

        if vendedor_id:
            if user.role == VENDEDOR and str(vendedor_id) != str(user.id):
                raise Forbidden('Você só pode visualizar seus próprios leads')
            if user.role == GESTOR and str(vendedor_id) not in {str(i) for i in team_ids(user)}:
                raise Forbidden('Você não tem acesso aos leads deste vendedor')
            qs = qs.filter(vendedor_id=vendedor_id)

        if status:
            qs = qs.filter(status=status)
        if product:
            qs = qs.filter(interest_product=product)
        if origin:
            qs = qs.filter(origin__name=origin)

        return qs.order_by('-created_at')

    def _get(self, lead_id) -> Lead:
        try:
            return self._queryset().get(id=lead_id)
        except Lead.DoesNotExist:
            raise NotFound(f'Lead {lead_id} não encontrado')

    def find_one(self, lead_id, user) -> Lead:
        lead = self._get(lead_id)
        self._ensure_access(lead, user)
        return lead

    def _resolve_origin(self, name: str) -> LeadOrigin:
        origin = LeadOrigin.objects.filter(name__icontains=name).order_by('name').first()
        if origin is None:
            raise BadRequest(f'Origem "{name}" não encontrada')
        return origin

    def _default_stage(self) -> FunnelStage:
        stage = FunnelStage.objects.filter(is_default=True).first() or FunnelStage.objects.filter(order=1).first()
        if stage is None:
            raise BadRequest('Nenhum estágio padrão encontrado no funil')
        return stage

    def _validate_vendedor(self, vendedor_id, user, team_message: str, inactive_message: str):
        User = get_user_model()
        vendedor = User.objects.filter(id=vendedor_id).first()
        if vendedor is None:
            raise NotFound(f'Vendedor {vendedor_id} não encontrado')
        if user.role == GESTOR and vendedor.gestor_id != user.id and vendedor.id != user.id:
            raise Forbidden(team_message)
        if not vendedor.is_active:
            raise BadRequest(inactive_message)
        return vendedor

    def _validate_plan(self, plan_id, product: str) -> Plan:
        try:
            plan = Plan.objects.get(id=plan_id)
        except Plan.DoesNotExist:
            raise NotFound(f'Plano {plan_id} não encontrado')
        if plan.product != product:
            raise BadRequest(f'Plano {plan.name} é para {plan.product}, mas lead é para {product}')
        return plan

    def _refresh_score(self, lead: Lead) -> None:
        try:
            self.scores.update_lead_score(lead.id)
        except Exception as e:
            logger.warning(f'[LEADS] Erro ao calcular Lead Score do lead {lead.id}: {str(e)}')

    def create(self, data: Dict, user) -> Lead:
        """
        Cria um lead no estágio padrão do funil e calcula o score.

        Campos de controle em data: origin (nome), stage_id,
        interest_plan_id e vendedor_id.
        """
        data = dict(data)
        origin_name = data.pop('origin', None)
        stage_id = data.pop('stage_id', None)
        plan_id = data.pop('interest_plan_id', None)
        vendedor_id = data.pop('vendedor_id', None)

        if origin_name:
            data['origin'] = self._resolve_origin(origin_name)

        if stage_id:
            data['stage'] = FunnelStage.objects.filter(id=stage_id).first() or self._default_stage()
        else:
            data['stage'] = self._default_stage()

        if user.role == VENDEDOR or not vendedor_id:
            vendedor_id = user.id
        data['vendedor'] = self._validate_vendedor(
            vendedor_id, user,
            team_message='Você só pode criar leads para sua equipe',
            inactive_message='Não é possível atribuir lead a vendedor inativo',
        )

        if plan_id:
            product = data.get('interest_product') or Lead._meta.get_field('interest_product').default
            data['interest_plan'] = self._validate_plan(plan_id, product)

        lead = Lead.objects.create(**data)
        logger.info(f'[LEADS] Lead criado: {lead.display_name} ({lead.email}) - Vendedor: {lead.vendedor.display_name}')

        self._refresh_score(lead)
        return self._get(lead.id)

    def update(self, lead_id, data: Dict, user) -> Lead:
        """
        Atualiza um lead mantendo status e estágio coerentes.

        - Status legados (EM_CONTATO, PROPOSTA...) viram mudança de estágio
        - GANHO/PERDIDO movem o lead para o estágio terminal correspondente
        - Mudança explícita de estágio recalcula o status
        """
        data = dict(data)
        lead = self._get(lead_id)
        self._ensure_access(lead, user)

        status = data.get('status')
        if status and status not in LeadStatus.values:
            stage_name = LEGACY_STATUS_STAGES.get(status)
            stage = FunnelStage.objects.filter(name__iexact=stage_name).first() if stage_name else None
            if stage is None:
                logger.warning(f'[LEADS] Status "{status}" sem estágio correspondente, ignorado')
            else:
                data['stage_id'] = stage.id
            data.pop('status')
            status = None

        vendedor_id = data.pop('vendedor_id', None)
        if vendedor_id:
            if user.role == VENDEDOR:
                raise Forbidden('Você não pode reatribuir seus próprios leads')
            lead.vendedor = self._validate_vendedor(
                vendedor_id, user,
                team_message='Você só pode reatribuir leads dentro da sua equipe',
                inactive_message='Vendedor inválido ou inativo',
            )

        if 'interest_plan_id' in data:
            plan_id = data.pop('interest_plan_id')
            product = data.get('interest_product') or lead.interest_product
            lead.interest_plan = self._validate_plan(plan_id, product) if plan_id else None

        origin_name = data.pop('origin', None)
        if origin_name:
            lead.origin = self._resolve_origin(origin_name)

        if status in (LeadStatus.GANHO, LeadStatus.PERDIDO):
            final_stage = FunnelStage.objects.filter(
                name=STAGE_WON if status == LeadStatus.GANHO else STAGE_LOST
            ).first()
            if final_stage:
                lead.stage = final_stage

        stage_id = data.pop('stage_id', None)
        if stage_id and str(stage_id) != str(lead.stage_id):
            stage = FunnelStage.objects.filter(id=stage_id).first()
            if stage is None:
                logger.warning(f'[LEADS] Lead {lead.id}: estágio {stage_id} não encontrado')
            else:
                lead.stage = stage
                if stage.name == STAGE_WON:
                    data['status'] = LeadStatus.GANHO
                elif stage.name == STAGE_LOST:
                    data['status'] = LeadStatus.PERDIDO
                else:
                    data['status'] = LeadStatus.ABERTO

        if data.get('status') == LeadStatus.GANHO and lead.status != LeadStatus.GANHO:
            lead.converted_at = timezone.now()

        for field, value in data.items():
            setattr(lead, field, value)
        lead.save()

        logger.info(f'[LEADS] Lead atualizado: {lead.display_name} ({lead.get_status_display()})')
        self._refresh_score(lead)
        return self._get(lead.id)

    def remove(self, lead_id, user) -> None:
        lead = self._get(lead_id)
        require_admin(user, 'Apenas administradores podem deletar leads')
        lead.delete()
        logger.warning(f'[LEADS] Lead deletado: {lead.display_name} ({lead.email})')

    def check_duplicate_cnpj(self, document: str) -> Dict:
        """
        Procura o documento em clientes (prioridade) e depois em leads.
        """
        client = filter_by_document(Client.objects.select_related('vendedor'), document).first()
        if client:
            return {
                'exists': True,
                'type': 'CLIENT',
                'status': client.status,
                'record': {
                    'id': str(client.id),
                    'name': client.company,
                    'cnpj': client.cpf_cnpj,
                    'assignedTo': client.vendedor.display_name if client.vendedor else 'N/A',
                },
                'message': f'CNPJ já cadastrado como cliente {"ativo" if client.status == ClientStatus.ATIVO else "inativo"}',
            }

        lead = filter_by_document(Lead.objects.select_related('vendedor'), document).first()
        if lead:
            return {
                'exists': True,
                'type': 'LEAD',
                'status': lead.status,
                'record': {
                    'id': str(lead.id),
                    'name': lead.display_name,
                    'cnpj': lead.cpf_cnpj or '',
                    'assignedTo': lead.vendedor.display_name if lead.vendedor else 'N/A',
                },
                'message': 'CNPJ já cadastrado como lead no sistema',
            }

        return {'exists': False, 'message': 'CNPJ disponível'}

    def add_interaction(self, lead_id, user, content: str) -> LeadInteraction:
        lead = self._get(lead_id)
        self._ensure_access(lead, user)
        return LeadInteraction.objects.create(lead=lead, user=user, type='NOTE', title='Interação', content=content)

    def convert(self, lead_id, data: Dict, user) -> Dict:
        """
        Converte o lead em cliente EM_TRIAL.

        Na mesma transação: cria o cliente com os dados da negociação,
        marca o lead como GANHO, remove as interações, abre a assinatura
        e o primeiro lançamento recorrente.

        Returns:
            {'client', 'transaction', '_conversion': {'productType', 'moduleName'}}
        """
        lead = self._get(lead_id)
        self._ensure_access(lead, user)

        if lead.status == LeadStatus.GANHO:
            raise BadRequest('Lead está GANHO. Marque como PERDIDO para reconverter.')

        try:
            plan = Plan.objects.get(id=data['plan_id'])
        except Plan.DoesNotExist:
            raise NotFound(f'Plano {data["plan_id"]} não encontrado')

        document = lead.cpf_cnpj or PENDING_DOCUMENT
        if document != PENDING_DOCUMENT:
            existing = filter_by_document(Client.objects.all(), document).first()
            if existing:
                raise Conflict(
                    f'Já existe um cliente com o CPF/CNPJ {lead.cpf_cnpj}. '
                    f'Cliente: {existing.company} (ID: {existing.id}). Não é possível converter este lead.'
                )
        elif Client.objects.filter(cpf_cnpj=PENDING_DOCUMENT).exists():
            raise Conflict('Já existe um cliente aguardando CPF/CNPJ. Informe o documento do lead antes de converter.')

        won_stage = FunnelStage.objects.filter(
            Q(name__icontains='Ganho') | Q(name__icontains='Won') | Q(name__icontains='Convertido')
        ).order_by('order').first()

        billing_cycle = data['billing_cycle']
        first_payment_date = data.get('first_payment_date') or local_today()
        amount = plan.monthly_amount(billing_cycle)

        with transaction.atomic():
            client = Client.objects.create(
                contact_name=lead.name,
                company=lead.company_name or lead.name,
                email=lead.email,
                phone=lead.phone,
                cpf_cnpj=document,
                role=lead.role,
                plan=plan,
                product_type=plan.product,
                vendedor_id=lead.vendedor_id or user.id,
                billing_cycle=billing_cycle,
                deal_summary=data.get('deal_summary', ''),
                number_of_users=data.get('number_of_users') or 1,
                closed_at=data.get('closed_at') or local_today(),
                first_payment_date=first_payment_date,
                implementation_notes=data.get('implementation_notes') or '',
                lead=lead,
                converted_from_lead=True,
                status=ClientStatus.EM_TRIAL,
            )

            lead.status = LeadStatus.GANHO
            lead.stage = won_stage or lead.stage
            lead.converted_at = timezone.now()
            lead.interest_plan = plan
            lead.save(update_fields=['status', 'stage', 'converted_at', 'interest_plan', 'updated_at'])

            lead.interactions.all().delete()

            subscription = self.subscriptions.create_from_conversion(
                client=client,
                plan=plan,
                billing_cycle=billing_cycle,
                first_payment_date=first_payment_date,
                amount=amount,
                anchor_day=data.get('billing_anchor_day'),
            )

            finance_transaction = FinanceTransaction.objects.create(
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

        module_name = PRODUCT_MODULE_NAMES[plan.product]
        logger.info(
            f'[LEADS] Lead convertido: {lead.display_name} -> Cliente {client.id} ({module_name}) | '
            f'MRR: R$ {amount} | Vencimento: {finance_transaction.due_date}'
        )

        return {
            'client': client,
            'transaction': finance_transaction,
            '_conversion': {'productType': plan.product, 'moduleName': module_name},
        }

    def _ibge_cities(self) -> List[Dict]:
        cities = cache.get(IBGE_CACHE_KEY)
        if cities is not None:
            return cities

        response = requests.get(settings.IBGE_MUNICIPIOS_URL, timeout=IBGE_TIMEOUT)
        response.raise_for_status()

        cities = [
            {'id': city['id'], 'nome': city['nome'], 'uf': state_code(city)}
            for city in response.json()
        ]
        cache.set(IBGE_CACHE_KEY, cities, timeout=IBGE_CACHE_TTL)
        return cities

    def search_cities(self, query: str) -> List[Dict]:
        """
        Busca municípios do IBGE pelo nome ("Nome - UF", até 20 resultados).

        Falhas na API resultam em lista vazia.
        """
        if not query or len(query) < 2:
            return []

        try:
            cities = self._ibge_cities()
        except (requests.RequestException, ValueError) as e:
            logger.error(f'[LEADS] Erro ao buscar cidades no IBGE: {str(e)}', exc_info=True)
            return []

        term = query.lower()
        matches = [city for city in cities if term in city['nome'].lower()][:MAX_CITY_RESULTS]
        return [
            {'id': city['id'], 'name': f'{city["nome"]} - {city["uf"]}' if city['uf'] else city['nome']}
            for city in matches
        ]

    def generate_summary(self, lead_id, plan_id=None) -> Dict:
        """
        Resumo da negociação para o formulário de conversão.

        Usa a IA quando configurada; caso contrário (ou em erro), monta
        um resumo determinístico com plano, origem, tempo no funil e
        observações.
        """
        lead = self._get(lead_id)

        plan_name = lead.interest_plan.name if lead.interest_plan else 'a definir'
        if plan_id and str(plan_id) != str(lead.interest_plan_id):
            custom_plan = Plan.objects.filter(id=plan_id).first()
            if custom_plan:
                plan_name = custom_plan.name

        days_in_funnel = (timezone.now() - lead.created_at).days
        origin_name = lead.origin.name if lead.origin else 'não informada'
        notes = f'Observações: {lead.notes[:200]}' if lead.notes else 'Sem observações registradas.'

        fallback = (
            f'Lead {lead.display_name} demonstrou interesse no plano {plan_name}.\n'
            f'Origem: {origin_name}.\n'
            f'Tempo no funil: {days_in_funnel} dias.\n'
            f'{notes}'
        )

        ia = IAProcessor()
        if not ia.is_configured:
            return {'summary': fallback}

        prompt = (
            f'Empresa: {lead.display_name}\n'
            f'Contato: {lead.name} ({lead.role or "cargo não informado"})\n'
            f'Plano de interesse: {plan_name}\n'
            f'Origem: {origin_name}\n'
            f'Estágio: {lead.stage.name if lead.stage else "não informado"}\n'
            f'Tempo no funil: {days_in_funnel} dias\n'
            f'Observações: {lead.notes or "nenhuma"}'
        )
        try:
            summary = ia.complete_text(SUMMARY_SYSTEM_PROMPT, prompt)
        except Exception as e:
            logger.error(f'[IA] Erro ao gerar resumo do lead {lead_id}: {str(e)}', exc_info=True)
            return {'summary': fallback}

        logger.info(f'[LEADS] Resumo gerado para lead {lead_id} (plano: {plan_name})')
        return {'summary': summary}
