"""
Service do dashboard: KPIs do mês corrente, tendências MoM e insights de IA.

VENDEDOR e GESTOR veem apenas os próprios registros; as demais roles
veem a base inteira. O filtro de produto é opcional em todas as consultas.
"""

import logging
from datetime import timedelta
from decimal import Decimal
from typing import Dict, List, Optional

import openai
from django.conf import settings
from django.core.cache import cache
from django.db.models import Count, Exists, OuterRef, Sum
from django.utils import timezone

from gestor.models import (
    ACTIVE_CLIENT_STATUSES, Client, ClientStatus, FinanceTransaction, Lead, LeadStatus,
    Payment, PaymentStatus, Subscription, SubscriptionStatus, TransactionStatus
)
from gestor.services.audit import AuditService
from gestor.services.ia_processor import IAProcessor
from gestor.utils.access import SCOPED_ROLES
from gestor.utils.currency import format_brl
from gestor.utils.dates import add_months, month_end, month_start, today

logger = logging.getLogger(__name__)

RECENT_LIMIT = 5
REVENUE_MONTHS = 6
INSIGHTS_COUNT = 3
INSIGHT_SEVERITIES = ('INFO', 'WARNING', 'CRITICAL', 'SUCCESS')
LOW_CONVERSION_RATE = 30

INSIGHTS_SYSTEM_PROMPT = """Você é um consultor financeiro e de vendas com 20 anos de experiência em SaaS B2B.
Analise as métricas e forneça insights acionáveis para gestores.

Regras:
1. Seja direto e prático
2. Priorize insights ACIONÁVEIS sobre observações óbvias
3. Use números concretos sempre que possível
4. Severidade:
   - CRITICAL: problemas urgentes que exigem ação imediata
   - WARNING: tendências negativas que precisam atenção
   - SUCCESS: vitórias e oportunidades para capitalizar
   - INFO: observações neutras ou contextuais

Retorne APENAS um JSON no formato:
{"insights": [{"severity": "INFO|WARNING|CRITICAL|SUCCESS", "title": "5-8 palavras",
"description": "1-2 frases, máximo 500 caracteres", "actionable": "próximo passo (opcional)"}]}"""


def trend(current: float, previous: float) -> Dict:
    """
    Tendência MoM formatada.

    Sem base anterior: "Novo" quando há valor atual, senão "0%".
    """
    if previous == 0:
        return {'trend': 'Novo' if current > 0 else '0%', 'up': current > 0}
    change = round((current - previous) / previous * 100, 1)
    sign = '+' if change > 0 else ''
    return {'trend': f'{sign}{change}%', 'up': change > 0}


def insights_cache_key(user, product: Optional[str]) -> str:
    return f'insights:{user.id}:{product or "all"}'


class DashboardService:
    """
    Agrega os indicadores exibidos na tela inicial.
    """

    def __init__(self):
        self.audit = AuditService()

    # ------------------------------------------------------------------
    # Escopo
    # ------------------------------------------------------------------

    def _own(self, queryset, user, field: str):
        if user.role in SCOPED_ROLES:
            return queryset.filter(**{field: user.id})
        return queryset

    def _clients(self, user, product: Optional[str]):
        qs = self._own(Client.objects.all(), user, 'vendedor_id')
        if product:
            qs = qs.filter(product_type=product)
        return qs

    def _leads(self, user, product: Optional[str]):
        qs = self._own(Lead.objects.all(), user, 'vendedor_id')
        if product:
            qs = qs.filter(interest_product=product)
        return qs

    def _payments(self, user, product: Optional[str]):
        qs = self._own(Payment.objects.all(), user, 'client__vendedor_id')
        if product:
            qs = qs.filter(client__product_type=product)
        return qs

    def _mrr(self, clients) -> Decimal:
        total = Decimal('0.00')
        for client in clients.select_related('plan'):
            total += client.plan.monthly_amount(client.billing_cycle)
        return total

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def stats(self, user, product: Optional[str] = None, months: int = REVENUE_MONTHS) -> Dict:
        current = today()
        start = month_start(current)
        previous_end = start - timedelta(days=1)
        previous_start = month_start(previous_end)

        clients = self._clients(user, product)
        leads = self._leads(user, product)
        payments = self._payments(user, product)
        active_clients = clients.filter(status__in=ACTIVE_CLIENT_STATUSES)

        total_clients = clients.count()
        mrr = self._mrr(active_clients)

        leads_this_month = leads.filter(created_at__date__gte=start)
        created_count = leads_this_month.count()
        won_count = leads_this_month.filter(status=LeadStatus.GANHO).count()
        conversion_rate = round(won_count / created_count * 100, 2) if created_count else 0.0
        open_leads = leads_this_month.filter(status=LeadStatus.ABERTO).count()
        overdue = payments.filter(status=PaymentStatus.OVERDUE).count()

        total_clients_previous = clients.filter(created_at__date__lte=previous_end).count()
        mrr_previous = self._mrr(active_clients.filter(created_at__date__lte=previous_end))
        open_leads_previous = leads.filter(
            status=LeadStatus.ABERTO,
            created_at__date__gte=previous_start,
            created_at__date__lte=previous_end,
        ).count()
        overdue_previous = payments.filter(
            status=PaymentStatus.OVERDUE,
            created_at__date__gte=previous_start,
            created_at__date__lte=previous_end,
        ).count()

        clients_trend = trend(total_clients, total_clients_previous)
        mrr_trend = trend(float(mrr), float(mrr_previous))
        leads_trend = trend(open_leads, open_leads_previous)
        overdue_trend = trend(overdue, overdue_previous)

        kpis = {
            'totalClients': total_clients,
            'activeClients': active_clients.count(),
            'trialClients': clients.filter(status=ClientStatus.EM_TRIAL).count(),
            'churnedClients': clients.filter(status=ClientStatus.CANCELADO, updated_at__date__gte=start).count(),
            'mrr': float(mrr),
            'totalLeads': open_leads,
            'conversionRate': conversion_rate,
            'overduePayments': overdue,
            'totalClientsTrend': clients_trend['trend'],
            'totalClientsTrendUp': clients_trend['up'],
            'mrrTrend': mrr_trend['trend'],
            'mrrTrendUp': mrr_trend['up'],
            'totalLeadsTrend': leads_trend['trend'],
            'totalLeadsTrendUp': leads_trend['up'],
            'overduePaymentsTrend': overdue_trend['trend'],
            'overduePaymentsTrendUp': overdue_trend['up'],
        }

        return {
            'kpis': kpis,
            'clientsByPlan': self.clients_by_plan(active_clients),
            'revenueOverTime': self.revenue_over_time(payments, months),
            'recentActivity': self.recent_activity(user, product),
        }

    def clients_by_plan(self, clients) -> List[Dict]:
        rows = clients.values('plan__name').annotate(count=Count('id')).order_by('-count', 'plan__name')
        return [{'plan': row['plan__name'], 'count': row['count']} for row in rows]

    def revenue_over_time(self, payments, months: int = REVENUE_MONTHS) -> List[Dict]:
        """
        Receita recebida (pagamentos PAID) por mês, do mais antigo ao atual.
        """
        first = add_months(month_start(today()), -(months - 1))
        result = []
        for offset in range(months):
            start = add_months(first, offset)
            total = payments.filter(
                status=PaymentStatus.PAID,
                paid_at__date__gte=start,
                paid_at__date__lte=month_end(start),
            ).aggregate(total=Sum('amount'))['total'] or Decimal('0.00')
            result.append({'month': start.strftime('%Y-%m'), 'revenue': float(total)})
        return result

    def recent_activity(self, user, product: Optional[str] = None) -> Dict:
        leads = self._leads(user, product).select_related('origin').order_by('-created_at')[:RECENT_LIMIT]
        clients = self._clients(user, product).select_related('plan').order_by('-created_at')[:RECENT_LIMIT]

        return {
            'recentLeads': [
                {
                    'id': str(lead.id),
                    'name': lead.display_name,
                    'origin': lead.origin.name if lead.origin else 'Não informado',
                    'createdAt': lead.created_at.isoformat(),
                }
                for lead in leads
            ],
            'recentClients': [
                {
                    'id': str(client.id),
                    'responsibleName': client.contact_name,
                    'company': client.company,
                    'planName': client.plan.name,
                    'productType': client.product_type,
                    'createdAt': client.created_at.isoformat(),
                }
                for client in clients
            ],
            'upcomingPayments': self.upcoming_payments(user, product),
            'auditEntries': self.audit.find_all(user, limit=RECENT_LIMIT)['data'],
        }

    def upcoming_payments(self, user, product: Optional[str] = None, limit: int = RECENT_LIMIT) -> List[Dict]:
        """
        Próximas cobranças de assinaturas ativas ainda não pagas.
        """
        current = today()
        paid_ahead = FinanceTransaction.objects.filter(
            subscription=OuterRef('pk'),
            status=TransactionStatus.PAID,
            due_date__gte=current,
        )
        qs = self._own(
            Subscription.objects.select_related('client'), user, 'client__vendedor_id'
        ).filter(
            status=SubscriptionStatus.ACTIVE,
            next_billing_date__gte=current,
        ).exclude(Exists(paid_ahead))
        if product:
            qs = qs.filter(client__product_type=product)

        return [
            {
                'id': str(sub.id),
                'clientId': str(sub.client_id),
                'clientName': sub.client.company,
                'amount': float(sub.amount),
                'dueDate': sub.next_billing_date.isoformat(),
            }
            for sub in qs.order_by('next_billing_date')[:limit]
        ]

    # ------------------------------------------------------------------
    # Insights
    # ------------------------------------------------------------------

    def insights(self, user, product: Optional[str] = None, refresh: bool = False) -> Dict:
        """
        Gera 3 insights sobre as métricas do usuário.

        O resultado (inclusive o fallback) fica em cache por usuário e
        produto; refresh=True descarta o cache antes de gerar.
        """
        key = insights_cache_key(user, product)
        if refresh:
            cache.delete(key)
        else:
            cached = cache.get(key)
            if cached:
                logger.info(f'[IA] Insights servidos do cache: {key}')
                return {
                    'insights': cached['insights'],
                    'metadata': {**cached['metadata'], 'cached': True, 'cachedAt': cached['metadata']['generatedAt']},
                }

        stats = self.stats(user, product)
        try:
            insights = self._generate_insights(stats, product)
        except (ValueError, openai.OpenAIError) as e:
            logger.warning(f'[IA] Falha ao gerar insights, usando fallback: {str(e)}')
            insights = self.fallback_insights(stats)

        result = {
            'insights': insights,
            'metadata': {
                'generatedAt': timezone.now().isoformat(),
                'period': 'MoM',
                'product': product or 'all',
                'cached': False,
            },
        }
        cache.set(key, result, timeout=settings.INSIGHTS_CACHE_TTL)
        return result

    def _insights_prompt(self, stats: Dict, product: Optional[str]) -> str:
        kpis = stats['kpis']
        plans = '\n'.join(f'  - {row["plan"]}: {row["count"]} clientes' for row in stats['clientsByPlan'])
        revenue = '\n'.join(f'  - {row["month"]}: {format_brl(row["revenue"])}' for row in stats['revenueOverTime'])
        return f"""Analise os dados abaixo e gere exatamente 3 insights estratégicos.
Escopo: {f'Produto {product}' if product else 'Todos os produtos'}

KPIs (mês atual vs anterior):
- Total de clientes: {kpis['totalClients']} ({kpis['totalClientsTrend']})
- Clientes ativos: {kpis['activeClients']}
- Clientes em trial: {kpis['trialClients']}
- Cancelados no mês: {kpis['churnedClients']}
- MRR: {format_brl(kpis['mrr'])} ({kpis['mrrTrend']})
- Leads em aberto: {kpis['totalLeads']} ({kpis['totalLeadsTrend']})
- Taxa de conversão: {kpis['conversionRate']:.1f}%
- Pagamentos vencidos: {kpis['overduePayments']} ({kpis['overduePaymentsTrend']})

Clientes por plano:
{plans or '  - nenhum'}

Receita recebida (últimos meses):
{revenue}

Priorize: saúde financeira (MRR, churn, inadimplência), pipeline de vendas e riscos ou oportunidades."""

    def _generate_insights(self, stats: Dict, product: Optional[str]) -> List[Dict]:
        processor = IAProcessor()
        data = processor.complete_json(INSIGHTS_SYSTEM_PROMPT, self._insights_prompt(stats, product))
        return self.validate_insights(data)

    def validate_insights(self, data) -> List[Dict]:
        """
        Normaliza a resposta da IA.

        Raises:
            ValueError: formato inválido ou quantidade diferente de 3
        """
        items = data.get('insights') if isinstance(data, dict) else None
        if not isinstance(items, list) or len(items) != INSIGHTS_COUNT:
            raise ValueError(f'A IA deve retornar exatamente {INSIGHTS_COUNT} insights')

        insights = []
        for item in items:
            if not isinstance(item, dict):
                raise ValueError('Insight em formato inválido')
            severity = str(item.get('severity', '')).upper()
            title = str(item.get('title') or '').strip()
            description = str(item.get('description') or '').strip()
            if severity not in INSIGHT_SEVERITIES or not title or not description:
                raise ValueError(f'Insight inválido: {item}')
            insights.append({
                'severity': severity,
                'title': title[:100],
                'description': description[:500],
                'actionable': str(item.get('actionable') or '').strip()[:300] or None,
            })
        return insights

    def fallback_insights(self, stats: Dict) -> List[Dict]:
        """Insights determinísticos usados quando a IA não responde."""
        kpis = stats['kpis']
        conversion = kpis['conversionRate']
        overdue = kpis['overduePayments']

        if conversion < LOW_CONVERSION_RATE:
            conversion_insight = {
                'severity': 'WARNING',
                'title': 'Taxa de Conversão',
                'description': f'Taxa de conversão de {conversion:.1f}% está abaixo do ideal ({LOW_CONVERSION_RATE}%).',
                'actionable': 'Identifique objeções comuns e treine o time.',
            }
        else:
            conversion_insight = {
                'severity': 'SUCCESS',
                'title': 'Taxa de Conversão',
                'description': f'Taxa de conversão de {conversion:.1f}% está saudável.',
                'actionable': None,
            }

        if overdue > 0:
            overdue_insight = {
                'severity': 'CRITICAL',
                'title': 'Inadimplência',
                'description': f'{overdue} pagamento(s) vencido(s) aguardando cobrança.',
                'actionable': 'Entre em contato com clientes inadimplentes hoje.',
            }
        else:
            overdue_insight = {
                'severity': 'SUCCESS',
                'title': 'Inadimplência',
                'description': 'Nenhum pagamento vencido no momento.',
                'actionable': None,
            }

        return [
            {
                'severity': 'INFO',
                'title': 'Dashboard Operacional',
                'description': (
                    f'Sistema funcionando corretamente. {kpis["activeClients"]} clientes ativos '
                    f'gerando {format_brl(kpis["mrr"])} em MRR.'
                ),
                'actionable': None,
            },
            conversion_insight,
            overdue_insight,
        ]
