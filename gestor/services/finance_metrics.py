"""
Métricas financeiras (MRR, ARR, churn, inadimplência e aging).

Todas as métricas são derivadas dos lançamentos recorrentes de receita
(type=INCOME, is_recurring=True) e aceitam filtro opcional por produto.
"""

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, List, Optional

from django.db.models import Q, Sum

from gestor.models import FinanceTransaction, TransactionStatus, TransactionType, calculate_transaction_status
from gestor.services.finance import format_currency, product_filter
from gestor.utils.dates import add_months, as_date, month_end, month_start, today as local_today

logger = logging.getLogger(__name__)

MONTH_NAMES_PT = ['jan', 'fev', 'mar', 'abr', 'mai', 'jun', 'jul', 'ago', 'set', 'out', 'nov', 'dez']

ALL_HISTORY_MONTHS = 999

# (rótulo, dias mínimos, dias máximos); faixas contíguas, a última sem teto
AGING_RANGES = (
    ('0-30 dias', 1, 30),
    ('31-60 dias', 31, 60),
    ('61-90 dias', 61, 90),
    ('90+ dias', 91, None),
)

ACTIVE_STATUSES = (TransactionStatus.PAID, TransactionStatus.PENDING)


def aging_bucket(days_overdue: int) -> int:
    """Índice da faixa de AGING_RANGES para a quantidade de dias em atraso."""
    for index, (_, _, max_days) in enumerate(AGING_RANGES):
        if max_days is None or days_overdue <= max_days:
            return index
    return len(AGING_RANGES) - 1


def percent_change(current: float, previous: float) -> float:
    """Variação percentual; 100 quando não havia base e houve valor."""
    if previous > 0:
        return (current - previous) / previous * 100
    return 100.0 if current > 0 else 0.0


def format_trend(value: float) -> str:
    sign = '+' if value >= 0 else ''
    return f'{sign}{round(value, 1)}%'


def month_label(d: date, with_year: bool = False) -> str:
    label = MONTH_NAMES_PT[d.month - 1].capitalize()
    if with_year:
        label = f'{label}/{str(d.year)[-2:]}'
    return label


class FinanceMetricsService:
    """
    Indicadores dos cards e gráficos do módulo financeiro.
    """

    def _recurring(self, product_type: Optional[str] = None):
        return FinanceTransaction.objects.filter(
            product_filter(product_type),
            type=TransactionType.INCOME,
            is_recurring=True,
        )

    def _sum(self, qs) -> float:
        return float(qs.aggregate(total=Sum('amount'))['total'] or Decimal('0'))

    def _active_at(self, reference: date, product_type: Optional[str] = None):
        """
        Recorrências ativas ao final de reference: criadas até a data e
        em aberto/pagas, ou canceladas depois dela.
        """
        return self._recurring(product_type).filter(date__lte=reference).filter(
            Q(status__in=[TransactionStatus.PAID, TransactionStatus.PENDING, TransactionStatus.OVERDUE])
            | Q(status=TransactionStatus.CANCELLED, updated_at__date__gt=reference)
        )

    def _new_in(self, start: date, end: date, product_type: Optional[str] = None, statuses=ACTIVE_STATUSES):
        qs = self._recurring(product_type).filter(date__gte=start, date__lte=end)
        if statuses:
            qs = qs.filter(status__in=statuses)
        return qs

    def _changed_to(self, status: str, start: date, end: date, product_type: Optional[str] = None):
        return self._recurring(product_type).filter(
            status=status, updated_at__date__gte=start, updated_at__date__lte=end
        )

    def metrics(self, product_type: Optional[str] = None) -> Dict:
        """
        Cards do financeiro: MRR, YTD, New MRR, Churn MRR, Churn Rate,
        Inadimplência e ARR, cada um com valor, formatado e tendência.
        """
        today = local_today()
        current_start = month_start(today)
        current_end = month_end(today)
        previous_end = current_start - timedelta(days=1)
        previous_start = month_start(previous_end)
        two_months_end = previous_start - timedelta(days=1)
        last_december_end = date(today.year - 1, 12, 31)

        mrr_qs = self._recurring(product_type).filter(status__in=ACTIVE_STATUSES)
        mrr = self._sum(mrr_qs)
        mrr_previous = self._sum(self._active_at(previous_end, product_type))

        new_mrr = self._sum(self._new_in(current_start, current_end, product_type))
        new_mrr_previous = self._sum(self._new_in(previous_start, previous_end, product_type))

        churn_qs = self._changed_to(TransactionStatus.CANCELLED, current_start, current_end, product_type)
        churn_mrr = self._sum(churn_qs)
        churn_previous_count = self._changed_to(
            TransactionStatus.CANCELLED, previous_start, previous_end, product_type
        ).count()

        overdue = self._sum(self._recurring(product_type).filter(status=TransactionStatus.OVERDUE))
        overdue_previous = self._sum(
            self._changed_to(TransactionStatus.OVERDUE, previous_start, previous_end, product_type)
        )

        active_count = mrr_qs.count()
        canceled_count = churn_qs.count()
        base = active_count + canceled_count
        churn_rate = canceled_count / base * 100 if base else 0.0

        two_months_count = self._active_at(two_months_end, product_type).count()
        churn_rate_previous = churn_previous_count / two_months_count * 100 if two_months_count else 0.0

        arr = mrr * 12
        arr_last_year = self._sum(self._active_at(last_december_end, product_type)) * 12

        churn_mrr_pct = churn_mrr / mrr * 100 if mrr else 0.0
        overdue_pct = overdue / mrr * 100 if mrr else 0.0
        overdue_pct_previous = overdue_previous / mrr_previous * 100 if mrr_previous else 0.0

        mrr_trend = percent_change(mrr, mrr_previous)
        new_mrr_trend = percent_change(new_mrr, new_mrr_previous)
        churn_rate_trend = percent_change(churn_rate, churn_rate_previous)
        overdue_trend = percent_change(overdue_pct, overdue_pct_previous)
        arr_trend = percent_change(arr, arr_last_year)
        ytd = self._ytd(today, product_type)

        return {
            'mrr': {'value': mrr, 'formatted': format_currency(mrr), 'trend': format_trend(mrr_trend), 'up': mrr_trend >= 0},
            'ytd': {'value': ytd, 'formatted': format_currency(ytd), 'trend': '', 'up': True},
            'newMrr': {
                'value': new_mrr,
                'formatted': format_currency(new_mrr),
                'trend': format_trend(new_mrr_trend),
                'up': new_mrr_trend >= 0,
            },
            'churnMrr': {
                'value': churn_mrr,
                'formatted': format_currency(churn_mrr),
                'trend': f'-{round(churn_mrr_pct, 1)}%',
                'up': False,
            },
            'churnRate': {
                'value': churn_rate,
                'formatted': f'{round(churn_rate, 1)}%',
                'trend': format_trend(churn_rate_trend),
                'up': churn_rate_trend < 0,
            },
            'inadimplencia': {
                'value': overdue,
                'formatted': format_currency(overdue),
                'trend': format_trend(overdue_trend),
                'up': overdue_trend < 0,
            },
            'arr': {'value': arr, 'formatted': format_currency(arr), 'trend': format_trend(arr_trend), 'up': arr_trend >= 0},
            'counts': {'active': active_count, 'canceled': canceled_count},
        }

    def _ytd(self, today: date, product_type: Optional[str] = None) -> float:
        """
        Receita acumulada no ano: MRR anterior a janeiro somado às
        variações mensais (novos - churn - inadimplência) até o mês atual.
        """
        year_start = date(today.year, 1, 1)
        ytd = self._sum(
            self._recurring(product_type).filter(status__in=ACTIVE_STATUSES, date__lt=year_start)
        )
        for month in range(1, today.month + 1):
            start = date(today.year, month, 1)
            ytd += self._month_delta(start, product_type)
        return ytd

    def _month_delta(self, start: date, product_type: Optional[str] = None) -> float:
        end = month_end(start)
        new = self._sum(self._new_in(start, end, product_type, statuses=None))
        churn = self._sum(self._changed_to(TransactionStatus.CANCELLED, start, end, product_type))
        overdue = self._sum(self._changed_to(TransactionStatus.OVERDUE, start, end, product_type))
        return new - churn - overdue

    def mrr_history(self, months: int = 6, product_type: Optional[str] = None) -> List[Dict]:
        """
        Evolução mensal do MRR.

        months >= 999 calcula desde o primeiro lançamento. Rótulos ganham
        o ano ("Jan/25") quando a série passa de 12 meses.
        """
        today = local_today()

        if months >= ALL_HISTORY_MONTHS:
            first = FinanceTransaction.objects.order_by('created_at').values_list('created_at', flat=True).first()
            if first:
                first_date = as_date(first)
                months = max((today.year - first_date.year) * 12 + (today.month - first_date.month) + 1, 1)
            else:
                months = 6

        first_month = add_months(month_start(today), -(months - 1))
        mrr = self._sum(
            self._recurring(product_type).filter(status__in=ACTIVE_STATUSES, date__lt=first_month)
        )

        history = []
        for offset in range(months):
            start = add_months(first_month, offset)
            end = month_end(start)

            churn = self._sum(self._changed_to(TransactionStatus.CANCELLED, start, end, product_type))
            expansion = self._sum(
                FinanceTransaction.objects.filter(
                    product_filter(product_type),
                    type=TransactionType.INCOME,
                    is_recurring=False,
                    status=TransactionStatus.PAID,
                    date__gte=start,
                    date__lte=end,
                )
            )
            mrr += self._month_delta(start, product_type)

            history.append({
                'name': month_label(start, with_year=months > 12),
                'mrr': mrr,
                'expansion': expansion,
                'churn': abs(churn),
            })

        return history

    def arr_history(self, product_type: Optional[str] = None) -> List[Dict]:
        """ARR por ano desde o primeiro lançamento de receita."""
        first = FinanceTransaction.objects.filter(type=TransactionType.INCOME).order_by('date').values_list(
            'date', flat=True
        ).first()
        if not first:
            return []

        result = []
        for year in range(first.year, local_today().year + 1):
            year_end = date(year, 12, 31)
            active = self._recurring(product_type).filter(date__lte=year_end).filter(
                Q(status__in=ACTIVE_STATUSES)
                | Q(status=TransactionStatus.CANCELLED, updated_at__date__gt=year_end)
            )
            result.append({'name': str(year), 'arr': self._sum(active) * 12})
        return result

    def aging_report(self, product_type: Optional[str] = None) -> Dict:
        """
        Receitas vencidas por faixa de atraso.

        Returns:
            {'data': [{'range', 'value'}], 'total', 'totalFormatted'}
        """
        today = local_today()
        values = [0.0] * len(AGING_RANGES)

        transactions = FinanceTransaction.objects.filter(
            product_filter(product_type),
            type=TransactionType.INCOME,
            due_date__lt=today,
            paid_at__isnull=True,
        ).exclude(status=TransactionStatus.CANCELLED)

        for t in transactions:
            if calculate_transaction_status(t.status, t.paid_at, t.due_date, today) != TransactionStatus.OVERDUE:
                continue
            values[aging_bucket((today - t.due_date).days)] += float(t.amount)

        data = [{'range': label, 'value': value} for (label, _, _), value in zip(AGING_RANGES, values)]
        total = sum(values)
        return {'data': data, 'total': total, 'totalFormatted': format_currency(total)}
