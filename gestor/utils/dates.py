"""
Utilitários de data do billing.

Todas as datas de cobrança são dias civis no fuso de Brasília
(TIME_ZONE = 'America/Sao_Paulo'). O dia âncora de cobrança é
sempre limitado a 28 para existir em qualquer mês.
"""

import calendar
from datetime import date

from django.utils import timezone

MAX_ANCHOR_DAY = 28

CYCLE_MONTHS = {
    'MONTHLY': 1,
    'QUARTERLY': 3,
    'SEMIANNUAL': 6,
    'ANNUAL': 12,
}


def today() -> date:
    """Data atual em Brasília."""
    return timezone.localdate()


def cycle_months(cycle: str) -> int:
    """Quantidade de meses de um ciclo (ciclos desconhecidos valem 1 mês)."""
    return CYCLE_MONTHS.get(cycle, 1)


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(d: date, months: int) -> date:
    """
    Soma meses a uma data, ajustando o dia ao último dia do mês destino.

    Exemplo: 31/01 + 1 mês -> 28/02 (ou 29/02 em ano bissexto)
    """
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(d.day, last_day_of_month(year, month))
    return date(year, month, day)


def safe_anchor(anchor_day: int) -> int:
    """Limita o dia âncora ao intervalo 1..28."""
    return max(1, min(int(anchor_day), MAX_ANCHOR_DAY))


def next_billing_date(from_date: date, anchor_day: int, cycle: str) -> date:
    """
    Calcula a próxima data de cobrança preservando o dia âncora.

    Avança o mês de from_date conforme o ciclo e posiciona no dia âncora
    (limitado a 28 e ao último dia do mês destino).
    """
    target = add_months(from_date.replace(day=1), cycle_months(cycle))
    day = min(safe_anchor(anchor_day), last_day_of_month(target.year, target.month))
    return target.replace(day=day)


def period_end(start: date, cycle: str) -> date:
    """Fim do período de cobrança iniciado em start."""
    return add_months(start, cycle_months(cycle))


def initial_billing_date(anchor_day: int, reference: date = None) -> date:
    """Primeira cobrança: mês corrente no dia âncora."""
    reference = reference or today()
    return reference.replace(day=safe_anchor(anchor_day))


def next_anchor_date(anchor_day: int, reference: date = None) -> date:
    """
    Próxima ocorrência do dia âncora a partir de reference.

    Se o dia âncora já passou no mês corrente, usa o mês seguinte.
    """
    reference = reference or today()
    candidate = reference.replace(day=safe_anchor(anchor_day))
    if candidate < reference:
        candidate = add_months(candidate, 1)
    return candidate


def month_start(d: date) -> date:
    return d.replace(day=1)


def month_end(d: date) -> date:
    return d.replace(day=last_day_of_month(d.year, d.month))


def days_between(start: date, end: date) -> int:
    """Diferença em dias (end - start)."""
    return (end - start).days


def as_date(value):
    """
    Normaliza datetime/date/None para date (datetime é convertido para o fuso local).
    """
    if value is None:
        return None
    if hasattr(value, 'tzinfo') and hasattr(value, 'hour'):
        if timezone.is_aware(value):
            return timezone.localtime(value).date()
        return value.date()
    return value
