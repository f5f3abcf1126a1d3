"""
Formatação de valores monetários no padrão brasileiro.

- Ponto para separar milhares (1.000,00)
- Vírgula para separar decimais
- Sempre 2 casas decimais
"""

from decimal import Decimal, InvalidOperation


def to_decimal(value) -> Decimal:
    """
    Converte int/float/str/Decimal para Decimal (None e lixo viram 0).
    """
    if value is None:
        return Decimal('0')
    try:
        if isinstance(value, str):
            value = value.replace(',', '.')
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return Decimal('0')


def currency_br(value) -> str:
    """
    Formata um valor numérico como moeda brasileira, sem o símbolo.

    Exemplos:
        - 1000 -> 1.000,00
        - 1234567.89 -> 1.234.567,89
    """
    decimal_value = to_decimal(value).quantize(Decimal('0.01'))

    is_negative = decimal_value < 0
    integer_str, decimal_str = str(abs(decimal_value)).split('.')

    # Pontos de mil em mil da direita para a esquerda
    integer_formatted = ''
    for i, digit in enumerate(reversed(integer_str)):
        if i > 0 and i % 3 == 0:
            integer_formatted = '.' + integer_formatted
        integer_formatted = digit + integer_formatted

    if is_negative:
        integer_formatted = '-' + integer_formatted

    return f'{integer_formatted},{decimal_str}'


def format_brl(value) -> str:
    """Formata como 'R$ 1.234,56'."""
    return f'R$ {currency_br(value)}'


def format_compact(value) -> str:
    """
    Formato compacto usado nos cards financeiros.

    Exemplos:
        - 2500000 -> R$ 2.50M
        - 15300 -> R$ 15.3k
        - 950 -> R$ 950,00
    """
    amount = to_decimal(value)
    if amount >= Decimal('1000000'):
        return f'R$ {amount / Decimal("1000000"):.2f}M'
    if amount >= Decimal('1000'):
        return f'R$ {amount / Decimal("1000"):.1f}k'
    return format_brl(amount)
