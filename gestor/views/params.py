"""
Leitura de query params comuns às views.
"""

from typing import Optional

from gestor.exceptions import BadRequest

TRUE_VALUES = ('true', '1', 'yes', 'sim')
FALSE_VALUES = ('false', '0', 'no', 'nao', 'não')


def query_bool(request, name: str) -> Optional[bool]:
    """'true'/'false' -> bool; ausente ou vazio -> None."""
    value = request.query_params.get(name)
    if value is None or value == '':
        return None
    value = value.strip().lower()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    raise BadRequest(f'Valor inválido para {name}: {value}')


def query_int(request, name: str, default: int, minimum: int = 1, maximum: Optional[int] = None) -> int:
    value = request.query_params.get(name)
    if not value:
        return default
    try:
        number = int(value)
    except ValueError:
        raise BadRequest(f'{name} deve ser um número inteiro')
    number = max(minimum, number)
    if maximum is not None:
        number = min(number, maximum)
    return number


def query_str(request, name: str) -> Optional[str]:
    value = request.query_params.get(name)
    return value.strip() if value and value.strip() else None
