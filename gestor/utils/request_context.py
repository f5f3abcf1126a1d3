"""
Contexto thread-local da requisição atual.

Guarda o usuário autenticado, o IP e o user agent da requisição em
andamento, permitindo que a auditoria registre quem executou cada ação
sem precisar receber o request em todos os services.
"""

import threading
from typing import Optional


_context = threading.local()


def set_request_context(user=None, ip_address: Optional[str] = None, user_agent: Optional[str] = None) -> None:
    """
    Define o contexto da requisição para a thread atual.

    Args:
        user: Usuário autenticado (ou None)
        ip_address: IP de origem da requisição
        user_agent: User agent do cliente HTTP
    """
    _context.user = user
    _context.ip_address = ip_address
    _context.user_agent = user_agent


def get_current_user():
    """Retorna o usuário da requisição atual ou None."""
    return getattr(_context, 'user', None)


def get_current_ip() -> Optional[str]:
    return getattr(_context, 'ip_address', None)


def get_current_user_agent() -> Optional[str]:
    return getattr(_context, 'user_agent', None)


def clear_request_context() -> None:
    """
    Limpa o contexto da thread.
    """
    for attr in ('user', 'ip_address', 'user_agent'):
        if hasattr(_context, attr):
            delattr(_context, attr)
