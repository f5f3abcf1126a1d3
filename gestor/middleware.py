"""
Middleware de contexto da requisição.

Guarda usuário, IP e user agent no contexto thread-local para que a
auditoria saiba quem executou cada operação.

Características:
- Define o contexto no início de cada requisição
- Limpa o contexto ao final (evita vazamento entre threads)
"""

from django.utils.deprecation import MiddlewareMixin

from gestor.utils.request_context import clear_request_context, set_request_context


def get_client_ip(request) -> str:
    """
    IP de origem, considerando X-Forwarded-For atrás de proxy.
    """
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


class RequestContextMiddleware(MiddlewareMixin):
    """
    Middleware que popula o contexto thread-local de cada requisição.

    A autenticação JWT do DRF acontece dentro da view; nesse caso o
    usuário do contexto fica vazio e os services informam o usuário
    explicitamente ao registrar auditoria.
    """

    def process_request(self, request) -> None:
        clear_request_context()

        user = getattr(request, 'user', None)
        set_request_context(
            user=user if user is not None and user.is_authenticated else None,
            ip_address=get_client_ip(request),
            user_agent=request.META.get('HTTP_USER_AGENT', '')[:500],
        )

    def process_response(self, request, response):
        clear_request_context()
        return response

    def process_exception(self, request, exception) -> None:
        clear_request_context()
