"""
Service de Inteligência Artificial do Gestor Nexus.

Utiliza OpenAI GPT-4o-mini para:
- Resumo da negociação na conversão de leads
- Insights acionáveis do dashboard (resposta JSON estruturada)

Quem chama é responsável pelo fallback: os métodos levantam exceção
quando a IA não está configurada ou a resposta é inválida.
"""

import json
import logging
from typing import Dict

import openai
from django.conf import settings

logger = logging.getLogger(__name__)

DEFAULT_MODEL = 'gpt-4o-mini'


class IAProcessor:
    """
    Cliente fino sobre a API de chat da OpenAI.
    """

    def __init__(self):
        api_key = settings.OPENAI_API_KEY
        if not api_key:
            logger.warning('[IA] OPENAI_API_KEY não configurada. Configure no arquivo .env')

        self.client = openai.OpenAI(api_key=api_key) if api_key else None

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    def _chat(self, system_prompt: str, user_prompt: str, temperature: float, json_mode: bool) -> str:
        if not self.client:
            raise ValueError('Cliente OpenAI não configurado. Verifique OPENAI_API_KEY no .env')

        kwargs = {}
        if json_mode:
            kwargs['response_format'] = {'type': 'json_object'}

        response = self.client.chat.completions.create(
            model=settings.OPENAI_MODEL or DEFAULT_MODEL,
            messages=[
                {'role': 'system', 'content': system_prompt},
                {'role': 'user', 'content': user_prompt},
            ],
            temperature=temperature,
            **kwargs
        )

        content = response.choices[0].message.content or ''
        logger.info(f'[IA] Resposta da OpenAI recebida: {content[:200]}...')
        return content

    def complete_text(self, system_prompt: str, user_prompt: str, temperature: float = 0.5) -> str:
        """
        Gera texto livre.

        Raises:
            ValueError: IA não configurada ou resposta vazia
            openai.OpenAIError: Falha na comunicação com a API
        """
        content = self._chat(system_prompt, user_prompt, temperature, json_mode=False).strip()
        if not content:
            raise ValueError('Resposta vazia da IA')
        return content

    def complete_json(self, system_prompt: str, user_prompt: str, temperature: float = 0.3) -> Dict:
        """
        Gera uma resposta JSON e devolve o objeto decodificado.

        Raises:
            ValueError: IA não configurada ou JSON inválido
            openai.OpenAIError: Falha na comunicação com a API
        """
        content = self._chat(system_prompt, user_prompt, temperature, json_mode=True)
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(f'[IA] Erro ao fazer parse do JSON retornado pela IA: {str(e)}')
            raise ValueError(f'Resposta inválida da IA: {str(e)}')
