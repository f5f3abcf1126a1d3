"""
Service da agenda comercial.

Regras de conflito (por responsável):
- Dois eventos de dia inteiro no mesmo dia conflitam
- Eventos com horário não podem se sobrepor
- Evento de dia inteiro convive com eventos com horário
"""

import logging
import re
from datetime import datetime
from typing import Dict, List, Optional

import holidays
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.utils import timezone

from gestor.exceptions import BadRequest, Conflict, Forbidden, NotFound
from gestor.models import CalendarEvent, Client, Lead
from gestor.utils.access import can_access_owner, ensure_can_access

logger = logging.getLogger(__name__)

HOLIDAYS_CACHE_TTL = 60 * 60 * 24
RRULE_PATTERN = re.compile(r'^(RRULE:)?FREQ=(DAILY|WEEKLY|MONTHLY|YEARLY)(;[A-Z]+=[A-Z0-9,+-]+)*$')


class CalendarService:

    def _alive(self):
        return CalendarEvent.objects.alive().select_related('user', 'lead', 'client')

    def find_all(
        self,
        user,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        type: Optional[str] = None,
        user_id=None,
        lead_id=None,
        client_id=None,
    ):
        """
        Lista eventos visíveis ao usuário, opcionalmente dentro de um intervalo.

        Raises:
            Forbidden: user_id de fora da equipe do usuário
        """
        qs = self._alive().for_user(user)

        if user_id:
            if not can_access_owner(user, user_id):
                raise Forbidden('Você não tem permissão para ver a agenda deste usuário')
            qs = qs.filter(user_id=user_id)
        if start:
            qs = qs.filter(end_at__gte=start)
        if end:
            qs = qs.filter(start_at__lte=end)
        if type:
            qs = qs.filter(type=type)
        if lead_id:
            qs = qs.filter(lead_id=lead_id)
        if client_id:
            qs = qs.filter(client_id=client_id)

        return qs.order_by('start_at')

    def find_one(self, event_id, user) -> CalendarEvent:
        event = self._alive().filter(id=event_id).first()
        if event is None:
            raise NotFound(f'Evento {event_id} não encontrado')
        ensure_can_access(user, event.user_id, 'Você não tem permissão para acessar este evento')
        return event

    def _resolve_owner(self, owner_id, user):
        if not owner_id or owner_id == user.id:
            return user
        if not can_access_owner(user, owner_id):
            raise Forbidden('Você só pode agendar eventos para a sua equipe')
        owner = get_user_model().objects.filter(id=owner_id, is_active=True).first()
        if owner is None:
            raise NotFound(f'Usuário {owner_id} não encontrado')
        return owner

    def _validate_links(self, data: Dict, user) -> None:
        lead_id = data.get('lead_id')
        if lead_id:
            lead = Lead.objects.filter(id=lead_id).first()
            if lead is None:
                raise NotFound(f'Lead {lead_id} não encontrado')
            ensure_can_access(user, lead.vendedor_id, 'Você não tem permissão para acessar este lead')

        client_id = data.get('client_id')
        if client_id:
            client = Client.objects.filter(id=client_id).first()
            if client is None:
                raise NotFound(f'Cliente {client_id} não encontrado')
            ensure_can_access(user, client.vendedor_id, 'Você não tem permissão para acessar este cliente')

    def _validate_event(self, event: CalendarEvent) -> None:
        if event.end_at <= event.start_at:
            raise BadRequest('A data de término deve ser posterior à data de início')

        if event.is_recurring:
            if not event.recurrence_rule:
                raise BadRequest('Eventos recorrentes precisam de uma regra de recorrência')
            if not RRULE_PATTERN.match(event.recurrence_rule.upper()):
                raise BadRequest('Regra de recorrência inválida')
        else:
            event.recurrence_rule = ''
            event.recurrence_end = None

    def _check_conflicts(self, event: CalendarEvent) -> None:
        qs = CalendarEvent.objects.alive().filter(user_id=event.user_id, is_all_day=event.is_all_day)
        if event.pk:
            qs = qs.exclude(pk=event.pk)

        if event.is_all_day:
            day = timezone.localtime(event.start_at).date()
            clash = next(
                (other for other in qs if timezone.localtime(other.start_at).date() == day),
                None
            )
            if clash:
                raise Conflict(f'Já existe um evento de dia inteiro neste dia: {clash.title}')
            return

        clash = qs.filter(start_at__lt=event.end_at, end_at__gt=event.start_at).first()
        if clash:
            raise Conflict(
                f'Conflito de horário com o evento "{clash.title}" '
                f'({timezone.localtime(clash.start_at):%d/%m/%Y %H:%M})'
            )

    def create(self, data: Dict, user) -> CalendarEvent:
        data = dict(data)
        owner = self._resolve_owner(data.pop('user_id', None), user)
        self._validate_links(data, user)

        event = CalendarEvent(user=owner, **data)
        self._validate_event(event)
        self._check_conflicts(event)
        event.save()

        logger.info(f'[AGENDA] Evento criado: {event.title} ({event.start_at}) por {user.email}')
        return event

    def update(self, event_id, data: Dict, user) -> CalendarEvent:
        event = self.find_one(event_id, user)
        data = dict(data)

        if 'user_id' in data:
            event.user = self._resolve_owner(data.pop('user_id'), user)
        self._validate_links(data, user)

        for field, value in data.items():
            setattr(event, field, value)
        self._validate_event(event)
        self._check_conflicts(event)
        event.save()

        logger.info(f'[AGENDA] Evento atualizado: {event.id}')
        return event

    def remove(self, event_id, user) -> None:
        event = self.find_one(event_id, user)
        event.deleted_at = timezone.now()
        event.save(update_fields=['deleted_at', 'updated_at'])
        logger.info(f'[AGENDA] Evento removido: {event.id} por {user.email}')

    def holidays(self, year: int, state: Optional[str] = None) -> List[Dict]:
        """
        Feriados nacionais (e estaduais, quando state é informado) do ano.

        Returns:
            [{'date': 'YYYY-MM-DD', 'name': str, 'type': 'nacional'|'estadual'}]
        """
        state = (state or '').upper() or None
        cache_key = f'holidays:{year}:{state or "BR"}'
        cached = cache.get(cache_key)
        if cached is not None:
            return cached

        national = holidays.Brazil(years=year)
        try:
            regional = holidays.Brazil(subdiv=state, years=year) if state else national
        except NotImplementedError:
            raise BadRequest(f'Estado inválido: {state}')

        result = [
            {
                'date': day.isoformat(),
                'name': name,
                'type': 'nacional' if day in national else 'estadual',
            }
            for day, name in sorted(regional.items())
        ]

        cache.set(cache_key, result, timeout=HOLIDAYS_CACHE_TTL)
        logger.info(f'[AGENDA] Feriados carregados: {year}/{state or "BR"} ({len(result)})')
        return result
