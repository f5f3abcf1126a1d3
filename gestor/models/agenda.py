"""
Eventos da agenda comercial (demos, reuniões, ligações, follow-ups).
"""

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from gestor.models.base import ScopedQuerySet, TimestampedModel


class EventType(models.TextChoices):
    DEMO = 'DEMO', 'Demonstração'
    MEETING = 'MEETING', 'Reunião'
    CALL = 'CALL', 'Ligação'
    FOLLOWUP = 'FOLLOWUP', 'Follow-up'
    SUPPORT = 'SUPPORT', 'Suporte'
    INTERNAL = 'INTERNAL', 'Interno'


class CalendarEventQuerySet(ScopedQuerySet):

    def alive(self):
        """Exclui eventos removidos (soft delete)."""
        return self.filter(deleted_at__isnull=True)


class CalendarEvent(TimestampedModel):
    """
    Evento de agenda de um usuário.

    A regra de recorrência (RRULE) é apenas armazenada; eventos removidos
    ficam com deleted_at preenchido.
    """

    scope_field = 'user'

    title = models.CharField(max_length=200, verbose_name='Título')

    description = models.TextField(blank=True, default='', verbose_name='Descrição')

    type = models.CharField(
        max_length=10,
        choices=EventType.choices,
        default=EventType.MEETING,
        verbose_name='Tipo'
    )

    start_at = models.DateTimeField(db_index=True, verbose_name='Início')

    end_at = models.DateTimeField(verbose_name='Término')

    is_all_day = models.BooleanField(default=False, verbose_name='Dia Inteiro')

    attendees_count = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
        verbose_name='Participantes'
    )

    location = models.CharField(max_length=255, blank=True, default='', verbose_name='Local')

    meeting_url = models.URLField(blank=True, default='', verbose_name='Link da Reunião')

    reminder_minutes = models.JSONField(default=list, blank=True, verbose_name='Lembretes (minutos)')

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='calendar_events',
        verbose_name='Responsável'
    )

    lead = models.ForeignKey(
        'gestor.Lead',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='calendar_events',
        verbose_name='Lead'
    )

    client = models.ForeignKey(
        'gestor.Client',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='calendar_events',
        verbose_name='Cliente'
    )

    is_recurring = models.BooleanField(default=False, verbose_name='Recorrente')

    recurrence_rule = models.CharField(max_length=500, blank=True, default='', verbose_name='Regra de Recorrência')

    recurrence_end = models.DateTimeField(null=True, blank=True, verbose_name='Fim da Recorrência')

    deleted_at = models.DateTimeField(null=True, blank=True, verbose_name='Removido em')

    objects = CalendarEventQuerySet.as_manager()

    class Meta:
        verbose_name = 'Evento'
        verbose_name_plural = 'Eventos'
        ordering = ['start_at']
        indexes = [
            models.Index(fields=['user', 'start_at'], name='gestor_event_user_start_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.title} ({self.start_at:%d/%m/%Y %H:%M})"
