from datetime import datetime, timedelta

import pytest
from django.utils import timezone

from gestor.exceptions import BadRequest, Conflict, Forbidden, NotFound
from gestor.models import CalendarEvent, EventType, Lead
from gestor.services.agenda import CalendarService


def at(day, hour, minute=0):
    return timezone.make_aware(datetime(2025, 7, day, hour, minute))


@pytest.fixture
def service():
    return CalendarService()


@pytest.fixture
def demo(service, vendedor):
    return service.create({
        'title': 'Demo Frota Rápida',
        'type': EventType.DEMO,
        'start_at': at(1, 10),
        'end_at': at(1, 11),
    }, vendedor)


class TestEvents:

    def test_create_defaults_to_current_user(self, demo, vendedor):
        assert demo.user == vendedor
        assert demo.recurrence_rule == ''

    def test_end_must_follow_start(self, service, vendedor):
        with pytest.raises(BadRequest):
            service.create({'title': 'X', 'start_at': at(1, 10), 'end_at': at(1, 10)}, vendedor)

    def test_overlapping_events_conflict(self, service, demo, vendedor, outro_vendedor):
        with pytest.raises(Conflict):
            service.create({'title': 'Reunião', 'start_at': at(1, 10, 30), 'end_at': at(1, 12)}, vendedor)

        service.create({'title': 'Seguinte', 'start_at': at(1, 11), 'end_at': at(1, 12)}, vendedor)
        service.create({'title': 'Outra agenda', 'start_at': at(1, 10, 30), 'end_at': at(1, 12)}, outro_vendedor)

    def test_all_day_rules(self, service, demo, vendedor):
        service.create({'title': 'Feira', 'is_all_day': True, 'start_at': at(1, 0), 'end_at': at(1, 23, 59)}, vendedor)

        with pytest.raises(Conflict):
            service.create({'title': 'Treinamento', 'is_all_day': True,
                            'start_at': at(1, 8), 'end_at': at(1, 18)}, vendedor)

    def test_recurrence_rule_validation(self, service, vendedor):
        with pytest.raises(BadRequest):
            service.create({'title': 'Semanal', 'is_recurring': True, 'start_at': at(2, 9), 'end_at': at(2, 10)}, vendedor)
        with pytest.raises(BadRequest):
            service.create({'title': 'Semanal', 'is_recurring': True, 'recurrence_rule': 'TODA SEGUNDA',
                            'start_at': at(2, 9), 'end_at': at(2, 10)}, vendedor)

        event = service.create({'title': 'Semanal', 'is_recurring': True, 'recurrence_rule': 'RRULE:FREQ=WEEKLY;BYDAY=MO',
                                'start_at': at(2, 9), 'end_at': at(2, 10)}, vendedor)
        assert event.is_recurring

    def test_gestor_schedules_for_team_only(self, service, gestor, vendedor, outro_vendedor):
        event = service.create({'title': 'Alinhamento', 'user_id': vendedor.id,
                                'start_at': at(3, 9), 'end_at': at(3, 10)}, gestor)
        assert event.user == vendedor

        with pytest.raises(Forbidden):
            service.create({'title': 'Fora da equipe', 'user_id': outro_vendedor.id,
                            'start_at': at(3, 9), 'end_at': at(3, 10)}, gestor)

    def test_linked_lead_must_be_accessible(self, service, vendedor, outro_vendedor):
        lead = Lead.objects.create(name='Lead de outro', vendedor=outro_vendedor)

        with pytest.raises(Forbidden):
            service.create({'title': 'Ligação', 'lead_id': lead.id,
                            'start_at': at(4, 9), 'end_at': at(4, 10)}, vendedor)

    def test_update_excludes_itself_from_conflicts(self, service, demo, vendedor):
        updated = service.update(demo.id, {'end_at': at(1, 11, 30)}, vendedor)

        assert updated.end_at == at(1, 11, 30)

    def test_find_all_range_and_scope(self, service, demo, vendedor, gestor, outro_vendedor):
        assert list(service.find_all(vendedor, start=at(1, 0), end=at(1, 23))) == [demo]
        assert service.find_all(vendedor, start=at(2, 0)).count() == 0
        assert service.find_all(gestor).count() == 1
        assert service.find_all(outro_vendedor).count() == 0

        with pytest.raises(Forbidden):
            service.find_all(outro_vendedor, user_id=vendedor.id)

    def test_remove_is_soft(self, service, demo, vendedor):
        service.remove(demo.id, vendedor)

        assert CalendarEvent.objects.filter(id=demo.id, deleted_at__isnull=False).exists()
        with pytest.raises(NotFound):
            service.find_one(demo.id, vendedor)


class TestHolidays:

    def test_national_holidays(self, service):
        result = service.holidays(2025)
        dates = {item['date']: item['type'] for item in result}

        assert dates['2025-01-01'] == 'nacional'
        assert dates['2025-12-25'] == 'nacional'
        assert '2025-07-09' not in dates

    def test_state_holidays(self, service):
        result = service.holidays(2025, 'sp')
        dates = {item['date']: item['type'] for item in result}

        assert dates['2025-07-09'] == 'estadual'
        assert dates['2025-04-21'] == 'nacional'

    def test_invalid_state(self, service):
        with pytest.raises(BadRequest):
            service.holidays(2025, 'XX')


def test_find_all_orders_by_start(service, vendedor):
    first = service.create({'title': 'B', 'start_at': at(5, 14), 'end_at': at(5, 15)}, vendedor)
    second = service.create({'title': 'A', 'start_at': at(5, 9), 'end_at': at(5, 9) + timedelta(minutes=30)}, vendedor)

    assert list(service.find_all(vendedor)) == [second, first]
