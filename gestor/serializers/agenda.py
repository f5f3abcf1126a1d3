from rest_framework import serializers

from gestor.models import CalendarEvent, EventType


class CalendarEventSerializer(serializers.ModelSerializer):
    user = serializers.SerializerMethodField()
    lead_id = serializers.UUIDField(read_only=True)
    client_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = CalendarEvent
        fields = [
            'id', 'title', 'description', 'type', 'start_at', 'end_at', 'is_all_day',
            'attendees_count', 'location', 'meeting_url', 'reminder_minutes', 'user',
            'lead_id', 'client_id', 'is_recurring', 'recurrence_rule', 'recurrence_end',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_user(self, obj):
        return {'id': str(obj.user.id), 'name': obj.user.display_name}


class CalendarEventInputSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True)
    type = serializers.ChoiceField(choices=EventType.choices, required=False)
    start_at = serializers.DateTimeField()
    end_at = serializers.DateTimeField()
    is_all_day = serializers.BooleanField(required=False)
    attendees_count = serializers.IntegerField(min_value=1, required=False)
    location = serializers.CharField(max_length=255, required=False, allow_blank=True)
    meeting_url = serializers.URLField(required=False, allow_blank=True)
    reminder_minutes = serializers.ListField(child=serializers.IntegerField(min_value=0), required=False)
    user_id = serializers.UUIDField(required=False, allow_null=True)
    lead_id = serializers.UUIDField(required=False, allow_null=True)
    client_id = serializers.UUIDField(required=False, allow_null=True)
    is_recurring = serializers.BooleanField(required=False)
    recurrence_rule = serializers.CharField(max_length=500, required=False, allow_blank=True)
    recurrence_end = serializers.DateTimeField(required=False, allow_null=True)


class CalendarFilterSerializer(serializers.Serializer):
    start = serializers.DateTimeField(required=False)
    end = serializers.DateTimeField(required=False)
    type = serializers.ChoiceField(choices=EventType.choices, required=False)
    user_id = serializers.UUIDField(required=False)
    lead_id = serializers.UUIDField(required=False)
    client_id = serializers.UUIDField(required=False)
