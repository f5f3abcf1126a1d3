from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from gestor.serializers.agenda import CalendarEventInputSerializer, CalendarEventSerializer, CalendarFilterSerializer
from gestor.services.agenda import CalendarService
from gestor.utils.dates import today
from gestor.views.params import query_int, query_str


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def event_list(request) -> Response:
    service = CalendarService()

    if request.method == 'POST':
        serializer = CalendarEventInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        event = service.create(serializer.validated_data, request.user)
        return Response(CalendarEventSerializer(event).data, status=status.HTTP_201_CREATED)

    filters = CalendarFilterSerializer(data=request.query_params)
    filters.is_valid(raise_exception=True)
    events = service.find_all(request.user, **filters.validated_data)
    return Response(CalendarEventSerializer(events, many=True).data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def event_detail(request, pk) -> Response:
    service = CalendarService()

    if request.method == 'GET':
        return Response(CalendarEventSerializer(service.find_one(pk, request.user)).data)

    if request.method == 'DELETE':
        service.remove(pk, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = CalendarEventInputSerializer(data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    event = service.update(pk, serializer.validated_data, request.user)
    return Response(CalendarEventSerializer(event).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def holidays(request) -> Response:
    year = query_int(request, 'year', today().year, minimum=1900, maximum=2100)
    return Response(CalendarService().holidays(year, state=query_str(request, 'state')))
