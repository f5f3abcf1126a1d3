from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from gestor.serializers.users import (
    PermissionInputSerializer, UserCreateSerializer, UserPermissionSerializer, UserSerializer,
    UserUpdateSerializer
)
from gestor.services.users import UserService
from gestor.utils.access import ensure_can_access
from gestor.views.params import query_bool, query_str


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def user_list(request) -> Response:
    service = UserService()

    if request.method == 'POST':
        serializer = UserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = service.create(serializer.validated_data, request.user)
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)

    users = service.find_all(
        request.user,
        role=query_str(request, 'role'),
        is_active=query_bool(request, 'is_active'),
    )
    return Response(UserSerializer(users, many=True).data)


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def user_detail(request, pk) -> Response:
    service = UserService()

    if request.method == 'GET':
        user = service.find_one(pk)
        ensure_can_access(request.user, user.id, 'Você não tem permissão para ver este usuário')
        return Response(UserSerializer(user).data)

    serializer = UserUpdateSerializer(data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    user = service.update(pk, serializer.validated_data, request.user)
    return Response(UserSerializer(user).data)


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def user_permissions(request, pk) -> Response:
    service = UserService()

    if request.method == 'PUT':
        serializer = PermissionInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        flags = dict(serializer.validated_data)
        module = flags.pop('module')
        permission = service.set_permission(pk, module, flags, request.user)
        return Response(UserPermissionSerializer(permission).data)

    ensure_can_access(request.user, pk, 'Você não tem permissão para ver este usuário')
    return Response(UserPermissionSerializer(service.permissions(pk), many=True).data)
