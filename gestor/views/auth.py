"""
Autenticação JWT (simplejwt) e dados do usuário logado.

Endpoints:
- POST /api/v1/auth/login/ - email + senha -> access, refresh e user
- POST /api/v1/auth/refresh/ - renova o access token
- GET  /api/v1/auth/me/ - usuário autenticado
- POST /api/v1/auth/change-password/ - troca de senha
"""

import logging

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from gestor.serializers.users import ChangePasswordSerializer, UserPermissionSerializer, UserSerializer
from gestor.services.users import UserService

logger = logging.getLogger(__name__)


class LoginSerializer(TokenObtainPairSerializer):
    """Inclui o usuário e a role na resposta do login."""

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['role'] = user.role
        token['email'] = user.email
        return token

    def validate(self, attrs):
        data = super().validate(attrs)
        data['user'] = UserSerializer(self.user).data
        logger.info(f'[AUTH] Login: {self.user.email}')
        return data


class LoginView(TokenObtainPairView):
    serializer_class = LoginSerializer


login_view = LoginView.as_view()
refresh_view = TokenRefreshView.as_view()


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me(request) -> Response:
    data = UserSerializer(request.user).data
    data['permissions'] = UserPermissionSerializer(request.user.module_permissions.all(), many=True).data
    return Response(data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def change_password(request) -> Response:
    serializer = ChangePasswordSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    UserService().change_password(
        request.user,
        serializer.validated_data['current_password'],
        serializer.validated_data['new_password'],
    )
    return Response({'success': True, 'message': 'Senha alterada com sucesso'})
