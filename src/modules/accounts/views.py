"""Account API views: designer directory and the caller's identity."""

from __future__ import annotations

from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.accounts.constants import Role
from modules.accounts.permissions import IsManager
from modules.accounts.repositories.django_repository import ProfileDjangoRepository
from modules.accounts.serializers import DesignerSerializer, MeSerializer
from modules.accounts.services import DesignerDirectory, resolve_actor
from modules.orders.repositories.django_repository import OrderDjangoRepository


class DesignerListView(APIView):
    """GET /api/v1/designers/: designers available for assignment."""

    permission_classes = [IsManager]

    def get(self, request: Request) -> Response:
        directory = DesignerDirectory(
            profile_repository=ProfileDjangoRepository(),
            order_repository=OrderDjangoRepository(),
        )
        designers = directory.list_by_role(Role.DESIGNER)
        return Response(DesignerSerializer(designers, many=True).data)


class MeView(APIView):
    """GET /api/v1/me: the authenticated caller and its workflow role."""

    permission_classes = [IsAuthenticated]

    def get(self, request: Request) -> Response:
        actor = resolve_actor(request.user)
        data = {
            "user_id": actor.user_id,
            "username": request.user.get_username(),
            "role": actor.role,
        }
        return Response(MeSerializer(data).data)
