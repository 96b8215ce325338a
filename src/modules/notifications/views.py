"""Notification API views."""

from __future__ import annotations

from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.notifications.repositories.django_repository import (
    NotificationDjangoRepository,
)
from modules.notifications.serializers import NotificationSerializer
from modules.notifications.services import NotificationService


class NotificationViewSet(GenericViewSet):
    """GET /api/v1/notifications/: the caller's notifications, newest first."""

    serializer_class = NotificationSerializer
    pagination_class = StandardResultsSetPagination

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = NotificationService(repository=NotificationDjangoRepository())

    def list(self, request: Request) -> Response:
        notifications = self._service.list_for_user(request.user.pk)
        page = self.paginate_queryset(notifications)
        serializer = NotificationSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)
