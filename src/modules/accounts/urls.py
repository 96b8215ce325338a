"""Account URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.accounts.views import DesignerListView, MeView

urlpatterns = [
    path("designers/", DesignerListView.as_view(), name="designer-list"),
    path("me", MeView.as_view(), name="me"),
]
