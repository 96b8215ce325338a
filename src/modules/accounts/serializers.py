"""Profile DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.accounts.models import Profile


class DesignerSerializer(serializers.ModelSerializer):
    """Read serializer for the designer directory (assignment UI)."""

    user_id = serializers.IntegerField(read_only=True)
    username = serializers.CharField(source="user.username", read_only=True)
    email = serializers.EmailField(source="user.email", read_only=True)
    name = serializers.CharField(read_only=True)

    class Meta:
        model = Profile
        fields = ["user_id", "username", "email", "name", "role"]
        read_only_fields = fields


class MeSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()
    username = serializers.CharField()
    role = serializers.CharField()
