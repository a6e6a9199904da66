"""Driver DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.drivers.models import Driver


class DriverInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=32)
    is_active = serializers.BooleanField(required=False, default=True)


class DriverSerializer(serializers.ModelSerializer):
    class Meta:
        model = Driver
        fields = ["id", "name", "phone", "is_active", "created_at", "updated_at"]
        read_only_fields = fields
