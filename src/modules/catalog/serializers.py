"""Option catalog DRF serializers.

Input serializers validate the HTTP payload shape; the views then build
Pydantic DTOs from ``validated_data`` for the service layer.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.catalog.constants import MAX_GROUP_LEVEL, MIN_GROUP_LEVEL, PriceType, SelectionType
from modules.catalog.models import Option, OptionGroup, Variant

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateOptionGroupSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, default="", allow_blank=True)
    selection_type = serializers.ChoiceField(choices=SelectionType.choices, default=SelectionType.SINGLE)
    is_required = serializers.BooleanField(required=False, default=False)
    sort_order = serializers.IntegerField(required=False, default=0)
    parent_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    is_parent = serializers.BooleanField(required=False, default=False)
    level = serializers.IntegerField(
        required=False,
        allow_null=True,
        default=None,
        min_value=MIN_GROUP_LEVEL,
        max_value=MAX_GROUP_LEVEL,
    )
    is_active = serializers.BooleanField(required=False, default=True)


class UpdateOptionGroupSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    selection_type = serializers.ChoiceField(choices=SelectionType.choices, required=False)
    is_required = serializers.BooleanField(required=False)
    sort_order = serializers.IntegerField(required=False)
    parent_id = serializers.UUIDField(required=False, allow_null=True)
    is_parent = serializers.BooleanField(required=False)
    is_active = serializers.BooleanField(required=False)


class CreateOptionSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, default="", allow_blank=True)
    price_type = serializers.ChoiceField(choices=PriceType.choices, default=PriceType.FREE)
    price_value = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, allow_null=True, default=None
    )
    is_default = serializers.BooleanField(required=False, default=False)
    is_available = serializers.BooleanField(required=False, default=True)
    stock = serializers.IntegerField(required=False, default=0, min_value=0)
    sort_order = serializers.IntegerField(required=False, default=0)


class UpdateOptionSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    price_type = serializers.ChoiceField(choices=PriceType.choices, required=False)
    price_value = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)
    is_default = serializers.BooleanField(required=False)
    is_available = serializers.BooleanField(required=False)
    stock = serializers.IntegerField(required=False, min_value=0)
    sort_order = serializers.IntegerField(required=False)


class CreateVariantSerializer(serializers.Serializer):
    option_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)
    name = serializers.CharField(max_length=512, required=False, allow_blank=True)
    sku = serializers.CharField(max_length=64, required=False, allow_blank=True, allow_null=True)
    stock = serializers.IntegerField(required=False, default=0, min_value=0)
    price_adjustment = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, allow_null=True
    )
    is_active = serializers.BooleanField(required=False, default=True)


class UpdateVariantSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=512, required=False)
    sku = serializers.CharField(max_length=64, required=False, allow_blank=True)
    stock = serializers.IntegerField(required=False, min_value=0)
    price_adjustment = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)
    is_active = serializers.BooleanField(required=False)


class VariantStockSerializer(serializers.Serializer):
    stock = serializers.IntegerField(min_value=0)


class ResolveVariantSerializer(serializers.Serializer):
    option_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=True)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OptionSerializer(serializers.ModelSerializer):
    group_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Option
        fields = [
            "id",
            "group_id",
            "name",
            "description",
            "price_type",
            "price_value",
            "is_default",
            "is_available",
            "stock",
            "sort_order",
        ]
        read_only_fields = fields


class OptionGroupSerializer(serializers.ModelSerializer):
    """Read serializer for option groups with nested options."""

    product_id = serializers.UUIDField(read_only=True)
    parent_id = serializers.UUIDField(read_only=True, allow_null=True)
    options = OptionSerializer(many=True, read_only=True)

    class Meta:
        model = OptionGroup
        fields = [
            "id",
            "product_id",
            "name",
            "description",
            "selection_type",
            "is_required",
            "sort_order",
            "parent_id",
            "is_parent",
            "level",
            "path",
            "is_active",
            "options",
        ]
        read_only_fields = fields


class VariantSerializer(serializers.ModelSerializer):
    """Read serializer for variants with their option ids."""

    product_id = serializers.UUIDField(read_only=True)
    option_ids = serializers.SerializerMethodField()

    class Meta:
        model = Variant
        fields = [
            "id",
            "product_id",
            "name",
            "sku",
            "stock",
            "price_adjustment",
            "option_hash",
            "option_path",
            "sort_order",
            "is_active",
            "option_ids",
        ]
        read_only_fields = fields

    def get_option_ids(self, obj: Variant) -> list[str]:
        return sorted(str(option.id) for option in obj.options.all())
