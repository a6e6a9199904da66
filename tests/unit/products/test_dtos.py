"""Unit tests for Product DTOs."""

from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from modules.products.dtos import CreateProductDTO, UpdateProductDTO

pytestmark = pytest.mark.unit


class TestCreateProductDTO:
    def test_defaults(self):
        dto = CreateProductDTO(name="Mug", price=Decimal("9.90"))
        assert dto.sku is None
        assert dto.quantity == 0
        assert dto.weight == Decimal("0")

    def test_sku_normalised_to_uppercase(self):
        assert CreateProductDTO(sku="  mug-001 ", name="Mug", price=Decimal("1")).sku == "MUG-001"

    def test_blank_sku_becomes_none(self):
        assert CreateProductDTO(sku="   ", name="Mug", price=Decimal("1")).sku is None

    @pytest.mark.parametrize(
        "field, value",
        [("price", Decimal("-0.01")), ("weight", Decimal("-1")), ("quantity", -1)],
    )
    def test_negative_values_rejected(self, field, value):
        data = {"name": "Mug", "price": Decimal("1"), field: value}
        with pytest.raises(ValidationError):
            CreateProductDTO(**data)

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            CreateProductDTO(name="  ", price=Decimal("1"))

    def test_frozen(self):
        dto = CreateProductDTO(name="Mug", price=Decimal("1"))
        with pytest.raises(ValidationError):
            dto.name = "Cup"


class TestUpdateProductDTO:
    def test_all_fields_optional(self):
        dto = UpdateProductDTO()
        assert dto.name is None
        assert dto.status is None

    def test_known_status(self):
        assert UpdateProductDTO(status="inactive").status == "inactive"

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            UpdateProductDTO(status="archived")
