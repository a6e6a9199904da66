"""Integration tests for option group / option maintenance against the ORM."""

from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from modules.catalog.constants import PriceType
from modules.catalog.dtos import (
    CreateOptionDTO,
    CreateOptionGroupDTO,
    UpdateOptionDTO,
    UpdateOptionGroupDTO,
)
from modules.catalog.exceptions import (
    InvalidOptionPrice,
    InvalidParentGroup,
    OptionGroupNotFound,
    ReferencedInOrders,
)
from modules.catalog.models import Option, OptionGroup, Variant
from modules.orders.models import Order, OrderItem
from modules.products.exceptions import ProductNotFound

pytestmark = pytest.mark.integration


class TestCreateGroup:
    def test_first_group_flags_product(self, tshirt, catalog_service):
        assert tshirt.has_options is False

        group = catalog_service.create_group(str(tshirt.id), CreateOptionGroupDTO(name="Size"))

        tshirt.refresh_from_db()
        assert tshirt.has_options is True
        assert group.level == 1
        assert group.path == "Size"

    def test_child_level_and_path_derive_from_parent(self, size_color):
        color = size_color["color"]
        assert color.level == 2
        assert color.path == "Size/Color"
        assert color.parent_id == size_color["size"].id

    def test_requested_level_is_corrected(self, size_color, catalog_service):
        group = catalog_service.create_group(
            str(size_color["product"].id),
            CreateOptionGroupDTO(name="Fit", parent_id=size_color["size"].id, level=4),
        )
        assert group.level == 2

    def test_parent_must_be_marked_parent(self, size_color, catalog_service):
        with pytest.raises(InvalidParentGroup):
            catalog_service.create_group(
                str(size_color["product"].id),
                CreateOptionGroupDTO(name="Material", parent_id=size_color["color"].id),
            )

    def test_parent_from_other_product_rejected(self, size_color, flat_product, catalog_service):
        with pytest.raises(InvalidParentGroup):
            catalog_service.create_group(
                str(flat_product.id),
                CreateOptionGroupDTO(name="Size", parent_id=size_color["size"].id),
            )

    def test_depth_is_capped(self, tshirt, catalog_service):
        parent = None
        for depth in range(1, 6):
            parent = catalog_service.create_group(
                str(tshirt.id),
                CreateOptionGroupDTO(
                    name=f"L{depth}", is_parent=True, parent_id=parent.id if parent else None
                ),
            )
        assert parent.level == 5
        with pytest.raises(InvalidParentGroup):
            catalog_service.create_group(
                str(tshirt.id), CreateOptionGroupDTO(name="L6", parent_id=parent.id)
            )

    def test_unknown_product(self, catalog_service):
        with pytest.raises(ProductNotFound):
            catalog_service.create_group(
                "00000000-0000-0000-0000-000000000000", CreateOptionGroupDTO(name="Size")
            )


class TestUpdateGroup:
    def test_reparenting_recomputes_subtree_levels(self, size_color, catalog_service):
        product_id = str(size_color["product"].id)
        color = size_color["color"]
        catalog_service.update_group(str(color.id), UpdateOptionGroupDTO(is_parent=True))
        material = catalog_service.create_group(
            product_id, CreateOptionGroupDTO(name="Material", parent_id=color.id)
        )
        fit = catalog_service.create_group(product_id, CreateOptionGroupDTO(name="Fit", is_parent=True))

        catalog_service.update_group(str(size_color["size"].id), UpdateOptionGroupDTO(parent_id=fit.id))

        levels = dict(OptionGroup.objects.filter(product_id=product_id).values_list("name", "level"))
        assert levels == {"Fit": 1, "Size": 2, "Color": 3, "Material": 4}
        material.refresh_from_db()
        assert material.path == "Fit/Size/Color/Material"

    def test_cycle_rejected(self, size_color, catalog_service):
        color = size_color["color"]
        catalog_service.update_group(str(color.id), UpdateOptionGroupDTO(is_parent=True))

        with pytest.raises(InvalidParentGroup):
            catalog_service.update_group(
                str(size_color["size"].id), UpdateOptionGroupDTO(parent_id=color.id)
            )

    def test_moving_to_root(self, size_color, catalog_service):
        group = catalog_service.update_group(
            str(size_color["color"].id), UpdateOptionGroupDTO(parent_id=None)
        )
        assert group.parent_id is None
        assert group.level == 1

    def test_omitting_parent_keeps_it(self, size_color, catalog_service):
        group = catalog_service.update_group(
            str(size_color["color"].id), UpdateOptionGroupDTO(name="Colour")
        )
        assert group.parent_id == size_color["size"].id
        assert group.path == "Size/Colour"

    def test_unknown_group(self, catalog_service):
        with pytest.raises(OptionGroupNotFound):
            catalog_service.update_group(
                "00000000-0000-0000-0000-000000000000", UpdateOptionGroupDTO(name="x")
            )


class TestDeleteGroup:
    def test_cascade_removes_descendants_options_and_variants(self, tshirt_variants, catalog_service):
        product = tshirt_variants["product"]

        result = catalog_service.delete_group(str(tshirt_variants["size"].id))

        assert result == {"groups_deleted": 2, "options_deleted": 5, "variants_deleted": 6}
        assert not OptionGroup.objects.filter(product=product).exists()
        assert not Option.objects.filter(group__product=product).exists()
        assert not Variant.objects.filter(product=product).exists()
        product.refresh_from_db()
        assert product.has_options is False

    def test_referenced_variant_blocks_whole_delete(self, tshirt_variants, catalog_service):
        product = tshirt_variants["product"]
        order = Order.objects.create(id="SPTEST000001", customer_name="A", customer_phone="1")
        OrderItem.objects.create(
            order=order,
            product=product,
            variant=tshirt_variants["variants"]["M Blue"],
            quantity=1,
            price=Decimal("19.90"),
        )

        with pytest.raises(ReferencedInOrders):
            catalog_service.delete_group(str(tshirt_variants["color"].id))

        assert OptionGroup.objects.filter(product=product).count() == 2
        assert Option.objects.filter(group__product=product).count() == 5
        assert Variant.objects.filter(product=product).count() == 6


class TestOptions:
    def test_priced_option_requires_value(self):
        with pytest.raises(ValidationError):
            CreateOptionDTO(name="XL", price_type=PriceType.FIXED)

    def test_update_rechecks_price_pair(self, size_color, catalog_service):
        option = size_color["options"]["S"]
        with pytest.raises(InvalidOptionPrice):
            catalog_service.update_option(str(option.id), UpdateOptionDTO(price_type=PriceType.FIXED))

    def test_update_price(self, size_color, catalog_service):
        option = catalog_service.update_option(
            str(size_color["options"]["M"].id),
            UpdateOptionDTO(price_type=PriceType.FIXED, price_value=Decimal("1.50")),
        )
        assert option.price_value == Decimal("1.50")

    def test_delete_option_removes_its_variants(self, tshirt_variants, catalog_service):
        result = catalog_service.delete_option(str(tshirt_variants["options"]["Red"].id))

        assert result == {"variants_deleted": 3}
        names = set(Variant.objects.filter(product=tshirt_variants["product"]).values_list("name", flat=True))
        assert names == {"S Blue", "M Blue", "L Blue"}
