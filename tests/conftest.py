from __future__ import annotations

from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from modules.catalog.constants import PriceType
from modules.catalog.dtos import CreateOptionDTO, CreateOptionGroupDTO
from modules.catalog.repositories.django_repository import (
    OptionGroupDjangoRepository,
    VariantDjangoRepository,
)
from modules.catalog.services import (
    HierarchicalStockService,
    OptionCatalogService,
    VariantService,
)
from modules.drivers.models import Driver
from modules.drivers.repositories.django_repository import DriverDjangoRepository
from modules.drivers.services import DriverService
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def user():
    return User.objects.create_user(username="operator", password="testpass123")


@pytest.fixture()
def auth_client(user):
    """APIClient with a force-authenticated Django user."""
    client = APIClient()
    client.force_authenticate(user=user)
    return client


# ---------------------------------------------------------------------------
# Services wired to the Django repositories
# ---------------------------------------------------------------------------


@pytest.fixture()
def catalog_service():
    return OptionCatalogService(
        group_repository=OptionGroupDjangoRepository(),
        variant_repository=VariantDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )


@pytest.fixture()
def variant_service():
    return VariantService(
        variant_repository=VariantDjangoRepository(),
        group_repository=OptionGroupDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )


@pytest.fixture()
def stock_service():
    return HierarchicalStockService(
        group_repository=OptionGroupDjangoRepository(),
        variant_repository=VariantDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        low_stock_threshold=5,
    )


@pytest.fixture()
def order_service():
    return OrderService(
        order_repository=OrderDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        variant_repository=VariantDjangoRepository(),
        driver_service=DriverService(repository=DriverDjangoRepository()),
    )


# ---------------------------------------------------------------------------
# Catalog data
# ---------------------------------------------------------------------------


@pytest.fixture()
def flat_product():
    """A product without options: stock lives in ``quantity``."""
    return Product.objects.create(
        sku="MUG-001",
        name="Ceramic Mug",
        price=Decimal("9.90"),
        quantity=20,
    )


@pytest.fixture()
def tshirt():
    return Product.objects.create(
        sku="TSHIRT-001",
        name="T-Shirt",
        price=Decimal("19.90"),
        quantity=50,
    )


@pytest.fixture()
def size_color(tshirt, catalog_service):
    """Size (S/M/L, parent) with a Color (Red/Blue) child group.

    Returns a dict with the groups and an ``options`` map keyed by name.
    """
    size = catalog_service.create_group(
        str(tshirt.id), CreateOptionGroupDTO(name="Size", is_parent=True, is_required=True)
    )
    color = catalog_service.create_group(
        str(tshirt.id), CreateOptionGroupDTO(name="Color", parent_id=size.id)
    )
    options = {}
    for order, name in enumerate(["S", "M", "L"]):
        options[name] = catalog_service.create_option(
            str(size.id),
            CreateOptionDTO(
                name=name,
                sort_order=order,
                price_type=PriceType.FIXED if name == "L" else PriceType.FREE,
                price_value=Decimal("2.00") if name == "L" else None,
            ),
        )
    for order, name in enumerate(["Red", "Blue"]):
        options[name] = catalog_service.create_option(
            str(color.id), CreateOptionDTO(name=name, sort_order=order)
        )
    tshirt.refresh_from_db()
    return {"product": tshirt, "size": size, "color": color, "options": options}


@pytest.fixture()
def tshirt_variants(size_color, variant_service):
    """All six Size/Color variants, each stocked with 10 units."""
    result = variant_service.generate_variants(str(size_color["product"].id))
    for brief in result["created"]:
        variant_service.update_stock(brief["id"], 10)
    variants = {v.name: v for v in variant_service.list_variants(str(size_color["product"].id))}
    return {**size_color, "variants": variants}


@pytest.fixture()
def driver():
    return Driver.objects.create(name="Sam Carter", phone="0711000001")


@pytest.fixture()
def make_selection():
    """Build an order line ``option_details`` payload from Option rows."""

    def build(*options):
        groups = {}
        for option in options:
            entry = groups.setdefault(
                str(option.group_id),
                {
                    "group_id": str(option.group_id),
                    "group_name": option.group.name,
                    "selected_options": [],
                },
            )
            entry["selected_options"].append({"id": str(option.id), "name": option.name})
        return list(groups.values())

    return build
