from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.catalog.constants import PriceType, SelectionType
from modules.catalog.dtos import CreateOptionDTO, CreateOptionGroupDTO
from modules.catalog.repositories.django_repository import (
    OptionGroupDjangoRepository,
    VariantDjangoRepository,
)
from modules.catalog.services import OptionCatalogService, VariantService
from modules.drivers.dtos import CreateDriverDTO
from modules.drivers.models import Driver
from modules.drivers.repositories.django_repository import DriverDjangoRepository
from modules.drivers.services import DriverService
from modules.orders.constants import OrderSource
from modules.orders.dtos import CreateOrderDTO
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.dtos import CreateProductDTO
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import ProductService


class Command(BaseCommand):
    help = "Seed database with a small demo catalog, drivers and orders."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        product_repo = ProductDjangoRepository()
        group_repo = OptionGroupDjangoRepository()
        variant_repo = VariantDjangoRepository()

        users_created = self._seed_users()
        products = self._seed_products(ProductService(product_repo))
        variants = self._seed_catalog(
            products[0],
            OptionCatalogService(group_repo, variant_repo, product_repo),
            VariantService(variant_repo, group_repo, product_repo),
        )
        drivers = self._seed_drivers(DriverService(DriverDjangoRepository()))
        orders_created = self._seed_orders(
            OrderService(
                order_repository=OrderDjangoRepository(),
                product_repository=product_repo,
                variant_repository=variant_repo,
                driver_service=DriverService(DriverDjangoRepository()),
            ),
            products,
        )

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"products={len(products)}, "
                f"variants={variants}, "
                f"drivers={len(drivers)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
            created += 1
        if not User.objects.filter(username="operator").exists():
            User.objects.create_user("operator", password="operator123", is_staff=True)
            created += 1
        return created

    def _seed_products(self, service: ProductService) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        catalog = [
            ("TSHIRT-001", "Basic T-Shirt", Decimal("19.90"), 0),
            ("MUG-001", "Ceramic Mug", Decimal("9.90"), 120),
            ("CAP-001", "Baseball Cap", Decimal("14.50"), 60),
            ("TOTE-001", "Canvas Tote Bag", Decimal("12.00"), 45),
        ]
        for sku, name, price, quantity in catalog:
            product = Product.objects.filter(sku=sku).first()
            if product is None:
                product = service.create_product(
                    CreateProductDTO(sku=sku, name=name, price=price, quantity=quantity)
                )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_catalog(
        self,
        product: Product,
        catalog: OptionCatalogService,
        variants: VariantService,
    ) -> int:
        """Size (parent) > Color option tree with one variant per leaf pair."""
        self.stdout.write("Creating option catalog...")
        if not catalog.list_groups(str(product.id)):
            size = catalog.create_group(
                str(product.id),
                CreateOptionGroupDTO(
                    name="Size",
                    selection_type=SelectionType.SINGLE,
                    is_required=True,
                    is_parent=True,
                ),
            )
            color = catalog.create_group(
                str(product.id),
                CreateOptionGroupDTO(
                    name="Color",
                    selection_type=SelectionType.SINGLE,
                    is_required=True,
                    parent_id=size.id,
                ),
            )
            for order, name in enumerate(["S", "M", "L"]):
                price_type = PriceType.FIXED if name == "L" else PriceType.FREE
                catalog.create_option(
                    str(size.id),
                    CreateOptionDTO(
                        name=name,
                        price_type=price_type,
                        price_value=Decimal("2.00") if name == "L" else None,
                        sort_order=order,
                    ),
                )
            for order, name in enumerate(["Red", "Blue"]):
                catalog.create_option(str(color.id), CreateOptionDTO(name=name, sort_order=order))

        result = variants.generate_variants(str(product.id))
        for brief in result["created"]:
            variants.update_stock(brief["id"], random.randint(5, 30))
        self.stdout.write(self.style.SUCCESS("Creating option catalog... Done!"))
        return len(result["created"]) + len(result["skipped"]) + len(result["updated"])

    def _seed_drivers(self, service: DriverService) -> list[Driver]:
        self.stdout.write("Creating drivers...")
        drivers: list[Driver] = []
        for name, phone in [("Sam Carter", "0711000001"), ("Lee Morgan", "0711000002")]:
            driver = Driver.objects.filter(phone=phone).first()
            if driver is None:
                driver = service.create_driver(CreateDriverDTO(name=name, phone=phone))
            drivers.append(driver)
        self.stdout.write(self.style.SUCCESS("Creating drivers... Done!"))
        return drivers

    def _seed_orders(self, service: OrderService, products: list[Product]) -> int:
        self.stdout.write("Creating orders...")
        if Order.objects.exists():
            self.stdout.write(self.style.WARNING("Skipping orders (already seeded)."))
            return 0

        flat_products = list(
            Product.objects.filter(id__in=[p.id for p in products], has_options=False)
        )
        created = 0
        for i in range(10):
            product = random.choice(flat_products)
            service.create_order(
                CreateOrderDTO(
                    customer_name=f"Customer {i + 1}",
                    customer_phone=f"07220000{i:02d}",
                    items=[{"product_id": product.id, "quantity": random.randint(1, 3)}],
                ),
                source=random.choice([OrderSource.ADMIN, OrderSource.CUSTOMER]),
            )
            created += 1
        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return created
