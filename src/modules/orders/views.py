"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into appropriate
HTTP status codes; the view never swallows generic exceptions.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.catalog.repositories.django_repository import VariantDjangoRepository
from modules.core.exceptions import InsufficientStock
from modules.core.pagination import StandardResultsSetPagination
from modules.drivers.exceptions import DriverNotFound, InactiveDriver
from modules.drivers.repositories.django_repository import DriverDjangoRepository
from modules.drivers.services import DriverService
from modules.orders.constants import OrderSource
from modules.orders.dtos import AssignDriverDTO, CreateOrderDTO
from modules.orders.exceptions import InvalidOrderState, OrderIdExhausted, OrderNotFound
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    AssignDriverSerializer,
    CreateOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
    UpdateOrderStateSerializer,
)
from modules.orders.services import OrderService
from modules.products.exceptions import InactiveProduct, ProductNotFound
from modules.products.repositories.django_repository import ProductDjangoRepository


def _order_service() -> OrderService:
    return OrderService(
        order_repository=OrderDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        variant_repository=VariantDjangoRepository(),
        driver_service=DriverService(repository=DriverDjangoRepository()),
    )


def _not_found() -> Response:
    return Response({"detail": "Order not found."}, status=status.HTTP_404_NOT_FOUND)


def _insufficient_stock(exc: InsufficientStock) -> Response:
    return Response(
        {"detail": str(exc), "results": exc.results},
        status=status.HTTP_409_CONFLICT,
    )


def _create_order(request: Request, service: OrderService, source: str) -> Response:
    """Shared body of the admin and public order creation endpoints."""
    create_serializer = CreateOrderSerializer(data=request.data)
    create_serializer.is_valid(raise_exception=True)

    try:
        dto = CreateOrderDTO(**create_serializer.validated_data)
        order = service.create_order(
            dto,
            source=source,
            created_by=request.user if source == OrderSource.ADMIN else None,
        )
    except PydanticValidationError as exc:
        return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    except ProductNotFound as exc:
        return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
    except InactiveProduct as exc:
        return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    except OrderIdExhausted as exc:
        return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)

    return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


class OrderViewSet(GenericViewSet):
    """ViewSet for back-office Order operations.

    Uses ``OrderService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    queryset = Order.objects.all()
    filterset_class = OrderFilter
    search_fields = ["id", "customer_name", "customer_phone"]
    ordering_fields = ["created_at", "total_price", "state"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = _order_service()

    def get_throttles(self) -> list[BaseThrottle]:
        """Per-action throttling scopes."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        return _create_order(request, self._service, OrderSource.ADMIN)

    # ------------------------------------------------------------------
    # List / Retrieve / Delete
    # ------------------------------------------------------------------

    def get_queryset(self):
        return self._service.list_orders()

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering (state, source, driver, date range, total range) is
        handled by ``OrderFilter``.  Results are paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._service.get_order(pk)
        except OrderNotFound:
            return _not_found()
        return Response(OrderSerializer(order).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/orders/{pk}/

        A DELIVERING order has its stock restored before removal.
        """
        try:
            self._service.delete_order(pk)
        except OrderNotFound:
            return _not_found()
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ------------------------------------------------------------------
    # State / driver
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def state(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/state/"""
        serializer = UpdateOrderStateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = self._service.update_state(
                order_id=pk,
                new_state=serializer.validated_data["state"],
                notes=serializer.validated_data["notes"],
                user=request.user,
            )
        except OrderNotFound:
            return _not_found()
        except InvalidOrderState as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except InsufficientStock as exc:
            return _insufficient_stock(exc)

        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def driver(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/driver/

        Assigning a driver moves the order to DELIVERING (deducting
        stock); ``driver_id: null`` moves it back to PLACED.
        """
        serializer = AssignDriverSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = self._service.assign_driver(
                pk, AssignDriverDTO(**serializer.validated_data), user=request.user
            )
        except OrderNotFound:
            return _not_found()
        except DriverNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except InactiveDriver as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except InsufficientStock as exc:
            return _insufficient_stock(exc)

        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["get"], url_path="stock-validation")
    def stock_validation(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/stock-validation/"""
        try:
            report = self._service.validate_stock(pk)
        except OrderNotFound:
            return _not_found()
        return Response(report)


class PublicOrderViewSet(GenericViewSet):
    """Customer storefront checkout: anonymous order submission only."""

    queryset = Order.objects.none()
    authentication_classes: list = []
    permission_classes = [AllowAny]
    throttle_scope = "order_creation"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = _order_service()

    def create(self, request: Request) -> Response:
        """POST /api/v1/public/orders/"""
        return _create_order(request, self._service, OrderSource.CUSTOMER)
