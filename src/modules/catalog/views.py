"""Option catalog API views.

Thin adapters over ``OptionCatalogService``, ``VariantService`` and
``HierarchicalStockService``.  Domain exceptions are translated into
HTTP status codes (400 / 404 / 409); nothing else is caught.
"""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.catalog.dtos import (
    CreateOptionDTO,
    CreateOptionGroupDTO,
    CreateVariantDTO,
    UpdateOptionDTO,
    UpdateOptionGroupDTO,
    UpdateVariantDTO,
)
from modules.catalog.models import Option, OptionGroup, Variant
from modules.catalog.repositories.django_repository import (
    OptionGroupDjangoRepository,
    VariantDjangoRepository,
)
from modules.catalog.serializers import (
    CreateOptionGroupSerializer,
    CreateOptionSerializer,
    CreateVariantSerializer,
    OptionGroupSerializer,
    OptionSerializer,
    ResolveVariantSerializer,
    UpdateOptionGroupSerializer,
    UpdateOptionSerializer,
    UpdateVariantSerializer,
    VariantSerializer,
    VariantStockSerializer,
)
from modules.catalog.services import (
    HierarchicalStockService,
    OptionCatalogService,
    VariantService,
)
from modules.core.exceptions import Conflict, NotFound, ValidationFailed
from modules.products.repositories.django_repository import ProductDjangoRepository


def _detail(exc: Exception, code: int) -> Response:
    return Response({"detail": str(exc)}, status=code)


def _catalog_service() -> OptionCatalogService:
    return OptionCatalogService(
        group_repository=OptionGroupDjangoRepository(),
        variant_repository=VariantDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )


def _variant_service() -> VariantService:
    return VariantService(
        variant_repository=VariantDjangoRepository(),
        group_repository=OptionGroupDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )


# ---------------------------------------------------------------------------
# /products/{product_id}/option-groups/
# ---------------------------------------------------------------------------


class ProductOptionGroupViewSet(GenericViewSet):
    """List and create the option groups of one product."""

    queryset = OptionGroup.objects.all()
    serializer_class = OptionGroupSerializer
    pagination_class = None

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = _catalog_service()

    def list(self, request: Request, product_id: str | None = None) -> Response:
        """GET /api/v1/products/{product_id}/option-groups/"""
        try:
            groups = self._service.list_groups(product_id)
        except NotFound as exc:
            return _detail(exc, status.HTTP_404_NOT_FOUND)
        return Response(OptionGroupSerializer(groups, many=True).data)

    def create(self, request: Request, product_id: str | None = None) -> Response:
        """POST /api/v1/products/{product_id}/option-groups/"""
        serializer = CreateOptionGroupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = CreateOptionGroupDTO(**serializer.validated_data)
            group = self._service.create_group(product_id, dto)
        except (PydanticValidationError, ValidationFailed) as exc:
            return _detail(exc, status.HTTP_400_BAD_REQUEST)
        except NotFound as exc:
            return _detail(exc, status.HTTP_404_NOT_FOUND)

        group = self._service.get_group(str(group.id))
        return Response(OptionGroupSerializer(group).data, status=status.HTTP_201_CREATED)


# ---------------------------------------------------------------------------
# /option-groups/{pk}/
# ---------------------------------------------------------------------------


class OptionGroupViewSet(GenericViewSet):
    """Retrieve, update and delete option groups; manage their options."""

    queryset = OptionGroup.objects.all()
    serializer_class = OptionGroupSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = _catalog_service()

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/option-groups/{pk}/"""
        try:
            group = self._service.get_group(pk)
        except NotFound as exc:
            return _detail(exc, status.HTTP_404_NOT_FOUND)
        return Response(OptionGroupSerializer(group).data)

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT/PATCH /api/v1/option-groups/{pk}/"""
        serializer = UpdateOptionGroupSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        try:
            dto = UpdateOptionGroupDTO(**serializer.validated_data)
            group = self._service.update_group(pk, dto)
        except (PydanticValidationError, ValidationFailed) as exc:
            return _detail(exc, status.HTTP_400_BAD_REQUEST)
        except NotFound as exc:
            return _detail(exc, status.HTTP_404_NOT_FOUND)
        return Response(OptionGroupSerializer(group).data)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        return self.update(request, pk)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/option-groups/{pk}/

        Returns the deletion counts instead of an empty 204.
        """
        try:
            result = self._service.delete_group(pk)
        except NotFound as exc:
            return _detail(exc, status.HTTP_404_NOT_FOUND)
        except Conflict as exc:
            return _detail(exc, status.HTTP_409_CONFLICT)
        return Response(result)

    @action(detail=True, methods=["get", "post"], url_path="options")
    def options(self, request: Request, pk: str | None = None) -> Response:
        """GET/POST /api/v1/option-groups/{pk}/options/"""
        if request.method == "GET":
            try:
                group = self._service.get_group(pk)
            except NotFound as exc:
                return _detail(exc, status.HTTP_404_NOT_FOUND)
            return Response(OptionSerializer(group.options.all(), many=True).data)

        serializer = CreateOptionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            dto = CreateOptionDTO(**serializer.validated_data)
            option = self._service.create_option(pk, dto)
        except (PydanticValidationError, ValidationFailed) as exc:
            return _detail(exc, status.HTTP_400_BAD_REQUEST)
        except NotFound as exc:
            return _detail(exc, status.HTTP_404_NOT_FOUND)
        return Response(OptionSerializer(option).data, status=status.HTTP_201_CREATED)


# ---------------------------------------------------------------------------
# /options/{pk}/
# ---------------------------------------------------------------------------


class OptionViewSet(GenericViewSet):
    queryset = Option.objects.all()
    serializer_class = OptionSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = _catalog_service()

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/options/{pk}/"""
        try:
            option = self._service.get_option(pk)
        except NotFound as exc:
            return _detail(exc, status.HTTP_404_NOT_FOUND)
        return Response(OptionSerializer(option).data)

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT/PATCH /api/v1/options/{pk}/"""
        serializer = UpdateOptionSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        try:
            dto = UpdateOptionDTO(**serializer.validated_data)
            option = self._service.update_option(pk, dto)
        except (PydanticValidationError, ValidationFailed) as exc:
            return _detail(exc, status.HTTP_400_BAD_REQUEST)
        except NotFound as exc:
            return _detail(exc, status.HTTP_404_NOT_FOUND)
        return Response(OptionSerializer(option).data)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        return self.update(request, pk)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/options/{pk}/"""
        try:
            result = self._service.delete_option(pk)
        except NotFound as exc:
            return _detail(exc, status.HTTP_404_NOT_FOUND)
        except Conflict as exc:
            return _detail(exc, status.HTTP_409_CONFLICT)
        return Response(result)


# ---------------------------------------------------------------------------
# /products/{product_id}/variants/
# ---------------------------------------------------------------------------


class ProductVariantViewSet(GenericViewSet):
    """Variant listing, creation, generation and stock views of one product."""

    queryset = Variant.objects.all()
    serializer_class = VariantSerializer
    pagination_class = None

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = _variant_service()
        self._stock_service = HierarchicalStockService(
            group_repository=OptionGroupDjangoRepository(),
            variant_repository=VariantDjangoRepository(),
            product_repository=ProductDjangoRepository(),
        )

    def list(self, request: Request, product_id: str | None = None) -> Response:
        """GET /api/v1/products/{product_id}/variants/"""
        try:
            variants = self._service.list_variants(product_id)
        except NotFound as exc:
            return _detail(exc, status.HTTP_404_NOT_FOUND)
        return Response(VariantSerializer(variants, many=True).data)

    def create(self, request: Request, product_id: str | None = None) -> Response:
        """POST /api/v1/products/{product_id}/variants/"""
        serializer = CreateVariantSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            dto = CreateVariantDTO(**serializer.validated_data)
            variant = self._service.create_variant(product_id, dto)
        except (PydanticValidationError, ValidationFailed) as exc:
            return _detail(exc, status.HTTP_400_BAD_REQUEST)
        except NotFound as exc:
            return _detail(exc, status.HTTP_404_NOT_FOUND)
        except Conflict as exc:
            return _detail(exc, status.HTTP_409_CONFLICT)

        variant = self._service.get_variant(str(variant.id))
        return Response(VariantSerializer(variant).data, status=status.HTTP_201_CREATED)

    def generate(self, request: Request, product_id: str | None = None) -> Response:
        """POST /api/v1/products/{product_id}/variants/generate/"""
        try:
            result = self._service.generate_variants(product_id)
        except NotFound as exc:
            return _detail(exc, status.HTTP_404_NOT_FOUND)
        return Response(result)

    def hierarchical_stock(self, request: Request, product_id: str | None = None) -> Response:
        """GET /api/v1/products/{product_id}/variants/hierarchical-stock/"""
        try:
            result = self._stock_service.get_hierarchical_stock(product_id)
        except NotFound as exc:
            return _detail(exc, status.HTTP_404_NOT_FOUND)
        return Response(result)

    def stock_summary(self, request: Request, product_id: str | None = None) -> Response:
        """GET /api/v1/products/{product_id}/variants/stock-summary/"""
        try:
            result = self._stock_service.get_stock_summary(product_id)
        except NotFound as exc:
            return _detail(exc, status.HTTP_404_NOT_FOUND)
        return Response(result)

    def resolve_variant(self, request: Request, product_id: str | None = None) -> Response:
        """POST /api/v1/products/{product_id}/variants/resolve-variant/

        ``variant_id`` is ``null`` when the selection falls back to the
        product's flat quantity.
        """
        serializer = ResolveVariantSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            variant_id = self._service.resolve(product_id, serializer.validated_data["option_ids"])
        except NotFound as exc:
            return _detail(exc, status.HTTP_404_NOT_FOUND)
        return Response({"variant_id": variant_id})


# ---------------------------------------------------------------------------
# /variants/{pk}/
# ---------------------------------------------------------------------------


class VariantViewSet(GenericViewSet):
    queryset = Variant.objects.all()
    serializer_class = VariantSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = _variant_service()

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/variants/{pk}/"""
        try:
            variant = self._service.get_variant(pk)
        except NotFound as exc:
            return _detail(exc, status.HTTP_404_NOT_FOUND)
        return Response(VariantSerializer(variant).data)

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT/PATCH /api/v1/variants/{pk}/"""
        serializer = UpdateVariantSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        try:
            dto = UpdateVariantDTO(**serializer.validated_data)
            variant = self._service.update_variant(pk, dto)
        except (PydanticValidationError, ValidationFailed) as exc:
            return _detail(exc, status.HTTP_400_BAD_REQUEST)
        except NotFound as exc:
            return _detail(exc, status.HTTP_404_NOT_FOUND)
        return Response(VariantSerializer(variant).data)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        return self.update(request, pk)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/variants/{pk}/"""
        try:
            self._service.delete_variant(pk)
        except NotFound as exc:
            return _detail(exc, status.HTTP_404_NOT_FOUND)
        except Conflict as exc:
            return _detail(exc, status.HTTP_409_CONFLICT)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["put", "patch"], url_path="stock")
    def stock(self, request: Request, pk: str | None = None) -> Response:
        """PUT/PATCH /api/v1/variants/{pk}/stock/  body: ``{"stock": N}``"""
        serializer = VariantStockSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            variant = self._service.update_stock(pk, serializer.validated_data["stock"])
        except ValidationFailed as exc:
            return _detail(exc, status.HTTP_400_BAD_REQUEST)
        except NotFound as exc:
            return _detail(exc, status.HTTP_404_NOT_FOUND)
        return Response(VariantSerializer(variant).data)
