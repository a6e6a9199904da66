"""Driver API views."""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.drivers.dtos import CreateDriverDTO, UpdateDriverDTO
from modules.drivers.exceptions import DriverHasOrders, DriverNotFound
from modules.drivers.filters import DriverFilter
from modules.drivers.models import Driver
from modules.drivers.repositories.django_repository import DriverDjangoRepository
from modules.drivers.serializers import DriverInputSerializer, DriverSerializer
from modules.drivers.services import DriverService


def _not_found() -> Response:
    return Response({"detail": "Driver not found."}, status=status.HTTP_404_NOT_FOUND)


class DriverViewSet(ListModelMixin, GenericViewSet):
    filterset_class = DriverFilter
    search_fields = ["name", "phone"]
    ordering_fields = ["name", "created_at"]
    ordering = ["name"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    queryset = Driver.objects.all()
    serializer_class = DriverSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = DriverService(repository=DriverDjangoRepository())

    def get_queryset(self):
        return self._service.list_drivers()

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/drivers/{pk}/"""
        try:
            driver = self._service.get_driver(pk)
        except DriverNotFound:
            return _not_found()
        return Response(DriverSerializer(driver).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/drivers/"""
        serializer = DriverInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            dto = CreateDriverDTO(**serializer.validated_data)
        except PydanticValidationError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        driver = self._service.create_driver(dto)
        return Response(DriverSerializer(driver).data, status=status.HTTP_201_CREATED)

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT/PATCH /api/v1/drivers/{pk}/"""
        serializer = DriverInputSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        try:
            driver = self._service.update_driver(pk, UpdateDriverDTO(**serializer.validated_data))
        except DriverNotFound:
            return _not_found()
        return Response(DriverSerializer(driver).data)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        return self.update(request, pk)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/drivers/{pk}/"""
        try:
            self._service.delete_driver(pk)
        except DriverNotFound:
            return _not_found()
        except DriverHasOrders as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        return Response(status=status.HTTP_204_NO_CONTENT)
