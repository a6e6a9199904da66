"""Driver service layer."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

import structlog
from django.db import transaction

from modules.drivers.exceptions import DriverHasOrders, DriverNotFound, InactiveDriver
from modules.drivers.models import Driver

if TYPE_CHECKING:
    from modules.drivers.dtos import CreateDriverDTO, UpdateDriverDTO
    from modules.drivers.repositories.interfaces import IDriverRepository

logger = structlog.get_logger(__name__)


class DriverService:
    def __init__(self, repository: IDriverRepository) -> None:
        self._repo = repository

    def list_drivers(self, filters: Optional[Dict[str, Any]] = None) -> Iterable[Driver]:
        return self._repo.list(filters)

    def get_driver(self, id: str) -> Driver:
        driver = self._repo.get_by_id(str(id))
        if not driver:
            raise DriverNotFound(f"Driver {id} not found.")
        return driver

    def get_assignable_driver(self, id: str) -> Driver:
        """Raises ``DriverNotFound`` or ``InactiveDriver``."""
        driver = self.get_driver(id)
        if not driver.is_active:
            raise InactiveDriver(f"Driver {driver.name} is inactive.")
        return driver

    @transaction.atomic
    def create_driver(self, dto: CreateDriverDTO) -> Driver:
        driver = self._repo.save(Driver(name=dto.name, phone=dto.phone, is_active=dto.is_active))
        logger.info("driver.created", driver_id=str(driver.id))
        return driver

    @transaction.atomic
    def update_driver(self, id: str, dto: UpdateDriverDTO) -> Driver:
        driver = self.get_driver(id)
        for field in ("name", "phone", "is_active"):
            value = getattr(dto, field)
            if value is not None:
                setattr(driver, field, value)
        return self._repo.save(driver)

    @transaction.atomic
    def delete_driver(self, id: str) -> None:
        """Raises ``DriverHasOrders`` while orders still reference the driver."""
        driver = self.get_driver(id)
        if self._repo.has_orders(str(driver.id)):
            raise DriverHasOrders(
                "Cannot delete a driver with assigned orders. Reassign the orders first."
            )
        self._repo.delete(str(driver.id))
        logger.info("driver.deleted", driver_id=str(driver.id))
