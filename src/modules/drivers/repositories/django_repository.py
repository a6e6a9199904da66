"""Django ORM implementation of the Driver repository."""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db.models import QuerySet

from modules.drivers.models import Driver
from modules.drivers.repositories.interfaces import IDriverRepository

logger = structlog.get_logger(__name__)


class DriverDjangoRepository(IDriverRepository):
    def get_by_id(self, id: str) -> Optional[Driver]:
        try:
            return Driver.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def save(self, entity: Driver) -> Driver:
        entity.save()
        logger.info("driver.saved", driver_id=str(entity.id))
        return entity

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet[Driver]:
        queryset = Driver.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def has_orders(self, id: str) -> bool:
        return Driver.objects.filter(id=id, orders__isnull=False).exists()

    def delete(self, id: str) -> bool:
        deleted, _ = Driver.objects.filter(id=id).delete()
        return deleted > 0
