"""Driver model: the courier an order is assigned to."""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel


class Driver(BaseModel):
    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=32)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "drivers"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["is_active"], name="drivers_active_idx"),
        ]

    def __str__(self) -> str:
        return self.name
