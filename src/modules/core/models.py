"""Abstract models every back-office table inherits from.

``BaseModel`` gives a time-ordered UUIDv7 key plus created/updated
stamps.  ``SoftDeleteModel`` adds a ``deleted_at`` tombstone: products
referenced by historical order lines cannot be removed physically, so
deleting one only hides it from the catalog.
"""

from __future__ import annotations

import uuid6
from django.db import models
from django.utils import timezone


class BaseModel(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid6.uuid7, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs) -> None:
        # auto_now is skipped for partial saves unless named explicitly.
        fields = kwargs.get("update_fields")
        if fields is not None and "updated_at" not in fields:
            kwargs["update_fields"] = [*fields, "updated_at"]
        super().save(*args, **kwargs)


class SoftDeleteQuerySet(models.QuerySet):
    def alive(self) -> SoftDeleteQuerySet:
        """Rows without a ``deleted_at`` tombstone."""
        return self.filter(deleted_at__isnull=True)


class SoftDeleteModel(BaseModel):
    """Model whose ``delete()`` stamps ``deleted_at`` instead of removing the row.

    ``objects`` stays unfiltered so order lines can still reach deleted
    products; catalog listings go through ``objects.alive()``.
    """

    deleted_at = models.DateTimeField(null=True, blank=True, default=None, db_index=True)

    objects = SoftDeleteQuerySet.as_manager()

    class Meta:
        abstract = True

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def delete(self, using=None, keep_parents=False) -> tuple[int, dict[str, int]]:
        if self.is_deleted:
            return 0, {}
        self.deleted_at = timezone.now()
        self.save(update_fields=["deleted_at"])
        return 1, {self._meta.label: 1}
