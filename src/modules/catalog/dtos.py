"""Option catalog DTOs for the Service Layer.

Framework-agnostic input contracts (Pydantic v2, ``frozen=True``).
Cross-row rules (parent existence, cycles, product ownership) are checked
by the services; these DTOs only validate the shape of a single payload.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from modules.catalog.constants import (
    MAX_GROUP_LEVEL,
    MIN_GROUP_LEVEL,
    PRICED_TYPES,
    PriceType,
    SelectionType,
)

# ---------------------------------------------------------------------------
# Option groups
# ---------------------------------------------------------------------------


class CreateOptionGroupDTO(BaseModel):
    """Immutable DTO for option group creation.

    ``level`` is advisory: the service derives it from the parent.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    selection_type: SelectionType = SelectionType.SINGLE
    is_required: bool = False
    sort_order: int = 0
    parent_id: Optional[UUID] = None
    is_parent: bool = False
    level: Optional[int] = None
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Group name must not be empty.")
        return v.strip()

    @field_validator("level")
    @classmethod
    def level_in_range(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and not MIN_GROUP_LEVEL <= v <= MAX_GROUP_LEVEL:
            raise ValueError(f"Level must be between {MIN_GROUP_LEVEL} and {MAX_GROUP_LEVEL}.")
        return v


class UpdateOptionGroupDTO(BaseModel):
    """Immutable DTO for option group updates.

    Only supplied fields change.  ``parent_id`` is applied when
    ``parent_id`` appears in ``model_fields_set``, so an explicit ``None``
    turns the group into a root.
    """

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    description: Optional[str] = None
    selection_type: Optional[SelectionType] = None
    is_required: Optional[bool] = None
    sort_order: Optional[int] = None
    parent_id: Optional[UUID] = None
    is_parent: Optional[bool] = None
    is_active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def name_must_not_be_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Group name must not be empty.")
        return v.strip() if v else v

    @property
    def changes_parent(self) -> bool:
        return "parent_id" in self.model_fields_set


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------


def _check_price(price_type: Optional[str], price_value: Optional[Decimal]) -> None:
    if price_type in PRICED_TYPES:
        if price_value is None:
            raise ValueError(f"price_value is required for price type {price_type}.")
        if price_value < 0:
            raise ValueError("price_value cannot be negative.")


class CreateOptionDTO(BaseModel):
    """Immutable DTO for option creation."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    price_type: PriceType = PriceType.FREE
    price_value: Optional[Decimal] = None
    is_default: bool = False
    is_available: bool = True
    stock: int = 0
    sort_order: int = 0

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Option name must not be empty.")
        return v.strip()

    @field_validator("stock")
    @classmethod
    def stock_must_be_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Stock cannot be negative.")
        return v

    @model_validator(mode="after")
    def price_value_matches_type(self):
        _check_price(self.price_type, self.price_value)
        return self


class UpdateOptionDTO(BaseModel):
    """Immutable DTO for option updates; only supplied fields change."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    description: Optional[str] = None
    price_type: Optional[PriceType] = None
    price_value: Optional[Decimal] = None
    is_default: Optional[bool] = None
    is_available: Optional[bool] = None
    stock: Optional[int] = None
    sort_order: Optional[int] = None

    @field_validator("stock")
    @classmethod
    def stock_must_be_non_negative(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("Stock cannot be negative.")
        return v

    @field_validator("price_value")
    @classmethod
    def price_must_be_non_negative(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v < 0:
            raise ValueError("price_value cannot be negative.")
        return v


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------


class CreateVariantDTO(BaseModel):
    """Immutable DTO for a hand-made variant."""

    model_config = ConfigDict(frozen=True)

    option_ids: List[UUID]
    name: Optional[str] = None
    sku: Optional[str] = None
    stock: int = 0
    price_adjustment: Optional[Decimal] = None
    is_active: bool = True

    @field_validator("option_ids")
    @classmethod
    def options_must_not_be_empty(cls, v: List[UUID]) -> List[UUID]:
        if not v:
            raise ValueError("A variant needs at least one option.")
        if len(set(v)) != len(v):
            raise ValueError("Duplicate option IDs are not allowed.")
        return v

    @field_validator("stock")
    @classmethod
    def stock_must_be_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Stock cannot be negative.")
        return v


class UpdateVariantDTO(BaseModel):
    """Immutable DTO for variant updates."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    sku: Optional[str] = None
    stock: Optional[int] = None
    price_adjustment: Optional[Decimal] = None
    is_active: Optional[bool] = None

    @field_validator("stock")
    @classmethod
    def stock_must_be_non_negative(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("Stock cannot be negative.")
        return v


class ResolveVariantDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    option_ids: List[UUID] = []
