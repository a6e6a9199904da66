"""Driver DTOs for the Service Layer (Pydantic v2, immutable)."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class CreateDriverDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    phone: str
    is_active: bool = True

    @field_validator("name", "phone")
    @classmethod
    def must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Field must not be empty.")
        return v.strip()


class UpdateDriverDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    phone: Optional[str] = None
    is_active: Optional[bool] = None
