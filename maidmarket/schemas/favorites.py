"""Pydantic schemas describing the favorites API payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    """Base model accepting the backend's camelCase keys or snake_case names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Nationality(_CamelModel):
    """Lookup row embedded in maid summaries."""

    id: str
    name_en: str
    name_ar: str | None = None


class FavoriteMaid(_CamelModel):
    """Subset of the maid profile returned alongside a favorite."""

    id: str = Field(..., description="Opaque maid identifier")
    name: str
    name_ar: str | None = None
    photo_url: str | None = None
    status: str | None = None
    salary: str | None = Field(
        None,
        description="Monthly salary as the decimal string stored by the backend.",
    )
    experience_years: int = Field(0, ge=0)
    nationality: Nationality | None = None


class FavoriteItem(_CamelModel):
    """Single favorite relation for the current session user."""

    id: str = Field(..., description="Identifier of the favorite relation row")
    maid_id: str = Field(..., description="Maid the user marked as favorite")
    created_at: datetime | None = None
    maid: FavoriteMaid | None = None


class FavoriteCreate(_CamelModel):
    """Body sent to ``POST /favorites``."""

    maid_id: str = Field(..., min_length=1)


class FavoriteCheck(_CamelModel):
    """Result of ``GET /favorites/check/{maidId}``."""

    is_favorite: bool = False


class ApiEnvelope(BaseModel):
    """Response wrapper shared by every marketplace endpoint."""

    model_config = ConfigDict(extra="ignore")

    success: bool = False
    data: Any = None
    error: str | None = None
    message: str | None = None


__all__ = [
    "ApiEnvelope",
    "FavoriteCheck",
    "FavoriteCreate",
    "FavoriteItem",
    "FavoriteMaid",
    "Nationality",
]
