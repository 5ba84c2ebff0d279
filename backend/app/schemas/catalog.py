"""Pydantic schemas for price catalog lookups."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from app.services.catalog_service import ResolutionStatus


class CatalogOptionsRead(BaseModel):
    """Distinct values available for the next slot of a selection."""

    catalog: str
    attribute: str
    options: list[str | int] = Field(default_factory=list)


class ResolutionRead(BaseModel):
    """Outcome of resolving a fully pinned selection."""

    catalog: str
    status: ResolutionStatus
    code: str | None = None
    price: int | None = None
    candidates: list[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
