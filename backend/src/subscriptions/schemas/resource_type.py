"""Pydantic schemas for ResourceType model."""
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ResourceTypeBase(BaseModel):
    """Base resource type schema with common fields."""

    name: str = Field(..., min_length=1, description="Resource type name (cpu.hours, data.size, etc.)")
    unit: str = Field(..., min_length=1, description="Unit the resource is measured in")
    consumable: bool = Field(default=False, description="Whether the resource accrues per period")


class ResourceTypeCreate(ResourceTypeBase):
    """Schema for creating a resource type."""


class ResourceType(ResourceTypeBase):
    """Schema for returning resource type data."""

    id: UUID

    model_config = ConfigDict(from_attributes=True)


class ResourceTypeRef(BaseModel):
    """Reference to a resource type by id or by name."""

    id: UUID | None = Field(default=None, description="Resource type ID")
    name: str | None = Field(default=None, description="Resource type name")
