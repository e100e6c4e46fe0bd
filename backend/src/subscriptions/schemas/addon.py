"""Pydantic schemas for Addon and SubscriptionAddon models."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from subscriptions.schemas.resource_type import ResourceType, ResourceTypeRef


class AddonCreate(BaseModel):
    """Schema for adding an add-on to the catalogue."""

    name: str = Field(..., description="Add-on name")
    description: str = Field(..., description="Add-on description")
    default_amount: float = Field(..., gt=0, allow_inf_nan=False, description="Amount added when no explicit amount is given")
    paid: bool = Field(default=True, description="Whether the add-on is purchased")
    resource_type: ResourceTypeRef = Field(..., description="Resource type by id or name")

    @field_validator("name", "description")
    @classmethod
    def must_be_set(cls, v: str, info) -> str:
        """Reject blank names and descriptions."""
        if not v.strip():
            raise ValueError(f"{info.field_name} must be set")
        return v

    @field_validator("resource_type")
    @classmethod
    def resource_type_must_be_referenced(cls, v: ResourceTypeRef) -> ResourceTypeRef:
        """Require a resource type id or name."""
        if v.id is None and not v.name:
            raise ValueError("resource_type.name or resource_type.id must be set")
        return v


class AddonUpdate(BaseModel):
    """Schema for updating an add-on (all fields optional)."""

    name: str | None = Field(default=None, min_length=1)
    description: str | None = Field(default=None, min_length=1)
    default_amount: float | None = Field(default=None, gt=0, allow_inf_nan=False)
    paid: bool | None = None
    resource_type_id: UUID | None = None

    @field_validator("name", "description", "default_amount", "paid", "resource_type_id")
    @classmethod
    def not_null(cls, v, info):
        """Reject explicit nulls; leave a field out to keep its value."""
        if v is None:
            raise ValueError(f"{info.field_name} may not be null")
        return v


class Addon(BaseModel):
    """Schema for returning add-on data."""

    id: UUID
    name: str
    description: str
    default_amount: float
    paid: bool
    resource_type: ResourceType
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SubscriptionAddonCreate(BaseModel):
    """Schema for attaching an add-on to a subscription."""

    addon_id: UUID = Field(..., description="Add-on to attach")
    amount: float | None = Field(default=None, gt=0, allow_inf_nan=False, description="Override for the add-on's default amount")


class SubscriptionAddon(BaseModel):
    """Schema for returning an attached add-on."""

    id: UUID
    subscription_id: UUID
    amount: float | None
    effective_amount: float
    addon: Addon
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
