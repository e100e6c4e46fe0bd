"""Pydantic schemas for Plan, PlanRate and PlanQuotaDefault models."""
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from subscriptions.schemas.resource_type import ResourceType


class PlanRateCreate(BaseModel):
    """Schema for adding a rate to a plan."""

    rate: Decimal = Field(..., ge=0, description="Price of the plan per period")
    effective_date: datetime | None = Field(default=None, description="When the rate takes effect (default: now)")


class PlanRate(BaseModel):
    """Schema for returning plan rate data."""

    id: UUID
    plan_id: UUID
    rate: Decimal
    effective_date: datetime

    model_config = ConfigDict(from_attributes=True)


class PlanQuotaDefaultCreate(BaseModel):
    """Schema for adding a quota default to a plan."""

    resource_type_id: UUID = Field(..., description="Resource type the default applies to")
    quota_value: float = Field(..., ge=0, allow_inf_nan=False, description="Quota per period")
    effective_date: datetime | None = Field(default=None, description="When the default takes effect (default: now)")


class PlanQuotaDefault(BaseModel):
    """Schema for returning plan quota default data."""

    id: UUID
    plan_id: UUID
    quota_value: float
    effective_date: datetime
    resource_type: ResourceType

    model_config = ConfigDict(from_attributes=True)


class PlanCreate(BaseModel):
    """Schema for creating a new plan.

    Examples:
        Plan with one rate and two quota defaults:
            ```json
            {
                "name": "Basic",
                "description": "Entry level plan",
                "rates": [{"rate": "0.00"}],
                "quota_defaults": [
                    {"resource_type_id": "7b0c...", "quota_value": 20},
                    {"resource_type_id": "9f2e...", "quota_value": 5368709120}
                ]
            }
            ```
    """

    name: str = Field(..., min_length=1, max_length=255, description="Plan name")
    description: str = Field(default="", description="Plan description")
    rates: list[PlanRateCreate] = Field(default_factory=list, description="Initial rate history")
    quota_defaults: list[PlanQuotaDefaultCreate] = Field(default_factory=list, description="Initial quota defaults")


class Plan(BaseModel):
    """Schema for returning plan data."""

    id: UUID
    name: str
    description: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PlanDetails(Plan):
    """Plan with its rate history and quota defaults."""

    rates: list[PlanRate] = Field(default_factory=list)
    quota_defaults: list[PlanQuotaDefault] = Field(default_factory=list)
    active_rate: PlanRate | None = Field(default=None, description="Rate currently in effect")
