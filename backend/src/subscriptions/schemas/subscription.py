"""Pydantic schemas for Subscription model."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from subscriptions.schemas.addon import SubscriptionAddon
from subscriptions.schemas.plan import Plan, PlanQuotaDefault, PlanRate
from subscriptions.schemas.usage import Quota, Usage


class SubscriptionOptions(BaseModel):
    """Options for a new subscription; unset fields fall back to the configured defaults."""

    paid: bool = Field(default=False, description="Whether the subscription was paid for")
    periods: int | None = Field(default=None, ge=1, description="Number of billing periods covered")
    end_date: datetime | None = Field(default=None, description="When the subscription ends")


class SubscriptionCreate(SubscriptionOptions):
    """Schema for creating a new subscription."""

    username: str = Field(..., min_length=1, description="User to subscribe")
    plan_id: UUID = Field(..., description="Plan to subscribe to")


class User(BaseModel):
    """Schema for returning user data."""

    id: UUID
    username: str

    model_config = ConfigDict(from_attributes=True)


class Subscription(BaseModel):
    """Schema for returning subscription data."""

    id: UUID
    user: User
    plan: Plan
    plan_rate: PlanRate
    effective_start_date: datetime
    effective_end_date: datetime | None
    paid: bool
    created_by: str
    created_at: datetime
    last_modified_by: str
    last_modified_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SubscriptionDetails(Subscription):
    """Subscription with the plan template and everything accounted against it."""

    plan_rates: list[PlanRate] = Field(default_factory=list)
    quota_defaults: list[PlanQuotaDefault] = Field(default_factory=list)
    quotas: list[Quota] = Field(default_factory=list)
    usages: list[Usage] = Field(default_factory=list)
    addons: list[SubscriptionAddon] = Field(default_factory=list)
