"""Pydantic schemas for Usage, UsageUpdate and Quota models."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from subscriptions.models.usage import UpdateOperation
from subscriptions.schemas.resource_type import ResourceType


class UsageUpdateCreate(BaseModel):
    """Schema for applying an update to a usage counter.

    ``operation`` is validated by the usage ledger, not here, so that an
    unknown operation surfaces as ``invalid_update_operation``.
    """

    resource_name: str = Field(..., min_length=1, description="Resource type name")
    resource_unit: str = Field(..., min_length=1, description="Resource type unit")
    operation: str = Field(..., description="ADD or SET")
    amount: float = Field(..., allow_inf_nan=False, description="Value to add or set")


class Usage(BaseModel):
    """Schema for returning usage data."""

    id: UUID
    subscription_id: UUID
    usage_value: float
    resource_type: ResourceType
    created_by: str
    created_at: datetime
    last_modified_by: str
    last_modified_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UsageUpdate(BaseModel):
    """Schema for returning an applied update."""

    id: UUID
    subscription_id: UUID
    operation: UpdateOperation
    value: float
    effective_date: datetime
    resource_type: ResourceType
    created_by: str

    model_config = ConfigDict(from_attributes=True)


class Quota(BaseModel):
    """Schema for returning quota data."""

    id: UUID
    subscription_id: UUID
    quota_value: float
    resource_type: ResourceType
    created_by: str
    created_at: datetime
    last_modified_by: str
    last_modified_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EffectiveQuota(BaseModel):
    """Base quota plus every attached add-on for one resource type."""

    resource_type: ResourceType
    base_quota: float
    addon_amount: float
    effective_quota: float


class Overage(BaseModel):
    """Usage measured against quota for one resource type of a subscription."""

    subscription_id: UUID
    user: str = Field(..., description="Username of the subscription owner")
    plan: str = Field(..., description="Plan name")
    resource_type: ResourceType
    quota_value: float
    usage_value: float

    @property
    def overage(self) -> float:
        """How far usage exceeds quota; zero or negative when within budget."""
        return self.usage_value - self.quota_value

    @property
    def exceeded(self) -> bool:
        """Whether usage is over quota."""
        return self.overage > 0


class OverageView(Overage):
    """Overage as returned over the API, with the computed delta included."""

    overage_value: float

    @classmethod
    def from_overage(cls, overage: Overage) -> "OverageView":
        """Build the API view of an overage."""
        return cls(**overage.model_dump(), overage_value=overage.overage)
