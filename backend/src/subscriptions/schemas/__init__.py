"""Pydantic schemas for API request/response validation."""

from subscriptions.schemas.addon import (
    Addon,
    AddonCreate,
    AddonUpdate,
    SubscriptionAddon,
    SubscriptionAddonCreate,
)
from subscriptions.schemas.plan import (
    Plan,
    PlanCreate,
    PlanDetails,
    PlanQuotaDefault,
    PlanQuotaDefaultCreate,
    PlanRate,
    PlanRateCreate,
)
from subscriptions.schemas.resource_type import (
    ResourceType,
    ResourceTypeCreate,
    ResourceTypeRef,
)
from subscriptions.schemas.subscription import (
    Subscription,
    SubscriptionCreate,
    SubscriptionDetails,
    SubscriptionOptions,
    User,
)
from subscriptions.schemas.usage import (
    EffectiveQuota,
    Overage,
    OverageView,
    Quota,
    Usage,
    UsageUpdate,
    UsageUpdateCreate,
)

__all__ = [
    # Resource type schemas
    "ResourceType",
    "ResourceTypeCreate",
    "ResourceTypeRef",
    # Plan schemas
    "Plan",
    "PlanCreate",
    "PlanDetails",
    "PlanRate",
    "PlanRateCreate",
    "PlanQuotaDefault",
    "PlanQuotaDefaultCreate",
    # Subscription schemas
    "User",
    "Subscription",
    "SubscriptionCreate",
    "SubscriptionDetails",
    "SubscriptionOptions",
    # Usage and quota schemas
    "Usage",
    "UsageUpdate",
    "UsageUpdateCreate",
    "Quota",
    "EffectiveQuota",
    "Overage",
    "OverageView",
    # Add-on schemas
    "Addon",
    "AddonCreate",
    "AddonUpdate",
    "SubscriptionAddon",
    "SubscriptionAddonCreate",
]
