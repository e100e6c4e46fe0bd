"""SQLAlchemy ORM models for the accounting core."""
# Import all models here to ensure they are registered with Alembic

from subscriptions.models.base import Base
from subscriptions.models.user import User
from subscriptions.models.resource_type import ResourceType
from subscriptions.models.plan import Plan, PlanQuotaDefault, PlanRate
from subscriptions.models.subscription import Subscription
from subscriptions.models.quota import Quota
from subscriptions.models.usage import UpdateOperation, Usage, UsageUpdate
from subscriptions.models.addon import Addon, SubscriptionAddon

__all__ = [
    "Base",
    "User",
    "ResourceType",
    "Plan",
    "PlanRate",
    "PlanQuotaDefault",
    "Subscription",
    "Quota",
    "Usage",
    "UsageUpdate",
    "UpdateOperation",
    "Addon",
    "SubscriptionAddon",
]
