"""Overage calculation: usage measured against quota."""
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from subscriptions.models.quota import Quota
from subscriptions.models.subscription import Subscription
from subscriptions.models.usage import Usage
from subscriptions.schemas.resource_type import ResourceType as ResourceTypeView
from subscriptions.schemas.usage import Overage
from subscriptions.services.quota_service import QuotaService
from subscriptions.services.subscription_service import SubscriptionService
from subscriptions.services.usage_service import UsageService


def join_overages(subscription: Subscription, quotas: list[Quota], usages: list[Usage]) -> list[Overage]:
    """
    Pair every usage counter with the quota of the same resource type.

    Usage of a resource type the subscription has no quota for is measured
    against a quota of zero. Rows within budget are kept; filtering is up to
    the consumer.
    """
    quota_by_resource_type = {quota.resource_type_id: quota.quota_value for quota in quotas}

    overages = [
        Overage(
            subscription_id=subscription.id,
            user=subscription.user.username,
            plan=subscription.plan.name,
            resource_type=ResourceTypeView.model_validate(usage.resource_type),
            quota_value=quota_by_resource_type.get(usage.resource_type_id, 0.0),
            usage_value=usage.usage_value,
        )
        for usage in usages
    ]
    return sorted(overages, key=lambda o: (o.resource_type.name, o.resource_type.unit))


class OverageService:
    """Read-only service reporting usage against quota."""

    def __init__(self, db: AsyncSession):
        """Initialize overage service with database session."""
        self.db = db

    async def overages_for(self, subscription_id: UUID) -> list[Overage]:
        """
        Report usage against quota for every resource type used by a subscription.

        Args:
            subscription_id: Subscription UUID

        Returns:
            One entry per used resource type, including those within budget

        Raises:
            NotFound: If the subscription does not exist
        """
        subscription = await SubscriptionService(self.db).require_subscription(subscription_id)
        quotas = await QuotaService(self.db).list_quotas(subscription.id)
        usages = await UsageService(self.db).list_usages(subscription.id)
        return join_overages(subscription, quotas, usages)

    async def overages_for_user(self, user_id: UUID) -> list[Overage]:
        """Report usage against quota for the user's active subscription; empty when there is none."""
        subscription = await SubscriptionService(self.db).get_active_subscription(user_id)
        if subscription is None:
            return []
        return await self.overages_for(subscription.id)
