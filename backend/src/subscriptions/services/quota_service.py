"""Quota materialization for new subscriptions."""
from typing import Iterable
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from subscriptions.models.plan import PlanQuotaDefault
from subscriptions.models.quota import Quota

logger = structlog.get_logger(__name__)


def compute_quota_value(quota_value: float, consumable: bool, periods: int) -> float:
    """
    Quota granted for a plan default over ``periods`` billing periods.

    Every default is multiplied by the period count. Consumable resources are
    multiplied by it a second time.

    Example:
        quota_value=20, periods=3: 60 for a capacity resource, 180 for a
        consumable one
    """
    value = quota_value * periods
    if consumable:
        value *= periods
    return value


def build_quotas(
    quota_defaults: Iterable[PlanQuotaDefault],
    subscription_id: UUID,
    periods: int,
    actor: str,
) -> list[Quota]:
    """
    Build one Quota row per quota default.

    Args:
        quota_defaults: Defaults in effect, at most one per resource type
        subscription_id: Subscription the quotas belong to
        periods: Number of billing periods the subscription covers
        actor: Username recorded as creator

    Returns:
        Unsaved quota rows
    """
    if periods < 1:
        raise ValueError("periods must be at least 1")

    return [
        Quota(
            subscription_id=subscription_id,
            resource_type_id=default.resource_type.id,
            resource_type=default.resource_type,
            quota_value=compute_quota_value(default.quota_value, default.resource_type.consumable, periods),
            created_by=actor,
            last_modified_by=actor,
        )
        for default in quota_defaults
    ]


class QuotaService:
    """Service layer for quota operations."""

    def __init__(self, db: AsyncSession):
        """Initialize quota service with database session."""
        self.db = db

    async def materialize(
        self,
        subscription_id: UUID,
        quota_defaults: list[PlanQuotaDefault],
        periods: int,
        actor: str,
    ) -> list[Quota]:
        """
        Insert the initial quotas of a subscription.

        Must run exactly once per subscription, when it is created. Later
        changes to the plan's defaults never reach these rows.

        Args:
            subscription_id: Newly created subscription
            quota_defaults: Plan defaults in effect at creation time
            periods: Number of billing periods the subscription covers
            actor: Username recorded as creator

        Returns:
            Inserted quota rows
        """
        quotas = build_quotas(quota_defaults, subscription_id, periods, actor)
        self.db.add_all(quotas)
        await self.db.flush()

        logger.info(
            "quotas_materialized",
            subscription_id=str(subscription_id),
            periods=periods,
            quota_count=len(quotas),
        )
        return quotas

    async def list_quotas(self, subscription_id: UUID) -> list[Quota]:
        """List the quotas of a subscription."""
        result = await self.db.execute(
            select(Quota).where(Quota.subscription_id == subscription_id).order_by(Quota.created_at)
        )
        return list(result.scalars().all())
