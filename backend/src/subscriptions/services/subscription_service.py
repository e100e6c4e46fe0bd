"""Subscription service: creation, active-subscription selection and details."""
from datetime import datetime, timedelta
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from subscriptions import metrics
from subscriptions.config import settings
from subscriptions.errors import InvalidSubscriptionPeriod, NoEffectiveRate, NotFound
from subscriptions.models.addon import SubscriptionAddon
from subscriptions.models.plan import Plan, PlanQuotaDefault, PlanRate
from subscriptions.models.quota import Quota
from subscriptions.models.subscription import Subscription
from subscriptions.models.usage import Usage
from subscriptions.schemas.addon import SubscriptionAddon as SubscriptionAddonView
from subscriptions.schemas.plan import PlanQuotaDefault as PlanQuotaDefaultView, PlanRate as PlanRateView
from subscriptions.schemas.subscription import Subscription as SubscriptionView
from subscriptions.schemas.subscription import SubscriptionDetails, SubscriptionOptions
from subscriptions.schemas.usage import Quota as QuotaView, Usage as UsageView
from subscriptions.services.plan_service import PlanService
from subscriptions.services.quota_service import QuotaService
from subscriptions.services.user_service import UserService
from subscriptions.utils.temporal import active_among, as_naive_utc, utcnow

logger = structlog.get_logger(__name__)


def default_subscription_options() -> SubscriptionOptions:
    """Unpaid, one period, ending after the configured term."""
    return SubscriptionOptions(
        paid=False,
        periods=settings.default_subscription_periods,
        end_date=utcnow() + timedelta(days=settings.default_subscription_term_days),
    )


def assemble_subscription_details(
    subscription: Subscription,
    plan_rates: list[PlanRate],
    quota_defaults: list[PlanQuotaDefault],
    quotas: list[Quota],
    usages: list[Usage],
    addons: list[SubscriptionAddon],
) -> SubscriptionDetails:
    """Fold already-fetched child rows into a subscription view."""
    base = SubscriptionView.model_validate(subscription)
    return SubscriptionDetails(
        **base.model_dump(),
        plan_rates=[PlanRateView.model_validate(rate) for rate in plan_rates],
        quota_defaults=[PlanQuotaDefaultView.model_validate(default) for default in quota_defaults],
        quotas=[QuotaView.model_validate(quota) for quota in quotas],
        usages=[UsageView.model_validate(usage) for usage in usages],
        addons=[SubscriptionAddonView.model_validate(addon) for addon in addons],
    )


class SubscriptionService:
    """Service layer for subscription operations."""

    def __init__(self, db: AsyncSession):
        """Initialize subscription service with database session."""
        self.db = db

    async def create_subscription(
        self,
        user_id: UUID,
        plan_id: UUID,
        options: SubscriptionOptions | None = None,
        actor: str | None = None,
    ) -> Subscription:
        """
        Subscribe a user to a plan and materialize the subscription's quotas.

        The subscription starts now at the plan's rate in effect. Nothing is
        written when the plan has no rate in effect. If a quota insert fails
        the subscription row stays in the session; the caller's transaction
        must be rolled back.

        Args:
            user_id: Subscribing user
            plan_id: Plan to subscribe to
            options: Paid flag, period count and end date; unset fields use defaults
            actor: Username recorded as creator (default: configured actor)

        Returns:
            Created subscription

        Raises:
            NotFound: If the user or plan does not exist
            NoEffectiveRate: If the plan has no rate in effect
            InvalidSubscriptionPeriod: If the end date is before the start
        """
        actor = actor or settings.default_actor
        defaults = default_subscription_options()
        options = options or defaults
        periods = options.periods or defaults.periods
        end_date = as_naive_utc(options.end_date) or defaults.end_date

        user = await UserService(self.db).get_user(user_id)
        plan_service = PlanService(self.db)
        plan = await plan_service.require_plan(plan_id)

        now = utcnow()
        rate = await plan_service.get_active_rate(plan.id, now)
        if rate is None:
            raise NoEffectiveRate(plan.name)

        if end_date < now:
            raise InvalidSubscriptionPeriod(
                f"subscription would end at {end_date.isoformat()}, before it starts at {now.isoformat()}",
                effective_start_date=now.isoformat(),
                effective_end_date=end_date.isoformat(),
            )

        subscription = Subscription(
            user_id=user.id,
            user=user,
            plan_id=plan.id,
            plan=plan,
            plan_rate_id=rate.id,
            plan_rate=rate,
            effective_start_date=now,
            effective_end_date=end_date,
            paid=options.paid,
            created_by=actor,
            last_modified_by=actor,
        )
        self.db.add(subscription)
        await self.db.flush()

        quota_defaults = await plan_service.get_active_quota_defaults(plan.id, now)
        await QuotaService(self.db).materialize(subscription.id, quota_defaults, periods, actor)

        metrics.subscriptions_created_total.labels(plan=plan.name, paid=str(options.paid).lower()).inc()
        logger.info(
            "subscription_created",
            subscription_id=str(subscription.id),
            user_id=str(user.id),
            plan=plan.name,
            plan_rate_id=str(rate.id),
            periods=periods,
            paid=options.paid,
        )

        return subscription

    async def get_subscription(self, subscription_id: UUID) -> Subscription | None:
        """
        Get subscription by ID.

        Args:
            subscription_id: Subscription UUID

        Returns:
            Subscription or None if not found
        """
        return await self.db.get(Subscription, subscription_id)

    async def require_subscription(self, subscription_id: UUID) -> Subscription:
        """
        Get subscription by ID.

        Raises:
            NotFound: If the subscription does not exist
        """
        subscription = await self.get_subscription(subscription_id)
        if not subscription:
            raise NotFound("subscription", subscription_id)
        return subscription

    async def list_user_subscriptions(self, user_id: UUID) -> list[Subscription]:
        """List every subscription a user ever had, most recently started first."""
        result = await self.db.execute(
            select(Subscription)
            .where(Subscription.user_id == user_id)
            .order_by(Subscription.effective_start_date.desc())
        )
        return list(result.scalars().all())

    async def get_active_subscription(self, user_id: UUID, now: datetime | None = None) -> Subscription | None:
        """
        Get the subscription in effect for a user.

        When several subscriptions overlap ``now`` the one that started last
        is returned.

        Args:
            user_id: User UUID
            now: Instant to evaluate (default: current time)

        Returns:
            Active subscription, or None when the user has none
        """
        now = now or utcnow()
        result = await self.db.execute(
            select(Subscription).where(
                Subscription.user_id == user_id,
                Subscription.effective_start_date <= now,
            )
        )
        return active_among(now, result.scalars().all())

    async def user_has_active_plan(self, user_id: UUID) -> bool:
        """Whether the user has any subscription in effect."""
        return await self.get_active_subscription(user_id) is not None

    async def user_on_plan(self, user_id: UUID, plan_name: str) -> bool:
        """Whether the user's active subscription is to the named plan."""
        subscription = await self.get_active_subscription(user_id)
        return subscription is not None and subscription.plan.name == plan_name

    async def load_subscription_details(self, subscription: Subscription) -> SubscriptionDetails:
        """
        Gather plan rates, quota defaults, quotas, usages and add-ons of a subscription.

        Args:
            subscription: Subscription to describe

        Returns:
            Assembled subscription details
        """
        from subscriptions.services.addon_service import AddonService
        from subscriptions.services.usage_service import UsageService

        plan_service = PlanService(self.db)
        plan_rates = await plan_service.list_rates(subscription.plan_id)
        quota_defaults = await plan_service.list_quota_defaults(subscription.plan_id)
        quotas = await QuotaService(self.db).list_quotas(subscription.id)
        usages = await UsageService(self.db).list_usages(subscription.id)
        addons = await AddonService(self.db).list_subscription_addons(subscription.id)

        return assemble_subscription_details(subscription, plan_rates, quota_defaults, quotas, usages, addons)

    async def get_subscription_details(self, subscription_id: UUID) -> SubscriptionDetails:
        """
        Get a subscription with everything accounted against it.

        Raises:
            NotFound: If the subscription does not exist
        """
        subscription = await self.require_subscription(subscription_id)
        return await self.load_subscription_details(subscription)
