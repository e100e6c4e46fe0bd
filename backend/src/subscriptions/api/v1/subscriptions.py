"""Subscription API endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from subscriptions.api.deps import get_actor, get_db
from subscriptions.schemas.subscription import SubscriptionCreate, SubscriptionDetails, SubscriptionOptions
from subscriptions.schemas.usage import EffectiveQuota, OverageView, Quota
from subscriptions.services.addon_service import AddonService
from subscriptions.services.overage_service import OverageService
from subscriptions.services.quota_service import QuotaService
from subscriptions.services.subscription_service import SubscriptionService
from subscriptions.services.user_service import UserService

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])
users_router = APIRouter(prefix="/users", tags=["Subscriptions"])


def present_overages(overages: list, exceeding_only: bool) -> list[OverageView]:
    """API view of overages, optionally dropping rows within budget."""
    if exceeding_only:
        overages = [overage for overage in overages if overage.exceeded]
    return [OverageView.from_overage(overage) for overage in overages]


@router.post("", response_model=SubscriptionDetails, status_code=status.HTTP_201_CREATED)
async def create_subscription(
    subscription_data: SubscriptionCreate,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
) -> SubscriptionDetails:
    """
    Subscribe a user to a plan.

    - **username**: User to subscribe; registered on first sight
    - **plan_id**: Plan to subscribe to; it must have a rate in effect
    - **paid**: Whether the subscription was paid for (default: false)
    - **periods**: Billing periods covered (default: 1)
    - **end_date**: When the subscription ends (default: one term from now)

    Quotas are materialized from the plan's quota defaults in effect now.
    Nothing is stored when the request fails.
    """
    user = await UserService(db).get_or_create(subscription_data.username)
    options = SubscriptionOptions(
        paid=subscription_data.paid,
        periods=subscription_data.periods,
        end_date=subscription_data.end_date,
    )

    service = SubscriptionService(db)
    subscription = await service.create_subscription(user.id, subscription_data.plan_id, options, actor)
    details = await service.load_subscription_details(subscription)
    await db.commit()
    return details


@router.get("/{subscription_id}", response_model=SubscriptionDetails)
async def get_subscription(
    subscription_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> SubscriptionDetails:
    """Get a subscription with its plan, quotas, usages and add-ons."""
    return await SubscriptionService(db).get_subscription_details(subscription_id)


@router.get("/{subscription_id}/quotas", response_model=list[Quota])
async def list_quotas(
    subscription_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> list[Quota]:
    """List the base quotas materialized when the subscription was created."""
    subscription = await SubscriptionService(db).require_subscription(subscription_id)
    quotas = await QuotaService(db).list_quotas(subscription.id)
    return [Quota.model_validate(quota) for quota in quotas]


@router.get("/{subscription_id}/quotas/effective", response_model=list[EffectiveQuota])
async def list_effective_quotas(
    subscription_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> list[EffectiveQuota]:
    """List base quota plus attached add-ons for each resource type."""
    return await AddonService(db).effective_quotas(subscription_id)


@router.get("/{subscription_id}/overages", response_model=list[OverageView])
async def list_overages(
    subscription_id: UUID,
    exceeding_only: bool = Query(default=False, description="Drop resource types within budget"),
    db: AsyncSession = Depends(get_db),
) -> list[OverageView]:
    """
    Report usage against quota for every resource type the subscription used.

    Usage of a resource type without a quota is measured against zero.
    """
    overages = await OverageService(db).overages_for(subscription_id)
    return present_overages(overages, exceeding_only)


@users_router.get("/{username}/subscription", response_model=SubscriptionDetails | None)
async def get_active_subscription(
    username: str,
    db: AsyncSession = Depends(get_db),
) -> SubscriptionDetails | None:
    """
    Get the user's subscription in effect now.

    Returns ``null`` when the user has no subscription in effect, or is unknown.
    """
    user = await UserService(db).get_user_by_username(username)
    if user is None:
        return None

    service = SubscriptionService(db)
    subscription = await service.get_active_subscription(user.id)
    if subscription is None:
        return None
    return await service.load_subscription_details(subscription)


@users_router.get("/{username}/overages", response_model=list[OverageView])
async def list_user_overages(
    username: str,
    exceeding_only: bool = Query(default=False, description="Drop resource types within budget"),
    db: AsyncSession = Depends(get_db),
) -> list[OverageView]:
    """Report usage against quota for the user's subscription in effect now."""
    user = await UserService(db).get_user_by_username(username)
    if user is None:
        return []

    overages = await OverageService(db).overages_for_user(user.id)
    return present_overages(overages, exceeding_only)
