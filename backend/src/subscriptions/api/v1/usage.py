"""Usage ledger API endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from subscriptions.api.deps import get_actor, get_db, get_session_factory
from subscriptions.config import settings
from subscriptions.database import transaction_scope
from subscriptions.schemas.usage import Usage, UsageUpdate, UsageUpdateCreate
from subscriptions.services.subscription_service import SubscriptionService
from subscriptions.services.usage_service import UsageService
from subscriptions.utils.retry import retry_on_conflict

router = APIRouter(prefix="/subscriptions", tags=["Usage"])


@router.post("/{subscription_id}/usages", response_model=Usage)
async def apply_usage_update(
    subscription_id: UUID,
    update: UsageUpdateCreate,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    actor: str = Depends(get_actor),
) -> Usage:
    """
    Apply an update to a usage counter.

    - **resource_name** / **resource_unit**: Resource type the usage is reported for
    - **operation**: ``ADD`` accumulates onto the counter, ``SET`` replaces it
    - **amount**: Value to add or set

    The first update of a counter starts it at ``amount`` for either
    operation. Each attempt runs in its own transaction; an attempt that
    loses a race with a concurrent update is retried a bounded number of
    times before 409 is returned.
    """

    async def attempt() -> Usage:
        async with transaction_scope(session_factory) as db:
            usage = await UsageService(db).apply_usage_update(
                subscription_id,
                update.resource_name,
                update.resource_unit,
                update.operation,
                update.amount,
                actor,
            )
            return Usage.model_validate(usage)

    return await retry_on_conflict(attempt, settings.usage_update_max_attempts)


@router.get("/{subscription_id}/usages", response_model=list[Usage])
async def list_usages(
    subscription_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> list[Usage]:
    """List the usage counters of a subscription."""
    subscription = await SubscriptionService(db).require_subscription(subscription_id)
    usages = await UsageService(db).list_usages(subscription.id)
    return [Usage.model_validate(usage) for usage in usages]


@router.get("/{subscription_id}/updates", response_model=list[UsageUpdate])
async def list_updates(
    subscription_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> list[UsageUpdate]:
    """List the updates applied to a subscription's usage counters, oldest first."""
    subscription = await SubscriptionService(db).require_subscription(subscription_id)
    updates = await UsageService(db).list_updates(subscription.id)
    return [UsageUpdate.model_validate(u) for u in updates]
