"""Plan API endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from subscriptions.api.deps import get_db
from subscriptions.schemas.plan import (
    Plan,
    PlanCreate,
    PlanDetails,
    PlanQuotaDefault,
    PlanQuotaDefaultCreate,
    PlanRate,
    PlanRateCreate,
)
from subscriptions.services.plan_service import PlanService

router = APIRouter(prefix="/plans", tags=["Plans"])


@router.post("", response_model=PlanDetails, status_code=status.HTTP_201_CREATED)
async def create_plan(
    plan_data: PlanCreate,
    db: AsyncSession = Depends(get_db),
) -> PlanDetails:
    """
    Create a plan.

    - **name**: Plan name (unique)
    - **description**: Free text
    - **rates**: Initial rate history; a plan without a rate in effect cannot be subscribed to
    - **quota_defaults**: Quota per period for each resource type
    """
    service = PlanService(db)
    plan = await service.create_plan(plan_data)
    details = await service.get_plan_details(plan.id)
    await db.commit()
    return details


@router.get("", response_model=list[Plan])
async def list_plans(db: AsyncSession = Depends(get_db)) -> list[Plan]:
    """List all plans."""
    plans = await PlanService(db).list_plans()
    return [Plan.model_validate(plan) for plan in plans]


@router.get("/{plan_id}", response_model=PlanDetails)
async def get_plan(
    plan_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> PlanDetails:
    """Get a plan with its rate history, quota defaults and the rate currently in effect."""
    return await PlanService(db).get_plan_details(plan_id)


@router.post("/{plan_id}/rates", response_model=PlanRate, status_code=status.HTTP_201_CREATED)
async def add_rate(
    plan_id: UUID,
    rate_data: PlanRateCreate,
    db: AsyncSession = Depends(get_db),
) -> PlanRate:
    """
    Add a rate to a plan.

    The rate applies to subscriptions created once its effective date has
    passed; existing subscriptions keep the rate they were created with.
    """
    rate = await PlanService(db).add_rate(plan_id, rate_data)
    await db.commit()
    return PlanRate.model_validate(rate)


@router.post("/{plan_id}/quota-defaults", response_model=PlanQuotaDefault, status_code=status.HTTP_201_CREATED)
async def add_quota_default(
    plan_id: UUID,
    default_data: PlanQuotaDefaultCreate,
    db: AsyncSession = Depends(get_db),
) -> PlanQuotaDefault:
    """Add a quota default to a plan. Existing subscriptions are not affected."""
    default = await PlanService(db).add_quota_default(plan_id, default_data)
    await db.commit()
    return PlanQuotaDefault.model_validate(default)
