"""Plan service for plan templates, rates and quota defaults."""
from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from subscriptions.errors import AlreadyExists, NotFound
from subscriptions.models.plan import Plan, PlanQuotaDefault, PlanRate
from subscriptions.schemas.plan import (
    PlanCreate,
    PlanDetails,
    PlanQuotaDefault as PlanQuotaDefaultView,
    PlanQuotaDefaultCreate,
    PlanRate as PlanRateView,
    PlanRateCreate,
)
from subscriptions.services.resource_type_service import ResourceTypeService
from subscriptions.utils.temporal import active_among, as_naive_utc, utcnow

logger = structlog.get_logger(__name__)


def select_active_rate(rates: list[PlanRate], now: datetime) -> PlanRate | None:
    """The rate with the greatest effective date not after ``now``."""
    return active_among(now, rates, start_field="effective_date", end_field=None)


def select_active_quota_defaults(defaults: list[PlanQuotaDefault], now: datetime) -> list[PlanQuotaDefault]:
    """
    The quota default in effect for each resource type of a plan.

    A plan may hold several defaults for the same resource type with
    different effective dates; only the latest one not after ``now`` counts.
    Defaults that have not taken effect yet are ignored.
    """
    by_resource_type: dict[UUID, list[PlanQuotaDefault]] = {}
    for default in defaults:
        by_resource_type.setdefault(default.resource_type_id, []).append(default)

    selected = []
    for candidates in by_resource_type.values():
        active = active_among(now, candidates, start_field="effective_date", end_field=None)
        if active is not None:
            selected.append(active)

    return sorted(selected, key=lambda d: d.resource_type.name)


def assemble_plan_details(
    plan: Plan,
    rates: list[PlanRate],
    quota_defaults: list[PlanQuotaDefault],
    now: datetime,
) -> PlanDetails:
    """Fold already-fetched rate and quota default rows into a plan view."""
    active_rate = select_active_rate(rates, now)
    return PlanDetails(
        id=plan.id,
        name=plan.name,
        description=plan.description,
        created_at=plan.created_at,
        rates=[PlanRateView.model_validate(rate) for rate in rates],
        quota_defaults=[PlanQuotaDefaultView.model_validate(default) for default in quota_defaults],
        active_rate=PlanRateView.model_validate(active_rate) if active_rate else None,
    )


class PlanService:
    """Service layer for plan operations."""

    def __init__(self, db: AsyncSession):
        """Initialize plan service with database session."""
        self.db = db

    async def create_plan(self, plan_data: PlanCreate) -> Plan:
        """
        Create a new plan together with its initial rates and quota defaults.

        Args:
            plan_data: Plan creation data

        Returns:
            Created plan

        Raises:
            AlreadyExists: If a plan with that name exists
            NotFound: If a quota default references an unknown resource type
        """
        # Check if the name is already taken
        if await self.get_plan_by_name(plan_data.name):
            raise AlreadyExists("plan", plan_data.name)

        plan = Plan(name=plan_data.name, description=plan_data.description)
        self.db.add(plan)
        await self.db.flush()

        for rate_data in plan_data.rates:
            await self.add_rate(plan.id, rate_data)

        for default_data in plan_data.quota_defaults:
            await self.add_quota_default(plan.id, default_data)

        logger.info(
            "plan_created",
            plan_id=str(plan.id),
            name=plan.name,
            rate_count=len(plan_data.rates),
            quota_default_count=len(plan_data.quota_defaults),
        )
        return plan

    async def get_plan(self, plan_id: UUID) -> Plan | None:
        """
        Get plan by ID.

        Args:
            plan_id: Plan UUID

        Returns:
            Plan or None if not found
        """
        return await self.db.get(Plan, plan_id)

    async def get_plan_by_name(self, name: str) -> Plan | None:
        """Get plan by its unique name."""
        result = await self.db.execute(select(Plan).where(Plan.name == name))
        return result.scalar_one_or_none()

    async def require_plan(self, plan_id: UUID) -> Plan:
        """
        Get plan by ID.

        Raises:
            NotFound: If the plan does not exist
        """
        plan = await self.get_plan(plan_id)
        if not plan:
            raise NotFound("plan", plan_id)
        return plan

    async def list_plans(self) -> list[Plan]:
        """List all plans ordered by name."""
        result = await self.db.execute(select(Plan).order_by(Plan.name))
        return list(result.scalars().all())

    async def add_rate(self, plan_id: UUID, rate_data: PlanRateCreate) -> PlanRate:
        """
        Add a rate to a plan's rate history.

        Raises:
            NotFound: If the plan does not exist
        """
        await self.require_plan(plan_id)

        rate = PlanRate(
            plan_id=plan_id,
            rate=rate_data.rate,
            effective_date=as_naive_utc(rate_data.effective_date) or utcnow(),
        )
        self.db.add(rate)
        await self.db.flush()
        return rate

    async def add_quota_default(self, plan_id: UUID, default_data: PlanQuotaDefaultCreate) -> PlanQuotaDefault:
        """
        Add a quota default to a plan.

        Only subscriptions created after the default takes effect see it;
        existing quotas are never rewritten.

        Raises:
            NotFound: If the plan or the resource type does not exist
        """
        await self.require_plan(plan_id)
        resource_type = await ResourceTypeService(self.db).get_resource_type(default_data.resource_type_id)

        default = PlanQuotaDefault(
            plan_id=plan_id,
            resource_type_id=resource_type.id,
            resource_type=resource_type,
            quota_value=default_data.quota_value,
            effective_date=as_naive_utc(default_data.effective_date) or utcnow(),
        )
        self.db.add(default)
        await self.db.flush()
        return default

    async def list_rates(self, plan_id: UUID) -> list[PlanRate]:
        """List a plan's rates, oldest first."""
        result = await self.db.execute(
            select(PlanRate).where(PlanRate.plan_id == plan_id).order_by(PlanRate.effective_date)
        )
        return list(result.scalars().all())

    async def list_quota_defaults(self, plan_id: UUID) -> list[PlanQuotaDefault]:
        """List every quota default of a plan, including superseded and future ones."""
        result = await self.db.execute(
            select(PlanQuotaDefault)
            .where(PlanQuotaDefault.plan_id == plan_id)
            .order_by(PlanQuotaDefault.effective_date)
        )
        return list(result.scalars().all())

    async def get_active_rate(self, plan_id: UUID, now: datetime | None = None) -> PlanRate | None:
        """
        Get the rate in effect for a plan.

        Args:
            plan_id: Plan UUID
            now: Instant to evaluate (default: current time)

        Returns:
            Active rate, or None if the plan has no rate in effect
        """
        return select_active_rate(await self.list_rates(plan_id), now or utcnow())

    async def get_active_quota_defaults(self, plan_id: UUID, now: datetime | None = None) -> list[PlanQuotaDefault]:
        """Get the quota default in effect for each resource type of a plan."""
        return select_active_quota_defaults(await self.list_quota_defaults(plan_id), now or utcnow())

    async def get_plan_details(self, plan_id: UUID) -> PlanDetails:
        """
        Get a plan with its rate history and quota defaults.

        Raises:
            NotFound: If the plan does not exist
        """
        plan = await self.require_plan(plan_id)
        rates = await self.list_rates(plan_id)
        quota_defaults = await self.list_quota_defaults(plan_id)
        return assemble_plan_details(plan, rates, quota_defaults, utcnow())
