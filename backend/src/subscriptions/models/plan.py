"""Plan templates, their rate history and their quota defaults."""
from sqlalchemy import Column, DateTime, Float, ForeignKey, Numeric, String, Uuid
from sqlalchemy.orm import relationship

from subscriptions.models.base import Base
from subscriptions.utils.temporal import utcnow


class Plan(Base):
    """
    Named template of resource entitlements.

    Not tied to any user. Rates and quota defaults are effective-dated rows
    attached to the plan.
    """

    __tablename__ = "plans"

    name = Column(String, nullable=False, unique=True, index=True)
    description = Column(String, nullable=False, default="")

    def __repr__(self) -> str:
        """String representation."""
        return f"<Plan(id={self.id}, name={self.name})>"


class PlanRate(Base):
    """Price of a plan from ``effective_date`` until superseded by a later rate."""

    __tablename__ = "plan_rates"

    plan_id = Column(Uuid, ForeignKey("plans.id", ondelete="CASCADE"), nullable=False, index=True)
    effective_date = Column(DateTime, nullable=False, default=utcnow, index=True)
    rate = Column(Numeric(10, 2), nullable=False)

    def __repr__(self) -> str:
        """String representation."""
        return f"<PlanRate(plan_id={self.plan_id}, effective_date={self.effective_date}, rate={self.rate})>"


class PlanQuotaDefault(Base):
    """Template quota for one resource type of a plan."""

    __tablename__ = "plan_quota_defaults"

    plan_id = Column(Uuid, ForeignKey("plans.id", ondelete="CASCADE"), nullable=False, index=True)
    resource_type_id = Column(Uuid, ForeignKey("resource_types.id"), nullable=False, index=True)
    quota_value = Column(Float, nullable=False)
    effective_date = Column(DateTime, nullable=False, default=utcnow)

    # Relationships
    resource_type = relationship("ResourceType", lazy="selectin")

    def __repr__(self) -> str:
        """String representation."""
        return f"<PlanQuotaDefault(plan_id={self.plan_id}, resource_type_id={self.resource_type_id}, quota_value={self.quota_value})>"
