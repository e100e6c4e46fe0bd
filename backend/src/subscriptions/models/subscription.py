"""Subscription model binding a user to a plan for a period of time."""
from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from subscriptions.models.base import Base, ModifiedByMixin


class Subscription(ModifiedByMixin, Base):
    """
    A user's subscription to a plan at the rate in effect when it was created.

    Rows for the same user may overlap; the active one is chosen at query
    time, not enforced by the schema.
    """

    __tablename__ = "subscriptions"
    __table_args__ = (
        CheckConstraint(
            "effective_end_date IS NULL OR effective_end_date >= effective_start_date",
            name="ck_subscriptions_period",
        ),
    )

    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    plan_id = Column(Uuid, ForeignKey("plans.id"), nullable=False, index=True)
    plan_rate_id = Column(Uuid, ForeignKey("plan_rates.id"), nullable=False)
    effective_start_date = Column(DateTime, nullable=False, index=True)
    effective_end_date = Column(DateTime, nullable=True, index=True)  # NULL for open-ended
    paid = Column(Boolean, nullable=False, default=False)

    # Relationships
    user = relationship("User", lazy="selectin")
    plan = relationship("Plan", lazy="selectin")
    plan_rate = relationship("PlanRate", lazy="selectin")

    def __repr__(self) -> str:
        """String representation."""
        return f"<Subscription(id={self.id}, user_id={self.user_id}, plan_id={self.plan_id})>"
