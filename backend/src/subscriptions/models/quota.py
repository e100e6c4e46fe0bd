"""Quota model: absolute resource allotment of a subscription."""
from sqlalchemy import Column, Float, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from subscriptions.models.base import Base, ModifiedByMixin


class Quota(ModifiedByMixin, Base):
    """One row per (subscription, resource type), written once when the subscription is created."""

    __tablename__ = "quotas"
    __table_args__ = (
        UniqueConstraint("subscription_id", "resource_type_id", name="uq_quotas_subscription_resource_type"),
    )

    subscription_id = Column(Uuid, ForeignKey("subscriptions.id", ondelete="CASCADE"), nullable=False, index=True)
    resource_type_id = Column(Uuid, ForeignKey("resource_types.id"), nullable=False)
    quota_value = Column(Float, nullable=False)

    # Relationships
    resource_type = relationship("ResourceType", lazy="selectin")

    def __repr__(self) -> str:
        """String representation."""
        return f"<Quota(subscription_id={self.subscription_id}, resource_type_id={self.resource_type_id}, quota_value={self.quota_value})>"
