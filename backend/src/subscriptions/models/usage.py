"""Usage counters and the history of updates applied to them."""
import enum

from sqlalchemy import Column, DateTime, Enum as SQLEnum, Float, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from subscriptions.models.base import Base, ModifiedByMixin
from subscriptions.utils.temporal import utcnow


class UpdateOperation(enum.Enum):
    """How an update changes a usage counter."""

    ADD = "ADD"  # Accumulate onto the current value
    SET = "SET"  # Replace the current value


class Usage(ModifiedByMixin, Base):
    """Running consumption counter, mutated in place by every update."""

    __tablename__ = "usages"
    __table_args__ = (
        UniqueConstraint("subscription_id", "resource_type_id", name="uq_usages_subscription_resource_type"),
    )

    subscription_id = Column(Uuid, ForeignKey("subscriptions.id", ondelete="CASCADE"), nullable=False, index=True)
    resource_type_id = Column(Uuid, ForeignKey("resource_types.id"), nullable=False)
    usage_value = Column(Float, nullable=False, default=0.0)

    # Relationships
    resource_type = relationship("ResourceType", lazy="selectin")

    def __repr__(self) -> str:
        """String representation."""
        return f"<Usage(subscription_id={self.subscription_id}, resource_type_id={self.resource_type_id}, usage_value={self.usage_value})>"


class UsageUpdate(Base):
    """Append-only record of an update applied to a usage counter."""

    __tablename__ = "usage_updates"

    subscription_id = Column(Uuid, ForeignKey("subscriptions.id", ondelete="CASCADE"), nullable=False, index=True)
    resource_type_id = Column(Uuid, ForeignKey("resource_types.id"), nullable=False)
    operation = Column(SQLEnum(UpdateOperation), nullable=False)
    value = Column(Float, nullable=False)
    effective_date = Column(DateTime, nullable=False, default=utcnow, index=True)
    created_by = Column(String, nullable=False)

    # Relationships
    resource_type = relationship("ResourceType", lazy="selectin")

    def __repr__(self) -> str:
        """String representation."""
        return f"<UsageUpdate(subscription_id={self.subscription_id}, operation={self.operation.value}, value={self.value})>"
