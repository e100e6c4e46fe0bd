"""Purchasable add-ons and their attachment to subscriptions."""
from sqlalchemy import Boolean, Column, Float, ForeignKey, String, Uuid
from sqlalchemy.orm import relationship

from subscriptions.models.base import Base


class Addon(Base):
    """Catalogue entry for an increment to one resource type's allotment."""

    __tablename__ = "addons"

    name = Column(String, nullable=False, unique=True)
    description = Column(String, nullable=False)
    resource_type_id = Column(Uuid, ForeignKey("resource_types.id"), nullable=False, index=True)
    default_amount = Column(Float, nullable=False)
    paid = Column(Boolean, nullable=False, default=True)

    # Relationships
    resource_type = relationship("ResourceType", lazy="selectin")

    def __repr__(self) -> str:
        """String representation."""
        return f"<Addon(id={self.id}, name={self.name}, default_amount={self.default_amount})>"


class SubscriptionAddon(Base):
    """
    An add-on applied to a subscription.

    The quota rows are left untouched; the amount is folded in when the
    effective quota is read.
    """

    __tablename__ = "subscription_addons"

    subscription_id = Column(Uuid, ForeignKey("subscriptions.id", ondelete="CASCADE"), nullable=False, index=True)
    addon_id = Column(Uuid, ForeignKey("addons.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Float, nullable=True)  # NULL falls back to the add-on's default amount

    # Relationships
    addon = relationship("Addon", lazy="selectin")

    @property
    def effective_amount(self) -> float:
        """Amount this attachment contributes to the quota."""
        return self.amount if self.amount is not None else self.addon.default_amount

    def __repr__(self) -> str:
        """String representation."""
        return f"<SubscriptionAddon(subscription_id={self.subscription_id}, addon_id={self.addon_id}, amount={self.amount})>"
