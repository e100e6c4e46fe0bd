"""Resource type reference data."""
from sqlalchemy import Boolean, Column, String, UniqueConstraint

from subscriptions.models.base import Base


class ResourceType(Base):
    """
    A kind of resource that quotas and usages are measured in.

    Consumable resources (e.g. CPU hours) accrue per period; the others
    (e.g. storage size) describe a fixed capacity.
    """

    __tablename__ = "resource_types"
    __table_args__ = (UniqueConstraint("name", "unit", name="uq_resource_types_name_unit"),)

    name = Column(String, nullable=False, index=True)
    unit = Column(String, nullable=False)
    consumable = Column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        """String representation."""
        return f"<ResourceType(id={self.id}, name={self.name}, unit={self.unit})>"
