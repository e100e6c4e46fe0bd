"""Resource type reference data operations."""
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from subscriptions.errors import AlreadyExists, NotFound, UnknownResourceType
from subscriptions.models.resource_type import ResourceType
from subscriptions.schemas.resource_type import ResourceTypeCreate, ResourceTypeRef


class ResourceTypeService:
    """Service layer for resource type operations."""

    def __init__(self, db: AsyncSession):
        """Initialize resource type service with database session."""
        self.db = db

    async def create_resource_type(self, data: ResourceTypeCreate) -> ResourceType:
        """
        Register a resource type.

        Args:
            data: Resource type creation data

        Returns:
            Created resource type

        Raises:
            AlreadyExists: If a resource type with that name and unit exists
        """
        existing = await self.db.execute(
            select(ResourceType.id).where(ResourceType.name == data.name, ResourceType.unit == data.unit)
        )
        if existing.first():
            raise AlreadyExists("resource type", f"{data.name} ({data.unit})")

        resource_type = ResourceType(name=data.name, unit=data.unit, consumable=data.consumable)
        self.db.add(resource_type)
        await self.db.flush()
        return resource_type

    async def get_resource_type(self, resource_type_id: UUID) -> ResourceType:
        """
        Get resource type by ID.

        Raises:
            NotFound: If the resource type does not exist
        """
        resource_type = await self.db.get(ResourceType, resource_type_id)
        if not resource_type:
            raise NotFound("resource type", resource_type_id)
        return resource_type

    async def get_resource_type_by_name(self, name: str) -> ResourceType:
        """
        Get resource type by name alone.

        Raises:
            NotFound: If no resource type has that name
        """
        result = await self.db.execute(
            select(ResourceType).where(ResourceType.name == name).order_by(ResourceType.created_at).limit(1)
        )
        resource_type = result.scalar_one_or_none()
        if not resource_type:
            raise NotFound("resource type", name)
        return resource_type

    async def resolve(self, ref: ResourceTypeRef) -> ResourceType:
        """Resolve a reference that names a resource type by ID or, failing that, by name."""
        if ref.id is not None:
            return await self.get_resource_type(ref.id)
        return await self.get_resource_type_by_name(ref.name)

    async def lookup(self, name: str, unit: str) -> ResourceType:
        """
        Resolve the resource type a usage update refers to.

        Args:
            name: Resource type name
            unit: Resource type unit

        Returns:
            Matching resource type

        Raises:
            UnknownResourceType: If no resource type has that name and unit
        """
        result = await self.db.execute(
            select(ResourceType).where(ResourceType.name == name, ResourceType.unit == unit)
        )
        resource_type = result.scalar_one_or_none()
        if not resource_type:
            raise UnknownResourceType(name, unit)
        return resource_type

    async def list_resource_types(self) -> list[ResourceType]:
        """List all resource types ordered by name."""
        result = await self.db.execute(select(ResourceType).order_by(ResourceType.name, ResourceType.unit))
        return list(result.scalars().all())
