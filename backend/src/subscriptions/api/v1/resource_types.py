"""Resource type API endpoints."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from subscriptions.api.deps import get_db
from subscriptions.schemas.resource_type import ResourceType, ResourceTypeCreate
from subscriptions.services.resource_type_service import ResourceTypeService

router = APIRouter(prefix="/resource-types", tags=["Resource Types"])


@router.post("", response_model=ResourceType, status_code=status.HTTP_201_CREATED)
async def create_resource_type(
    data: ResourceTypeCreate,
    db: AsyncSession = Depends(get_db),
) -> ResourceType:
    """
    Register a resource type.

    - **name**: Resource name (e.g. ``cpu.hours``)
    - **unit**: Unit the resource is measured in; name and unit together are unique
    - **consumable**: Whether quota accrues per billing period
    """
    resource_type = await ResourceTypeService(db).create_resource_type(data)
    await db.commit()
    return ResourceType.model_validate(resource_type)


@router.get("", response_model=list[ResourceType])
async def list_resource_types(db: AsyncSession = Depends(get_db)) -> list[ResourceType]:
    """List all resource types."""
    resource_types = await ResourceTypeService(db).list_resource_types()
    return [ResourceType.model_validate(rt) for rt in resource_types]
