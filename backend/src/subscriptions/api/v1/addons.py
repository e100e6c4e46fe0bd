"""Add-on API endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from subscriptions.api.deps import get_db
from subscriptions.schemas.addon import (
    Addon,
    AddonCreate,
    AddonUpdate,
    SubscriptionAddon,
    SubscriptionAddonCreate,
)
from subscriptions.services.addon_service import AddonService
from subscriptions.services.subscription_service import SubscriptionService

router = APIRouter(prefix="/addons", tags=["Add-ons"])
subscription_router = APIRouter(prefix="/subscriptions", tags=["Add-ons"])


@router.post("", response_model=Addon, status_code=status.HTTP_201_CREATED)
async def add_addon(
    addon_data: AddonCreate,
    db: AsyncSession = Depends(get_db),
) -> Addon:
    """
    Add an add-on to the catalogue.

    - **name**, **description**: Must not be blank
    - **default_amount**: Amount added to the quota when attached without an explicit amount
    - **resource_type**: ``{"id": ...}`` or ``{"name": ...}``
    """
    addon = await AddonService(db).add_addon(addon_data)
    await db.commit()
    return Addon.model_validate(addon)


@router.get("", response_model=list[Addon])
async def list_addons(db: AsyncSession = Depends(get_db)) -> list[Addon]:
    """List the add-on catalogue."""
    addons = await AddonService(db).list_addons()
    return [Addon.model_validate(addon) for addon in addons]


@router.patch("/{addon_id}", response_model=Addon)
async def update_addon(
    addon_id: UUID,
    update_data: AddonUpdate,
    db: AsyncSession = Depends(get_db),
) -> Addon:
    """Update catalogue fields of an add-on. All fields are optional."""
    addon = await AddonService(db).update_addon(addon_id, update_data)
    await db.commit()
    return Addon.model_validate(addon)


@router.delete("/{addon_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_addon(
    addon_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Remove an add-on from the catalogue and from every subscription it is attached to."""
    await AddonService(db).delete_addon(addon_id)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@subscription_router.post(
    "/{subscription_id}/addons",
    response_model=SubscriptionAddon,
    status_code=status.HTTP_201_CREATED,
)
async def attach_addon(
    subscription_id: UUID,
    attach_data: SubscriptionAddonCreate,
    db: AsyncSession = Depends(get_db),
) -> SubscriptionAddon:
    """
    Attach an add-on to a subscription.

    - **addon_id**: Add-on to attach
    - **amount**: Amount to add (default: the add-on's default amount)

    Base quotas are not modified; see ``/quotas/effective`` for the totals.
    """
    attachment = await AddonService(db).attach(subscription_id, attach_data.addon_id, attach_data.amount)
    await db.commit()
    return SubscriptionAddon.model_validate(attachment)


@subscription_router.get("/{subscription_id}/addons", response_model=list[SubscriptionAddon])
async def list_subscription_addons(
    subscription_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> list[SubscriptionAddon]:
    """List the add-ons attached to a subscription."""
    subscription = await SubscriptionService(db).require_subscription(subscription_id)
    attachments = await AddonService(db).list_subscription_addons(subscription.id)
    return [SubscriptionAddon.model_validate(a) for a in attachments]


@subscription_router.delete(
    "/{subscription_id}/addons/{subscription_addon_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def detach_addon(
    subscription_id: UUID,
    subscription_addon_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Remove an attached add-on from a subscription."""
    await AddonService(db).detach(subscription_id, subscription_addon_id)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
