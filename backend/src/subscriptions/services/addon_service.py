"""Add-on catalogue and attachment of add-ons to subscriptions."""
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from subscriptions import metrics
from subscriptions.errors import AlreadyExists, NotFound
from subscriptions.models.addon import Addon, SubscriptionAddon
from subscriptions.models.quota import Quota
from subscriptions.schemas.addon import AddonCreate, AddonUpdate
from subscriptions.schemas.resource_type import ResourceType as ResourceTypeView
from subscriptions.schemas.usage import EffectiveQuota
from subscriptions.services.quota_service import QuotaService
from subscriptions.services.resource_type_service import ResourceTypeService
from subscriptions.services.subscription_service import SubscriptionService

logger = structlog.get_logger(__name__)


def fold_addons(quotas: list[Quota], attachments: list[SubscriptionAddon]) -> list[EffectiveQuota]:
    """
    Add the amounts of attached add-ons onto the base quotas.

    Resource types that only appear through an add-on get a base quota of
    zero. Stored quota rows are not modified.
    """
    rows: dict[UUID, EffectiveQuota] = {}
    for quota in quotas:
        rows[quota.resource_type_id] = EffectiveQuota(
            resource_type=ResourceTypeView.model_validate(quota.resource_type),
            base_quota=quota.quota_value,
            addon_amount=0.0,
            effective_quota=quota.quota_value,
        )

    for attachment in attachments:
        addon = attachment.addon
        row = rows.get(addon.resource_type_id)
        if row is None:
            row = rows[addon.resource_type_id] = EffectiveQuota(
                resource_type=ResourceTypeView.model_validate(addon.resource_type),
                base_quota=0.0,
                addon_amount=0.0,
                effective_quota=0.0,
            )
        row.addon_amount += attachment.effective_amount
        row.effective_quota = row.base_quota + row.addon_amount

    return sorted(rows.values(), key=lambda q: (q.resource_type.name, q.resource_type.unit))


class AddonService:
    """Service layer for add-on operations."""

    def __init__(self, db: AsyncSession):
        """Initialize add-on service with database session."""
        self.db = db

    async def add_addon(self, data: AddonCreate) -> Addon:
        """
        Add an add-on to the catalogue.

        Args:
            data: Add-on creation data; the resource type is given by id or name

        Returns:
            Created add-on

        Raises:
            AlreadyExists: If an add-on with that name exists
            NotFound: If the resource type does not exist
        """
        if await self.get_addon_by_name(data.name):
            raise AlreadyExists("addon", data.name)

        resource_type = await ResourceTypeService(self.db).resolve(data.resource_type)

        addon = Addon(
            name=data.name,
            description=data.description,
            resource_type_id=resource_type.id,
            resource_type=resource_type,
            default_amount=data.default_amount,
            paid=data.paid,
        )
        self.db.add(addon)
        await self.db.flush()

        logger.info("addon_added", addon_id=str(addon.id), name=addon.name, resource_type=resource_type.name)
        return addon

    async def get_addon(self, addon_id: UUID) -> Addon | None:
        """Get add-on by ID, or None if not found."""
        return await self.db.get(Addon, addon_id)

    async def get_addon_by_name(self, name: str) -> Addon | None:
        """Get add-on by its unique name, or None if not found."""
        result = await self.db.execute(select(Addon).where(Addon.name == name))
        return result.scalar_one_or_none()

    async def require_addon(self, addon_id: UUID) -> Addon:
        """
        Get add-on by ID.

        Raises:
            NotFound: If the add-on does not exist
        """
        addon = await self.get_addon(addon_id)
        if not addon:
            raise NotFound("addon", addon_id)
        return addon

    async def list_addons(self) -> list[Addon]:
        """List the add-on catalogue ordered by name."""
        result = await self.db.execute(select(Addon).order_by(Addon.name))
        return list(result.scalars().all())

    async def update_addon(self, addon_id: UUID, data: AddonUpdate) -> Addon:
        """
        Update catalogue fields of an add-on.

        Attachments that stored an explicit amount are unaffected by a new
        default amount.

        Raises:
            NotFound: If the add-on or the new resource type does not exist
            AlreadyExists: If the new name belongs to another add-on
        """
        addon = await self.require_addon(addon_id)
        changes = data.model_dump(exclude_unset=True)

        name = changes.get("name")
        if name is not None and name != addon.name and await self.get_addon_by_name(name):
            raise AlreadyExists("addon", name)

        resource_type_id = changes.pop("resource_type_id", None)
        if resource_type_id is not None:
            resource_type = await ResourceTypeService(self.db).get_resource_type(resource_type_id)
            addon.resource_type_id = resource_type.id
            addon.resource_type = resource_type

        for field, value in changes.items():
            setattr(addon, field, value)

        await self.db.flush()
        logger.info("addon_updated", addon_id=str(addon.id), fields=sorted(data.model_fields_set))
        return addon

    async def delete_addon(self, addon_id: UUID) -> None:
        """
        Remove an add-on from the catalogue together with its attachments.

        Raises:
            NotFound: If the add-on does not exist
        """
        addon = await self.require_addon(addon_id)

        attachments = await self.db.execute(select(SubscriptionAddon).where(SubscriptionAddon.addon_id == addon.id))
        for attachment in attachments.scalars().all():
            await self.db.delete(attachment)
        await self.db.delete(addon)
        await self.db.flush()

        logger.info("addon_deleted", addon_id=str(addon_id))

    async def attach(self, subscription_id: UUID, addon_id: UUID, amount: float | None = None) -> SubscriptionAddon:
        """
        Attach an add-on to a subscription.

        The subscription's quota rows are left untouched; the amount only
        shows up in the effective quota.

        Args:
            subscription_id: Subscription to extend
            addon_id: Add-on to attach
            amount: Amount to add (default: the add-on's default amount)

        Returns:
            Created attachment

        Raises:
            NotFound: If the subscription or the add-on does not exist
        """
        subscription = await SubscriptionService(self.db).require_subscription(subscription_id)
        addon = await self.require_addon(addon_id)

        attachment = SubscriptionAddon(
            subscription_id=subscription.id,
            addon_id=addon.id,
            addon=addon,
            amount=amount if amount is not None else addon.default_amount,
        )
        self.db.add(attachment)
        await self.db.flush()

        metrics.addons_attached_total.labels(addon=addon.name).inc()
        logger.info(
            "addon_attached",
            subscription_id=str(subscription.id),
            addon=addon.name,
            amount=attachment.amount,
        )
        return attachment

    async def list_subscription_addons(self, subscription_id: UUID) -> list[SubscriptionAddon]:
        """List the add-ons attached to a subscription, oldest first."""
        result = await self.db.execute(
            select(SubscriptionAddon)
            .where(SubscriptionAddon.subscription_id == subscription_id)
            .order_by(SubscriptionAddon.created_at)
        )
        return list(result.scalars().all())

    async def detach(self, subscription_id: UUID, subscription_addon_id: UUID) -> None:
        """
        Remove an attachment from a subscription.

        Raises:
            NotFound: If the attachment does not belong to the subscription
        """
        attachment = await self.db.get(SubscriptionAddon, subscription_addon_id)
        if not attachment or attachment.subscription_id != subscription_id:
            raise NotFound("subscription addon", subscription_addon_id)

        await self.db.delete(attachment)
        await self.db.flush()
        logger.info("addon_detached", subscription_id=str(subscription_id), addon_id=str(attachment.addon_id))

    async def effective_quotas(self, subscription_id: UUID) -> list[EffectiveQuota]:
        """
        Quotas of a subscription with every attached add-on folded in.

        Raises:
            NotFound: If the subscription does not exist
        """
        subscription = await SubscriptionService(self.db).require_subscription(subscription_id)
        quotas = await QuotaService(self.db).list_quotas(subscription.id)
        attachments = await self.list_subscription_addons(subscription.id)
        return fold_addons(quotas, attachments)
