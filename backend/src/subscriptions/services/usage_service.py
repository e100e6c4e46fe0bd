"""Usage ledger: applies ADD/SET updates to per-resource usage counters."""
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from subscriptions import metrics
from subscriptions.config import settings
from subscriptions.errors import Conflict, InvalidUpdateOperation
from subscriptions.models.resource_type import ResourceType
from subscriptions.models.usage import UpdateOperation, Usage, UsageUpdate
from subscriptions.services.resource_type_service import ResourceTypeService
from subscriptions.services.subscription_service import SubscriptionService
from subscriptions.utils.retry import is_serialization_failure
from subscriptions.utils.temporal import utcnow

logger = structlog.get_logger(__name__)


def parse_operation(name: str | UpdateOperation) -> UpdateOperation:
    """
    Resolve an update operation name.

    Args:
        name: ``ADD`` or ``SET`` (case-insensitive), or an UpdateOperation

    Returns:
        The matching operation

    Raises:
        InvalidUpdateOperation: If the name is neither ADD nor SET
    """
    if isinstance(name, UpdateOperation):
        return name
    try:
        return UpdateOperation[str(name).strip().upper()]
    except KeyError:
        raise InvalidUpdateOperation(str(name)) from None


def apply_operation(current: float | None, operation: UpdateOperation, amount: float) -> float:
    """
    New counter value after applying an operation.

    With no current value both operations start the counter at ``amount``.
    """
    if current is None or operation is UpdateOperation.SET:
        return amount
    return current + amount


class UsageService:
    """Service layer for usage counters."""

    def __init__(self, db: AsyncSession):
        """Initialize usage service with database session."""
        self.db = db

    async def apply_usage_update(
        self,
        subscription_id: UUID,
        resource_name: str,
        resource_unit: str,
        operation: str | UpdateOperation,
        amount: float,
        actor: str | None = None,
    ) -> Usage:
        """
        Apply an update to a usage counter identified by resource name and unit.

        Args:
            subscription_id: Subscription the usage belongs to
            resource_name: Resource type name
            resource_unit: Resource type unit
            operation: ``ADD`` or ``SET``
            amount: Value to add or set
            actor: Username recorded as modifier (default: configured actor)

        Returns:
            Updated usage row

        Raises:
            InvalidUpdateOperation: If the operation is neither ADD nor SET
            UnknownResourceType: If no resource type has that name and unit
            NotFound: If the subscription does not exist
            Conflict: If a concurrent update to the same counter could not be serialized
        """
        parsed = parse_operation(operation)
        resource_type = await ResourceTypeService(self.db).lookup(resource_name, resource_unit)
        return await self.apply_update(subscription_id, resource_type, parsed, amount, actor)

    async def apply_update(
        self,
        subscription_id: UUID,
        resource_type: ResourceType,
        operation: str | UpdateOperation,
        amount: float,
        actor: str | None = None,
    ) -> Usage:
        """
        Read-modify-write the usage counter of one (subscription, resource type).

        The counter row is read with a row lock so concurrent updates to the
        same counter serialize on the database. The first update creates the
        row with ``amount`` regardless of the operation. Every applied update
        is also appended to the update history.

        Returns:
            Updated usage row

        Raises:
            InvalidUpdateOperation: If the operation is neither ADD nor SET
            NotFound: If the subscription does not exist
            Conflict: If a concurrent update to the same counter could not be serialized
        """
        parsed = parse_operation(operation)
        actor = actor or settings.default_actor
        await SubscriptionService(self.db).require_subscription(subscription_id)
        # A failed flush expires loaded instances
        resource_name = resource_type.name
        resource_type_id = resource_type.id

        try:
            result = await self.db.execute(
                select(Usage)
                .where(
                    Usage.subscription_id == subscription_id,
                    Usage.resource_type_id == resource_type_id,
                )
                .with_for_update()
            )
            usage = result.scalar_one_or_none()

            if usage is None:
                usage = Usage(
                    subscription_id=subscription_id,
                    resource_type_id=resource_type_id,
                    resource_type=resource_type,
                    usage_value=apply_operation(None, parsed, amount),
                    created_by=actor,
                    last_modified_by=actor,
                )
                self.db.add(usage)
            else:
                usage.usage_value = apply_operation(usage.usage_value, parsed, amount)
                usage.last_modified_by = actor

            self.db.add(
                UsageUpdate(
                    subscription_id=subscription_id,
                    resource_type_id=resource_type_id,
                    resource_type=resource_type,
                    operation=parsed,
                    value=amount,
                    effective_date=utcnow(),
                    created_by=actor,
                )
            )
            await self.db.flush()
        except IntegrityError as exc:
            # Another transaction created the counter first
            self._conflict(subscription_id, resource_name, exc)
        except DBAPIError as exc:
            if not is_serialization_failure(exc):
                raise
            self._conflict(subscription_id, resource_name, exc)

        metrics.usage_updates_total.labels(operation=parsed.value, resource_type=resource_name).inc()
        logger.info(
            "usage_update_applied",
            subscription_id=str(subscription_id),
            resource_type=resource_name,
            operation=parsed.value,
            amount=amount,
            usage_value=usage.usage_value,
        )
        return usage

    def _conflict(self, subscription_id: UUID, resource_name: str, exc: Exception) -> None:
        metrics.usage_update_conflicts_total.labels(resource_type=resource_name).inc()
        logger.warning(
            "usage_update_conflict",
            subscription_id=str(subscription_id),
            resource_type=resource_name,
            error=str(exc),
        )
        raise Conflict(
            f"concurrent update to {resource_name} usage of subscription {subscription_id}",
            subscription_id=str(subscription_id),
            resource_type=resource_name,
        ) from exc

    async def get_usage(self, subscription_id: UUID, resource_type_id: UUID) -> Usage | None:
        """Get the usage counter of one resource type, or None if nothing was recorded yet."""
        result = await self.db.execute(
            select(Usage).where(
                Usage.subscription_id == subscription_id,
                Usage.resource_type_id == resource_type_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_usages(self, subscription_id: UUID) -> list[Usage]:
        """List the usage counters of a subscription."""
        result = await self.db.execute(
            select(Usage).where(Usage.subscription_id == subscription_id).order_by(Usage.created_at)
        )
        return list(result.scalars().all())

    async def list_updates(self, subscription_id: UUID) -> list[UsageUpdate]:
        """List the updates applied to a subscription's counters, oldest first."""
        result = await self.db.execute(
            select(UsageUpdate)
            .where(UsageUpdate.subscription_id == subscription_id)
            .order_by(UsageUpdate.effective_date)
        )
        return list(result.scalars().all())
