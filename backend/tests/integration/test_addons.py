"""Integration tests for the add-on catalogue and attaching add-ons to subscriptions."""
import pytest
from uuid import uuid4
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from subscriptions.errors import AlreadyExists, NotFound
from subscriptions.schemas.addon import AddonCreate, AddonUpdate
from subscriptions.schemas.resource_type import ResourceTypeRef
from tests.utils.factories import AddonFactory


@pytest.mark.asyncio
async def test_add_addon_by_resource_type_name(db_session: AsyncSession, cpu_hours) -> None:
    """Test that the resource type can be referenced by name."""
    from subscriptions.services.addon_service import AddonService

    addon = await AddonService(db_session).add_addon(
        AddonCreate(**AddonFactory.create({"resource_type": ResourceTypeRef(name="cpu.time"), "default_amount": 10}))
    )
    await db_session.commit()

    assert addon.id is not None
    assert addon.resource_type_id == cpu_hours.id
    assert addon.default_amount == 10


@pytest.mark.asyncio
async def test_add_addon_by_resource_type_id(db_session: AsyncSession, storage_bytes) -> None:
    """Test that the resource type can be referenced by id."""
    from subscriptions.services.addon_service import AddonService

    addon = await AddonService(db_session).add_addon(
        AddonCreate(**AddonFactory.create({"resource_type": ResourceTypeRef(id=storage_bytes.id)}))
    )

    assert addon.resource_type_id == storage_bytes.id


@pytest.mark.asyncio
async def test_add_addon_unknown_resource_type(db_session: AsyncSession) -> None:
    """Test that a missing resource type is reported."""
    from subscriptions.services.addon_service import AddonService

    with pytest.raises(NotFound):
        await AddonService(db_session).add_addon(
            AddonCreate(**AddonFactory.create({"resource_type": ResourceTypeRef(name="nope")}))
        )


def test_addon_create_validation() -> None:
    """Test that blank names, missing resource types and non-positive amounts are rejected."""
    with pytest.raises(ValidationError):
        AddonCreate(**AddonFactory.create({"name": "  ", "resource_type": ResourceTypeRef(name="cpu.time")}))

    with pytest.raises(ValidationError):
        AddonCreate(**AddonFactory.create({"resource_type": ResourceTypeRef()}))

    with pytest.raises(ValidationError):
        AddonCreate(**AddonFactory.create({"default_amount": 0, "resource_type": ResourceTypeRef(name="cpu.time")}))

    with pytest.raises(ValidationError):
        AddonCreate(**AddonFactory.create({"default_amount": float("inf"), "resource_type": ResourceTypeRef(name="cpu.time")}))


def test_addon_update_validation() -> None:
    """Test that explicit nulls are rejected while omitted fields stay unset."""
    for field in ("name", "description", "default_amount", "paid", "resource_type_id"):
        with pytest.raises(ValidationError):
            AddonUpdate(**{field: None})

    update = AddonUpdate(description="More CPU")
    assert update.model_fields_set == {"description"}
    assert update.model_dump(exclude_unset=True) == {"description": "More CPU"}


@pytest.mark.asyncio
async def test_attach_uses_default_amount(db_session: AsyncSession, test_subscription, cpu_hours) -> None:
    """Test that attaching without an amount stores the add-on's default amount."""
    from subscriptions.services.addon_service import AddonService

    service = AddonService(db_session)
    addon = await service.add_addon(
        AddonCreate(**AddonFactory.create({"resource_type": ResourceTypeRef(id=cpu_hours.id), "default_amount": 10}))
    )
    attachment = await service.attach(test_subscription.id, addon.id)
    await db_session.commit()

    assert attachment.amount == 10
    assert attachment.effective_amount == 10


@pytest.mark.asyncio
async def test_attach_with_explicit_amount(db_session: AsyncSession, test_subscription, cpu_hours) -> None:
    """Test that an explicit amount overrides the default."""
    from subscriptions.services.addon_service import AddonService

    service = AddonService(db_session)
    addon = await service.add_addon(
        AddonCreate(**AddonFactory.create({"resource_type": ResourceTypeRef(id=cpu_hours.id), "default_amount": 10}))
    )
    attachment = await service.attach(test_subscription.id, addon.id, amount=3)

    assert attachment.effective_amount == 3


@pytest.mark.asyncio
async def test_attach_missing_references(db_session: AsyncSession, test_subscription, cpu_hours) -> None:
    """Test that both the subscription and the add-on must exist."""
    from subscriptions.services.addon_service import AddonService

    service = AddonService(db_session)
    addon = await service.add_addon(
        AddonCreate(**AddonFactory.create({"resource_type": ResourceTypeRef(id=cpu_hours.id)}))
    )
    await db_session.commit()

    with pytest.raises(NotFound):
        await service.attach(uuid4(), addon.id)
    with pytest.raises(NotFound):
        await service.attach(test_subscription.id, uuid4())


@pytest.mark.asyncio
async def test_effective_quotas(db_session: AsyncSession, test_subscription, cpu_hours, storage_bytes) -> None:
    """Test that attached add-ons raise the effective quota without touching the stored quota."""
    from subscriptions.models.resource_type import ResourceType
    from subscriptions.services.addon_service import AddonService
    from subscriptions.services.quota_service import QuotaService

    gpu = ResourceType(name="gpu.time", unit="hours", consumable=True)
    db_session.add(gpu)
    await db_session.commit()

    service = AddonService(db_session)
    cpu_pack = await service.add_addon(
        AddonCreate(**AddonFactory.create({"resource_type": ResourceTypeRef(id=cpu_hours.id), "default_amount": 10}))
    )
    gpu_pack = await service.add_addon(
        AddonCreate(**AddonFactory.create({"resource_type": ResourceTypeRef(id=gpu.id), "default_amount": 4}))
    )
    await service.attach(test_subscription.id, cpu_pack.id)
    await service.attach(test_subscription.id, cpu_pack.id, amount=5)
    await service.attach(test_subscription.id, gpu_pack.id)
    await db_session.commit()

    effective = {q.resource_type.name: q for q in await service.effective_quotas(test_subscription.id)}

    assert effective["cpu.time"].base_quota == 20
    assert effective["cpu.time"].addon_amount == 15
    assert effective["cpu.time"].effective_quota == 35
    assert effective["data.size"].effective_quota == 100
    assert effective["gpu.time"].base_quota == 0
    assert effective["gpu.time"].effective_quota == 4

    stored = {q.resource_type_id: q.quota_value for q in await QuotaService(db_session).list_quotas(test_subscription.id)}
    assert stored[cpu_hours.id] == 20
    assert gpu.id not in stored


@pytest.mark.asyncio
async def test_detach(db_session: AsyncSession, test_subscription, cpu_hours) -> None:
    """Test that a detached add-on no longer counts."""
    from subscriptions.services.addon_service import AddonService

    service = AddonService(db_session)
    addon = await service.add_addon(
        AddonCreate(**AddonFactory.create({"resource_type": ResourceTypeRef(id=cpu_hours.id), "default_amount": 10}))
    )
    attachment = await service.attach(test_subscription.id, addon.id)
    await db_session.commit()

    with pytest.raises(NotFound):
        await service.detach(uuid4(), attachment.id)

    await service.detach(test_subscription.id, attachment.id)
    await db_session.commit()

    assert await service.list_subscription_addons(test_subscription.id) == []
    effective = {q.resource_type.name: q for q in await service.effective_quotas(test_subscription.id)}
    assert effective["cpu.time"].effective_quota == 20


@pytest.mark.asyncio
async def test_update_and_delete_addon(db_session: AsyncSession, test_subscription, cpu_hours, storage_bytes) -> None:
    """Test partial updates and deletion of catalogue entries."""
    from subscriptions.services.addon_service import AddonService

    service = AddonService(db_session)
    addon = await service.add_addon(
        AddonCreate(**AddonFactory.create({"resource_type": ResourceTypeRef(id=cpu_hours.id), "default_amount": 10}))
    )
    pinned = await service.attach(test_subscription.id, addon.id)
    await db_session.commit()

    updated = await service.update_addon(
        addon.id, AddonUpdate(default_amount=25, resource_type_id=storage_bytes.id)
    )
    await db_session.commit()

    assert updated.default_amount == 25
    assert updated.resource_type_id == storage_bytes.id
    assert pinned.amount == 10

    await service.delete_addon(addon.id)
    await db_session.commit()

    assert await service.get_addon(addon.id) is None
    assert await service.list_subscription_addons(test_subscription.id) == []
    assert await service.list_addons() == []


@pytest.mark.asyncio
async def test_duplicate_addon_names(db_session: AsyncSession, cpu_hours) -> None:
    """Test that add-on names stay unique on create and on rename."""
    from subscriptions.services.addon_service import AddonService

    service = AddonService(db_session)
    cpu_ref = ResourceTypeRef(id=cpu_hours.id)
    first = await service.add_addon(AddonCreate(**AddonFactory.create({"name": "CPU Pack", "resource_type": cpu_ref})))
    second = await service.add_addon(AddonCreate(**AddonFactory.create({"name": "CPU Boost", "resource_type": cpu_ref})))
    await db_session.commit()

    with pytest.raises(AlreadyExists):
        await service.add_addon(AddonCreate(**AddonFactory.create({"name": "CPU Pack", "resource_type": cpu_ref})))

    with pytest.raises(AlreadyExists):
        await service.update_addon(second.id, AddonUpdate(name="CPU Pack"))

    # Keeping the current name is not a clash
    kept = await service.update_addon(first.id, AddonUpdate(name="CPU Pack", default_amount=5))
    await db_session.commit()

    assert kept.default_amount == 5
    assert [a.name for a in await service.list_addons()] == ["CPU Boost", "CPU Pack"]
