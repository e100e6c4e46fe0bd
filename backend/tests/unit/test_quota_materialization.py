"""Unit tests for quota materialization math."""
from datetime import datetime, timedelta
from uuid import uuid4

import pytest

from subscriptions.models.plan import PlanQuotaDefault
from subscriptions.models.resource_type import ResourceType
from subscriptions.services.plan_service import select_active_quota_defaults
from subscriptions.services.quota_service import build_quotas, compute_quota_value


def _resource_type(name: str, consumable: bool) -> ResourceType:
    return ResourceType(id=uuid4(), name=name, unit="units", consumable=consumable)


def _default(resource_type: ResourceType, quota_value: float, effective_date: datetime) -> PlanQuotaDefault:
    return PlanQuotaDefault(
        id=uuid4(),
        resource_type_id=resource_type.id,
        resource_type=resource_type,
        quota_value=quota_value,
        effective_date=effective_date,
    )


@pytest.mark.parametrize(
    "quota_value,consumable,periods,expected",
    [
        (20, False, 1, 20),
        (20, True, 1, 20),
        (20, False, 3, 60),
        (20, True, 3, 180),
        (0, True, 5, 0),
        (1.5, False, 2, 3.0),
    ],
)
def test_compute_quota_value(quota_value: float, consumable: bool, periods: int, expected: float) -> None:
    """Test that consumable resources are multiplied by the period count twice."""
    assert compute_quota_value(quota_value, consumable, periods) == expected


def test_build_quotas_one_row_per_default() -> None:
    """Test that every default yields exactly one quota row with the scaled value."""
    cpu = _resource_type("cpu.time", consumable=True)
    storage = _resource_type("data.size", consumable=False)
    now = datetime(2024, 1, 1)
    subscription_id = uuid4()

    quotas = build_quotas(
        [_default(cpu, 20, now), _default(storage, 100, now)],
        subscription_id,
        periods=2,
        actor="de",
    )

    assert len(quotas) == 2
    assert len({q.resource_type_id for q in quotas}) == 2
    values = {q.resource_type.name: q.quota_value for q in quotas}
    assert values == {"cpu.time": 80, "data.size": 200}
    assert all(q.subscription_id == subscription_id for q in quotas)
    assert all(q.created_by == "de" and q.last_modified_by == "de" for q in quotas)


def test_build_quotas_without_defaults() -> None:
    """Test that a plan without quota defaults materializes nothing."""
    assert build_quotas([], uuid4(), periods=1, actor="de") == []


def test_build_quotas_rejects_zero_periods() -> None:
    """Test that the period count must be positive."""
    cpu = _resource_type("cpu.time", consumable=True)

    with pytest.raises(ValueError):
        build_quotas([_default(cpu, 20, datetime(2024, 1, 1))], uuid4(), periods=0, actor="de")


def test_select_active_quota_defaults_latest_per_resource_type() -> None:
    """Test that only the latest default already in effect counts for each resource type."""
    cpu = _resource_type("cpu.time", consumable=True)
    storage = _resource_type("data.size", consumable=False)
    now = datetime(2024, 6, 1)

    old_cpu = _default(cpu, 10, now - timedelta(days=100))
    new_cpu = _default(cpu, 30, now - timedelta(days=1))
    future_cpu = _default(cpu, 99, now + timedelta(days=1))
    only_future_storage = _default(storage, 500, now + timedelta(days=10))

    selected = select_active_quota_defaults([old_cpu, future_cpu, new_cpu, only_future_storage], now)

    assert selected == [new_cpu]
