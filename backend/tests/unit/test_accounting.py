"""Unit tests for usage arithmetic, overage joins and add-on folding."""
from types import SimpleNamespace
from uuid import uuid4

import pytest
from pydantic import ValidationError

from subscriptions.errors import InvalidUpdateOperation
from subscriptions.schemas.usage import UsageUpdateCreate
from subscriptions.models.usage import UpdateOperation
from subscriptions.services.addon_service import fold_addons
from subscriptions.services.overage_service import join_overages
from subscriptions.services.usage_service import apply_operation, parse_operation


def _resource_type(name: str, unit: str = "units") -> SimpleNamespace:
    return SimpleNamespace(id=uuid4(), name=name, unit=unit, consumable=False)


def _subscription() -> SimpleNamespace:
    return SimpleNamespace(
        id=uuid4(),
        user=SimpleNamespace(username="alice"),
        plan=SimpleNamespace(name="Basic"),
    )


def _row(subscription, resource_type, **values) -> SimpleNamespace:
    return SimpleNamespace(
        subscription_id=subscription.id,
        resource_type_id=resource_type.id,
        resource_type=resource_type,
        **values,
    )


@pytest.mark.parametrize("name", ["ADD", "add", " Set ", UpdateOperation.SET])
def test_parse_operation_accepts_known_operations(name) -> None:
    """Test that operation names are matched case-insensitively."""
    assert parse_operation(name) in (UpdateOperation.ADD, UpdateOperation.SET)


@pytest.mark.parametrize("name", ["INCREMENT", "", "DELETE"])
def test_parse_operation_rejects_unknown(name: str) -> None:
    """Test that anything but ADD and SET is rejected."""
    with pytest.raises(InvalidUpdateOperation):
        parse_operation(name)


def test_apply_operation() -> None:
    """Test ADD and SET on existing and missing counters."""
    assert apply_operation(None, UpdateOperation.ADD, 5) == 5
    assert apply_operation(None, UpdateOperation.SET, 5) == 5
    assert apply_operation(10, UpdateOperation.ADD, 5) == 15
    assert apply_operation(10, UpdateOperation.SET, 5) == 5
    assert apply_operation(apply_operation(0, UpdateOperation.SET, 7), UpdateOperation.SET, 7) == 7


@pytest.mark.parametrize("amount", [float("nan"), float("inf"), float("-inf")])
def test_usage_update_amount_must_be_finite(amount: float) -> None:
    """Test that NaN and infinite amounts are rejected while negative ones pass."""
    with pytest.raises(ValidationError):
        UsageUpdateCreate(resource_name="cpu.time", resource_unit="hours", operation="ADD", amount=amount)

    assert UsageUpdateCreate(resource_name="cpu.time", resource_unit="hours", operation="SET", amount=-2.5).amount == -2.5


def test_join_overages_measures_usage_against_quota() -> None:
    """Test the quota/usage join per resource type."""
    subscription = _subscription()
    cpu = _resource_type("cpu.time", "hours")
    storage = _resource_type("data.size", "bytes")
    network = _resource_type("net.egress", "bytes")

    quotas = [
        _row(subscription, cpu, quota_value=10.0),
        _row(subscription, storage, quota_value=10.0),
        _row(subscription, network, quota_value=50.0),  # never used
    ]
    usages = [
        _row(subscription, cpu, usage_value=15.0),
        _row(subscription, storage, usage_value=10.0),
    ]

    overages = join_overages(subscription, quotas, usages)

    assert [o.resource_type.name for o in overages] == ["cpu.time", "data.size"]
    cpu_overage, storage_overage = overages
    assert cpu_overage.overage == 5.0
    assert cpu_overage.exceeded
    assert storage_overage.overage == 0.0
    assert not storage_overage.exceeded
    assert cpu_overage.user == "alice"
    assert cpu_overage.plan == "Basic"


def test_join_overages_usage_without_quota() -> None:
    """Test that usage of an unprovisioned resource type counts against zero quota."""
    subscription = _subscription()
    gpu = _resource_type("gpu.time", "hours")

    overages = join_overages(subscription, [], [_row(subscription, gpu, usage_value=3.0)])

    assert len(overages) == 1
    assert overages[0].quota_value == 0.0
    assert overages[0].overage == 3.0


def test_fold_addons() -> None:
    """Test that add-on amounts are summed onto the base quota per resource type."""
    subscription = _subscription()
    cpu = _resource_type("cpu.time", "hours")
    gpu = _resource_type("gpu.time", "hours")

    def attachment(resource_type, amount, default_amount):
        addon = SimpleNamespace(resource_type_id=resource_type.id, resource_type=resource_type, default_amount=default_amount)
        effective = amount if amount is not None else default_amount
        return SimpleNamespace(addon=addon, amount=amount, effective_amount=effective)

    quotas = [_row(subscription, cpu, quota_value=20.0)]
    attachments = [
        attachment(cpu, 5.0, 10.0),
        attachment(cpu, None, 10.0),
        attachment(gpu, None, 2.0),
    ]

    effective = {q.resource_type.name: q for q in fold_addons(quotas, attachments)}

    assert effective["cpu.time"].base_quota == 20.0
    assert effective["cpu.time"].addon_amount == 15.0
    assert effective["cpu.time"].effective_quota == 35.0
    assert effective["gpu.time"].base_quota == 0.0
    assert effective["gpu.time"].effective_quota == 2.0
    # Stored quota rows are not touched
    assert quotas[0].quota_value == 20.0
