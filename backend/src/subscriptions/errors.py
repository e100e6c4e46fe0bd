"""Domain errors raised by the accounting core.

Every error carries a machine-readable ``code`` and the HTTP status the API
layer answers with. Only :class:`Conflict` is retryable.
"""
from typing import Any


class SubscriptionsError(Exception):
    """Base class for all accounting errors."""

    code = "subscriptions_error"
    status_code = 500
    retryable = False

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFound(SubscriptionsError):
    """A referenced plan, add-on, subscription, user or resource type does not exist."""

    code = "not_found"
    status_code = 404

    def __init__(self, entity: str, identifier: Any):
        super().__init__(f"{entity} {identifier} not found", entity=entity, identifier=str(identifier))
        self.entity = entity
        self.identifier = identifier


class AlreadyExists(SubscriptionsError):
    """A plan, add-on or resource type with the same name is already registered."""

    code = "already_exists"
    status_code = 409

    def __init__(self, entity: str, identifier: Any):
        super().__init__(f"{entity} {identifier} already exists", entity=entity, identifier=str(identifier))
        self.entity = entity
        self.identifier = identifier


class NoEffectiveRate(SubscriptionsError):
    """The plan has no rate in effect, so nobody can subscribe to it."""

    code = "no_effective_rate"
    status_code = 422

    def __init__(self, plan_name: str):
        super().__init__(f"the {plan_name} subscription plan has no effective rate", plan=plan_name)
        self.plan_name = plan_name


class InvalidUpdateOperation(SubscriptionsError):
    """The usage update operation is neither ADD nor SET."""

    code = "invalid_update_operation"
    status_code = 400

    def __init__(self, operation: str):
        super().__init__(f"invalid update operation: {operation!r}", operation=operation)
        self.operation = operation


class UnknownResourceType(SubscriptionsError):
    """The resource type named by a usage update cannot be resolved."""

    code = "unknown_resource_type"
    status_code = 400

    def __init__(self, name: str, unit: str | None = None):
        label = f"{name} ({unit})" if unit else name
        super().__init__(f"unknown resource type: {label}", name=name, unit=unit)
        self.name = name
        self.unit = unit


class InvalidSubscriptionPeriod(SubscriptionsError):
    """The subscription would end before it starts."""

    code = "invalid_subscription_period"
    status_code = 400


class Conflict(SubscriptionsError):
    """A concurrent update to the same usage row could not be serialized."""

    code = "conflict"
    status_code = 409
    retryable = True
