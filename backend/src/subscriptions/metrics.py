"""Business metrics for Prometheus monitoring."""
from prometheus_client import Counter

# Subscription metrics
subscriptions_created_total = Counter(
    "subscriptions_created_total",
    "Total subscriptions created",
    labelnames=["plan", "paid"],
)

# Usage metrics
usage_updates_total = Counter(
    "usage_updates_total",
    "Total usage updates applied",
    labelnames=["operation", "resource_type"],
)

usage_update_conflicts_total = Counter(
    "usage_update_conflicts_total",
    "Total usage updates rejected by a serialization conflict",
    labelnames=["resource_type"],
)

# Add-on metrics
addons_attached_total = Counter(
    "addons_attached_total",
    "Total add-ons attached to subscriptions",
    labelnames=["addon"],
)
