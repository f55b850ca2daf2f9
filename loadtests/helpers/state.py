"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance keeps its own state. State tracks the ids
returned by checkout so follow-up requests can reference them.
"""

from dataclasses import dataclass


@dataclass
class CheckoutState:
    """Tracks a single simulated checkout."""

    order_id: str | None = None
    order_number: str | None = None
    intent_id: str | None = None
    current_status: str = "Pending"
