"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state; nothing is shared across
users. State tracks the order IDs returned by creation so follow-up requests
can reference them.
"""

from dataclasses import dataclass, field


@dataclass
class OrderState:
    """Tracks state for a single simulated therapy order lifecycle."""

    order_id: str | None = None
    current_status: str = "draft"
    history_length: int = 0
    applied_statuses: list[str] = field(default_factory=list)


@dataclass
class BrowseState:
    """Tracks the bookmark of a paginated order listing walk."""

    bookmark: str = ""
    pages_read: int = 0
    orders_seen: int = 0
