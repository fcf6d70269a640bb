"""
events.py - Order Domain Event Schema Definitions

PURPOSE:
    Defines the events the marketplace publishes to Kafka as orders move
    through their lifecycle. Uses Pydantic for validation and serialization.

EVENT CATEGORIES:
    1. Order Events: Order lifecycle
       - order.placed
       - order.status_changed
       - order.cancelled

    2. Inventory Events: Stock management
       - inventory.depleted

COMMON FIELDS (BaseEvent):
    - event_id: Unique identifier (UUID)
    - event_type: Event category and action
    - timestamp: Timezone-aware timestamp of event creation
    - correlation_id: The order id the event belongs to

SERIALIZATION:
    json_data = event.model_dump_json()
    event = OrderPlacedEvent.model_validate_json(json_data)
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field


class BaseEvent(BaseModel):
    """
    Base event model for all Kafka events.

    All events inherit from this class and include:
    - Unique event ID
    - Event type identifier
    - UTC timestamp
    - Correlation ID linking the event to its order
    """

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    event_type: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    correlation_id: str


# ============================================================================
# ORDER EVENTS - Order lifecycle
# ============================================================================

class OrderPlacedEvent(BaseEvent):
    """
    Event published when a farmer places an order.
    Triggers: Order workflow after the order and its reservations commit
    Consumers: Dealer dashboards, analytics
    """

    event_type: str = "order.placed"
    order_id: str
    farmer_id: str
    dealer_id: str
    shop_id: str
    items: List[Dict[str, Any]]
    total_amount: float
    payment_mode: str


class OrderStatusChangedEvent(BaseEvent):
    """
    Event published when an order moves to a new status.
    Triggers: Dealer status update, admin assignment, delivery agent update
    Consumers: Farmer-facing tracking, analytics
    """

    event_type: str = "order.status_changed"
    order_id: str
    farmer_id: str
    dealer_id: str
    old_status: str
    new_status: str
    changed_by: str = "dealer"  # "dealer", "admin" or "delivery"


class OrderCancelledEvent(BaseEvent):
    """
    Event published when an order is cancelled and its stock released.
    Triggers: Farmer cancellation or dealer setting status to cancelled
    """

    event_type: str = "order.cancelled"
    order_id: str
    farmer_id: str
    dealer_id: Optional[str] = None
    cancelled_by: str  # "farmer" or "dealer"


# ============================================================================
# INVENTORY EVENTS - Stock management
# ============================================================================

class InventoryDepletedEvent(BaseEvent):
    """
    Event published when a reservation takes a product's quantity to zero.
    Consumers: Dealer restock alerts
    """

    event_type: str = "inventory.depleted"
    product_id: str
    dealer_id: str


EVENT_TYPE_MAP = {
    "order.placed": OrderPlacedEvent,
    "order.status_changed": OrderStatusChangedEvent,
    "order.cancelled": OrderCancelledEvent,
    "inventory.depleted": InventoryDepletedEvent,
}

ALL_TOPICS = list(EVENT_TYPE_MAP)
