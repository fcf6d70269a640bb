from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()

USER_ROLES = ("admin", "dealer", "farmer", "delivery")
SHOP_STATUSES = ("pending", "processing", "verified", "rejected")
PAYMENT_MODES = ("cod", "online")


class OrderStatus(str, Enum):
    PLACED = "placed"
    ASSIGNED = "assigned"
    READY = "ready"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    """Readable business id, e.g. ORD-1A2B3C4D5E6F."""
    return f"{prefix}-{uuid4().hex[:12].upper()}"


class User(Base):
    """Marketplace user. Credentials live with the token issuer, not here."""

    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=lambda: new_id("USR"))
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    mobile = Column(String(32), nullable=True)
    role = Column(String(20), nullable=False, index=True)  # admin, dealer, farmer, delivery
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class Shop(Base):
    """Dealer shop. Products can only be listed once the shop is verified."""

    __tablename__ = "shops"

    id = Column(String(32), primary_key=True, default=lambda: new_id("SHOP"))
    owner_id = Column(String(32), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, default="", nullable=False)
    location = Column(String(500), nullable=False)
    owner_name = Column(String(255), nullable=False)
    image_url = Column(String(1000), nullable=True)
    status = Column(String(20), default="pending", nullable=False)
    verified_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class Product(Base):
    """Catalog product. version is bumped on every stock mutation."""

    __tablename__ = "products"

    id = Column(String(32), primary_key=True, default=lambda: new_id("PROD"))
    shop_id = Column(String(32), nullable=False, index=True)
    dealer_id = Column(String(32), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False, index=True)
    description = Column(Text, default="", nullable=False)
    unit = Column(String(20), default="kg", nullable=False)
    price = Column(Float, nullable=False)
    quantity = Column(Integer, default=0, nullable=False)
    warehouse_quantity = Column(Integer, nullable=True)  # dealer-internal stock
    is_published = Column(Boolean, default=False, nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)
    image_url = Column(String(1000), nullable=True)
    version = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class Order(Base):
    """
    Order placed by a farmer against one dealer shop.

    items holds the line snapshots: product_id, product_name, quantity and the
    unit price captured at placement. They never change afterwards.
    """

    __tablename__ = "orders"

    id = Column(String(32), primary_key=True, default=lambda: new_id("ORD"))
    farmer_id = Column(String(32), nullable=False, index=True)
    dealer_id = Column(String(32), nullable=False, index=True)
    shop_id = Column(String(32), nullable=False, index=True)
    items = Column(JSON, nullable=False)
    status = Column(String(20), default="placed", nullable=False, index=True)
    payment_mode = Column(String(20), default="cod", nullable=False)
    delivery_address = Column(JSON, nullable=True)
    total_amount = Column(Float, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class Notification(Base):
    """User-facing notification; only the read flag ever changes."""

    __tablename__ = "notifications"

    id = Column(String(32), primary_key=True, default=lambda: new_id("NTF"))
    user_id = Column(String(32), nullable=False, index=True)
    message = Column(Text, nullable=False)
    type = Column(String(30), default="system", nullable=False)
    read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
