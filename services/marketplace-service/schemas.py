from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from models import OrderStatus


# ============================================================================
# ORDERS
# ============================================================================

class OrderLineRequest(BaseModel):
    """One product line of a place-order request."""

    product_id: str = Field(min_length=1)
    quantity: int = Field(gt=0)


class DeliveryAddress(BaseModel):
    """Address snapshot stored on the order."""

    full_name: str
    mobile: str
    address_line: str
    village: Optional[str] = None
    tehsil: Optional[str] = None
    district: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None


class PlaceOrderRequest(BaseModel):
    """Request to place an order. Payment mode defaults to cash on delivery."""

    shop_id: str = Field(min_length=1)
    products: List[OrderLineRequest] = Field(min_length=1)
    payment_mode: Literal["cod", "online"] = "cod"
    delivery_address: Optional[DeliveryAddress] = None


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatus


class AssignOrderRequest(BaseModel):
    """Admin assignment; omit dealer_id to keep the shop's own dealer."""

    dealer_id: Optional[str] = None


class DeliveryStatusRequest(BaseModel):
    status: Literal["in_transit", "delivered"]


class OrderLineResponse(BaseModel):
    product_id: str
    product_name: Optional[str] = None
    quantity: int
    price: float


class OrderResponse(BaseModel):
    """Response model for order."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    farmer_id: str
    dealer_id: str
    shop_id: str
    items: List[OrderLineResponse]
    status: OrderStatus
    payment_mode: str
    delivery_address: Optional[DeliveryAddress] = None
    total_amount: float
    created_at: datetime
    updated_at: datetime


# ============================================================================
# PRODUCTS
# ============================================================================

class CreateProductRequest(BaseModel):
    """Dealer request to list a product in one of their verified shops."""

    shop_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    description: str = ""
    price: float = Field(gt=0)
    quantity: int = Field(ge=0)
    warehouse_quantity: Optional[int] = Field(default=None, ge=0)
    unit: str = "kg"
    is_published: bool = False


class UpdateProductRequest(BaseModel):
    """Partial product update; omitted fields are left untouched."""

    name: Optional[str] = Field(default=None, min_length=1)
    category: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, gt=0)
    quantity: Optional[int] = Field(default=None, ge=0)
    warehouse_quantity: Optional[int] = Field(default=None, ge=0)
    unit: Optional[str] = None
    is_published: Optional[bool] = None
    is_available: Optional[bool] = None


class ProductResponse(BaseModel):
    """Farmer-facing product view. Never carries warehouse stock."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    shop_id: str
    dealer_id: str
    name: str
    category: str
    description: str
    unit: str
    price: float
    quantity: int
    is_published: bool
    is_available: bool
    image_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class DealerProductResponse(ProductResponse):
    """Dealer view of their own product, including warehouse stock."""

    warehouse_quantity: Optional[int] = None
    version: int


# ============================================================================
# SHOPS
# ============================================================================

class RegisterShopRequest(BaseModel):
    name: str = Field(min_length=1)
    location: str = Field(min_length=1)
    owner_name: str = Field(min_length=1)
    description: str = ""


ShopStatus = Literal["pending", "processing", "verified", "rejected"]


class UpdateShopStatusRequest(BaseModel):
    status: ShopStatus


class ShopResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    name: str
    description: str
    location: str
    owner_name: str
    image_url: Optional[str] = None
    status: str
    verified_at: Optional[datetime] = None
    created_at: datetime


# ============================================================================
# NOTIFICATIONS
# ============================================================================

class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    message: str
    type: str
    read: bool
    created_at: datetime


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
    service: str
    version: str
