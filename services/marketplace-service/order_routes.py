from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from dependencies import get_current_user, get_workflow, require_roles
from models import OrderStatus, User
from order_workflow import OrderWorkflow
from schemas import (
    AssignOrderRequest,
    DeliveryStatusRequest,
    OrderResponse,
    PlaceOrderRequest,
    UpdateOrderStatusRequest,
)

router = APIRouter(prefix="/orders", tags=["orders"])


# ==================== FARMER ROUTES ====================

@router.post("/place", status_code=status.HTTP_201_CREATED)
def place_order(
    request: PlaceOrderRequest,
    farmer: User = Depends(require_roles("farmer")),
    workflow: OrderWorkflow = Depends(get_workflow),
) -> dict:
    """Place an order, reserving stock for every line."""
    order = workflow.place_order(farmer, request)
    return {
        "success": True,
        "message": "Order placed successfully",
        "order": OrderResponse.model_validate(order),
    }


@router.get("/farmer/my-orders")
def farmer_orders(
    farmer: User = Depends(require_roles("farmer")),
    workflow: OrderWorkflow = Depends(get_workflow),
) -> dict:
    orders = workflow.list_farmer_orders(farmer)
    return {"success": True, "orders": [OrderResponse.model_validate(o) for o in orders]}


@router.patch("/farmer/{order_id}/cancel")
def cancel_order(
    order_id: str,
    farmer: User = Depends(require_roles("farmer")),
    workflow: OrderWorkflow = Depends(get_workflow),
) -> dict:
    """Cancel an order and give its stock back."""
    order = workflow.cancel_order(farmer, order_id)
    return {
        "success": True,
        "message": "Order cancelled successfully",
        "order": OrderResponse.model_validate(order),
    }


# ==================== DEALER ROUTES ====================

@router.get("/dealer/my-orders")
def dealer_orders(
    dealer: User = Depends(require_roles("dealer")),
    workflow: OrderWorkflow = Depends(get_workflow),
) -> dict:
    orders = workflow.list_dealer_orders(dealer)
    return {"success": True, "orders": [OrderResponse.model_validate(o) for o in orders]}


@router.patch("/dealer/{order_id}/status")
def update_order_status(
    order_id: str,
    request: UpdateOrderStatusRequest,
    dealer: User = Depends(require_roles("dealer")),
    workflow: OrderWorkflow = Depends(get_workflow),
) -> dict:
    order = workflow.dealer_update_status(dealer, order_id, request.status)
    return {
        "success": True,
        "message": "Order status updated successfully",
        "order": OrderResponse.model_validate(order),
    }


# ==================== ADMIN ROUTES ====================

@router.get("/admin/all")
def all_orders(
    status_filter: Optional[OrderStatus] = Query(default=None, alias="status"),
    admin: User = Depends(require_roles("admin")),
    workflow: OrderWorkflow = Depends(get_workflow),
) -> dict:
    orders = workflow.list_all_orders(status_filter)
    return {
        "success": True,
        "orders": [OrderResponse.model_validate(o) for o in orders],
        "count": len(orders),
    }


@router.patch("/admin/{order_id}/assign")
def assign_order(
    order_id: str,
    request: AssignOrderRequest,
    admin: User = Depends(require_roles("admin")),
    workflow: OrderWorkflow = Depends(get_workflow),
) -> dict:
    """Assign a placed order, optionally to another dealer."""
    order = workflow.assign_order(admin, order_id, request.dealer_id)
    return {
        "success": True,
        "message": "Order assigned to dealer",
        "order": OrderResponse.model_validate(order),
    }


# ==================== DELIVERY ROUTES ====================

@router.get("/delivery/active")
def delivery_orders(
    agent: User = Depends(require_roles("delivery")),
    workflow: OrderWorkflow = Depends(get_workflow),
) -> dict:
    orders = workflow.list_delivery_orders()
    return {
        "success": True,
        "orders": [OrderResponse.model_validate(o) for o in orders],
        "count": len(orders),
    }


@router.patch("/delivery/{order_id}/status")
def delivery_update_status(
    order_id: str,
    request: DeliveryStatusRequest,
    agent: User = Depends(require_roles("delivery")),
    workflow: OrderWorkflow = Depends(get_workflow),
) -> dict:
    order = workflow.delivery_update_status(agent, order_id, OrderStatus(request.status))
    return {
        "success": True,
        "message": f"Order status updated to {request.status}",
        "order": OrderResponse.model_validate(order),
    }


@router.get("/{order_id}")
def get_order(
    order_id: str,
    user: User = Depends(get_current_user),
    workflow: OrderWorkflow = Depends(get_workflow),
) -> dict:
    order = workflow.get_order(user, order_id)
    return {"success": True, "order": OrderResponse.model_validate(order)}
