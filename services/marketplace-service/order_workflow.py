"""
order_workflow.py - Order lifecycle and inventory reservation

PURPOSE:
    Places orders against a dealer shop, reserving stock for every line, and
    drives orders through their status state machine, giving stock back when
    an order is cancelled.

PLACEMENT (all-or-nothing):
    1. Resolve the shop to find the dealer (ShopNotFound otherwise)
    2. For each line, in request order:
       - product must exist (ProductNotFound)
       - product must be published and available (ProductUnavailable)
       - product quantity must cover the line (InsufficientStock)
       - capture the unit price, then reserve through the catalog's
         conditional UPDATE; a lost race re-reads and retries once, then
         reports why (StockConflict when the product still looks orderable)
    3. Create the order in `placed` with the captured line snapshots
    4. Commit once; any failure rolls back every reservation made so far
    5. After commit: notify the dealer and every active admin, publish
       order.placed and inventory.depleted events

STATE MACHINE:
    placed -> assigned -> ready -> in_transit -> delivered
    cancelled is reachable from any non-terminal state.

    With enforce_status_order (default) transitions are forward-only,
    skipping ahead is allowed, delivered and cancelled are terminal and
    re-setting the current status is rejected. Without it any status may
    follow any other, except that a cancelled order never leaves cancelled:
    its stock has already gone back and is not reserved again.

    Status moves come from three actors:
        dealer   - any status on their own orders
        admin    - assignment, placed -> assigned, optionally to another dealer
        delivery - in_transit or delivered on any order

CANCELLATION:
    Farmers may cancel while the order is placed or assigned. Dealers cancel
    through the status update. Either way every line's quantity goes back to
    its product (missing products are skipped) in the same transaction that
    flips the status, and the flip is a compare-and-set on the prior status
    so two racing cancellations cannot both release stock.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from catalog_repository import CatalogRepository
from errors import (
    InsufficientStockError,
    InvalidRequestError,
    InvalidTransitionError,
    OrderNotFoundError,
    ProductNotFoundError,
    ProductUnavailableError,
    ShopNotFoundError,
    StockConflictError,
)
from events import InventoryDepletedEvent, OrderCancelledEvent, OrderPlacedEvent, OrderStatusChangedEvent
from models import Order, OrderStatus, Product, User
from notification_service import NotificationService
from order_repository import OrderRepository
from schemas import PlaceOrderRequest
from shop_repository import ShopRepository

logger = logging.getLogger(__name__)

FORWARD_SEQUENCE = [
    OrderStatus.PLACED,
    OrderStatus.ASSIGNED,
    OrderStatus.READY,
    OrderStatus.IN_TRANSIT,
    OrderStatus.DELIVERED,
]
TERMINAL_STATUSES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}
FARMER_CANCELLABLE = {OrderStatus.PLACED, OrderStatus.ASSIGNED}
DELIVERY_STATUSES = {OrderStatus.IN_TRANSIT, OrderStatus.DELIVERED}
ACTIVE_DELIVERY_STATUSES = [OrderStatus.ASSIGNED, OrderStatus.READY, OrderStatus.IN_TRANSIT]


def check_transition(current: OrderStatus, requested: OrderStatus, enforce_order: bool = True) -> None:
    """Raise InvalidTransitionError when the move is not allowed."""
    # Leaving cancelled would need the released stock reserved again
    if current == OrderStatus.CANCELLED and requested != OrderStatus.CANCELLED:
        raise InvalidTransitionError(current.value, requested.value, "Order is already cancelled")
    if not enforce_order:
        return

    if current in TERMINAL_STATUSES:
        raise InvalidTransitionError(current.value, requested.value, f"Order is already {current.value}")
    if requested == current:
        raise InvalidTransitionError(current.value, requested.value, f"Order is already {current.value}")
    if requested == OrderStatus.CANCELLED:
        return
    if FORWARD_SEQUENCE.index(requested) < FORWARD_SEQUENCE.index(current):
        raise InvalidTransitionError(current.value, requested.value)


def short_id(order: Order) -> str:
    return order.id[-6:]


class OrderWorkflow:
    """Runs order placement, cancellation and status changes in one session."""

    MAX_RESERVE_ATTEMPTS = 2

    def __init__(self, db: Session, publisher, enforce_status_order: bool = True):
        self.db = db
        self.publisher = publisher
        self.enforce_status_order = enforce_status_order
        self.catalog = CatalogRepository(db)
        self.orders = OrderRepository(db)
        self.shops = ShopRepository(db)
        self.notifications = NotificationService(db)

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------

    def place_order(self, farmer: User, request: PlaceOrderRequest) -> Order:
        """Reserve stock for every line and create the order, or change nothing."""
        depleted: List[Product] = []

        try:
            shop = self.shops.get(request.shop_id)
            if not shop:
                raise ShopNotFoundError(request.shop_id)

            items = []
            total_amount = 0.0
            for line in request.products:
                product, unit_price = self._reserve_line(line.product_id, line.quantity)
                items.append(
                    {
                        "product_id": product.id,
                        "product_name": product.name,
                        "quantity": line.quantity,
                        "price": unit_price,
                    }
                )
                total_amount += unit_price * line.quantity
                if product.quantity <= 0:
                    depleted.append(product)

            order = self.orders.create_order(
                farmer_id=farmer.id,
                dealer_id=shop.owner_id,
                shop_id=shop.id,
                items=items,
                total_amount=round(total_amount, 2),
                payment_mode=request.payment_mode,
                delivery_address=request.delivery_address.model_dump() if request.delivery_address else None,
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Order {order.id} placed by farmer {farmer.id}: {len(items)} lines, total {order.total_amount}",
            extra={"correlation_id": order.id},
        )

        admin_ids = self.orders.get_active_admin_ids()
        self.notifications.send_all(
            [(order.dealer_id, f"New order #{short_id(order)} received from {farmer.name}", "order")]
            + [(admin_id, f"Farmer {farmer.name} placed a new order", "order") for admin_id in admin_ids]
        )

        self.publisher.publish(
            OrderPlacedEvent(
                correlation_id=order.id,
                order_id=order.id,
                farmer_id=order.farmer_id,
                dealer_id=order.dealer_id,
                shop_id=order.shop_id,
                items=order.items,
                total_amount=order.total_amount,
                payment_mode=order.payment_mode,
            )
        )
        for product in depleted:
            self.publisher.publish(
                InventoryDepletedEvent(correlation_id=order.id, product_id=product.id, dealer_id=product.dealer_id)
            )

        return order

    def _reserve_line(self, product_id: str, quantity: int):
        """
        Validate and reserve one line; returns the product and its captured price.

        A reservation that matches no row means the product changed between
        our read and the update. It is re-read and, if still orderable,
        retried up to MAX_RESERVE_ATTEMPTS times.
        """
        for attempt in range(self.MAX_RESERVE_ATTEMPTS):
            product = self.catalog.get(product_id) if attempt == 0 else self.catalog.refetch(product_id)
            if not product:
                raise ProductNotFoundError(product_id)

            self._check_orderable(product, quantity)
            unit_price = product.price

            if self.catalog.reserve(product.id, quantity):
                return self.catalog.refetch(product_id), unit_price

            logger.warning(
                f"Reservation conflict on {product_id} (attempt {attempt + 1}/{self.MAX_RESERVE_ATTEMPTS})"
            )

        product = self.catalog.refetch(product_id)
        if not product:
            raise ProductNotFoundError(product_id)
        self._check_orderable(product, quantity)
        raise StockConflictError(product.id, product.name)

    @staticmethod
    def _check_orderable(product: Product, quantity: int) -> None:
        if not product.is_published or not product.is_available:
            raise ProductUnavailableError(product.id, product.name)
        if product.quantity < quantity:
            raise InsufficientStockError(product.id, product.name, product.quantity, quantity)

    # ------------------------------------------------------------------
    # Cancellation and status changes
    # ------------------------------------------------------------------

    def cancel_order(self, farmer: User, order_id: str) -> Order:
        """Farmer cancellation, allowed while the order is placed or assigned."""
        order = self.orders.get_farmer_order(order_id, farmer.id)
        if not order:
            raise OrderNotFoundError(order_id)

        current = OrderStatus(order.status)
        if current not in FARMER_CANCELLABLE:
            raise InvalidTransitionError(
                current.value, OrderStatus.CANCELLED.value, "Order cannot be cancelled at this stage"
            )

        try:
            expected = [status.value for status in FARMER_CANCELLABLE]
            if not self.orders.compare_and_set_status(order, expected, OrderStatus.CANCELLED.value):
                raise InvalidTransitionError(
                    current.value, OrderStatus.CANCELLED.value, "Order cannot be cancelled at this stage"
                )
            self._restore_stock(order)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Order {order.id} cancelled by farmer {farmer.id}", extra={"correlation_id": order.id})

        self.notifications.send(order.dealer_id, f"Order #{short_id(order)} was cancelled by the farmer", "order")
        self.publisher.publish(
            OrderCancelledEvent(
                correlation_id=order.id,
                order_id=order.id,
                farmer_id=order.farmer_id,
                dealer_id=order.dealer_id,
                cancelled_by="farmer",
            )
        )
        return order

    def dealer_update_status(self, dealer: User, order_id: str, new_status: OrderStatus) -> Order:
        """Dealer status change; cancelling releases the order's stock."""
        order = self.orders.get_dealer_order(order_id, dealer.id)
        if not order:
            raise OrderNotFoundError(order_id)

        return self._change_status(order, OrderStatus(new_status), changed_by="dealer", actor_id=dealer.id)

    def assign_order(self, admin: User, order_id: str, dealer_id: Optional[str] = None) -> Order:
        """
        Admin assignment of a placed order, optionally handing it to another dealer.

        The new dealer must be an active dealer with a verified shop; the
        order moves to that shop. Stock stays reserved where it was taken.
        """
        order = self.orders.get_order(order_id)
        if not order:
            raise OrderNotFoundError(order_id)

        current = OrderStatus(order.status)
        if current != OrderStatus.PLACED:
            raise InvalidTransitionError(current.value, OrderStatus.ASSIGNED.value, "Order not in placed status")

        changes: Dict[str, Any] = {}
        if dealer_id and dealer_id != order.dealer_id:
            dealer = self.db.get(User, dealer_id)
            if not dealer or dealer.role != "dealer" or not dealer.is_active:
                raise InvalidRequestError("Invalid dealer")
            shop = self.shops.latest_verified_for_owner(dealer.id)
            if not shop:
                raise InvalidRequestError("Dealer has no verified shop")
            changes = {"dealer_id": dealer.id, "shop_id": shop.id}

        order = self._change_status(
            order, OrderStatus.ASSIGNED, changed_by="admin", actor_id=admin.id, changes=changes
        )
        if changes:
            self.notifications.send(order.dealer_id, f"Order #{short_id(order)} has been assigned to you", "order")
        return order

    def delivery_update_status(self, agent: User, order_id: str, new_status: OrderStatus) -> Order:
        """Delivery agent update, limited to in_transit and delivered."""
        new_status = OrderStatus(new_status)
        if new_status not in DELIVERY_STATUSES:
            raise InvalidRequestError("Invalid status")

        order = self.orders.get_order(order_id)
        if not order:
            raise OrderNotFoundError(order_id)

        return self._change_status(order, new_status, changed_by="delivery", actor_id=agent.id)

    def _change_status(
        self,
        order: Order,
        new_status: OrderStatus,
        changed_by: str,
        actor_id: str,
        changes: Optional[Dict[str, Any]] = None,
    ) -> Order:
        """Check, compare-and-set and commit a status move, then notify and publish."""
        old_status = OrderStatus(order.status)
        check_transition(old_status, new_status, self.enforce_status_order)
        cancelling = new_status == OrderStatus.CANCELLED and old_status != OrderStatus.CANCELLED

        try:
            if not self.orders.compare_and_set_status(order, [old_status.value], new_status.value, changes):
                raise InvalidTransitionError(
                    old_status.value, new_status.value, "Order was updated by another request, please retry"
                )
            if cancelling:
                self._restore_stock(order)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"{changed_by.title()} {actor_id} moved order {order.id} from {old_status.value} to {new_status.value}",
            extra={"correlation_id": order.id},
        )

        self.notifications.send(
            order.farmer_id,
            f"Your order #{short_id(order)} status changed from {old_status.value} to {new_status.value}",
            "order",
        )
        self.publisher.publish(
            OrderStatusChangedEvent(
                correlation_id=order.id,
                order_id=order.id,
                farmer_id=order.farmer_id,
                dealer_id=order.dealer_id,
                old_status=old_status.value,
                new_status=new_status.value,
                changed_by=changed_by,
            )
        )
        if cancelling:
            self.publisher.publish(
                OrderCancelledEvent(
                    correlation_id=order.id,
                    order_id=order.id,
                    farmer_id=order.farmer_id,
                    dealer_id=order.dealer_id,
                    cancelled_by=changed_by,
                )
            )
        return order

    def _restore_stock(self, order: Order) -> Dict[str, int]:
        """Give every line's quantity back to its product; returns what was released."""
        released: Dict[str, int] = {}
        for item in order.items:
            product_id = item["product_id"]
            quantity = int(item["quantity"])
            if self.catalog.release(product_id, quantity):
                released[product_id] = released.get(product_id, 0) + quantity
        return released

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_order(self, principal: User, order_id: str) -> Order:
        """Farmers and dealers see their own orders, admins and delivery agents see all."""
        order: Optional[Order] = None
        if principal.role in ("admin", "delivery"):
            order = self.orders.get_order(order_id)
        elif principal.role == "farmer":
            order = self.orders.get_farmer_order(order_id, principal.id)
        elif principal.role == "dealer":
            order = self.orders.get_dealer_order(order_id, principal.id)

        if not order:
            raise OrderNotFoundError(order_id)
        return order

    def list_farmer_orders(self, farmer: User) -> List[Order]:
        return self.orders.list_for_farmer(farmer.id)

    def list_dealer_orders(self, dealer: User) -> List[Order]:
        return self.orders.list_for_dealer(dealer.id)

    def list_all_orders(self, status: Optional[OrderStatus] = None) -> List[Order]:
        return self.orders.list_all(status.value if status else None)

    def list_delivery_orders(self) -> List[Order]:
        """Orders a delivery agent can still move: assigned, ready or in transit."""
        return self.orders.list_by_statuses([status.value for status in ACTIVE_DELIVERY_STATUSES])
