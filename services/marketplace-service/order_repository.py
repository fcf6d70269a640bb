import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from models import Order, OrderStatus, User, utcnow

logger = logging.getLogger(__name__)


class OrderRepository:
    """Repository for order operations."""

    def __init__(self, db: Session):
        """Initialize with database session."""
        self.db = db

    def create_order(
        self,
        farmer_id: str,
        dealer_id: str,
        shop_id: str,
        items: List[Dict[str, Any]],
        total_amount: float,
        payment_mode: str,
        delivery_address: Optional[Dict[str, Any]] = None,
    ) -> Order:
        """Create a new order in placed status."""
        order = Order(
            farmer_id=farmer_id,
            dealer_id=dealer_id,
            shop_id=shop_id,
            items=items,
            total_amount=total_amount,
            payment_mode=payment_mode,
            delivery_address=delivery_address,
            status=OrderStatus.PLACED.value,
        )
        self.db.add(order)
        self.db.flush()
        logger.info(f"Created order {order.id} for farmer {farmer_id}", extra={"correlation_id": order.id})
        return order

    def get_order(self, order_id: str) -> Optional[Order]:
        """Get order by id."""
        return self.db.get(Order, order_id)

    def get_farmer_order(self, order_id: str, farmer_id: str) -> Optional[Order]:
        return self.db.query(Order).filter(Order.id == order_id, Order.farmer_id == farmer_id).first()

    def get_dealer_order(self, order_id: str, dealer_id: str) -> Optional[Order]:
        return self.db.query(Order).filter(Order.id == order_id, Order.dealer_id == dealer_id).first()

    def compare_and_set_status(
        self,
        order: Order,
        expected: Iterable[str],
        status: str,
        changes: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Move the order to `status` only if it is still in one of `expected`.

        `changes` are extra column values written by the same UPDATE.
        """
        values = {Order.status: status, Order.updated_at: utcnow()}
        for field, value in (changes or {}).items():
            values[getattr(Order, field)] = value

        updated = (
            self.db.query(Order)
            .filter(Order.id == order.id, Order.status.in_(list(expected)))
            .update(values, synchronize_session=False)
        )
        self.db.expire(order)
        if updated:
            logger.info(f"Updated order {order.id} status to {status}", extra={"correlation_id": order.id})
        return updated > 0

    def list_for_farmer(self, farmer_id: str) -> List[Order]:
        return self.db.query(Order).filter(Order.farmer_id == farmer_id).order_by(Order.created_at.desc()).all()

    def list_for_dealer(self, dealer_id: str) -> List[Order]:
        return self.db.query(Order).filter(Order.dealer_id == dealer_id).order_by(Order.created_at.desc()).all()

    def list_all(self, status: Optional[str] = None) -> List[Order]:
        query = self.db.query(Order)
        if status:
            query = query.filter(Order.status == status)
        return query.order_by(Order.created_at.desc()).all()

    def list_by_statuses(self, statuses: Iterable[str]) -> List[Order]:
        return (
            self.db.query(Order)
            .filter(Order.status.in_(list(statuses)))
            .order_by(Order.created_at.desc())
            .all()
        )

    def get_active_admin_ids(self) -> List[str]:
        rows = self.db.query(User.id).filter(User.role == "admin", User.is_active.is_(True)).all()
        return [row.id for row in rows]
