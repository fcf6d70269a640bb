import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, case, null, or_
from sqlalchemy.orm import Session

from models import Product, utcnow

logger = logging.getLogger(__name__)


class CatalogRepository:
    """
    Repository for product records.

    Stock moves only through reserve() and release(), each a single
    conditional UPDATE, so concurrent orders against one product can never
    take its quantity below zero.
    """

    def __init__(self, db: Session):
        """Initialize with database session."""
        self.db = db

    def get(self, product_id: str) -> Optional[Product]:
        """Get product by ID."""
        return self.db.get(Product, product_id)

    def refetch(self, product_id: str) -> Optional[Product]:
        """Re-read a product from the database, bypassing in-session state."""
        return self.db.query(Product).populate_existing().filter(Product.id == product_id).first()

    def save(self, product: Product) -> Product:
        """Insert or update a single product."""
        self.db.add(product)
        self.db.flush()
        return product

    def reserve(self, product_id: str, quantity: int) -> bool:
        """
        Atomically take `quantity` units of a product.

        The row is only touched while it is published, available and holds at
        least `quantity` units; warehouse stock moves by the same delta,
        floored at 0, and the product is marked unavailable when its quantity
        reaches 0. Returns False when no row matched.
        """
        updated = (
            self.db.query(Product)
            .filter(
                and_(
                    Product.id == product_id,
                    Product.quantity >= quantity,
                    Product.is_published.is_(True),
                    Product.is_available.is_(True),
                )
            )
            .update(
                {
                    Product.quantity: Product.quantity - quantity,
                    Product.warehouse_quantity: case(
                        (Product.warehouse_quantity.is_(None), null()),
                        (Product.warehouse_quantity >= quantity, Product.warehouse_quantity - quantity),
                        else_=0,
                    ),
                    Product.is_available: case((Product.quantity > quantity, True), else_=False),
                    Product.version: Product.version + 1,
                    Product.updated_at: utcnow(),
                },
                synchronize_session=False,
            )
        )

        if updated == 0:
            logger.warning(f"Reservation of {quantity} units of {product_id} matched no row")
            return False

        self._expire(product_id)
        logger.info(f"Reserved {quantity} units of {product_id}")
        return True

    def release(self, product_id: str, quantity: int) -> bool:
        """
        Atomically give back `quantity` units of a product.

        Availability is re-asserted once the quantity is positive. Returns
        False when the product no longer exists.
        """
        updated = (
            self.db.query(Product)
            .filter(Product.id == product_id)
            .update(
                {
                    Product.quantity: Product.quantity + quantity,
                    Product.warehouse_quantity: case(
                        (Product.warehouse_quantity.is_(None), null()),
                        else_=Product.warehouse_quantity + quantity,
                    ),
                    Product.is_available: case(
                        (Product.quantity + quantity > 0, True),
                        else_=Product.is_available,
                    ),
                    Product.version: Product.version + 1,
                    Product.updated_at: utcnow(),
                },
                synchronize_session=False,
            )
        )

        if updated == 0:
            logger.warning(f"Product {product_id} no longer exists, skipping stock release")
            return False

        self._expire(product_id)
        logger.info(f"Released {quantity} units of {product_id}")
        return True

    def find_available(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
    ) -> List[Product]:
        """Products a farmer can browse: published, available and in stock."""
        query = self.db.query(Product).filter(
            Product.is_published.is_(True),
            Product.is_available.is_(True),
            Product.quantity > 0,
        )

        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))
        if category:
            query = query.filter(Product.category == category)
        if min_price is not None:
            query = query.filter(Product.price >= min_price)
        if max_price is not None:
            query = query.filter(Product.price <= max_price)

        return query.order_by(Product.created_at.desc()).all()

    def list_for_dealer(self, dealer_id: str) -> List[Product]:
        return (
            self.db.query(Product)
            .filter(Product.dealer_id == dealer_id)
            .order_by(Product.created_at.desc())
            .all()
        )

    def get_for_dealer(self, product_id: str, dealer_id: str) -> Optional[Product]:
        return (
            self.db.query(Product)
            .filter(Product.id == product_id, Product.dealer_id == dealer_id)
            .first()
        )

    def create_product(self, dealer_id: str, shop_id: str, fields: Dict[str, Any]) -> Product:
        """Create a product; warehouse stock starts equal to quantity unless given."""
        warehouse_quantity = fields.get("warehouse_quantity")
        if warehouse_quantity is None:
            warehouse_quantity = fields["quantity"]

        product = Product(
            shop_id=shop_id,
            dealer_id=dealer_id,
            name=fields["name"],
            category=fields["category"],
            description=fields.get("description") or "",
            unit=fields.get("unit") or "kg",
            price=fields["price"],
            quantity=fields["quantity"],
            warehouse_quantity=warehouse_quantity,
            is_published=fields.get("is_published", False),
            is_available=fields["quantity"] > 0,
        )
        self.save(product)
        logger.info(f"Created product {product.id}: {product.name}, quantity: {product.quantity}")
        return product

    def update_product(self, product: Product, changes: Dict[str, Any]) -> Product:
        """Apply a partial update and keep availability consistent with stock."""
        for field, value in changes.items():
            setattr(product, field, value)

        if product.quantity <= 0:
            product.is_available = False
        elif "quantity" in changes and "is_available" not in changes:
            product.is_available = True
        if "quantity" in changes or "warehouse_quantity" in changes:
            product.version += 1

        self.save(product)
        logger.info(f"Updated product {product.id}: {sorted(changes)}")
        return product

    def delete(self, product: Product) -> None:
        self.db.delete(product)
        self.db.flush()
        logger.info(f"Deleted product {product.id}")

    def _expire(self, product_id: str) -> None:
        """Drop stale in-session state after a bulk UPDATE."""
        product = self.db.identity_map.get(self.db.identity_key(Product, product_id))
        if product is not None:
            self.db.expire(product)
