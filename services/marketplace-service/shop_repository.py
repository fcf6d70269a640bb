import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from models import Shop, utcnow

logger = logging.getLogger(__name__)


class ShopRepository:
    """Repository for dealer shops."""

    def __init__(self, db: Session):
        self.db = db

    def create_shop(self, owner_id: str, name: str, location: str, owner_name: str, description: str = "") -> Shop:
        """Register a shop; it starts pending admin review."""
        shop = Shop(
            owner_id=owner_id,
            name=name,
            location=location,
            owner_name=owner_name,
            description=description,
            status="pending",
        )
        self.db.add(shop)
        self.db.flush()
        logger.info(f"Registered shop {shop.id} for dealer {owner_id}")
        return shop

    def get(self, shop_id: str) -> Optional[Shop]:
        return self.db.get(Shop, shop_id)

    def get_owned(self, shop_id: str, owner_id: str) -> Optional[Shop]:
        return self.db.query(Shop).filter(Shop.id == shop_id, Shop.owner_id == owner_id).first()

    def list_for_owner(self, owner_id: str) -> List[Shop]:
        return self.db.query(Shop).filter(Shop.owner_id == owner_id).order_by(Shop.created_at.desc()).all()

    def latest_verified_for_owner(self, owner_id: str) -> Optional[Shop]:
        return (
            self.db.query(Shop)
            .filter(Shop.owner_id == owner_id, Shop.status == "verified")
            .order_by(Shop.created_at.desc())
            .first()
        )

    def list_all(self, status: Optional[str] = None) -> List[Shop]:
        query = self.db.query(Shop)
        if status:
            query = query.filter(Shop.status == status)
        return query.order_by(Shop.created_at.desc()).all()

    def update_status(self, shop: Shop, status: str) -> Shop:
        shop.status = status
        if status == "verified":
            shop.verified_at = utcnow()
        self.db.flush()
        logger.info(f"Shop {shop.id} status updated to {status}")
        return shop
