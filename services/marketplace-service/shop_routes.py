from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from dependencies import get_db, require_roles
from errors import ShopNotFoundError
from models import User
from schemas import RegisterShopRequest, ShopResponse, ShopStatus, UpdateShopStatusRequest
from shop_repository import ShopRepository

router = APIRouter(prefix="/shops", tags=["shops"])
admin_router = APIRouter(prefix="/admin", tags=["admin"])


# ==================== DEALER ROUTES ====================

@router.post("/register", status_code=status.HTTP_201_CREATED)
def register_shop(
    request: RegisterShopRequest,
    dealer: User = Depends(require_roles("dealer")),
    db: Session = Depends(get_db),
) -> dict:
    shop = ShopRepository(db).create_shop(
        owner_id=dealer.id,
        name=request.name,
        location=request.location,
        owner_name=request.owner_name,
        description=request.description,
    )
    db.commit()
    return {
        "success": True,
        "message": "Shop registered successfully and pending verification",
        "shop": ShopResponse.model_validate(shop),
    }


@router.get("/list")
def dealer_shops(dealer: User = Depends(require_roles("dealer")), db: Session = Depends(get_db)) -> dict:
    shops = ShopRepository(db).list_for_owner(dealer.id)
    return {"success": True, "shops": [ShopResponse.model_validate(s) for s in shops]}


@router.get("/{shop_id}")
def get_shop(shop_id: str, dealer: User = Depends(require_roles("dealer")), db: Session = Depends(get_db)) -> dict:
    shop = ShopRepository(db).get_owned(shop_id, dealer.id)
    if not shop:
        raise ShopNotFoundError(shop_id)
    return {"success": True, "shop": ShopResponse.model_validate(shop)}


# ==================== ADMIN ROUTES ====================

@admin_router.get("/shops")
def all_shops(
    status_filter: Optional[ShopStatus] = Query(default=None, alias="status"),
    admin: User = Depends(require_roles("admin")),
    db: Session = Depends(get_db),
) -> dict:
    shops = ShopRepository(db).list_all(status_filter)
    return {"success": True, "shops": [ShopResponse.model_validate(s) for s in shops], "count": len(shops)}


@admin_router.patch("/shops/{shop_id}/status")
def update_shop_status(
    shop_id: str,
    request: UpdateShopStatusRequest,
    admin: User = Depends(require_roles("admin")),
    db: Session = Depends(get_db),
) -> dict:
    repo = ShopRepository(db)
    shop = repo.get(shop_id)
    if not shop:
        raise ShopNotFoundError(shop_id)

    repo.update_status(shop, request.status)
    db.commit()
    return {
        "success": True,
        "message": f"Shop status updated to {request.status} successfully",
        "shop": ShopResponse.model_validate(shop),
    }
