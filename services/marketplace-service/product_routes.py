import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.orm import Session

from catalog_repository import CatalogRepository
from dependencies import get_current_user, get_db, get_upload_service, require_roles
from errors import ForbiddenError, InvalidRequestError, ProductNotFoundError, ShopNotFoundError
from models import User
from schemas import CreateProductRequest, DealerProductResponse, ProductResponse, UpdateProductRequest
from shop_repository import ShopRepository
from upload_service import UploadService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])

MAX_IMAGE_BYTES = 5 * 1024 * 1024


# ==================== DEALER ROUTES ====================

@router.get("/dealer/list")
def dealer_products(dealer: User = Depends(require_roles("dealer")), db: Session = Depends(get_db)) -> dict:
    """Get all products for the logged-in dealer."""
    products = CatalogRepository(db).list_for_dealer(dealer.id)
    return {"success": True, "products": [DealerProductResponse.model_validate(p) for p in products]}


@router.post("/dealer/add", status_code=status.HTTP_201_CREATED)
def add_product(
    request: CreateProductRequest,
    dealer: User = Depends(require_roles("dealer")),
    db: Session = Depends(get_db),
) -> dict:
    """Add a product to one of the dealer's shops; the shop must be verified."""
    shop = ShopRepository(db).get_owned(request.shop_id, dealer.id)
    if not shop:
        raise ShopNotFoundError(request.shop_id)
    if shop.status != "verified":
        raise ForbiddenError("Cannot add products. Shop must be verified by admin first.")

    product = CatalogRepository(db).create_product(dealer.id, shop.id, request.model_dump())
    db.commit()
    return {
        "success": True,
        "message": "Product added successfully",
        "product": DealerProductResponse.model_validate(product),
    }


@router.put("/dealer/{product_id}")
def update_product(
    product_id: str,
    request: UpdateProductRequest,
    dealer: User = Depends(require_roles("dealer")),
    db: Session = Depends(get_db),
) -> dict:
    repo = CatalogRepository(db)
    product = repo.get_for_dealer(product_id, dealer.id)
    if not product:
        raise ProductNotFoundError(product_id)

    product = repo.update_product(product, request.model_dump(exclude_unset=True, exclude_none=True))
    db.commit()
    return {
        "success": True,
        "message": "Product updated successfully",
        "product": DealerProductResponse.model_validate(product),
    }


@router.delete("/dealer/{product_id}")
def delete_product(
    product_id: str,
    dealer: User = Depends(require_roles("dealer")),
    db: Session = Depends(get_db),
) -> dict:
    repo = CatalogRepository(db)
    product = repo.get_for_dealer(product_id, dealer.id)
    if not product:
        raise ProductNotFoundError(product_id)

    repo.delete(product)
    db.commit()
    return {"success": True, "message": "Product deleted successfully"}


@router.post("/dealer/{product_id}/image")
def upload_product_image(
    product_id: str,
    image: UploadFile = File(...),
    dealer: User = Depends(require_roles("dealer")),
    db: Session = Depends(get_db),
    uploads: UploadService = Depends(get_upload_service),
) -> dict:
    """Store a product image and attach its URL to the product."""
    repo = CatalogRepository(db)
    product = repo.get_for_dealer(product_id, dealer.id)
    if not product:
        raise ProductNotFoundError(product_id)

    if not (image.content_type or "").startswith("image/"):
        raise InvalidRequestError("Only image files are allowed!")
    data = image.file.read(MAX_IMAGE_BYTES + 1)
    if len(data) > MAX_IMAGE_BYTES:
        raise InvalidRequestError("Image must be 5MB or smaller")

    product.image_url = uploads.upload(data, image.filename or f"{product.id}.jpg", folder="agro/products")
    repo.save(product)
    db.commit()
    return {
        "success": True,
        "message": "Product image uploaded successfully",
        "product": DealerProductResponse.model_validate(product),
    }


# ==================== FARMER ROUTES ====================

@router.get("/farmer/list")
def browse_products(
    search: Optional[str] = None,
    category: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    user: User = Depends(require_roles("farmer", "admin")),
    db: Session = Depends(get_db),
) -> dict:
    """Published, available, in-stock products for farmers to browse."""
    products = CatalogRepository(db).find_available(search, category, min_price, max_price)
    return {
        "success": True,
        "products": [ProductResponse.model_validate(p) for p in products],
        "count": len(products),
    }


@router.get("/{product_id}")
def get_product(product_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> dict:
    product = CatalogRepository(db).get(product_id)
    if not product:
        raise ProductNotFoundError(product_id)
    return {"success": True, "product": ProductResponse.model_validate(product)}
