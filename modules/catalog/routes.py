"""
Catalog Module - Product Routes
================================
Public product listing/detail plus seller/admin product management.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Form, File, UploadFile, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config.database import get_db
from common.exceptions import ValidationError
from common.helpers import parse_id, safe_decimal, safe_int
from common.upload import delete_file
from modules.auth.deps import get_current_user, require_seller_or_admin
from modules.catalog.schemas import ProductUpdate
from modules.catalog.service import product_service

router = APIRouter(tags=["products"])


@router.get("/products")
async def list_products(
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    products, pagination = product_service.list_products(
        db, search=search, category=category, page=page, limit=limit, viewer=user,
    )
    return {
        "success": True,
        "products": [p.to_dict() for p in products],
        "pagination": pagination,
    }


@router.get("/products/{product_id}")
async def get_product(product_id: str, db: Session = Depends(get_db)):
    product = product_service.get_or_404(db, parse_id(product_id, "product"))
    return {"success": True, "product": product.to_dict()}


@router.post("/products", status_code=status.HTTP_201_CREATED)
async def create_product(
    name: str = Form(""),
    description: str = Form(""),
    price: str = Form(""),
    category: str = Form(""),
    stock: str = Form("0"),
    image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    user=Depends(require_seller_or_admin),
):
    if not (name.strip() and description.strip() and price.strip() and category.strip()):
        raise ValidationError("All fields are required")

    parsed_price = safe_decimal(price)
    if parsed_price is None or not parsed_price.is_finite() or parsed_price < 0:
        raise ValidationError("Price must be a non-negative number")
    parsed_stock = safe_int(stock) if stock.strip() else 0
    if parsed_stock is None or parsed_stock < 0:
        raise ValidationError("Stock must be a non-negative integer")

    product = product_service.create(db, user, {
        "name": name, "description": description, "price": parsed_price,
        "category": category, "stock": parsed_stock,
    }, image)
    image_path = product.image
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        delete_file(image_path)
        raise
    db.refresh(product)
    return {"success": True, "message": "Product created successfully", "product": product.to_dict()}


@router.patch("/products/{product_id}")
async def update_product(
    product_id: str,
    payload: ProductUpdate,
    db: Session = Depends(get_db),
    user=Depends(require_seller_or_admin),
):
    pid = parse_id(product_id, "product")
    product = product_service.update(db, pid, user, payload.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(product)
    return {"success": True, "message": "Product updated successfully", "product": product.to_dict()}


@router.delete("/products/{product_id}")
async def delete_product(
    product_id: str,
    db: Session = Depends(get_db),
    user=Depends(require_seller_or_admin),
):
    image_path = product_service.delete(db, parse_id(product_id, "product"), user)
    db.commit()
    delete_file(image_path)
    return {"success": True, "message": "Product deleted successfully"}
