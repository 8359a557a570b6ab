"""
Catalog Module - Admin Routes
===============================
Categories, the caller's own products, and low-stock report.
Everything here requires admin, except my-products which sellers can use too.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from config.database import get_db
from common.helpers import parse_id
from modules.auth.deps import require_admin, require_seller_or_admin
from modules.catalog.schemas import CategoryCreate
from modules.catalog.service import product_service, category_service

router = APIRouter(prefix="/admin", tags=["catalog-admin"])


# ==========================================
# 📦 Products
# ==========================================

@router.get("/my-products")
async def my_products(db: Session = Depends(get_db), user=Depends(require_seller_or_admin)):
    products = product_service.list_by_creator(db, user.id)
    return {"success": True, "products": [p.to_dict() for p in products]}


@router.get("/products/low-stock")
async def low_stock_products(db: Session = Depends(get_db), user=Depends(require_admin)):
    products = product_service.low_stock(db, user.id)
    return {"success": True, "products": [p.to_dict() for p in products]}


# ==========================================
# 🗂️ Categories
# ==========================================

@router.get("/categories")
async def list_categories(db: Session = Depends(get_db), user=Depends(require_admin)):
    categories = category_service.list_all(db)
    return {"success": True, "categories": [c.to_dict() for c in categories]}


@router.post("/categories", status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: CategoryCreate,
    db: Session = Depends(get_db),
    user=Depends(require_admin),
):
    category = category_service.create(db, payload.name)
    db.commit()
    return {"success": True, "message": "Category created successfully", "category": category.to_dict()}


@router.delete("/categories/{category_id}")
async def delete_category(
    category_id: str,
    db: Session = Depends(get_db),
    user=Depends(require_admin),
):
    category_service.delete(db, parse_id(category_id, "category"))
    db.commit()
    return {"success": True, "message": "Category deleted successfully"}
