"""
Cart Module - Routes
=====================
Add to cart, view cart, remove a line or the whole cart.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from config.database import get_db
from common.helpers import parse_id
from modules.auth.deps import require_login
from modules.cart.schemas import AddToCartRequest
from modules.cart.service import cart_service

router = APIRouter(tags=["cart"])


@router.post("/cart")
async def add_to_cart(
    payload: AddToCartRequest,
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    cart = cart_service.add_item(db, me.id, payload.product_id, payload.quantity)
    db.commit()
    return {"success": True, "message": "Product added to cart successfully", "cart": cart}


@router.get("/cart")
async def view_cart(db: Session = Depends(get_db), me=Depends(require_login)):
    return {"success": True, **cart_service.get_cart(db, me.id)}


@router.delete("/cart")
async def delete_cart(db: Session = Depends(get_db), me=Depends(require_login)):
    cart_service.remove_item(db, me.id)
    db.commit()
    return {"success": True, "message": "Cart deleted successfully"}


@router.delete("/cart/{product_id}")
async def remove_from_cart(
    product_id: str,
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    cart = cart_service.remove_item(db, me.id, parse_id(product_id, "product"))
    db.commit()
    return {"success": True, "message": "Product removed from cart successfully", "cart": cart}
