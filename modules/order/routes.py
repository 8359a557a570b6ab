"""
Order Module - Routes
======================
Place a direct order, list own orders, view one order.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from config.database import get_db
from common.helpers import parse_id
from modules.auth.deps import require_login
from modules.order.schemas import PlaceOrderRequest
from modules.order.service import order_service

router = APIRouter(tags=["orders"])


@router.post("/orders", status_code=status.HTTP_201_CREATED)
async def place_order(
    payload: PlaceOrderRequest,
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    order = order_service.place_order(
        db, me.id,
        [item.model_dump() for item in payload.items],
        shipping_address=payload.shipping_address,
    )
    db.commit()
    db.refresh(order)
    return {"success": True, "message": "Order placed successfully", "order": order.to_dict()}


@router.get("/orders")
async def my_orders(db: Session = Depends(get_db), me=Depends(require_login)):
    orders = order_service.get_user_orders(db, me.id)
    return {"success": True, "orders": [o.to_dict() for o in orders]}


@router.get("/orders/{order_id}")
async def order_detail(order_id: str, db: Session = Depends(get_db), me=Depends(require_login)):
    order = order_service.get_visible_order(db, parse_id(order_id, "order"), me)
    return {"success": True, "order": order.to_dict(with_user=me.is_admin)}
