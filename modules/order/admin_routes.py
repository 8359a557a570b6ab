"""
Order Module - Admin Routes
=============================
Order listing with status filter and status updates.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from config.database import get_db
from common.exceptions import ValidationError
from common.helpers import parse_id
from modules.auth.deps import require_admin
from modules.order.models import OrderStatus
from modules.order.schemas import OrderStatusUpdate
from modules.order.service import order_service

router = APIRouter(prefix="/admin", tags=["order-admin"])


@router.get("/orders")
async def admin_orders(
    status: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user=Depends(require_admin),
):
    if status and status not in [s.value for s in OrderStatus]:
        raise ValidationError("Invalid order status")
    orders = order_service.get_all_orders(db, status=status)
    return {"success": True, "orders": [o.to_dict(with_user=True) for o in orders]}


@router.patch("/orders/{order_id}/status")
async def update_order_status(
    order_id: str,
    payload: OrderStatusUpdate,
    db: Session = Depends(get_db),
    user=Depends(require_admin),
):
    order = order_service.update_status(db, parse_id(order_id, "order"), payload.status)
    db.commit()
    db.refresh(order)
    return {"success": True, "message": "Order status updated", "order": order.to_dict(with_user=True)}
