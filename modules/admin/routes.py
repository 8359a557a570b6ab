"""
Admin Module - Routes
========================
Dashboard statistics, recent orders and user management.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from config.database import get_db
from common.helpers import parse_id
from modules.auth.deps import require_admin
from modules.admin.dashboard_service import dashboard_service
from modules.admin.schemas import UserStatusUpdate
from modules.admin.user_service import user_admin_service

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/dashboard-stats")
async def dashboard_stats(db: Session = Depends(get_db), user=Depends(require_admin)):
    return {"success": True, "data": dashboard_service.get_overview_stats(db, user.id)}


@router.get("/recent-orders")
async def recent_orders(db: Session = Depends(get_db), user=Depends(require_admin)):
    return {"success": True, "data": dashboard_service.get_recent_orders(db, user.id)}


# ==========================================
# 👥 Users
# ==========================================

@router.get("/users")
async def list_users(db: Session = Depends(get_db), user=Depends(require_admin)):
    users = user_admin_service.list_users(db)
    return {"success": True, "data": [u.to_public() for u in users]}


@router.patch("/users/{user_id}/status")
async def update_user_status(
    user_id: str,
    payload: UserStatusUpdate,
    db: Session = Depends(get_db),
    user=Depends(require_admin),
):
    target = user_admin_service.update_status(
        db, user, parse_id(user_id, "user"),
        is_active=payload.is_active, role=payload.role,
    )
    db.commit()
    db.refresh(target)
    return {"success": True, "message": "User status updated successfully", "data": target.to_public()}
