"""
Admin Dashboard Service
=========================
Per-admin statistics: everything is scoped to the products the calling
admin created and the orders that contain them.
"""

from decimal import Decimal
from typing import Dict, Any, List

from sqlalchemy.orm import Session, joinedload
from sqlalchemy import func as sa_func, desc

from config.settings import LOW_STOCK_THRESHOLD
from modules.order.models import Order, OrderItem, OrderStatus
from modules.catalog.models import Product


class DashboardService:

    def get_overview_stats(self, db: Session, admin_id: int) -> Dict[str, Any]:
        """Key business metrics for one admin's products."""
        product_ids = self._product_ids(db, admin_id)

        order_ids_q = (
            db.query(OrderItem.order_id)
            .filter(OrderItem.product_id.in_(product_ids))
            .distinct()
        )
        total_orders = db.query(Order).filter(Order.id.in_(order_ids_q)).count() if product_ids else 0
        pending_orders = (
            db.query(Order)
            .filter(Order.id.in_(order_ids_q), Order.status == OrderStatus.PENDING.value)
            .count()
        ) if product_ids else 0

        # Revenue only counts this admin's lines, not the whole order
        total_revenue = (
            db.query(sa_func.coalesce(sa_func.sum(OrderItem.line_total), 0))
            .filter(OrderItem.product_id.in_(product_ids))
            .scalar()
        ) if product_ids else 0

        low_stock_items = db.query(Product).filter(
            Product.created_by == admin_id,
            Product.stock > 0,
            Product.stock < LOW_STOCK_THRESHOLD,
        ).count()

        return {
            "total_products": len(product_ids),
            "total_orders": total_orders,
            "pending_orders": pending_orders,
            "total_revenue": float(Decimal(str(total_revenue or 0))),
            "low_stock_items": low_stock_items,
        }

    def get_recent_orders(self, db: Session, admin_id: int, limit: int = 10) -> List[Dict[str, Any]]:
        """Latest orders containing any of this admin's products."""
        product_ids = self._product_ids(db, admin_id)
        if not product_ids:
            return []

        order_ids_q = (
            db.query(OrderItem.order_id)
            .filter(OrderItem.product_id.in_(product_ids))
            .distinct()
        )
        orders = (
            db.query(Order)
            .options(joinedload(Order.user), joinedload(Order.items))
            .filter(Order.id.in_(order_ids_q))
            .order_by(desc(Order.created_at), desc(Order.id))
            .limit(limit)
            .all()
        )
        return [
            {
                "id": o.id,
                "customer_name": o.user.name if o.user else None,
                "customer_email": o.user.email if o.user else None,
                "product_names": ", ".join(item.product_name for item in o.items),
                "amount": float(o.total_amount),
                "status": o.status,
                "date": o.created_at.isoformat() if o.created_at else None,
            }
            for o in orders
        ]

    def _product_ids(self, db: Session, admin_id: int) -> List[int]:
        return [pid for (pid,) in db.query(Product.id).filter(Product.created_by == admin_id).all()]


dashboard_service = DashboardService()
