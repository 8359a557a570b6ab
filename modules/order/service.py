"""
Order Module - Service Layer
==============================
Direct order placement and order queries.

Placing an order prices every line at the product's current price and
never touches the cart; the cart is only cleared by a successful payment.
"""

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session, joinedload

from common.exceptions import NotFoundError, ValidationError
from common.helpers import money
from modules.catalog.models import Product
from modules.order.models import Order, OrderItem, OrderStatus
from modules.user.models import User

logger = logging.getLogger("storefront.order")


def build_order_item(product: Product, quantity: int) -> OrderItem:
    """Snapshot a product at its current price into an order line."""
    unit_price = money(product.price)
    return OrderItem(
        product_id=product.id,
        product_name=product.name,
        unit_price=unit_price,
        quantity=quantity,
        line_total=unit_price * quantity,
    )


class OrderService:

    # ==========================================
    # Placement
    # ==========================================

    def place_order(
        self, db: Session, user_id: int, items: List[dict],
        shipping_address: Optional[str] = None,
    ) -> Order:
        """
        Create an order from [{product_id, quantity}].
        Raises NotFoundError for an unknown product, ValidationError for bad quantities.
        """
        if not items:
            raise ValidationError("No products provided")

        order_items = []
        total = Decimal("0")
        for entry in items:
            quantity = entry.get("quantity") or 0
            if quantity < 1:
                raise ValidationError("Quantity must be at least 1")
            product = db.query(Product).filter(Product.id == entry["product_id"]).first()
            if not product:
                raise NotFoundError(f"Product not found: {entry['product_id']}")
            line = build_order_item(product, quantity)
            total += line.line_total
            order_items.append(line)

        order = Order(
            user_id=user_id,
            total_amount=money(total),
            status=OrderStatus.PENDING.value,
            shipping_address=(shipping_address or "").strip() or None,
            items=order_items,
        )
        db.add(order)
        db.flush()
        logger.info(f"Order #{order.id} placed by user #{user_id}: {order.total_amount}")
        return order

    # ==========================================
    # Query
    # ==========================================

    def get_user_orders(self, db: Session, user_id: int) -> List[Order]:
        return db.query(Order).options(joinedload(Order.items)).filter(
            Order.user_id == user_id,
        ).order_by(desc(Order.created_at), desc(Order.id)).all()

    def get_order_by_id(self, db: Session, order_id: int) -> Optional[Order]:
        return db.query(Order).filter(Order.id == order_id).first()

    def get_visible_order(self, db: Session, order_id: int, viewer: User) -> Order:
        """Owner or admin only; anyone else gets the same 404 as a missing order."""
        order = self.get_order_by_id(db, order_id)
        if not order or (order.user_id != viewer.id and not viewer.is_admin):
            raise NotFoundError("Order not found")
        return order

    def get_all_orders(self, db: Session, status: str = None) -> List[Order]:
        q = db.query(Order).options(joinedload(Order.user)).order_by(desc(Order.id))
        if status:
            q = q.filter(Order.status == status)
        return q.all()

    # ==========================================
    # Admin
    # ==========================================

    def update_status(self, db: Session, order_id: int, status: str) -> Order:
        if status not in [s.value for s in OrderStatus]:
            raise ValidationError("Invalid order status")
        order = self.get_order_by_id(db, order_id)
        if not order:
            raise NotFoundError("Order not found")
        previous = order.status
        order.status = status
        db.flush()
        logger.info(f"Order #{order.id} status {previous} -> {status}")
        return order


# Singleton
order_service = OrderService()
