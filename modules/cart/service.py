"""
Cart Module - Service Layer
==============================
Cart management: get/create, add/remove items, calculate totals.
No stock is reserved or decremented here; stock is informational only.
"""

import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session, joinedload

from common.exceptions import NotFoundError, ValidationError
from common.helpers import money
from modules.cart.models import Cart, CartItem
from modules.catalog.models import Product

logger = logging.getLogger("storefront.cart")


class CartService:

    def get_user_cart(self, db: Session, user_id: int) -> Optional[Cart]:
        return (
            db.query(Cart)
            .options(joinedload(Cart.items).joinedload(CartItem.product))
            .filter(Cart.user_id == user_id)
            .first()
        )

    def get_or_create_cart(self, db: Session, user_id: int) -> Cart:
        """Get existing cart or create new one for user."""
        cart = db.query(Cart).filter(Cart.user_id == user_id).first()
        if not cart:
            cart = Cart(user_id=user_id)
            db.add(cart)
            db.flush()
        return cart

    def add_item(self, db: Session, user_id: int, product_id: int, quantity: int = 1) -> dict:
        """
        Add a product to the user's cart, accumulating quantity if the
        product is already there. Returns the updated cart summary.
        """
        if quantity is None or quantity < 1:
            raise ValidationError("Quantity must be at least 1")

        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise NotFoundError("Product not found")

        cart = self.get_or_create_cart(db, user_id)
        item = db.query(CartItem).filter(
            CartItem.cart_id == cart.id,
            CartItem.product_id == product_id,
        ).first()

        if item:
            item.quantity += quantity
        else:
            db.add(CartItem(cart_id=cart.id, product_id=product_id, quantity=quantity))

        db.flush()
        db.expire(cart)
        return self.get_cart(db, user_id)

    def remove_item(self, db: Session, user_id: int, product_id: Optional[int] = None) -> Optional[dict]:
        """
        Remove one product line, or the whole cart when product_id is None.
        Returns the updated cart summary, or None when the cart was deleted.
        """
        cart = db.query(Cart).filter(Cart.user_id == user_id).first()
        if not cart:
            raise NotFoundError("Cart not found")

        if product_id is None:
            db.delete(cart)
            db.flush()
            logger.info(f"Cart #{cart.id} of user #{user_id} deleted")
            return None

        db.query(CartItem).filter(
            CartItem.cart_id == cart.id,
            CartItem.product_id == product_id,
        ).delete(synchronize_session=False)
        db.flush()
        db.expire(cart)
        return self.get_cart(db, user_id)

    def get_cart(self, db: Session, user_id: int) -> dict:
        """
        Cart lines joined with current product data.
        A missing cart yields cart_id=None; an existing empty cart yields
        its id with no items.
        """
        cart = self.get_user_cart(db, user_id)
        if not cart:
            return {"cart_id": None, "items": [], "total_amount": 0.0}

        lines, total = self.priced_lines(cart)
        items = [
            {
                "product_id": line["product"].id,
                "name": line["product"].name,
                "price": float(line["unit_price"]),
                "quantity": line["quantity"],
                "total": float(line["line_total"]),
                "image": line["product"].image_url,
            }
            for line in lines
        ]
        return {"cart_id": cart.id, "items": items, "total_amount": float(total)}

    def priced_lines(self, cart: Cart) -> Tuple[List[dict], Decimal]:
        """
        Price every line at the product's current price.
        Returns: (lines, total)
        """
        lines = []
        total = Decimal("0")
        for item in cart.items:
            if item.product is None:
                continue
            unit_price = money(item.product.price)
            line_total = unit_price * item.quantity
            total += line_total
            lines.append({
                "product": item.product,
                "quantity": item.quantity,
                "unit_price": unit_price,
                "line_total": line_total,
            })
        return lines, money(total)

    def delete_cart(self, db: Session, user_id: int) -> bool:
        """Delete the user's cart if one exists. Returns True when deleted."""
        cart = db.query(Cart).filter(Cart.user_id == user_id).first()
        if not cart:
            return False
        db.delete(cart)
        db.flush()
        return True


# Singleton
cart_service = CartService()
