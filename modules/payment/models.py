"""
Payment Module - Models
========================
Checkout records written by payment reconciliation.
One record per gateway reference; status is True for a paid transaction
and False for a verified but failed one.
"""

from sqlalchemy import (
    Column, Integer, String, Numeric, Boolean,
    ForeignKey, DateTime,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from config.database import Base


class Checkout(Base):
    __tablename__ = "checkouts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    reference = Column(String, unique=True, nullable=False, index=True)
    trxref = Column(String, nullable=True)
    status = Column(Boolean, nullable=False, default=False)
    total_amount = Column(Numeric(12, 2), nullable=False)        # from current cart prices
    gateway_amount = Column(Numeric(12, 2), nullable=True)       # as reported by the gateway
    gateway_ref = Column(String, nullable=True)                  # gateway transaction id
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    user = relationship("User")
    items = relationship(
        "CheckoutItem", back_populates="checkout",
        cascade="all, delete-orphan", order_by="CheckoutItem.id",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "reference": self.reference,
            "trxref": self.trxref,
            "status": self.status,
            "total_amount": float(self.total_amount),
            "gateway_amount": float(self.gateway_amount) if self.gateway_amount is not None else None,
            "items": [item.to_dict() for item in self.items],
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Checkout {self.reference} {'paid' if self.status else 'failed'}>"


class CheckoutItem(Base):
    __tablename__ = "checkout_items"

    id = Column(Integer, primary_key=True)
    checkout_id = Column(Integer, ForeignKey("checkouts.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    product_name = Column(String, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False)

    checkout = relationship("Checkout", back_populates="items")
    product = relationship("Product", back_populates="checkout_items")

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "unit_price": float(self.unit_price),
            "quantity": self.quantity,
        }
