"""
User Module - User Model
=========================
Single users table for all roles. A user holds exactly one role:
customer (default), seller (may publish products) or admin.
"""

import enum

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from config.database import Base


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    CUSTOMER = "customer"
    SELLER = "seller"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    # === Identity ===
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, default=UserRole.CUSTOMER.value, nullable=False, index=True)
    is_active = Column(Boolean, default=True, server_default="true", nullable=False)

    # === Password reset (OTP) ===
    otp_code = Column(String, nullable=True, index=True)   # HMAC of the code, never the code itself
    otp_expiry = Column(DateTime(timezone=True), nullable=True)

    # === Audit ===
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # === Relationships ===
    products = relationship("Product", back_populates="creator")
    cart = relationship("Cart", back_populates="user", uselist=False)
    orders = relationship("Order", back_populates="user")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def is_seller(self) -> bool:
        return self.role == UserRole.SELLER.value

    @property
    def can_sell(self) -> bool:
        return self.role in (UserRole.SELLER.value, UserRole.ADMIN.value)

    def to_public(self) -> dict:
        """Serializable view without credentials or OTP state."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"
