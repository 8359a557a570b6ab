"""
Storefront - Create Admin Account
====================================
Admins cannot self-register through the API; this script creates one,
or promotes an existing account with the same email.

Usage:
    python scripts/create_admin.py "Jane Admin" admin@example.com
    (the password is prompted for)
"""

import getpass
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.database import SessionLocal, Base, engine
from common.security import hash_password
from modules.user.models import User, UserRole

# Remaining models must be registered before create_all
from modules.catalog.models import Category, Product  # noqa
from modules.cart.models import Cart, CartItem  # noqa
from modules.order.models import Order, OrderItem  # noqa
from modules.payment.models import Checkout, CheckoutItem  # noqa


def create_admin(name: str, email: str, password: str) -> User:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        email = email.strip().lower()
        user = db.query(User).filter(User.email == email).first()
        if user:
            user.role = UserRole.ADMIN.value
            user.is_active = True
            print(f"Promoted existing user #{user.id} to admin.")
        else:
            user = User(
                name=name.strip(),
                email=email,
                password_hash=hash_password(password),
                role=UserRole.ADMIN.value,
            )
            db.add(user)
            print(f"Created admin {email}.")
        db.commit()
        db.refresh(user)
        return user
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print(__doc__)
        sys.exit(1)
    password = getpass.getpass("Password: ")
    if len(password) < 6:
        print("Password must be at least 6 characters.")
        sys.exit(1)
    if password != getpass.getpass("Repeat password: "):
        print("Passwords do not match.")
        sys.exit(1)
    create_admin(sys.argv[1], sys.argv[2], password)
