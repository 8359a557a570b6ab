"""
Catalog Module - Service Layer
================================
Business logic for Products and Categories.
"""

import logging
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Tuple

from fastapi import UploadFile
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from common.exceptions import (
    AuthorizationError, DuplicateError, NotFoundError, ValidationError,
)
from common.upload import save_upload_file, delete_file
from config.settings import LOW_STOCK_THRESHOLD, MAX_PAGE_SIZE
from modules.catalog.models import Category, Product
from modules.user.models import User

logger = logging.getLogger("storefront.catalog")


@dataclass
class CategoryResolution:
    """Outcome of resolving a category name: the row, and whether it was just created."""
    category: Category
    created: bool


# ==========================================
# Category Service
# ==========================================

class CategoryService:

    def list_all(self, db: Session) -> List[Category]:
        return db.query(Category).order_by(Category.name.asc()).all()

    def get_by_name(self, db: Session, name: str) -> Optional[Category]:
        return db.query(Category).filter(Category.name == name.strip()).first()

    def create(self, db: Session, name: str) -> Category:
        name = name.strip()
        if not name:
            raise ValidationError("Category name is required")
        if self.get_by_name(db, name):
            raise DuplicateError("Category already exists")
        category = Category(name=name)
        db.add(category)
        db.flush()
        return category

    def resolve(self, db: Session, name: str) -> CategoryResolution:
        """Find a category by name, creating it when missing."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name is required")

        existing = self.get_by_name(db, name)
        if existing:
            return CategoryResolution(category=existing, created=False)

        try:
            with db.begin_nested():
                category = Category(name=name)
                db.add(category)
        except IntegrityError:
            # Created concurrently by another request
            return CategoryResolution(category=self.get_by_name(db, name), created=False)

        logger.info(f"Category '{name}' created on demand")
        return CategoryResolution(category=category, created=True)

    def delete(self, db: Session, category_id: int) -> None:
        """Delete a category. Products keep their category name."""
        category = db.query(Category).filter(Category.id == category_id).first()
        if not category:
            raise NotFoundError("Category not found")
        db.delete(category)
        db.flush()


# ==========================================
# Product Service
# ==========================================

class ProductService:

    def list_products(
        self,
        db: Session,
        search: Optional[str] = None,
        category: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
        viewer: Optional[User] = None,
    ) -> Tuple[List[Product], dict]:
        """
        Paginated product listing.
        Sellers only ever see their own products.
        Returns: (products, pagination)
        """
        page = max(page or 1, 1)
        limit = min(max(limit or 10, 1), MAX_PAGE_SIZE)

        query = db.query(Product)
        if viewer is not None and viewer.is_seller:
            query = query.filter(Product.created_by == viewer.id)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))
        if category and category.strip():
            query = query.filter(Product.category == category.strip())

        total = query.count()
        products = (
            query.options(joinedload(Product.creator))
            .order_by(Product.id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )

        total_pages = math.ceil(total / limit) if total else 0
        pagination = {
            "current_page": page,
            "total_pages": total_pages,
            "total_products": total,
            "has_next_page": page < total_pages,
            "has_prev_page": page > 1,
        }
        return products, pagination

    def get_by_id(self, db: Session, product_id: int) -> Optional[Product]:
        return db.query(Product).filter(Product.id == product_id).first()

    def get_or_404(self, db: Session, product_id: int) -> Product:
        product = self.get_by_id(db, product_id)
        if not product:
            raise NotFoundError("Product not found")
        return product

    def list_by_creator(self, db: Session, user_id: int) -> List[Product]:
        return (
            db.query(Product)
            .filter(Product.created_by == user_id)
            .order_by(Product.created_at.desc(), Product.id.desc())
            .all()
        )

    def low_stock(self, db: Session, user_id: int) -> List[Product]:
        return (
            db.query(Product)
            .filter(
                Product.created_by == user_id,
                Product.stock > 0,
                Product.stock < LOW_STOCK_THRESHOLD,
            )
            .order_by(Product.stock.asc())
            .all()
        )

    def create(self, db: Session, creator: User, data: dict, image: UploadFile) -> Product:
        if not image or not image.filename:
            raise ValidationError("Please upload an image")

        category_service.resolve(db, data["category"])
        image_path = save_upload_file(image)

        product = Product(
            name=data["name"].strip(),
            description=data["description"].strip(),
            price=Decimal(data["price"]),
            category=data["category"].strip(),
            stock=data.get("stock") or 0,
            image=image_path,
            created_by=creator.id,
        )
        try:
            db.add(product)
            db.flush()
        except SQLAlchemyError:
            delete_file(image_path)
            raise
        logger.info(f"Product #{product.id} created by user #{creator.id}")
        return product

    def update(self, db: Session, product_id: int, actor: User, changes: dict) -> Product:
        product = self.get_or_404(db, product_id)
        self._check_owner(product, actor, "update")

        if changes.get("category"):
            category_service.resolve(db, changes["category"])

        for field in ("name", "description", "price", "category", "stock"):
            if changes.get(field) is not None:
                setattr(product, field, changes[field])
        db.flush()
        return product

    def delete(self, db: Session, product_id: int, actor: User) -> Optional[str]:
        """
        Delete product; cart lines go with it, order/checkout lines keep their snapshot.
        Returns the stored image path; the caller removes the file after commit.
        """
        product = self.get_or_404(db, product_id)
        self._check_owner(product, actor, "delete")
        image_path = product.image
        db.delete(product)
        db.flush()
        logger.info(f"Product #{product_id} deleted by user #{actor.id}")
        return image_path

    # ==========================================
    # Private helpers
    # ==========================================

    def _check_owner(self, product: Product, actor: User, action: str):
        if not actor.is_admin and product.created_by != actor.id:
            raise AuthorizationError(f"Unauthorized to {action} this product")


# Singletons
category_service = CategoryService()
product_service = ProductService()
