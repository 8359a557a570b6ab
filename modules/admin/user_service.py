"""
User Management Service
===========================
Admin-side listing and status/role changes for user accounts.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from common.exceptions import NotFoundError, ValidationError
from modules.user.models import User, UserRole

logger = logging.getLogger("storefront.admin")


class UserAdminService:

    def list_users(self, db: Session) -> List[User]:
        return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()

    def get_by_id(self, db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    def update_status(
        self, db: Session, actor: User, user_id: int,
        is_active: Optional[bool] = None, role: Optional[str] = None,
    ) -> User:
        user = self.get_by_id(db, user_id)
        if not user:
            raise NotFoundError("User not found")

        # An admin cannot lock themselves out
        if user.id == actor.id and (is_active is False or (role and role != UserRole.ADMIN.value)):
            raise ValidationError("You cannot deactivate or demote your own account")

        if is_active is not None:
            user.is_active = is_active
        if role is not None:
            user.role = role
        db.flush()
        logger.info(f"User #{user.id} updated by admin #{actor.id}: is_active={user.is_active} role={user.role}")
        return user


user_admin_service = UserAdminService()
