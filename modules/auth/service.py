"""
Auth Module - Service Layer
============================
Business logic for registration, sign-in and OTP password reset.
"""

import logging
from datetime import timedelta
from typing import Tuple

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from common.helpers import now_utc, as_utc
from common.mailer import mail_sender
from common.security import (
    hash_password, verify_password, create_token, generate_otp, hash_otp,
)
from common.exceptions import (
    AuthenticationError, DuplicateError, NotFoundError, OTPError,
)
from config.settings import OTP_EXPIRE_MINUTES
from modules.user.models import User, UserRole

logger = logging.getLogger("storefront.auth")

OTP_MAX_REGENERATE = 10


def issue_token(user: User) -> str:
    return create_token({"sub": str(user.id), "role": user.role})


class AuthService:
    """Handles all authentication logic: registration, sign-in, password reset."""

    def register(
        self, db: Session, name: str, email: str, password: str,
        role: str = UserRole.CUSTOMER.value,
    ) -> Tuple[User, str]:
        """
        Create a new account.

        Returns:
            (user, token)

        Raises:
            DuplicateError if the email is already registered
        """
        email = email.strip().lower()
        if db.query(User.id).filter(User.email == email).first():
            raise DuplicateError("Email already exists")

        user = User(
            name=name.strip(),
            email=email,
            password_hash=hash_password(password),
            role=role,
        )
        try:
            db.add(user)
            db.flush()
        except IntegrityError:
            # Race condition: another request registered this email
            db.rollback()
            raise DuplicateError("Email already exists")

        logger.info(f"Registered user #{user.id} ({user.role})")
        return user, issue_token(user)

    def authenticate(self, db: Session, email: str, password: str) -> Tuple[User, str]:
        """Check credentials. Raises AuthenticationError with a uniform message."""
        user = db.query(User).filter(User.email == email.strip().lower()).first()
        if not user or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid email or password")
        if not user.is_active:
            raise AuthenticationError("Account is disabled")
        return user, issue_token(user)

    # ==========================================
    # Password reset (OTP)
    # ==========================================

    def request_password_reset(self, db: Session, email: str) -> None:
        """Generate an OTP for the account, store its hash and mail the code."""
        user = db.query(User).filter(User.email == email.strip().lower()).first()
        if not user:
            raise NotFoundError("Email not found")

        otp = self._unique_otp(db)
        user.otp_code = hash_otp(otp)
        user.otp_expiry = now_utc() + timedelta(minutes=OTP_EXPIRE_MINUTES)
        db.flush()

        if not mail_sender.send_otp(user.email, otp, OTP_EXPIRE_MINUTES):
            logger.warning(f"OTP mail to user #{user.id} was not delivered")
        logger.info(f"Password reset OTP issued for user #{user.id}")

    def verify_otp(self, db: Session, otp: str) -> User:
        """Return the user holding a live OTP, or raise AuthenticationError."""
        user = self._user_by_otp(db, otp)
        if not user:
            raise AuthenticationError("Invalid OTP")
        if self._is_expired(user):
            raise AuthenticationError("OTP expired")
        return user

    def reset_password(self, db: Session, otp: str, new_password: str) -> User:
        otp = otp.lstrip(":").strip().lower()
        if not otp:
            raise OTPError("OTP is required, failed to reset password")

        user = self._user_by_otp(db, otp)
        if not user:
            raise OTPError("Invalid OTP, failed to reset password")
        if self._is_expired(user):
            raise OTPError("OTP expired, failed to reset password")

        user.password_hash = hash_password(new_password)
        user.otp_code = None
        user.otp_expiry = None
        db.flush()
        logger.info(f"Password reset for user #{user.id}")
        return user

    # ==========================================
    # Private helpers
    # ==========================================

    def _user_by_otp(self, db: Session, otp: str):
        if not otp or not otp.strip():
            return None
        return db.query(User).filter(User.otp_code == hash_otp(otp)).first()

    def _is_expired(self, user: User) -> bool:
        expiry = as_utc(user.otp_expiry)
        return expiry is None or now_utc() > expiry

    def _unique_otp(self, db: Session) -> str:
        """OTPs are looked up by value alone, so they must not collide."""
        for _ in range(OTP_MAX_REGENERATE):
            otp = generate_otp()
            if not db.query(User.id).filter(User.otp_code == hash_otp(otp)).first():
                return otp
        raise OTPError("Could not generate a reset code. Please try again.")


auth_service = AuthService()
