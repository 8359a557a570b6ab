"""
Storefront - Security Utilities
================================
Password hashing, JWT tokens, OTP hashing and webhook signatures.

NOTE: Single JWT token for all roles (customer/seller/admin), carried either
as the access_token cookie or as a Bearer header.
"""

import hmac
import hashlib
import logging
import secrets
from datetime import timedelta
from typing import Optional

from jose import jwt, JWTError
from passlib.context import CryptContext

from config.settings import (
    SECRET_KEY, OTP_SECRET, ALGORITHM,
    ACCESS_TOKEN_EXPIRE_MINUTES, COOKIE_SECURE, COOKIE_SAMESITE,
    OTP_LENGTH,
)
from common.helpers import now_utc

logger = logging.getLogger("storefront.security")

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# ==========================================
# Passwords
# ==========================================

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    return pwd_context.verify(password, password_hash)


# ==========================================
# OTP
# ==========================================

def generate_otp(length: int = OTP_LENGTH) -> str:
    """Generate a random lower-case hex OTP code."""
    return secrets.token_hex((length + 1) // 2)[:length]


def hash_otp(otp: str) -> str:
    """HMAC-SHA256 of the OTP. Only the hash is persisted."""
    msg = otp.strip().lower().encode("utf-8")
    return hmac.new(OTP_SECRET.encode("utf-8"), msg, hashlib.sha256).hexdigest()


# ==========================================
# JWT Tokens
# ==========================================

def create_token(data: dict) -> str:
    """Create JWT token for any user type."""
    to_encode = data.copy()
    to_encode["exp"] = now_utc() + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """Decode a JWT token. Returns payload or None."""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None


# ==========================================
# Cookie Helpers
# ==========================================

def get_cookie_kwargs() -> dict:
    """Standard cookie settings for auth tokens."""
    return dict(
        httponly=True,
        secure=COOKIE_SECURE,
        samesite=COOKIE_SAMESITE,
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


# ==========================================
# Webhook Signatures
# ==========================================

def sign_payload(secret: str, payload: bytes) -> str:
    """HMAC-SHA512 hex digest, the scheme Paystack uses for x-paystack-signature."""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha512).hexdigest()


def verify_signature(secret: str, payload: bytes, signature: Optional[str]) -> bool:
    if not secret or not signature:
        return False
    return hmac.compare_digest(sign_payload(secret, payload), signature)
