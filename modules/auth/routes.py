"""
Auth Module - Routes
=====================
Register, sign in/out, OTP password reset, profile.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from config.database import get_db
from config.settings import AUTH_COOKIE_NAME
from common.security import get_cookie_kwargs
from modules.auth.deps import require_login
from modules.auth.schemas import (
    RegisterRequest, SigninRequest, ForgetPasswordRequest,
    VerifyOTPRequest, ResetPasswordRequest,
)
from modules.auth.service import auth_service

router = APIRouter(tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    user, token = auth_service.register(
        db, payload.name, payload.email, payload.password, role=payload.role,
    )
    db.commit()
    return {
        "success": True,
        "message": "Account created successfully",
        "token": token,
        "user": user.to_public(),
    }


@router.post("/signin")
async def signin(payload: SigninRequest, response: Response, db: Session = Depends(get_db)):
    user, token = auth_service.authenticate(db, payload.email, payload.password)
    response.set_cookie(AUTH_COOKIE_NAME, token, **get_cookie_kwargs())
    return {"success": True, "token": token, "user": user.to_public()}


@router.post("/signout")
async def signout(response: Response):
    response.delete_cookie(AUTH_COOKIE_NAME)
    return {"success": True, "message": "Signed out"}


# ==========================================
# 🔑 Password reset
# ==========================================

@router.post("/forgetpassword")
async def forget_password(payload: ForgetPasswordRequest, db: Session = Depends(get_db)):
    auth_service.request_password_reset(db, payload.email)
    db.commit()
    return {"success": True, "message": "OTP sent successfully"}


@router.post("/verifyotp")
async def verify_otp(payload: VerifyOTPRequest, db: Session = Depends(get_db)):
    auth_service.verify_otp(db, payload.otp)
    return {"success": True, "message": "OTP verified successfully"}


@router.post("/resetpassword/{otp}")
async def reset_password(otp: str, payload: ResetPasswordRequest, db: Session = Depends(get_db)):
    auth_service.reset_password(db, otp, payload.password)
    db.commit()
    return {"success": True, "message": "Password reset successfully"}


# ==========================================
# 👤 Profile
# ==========================================

@router.get("/user/profile")
async def profile(me=Depends(require_login)):
    return {
        "success": True,
        "data": {"id": me.id, "name": me.name, "email": me.email, "role": me.role},
    }
