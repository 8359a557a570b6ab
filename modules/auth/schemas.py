"""
Auth Module - Request Schemas
==============================
"""

from typing import Literal

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=4)
    email: EmailStr
    password: str = Field(..., min_length=6)
    retype_password: str = Field(..., min_length=6)
    # admin accounts are created out-of-band (scripts/create_admin.py)
    role: Literal["customer", "seller"] = "customer"

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 4:
            raise ValueError("Name must be at least 4 characters")
        return v

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.retype_password:
            raise ValueError("Passwords do not match")
        return self


class SigninRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)


class ForgetPasswordRequest(BaseModel):
    email: EmailStr


class VerifyOTPRequest(BaseModel):
    otp: str = Field(..., min_length=1)


class ResetPasswordRequest(BaseModel):
    password: str
    retype_password: str

    @model_validator(mode="after")
    def passwords_match(self):
        if not self.password.strip() or not self.retype_password.strip():
            raise ValueError("Password fields cannot be empty")
        if self.password != self.retype_password:
            raise ValueError("Passwords do not match")
        return self
