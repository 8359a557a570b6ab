"""
Admin Module - Request Schemas
"""

from typing import Literal, Optional

from pydantic import BaseModel, model_validator


class UserStatusUpdate(BaseModel):
    is_active: Optional[bool] = None
    role: Optional[Literal["admin", "customer", "seller"]] = None

    @model_validator(mode="after")
    def something_to_change(self):
        if self.is_active is None and self.role is None:
            raise ValueError("Nothing to update")
        return self
