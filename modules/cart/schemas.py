"""
Cart Module - Request Schemas
"""

from pydantic import BaseModel, Field


class AddToCartRequest(BaseModel):
    product_id: int
    quantity: int = Field(1, ge=1)
