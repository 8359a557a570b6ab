"""
Order Module - Request Schemas
"""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from modules.order.models import OrderStatus


class OrderItemIn(BaseModel):
    product_id: int
    quantity: int = Field(1, ge=1)


class PlaceOrderRequest(BaseModel):
    items: List[OrderItemIn]
    shipping_address: Optional[str] = None

    @field_validator("items")
    @classmethod
    def not_empty(cls, v: List[OrderItemIn]) -> List[OrderItemIn]:
        if not v:
            raise ValueError("No products provided")
        return v


class OrderStatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def known_status(cls, v: str) -> str:
        allowed = [s.value for s in OrderStatus]
        if v not in allowed:
            raise ValueError(f"Status must be one of: {', '.join(allowed)}")
        return v
