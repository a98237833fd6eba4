from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field


class CouponVerifyIn(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    subtotal: Decimal = Field(..., ge=0)


class CouponOut(BaseModel):
    code: str
    discount_type: str
    discount_value: Decimal
    discount_amount: Decimal
    description: Optional[str] = None
    remaining_usage: Optional[int] = None
