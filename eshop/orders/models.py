from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field


class CheckoutLine(BaseModel):
    product_id: str = Field(..., min_length=1, max_length=64)
    quantity: int = Field(..., ge=1)


class ShippingInfo(BaseModel):
    shipping_first_name: str = Field(..., min_length=1, max_length=100)
    shipping_last_name: str = Field(..., min_length=1, max_length=100)
    shipping_email: EmailStr = Field(..., max_length=255)
    shipping_phone: Optional[str] = Field(None, max_length=20)
    shipping_address1: str = Field(..., min_length=1, max_length=255)
    shipping_address2: Optional[str] = Field(None, max_length=255)
    shipping_city: str = Field(..., min_length=1, max_length=100)
    shipping_state: str = Field(..., min_length=1, max_length=100)
    shipping_zip: str = Field(..., min_length=1, max_length=20)
    shipping_country: str = Field(..., min_length=1, max_length=100)


# card fields are checked for shape only and never stored
class CardInfo(BaseModel):
    card_number: str = Field(..., min_length=1, max_length=32)
    card_expiry: str = Field(..., max_length=5)
    card_cvc: str = Field(..., max_length=4)
    card_name: str = Field(..., min_length=1, max_length=100)


class CheckoutIn(ShippingInfo, CardInfo):
    coupon_code: Optional[str] = Field(None, max_length=50)
    items: List[CheckoutLine] = Field(..., min_length=1)

    def shipping_snapshot(self) -> dict:
        return self.model_dump(include=set(ShippingInfo.model_fields))


class PricedLine(BaseModel):
    product_id: str
    product_name: str
    product_price: Decimal
    quantity: int
    total: Decimal
    track_inventory: bool
    oversell_guarded: bool


class OrderTotals(BaseModel):
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal
