from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field
from eshop.cart.constants import MAX_ITEM_QTY


class CartSyncLine(BaseModel):
    id: str = Field(..., min_length=1, max_length=64)
    qty: int = Field(default=1, ge=1, le=MAX_ITEM_QTY)


class CartSyncIn(BaseModel):
    cart: List[CartSyncLine] = Field(default_factory=list)


class CartProductOut(BaseModel):
    name: Optional[str] = None
    price: Optional[Decimal] = None
    stock_quantity: Optional[int] = None
    image_url: Optional[str] = None


class CartLineOut(BaseModel):
    product_id: str
    quantity: int
    product: Optional[CartProductOut] = None
