import enum
import uuid
from decimal import Decimal
from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, Numeric, Text, UniqueConstraint, Uuid
from uuid6 import uuid7
from datetime import datetime
from typing import List, Optional
from sqlmodel import Column, SQLModel, Field, Relationship, String
from eshop.common.utils import now


class Users(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)  #* optional just means for the created object before saving in db .
    public_id: uuid.UUID = Field(
        default_factory=uuid7,
        sa_column=Column(Uuid(as_uuid=True), unique=True, index=True, nullable=False)
    )
    email: str = Field(sa_column=Column(String(320), nullable=False, unique=True))
    first_name: str = Field(sa_column=Column(String(128), nullable=False))
    last_name: str = Field(sa_column=Column(String(128), nullable=False))
    phone: Optional[str] = Field(default=None, sa_column=Column(String(50), nullable=True))
    password_hash: str = Field(sa_column=Column(Text(), nullable=False))
    created_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now))
    updated_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now, onupdate=now))

    sessions: List["UserSession"] = Relationship(back_populates="user")
    cart: Optional["Cart"] = Relationship(back_populates="user") # user -> cart (1:1)


class UserSession(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(sa_column=Column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False))

    # only the hash of the bearer token is stored
    session_token_hash: str = Field(sa_column=Column(String(128), nullable=False, unique=True, index=True))
    expires_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False, index=True))
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))

    user: "Users" = Relationship(back_populates="sessions")

# ---------------------------------------------------------------------------------------------------------

class ProductStatus(str, enum.Enum):
    ACTIVE = "active"
    DRAFT = "draft"
    ARCHIVED = "archived"


class Product(SQLModel, table=True):
    # catalog ids are strings (handle style, e.g. "prod_ladoo_01")
    id: str = Field(sa_column=Column(String(64), primary_key=True))
    sku: Optional[str] = Field(default=None, sa_column=Column(String(128), nullable=True, unique=True))
    name: str = Field(sa_column=Column(String(255), nullable=False))
    description: Optional[str] = Field(default=None, sa_column=Column(Text(), nullable=True))
    price: Decimal = Field(default=Decimal("0.00"), sa_column=Column(Numeric(10, 2), nullable=False, default=Decimal("0.00")))
    stock_quantity: int = Field(default=0, sa_column=Column(Integer(), nullable=False, default=0, index=True))
    track_inventory: bool = Field(default=True, sa_column=Column(Boolean(), nullable=False, default=True))
    continue_selling_when_out_of_stock: bool = Field(default=False, sa_column=Column(Boolean(), nullable=False, default=False))
    status: str = Field(default=ProductStatus.ACTIVE.value, sa_column=Column(String(20), nullable=False, default=ProductStatus.ACTIVE.value, index=True))
    image_url: Optional[str] = Field(default=None, sa_column=Column(String(1024), nullable=True))

    created_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now))
    updated_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now, onupdate=now))

    @property
    def oversell_guarded(self) -> bool:
        """True when checkout must respect stock_quantity for this product."""
        return self.track_inventory and not self.continue_selling_when_out_of_stock

# --------------------------------------------------------------------------------------------

# a cart is owned by exactly one of user_id / session_id (guest token)
class Cart(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[int] = Field(
        default=None,
        sa_column=Column(ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True,unique= True),
    )
    session_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(36), nullable=True, index=True, unique=True),
    )
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))
    updated_at: datetime = Field(default_factory=now,sa_column=Column(DateTime(timezone=True), nullable=False,default=now, onupdate=now))


    user: Optional["Users"] = Relationship(back_populates="cart")   # (guest cart)a cart may have no user
    cart_items: List["CartItem"] = Relationship(back_populates="cart")

# CartItem is like join table as well for product and cart (product <--> cart many to many)
class CartItem(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    cart_id: int = Field(sa_column=Column(ForeignKey("cart.id", ondelete="CASCADE"), nullable=False, index=True))
    product_id: str = Field(sa_column=Column(ForeignKey("product.id", ondelete="CASCADE"), nullable=False, index=True))
    quantity: int = Field(default=1, sa_column=Column(Integer(), nullable=False, default=1))
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))
    updated_at: datetime = Field(default_factory=now,sa_column=Column(DateTime(timezone=True), nullable=False,default=now, onupdate=now))


    cart: "Cart" = Relationship(back_populates="cart_items")

    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", name="uq_cart_product"),
    )

# --------------------------------------------------------------------------------------------

class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class Coupon(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(sa_column=Column(String(50), nullable=False, unique=True, index=True))  # stored uppercase
    description: Optional[str] = Field(default=None, sa_column=Column(String(255), nullable=True))
    discount_type: str = Field(default=DiscountType.PERCENTAGE.value, sa_column=Column(String(20), nullable=False, default=DiscountType.PERCENTAGE.value))
    discount_value: Decimal = Field(sa_column=Column(Numeric(10, 2), nullable=False))
    min_order_amount: Optional[Decimal] = Field(default=None, sa_column=Column(Numeric(10, 2), nullable=True))
    max_discount_amount: Optional[Decimal] = Field(default=None, sa_column=Column(Numeric(10, 2), nullable=True))
    usage_limit: Optional[int] = Field(default=None, sa_column=Column(Integer(), nullable=True))
    usage_count: int = Field(default=0, sa_column=Column(Integer(), nullable=False, default=0))
    starts_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    expires_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    is_active: bool = Field(default=True, sa_column=Column(Boolean(), nullable=False, default=True))
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))
    updated_at: datetime = Field(default_factory=now,sa_column=Column(DateTime(timezone=True), nullable=False,default=now, onupdate=now))

    @property
    def remaining_usage(self) -> Optional[int]:
        if self.usage_limit is None:
            return None
        return max(0, self.usage_limit - self.usage_count)


# immutable, one row per successful redemption
class CouponUsage(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    coupon_id: int = Field(sa_column=Column(ForeignKey("coupon.id", ondelete="CASCADE"), nullable=False, index=True))
    user_id: Optional[int] = Field(default=None, sa_column=Column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True))
    order_id: Optional[int] = Field(default=None, sa_column=Column(ForeignKey("orders.id", ondelete="SET NULL"), nullable=True, index=True))
    discount_amount: Decimal = Field(sa_column=Column(Numeric(10, 2), nullable=False))
    used_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now, index=True))

# --------------------------------------------------------------------------------------------

class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# User --> Orders (1:many)
# monetary and shipping columns are a snapshot taken at checkout and never recomputed
class Orders(SQLModel, table=True):

    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: uuid.UUID = Field(default_factory=uuid7, sa_column=Column(Uuid(as_uuid=True), unique=True, index=True, nullable=False))
    order_number: str = Field(sa_column=Column(String(32), nullable=False, unique=True))
    user_id: Optional[int] = Field(default=None, sa_column=Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True))
    status: str = Field(default=OrderStatus.PENDING.value, sa_column=Column(String(20), nullable=False, index=True, default=OrderStatus.PENDING.value))
    currency: str = Field(default="USD", sa_column=Column(String(8), nullable=False))
    subtotal: Decimal = Field(default=Decimal("0.00"), sa_column=Column(Numeric(10, 2), nullable=False))
    tax: Decimal = Field(default=Decimal("0.00"), sa_column=Column(Numeric(10, 2), nullable=False))
    shipping: Decimal = Field(default=Decimal("0.00"), sa_column=Column(Numeric(10, 2), nullable=False))
    discount: Decimal = Field(default=Decimal("0.00"), sa_column=Column(Numeric(10, 2), nullable=False))
    total: Decimal = Field(default=Decimal("0.00"), sa_column=Column(Numeric(10, 2), nullable=False))
    coupon_code: Optional[str] = Field(default=None, sa_column=Column(String(50), nullable=True))

    shipping_first_name: Optional[str] = Field(default=None, sa_column=Column(String(255), nullable=True))
    shipping_last_name: Optional[str] = Field(default=None, sa_column=Column(String(255), nullable=True))
    shipping_email: Optional[str] = Field(default=None, sa_column=Column(String(320), nullable=True))
    shipping_phone: Optional[str] = Field(default=None, sa_column=Column(String(50), nullable=True))
    shipping_address1: Optional[str] = Field(default=None, sa_column=Column(Text(), nullable=True))
    shipping_address2: Optional[str] = Field(default=None, sa_column=Column(Text(), nullable=True))
    shipping_city: Optional[str] = Field(default=None, sa_column=Column(String(255), nullable=True))
    shipping_state: Optional[str] = Field(default=None, sa_column=Column(String(255), nullable=True))
    shipping_zip: Optional[str] = Field(default=None, sa_column=Column(String(32), nullable=True))
    shipping_country: Optional[str] = Field(default=None, sa_column=Column(String(100), nullable=True))
    notes: Optional[str] = Field(default=None, sa_column=Column(Text(), nullable=True))

    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))
    updated_at: datetime = Field(default_factory=now,sa_column=Column(DateTime(timezone=True), nullable=False,default=now, onupdate=now))

    order_items: List["OrderItem"] = Relationship(back_populates="order")

    __table_args__ = (
        Index("ix_orders_status_created_at", "status", "created_at"),
    )


# Order --> OrderItems (1:many)
# product_id survives product deletion as NULL, name and price are snapshots
class OrderItem(SQLModel, table=True):

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(sa_column=Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True))
    product_id: Optional[str] = Field(default=None, sa_column=Column(String(64), ForeignKey("product.id", ondelete="SET NULL"), nullable=True, index=True))
    product_name: str = Field(sa_column=Column(String(255), nullable=False))
    product_price: Decimal = Field(sa_column=Column(Numeric(10, 2), nullable=False))
    quantity: int = Field(sa_column=Column(Integer, nullable=False))
    total: Decimal = Field(sa_column=Column(Numeric(10, 2), nullable=False))
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))

    order: "Orders" = Relationship(back_populates="order_items")
