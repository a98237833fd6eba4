from datetime import datetime
from decimal import Decimal
from typing import Optional
from eshop.common.utils import as_utc, now, to_money
from eshop.coupons.constants import (
    EXHAUSTED_MESSAGE,
    EXPIRED_MESSAGE,
    MIN_ORDER_MESSAGE,
    NOT_ACTIVE_MESSAGE,
    NOT_STARTED_MESSAGE,
)
from eshop.schema.full_schema import Coupon, DiscountType


def normalize_code(code: str) -> str:
    return code.strip().upper()


def coupon_rejection_reason(coupon: Coupon, subtotal: Optional[Decimal] = None,
                            at: Optional[datetime] = None) -> Optional[str]:
    """First failing rule for an existing coupon, or None when it can be applied.

    Rules run in a fixed order: active, start, expiry, usage limit, minimum order.
    """
    at = at or now()

    if not coupon.is_active:
        return NOT_ACTIVE_MESSAGE

    starts_at = as_utc(coupon.starts_at)
    if starts_at is not None and at < starts_at:
        return NOT_STARTED_MESSAGE

    expires_at = as_utc(coupon.expires_at)
    if expires_at is not None and at > expires_at:
        return EXPIRED_MESSAGE

    if coupon.usage_limit is not None and coupon.usage_count >= coupon.usage_limit:
        return EXHAUSTED_MESSAGE

    if subtotal is not None and coupon.min_order_amount is not None and to_money(subtotal) < to_money(coupon.min_order_amount):
        return MIN_ORDER_MESSAGE.format(amount=f"{to_money(coupon.min_order_amount):,.2f}")

    return None


def calculate_discount(coupon: Coupon, subtotal: Decimal) -> Decimal:
    """Discount for subtotal, always within [0, subtotal] and within the cap for percentages."""
    subtotal = to_money(subtotal)
    value = Decimal(str(coupon.discount_value))

    if coupon.discount_type == DiscountType.PERCENTAGE.value:
        discount = subtotal * value / Decimal(100)
        if coupon.max_discount_amount is not None:
            discount = min(discount, Decimal(str(coupon.max_discount_amount)))
    else:
        discount = min(value, subtotal)

    discount = to_money(discount)
    # percentages above 100 would otherwise overshoot the subtotal
    return max(Decimal("0.00"), min(discount, subtotal))
