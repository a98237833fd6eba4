from decimal import Decimal
from typing import Optional, Tuple
from eshop.common.custom_exceptions import CouponRejected, NotFoundError
from eshop.common.utils import to_money
from eshop.coupons.constants import EXHAUSTED_MESSAGE, INVALID_CODE_MESSAGE, logger
from eshop.coupons.models import CouponOut
from eshop.coupons.repository import (
    deactivate_if_exhausted,
    find_coupon_by_code,
    increment_coupon_usage,
    record_coupon_usage,
)
from eshop.coupons.utils import calculate_discount, coupon_rejection_reason, normalize_code
from eshop.schema.full_schema import Coupon


async def validate_coupon(session, code: str, subtotal: Decimal) -> Tuple[Coupon, Decimal]:
    """Look up and check a coupon for subtotal. Raises CouponRejected, unknown codes included."""
    coupon = await find_coupon_by_code(session, code)
    if coupon is None:
        raise CouponRejected(INVALID_CODE_MESSAGE)

    reason = coupon_rejection_reason(coupon, subtotal)
    if reason:
        raise CouponRejected(reason)

    return coupon, calculate_discount(coupon, subtotal)


async def verify_coupon(session, code: str, subtotal: Decimal) -> CouponOut:
    code = normalize_code(code)
    subtotal = to_money(subtotal)

    coupon = await find_coupon_by_code(session, code)
    if coupon is None:
        logger.info("coupon.verify.unknown", extra={"code": code})
        raise NotFoundError(INVALID_CODE_MESSAGE)

    reason = coupon_rejection_reason(coupon, subtotal)
    if reason:
        logger.info("coupon.verify.rejected", extra={"code": code, "reason": reason})
        raise CouponRejected(reason)

    discount = calculate_discount(coupon, subtotal)
    logger.info("coupon.verify.ok", extra={"code": code, "discount_amount": str(discount)})

    return CouponOut(
        code=coupon.code,
        discount_type=coupon.discount_type,
        discount_value=coupon.discount_value,
        discount_amount=discount,
        description=coupon.description,
        remaining_usage=coupon.remaining_usage,
    )


async def redeem_coupon(session, coupon: Coupon, order_id: int, user_id: Optional[int], discount: Decimal) -> None:
    """Usage row, +1 on the counter and deactivation at the limit. Caller owns the transaction."""
    if not await increment_coupon_usage(session, coupon.id):
        # lost a race for the last use
        raise CouponRejected(EXHAUSTED_MESSAGE)

    await record_coupon_usage(session, coupon.id, order_id, user_id, discount)

    if await deactivate_if_exhausted(session, coupon.id):
        logger.info("coupon.deactivated", extra={"coupon_id": coupon.id, "code": coupon.code})
