from decimal import Decimal
from typing import Optional
from sqlalchemy import or_, select, update
from eshop.common.utils import now
from eshop.coupons.utils import normalize_code
from eshop.schema.full_schema import Coupon, CouponUsage


async def find_coupon_by_code(session, code: str) -> Optional[Coupon]:
    stmt = select(Coupon).where(Coupon.code == normalize_code(code))
    res = await session.execute(stmt)
    return res.scalar_one_or_none()


async def record_coupon_usage(session, coupon_id: int, order_id: Optional[int],
                              user_id: Optional[int], discount_amount: Decimal) -> CouponUsage:
    usage = CouponUsage(
        coupon_id=coupon_id,
        order_id=order_id,
        user_id=user_id,
        discount_amount=discount_amount,
        used_at=now(),
    )
    session.add(usage)
    await session.flush()
    return usage


async def increment_coupon_usage(session, coupon_id: int) -> bool:
    """Conditional +1, False when the coupon went inactive or hit its limit concurrently."""
    stmt = (
        update(Coupon)
        .where(
            Coupon.id == coupon_id,
            Coupon.is_active.is_(True),
            or_(Coupon.usage_limit.is_(None), Coupon.usage_count < Coupon.usage_limit),
        )
        .values(usage_count=Coupon.usage_count + 1, updated_at=now())
        .execution_options(synchronize_session=False)
    )
    res = await session.execute(stmt)
    return res.rowcount == 1


async def deactivate_if_exhausted(session, coupon_id: int) -> bool:
    stmt = (
        update(Coupon)
        .where(
            Coupon.id == coupon_id,
            Coupon.usage_limit.is_not(None),
            Coupon.usage_count >= Coupon.usage_limit,
            Coupon.is_active.is_(True),
        )
        .values(is_active=False, updated_at=now())
        .execution_options(synchronize_session=False)
    )
    res = await session.execute(stmt)
    return res.rowcount == 1
