from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from eshop.common.utils import success_response
from eshop.coupons.models import CouponVerifyIn
from eshop.coupons.services import verify_coupon
from eshop.db.dependencies import get_session

coupons_router = APIRouter()


@coupons_router.post("/verify")
async def coupon_verify(payload: CouponVerifyIn, session: AsyncSession = Depends(get_session)):
    coupon = await verify_coupon(session, payload.code, payload.subtotal)
    resp = {
        "valid": True,
        "message": "Coupon is valid",
        "discount_amount": coupon.discount_amount,
        "coupon": coupon.model_dump(),
    }
    return success_response(resp, 200)
