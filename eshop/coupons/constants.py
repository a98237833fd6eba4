from eshop.common.logging_setup import get_logger

logger = get_logger("eshop.coupons")

INVALID_CODE_MESSAGE = "Invalid coupon code."
NOT_ACTIVE_MESSAGE = "This coupon is not active."
NOT_STARTED_MESSAGE = "This coupon is not yet available."
EXPIRED_MESSAGE = "This coupon has expired."
EXHAUSTED_MESSAGE = "This coupon has reached its usage limit."
MIN_ORDER_MESSAGE = "Minimum order amount of ${amount} required."
