from eshop.common.logging_setup import get_logger

logger = get_logger("eshop.cart")

MAX_ITEM_QTY = 1000
