from eshop.common.logging_setup import get_logger

logger = get_logger("eshop.products")
