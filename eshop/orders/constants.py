from decimal import Decimal
from eshop.config.settings import config_settings
from eshop.common.logging_setup import get_logger

logger = get_logger("eshop.orders")

TAX_RATE = Decimal(str(config_settings.TAX_RATE))
SHIPPING_FEE = Decimal(str(config_settings.SHIPPING_FEE))
FREE_SHIPPING_THRESHOLD = Decimal(str(config_settings.FREE_SHIPPING_THRESHOLD))
CURRENCY = config_settings.CURRENCY

ORDER_NUMBER_PREFIX = "ORD"

INVALID_CARD_MESSAGE = "The card number is invalid."
INVALID_EXPIRY_MESSAGE = "The card expiry must be in MM/YY format."
INVALID_CVC_MESSAGE = "The card cvc must be 3 or 4 digits."
UNKNOWN_PRODUCT_MESSAGE = "The selected product is invalid."
