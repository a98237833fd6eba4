from eshop.common.logging_setup import get_logger
from eshop.config.settings import config_settings

logger = get_logger("eshop.identity")

GUEST_COOKIE_NAME = config_settings.GUEST_COOKIE_NAME

GUEST_COOKIE_MAX_AGE = int(config_settings.GUEST_COOKIE_MAX_AGE_DAYS) * 24 * 3600
