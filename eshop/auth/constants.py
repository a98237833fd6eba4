from eshop.config.settings import config_settings
from eshop.common.logging_setup import get_logger

logger = get_logger("eshop.auth")

USER_SESSION_EXPIRE_DAYS = int(config_settings.USER_SESSION_EXPIRE_DAYS)

MIN_PASSWORD_LENGTH = 6

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
