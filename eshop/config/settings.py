from decimal import Decimal
from pydantic_settings import BaseSettings

class Settings(BaseSettings):

    DATABASE_URL: str = "sqlite+aiosqlite:///./eshop.db"
    DB_ECHO: bool = False
    TOKEN_HASH_ALGO: str = "sha256"
    PASS_HASH_SCHEME: str = "pbkdf2_sha256"
    USER_SESSION_EXPIRE_DAYS: int = 30
    GUEST_COOKIE_NAME: str = "eshop_session_id"
    GUEST_COOKIE_MAX_AGE_DAYS: int = 30

    # pricing policy for storefront checkout
    TAX_RATE: Decimal = Decimal("0.08")
    SHIPPING_FEE: Decimal = Decimal("10.00")
    FREE_SHIPPING_THRESHOLD: Decimal = Decimal("150.00")
    CURRENCY: str = "USD"

    class Config:
        env_file = ".env"
        extra="ignore"

config_settings = Settings()
