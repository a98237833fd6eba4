from datetime import datetime, timedelta
import hashlib
import secrets
from typing import Tuple
from passlib.context import CryptContext
from eshop.auth.constants import MIN_PASSWORD_LENGTH, USER_SESSION_EXPIRE_DAYS
from eshop.common.utils import now
from eshop.config.settings import config_settings

PASS_HASH_SCHEME=config_settings.PASS_HASH_SCHEME
TOKEN_HASH_ALGO = config_settings.TOKEN_HASH_ALGO

pwd_context = CryptContext(schemes=[PASS_HASH_SCHEME], deprecated="auto")

def hash_password(plain_password: str) -> str:
    return pwd_context.hash(plain_password)

def verify_password(plain_password: str, password_hash: str) -> bool:
    return pwd_context.verify(plain_password, password_hash)


def validate_password(password: str, min_length: int = MIN_PASSWORD_LENGTH) -> Tuple[bool, str]:
    if len(password.strip()) < min_length:
        return False, f"Password must be at least {min_length} characters long"
    return True, "OK"


def generate_plain_token(nbytes: int = 48) -> str:
    return secrets.token_urlsafe(nbytes)

def make_session_token_plain() -> str:
    return generate_plain_token(32)

def hash_token(plain:str)->str:
    hash_func=getattr(hashlib,TOKEN_HASH_ALGO)
    return hash_func(plain.encode()).hexdigest()

def session_expiry(days: int = USER_SESSION_EXPIRE_DAYS) -> datetime:
    return now() + timedelta(days=days)
