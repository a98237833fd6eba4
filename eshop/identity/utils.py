import re
import uuid
from typing import Optional

_GUEST_TOKEN_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


def is_valid_guest_token(value: Optional[str]) -> bool:
    # shape check only, the cart for it is created lazily
    return bool(value) and bool(_GUEST_TOKEN_RE.match(value))


def new_guest_token() -> str:
    return str(uuid.uuid4())


def bearer_token_from_header(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() != "bearer" or not credentials.strip():
        return None
    return credentials.strip()
