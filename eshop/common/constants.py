import contextvars
from typing import Optional

# Context variables for request id
request_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("request_id", default=None)

AUTH_TOKEN_STATUS_HEADER = "X-Auth-Token-Status"
