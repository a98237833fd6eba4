from typing import List, Optional
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from eshop.common.constants import AUTH_TOKEN_STATUS_HEADER
from eshop.identity.constants import GUEST_COOKIE_MAX_AGE, GUEST_COOKIE_NAME
from eshop.identity.models import Guest
from eshop.identity.services import resolve_identity
from eshop.identity.utils import bearer_token_from_header
from eshop.middlewares.constants import logger


# Every request leaves with request.state.identity set to Authenticated or Guest.
# Routes may swap it (login, guest reset), the cookie follows whatever identity is final.
class IdentityMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, *, session_maker, skip_paths: Optional[List[str]] = None):
        super().__init__(app)
        self.session_maker = session_maker
        self.skip_paths = skip_paths or []

    async def dispatch(self, request: Request, call_next):
        if any(request.url.path.startswith(p) for p in self.skip_paths):
            return await call_next(request)

        bearer = bearer_token_from_header(request.headers.get("Authorization"))
        guest_cookie = request.cookies.get(GUEST_COOKIE_NAME)

        async with self.session_maker() as session:
            resolved = await resolve_identity(session, bearer, guest_cookie)

        request.state.identity = resolved.identity

        logger.debug("identity.middleware.resolved", extra={
            "path": request.url.path,
            "kind": "user" if not isinstance(resolved.identity, Guest) else "guest",
            "guest_issued": resolved.guest_token_issued,
        })

        response = await call_next(request)

        if resolved.token_status is not None:
            response.headers[AUTH_TOKEN_STATUS_HEADER] = resolved.token_status.value

        final_identity = getattr(request.state, "identity", resolved.identity)
        if isinstance(final_identity, Guest):
            # rolling expiry, readable by the storefront js
            response.set_cookie(
                key=GUEST_COOKIE_NAME,
                value=final_identity.token,
                max_age=GUEST_COOKIE_MAX_AGE,
                path="/",
                httponly=False,
                secure=False,
                samesite="lax",
            )

        return response
