from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from eshop.auth.repository import get_user_session_by_token
from eshop.common.utils import as_utc, now
from eshop.identity.constants import logger
from eshop.identity.models import Authenticated, Guest, ResolvedIdentity, TokenStatus
from eshop.identity.utils import is_valid_guest_token, new_guest_token


def resolve_guest(guest_cookie: Optional[str]) -> Guest:
    if is_valid_guest_token(guest_cookie):
        return Guest(token=guest_cookie)
    return Guest(token=new_guest_token())


async def resolve_identity(session: AsyncSession, bearer_token: Optional[str], guest_cookie: Optional[str]) -> ResolvedIdentity:
    """Authenticated only for a known, unexpired session token, everything else is a guest."""

    token_status = None
    if bearer_token:
        user_session = await get_user_session_by_token(session, bearer_token)
        if user_session is None:
            token_status = TokenStatus.INVALID
        elif as_utc(user_session.expires_at) <= now():
            token_status = TokenStatus.EXPIRED
        else:
            return ResolvedIdentity(identity=Authenticated(user_id=user_session.user_id))

        logger.info("identity.stale_token", extra={"token_status": token_status.value})

    issued = not is_valid_guest_token(guest_cookie)
    guest = resolve_guest(guest_cookie)
    if issued:
        logger.info("identity.guest_issued", extra={"guest_token": guest.token})

    return ResolvedIdentity(identity=guest, token_status=token_status, guest_token_issued=issued)
