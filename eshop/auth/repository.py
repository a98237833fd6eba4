from typing import Optional
from sqlalchemy import delete, select
from eshop.auth.utils import hash_token, make_session_token_plain, session_expiry
from eshop.schema.full_schema import Users, UserSession
from eshop.auth.constants import logger


async def user_by_email(session, email: str) -> Optional[Users]:
    stmt = select(Users).where(Users.email == email)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def user_id_by_email(session, email: str) -> Optional[int]:
    stmt = select(Users.id).where(Users.email == email)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_user_session_by_token(session, token_plain: str) -> Optional[UserSession]:
    stmt = select(UserSession).where(UserSession.session_token_hash == hash_token(token_plain))
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def create_user_session(session, user_id: int):
    """Insert a session row and return (plain_token, row). Only the hash is stored."""
    token_plain = make_session_token_plain()
    user_session = UserSession(
        user_id=user_id,
        session_token_hash=hash_token(token_plain),
        expires_at=session_expiry(),
    )
    session.add(user_session)
    await session.flush()
    logger.debug("user_session.created", extra={"user_id": user_id, "user_session_id": user_session.id})
    return token_plain, user_session


async def delete_user_session(session, token_plain: str) -> int:
    stmt = delete(UserSession).where(UserSession.session_token_hash == hash_token(token_plain))
    result = await session.execute(stmt)
    return result.rowcount or 0
