from typing import Any, Dict, Optional
from sqlalchemy.exc import IntegrityError
from eshop.auth.constants import INVALID_CREDENTIALS_MESSAGE, logger
from eshop.auth.models import SignIn, SignupIn
from eshop.auth.repository import create_user_session, delete_user_session, user_by_email, user_id_by_email
from eshop.auth.utils import hash_password, verify_password
from eshop.cart.services import merge_guest_cart_into_user
from eshop.common.custom_exceptions import AuthenticationError, ConflictError
from eshop.schema.full_schema import Users


def user_to_dict(user: Users) -> Dict[str, Any]:
    return {
        "id": str(user.public_id),
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "phone": user.phone,
    }


async def create_user(session, payload: SignupIn) -> Dict[str, Any]:

    if await user_id_by_email(session, payload.email):
        logger.warning("user.duplicate", extra={"email": payload.email})
        raise ConflictError("Email already registered")

    try:
        user = Users(
            email=payload.email,
            first_name=payload.first_name.strip(),
            last_name=payload.last_name.strip(),
            phone=payload.phone,
            password_hash=hash_password(payload.password),
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
    except IntegrityError:
        await session.rollback()
        logger.warning("user.create.integrity_error", extra={"email": payload.email})
        raise ConflictError("Email already registered")

    logger.info("user.created", extra={"user_public_id": str(user.public_id), "email": payload.email})
    return user_to_dict(user)


async def login_user(session, payload: SignIn, guest_token: Optional[str]) -> Dict[str, Any]:
    """Check credentials, fold the guest cart in, then hand out a session token.

    The merge commits before the token exists, so the first authenticated cart
    read already sees the merged lines.
    """
    email = payload.email.strip().lower()
    user = await user_by_email(session, email)
    if user is None or not verify_password(payload.password, user.password_hash):
        logger.warning("auth.user.invalid_credentials", extra={"email": email})
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

    # snapshot before the merge, a rollback inside it expires loaded rows
    user_id = user.id
    user_out = user_to_dict(user)

    await merge_guest_cart_into_user(session, guest_token, user_id)

    token_plain, user_session = await create_user_session(session, user_id)
    expires_at = user_session.expires_at
    await session.commit()

    logger.info("login.success", extra={"user_public_id": user_out["id"]})
    return {
        "user_id": user_id,
        "user": {**user_out, "session_token": token_plain},
        "session_token": token_plain,
        "expires_at": expires_at,
    }


async def logout_user(session, token_plain: Optional[str]) -> None:
    if not token_plain:
        raise AuthenticationError("Authentication required")

    removed = await delete_user_session(session, token_plain)
    await session.commit()
    if not removed:
        logger.info("logout.unknown_session")
