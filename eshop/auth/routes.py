from typing import Optional
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import  AsyncSession
from eshop.auth.constants import logger
from eshop.auth.dependencies import bearer_token, signup_validation
from eshop.auth.models import SignIn, SignupIn
from eshop.auth.services import create_user, login_user, logout_user
from eshop.common.utils import success_response
from eshop.db.dependencies import get_session
from eshop.identity.constants import GUEST_COOKIE_NAME
from eshop.identity.models import Authenticated

auth_router = APIRouter()


@auth_router.post("/login")
async def login(request: Request, payload: SignIn, session: AsyncSession = Depends(get_session)):

    logger.info("login.attempt", extra={"email": payload.email})

    # body wins over the cookie for clients that cannot send cookies cross site
    guest_token = payload.guest_session_id or request.cookies.get(GUEST_COOKIE_NAME)

    result = await login_user(session, payload, guest_token)

    # the caller is a user from here on, no guest cookie on this response
    request.state.identity = Authenticated(user_id=result["user_id"])

    resp = {
        "success": True,
        "user": result["user"],
        "expires_at": result["expires_at"],
    }
    return success_response(resp, 200)


@auth_router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(payload: SignupIn = Depends(signup_validation), session: AsyncSession = Depends(get_session)):

    logger.info("signup.attempt", extra={"email": payload.email})

    user = await create_user(session, payload)
    return success_response({"success": True, "message": "User created successfully.", "user": user}, 201)


@auth_router.post("/logout")
async def logout(token: Optional[str] = Depends(bearer_token), session: AsyncSession = Depends(get_session)):

    await logout_user(session, token)

    logger.info("logout.success")
    return success_response({"success": True, "message": "Logged out successfully."}, 200)
