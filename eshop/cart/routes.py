from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from eshop.cart.models import CartSyncIn
from eshop.cart.services import get_cart, reset_guest_identity, sync_cart
from eshop.common.utils import success_response
from eshop.db.dependencies import get_session
from eshop.identity.constants import GUEST_COOKIE_NAME
from eshop.identity.dependencies import get_identity
from eshop.identity.models import Guest, Identity
from eshop.identity.utils import is_valid_guest_token

carts_router=APIRouter()


@carts_router.get("/data")
async def cart_data(identity: Identity = Depends(get_identity), session: AsyncSession = Depends(get_session)):
    lines = await get_cart(session, identity)
    return success_response({"items": [line.model_dump() for line in lines]}, 200)


@carts_router.post("/sync")
async def cart_sync(payload: CartSyncIn, identity: Identity = Depends(get_identity),
                    session: AsyncSession = Depends(get_session)):
    items = await sync_cart(session, identity, payload.cart)
    resp = {
        "success": True,
        "cart": [{"id": pid, "qty": qty} for pid, qty in items.items()],
    }
    return success_response(resp, 200)


# storefront calls this on logout so the next visitor on the device starts empty
@carts_router.post("/guest/reset")
async def guest_reset(request: Request, identity: Identity = Depends(get_identity),
                      session: AsyncSession = Depends(get_session)):
    if isinstance(identity, Guest):
        old_token = identity.token
    else:
        cookie = request.cookies.get(GUEST_COOKIE_NAME)
        old_token = cookie if is_valid_guest_token(cookie) else None

    new_guest = await reset_guest_identity(session, old_token)

    # identity middleware writes the cookie for whatever identity the request ends with
    request.state.identity = new_guest

    resp = {
        "success": True,
        "message": "Guest session reset",
        "new_session_id": new_guest.token,
    }
    return success_response(resp, 200)
