from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from eshop.common.utils import success_response
from eshop.db.dependencies import get_session
from eshop.identity.dependencies import get_identity, require_user
from eshop.identity.models import Authenticated, Identity
from eshop.orders.models import CheckoutIn
from eshop.orders.services import get_user_orders, process_checkout

orders_router=APIRouter()


@orders_router.post("/checkout/process")
async def checkout_process(payload: CheckoutIn, identity: Identity = Depends(get_identity),
                           session: AsyncSession = Depends(get_session)):

    order = await process_checkout(session, identity, payload)

    resp = {
        "success": True,
        "message": "Order placed successfully!",
        "order": {
            "id": str(order.public_id),
            "order_number": order.order_number,
            "total": order.total,
        },
    }
    return success_response(resp, 200)


@orders_router.get("/users/orders")
async def my_orders(user: Authenticated = Depends(require_user), session: AsyncSession = Depends(get_session)):
    orders = await get_user_orders(session, user.user_id)
    return success_response({"success": True, "orders": orders}, 200)
