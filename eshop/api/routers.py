from fastapi import APIRouter
from eshop.api import version_prefix
from eshop.auth.routes import auth_router
from eshop.cart.routes import carts_router
from eshop.coupons.routes import coupons_router
from eshop.orders.routes import orders_router
from eshop.common.routes import home_router


public_routers = APIRouter(prefix=version_prefix)


public_routers.include_router(auth_router, prefix="/users",tags=["users"])
public_routers.include_router(carts_router,prefix="/cart",tags=["cart"])
public_routers.include_router(coupons_router,prefix="/coupons",tags=["coupons"])
public_routers.include_router(orders_router,tags=["orders"])
public_routers.include_router(home_router,tags=["home"])
