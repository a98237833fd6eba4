from datetime import timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from sqlalchemy import func, select
from eshop.auth.repository import create_user_session
from eshop.auth.utils import hash_password
from eshop.common.utils import now
from eshop.db.connection import async_session
from eshop.identity.constants import GUEST_COOKIE_NAME
from eshop.schema.full_schema import Cart, CartItem, Coupon, Product, Users

url_prefix = "/api/v1"

VALID_CARD = "4532015112830366"

USER_PASSWORD = "s3cret-pass"


async def create_product(product_id: str, price: str = "10.00", stock: int = 10, **extra) -> Product:
    async with async_session() as session:
        product = Product(id=product_id, name=extra.pop("name", f"Product {product_id}"),
                          price=Decimal(price), stock_quantity=stock, **extra)
        session.add(product)
        await session.commit()
        return product


async def create_coupon(code: str, discount_type: str = "percentage", value: str = "10", **extra) -> Coupon:
    async with async_session() as session:
        coupon = Coupon(code=code.upper(), discount_type=discount_type, discount_value=Decimal(value), **extra)
        session.add(coupon)
        await session.commit()
        return coupon


async def create_user(email: str = "asha@example.com", password: str = USER_PASSWORD) -> int:
    async with async_session() as session:
        user = Users(email=email, first_name="Asha", last_name="Rao", password_hash=hash_password(password))
        session.add(user)
        await session.commit()
        return user.id


async def issue_session_token(user_id: int, expired: bool = False) -> str:
    async with async_session() as session:
        token, user_session = await create_user_session(session, user_id)
        if expired:
            user_session.expires_at = now() - timedelta(minutes=1)
        await session.commit()
        return token


async def seed_cart(user_id: Optional[int] = None, guest_token: Optional[str] = None,
                    items: Optional[Dict[str, int]] = None) -> int:
    async with async_session() as session:
        cart = Cart(user_id=user_id, session_id=guest_token)
        session.add(cart)
        await session.flush()
        for product_id, qty in (items or {}).items():
            session.add(CartItem(cart_id=cart.id, product_id=product_id, quantity=qty))
        await session.commit()
        return cart.id


async def cart_lines(user_id: Optional[int] = None, guest_token: Optional[str] = None) -> Optional[Dict[str, int]]:
    """Lines of the owner's cart, None when the owner has no cart at all."""
    async with async_session() as session:
        stmt = select(Cart.id)
        if user_id is not None:
            stmt = stmt.where(Cart.user_id == user_id)
        else:
            stmt = stmt.where(Cart.session_id == guest_token, Cart.user_id.is_(None))
        cart_id = (await session.execute(stmt)).scalar_one_or_none()
        if cart_id is None:
            return None
        rows = (await session.execute(
            select(CartItem.product_id, CartItem.quantity).where(CartItem.cart_id == cart_id)
        )).all()
        return {pid: qty for pid, qty in rows}


async def count_rows(model) -> int:
    async with async_session() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


async def fetch(model, pk):
    async with async_session() as session:
        return await session.get(model, pk)


def guest_headers(token: str) -> Dict[str, str]:
    return {"Cookie": f"{GUEST_COOKIE_NAME}={token}"}


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def set_cookie_value(response, name: str = GUEST_COOKIE_NAME) -> Optional[str]:
    for header in response.headers.get_list("set-cookie"):
        key, _, rest = header.partition("=")
        if key.strip() == name:
            return rest.split(";", 1)[0]
    return None


def checkout_payload(items: List[Tuple[str, int]], coupon_code: Optional[str] = None, **overrides) -> Dict:
    payload = {
        "shipping_first_name": "Asha",
        "shipping_last_name": "Rao",
        "shipping_email": "asha@example.com",
        "shipping_phone": "555-0100",
        "shipping_address1": "12 Orchard Lane",
        "shipping_city": "Portland",
        "shipping_state": "OR",
        "shipping_zip": "97201",
        "shipping_country": "US",
        "card_number": VALID_CARD,
        "card_expiry": "12/30",
        "card_cvc": "123",
        "card_name": "Asha Rao",
        "items": [{"product_id": pid, "quantity": qty} for pid, qty in items],
    }
    if coupon_code is not None:
        payload["coupon_code"] = coupon_code
    payload.update(overrides)
    return payload
