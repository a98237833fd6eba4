from typing import Dict, List, Optional
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from eshop.common.utils import now
from eshop.identity.models import Authenticated, Identity
from eshop.schema.full_schema import Cart, CartItem, Product


def _owner_clause(identity: Identity):
    if isinstance(identity, Authenticated):
        return Cart.user_id == identity.user_id
    # guest carts never carry a user id
    return (Cart.session_id == identity.token) & (Cart.user_id.is_(None))


def _owner_values(identity: Identity) -> Dict:
    if isinstance(identity, Authenticated):
        return {"user_id": identity.user_id}
    return {"session_id": identity.token}


async def find_cart_id(session, identity: Identity) -> Optional[int]:
    stmt = select(Cart.id).where(_owner_clause(identity)).limit(1)
    res = await session.execute(stmt)
    return res.scalar_one_or_none()


async def create_cart(session, identity: Identity) -> int:
    """Insert inside the caller's unit of work, a concurrent insert surfaces as IntegrityError."""
    cart = Cart(**_owner_values(identity))
    session.add(cart)
    await session.flush()
    return cart.id


async def get_or_create_cart(session, identity: Identity) -> int:
    cart_id = await find_cart_id(session, identity)
    if cart_id is not None:
        return cart_id

    cart = Cart(**_owner_values(identity))
    session.add(cart)
    try:
        await session.commit()
        await session.refresh(cart)
        return cart.id
    except IntegrityError:
        # another request created it first
        await session.rollback()
        return await find_cart_id(session, identity)


async def list_cart_items(session, cart_id: int) -> List[CartItem]:
    stmt = select(CartItem).where(CartItem.cart_id == cart_id).order_by(CartItem.id)
    res = await session.execute(stmt)
    return list(res.scalars().all())


async def read_cart_items(session, cart_id: int):
    """Cart lines with live product data for display, product columns are None for vanished products."""
    stmt = (
        select(
            CartItem.product_id,
            CartItem.quantity,
            Product.name,
            Product.price,
            Product.stock_quantity,
            Product.image_url,
        )
        .outerjoin(Product, Product.id == CartItem.product_id)
        .where(CartItem.cart_id == cart_id)
        .order_by(CartItem.id)
    )
    res = await session.execute(stmt)
    return res.all()


async def existing_product_ids(session, product_ids) -> set:
    if not product_ids:
        return set()
    stmt = select(Product.id).where(Product.id.in_(list(product_ids)))
    res = await session.execute(stmt)
    return set(res.scalars().all())


async def replace_cart_items(session, cart_id: int, items: Dict[str, int]) -> None:
    """Full replacement: the cart holds exactly `items` afterwards, quantities overwritten."""
    drop = delete(CartItem).where(CartItem.cart_id == cart_id)
    if items:
        drop = drop.where(CartItem.product_id.not_in(list(items)))
    await session.execute(drop)

    current = {ci.product_id: ci for ci in await list_cart_items(session, cart_id)}
    for product_id, quantity in items.items():
        existing = current.get(product_id)
        if existing is not None:
            if existing.quantity != quantity:
                await session.execute(
                    update(CartItem)
                    .where(CartItem.id == existing.id)
                    .values(quantity=quantity, updated_at=now())
                )
            continue
        session.add(CartItem(cart_id=cart_id, product_id=product_id, quantity=quantity))
    await session.flush()


async def add_or_increment_item(session, cart_id: int, product_id: str, quantity: int) -> bool:
    """Add quantity to an existing line or create it. Returns True when a line was created."""
    upd = (
        update(CartItem)
        .where(CartItem.cart_id == cart_id, CartItem.product_id == product_id)
        .values(quantity=CartItem.quantity + quantity, updated_at=now())
    )
    res = await session.execute(upd)
    if res.rowcount:
        return False

    session.add(CartItem(cart_id=cart_id, product_id=product_id, quantity=quantity))
    await session.flush()
    return True


async def clear_cart_items(session, cart_id: int) -> int:
    res = await session.execute(delete(CartItem).where(CartItem.cart_id == cart_id))
    return res.rowcount or 0


async def delete_cart(session, cart_id: int) -> None:
    # children first, the FK cascade is not relied on (sqlite runs without foreign_keys pragma)
    await session.execute(delete(CartItem).where(CartItem.cart_id == cart_id))
    await session.execute(delete(Cart).where(Cart.id == cart_id))


async def delete_guest_carts(session, guest_token: str) -> int:
    """Delete guest carts for a token. Carts that belong to a user are never touched."""
    stmt = select(Cart.id).where(Cart.session_id == guest_token, Cart.user_id.is_(None))
    cart_ids = list((await session.execute(stmt)).scalars().all())
    for cart_id in cart_ids:
        await delete_cart(session, cart_id)
    return len(cart_ids)
