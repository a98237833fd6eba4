from typing import Dict, List, Optional
from sqlalchemy.exc import IntegrityError
from eshop.cart.constants import logger
from eshop.cart.models import CartLineOut, CartProductOut, CartSyncLine
from eshop.cart.repository import (
    add_or_increment_item,
    create_cart,
    delete_cart,
    delete_guest_carts,
    existing_product_ids,
    find_cart_id,
    get_or_create_cart,
    list_cart_items,
    read_cart_items,
    replace_cart_items,
)
from eshop.common.custom_exceptions import ValidationError
from eshop.common.retries import is_recoverable_exception, retry_async
from eshop.identity.models import Authenticated, Guest, Identity
from eshop.identity.utils import new_guest_token


async def get_cart(session, identity: Identity) -> List[CartLineOut]:
    cart_id = await get_or_create_cart(session, identity)
    rows = await read_cart_items(session, cart_id)
    lines = []
    for product_id, quantity, name, price, stock_quantity, image_url in rows:
        product = None
        if name is not None:
            product = CartProductOut(name=name, price=price, stock_quantity=stock_quantity, image_url=image_url)
        lines.append(CartLineOut(product_id=product_id, quantity=quantity, product=product))
    return lines


def _dedupe_lines(lines: List[CartSyncLine]) -> Dict[str, int]:
    # a product listed twice keeps its last quantity
    items: Dict[str, int] = {}
    for line in lines:
        items[line.id] = line.qty
    return items


async def sync_cart(session, identity: Identity, lines: List[CartSyncLine]) -> Dict[str, int]:
    """Make the caller's cart hold exactly `lines`. Client quantities win, last write wins."""

    items = _dedupe_lines(lines)
    known = await existing_product_ids(session, items.keys())
    unknown = [pid for pid in items if pid not in known]
    if unknown:
        raise ValidationError({f"cart.{pid}": ["Product not found"] for pid in unknown})

    cart_id = await get_or_create_cart(session, identity)
    try:
        await replace_cart_items(session, cart_id, items)
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info("cart.sync", extra={
        "cart_id": cart_id,
        "owner": "user" if isinstance(identity, Authenticated) else "guest",
        "lines": len(items),
    })

    return {ci.product_id: ci.quantity for ci in await list_cart_items(session, cart_id)}


def _merge_retryable(exc: BaseException) -> bool:
    # a concurrent first cart insert for the same user loses on the unique key, rerunning picks it up
    return isinstance(exc, IntegrityError) or is_recoverable_exception(exc)


@retry_async(attempts=3, if_retryable=_merge_retryable)
async def merge_guest_cart_into_user(session, guest_token: Optional[str], user_id: int) -> int:
    """Fold the guest cart into the user's cart as one unit of work.

    Quantities for products present in both carts are added. The guest cart is
    deleted afterwards. Returns the number of guest lines folded, 0 when there
    was nothing to merge.
    """
    if not guest_token:
        logger.info("cart.merge.skipped", extra={"user_id": user_id, "reason": "no_guest_token"})
        return 0

    guest = Guest(token=guest_token)
    guest_cart_id = await find_cart_id(session, guest)
    if guest_cart_id is None:
        logger.info("cart.merge.skipped", extra={"user_id": user_id, "reason": "no_guest_cart"})
        return 0

    logger.info("cart.merge.start", extra={"user_id": user_id, "guest_token": guest_token, "guest_cart_id": guest_cart_id})

    try:
        user = Authenticated(user_id=user_id)
        user_cart_id = await find_cart_id(session, user)
        if user_cart_id is None:
            user_cart_id = await create_cart(session, user)

        guest_items = await list_cart_items(session, guest_cart_id)
        created = 0
        for item in guest_items:
            if await add_or_increment_item(session, user_cart_id, item.product_id, item.quantity):
                created += 1

        await delete_cart(session, guest_cart_id)
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info("cart.merge.done", extra={
        "user_id": user_id,
        "user_cart_id": user_cart_id,
        "merged_lines": len(guest_items),
        "new_lines": created,
    })
    return len(guest_items)


async def reset_guest_identity(session, old_token: Optional[str]) -> Guest:
    """Drop the guest cart of old_token (never a user cart) and hand out a fresh guest token."""
    removed = 0
    if old_token:
        try:
            removed = await delete_guest_carts(session, old_token)
            await session.commit()
        except Exception:
            await session.rollback()
            raise

    new_guest = Guest(token=new_guest_token())
    logger.info("cart.guest_reset", extra={
        "old_guest_token": old_token,
        "new_guest_token": new_guest.token,
        "carts_removed": removed,
    })
    return new_guest
