from decimal import Decimal
from typing import Any, Dict, List, Tuple
from sqlalchemy.exc import SQLAlchemyError
from eshop.cart.repository import clear_cart_items, find_cart_id
from eshop.common.custom_exceptions import CouponRejected, StockShortfall, StoreError, TransientStorageError, ValidationError
from eshop.common.utils import to_money
from eshop.coupons.services import redeem_coupon, validate_coupon
from eshop.coupons.utils import normalize_code
from eshop.identity.models import Authenticated, Identity
from eshop.orders.constants import CURRENCY, UNKNOWN_PRODUCT_MESSAGE, logger
from eshop.orders.models import CheckoutIn, CheckoutLine, PricedLine
from eshop.orders.repository import create_order, create_order_items, current_stock, items_for_orders, list_user_orders
from eshop.orders.utils import compute_order_totals, validate_payment_card
from eshop.products.repository import decrement_stock, find_products_by_ids
from eshop.schema.full_schema import Orders


def _shortfall(product_id: str, name: str, requested: int, available: int) -> Dict[str, Any]:
    return {
        "product_id": product_id,
        "name": name,
        "requested": requested,
        "available": available,
        "message": f"Insufficient stock for {name}. Available: {available}",
    }


async def price_items(session, items: List[CheckoutLine]) -> Tuple[List[PricedLine], Decimal]:
    """Price lines from catalog prices, client prices are never read.

    Repeated product ids are folded into one line. Every shortfall is collected
    before failing so the caller sees the full list.
    """
    requested: Dict[str, int] = {}
    for item in items:
        requested[item.product_id] = requested.get(item.product_id, 0) + item.quantity

    products = await find_products_by_ids(session, requested.keys())

    unknown = {
        f"items.{idx}.product_id": [UNKNOWN_PRODUCT_MESSAGE]
        for idx, item in enumerate(items)
        if item.product_id not in products
    }
    if unknown:
        raise ValidationError(unknown)

    lines: List[PricedLine] = []
    shortfalls = []
    subtotal = Decimal("0.00")
    for product_id, quantity in requested.items():
        product = products[product_id]
        if product.oversell_guarded and product.stock_quantity < quantity:
            shortfalls.append(_shortfall(product.id, product.name, quantity, product.stock_quantity))

        price = to_money(product.price)
        line_total = to_money(price * quantity)
        subtotal += line_total
        lines.append(PricedLine(
            product_id=product.id,
            product_name=product.name,
            product_price=price,
            quantity=quantity,
            total=line_total,
            track_inventory=product.track_inventory,
            oversell_guarded=product.oversell_guarded,
        ))

    if shortfalls:
        raise StockShortfall(shortfalls)

    return lines, to_money(subtotal)


async def process_checkout(session, identity: Identity, payload: CheckoutIn) -> Orders:
    """Validate, price and persist an order as one unit of work.

    Nothing is written until card, stock and coupon checks pass. Any failure while
    writing rolls back the order, its items, stock decrements and coupon usage.
    The purchaser's cart is emptied after commit on a best effort basis.
    """
    user_id = identity.user_id if isinstance(identity, Authenticated) else None

    # card and line errors are reported together, field errors win over stock shortfalls
    errors = validate_payment_card(payload)
    shortfall = None
    try:
        lines, subtotal = await price_items(session, payload.items)
    except StockShortfall as exc:
        shortfall = exc
    except ValidationError as exc:
        errors.update(exc.errors)

    if errors:
        logger.info("checkout.validation_failed", extra={"fields": sorted(errors)})
        raise ValidationError(errors)
    if shortfall is not None:
        logger.info("checkout.stock_shortfall", extra={"products": [s["product_id"] for s in shortfall.shortfalls]})
        raise shortfall

    coupon, discount, coupon_code = None, Decimal("0.00"), None
    if payload.coupon_code:
        coupon_code = normalize_code(payload.coupon_code)
        try:
            coupon, discount = await validate_coupon(session, coupon_code, subtotal)
        except CouponRejected as exc:
            logger.info("checkout.coupon_rejected", extra={"code": coupon_code, "reason": exc.message})
            raise

    totals = compute_order_totals(subtotal, discount)

    try:
        order = await create_order(session, user_id, totals, payload.shipping_snapshot(), coupon_code, CURRENCY)
        await create_order_items(session, order.id, lines)

        lost = []
        for line in lines:
            if not line.track_inventory:
                continue
            if not await decrement_stock(session, line.product_id, line.quantity, guarded=line.oversell_guarded):
                available = await current_stock(session, line.product_id)
                lost.append(_shortfall(line.product_id, line.product_name, line.quantity, available))
        if lost:
            raise StockShortfall(lost)

        if coupon is not None:
            await redeem_coupon(session, coupon, order.id, user_id, discount)

        await session.commit()
        # detached so a failed cart clear cannot expire the committed snapshot
        session.expunge(order)

    except StoreError as exc:
        await session.rollback()
        logger.warning("checkout.rolled_back", extra={"code": exc.code, "reason": exc.message})
        raise
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("checkout.rolled_back", extra={"code": TransientStorageError.code, "error": str(exc)})
        raise TransientStorageError() from exc

    logger.info("checkout.committed", extra={
        "order_number": order.order_number,
        "user_id": user_id,
        "lines": len(lines),
        "total": str(order.total),
        "coupon_code": coupon_code,
    })

    await _clear_purchaser_cart(session, identity, order.order_number)
    return order


async def _clear_purchaser_cart(session, identity: Identity, order_number: str) -> None:
    # the order is already committed, failures here are only logged
    try:
        cart_id = await find_cart_id(session, identity)
        if cart_id is not None:
            await clear_cart_items(session, cart_id)
            await session.commit()
    except Exception as exc:
        await session.rollback()
        logger.error("checkout.cart_clear_failed", extra={"order_number": order_number, "error": str(exc)})


async def get_user_orders(session, user_id: int) -> List[Dict[str, Any]]:
    orders = await list_user_orders(session, user_id)
    items = await items_for_orders(session, [o.id for o in orders])

    out = []
    for order in orders:
        order_items = items.get(order.id, [])
        out.append({
            "id": str(order.public_id),
            "order_number": order.order_number,
            "status": order.status,
            "currency": order.currency,
            "subtotal": order.subtotal,
            "tax": order.tax,
            "shipping": order.shipping,
            "discount": order.discount,
            "total": order.total,
            "coupon_code": order.coupon_code,
            "customer_name": f"{order.shipping_first_name or ''} {order.shipping_last_name or ''}".strip(),
            "shipping_email": order.shipping_email,
            "items_count": len(order_items),
            "items": [
                {
                    "product_id": it.product_id,
                    "product_name": it.product_name,
                    "product_price": it.product_price,
                    "quantity": it.quantity,
                    "total": it.total,
                }
                for it in order_items
            ],
            "created_at": order.created_at,
        })
    return out
