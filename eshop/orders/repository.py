from typing import Dict, List, Optional
from sqlalchemy import select
from eshop.orders.models import OrderTotals, PricedLine
from eshop.orders.utils import generate_order_number
from eshop.schema.full_schema import OrderItem, Orders, OrderStatus, Product


async def create_order(session, user_id: Optional[int], totals: OrderTotals, shipping: Dict,
                       coupon_code: Optional[str], currency: str) -> Orders:
    order = Orders(
        order_number=generate_order_number(),
        user_id=user_id,
        status=OrderStatus.PENDING.value,
        currency=currency,
        subtotal=totals.subtotal,
        tax=totals.tax,
        shipping=totals.shipping,
        discount=totals.discount,
        total=totals.total,
        coupon_code=coupon_code,
        **shipping,
    )
    session.add(order)
    await session.flush()
    return order


async def create_order_items(session, order_id: int, lines: List[PricedLine]) -> List[OrderItem]:
    items = [
        OrderItem(
            order_id=order_id,
            product_id=line.product_id,
            product_name=line.product_name,
            product_price=line.product_price,
            quantity=line.quantity,
            total=line.total,
        )
        for line in lines
    ]
    session.add_all(items)
    await session.flush()
    return items


async def current_stock(session, product_id: str) -> int:
    res = await session.execute(select(Product.stock_quantity).where(Product.id == product_id))
    return int(res.scalar_one_or_none() or 0)


async def list_user_orders(session, user_id: int) -> List[Orders]:
    stmt = (
        select(Orders)
        .where(Orders.user_id == user_id)
        .order_by(Orders.created_at.desc(), Orders.id.desc())
    )
    res = await session.execute(stmt)
    return list(res.scalars().all())


async def items_for_orders(session, order_ids: List[int]) -> Dict[int, List[OrderItem]]:
    if not order_ids:
        return {}
    stmt = select(OrderItem).where(OrderItem.order_id.in_(order_ids)).order_by(OrderItem.id)
    res = await session.execute(stmt)
    grouped: Dict[int, List[OrderItem]] = {oid: [] for oid in order_ids}
    for item in res.scalars().all():
        grouped[item.order_id].append(item)
    return grouped
