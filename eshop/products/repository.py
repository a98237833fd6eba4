from typing import Dict, Iterable
from sqlalchemy import select, update
from eshop.common.utils import now
from eshop.schema.full_schema import Product
from eshop.products.constants import logger


async def find_products_by_ids(session, product_ids: Iterable[str]) -> Dict[str, Product]:
    ids = list(set(product_ids))
    if not ids:
        return {}
    stmt = select(Product).where(Product.id.in_(ids))
    res = await session.execute(stmt)
    return {p.id: p for p in res.scalars().all()}


async def decrement_stock(session, product_id: str, quantity: int, guarded: bool = True) -> bool:
    """Atomic subtract in a single UPDATE.

    With guarded=True the row only changes while stock_quantity >= quantity, so
    False means another checkout took the stock after it was checked. Products
    that may be oversold pass guarded=False and can go below zero.
    """
    stmt = (
        update(Product)
        .where(Product.id == product_id)
        .values(stock_quantity=Product.stock_quantity - quantity, updated_at=now())
        .execution_options(synchronize_session=False)
    )
    if guarded:
        stmt = stmt.where(Product.stock_quantity >= quantity)

    res = await session.execute(stmt)
    if res.rowcount != 1:
        logger.warning("product.stock.decrement_lost", extra={"product_id": product_id, "requested": quantity})
        return False
    return True
