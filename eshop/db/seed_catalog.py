# seed_catalog.py - demo products and coupons for local runs
import asyncio
from datetime import timedelta
from decimal import Decimal
from typing import List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from eshop.common.logging_setup import get_logger, setup_logging, stop_logging
from eshop.common.utils import now
from eshop.db.connection import async_session
from eshop.db.schema import create_db_and_tables
from eshop.schema.full_schema import Coupon, DiscountType, Product

logger = get_logger("eshop.seed")

PRODUCTS = [
    ("prod_tee_blue", "Cotton Tee - Fly High in Blue", "24.00", 40),
    ("prod_forest_hoodie", "Mystical Forest Hoodie", "58.50", 12),
    ("prod_firefly_lights", "Firefly Lights", "18.75", 100),
    ("prod_wolves_print", "Wolves and Girls Print", "120.00", 3),
    ("prod_petals_canvas", "Dancing Petals Canvas", "140.00", 1),
]

COUPONS = [
    dict(code="WELCOME10", description="10% off your order", discount_type=DiscountType.PERCENTAGE.value,
         discount_value=Decimal("10"), max_discount_amount=Decimal("25.00")),
    dict(code="FLAT5", description="$5 off orders over $30", discount_type=DiscountType.FIXED.value,
         discount_value=Decimal("5.00"), min_order_amount=Decimal("30.00")),
    dict(code="LAUNCH50", description="50% off, first 100 orders", discount_type=DiscountType.PERCENTAGE.value,
         discount_value=Decimal("50"), max_discount_amount=Decimal("40.00"), usage_limit=100),
]


async def seed_products(session: AsyncSession) -> List[str]:
    existing = set((await session.execute(select(Product.id))).scalars().all())
    created = []
    for pid, name, price, stock in PRODUCTS:
        if pid in existing:
            continue
        session.add(Product(id=pid, sku=pid.upper(), name=name, price=Decimal(price), stock_quantity=stock))
        created.append(pid)
    return created


async def seed_coupons(session: AsyncSession) -> List[str]:
    existing = set((await session.execute(select(Coupon.code))).scalars().all())
    created = []
    for data in COUPONS:
        if data["code"] in existing:
            continue
        session.add(Coupon(expires_at=now() + timedelta(days=90), **data))
        created.append(data["code"])
    return created


async def main():
    setup_logging()
    await create_db_and_tables()
    async with async_session() as session:
        products = await seed_products(session)
        coupons = await seed_coupons(session)
        await session.commit()
    logger.info("seed.done", extra={"products": products, "coupons": coupons})
    stop_logging()


if __name__ == "__main__":
    asyncio.run(main())
