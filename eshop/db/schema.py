import asyncio
from sqlmodel import SQLModel
from eshop.db.connection import async_engine
import eshop.schema.full_schema  # noqa: F401  registers the tables on SQLModel.metadata


async def create_db_and_tables(engine=async_engine):
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def drop_db_and_tables(engine=async_engine):
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)


if __name__ == "__main__":
    asyncio.run(create_db_and_tables())
