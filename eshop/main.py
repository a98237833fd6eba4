from contextlib import asynccontextmanager
from fastapi import FastAPI
from eshop.api import version_prefix,cur_version
from eshop.api.routers import public_routers
from eshop.common.custom_exceptions import register_all_exceptions
from eshop.common.logging_setup import setup_logging, stop_logging
from eshop.db.connection import async_engine,async_session
from eshop.middlewares.identity_middleware import IdentityMiddleware
from eshop.middlewares.request_id_middleware import RequestIdMiddleware


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    logger = setup_logging()
    logger.info("app.startup")

    try:
        yield
    finally:
        # at this point new requests accept has been stopped already before calling shutdown
        await async_engine.dispose()
        stop_logging()


def create_app():
    app=FastAPI(
        title="eshop",
        version=cur_version,
        lifespan=app_lifespan)

    app.include_router(public_routers)

    # added last runs first: request id wraps identity so identity logs carry it
    app.add_middleware(IdentityMiddleware,session_maker=async_session,skip_paths=[f"{version_prefix}/health",
                                                                                    "/docs",
                                                                                    "/openapi.json"])
    app.add_middleware(RequestIdMiddleware)
    register_all_exceptions(app)

    return app

app=create_app()
