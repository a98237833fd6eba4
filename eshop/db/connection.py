from sqlalchemy.ext.asyncio import create_async_engine,async_sessionmaker,AsyncSession
from eshop.config.settings import config_settings
from eshop.db.utils import _normalize_db_url, is_sqlite_url

DATABASE_URL=_normalize_db_url(config_settings.DATABASE_URL)

_engine_kwargs = {"echo": config_settings.DB_ECHO}
if is_sqlite_url(DATABASE_URL):
    # one connection per task, sqlite serializes writers itself
    _engine_kwargs["connect_args"] = {"timeout": 30}
else:
    _engine_kwargs["pool_pre_ping"] = True

async_engine=create_async_engine(DATABASE_URL,**_engine_kwargs)

async_session=async_sessionmaker(bind=async_engine,class_=AsyncSession,expire_on_commit=False)
