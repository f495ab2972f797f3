"""
Engine, session factory and declarative base.

``make_engine`` is the single place that knows about driver quirks:
SQLite gets a thread-agnostic connection (and one shared connection for
``:memory:`` URLs), everything else gets a sized, pre-pinged pool.  Every
engine it builds carries the per-request query counter.
"""
from sqlalchemy import MetaData
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from cms.config import settings
from cms.middleware import install_query_counter

# Stable constraint names so batch migrations on SQLite can address them.
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


def make_engine(url: str, echo: bool = False) -> AsyncEngine:
    kwargs: dict = {"echo": echo}
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if parsed.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs.update(
            pool_pre_ping=True,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
        )

    engine = create_async_engine(url, **kwargs)
    install_query_counter(engine)
    return engine


def make_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = make_engine(settings.DATABASE_URL, echo=settings.DEBUG)
async_session = make_session_factory(engine)


async def get_db():
    """
    One session per request.  Services only flush; the commit happens
    here once the endpoint returns, and any exception rolls the whole
    request back.
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
