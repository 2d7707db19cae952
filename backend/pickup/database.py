from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import Settings, get_settings
from .models import Base


def build_engine(settings: Settings) -> AsyncEngine:
    options: dict[str, Any] = {"echo": settings.echo_sql}
    if not settings.database_url.startswith("sqlite"):
        # MySQL drops idle connections; recycle before wait_timeout.
        # READ COMMITTED so reads after the event lock see bookings committed while waiting for it.
        options.update(pool_pre_ping=True, pool_recycle=3600, isolation_level="READ COMMITTED")
    return create_async_engine(settings.database_url, **options)


engine = build_engine(get_settings())

async_session = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def create_schema(bind: AsyncEngine | None = None) -> None:
    """Create any missing tables. Existing tables are left untouched."""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
