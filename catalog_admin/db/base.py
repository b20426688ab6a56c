from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from catalog_admin.core.config import settings

DB_URL = settings.DB_URL

engine = create_async_engine(DB_URL, future=True, echo=False)
AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

Base = declarative_base()


async def init_models(bind=engine) -> None:
    # imported for their side effect of registering tables on Base.metadata
    from catalog_admin.db.models import (  # noqa: F401
        catalog_items,
        cross_references,
        vehicle_compatibility,
        warehouse_inventory,
    )

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
