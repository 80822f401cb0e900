from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from .config import settings
from .base import Base

engine = create_async_engine(settings.POSTGRES_DSN, pool_pre_ping=True)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

async def get_session():
    async with SessionLocal() as session:
        yield session

async def init_models():
    # create_all is for local/dev only; otherwise migrations own the schema.
    if settings.DB_MANAGE == "create_all":
        # models register themselves on Base.metadata at import
        import venuebook.modules.venues.models  # noqa: F401
        import venuebook.modules.availability.models  # noqa: F401
        import venuebook.modules.bookings.models  # noqa: F401
        import venuebook.modules.events.outbox  # noqa: F401
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
