from sqlalchemy import DateTime
from sqlalchemy.dialects import mysql
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from app.core.config import settings

# Async engine
engine = create_async_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True, # ping a pooled connection before handing it out
    echo=settings.DB_ECHO,
)

# Async session factory
AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Declarative base for all ORM models
Base = declarative_base()

# Timestamp column type with microsecond precision on MySQL, so that
# ordering by creation time stays stable for rows written in the same second.
PreciseDateTime = DateTime().with_variant(mysql.DATETIME(fsp=6), "mysql")

async def get_db() -> AsyncSession:
    """FastAPI dependency: yield an async database session"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
