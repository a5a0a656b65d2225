# app/database.py
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from app.config import settings

db_url = settings.effective_database_url

# aiosqlite connections are bound to the loop that opened them; never pool them.
engine_args = {"poolclass": NullPool} if db_url.startswith("sqlite") else {}
engine = create_async_engine(db_url, echo=settings.DB_ECHO, **engine_args)

AsyncSessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)
Base = declarative_base()

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session
