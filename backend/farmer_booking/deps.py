from typing import AsyncIterator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from .config import Settings, get_settings
from .database import async_session
from .infrastructure.repositories import SqlAlchemyLookupRepository


async def get_session() -> AsyncIterator[AsyncSession]:
    async with async_session() as session:
        yield session


def get_app_settings() -> Settings:
    return get_settings()


async def get_lookup_repo(session: AsyncSession = Depends(get_session)) -> SqlAlchemyLookupRepository:
    return SqlAlchemyLookupRepository(session)
