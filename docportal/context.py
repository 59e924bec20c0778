"""
context.py
----------
Everything that holds process-wide state, built once at startup and stored
on app.state.context. Tests build their own with fakes swapped in.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from docportal.core.config import Settings
from docportal.core.security import PasswordHasher
from docportal.core.sessions import SessionStore
from docportal.db.session import build_engine, build_sessionmaker
from docportal.services.object_store import ObjectStore, S3ObjectStore


@dataclass
class AppContext:
    settings: Settings
    engine: AsyncEngine
    sessionmaker: async_sessionmaker[AsyncSession]
    hasher: PasswordHasher
    sessions: SessionStore
    object_store: ObjectStore

    async def close(self) -> None:
        await self.object_store.close()
        await self.engine.dispose()


def build_context(
    settings: Settings,
    object_store: Optional[ObjectStore] = None,
) -> AppContext:
    engine = build_engine(settings)
    return AppContext(
        settings=settings,
        engine=engine,
        sessionmaker=build_sessionmaker(engine),
        hasher=PasswordHasher(rounds=settings.BCRYPT_ROUNDS),
        sessions=SessionStore(ttl_seconds=settings.SESSION_TTL_SECONDS),
        object_store=object_store or S3ObjectStore.from_settings(settings),
    )
