"""
create_tables.py
----------------
One-shot script to create all database tables.
The application also does this on startup; this is for setting up a
database ahead of the first deploy.

Usage:
    python create_tables.py
"""

import asyncio

from docportal.core.config import get_settings
from docportal.db.session import build_engine
from docportal.models import Base  # Imports all models so metadata is populated


async def create_all_tables() -> None:
    engine = build_engine(get_settings())
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    print("All tables created successfully.")


if __name__ == "__main__":
    asyncio.run(create_all_tables())
