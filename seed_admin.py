"""
seed_admin.py
-------------
Insert the administrator as a company row (login id ADMIN_LOGIN_ID).
Only needed when ADMIN_PASSWORD_HASH is not set.

Usage:
    python seed_admin.py <password> [registration-number]
"""

import asyncio
import sys

from docportal.context import build_context
from docportal.core.config import get_settings
from docportal.core.logging import configure_logging
from docportal.main import create_tables
from docportal.schemas.company import CompanyRegister
from docportal.services.company_service import CompanyService


async def seed(password: str, registration_number: str) -> None:
    settings = get_settings()
    configure_logging(settings)
    ctx = build_context(settings)
    try:
        await create_tables(ctx)
        async with ctx.sessionmaker() as db:
            company = await CompanyService.register(
                db,
                ctx,
                CompanyRegister(
                    name="Administrador",
                    registration_number=registration_number,
                    login_id=settings.ADMIN_LOGIN_ID,
                    password=password,
                ),
                allow_admin=True,
            )
            await db.commit()
        print(f"Admin '{settings.ADMIN_LOGIN_ID}' created with id {company.id}.")
    finally:
        await ctx.close()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)
    asyncio.run(seed(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else "admin"))
