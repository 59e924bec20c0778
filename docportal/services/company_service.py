"""
services/company_service.py
---------------------------
Credential store: registration, lookup, authentication and deletion of
companies.

Service layer is responsible for:
  - Constructing queries
  - Enforcing business rules (unique registration number / login, the
    reserved admin login)
  - Returning domain objects (ORM models, identities) to the route layer
  - Never returning HTTP responses (that's the route's job)
"""

from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from docportal.context import AppContext
from docportal.core.errors import (
    DuplicateKey,
    Forbidden,
    InvalidCredentials,
    NotFound,
    ObjectStoreError,
)
from docportal.core.identity import Admin, Identity, Tenant
from docportal.core.logging import get_logger
from docportal.models.company import Company
from docportal.models.file import File
from docportal.schemas.company import CompanyRegister, LoginRequest
from docportal.services.object_store import KEEP_PLACEHOLDER, object_key

logger = get_logger(__name__)


class CompanyService:

    @staticmethod
    async def register(
        db: AsyncSession,
        ctx: AppContext,
        data: CompanyRegister,
        allow_admin: bool = False,
    ) -> Company:
        """
        Create a company and materialise its storage namespace.

        Raises DuplicateKey if the registration number or login id is taken;
        the existing company is left untouched. The reserved admin login can
        only be registered with allow_admin (seed script).
        """
        if data.login_id == ctx.settings.ADMIN_LOGIN_ID and not allow_admin:
            raise Forbidden("This login is reserved")

        company = Company(
            name=data.name,
            registration_number=data.registration_number,
            location=data.location or None,
            login_id=data.login_id,
            password_hash=ctx.hasher.hash(data.password),
        )
        db.add(company)
        try:
            await db.flush()  # Trigger DB constraints before touching storage
            await db.refresh(company)
        except IntegrityError:
            await db.rollback()
            raise DuplicateKey(
                f"Registration number '{data.registration_number}' "
                f"or login '{data.login_id}' already registered"
            )

        await ctx.object_store.put_object(
            object_key(company.namespace, KEEP_PLACEHOLDER), b"", "text/plain"
        )
        logger.info(
            "Company registered",
            company_id=company.id,
            registration_number=company.registration_number,
        )
        return company

    @staticmethod
    async def get(db: AsyncSession, company_id: int) -> Company | None:
        return await db.get(Company, company_id)

    @staticmethod
    async def find_by_login(db: AsyncSession, login_id: str) -> Company | None:
        result = await db.execute(select(Company).where(Company.login_id == login_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def find_by_registration_number(
        db: AsyncSession, registration_number: str
    ) -> Company | None:
        result = await db.execute(
            select(Company).where(Company.registration_number == registration_number)
        )
        return result.scalar_one_or_none()

    @staticmethod
    def verify(ctx: AppContext, plain_password: str, stored_hash: str) -> bool:
        return ctx.hasher.verify(plain_password, stored_hash)

    @staticmethod
    async def authenticate(
        db: AsyncSession, ctx: AppContext, data: LoginRequest
    ) -> Identity:
        """
        Resolve credentials to an identity or raise InvalidCredentials.

        A fixed admin credential (ADMIN_PASSWORD_HASH) is checked before any
        store lookup. Unknown login and wrong password are not distinguished.
        """
        settings = ctx.settings
        if settings.admin_is_fixed_credential and data.login_id == settings.ADMIN_LOGIN_ID:
            if ctx.hasher.verify(data.password, settings.ADMIN_PASSWORD_HASH):
                logger.info("Admin logged in", source="settings")
                return Admin()
            logger.warning("Admin login failed")
            raise InvalidCredentials()

        company: Optional[Company]
        if data.login_id:
            company = await CompanyService.find_by_login(db, data.login_id)
        else:
            company = await CompanyService.find_by_registration_number(
                db, data.registration_number
            )

        if company is None or not CompanyService.verify(
            ctx, data.password, company.password_hash
        ):
            logger.info("Login rejected")
            raise InvalidCredentials()

        if company.login_id == settings.ADMIN_LOGIN_ID and not settings.admin_is_fixed_credential:
            logger.info("Admin logged in", source="company_row", company_id=company.id)
            return Admin()

        logger.info("Company logged in", company_id=company.id)
        return Tenant(
            company_id=company.id,
            registration_number=company.registration_number,
        )

    @staticmethod
    async def list_companies(db: AsyncSession, ctx: AppContext) -> list[Company]:
        """All tenants, without the admin row."""
        result = await db.execute(
            select(Company)
            .where(Company.login_id != ctx.settings.ADMIN_LOGIN_ID)
            .order_by(Company.name, Company.id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def delete_company(
        db: AsyncSession, ctx: AppContext, company_id: int
    ) -> Optional[str]:
        """
        Two-phase delete: rows first (committed), then a best-effort purge of
        the storage namespace.

        Returns a warning message when the purge failed, else None. An upload
        racing this deletion for the same company is undefined behaviour: its
        object may outlive the purge or its row may fail on the foreign key.
        """
        company = await db.get(Company, company_id)
        if company is None:
            raise NotFound(f"Company {company_id} not found")
        if company.login_id == ctx.settings.ADMIN_LOGIN_ID:
            raise Forbidden("The administrator account cannot be deleted")

        namespace = company.namespace
        await db.execute(delete(File).where(File.company_id == company_id))
        await db.delete(company)
        await db.commit()
        ctx.sessions.destroy_for_company(company_id)
        logger.info("Company deleted", company_id=company_id, namespace=namespace)

        try:
            await ctx.object_store.remove_prefix(namespace)
        except ObjectStoreError as exc:
            logger.warning(
                "Storage purge failed after company delete",
                company_id=company_id,
                namespace=namespace,
                error=exc.message,
            )
            return f"Company deleted, but its stored files could not be removed: {exc.message}"
        return None
