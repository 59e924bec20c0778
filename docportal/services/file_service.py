"""
services/file_service.py
------------------------
File registry: which documents a company owns and how to reach them.

Critical security invariant:
  Every query is scoped by company_id, and every storage key starts with
  the owning company's namespace.

Uploads are two writes that are not transactional with each other: the
object goes to storage first, then the metadata row is upserted. A crash in
between leaves an object with no row. Concurrent uploads of the same name
are last-writer-wins for both.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import extract, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from docportal.context import AppContext
from docportal.core.errors import ObjectNotFound
from docportal.core.logging import get_logger
from docportal.db.base import utcnow
from docportal.models.company import Company
from docportal.models.file import File
from docportal.schemas.file import FileRead
from docportal.services.object_store import KEEP_PLACEHOLDER, ObjectMeta, object_key

logger = get_logger(__name__)


def uploaded_at_utc(dialect_name: str):
    """
    uploaded_at as a UTC wall-clock value. PostgreSQL extracts fields from a
    timestamptz in the session time zone, so it is converted first; SQLite
    already stores the UTC value.
    """
    if dialect_name == "postgresql":
        return func.timezone("UTC", File.uploaded_at)
    return File.uploaded_at


def matches_period(
    moment: Optional[datetime], month: Optional[str], year: Optional[str]
) -> bool:
    """Exact month ("03") / year ("2024") match on a timestamp."""
    if month is None and year is None:
        return True
    if moment is None:
        return False
    if month is not None and moment.strftime("%m") != month:
        return False
    if year is not None and moment.strftime("%Y") != year:
        return False
    return True


class FileService:

    @staticmethod
    async def record_upload(
        db: AsyncSession,
        company_id: int,
        display_name: str,
        storage_key: str,
    ) -> File:
        """
        Upsert the metadata row for (company_id, display_name).
        An existing row is updated in place; no duplicate is ever created.
        """
        existing = await FileService.find(db, company_id, display_name)
        if existing is None:
            record = File(
                company_id=company_id,
                name=display_name,
                storage_key=storage_key,
                uploaded_at=utcnow(),
            )
            try:
                async with db.begin_nested():
                    db.add(record)
                return record
            except IntegrityError:
                # Lost a race with a concurrent insert of the same name.
                existing = await FileService.find(db, company_id, display_name)
                if existing is None:
                    raise

        existing.storage_key = storage_key
        existing.uploaded_at = utcnow()
        await db.flush()
        logger.info("File record replaced", file_id=existing.id, company_id=company_id)
        return existing

    @staticmethod
    async def find(db: AsyncSession, company_id: int, display_name: str) -> File | None:
        result = await db.execute(
            select(File).where(File.company_id == company_id, File.name == display_name)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def upload(
        db: AsyncSession,
        ctx: AppContext,
        company: Company,
        display_name: str,
        data: bytes,
        content_type: Optional[str] = None,
    ) -> File:
        key = object_key(company.namespace, display_name)
        await ctx.object_store.put_object(
            key,
            data,
            content_type or ctx.settings.DEFAULT_CONTENT_TYPE,
            upsert=True,
        )
        record = await FileService.record_upload(db, company.id, display_name, key)
        logger.info(
            "File uploaded",
            company_id=company.id,
            storage_key=key,
            size=len(data),
        )
        return record

    @staticmethod
    async def list_for_company(
        db: AsyncSession,
        company_id: int,
        month: Optional[str] = None,
        year: Optional[str] = None,
    ) -> list[File]:
        """Newest first. month/year are matched exactly against uploaded_at (UTC)."""
        stmt = select(File).where(File.company_id == company_id)
        uploaded_at = uploaded_at_utc(db.get_bind().dialect.name)
        if month is not None:
            stmt = stmt.where(extract("month", uploaded_at) == int(month))
        if year is not None:
            stmt = stmt.where(extract("year", uploaded_at) == int(year))
        stmt = stmt.order_by(File.uploaded_at.desc(), File.id.desc())
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_from_storage(
        ctx: AppContext,
        namespace: str,
        month: Optional[str] = None,
        year: Optional[str] = None,
    ) -> list[ObjectMeta]:
        """Registry derived from the storage prefix itself; .keep is never listed."""
        objects = await ctx.object_store.list_prefix(namespace)
        visible = [
            obj
            for obj in objects
            if obj.name and obj.name != KEEP_PLACEHOLDER
            and matches_period(obj.last_modified, month, year)
        ]
        visible.sort(
            key=lambda obj: obj.last_modified.timestamp() if obj.last_modified else 0.0,
            reverse=True,
        )
        return visible

    @staticmethod
    async def resolve_download_url(ctx: AppContext, storage_key: str, ttl_seconds: int) -> str:
        return await ctx.object_store.signed_url(storage_key, ttl_seconds)

    @staticmethod
    async def build_listing(
        db: AsyncSession,
        ctx: AppContext,
        company: Company,
        month: Optional[str] = None,
        year: Optional[str] = None,
    ) -> list[FileRead]:
        """
        Listing returned to clients: name, upload date and a signed URL.
        Entries whose object has gone missing are left out and logged.
        """
        if ctx.settings.FILE_LISTING_SOURCE == "storage":
            entries = [
                (obj.name, obj.last_modified, obj.key)
                for obj in await FileService.list_from_storage(
                    ctx, company.namespace, month, year
                )
            ]
        else:
            entries = [
                (f.name, f.uploaded_at, f.storage_key)
                for f in await FileService.list_for_company(db, company.id, month, year)
            ]

        ttl = ctx.settings.SIGNED_URL_TTL_SECONDS
        listing: list[FileRead] = []
        for name, uploaded_at, key in entries:
            try:
                url = await FileService.resolve_download_url(ctx, key, ttl)
            except ObjectNotFound:
                logger.warning("File row without stored object", company_id=company.id, storage_key=key)
                continue
            listing.append(FileRead(name=name, upload_date=uploaded_at, url=url))
        return listing
