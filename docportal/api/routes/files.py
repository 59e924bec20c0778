"""
api/routes/files.py
-------------------
Document endpoints.

GET  /arquivos, /meus-arquivos        — Files of the logged-in company
                                        (admin: pass empresa_id).
GET  /arquivos/{company_id}           — Admin: files of any company.
GET  /download/{company_id}/{name}    — Redirect to a short-lived signed URL.
POST /upload/{company_id}             — Admin: upload (multipart or base64 JSON).
"""

import mimetypes
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from docportal.context import AppContext
from docportal.core.errors import Forbidden, NotFound
from docportal.core.identity import Admin, Identity, Tenant
from docportal.dependencies import get_context, get_db, parse_body, require_admin, require_tenant
from docportal.models.company import Company
from docportal.schemas.file import (
    MONTH_PATTERN,
    YEAR_PATTERN,
    FileRead,
    FileUploadBase64,
    check_display_name,
)
from docportal.services.company_service import CompanyService
from docportal.services.file_service import FileService
from docportal.services.object_store import object_key

router = APIRouter(tags=["Files"])

MonthQuery = Annotated[
    Optional[str],
    Query(pattern=MONTH_PATTERN, description="Two-digit month, e.g. 03"),
]
YearQuery = Annotated[
    Optional[str],
    Query(pattern=YEAR_PATTERN, description="Four-digit year, e.g. 2024"),
]


async def _company_for(
    db: AsyncSession, identity: Identity, company_id: Optional[int]
) -> Company:
    """
    Resolve which company a request is about.
    Companies only ever see themselves; the admin must say which one.
    """
    if isinstance(identity, Tenant):
        if company_id is not None and company_id != identity.company_id:
            raise Forbidden("You can only access your own files")
        company_id = identity.company_id
    elif company_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="empresa_id is required for the administrator",
        )

    company = await CompanyService.get(db, company_id)
    if company is None:
        raise NotFound(f"Company {company_id} not found")
    return company


@router.get(
    "/arquivos",
    response_model=list[FileRead],
    summary="List the current company's files",
)
@router.get("/meus-arquivos", response_model=list[FileRead], include_in_schema=False)
async def list_my_files(
    identity: Annotated[Identity, Depends(require_tenant)],
    db: Annotated[AsyncSession, Depends(get_db)],
    ctx: Annotated[AppContext, Depends(get_context)],
    mes: MonthQuery = None,
    ano: YearQuery = None,
    empresa_id: Optional[int] = Query(default=None, description="Admin only"),
) -> list[FileRead]:
    """Newest first, each with a signed download URL."""
    company = await _company_for(db, identity, empresa_id)
    return await FileService.build_listing(db, ctx, company, month=mes, year=ano)


@router.get(
    "/arquivos/{company_id}",
    response_model=list[FileRead],
    summary="List any company's files (admin only)",
)
async def list_company_files(
    company_id: int,
    admin: Annotated[Admin, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
    ctx: Annotated[AppContext, Depends(get_context)],
    mes: MonthQuery = None,
    ano: YearQuery = None,
) -> list[FileRead]:
    company = await _company_for(db, admin, company_id)
    return await FileService.build_listing(db, ctx, company, month=mes, year=ano)


@router.get(
    "/download/{company_id}/{name}",
    summary="Redirect to a short-lived download URL",
)
async def download_file(
    company_id: int,
    name: str,
    identity: Annotated[Identity, Depends(require_tenant)],
    db: Annotated[AsyncSession, Depends(get_db)],
    ctx: Annotated[AppContext, Depends(get_context)],
) -> RedirectResponse:
    company = await _company_for(db, identity, company_id)
    try:
        name = check_display_name(name)
    except ValueError:
        raise NotFound(f"File '{name}' not found")

    if ctx.settings.FILE_LISTING_SOURCE == "storage":
        key = object_key(company.namespace, name)
    else:
        record = await FileService.find(db, company.id, name)
        if record is None:
            raise NotFound(f"File '{name}' not found")
        key = record.storage_key

    url = await FileService.resolve_download_url(
        ctx, key, ctx.settings.DOWNLOAD_URL_TTL_SECONDS
    )
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)


async def _read_multipart(request: Request) -> tuple[str, bytes, Optional[str]]:
    form = await request.form()
    upload = form.get("file") or form.get("arquivo")
    if not isinstance(upload, UploadFile):
        raise RequestValidationError(
            [{"type": "missing", "loc": ("body", "file"), "msg": "Field required", "input": None}]
        )
    raw_name = form.get("fileName") or form.get("nomeArquivo") or upload.filename or ""
    try:
        name = check_display_name(str(raw_name))
    except ValueError as exc:
        raise RequestValidationError(
            [{"type": "value_error", "loc": ("body", "fileName"), "msg": str(exc), "input": raw_name}]
        )
    data = await upload.read()
    return name, data, upload.content_type


@router.post(
    "/upload/{company_id}",
    response_class=PlainTextResponse,
    summary="Upload a file for a company (admin only)",
)
async def upload_file(
    company_id: int,
    request: Request,
    admin: Annotated[Admin, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
    ctx: Annotated[AppContext, Depends(get_context)],
) -> PlainTextResponse:
    """
    Accepts either multipart form data with a `file` part (and optional
    `fileName`), or JSON `{fileName, content}` with base64 content.
    Re-uploading the same name replaces the stored file.
    """
    company = await CompanyService.get(db, company_id)
    if company is None:
        raise NotFound(f"Company {company_id} not found")

    if request.headers.get("content-type", "").startswith("multipart/form-data"):
        name, data, content_type = await _read_multipart(request)
    else:
        body = await parse_body(FileUploadBase64)(request)
        name, data, content_type = body.file_name, body.content, body.content_type

    if not content_type or content_type == "application/octet-stream":
        content_type = mimetypes.guess_type(name)[0] or ctx.settings.DEFAULT_CONTENT_TYPE

    await FileService.upload(db, ctx, company, name, data, content_type)
    return PlainTextResponse("File uploaded successfully.")
