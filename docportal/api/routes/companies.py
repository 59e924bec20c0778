"""
api/routes/companies.py
-----------------------
Admin-only company management.

GET    /empresas       — Company summaries (never the password hash).
DELETE /empresas/{id}  — Delete a company, its files and its storage prefix.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from docportal.context import AppContext
from docportal.core.identity import Admin
from docportal.dependencies import get_context, get_db, require_admin
from docportal.schemas.company import CompanyRead, DeleteResult
from docportal.services.company_service import CompanyService

router = APIRouter(tags=["Companies"])


@router.get(
    "/empresas",
    response_model=list[CompanyRead],
    summary="List registered companies (admin only)",
)
@router.get("/empresas.json", response_model=list[CompanyRead], include_in_schema=False)
async def list_companies(
    admin: Annotated[Admin, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
    ctx: Annotated[AppContext, Depends(get_context)],
) -> list[CompanyRead]:
    companies = await CompanyService.list_companies(db, ctx)
    return [CompanyRead.model_validate(c) for c in companies]


@router.delete(
    "/empresas/{company_id}",
    response_model=DeleteResult,
    response_model_exclude_none=True,
    summary="Delete a company and everything it owns (admin only)",
)
async def delete_company(
    company_id: int,
    admin: Annotated[Admin, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
    ctx: Annotated[AppContext, Depends(get_context)],
) -> DeleteResult:
    """
    Rows are deleted and committed first; the storage purge that follows is
    best-effort. If it fails the company is still gone and the response
    carries a warning.
    """
    warning = await CompanyService.delete_company(db, ctx, company_id)
    return DeleteResult(message=f"Company {company_id} deleted", warning=warning)
