"""
api/routes/auth.py
------------------
Registration, login and session endpoints used by the HTML pages.

GET  /          — Redirect to the login, company or admin page.
POST /cadastro  — Register a company (form or JSON), then go to login.
POST /login     — Check credentials, set the session cookie, redirect.
GET  /logout    — Drop the session and go back to login.
GET  /me        — Who the current session belongs to.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import PlainTextResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from docportal.context import AppContext
from docportal.core.errors import Forbidden, InvalidCredentials, PortalError
from docportal.core.identity import Anonymous, Identity, Tenant, is_admin, to_claims
from docportal.core.logging import get_logger
from docportal.core.security import sign_session_id
from docportal.dependencies import (
    get_context,
    get_db,
    get_identity,
    get_session_id,
    parse_body,
    require_tenant,
)
from docportal.schemas.company import CompanyRead, CompanyRegister, IdentityRead, LoginRequest
from docportal.services.company_service import CompanyService

logger = get_logger(__name__)

router = APIRouter(tags=["Authentication"])


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)


@router.get("/", include_in_schema=False)
async def home(
    ctx: Annotated[AppContext, Depends(get_context)],
    identity: Annotated[Identity, Depends(get_identity)],
) -> RedirectResponse:
    if isinstance(identity, Anonymous):
        return _redirect(ctx.settings.LOGIN_PAGE)
    if is_admin(identity):
        return _redirect(ctx.settings.ADMIN_PAGE)
    return _redirect(ctx.settings.TENANT_PAGE)


@router.post(
    "/cadastro",
    status_code=status.HTTP_302_FOUND,
    summary="Register a new company",
)
@router.post("/cadastrar", include_in_schema=False)
async def register(
    body: Annotated[CompanyRegister, Depends(parse_body(CompanyRegister))],
    db: Annotated[AsyncSession, Depends(get_db)],
    ctx: Annotated[AppContext, Depends(get_context)],
) -> Response:
    """
    Public endpoint. On success the browser is sent to the login page.
    Duplicate registration number / login and store failures answer 500
    with a short message.
    """
    try:
        await CompanyService.register(db, ctx, body)
    except Forbidden:
        raise
    except PortalError as exc:
        await db.rollback()
        logger.warning("Registration failed", error=exc.message)
        return PlainTextResponse(
            exc.message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )
    return _redirect(ctx.settings.LOGIN_PAGE)


@router.post("/login", summary="Login and receive a session cookie")
async def login(
    body: Annotated[LoginRequest, Depends(parse_body(LoginRequest))],
    db: Annotated[AsyncSession, Depends(get_db)],
    ctx: Annotated[AppContext, Depends(get_context)],
    previous_session: Annotated[str | None, Depends(get_session_id)],
) -> Response:
    """
    Accepts loginId (or email / username) or registrationNumber (or cnpj)
    plus password, as form data or JSON.
    """
    try:
        identity = await CompanyService.authenticate(db, ctx, body)
    except InvalidCredentials as exc:
        return PlainTextResponse(exc.message, status_code=status.HTTP_401_UNAUTHORIZED)

    if previous_session:
        ctx.sessions.destroy(previous_session)
    session_id = ctx.sessions.create(to_claims(identity))

    settings = ctx.settings
    response = _redirect(settings.ADMIN_PAGE if is_admin(identity) else settings.TENANT_PAGE)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=sign_session_id(session_id, settings),
        max_age=settings.SESSION_TTL_SECONDS,
        httponly=True,
        samesite="lax",
        secure=settings.SESSION_COOKIE_SECURE,
    )
    return response


@router.get("/logout", summary="End the current session")
async def logout(
    ctx: Annotated[AppContext, Depends(get_context)],
    session_id: Annotated[str | None, Depends(get_session_id)],
) -> RedirectResponse:
    if session_id:
        ctx.sessions.destroy(session_id)
    response = _redirect(ctx.settings.LOGIN_PAGE)
    response.delete_cookie(ctx.settings.SESSION_COOKIE_NAME)
    return response


@router.get("/me", response_model=IdentityRead, summary="Get the current identity")
async def get_me(
    identity: Annotated[Identity, Depends(require_tenant)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> IdentityRead:
    if isinstance(identity, Tenant):
        company = await CompanyService.get(db, identity.company_id)
        return IdentityRead(is_admin=False, company=CompanyRead.model_validate(company))
    return IdentityRead(is_admin=True)
