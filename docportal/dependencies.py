"""
dependencies.py
---------------
FastAPI dependency injection functions for the access gate.

Flow:
  1. get_context pulls the AppContext built at startup off app.state.
  2. get_identity reads the session cookie once per request, checks its
     signature, looks the session up and re-verifies a tenant against the
     database, so deleted companies are rejected.
  3. require_tenant / require_admin turn the identity into a 401 or 403.

"Is this caller admin" is one predicate (is_admin(identity)) no matter
whether the admin came from a fixed credential or a company row.
"""

from typing import Annotated, AsyncIterator, Type, TypeVar

from fastapi import Depends, Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from docportal.context import AppContext
from docportal.core.errors import Forbidden, InternalError, Unauthorized
from docportal.core.identity import Admin, Anonymous, Identity, Tenant, from_claims, is_admin
from docportal.core.logging import get_logger
from docportal.core.security import read_session_id
from docportal.models.company import Company

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def get_context(request: Request) -> AppContext:
    return request.app.state.context


async def get_db(
    ctx: Annotated[AppContext, Depends(get_context)],
) -> AsyncIterator[AsyncSession]:
    """
    Yields a database session for the request. Committed when the handler
    returns, rolled back on exceptions. Database failures the services did
    not handle surface as InternalError.
    """
    async with ctx.sessionmaker() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as exc:
            await session.rollback()
            logger.error("Database error", error=str(exc))
            raise InternalError("Database error") from exc
        except Exception:
            await session.rollback()
            raise


def get_session_id(
    request: Request,
    ctx: Annotated[AppContext, Depends(get_context)],
) -> str | None:
    cookie = request.cookies.get(ctx.settings.SESSION_COOKIE_NAME)
    if not cookie:
        return None
    session_id = read_session_id(cookie, ctx.settings)
    if session_id is None:
        logger.warning("Rejected session cookie with bad signature or expiry")
    return session_id


async def get_identity(
    ctx: Annotated[AppContext, Depends(get_context)],
    db: Annotated[AsyncSession, Depends(get_db)],
    session_id: Annotated[str | None, Depends(get_session_id)],
) -> Identity:
    if session_id is None:
        return Anonymous()

    identity = from_claims(ctx.sessions.resolve(session_id))
    if isinstance(identity, Tenant):
        # Always re-verify against DB so deleted companies are rejected
        company = await db.get(Company, identity.company_id)
        if company is None:
            logger.warning("Session for missing company", company_id=identity.company_id)
            ctx.sessions.destroy(session_id)
            return Anonymous()
    return identity


async def require_tenant(
    identity: Annotated[Identity, Depends(get_identity)],
) -> Identity:
    """A logged-in company or the admin. Anonymous callers get 401."""
    if isinstance(identity, Anonymous):
        raise Unauthorized()
    return identity


async def require_admin(
    identity: Annotated[Identity, Depends(get_identity)],
) -> Admin:
    """Admin only. Anonymous callers get 401, companies get 403."""
    if isinstance(identity, Anonymous):
        raise Unauthorized()
    if not is_admin(identity):
        raise Forbidden()
    return identity


def parse_body(model: Type[ModelT]):
    """
    Dependency factory: validate a JSON or form-encoded body against `model`.
    Invalid input fails with the usual 422 before any store call.
    """

    async def dependency(request: Request) -> ModelT:
        content_type = request.headers.get("content-type", "")
        if content_type.startswith("application/json"):
            try:
                payload = await request.json()
            except ValueError:
                raise RequestValidationError(
                    [{"type": "json_invalid", "loc": ("body",), "msg": "Invalid JSON body", "input": None}]
                )
        else:
            form = await request.form()
            payload = {k: v for k, v in form.items() if isinstance(v, str)}
        if not isinstance(payload, dict):
            raise RequestValidationError(
                [{"type": "dict_type", "loc": ("body",), "msg": "Body must be an object", "input": payload}]
            )
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise RequestValidationError(exc.errors(include_url=False, include_context=False))

    return dependency
