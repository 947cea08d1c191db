"""Shared router dependencies: DB session, session cookie -> access scope, roles."""

from __future__ import annotations

from collections.abc import Callable, Coroutine
from typing import Any

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tally.core.config import settings
from tally.core.exceptions import UnauthorizedError
from tally.db.base import get_db
from tally.services.access import ALL_DIVISION_ROLES, WRITE_ROLES, AccessScope
from tally.services.audit import RequestMeta
from tally.services.auth import AuthService


def get_request_meta(request: Request) -> RequestMeta:
    return RequestMeta(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


def session_token(request: Request) -> str | None:
    return request.cookies.get(settings.session_cookie_name)


async def get_scope(
    request: Request, session: AsyncSession = Depends(get_db)
) -> AccessScope:
    """Authenticated access scope for the request, or 401."""
    return await AuthService(session).resolve(session_token(request))


async def get_optional_scope(
    request: Request, session: AsyncSession = Depends(get_db)
) -> AccessScope | None:
    token = session_token(request)
    if not token:
        return None
    try:
        return await AuthService(session).resolve(token)
    except UnauthorizedError:
        return None


def require_roles(*roles: str) -> Callable[..., Coroutine[Any, Any, AccessScope]]:
    """Dependency factory: 401 without a session, 403 for any role not listed."""

    async def dependency(scope: AccessScope = Depends(get_scope)) -> AccessScope:
        scope.require_role(*roles)
        return scope

    return dependency


require_admin = require_roles("admin")
require_writer = require_roles(*sorted(WRITE_ROLES))
require_reporting = require_roles(*sorted(ALL_DIVISION_ROLES))
