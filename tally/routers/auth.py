"""Session authentication: login/logout, the signed-in user, profile and password.

There is no self-registration; accounts are created by administrators.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from tally.core.config import settings
from tally.core.exceptions import ForbiddenError
from tally.core.response import DataResponse
from tally.db.base import get_db
from tally.routers.deps import get_request_meta, get_scope, session_token
from tally.schemas.common import MessageResponse
from tally.schemas.division import DivisionOut
from tally.schemas.user import (
    DivisionSelect,
    LoginRequest,
    PasswordChange,
    ProfileUpdate,
    SessionUserOut,
    UserOut,
)
from tally.services.access import AccessScope
from tally.services.audit import RequestMeta
from tally.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])


async def _session_user(svc: AuthService, scope: AccessScope) -> SessionUserOut:
    divisions = await svc.visible_divisions(scope)
    return SessionUserOut(
        user=UserOut.model_validate(scope.user),
        divisions=[DivisionOut.model_validate(d) for d in divisions],
        selected_division_id=scope.selected_division_id,
        sees_all_divisions=scope.sees_all_divisions,
    )


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_seconds,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
    )


@router.post("/login", response_model=DataResponse[SessionUserOut])
async def login(
    body: LoginRequest,
    response: Response,
    meta: RequestMeta = Depends(get_request_meta),
    session: AsyncSession = Depends(get_db),
):
    """Verify credentials and issue an HttpOnly session cookie."""
    svc = AuthService(session)
    _, token = await svc.login(body.email, body.password, meta)
    _set_session_cookie(response, token)
    scope = await svc.resolve(token)
    return {"data": await _session_user(svc, scope)}


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_db),
):
    await AuthService(session).logout(session_token(request))
    response.delete_cookie(settings.session_cookie_name, path="/")
    return MessageResponse(message="Logged out")


@router.get("/user", response_model=DataResponse[SessionUserOut])
async def current_user(
    scope: AccessScope = Depends(get_scope),
    session: AsyncSession = Depends(get_db),
):
    return {"data": await _session_user(AuthService(session), scope)}


@router.post("/division", response_model=DataResponse[SessionUserOut])
async def select_division(
    body: DivisionSelect,
    scope: AccessScope = Depends(get_scope),
    session: AsyncSession = Depends(get_db),
):
    """Remember the division the user is working in (drives effective branding)."""
    svc = AuthService(session)
    selected = await svc.select_division(scope, body.division_id)
    scope = AccessScope(
        user=scope.user,
        session_id=scope.session_id,
        division_ids=scope.division_ids,
        selected_division_id=selected,
    )
    return {"data": await _session_user(svc, scope)}


@router.patch("/profile", response_model=DataResponse[UserOut])
async def update_profile(
    body: ProfileUpdate,
    scope: AccessScope = Depends(get_scope),
    meta: RequestMeta = Depends(get_request_meta),
    session: AsyncSession = Depends(get_db),
):
    user = await AuthService(session).update_profile(scope, body, meta)
    return {"data": UserOut.model_validate(user)}


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    body: PasswordChange,
    scope: AccessScope = Depends(get_scope),
    meta: RequestMeta = Depends(get_request_meta),
    session: AsyncSession = Depends(get_db),
):
    await AuthService(session).change_password(scope, body, meta)
    return MessageResponse(message="Password updated")


@router.post("/register", response_model=MessageResponse)
async def register():
    raise ForbiddenError("Public registration is disabled. Ask an administrator for an account.")
