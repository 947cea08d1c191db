"""User administration router (admin only)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from tally.core.response import DataResponse
from tally.db.base import get_db
from tally.routers.deps import get_request_meta, require_admin
from tally.schemas.user import (
    MembershipCreate,
    MembershipOut,
    UserCreate,
    UserCreated,
    UserOut,
    UserUpdate,
)
from tally.services.access import AccessScope
from tally.services.audit import RequestMeta
from tally.services.users import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=DataResponse[list[UserOut]])
async def list_users(
    _: AccessScope = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    users = await UserService(session).list_users()
    return {"data": [UserOut.model_validate(u) for u in users]}


@router.post("", response_model=DataResponse[UserCreated], status_code=status.HTTP_201_CREATED)
async def create_user(
    body: UserCreate,
    scope: AccessScope = Depends(require_admin),
    meta: RequestMeta = Depends(get_request_meta),
    session: AsyncSession = Depends(get_db),
):
    """Create an account; the temporary password is returned in this response only."""
    user, temp_password = await UserService(session).create_user(scope, body, meta)
    return {"data": UserCreated(user=UserOut.model_validate(user), temp_password=temp_password)}


@router.get("/{user_id}", response_model=DataResponse[UserOut])
async def get_user(
    user_id: str,
    _: AccessScope = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    user = await UserService(session).get_user(user_id)
    return {"data": UserOut.model_validate(user)}


@router.patch("/{user_id}", response_model=DataResponse[UserOut])
async def update_user(
    user_id: str,
    body: UserUpdate,
    scope: AccessScope = Depends(require_admin),
    meta: RequestMeta = Depends(get_request_meta),
    session: AsyncSession = Depends(get_db),
):
    user = await UserService(session).update_user(scope, user_id, body, meta)
    return {"data": UserOut.model_validate(user)}


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_user(
    user_id: str,
    scope: AccessScope = Depends(require_admin),
    meta: RequestMeta = Depends(get_request_meta),
    session: AsyncSession = Depends(get_db),
):
    """Users are deactivated, never removed, so their audit history stays intact."""
    await UserService(session).deactivate_user(scope, user_id, meta)


# ------------------------------------------------------------------
# Division memberships
# ------------------------------------------------------------------

@router.get("/{user_id}/divisions", response_model=DataResponse[list[MembershipOut]])
async def list_user_divisions(
    user_id: str,
    _: AccessScope = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    memberships = await UserService(session).list_memberships(user_id)
    return {"data": [MembershipOut.model_validate(m) for m in memberships]}


@router.post(
    "/{user_id}/divisions",
    response_model=DataResponse[MembershipOut],
    status_code=status.HTTP_201_CREATED,
)
async def assign_user_division(
    user_id: str,
    body: MembershipCreate,
    scope: AccessScope = Depends(require_admin),
    meta: RequestMeta = Depends(get_request_meta),
    session: AsyncSession = Depends(get_db),
):
    membership = await UserService(session).assign_division(
        scope, user_id, body.division_id, body.can_manage, meta
    )
    return {"data": MembershipOut.model_validate(membership)}


@router.delete("/{user_id}/divisions/{division_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_user_division(
    user_id: str,
    division_id: str,
    scope: AccessScope = Depends(require_admin),
    meta: RequestMeta = Depends(get_request_meta),
    session: AsyncSession = Depends(get_db),
):
    await UserService(session).remove_division(scope, user_id, division_id, meta)
