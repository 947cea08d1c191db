"""User administration and division memberships (admin only)."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from tally.core.exceptions import ConflictError, NotFoundError, ValidationError
from tally.core.security import generate_temporary_password, hash_password
from tally.domain.division import UserDivision
from tally.domain.user import User
from tally.repositories.user import SessionRepository, UserDivisionRepository, UserRepository
from tally.schemas.user import UserCreate, UserOut, UserUpdate
from tally.services.access import AccessScope
from tally.services.audit import AuditService, RequestMeta, snapshot
from tally.services.divisions import require_active_division

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL = "A user with this email already exists"


class UserService:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._users = UserRepository(session)
        self._memberships = UserDivisionRepository(session)
        self._sessions = SessionRepository(session)
        self._audit = AuditService(session)

    async def list_users(self) -> list[User]:
        return await self._users.list_all()

    async def get_user(self, user_id: str) -> User:
        user = await self._users.get_by_id(user_id, include_inactive=True)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    async def _check_divisions(self, division_ids: list[str]) -> None:
        for division_id in division_ids:
            await require_active_division(self._session, division_id)

    async def create_user(
        self, scope: AccessScope, data: UserCreate, meta: RequestMeta
    ) -> tuple[User, str]:
        """Create an account with a one-time temporary password (returned, never stored)."""
        if await self._users.get_by_email(data.email) is not None:
            raise ConflictError(DUPLICATE_EMAIL)
        division_ids = data.division_ids or []
        await self._check_divisions(division_ids)

        temp_password = generate_temporary_password()
        user = await self._users.create(
            email=data.email.strip().lower(),
            password_hash=hash_password(temp_password),
            first_name=data.first_name,
            last_name=data.last_name,
            role=data.role,
            is_active=True,
            must_change_password=True,
        )
        if division_ids:
            await self._memberships.replace(user.id, division_ids)

        new_values = snapshot(UserOut, user)
        new_values["divisionIds"] = division_ids
        await self._audit.record(
            scope.user_id,
            "user_created",
            entity_type="user",
            entity_id=user.id,
            new_values=new_values,
            meta=meta,
        )
        logger.info("User %s created with role %s", user.email, user.role)
        return user, temp_password

    async def update_user(
        self, scope: AccessScope, user_id: str, data: UserUpdate, meta: RequestMeta
    ) -> User:
        user = await self.get_user(user_id)
        changes = data.model_dump(exclude_unset=True, exclude={"division_ids"})
        for required in ("email", "first_name", "last_name", "role", "is_active"):
            if changes.get(required) is None:
                changes.pop(required, None)

        if "email" in changes:
            existing = await self._users.get_by_email(changes["email"])
            if existing is not None and existing.id != user.id:
                raise ConflictError(DUPLICATE_EMAIL)
            changes["email"] = changes["email"].strip().lower()
        if changes.get("is_active") is False and user.id == scope.user_id:
            raise ValidationError("You cannot deactivate your own account")
        if data.division_ids is not None:
            await self._check_divisions(data.division_ids)

        before = snapshot(UserOut, user)
        user = await self._users.update(user, **changes)
        if data.division_ids is not None:
            await self._memberships.replace(user.id, data.division_ids)
        if not user.is_active:
            await self._sessions.delete_for_user(user.id)

        new_values = snapshot(UserOut, user)
        if data.division_ids is not None:
            new_values["divisionIds"] = list(data.division_ids)
        await self._audit.record(
            scope.user_id,
            "user_updated",
            entity_type="user",
            entity_id=user.id,
            old_values=before,
            new_values=new_values,
            meta=meta,
        )
        return user

    async def deactivate_user(self, scope: AccessScope, user_id: str, meta: RequestMeta) -> None:
        user = await self.get_user(user_id)
        if user.id == scope.user_id:
            raise ValidationError("You cannot deactivate your own account")
        if not user.is_active:
            return
        await self._users.update(user, is_active=False)
        await self._sessions.delete_for_user(user.id)
        await self._audit.record(
            scope.user_id,
            "user_deactivated",
            entity_type="user",
            entity_id=user.id,
            old_values={"isActive": True},
            new_values={"isActive": False},
            meta=meta,
        )

    # ------------------------------------------------------------------
    # Memberships
    # ------------------------------------------------------------------

    async def list_memberships(self, user_id: str) -> list[UserDivision]:
        await self.get_user(user_id)
        return await self._memberships.list_for_user(user_id)

    async def assign_division(
        self,
        scope: AccessScope,
        user_id: str,
        division_id: str,
        can_manage: bool,
        meta: RequestMeta,
    ) -> UserDivision:
        await self.get_user(user_id)
        await require_active_division(self._session, division_id)

        membership = await self._memberships.get(user_id, division_id)
        if membership is None:
            membership = await self._memberships.create(
                user_id=user_id, division_id=division_id, can_manage=can_manage
            )
        else:
            membership = await self._memberships.update(membership, can_manage=can_manage)

        await self._audit.record(
            scope.user_id,
            "user_division_assigned",
            entity_type="user",
            entity_id=user_id,
            new_values={"divisionId": division_id, "canManage": can_manage},
            division_id=division_id,
            meta=meta,
        )
        # The response embeds the division; async sessions cannot lazy-load it later
        await self._session.refresh(membership, attribute_names=["division"])
        return membership

    async def remove_division(
        self, scope: AccessScope, user_id: str, division_id: str, meta: RequestMeta
    ) -> None:
        await self.get_user(user_id)
        if not await self._memberships.remove(user_id, division_id):
            raise NotFoundError("Membership", f"{user_id}/{division_id}")
        await self._audit.record(
            scope.user_id,
            "user_division_removed",
            entity_type="user",
            entity_id=user_id,
            old_values={"divisionId": division_id},
            division_id=division_id,
            meta=meta,
        )
