"""Login, server-side sessions, profile maintenance and first-admin bootstrap."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from tally.core.config import settings
from tally.core.exceptions import ConflictError, ForbiddenError, UnauthorizedError, ValidationError
from tally.core.security import (
    dummy_password_hash,
    hash_password,
    new_session_token,
    token_digest,
    verify_password,
)
from tally.domain.division import Division
from tally.domain.user import User
from tally.repositories.division import DivisionRepository
from tally.repositories.user import SessionRepository, UserDivisionRepository, UserRepository
from tally.schemas.user import PasswordChange, ProfileUpdate, UserOut
from tally.services.access import AccessScope
from tally.services.audit import AuditService, RequestMeta, snapshot

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


class AuthService:
    def __init__(self, session: AsyncSession):
        self._users = UserRepository(session)
        self._memberships = UserDivisionRepository(session)
        self._sessions = SessionRepository(session)
        self._divisions = DivisionRepository(session)
        self._audit = AuditService(session)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def login(self, email: str, password: str, meta: RequestMeta) -> tuple[User, str]:
        """Verify credentials and open a session; returns (user, opaque cookie token)."""
        user = await self._users.get_by_email(email)
        # Unknown emails still pay for one hash verification
        password_ok = verify_password(
            password, user.password_hash if user is not None else dummy_password_hash()
        )
        # Same message for unknown, inactive and wrong-password so accounts can't be probed
        if user is None or not user.is_active or not password_ok:
            logger.info("Failed login for %s", email.strip().lower())
            raise UnauthorizedError(INVALID_CREDENTIALS)

        now = datetime.now(timezone.utc)
        await self._sessions.delete_expired(now)

        token = new_session_token()
        await self._sessions.create(
            token_digest=token_digest(token),
            user_id=user.id,
            ip_address=meta.ip_address,
            user_agent=meta.user_agent,
            expires_at=now + timedelta(days=settings.session_ttl_days),
        )
        user = await self._users.update(user, last_login_at=now)
        await self._audit.record(
            user.id, "user_login", entity_type="user", entity_id=user.id, meta=meta
        )
        return user, token

    async def logout(self, token: str | None) -> None:
        if token:
            await self._sessions.delete_by_digest(token_digest(token))

    async def resolve(self, token: str | None) -> AccessScope:
        """Turn a cookie token into the request's access scope, or raise 401."""
        if not token:
            raise UnauthorizedError()
        found = await self._sessions.get_live(token_digest(token), datetime.now(timezone.utc))
        if found is None:
            raise UnauthorizedError()
        user_session, user = found
        division_ids = await self._memberships.permitted_division_ids(user.id)
        return AccessScope(
            user=user,
            session_id=user_session.id,
            division_ids=division_ids,
            selected_division_id=user_session.selected_division_id,
        )

    async def visible_divisions(self, scope: AccessScope) -> list[Division]:
        if scope.sees_all_divisions:
            return await self._divisions.list_active()
        return await self._divisions.list_active(scope.division_ids)

    async def select_division(self, scope: AccessScope, division_id: str | None) -> str | None:
        if division_id is not None:
            division = await self._divisions.get_by_id(division_id)
            if (
                division is None
                or not division.is_active
                or not scope.can_access_division(division_id)
            ):
                raise ForbiddenError("You do not have access to this division")
        await self._sessions.select_division(scope.session_id, division_id)
        return division_id

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    async def update_profile(
        self, scope: AccessScope, data: ProfileUpdate, meta: RequestMeta
    ) -> User:
        user = scope.user
        existing = await self._users.get_by_email(data.email)
        if existing is not None and existing.id != user.id:
            raise ConflictError("A user with this email already exists")
        before = snapshot(UserOut, user)
        user = await self._users.update(
            user,
            first_name=data.first_name,
            last_name=data.last_name,
            email=data.email.strip().lower(),
        )
        await self._audit.record(
            user.id,
            "profile_updated",
            entity_type="user",
            entity_id=user.id,
            old_values=before,
            new_values=snapshot(UserOut, user),
            meta=meta,
        )
        return user

    async def change_password(
        self, scope: AccessScope, data: PasswordChange, meta: RequestMeta
    ) -> None:
        user = scope.user
        if not verify_password(data.current_password, user.password_hash):
            raise ValidationError("Current password is incorrect")
        await self._users.update(
            user,
            password_hash=hash_password(data.new_password),
            must_change_password=False,
        )
        await self._audit.record(
            user.id, "password_changed", entity_type="user", entity_id=user.id, meta=meta
        )

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def ensure_bootstrap_admin(self) -> User | None:
        """Create the first admin from settings when the users table is empty."""
        email = settings.bootstrap_admin_email
        password = settings.bootstrap_admin_password
        if not email or not password:
            return None
        if await self._users.count() > 0:
            return None
        admin = await self._users.create(
            email=email.strip().lower(),
            password_hash=hash_password(password),
            first_name="Admin",
            last_name="User",
            role="admin",
            is_active=True,
        )
        logger.info("Bootstrapped admin account %s", admin.email)
        return admin
