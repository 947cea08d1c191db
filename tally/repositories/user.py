"""User, membership and session repositories."""

from __future__ import annotations

from collections.abc import Collection
from datetime import datetime

from sqlalchemy import delete, func, select, update

from tally.domain.division import Division, UserDivision
from tally.domain.user import User, UserSession
from tally.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    model = User

    async def get_by_email(self, email: str) -> User | None:
        result = await self._session.execute(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )
        return result.scalars().first()

    async def list_all(self) -> list[User]:
        result = await self._session.execute(select(User).order_by(User.created_at))
        return list(result.scalars().all())

    async def count(self) -> int:
        return (await self._session.execute(select(func.count(User.id)))).scalar_one()


class UserDivisionRepository(BaseRepository[UserDivision]):
    model = UserDivision

    async def list_for_user(self, user_id: str) -> list[UserDivision]:
        """Memberships of a user in active divisions."""
        result = await self._session.execute(
            select(UserDivision)
            .join(Division, Division.id == UserDivision.division_id)
            .where(UserDivision.user_id == user_id, Division.is_active.is_(True))
            .order_by(Division.name)
        )
        return list(result.scalars().unique().all())

    async def permitted_division_ids(self, user_id: str) -> frozenset[str]:
        result = await self._session.execute(
            select(UserDivision.division_id)
            .join(Division, Division.id == UserDivision.division_id)
            .where(UserDivision.user_id == user_id, Division.is_active.is_(True))
        )
        return frozenset(result.scalars().all())

    async def get(self, user_id: str, division_id: str) -> UserDivision | None:
        result = await self._session.execute(
            select(UserDivision).where(
                UserDivision.user_id == user_id, UserDivision.division_id == division_id
            )
        )
        return result.scalars().first()

    async def replace(self, user_id: str, division_ids: Collection[str]) -> None:
        """Replace every membership of a user (can_manage resets to False)."""
        await self._session.execute(delete(UserDivision).where(UserDivision.user_id == user_id))
        for division_id in dict.fromkeys(division_ids):
            self._session.add(UserDivision(user_id=user_id, division_id=division_id))
        await self._session.flush()

    async def remove(self, user_id: str, division_id: str) -> bool:
        result = await self._session.execute(
            delete(UserDivision).where(
                UserDivision.user_id == user_id, UserDivision.division_id == division_id
            )
        )
        await self._session.flush()
        return (result.rowcount or 0) > 0


class SessionRepository(BaseRepository[UserSession]):
    model = UserSession

    async def get_live(self, token_digest: str, now: datetime) -> tuple[UserSession, User] | None:
        """Return (session, user) for an unexpired session of an active user."""
        result = await self._session.execute(
            select(UserSession, User)
            .join(User, User.id == UserSession.user_id)
            .where(
                UserSession.token_digest == token_digest,
                UserSession.expires_at > now,
                User.is_active.is_(True),
            )
        )
        row = result.first()
        return (row[0], row[1]) if row else None

    async def delete_by_digest(self, token_digest: str) -> None:
        await self._session.execute(
            delete(UserSession).where(UserSession.token_digest == token_digest)
        )
        await self._session.flush()

    async def delete_for_user(self, user_id: str) -> None:
        await self._session.execute(delete(UserSession).where(UserSession.user_id == user_id))
        await self._session.flush()

    async def delete_expired(self, now: datetime) -> None:
        await self._session.execute(delete(UserSession).where(UserSession.expires_at <= now))

    async def select_division(self, session_id: str, division_id: str | None) -> None:
        await self._session.execute(
            update(UserSession)
            .where(UserSession.id == session_id)
            .values(selected_division_id=division_id)
        )
        await self._session.flush()
