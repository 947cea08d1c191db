"""Contact repository — every read excludes soft-deleted rows."""

from __future__ import annotations

from sqlalchemy import func, or_, select

from tally.domain.contact import Contact
from tally.repositories.base import BaseRepository, DivisionFilter


def escape_like(text: str) -> str:
    """Make `%`, `_` and the escape character match literally in a LIKE pattern."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class ContactRepository(BaseRepository[Contact]):
    model = Contact

    async def get_visible(self, contact_id: str, division_ids: DivisionFilter) -> Contact | None:
        q = self._scoped(self._base_query(), division_ids).where(Contact.id == contact_id)
        return (await self._session.execute(q)).scalars().first()

    async def page(
        self,
        division_ids: DivisionFilter,
        *,
        search: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Contact], int]:
        q = self._scoped(self._base_query(), division_ids)
        if search:
            term = f"%{escape_like(search.strip().lower())}%"
            q = q.where(
                or_(
                    *(
                        func.lower(column).like(term, escape="\\")
                        for column in (
                            Contact.first_name,
                            Contact.last_name,
                            Contact.email,
                            Contact.phone,
                            Contact.company,
                        )
                    )
                )
            )
            q = q.order_by(Contact.first_name.asc(), Contact.id)
        else:
            q = q.order_by(Contact.created_at.desc(), Contact.id)

        total = (
            await self._session.execute(select(func.count()).select_from(q.subquery()))
        ).scalar_one()
        items = (await self._session.execute(q.offset(offset).limit(limit))).scalars().all()
        return list(items), total
