"""Aggregation queries for contact and company-wide statistics.

Every call recomputes from current table contents; nothing is cached.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tally.domain.category import ContactCategory
from tally.domain.contact import Contact
from tally.domain.division import Division, UserDivision
from tally.domain.upload import UPLOAD_COMPLETED, Upload
from tally.domain.user import User
from tally.repositories.base import DivisionFilter


def _filled(column):
    return and_(column.isnot(None), column != "")


_COVERAGE_COLUMNS = {
    "with_email": Contact.email,
    "with_phone": Contact.phone,
    "with_address": Contact.address,
    "with_company": Contact.company,
}


class ReportRepository:
    def __init__(self, session: AsyncSession):
        self._session = session

    def _active_contacts(self, division_ids: DivisionFilter):
        cond = Contact.is_active.is_(True)
        if division_ids is not None:
            cond = and_(cond, Contact.division_id.in_(list(division_ids)))
        return cond

    async def contact_counts(self, division_ids: DivisionFilter) -> dict[str, int]:
        base = self._active_contacts(division_ids)
        columns = [func.count(Contact.id).label("total")]
        for label, column in _COVERAGE_COLUMNS.items():
            columns.append(func.count(Contact.id).filter(_filled(column)).label(label))
        columns.append(
            func.count(Contact.id).filter(Contact.custom_fields.isnot(None)).label("with_custom_fields")
        )
        row = (await self._session.execute(select(*columns).where(base))).one()
        return dict(row._mapping)

    async def category_breakdown(self, division_ids: DivisionFilter) -> list[dict[str, Any]]:
        result = await self._session.execute(
            select(
                Contact.category_id,
                ContactCategory.name,
                func.count(Contact.id),
            )
            .select_from(Contact)
            .outerjoin(ContactCategory, ContactCategory.id == Contact.category_id)
            .where(self._active_contacts(division_ids))
            .group_by(Contact.category_id, ContactCategory.name)
            .order_by(func.count(Contact.id).desc())
        )
        return [
            {"category_id": category_id, "category_name": name, "count": count}
            for category_id, name, count in result.all()
        ]

    # ------------------------------------------------------------------
    # Company-wide
    # ------------------------------------------------------------------

    async def company_totals(self) -> dict[str, int]:
        contact_base = self._active_contacts(None)
        row = (
            await self._session.execute(
                select(
                    func.count(Contact.id).label("total_contacts"),
                    func.count(Contact.id).filter(_filled(Contact.email)).label("total_emails"),
                    func.count(Contact.id).filter(_filled(Contact.phone)).label("total_phones"),
                    func.count(Contact.id).filter(_filled(Contact.address)).label("total_addresses"),
                ).where(contact_base)
            )
        ).one()
        totals = dict(row._mapping)
        totals["total_divisions"] = (
            await self._session.execute(
                select(func.count(Division.id)).where(Division.is_active.is_(True))
            )
        ).scalar_one()
        totals["total_active_users"] = (
            await self._session.execute(
                select(func.count(User.id)).where(User.is_active.is_(True))
            )
        ).scalar_one()
        totals["total_uploads"] = (
            await self._session.execute(select(func.count(Upload.id)))
        ).scalar_one()
        return totals

    async def active_divisions(self) -> list[Division]:
        result = await self._session.execute(
            select(Division).where(Division.is_active.is_(True)).order_by(Division.name)
        )
        return list(result.scalars().all())

    async def contact_counts_by_division(self) -> dict[str, dict[str, int]]:
        result = await self._session.execute(
            select(
                Contact.division_id,
                func.count(Contact.id).label("contact_count"),
                func.count(Contact.id).filter(_filled(Contact.email)).label("email_count"),
                func.count(Contact.id).filter(_filled(Contact.phone)).label("phone_count"),
                func.count(Contact.id).filter(_filled(Contact.address)).label("address_count"),
                func.count(Contact.id).filter(_filled(Contact.company)).label("company_count"),
            )
            .where(Contact.is_active.is_(True), Contact.division_id.isnot(None))
            .group_by(Contact.division_id)
        )
        out: dict[str, dict[str, int]] = {}
        for row in result.all():
            data = dict(row._mapping)
            out[data.pop("division_id")] = data
        return out

    async def active_users_by_division(self) -> dict[str, int]:
        result = await self._session.execute(
            select(UserDivision.division_id, func.count(User.id))
            .join(User, User.id == UserDivision.user_id)
            .where(User.is_active.is_(True))
            .group_by(UserDivision.division_id)
        )
        return {division_id: count for division_id, count in result.all()}

    async def completed_uploads_by_division(self, since: datetime) -> dict[str, int]:
        result = await self._session.execute(
            select(Upload.division_id, func.count(Upload.id))
            .where(
                Upload.status == UPLOAD_COMPLETED,
                Upload.created_at > since,
                Upload.division_id.isnot(None),
            )
            .group_by(Upload.division_id)
        )
        return {division_id: count for division_id, count in result.all()}
