"""Contact CRUD. Deletes are soft and idempotent."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from tally.core.exceptions import NotFoundError, ValidationError
from tally.domain.contact import Contact
from tally.repositories.catalog import CategoryRepository
from tally.repositories.contact import ContactRepository
from tally.schemas.contact import ContactCreate, ContactOut, ContactUpdate
from tally.services.access import AccessScope
from tally.services.audit import AuditService, RequestMeta, snapshot
from tally.services.divisions import require_active_division

logger = logging.getLogger(__name__)


class ContactService:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._repo = ContactRepository(session)
        self._categories = CategoryRepository(session)
        self._audit = AuditService(session)

    async def list_contacts(
        self,
        scope: AccessScope,
        division_id: str | None,
        *,
        search: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Contact], int]:
        division_ids = scope.resolve_division_filter(division_id)
        return await self._repo.page(
            division_ids, search=(search or "").strip() or None, limit=limit, offset=offset
        )

    async def get_contact(self, scope: AccessScope, contact_id: str) -> Contact:
        contact = await self._repo.get_visible(contact_id, scope.resolve_division_filter(None))
        if contact is None:
            raise NotFoundError("Contact", contact_id)
        return contact

    async def _check_category(self, category_id: str | None, division_id: str | None) -> None:
        if not category_id:
            return
        category = await self._categories.get_by_id(category_id)
        if category is None:
            raise ValidationError(f"Unknown category '{category_id}'")
        if category.division_id is not None and category.division_id != division_id:
            raise ValidationError("Category belongs to a different division")

    async def create_contact(
        self, scope: AccessScope, data: ContactCreate, meta: RequestMeta
    ) -> Contact:
        scope.ensure_division_access(data.division_id)
        await require_active_division(self._session, data.division_id)
        await self._check_category(data.category_id, data.division_id)

        contact = await self._repo.create(**data.model_dump(), is_active=True)
        await self._audit.record(
            scope.user_id,
            "contact_created",
            entity_type="contact",
            entity_id=contact.id,
            new_values=snapshot(ContactOut, contact),
            division_id=contact.division_id,
            meta=meta,
        )
        return contact

    async def update_contact(
        self, scope: AccessScope, contact_id: str, data: ContactUpdate, meta: RequestMeta
    ) -> Contact:
        contact = await self.get_contact(scope, contact_id)
        changes = data.model_dump(exclude_unset=True)
        if "category_id" in changes:
            await self._check_category(changes["category_id"], contact.division_id)

        before = snapshot(ContactOut, contact)
        contact = await self._repo.update(contact, **changes)
        await self._audit.record(
            scope.user_id,
            "contact_updated",
            entity_type="contact",
            entity_id=contact.id,
            old_values=before,
            new_values=snapshot(ContactOut, contact),
            division_id=contact.division_id,
            meta=meta,
        )
        return contact

    async def delete_contact(self, scope: AccessScope, contact_id: str, meta: RequestMeta) -> None:
        """Soft delete; deleting an unknown or already-inactive contact is a no-op."""
        changed = await self._repo.deactivate(
            [contact_id], division_ids=scope.resolve_division_filter(None)
        )
        if changed:
            await self._audit.record(
                scope.user_id,
                "contact_deleted",
                entity_type="contact",
                entity_id=contact_id,
                old_values={"isActive": True},
                new_values={"isActive": False},
                meta=meta,
            )

    async def bulk_delete(self, scope: AccessScope, ids: list[str], meta: RequestMeta) -> int:
        """Soft-delete in one statement; returns how many active, in-scope contacts changed."""
        unique_ids = list(dict.fromkeys(ids))
        deleted = await self._repo.deactivate(
            unique_ids, division_ids=scope.resolve_division_filter(None)
        )
        await self._audit.record(
            scope.user_id,
            "contacts_bulk_deleted",
            entity_type="contact",
            new_values={"requested": len(unique_ids), "deleted": deleted, "ids": unique_ids},
            meta=meta,
        )
        logger.info("Bulk delete by %s: %d of %d contacts", scope.user_id, deleted, len(unique_ids))
        return deleted
