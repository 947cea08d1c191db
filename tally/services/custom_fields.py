"""Custom field definitions.

Definitions describe extra per-contact values; the values themselves are stored
in Contact.custom_fields, so adding a field never changes the schema.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from tally.core.exceptions import ConflictError, NotFoundError, ValidationError
from tally.domain.custom_field import CustomFieldDefinition
from tally.repositories.catalog import CustomFieldRepository
from tally.schemas.catalog import CustomFieldCreate, CustomFieldOut, CustomFieldUpdate
from tally.services.access import AccessScope
from tally.services.audit import AuditService, RequestMeta, snapshot
from tally.services.divisions import require_active_division


class CustomFieldService:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._repo = CustomFieldRepository(session)
        self._audit = AuditService(session)

    async def list_fields(
        self, scope: AccessScope, division_id: str | None
    ) -> list[CustomFieldDefinition]:
        return await self._repo.list_visible(scope.resolve_division_filter(division_id))

    async def names_for_division(self, division_id: str) -> set[str]:
        return {f.name for f in await self._repo.list_visible({division_id})}

    async def get_field(self, scope: AccessScope, field_id: str) -> CustomFieldDefinition:
        definition = await self._repo.get_by_id(field_id)
        if definition is None:
            raise NotFoundError("Custom field", field_id)
        scope.ensure_division_access(definition.division_id)
        return definition

    async def create_field(
        self, scope: AccessScope, data: CustomFieldCreate, meta: RequestMeta
    ) -> CustomFieldDefinition:
        scope.ensure_division_access(data.division_id)
        if data.division_id:
            await require_active_division(self._session, data.division_id)
        if await self._repo.name_taken(data.name, data.division_id):
            raise ConflictError(f"A custom field named '{data.name}' already exists")

        definition = await self._repo.create(**data.model_dump(), created_by=scope.user_id)
        await self._audit.record(
            scope.user_id,
            "custom_field_created",
            entity_type="custom_field",
            entity_id=definition.id,
            new_values=snapshot(CustomFieldOut, definition),
            division_id=definition.division_id,
            meta=meta,
        )
        return definition

    async def update_field(
        self, scope: AccessScope, field_id: str, data: CustomFieldUpdate, meta: RequestMeta
    ) -> CustomFieldDefinition:
        definition = await self.get_field(scope, field_id)
        changes = data.model_dump(exclude_unset=True)
        for required in ("label", "field_type", "is_required", "display_order"):
            if changes.get(required) is None:
                changes.pop(required, None)

        field_type = changes.get("field_type", definition.field_type)
        options = changes.get("select_options", definition.select_options)
        if field_type == "select" and not options:
            raise ValidationError("select fields need at least one option")

        before = snapshot(CustomFieldOut, definition)
        definition = await self._repo.update(definition, **changes)
        await self._audit.record(
            scope.user_id,
            "custom_field_updated",
            entity_type="custom_field",
            entity_id=definition.id,
            old_values=before,
            new_values=snapshot(CustomFieldOut, definition),
            division_id=definition.division_id,
            meta=meta,
        )
        return definition

    async def delete_field(self, scope: AccessScope, field_id: str, meta: RequestMeta) -> None:
        definition = await self.get_field(scope, field_id)
        await self._repo.deactivate([definition.id])
        await self._audit.record(
            scope.user_id,
            "custom_field_deleted",
            entity_type="custom_field",
            entity_id=definition.id,
            old_values={"name": definition.name, "isActive": True},
            new_values={"isActive": False},
            division_id=definition.division_id,
            meta=meta,
        )
