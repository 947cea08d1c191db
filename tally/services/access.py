"""Role checks and server-side division scoping.

The permitted division set is always derived from the session's user and the
user_divisions junction table; a client-supplied divisionId can only narrow it.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from tally.core.exceptions import ForbiddenError
from tally.domain.user import User

ALL_DIVISION_ROLES = frozenset({"admin", "exco"})
WRITE_ROLES = frozenset({"admin", "uploader"})


@dataclass(frozen=True)
class AccessScope:
    """What the acting user may see for the duration of one request."""

    user: User
    session_id: str | None
    division_ids: frozenset[str]
    selected_division_id: str | None = None

    @property
    def role(self) -> str:
        return self.user.role

    @property
    def user_id(self) -> str:
        return self.user.id

    @property
    def sees_all_divisions(self) -> bool:
        return self.role in ALL_DIVISION_ROLES

    def has_role(self, roles: Iterable[str]) -> bool:
        return self.role in set(roles)

    def require_role(self, *roles: str) -> None:
        if not self.has_role(roles):
            raise ForbiddenError()

    def can_access_division(self, division_id: str) -> bool:
        return self.sees_all_divisions or division_id in self.division_ids

    def resolve_division_filter(self, requested: str | None) -> frozenset[str] | None:
        """Effective division filter for a read.

        None means "no restriction" and is only ever returned to admin/exco.
        """
        if self.sees_all_divisions:
            return frozenset({requested}) if requested else None
        if requested:
            if requested not in self.division_ids:
                raise ForbiddenError("You do not have access to this division")
            return frozenset({requested})
        return self.division_ids

    def ensure_division_access(self, division_id: str | None) -> None:
        """Writes into a division need membership unless the role sees everything."""
        if division_id is None:
            if not self.sees_all_divisions:
                raise ForbiddenError("Only administrators may manage records outside a division")
            return
        if not self.can_access_division(division_id):
            raise ForbiddenError("You do not have access to this division")
