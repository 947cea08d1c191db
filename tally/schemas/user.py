"""User, membership and authentication schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, model_validator

from tally.schemas.common import CamelModel, EmailText, Role
from tally.schemas.division import DivisionOut


class LoginRequest(CamelModel):
    email: EmailText
    password: str = Field(min_length=1)


class UserOut(CamelModel):
    id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    role: str
    is_active: bool
    must_change_password: bool = False
    last_login_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class MembershipOut(CamelModel):
    id: str
    user_id: str
    division_id: str
    can_manage: bool
    created_at: datetime
    division: DivisionOut | None = None


class SessionUserOut(CamelModel):
    """`GET /api/auth/user`: the signed-in user and what they can see."""

    user: UserOut
    divisions: list[DivisionOut]
    selected_division_id: str | None = None
    sees_all_divisions: bool


class UserCreate(CamelModel):
    email: EmailText
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    role: Role
    division_ids: list[str] | None = None


class UserCreated(CamelModel):
    user: UserOut
    temp_password: str


class UserUpdate(CamelModel):
    email: EmailText | None = None
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    role: Role | None = None
    is_active: bool | None = None
    division_ids: list[str] | None = None


class MembershipCreate(CamelModel):
    division_id: str
    can_manage: bool = False


class ProfileUpdate(CamelModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailText


class PasswordChange(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8)
    confirm_password: str = Field(min_length=1)

    @model_validator(mode="after")
    def _passwords_match(self) -> "PasswordChange":
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


class DivisionSelect(CamelModel):
    division_id: str | None = None
