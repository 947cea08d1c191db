"""Baseline schema: users, divisions, sessions, branding, catalog, uploads, contacts, audit.

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table("users",
    sa.Column("id", sa.String(length=36), nullable=False),
    sa.Column("email", sa.String(length=255), nullable=False),
    sa.Column("password_hash", sa.String(length=255), nullable=False),
    sa.Column("first_name", sa.String(length=100), nullable=True),
    sa.Column("last_name", sa.String(length=100), nullable=True),
    sa.Column("role", sa.String(length=20), nullable=False),
    sa.Column("is_active", sa.Boolean(), nullable=False),
    sa.Column("must_change_password", sa.Boolean(), nullable=False),
    sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
    *_timestamps(),
    sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table("divisions",
    sa.Column("id", sa.String(length=36), nullable=False),
    sa.Column("name", sa.String(length=255), nullable=False),
    sa.Column("description", sa.Text(), nullable=True),
    sa.Column("logo_url", sa.String(length=500), nullable=True),
    sa.Column("primary_color", sa.String(length=7), nullable=True),
    sa.Column("secondary_color", sa.String(length=7), nullable=True),
    sa.Column("is_active", sa.Boolean(), nullable=False),
    *_timestamps(),
    sa.PrimaryKeyConstraint("id"),
    )

    op.create_table("branding_settings",
    sa.Column("id", sa.String(length=36), nullable=False),
    sa.Column("organization_name", sa.String(length=255), nullable=True),
    sa.Column("logo_url", sa.String(length=500), nullable=True),
    sa.Column("favicon_url", sa.String(length=500), nullable=True),
    sa.Column("primary_color", sa.String(length=7), nullable=True),
    sa.Column("secondary_color", sa.String(length=7), nullable=True),
    sa.Column("accent_color", sa.String(length=7), nullable=True),
    sa.Column("font_family", sa.String(length=255), nullable=True),
    sa.Column("custom_css", sa.Text(), nullable=True),
    sa.Column("show_powered_by", sa.Boolean(), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    sa.PrimaryKeyConstraint("id"),
    )

    op.create_table("user_divisions",
    sa.Column("id", sa.String(length=36), nullable=False),
    sa.Column("user_id", sa.String(length=36), nullable=False),
    sa.Column("division_id", sa.String(length=36), nullable=False),
    sa.Column("can_manage", sa.Boolean(), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    sa.ForeignKeyConstraint(["division_id"], ["divisions.id"], ondelete="CASCADE"),
    sa.PrimaryKeyConstraint("id"),
    sa.UniqueConstraint("user_id", "division_id", name="uq_user_division"),
    )
    op.create_index("ix_user_divisions_user_id", "user_divisions", ["user_id"])
    op.create_index("ix_user_divisions_division_id", "user_divisions", ["division_id"])

    op.create_table("user_sessions",
    sa.Column("id", sa.String(length=36), nullable=False),
    sa.Column("token_digest", sa.String(length=64), nullable=False),
    sa.Column("user_id", sa.String(length=36), nullable=False),
    sa.Column("selected_division_id", sa.String(length=36), nullable=True),
    sa.Column("ip_address", sa.String(length=45), nullable=True),
    sa.Column("user_agent", sa.Text(), nullable=True),
    sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    sa.ForeignKeyConstraint(["selected_division_id"], ["divisions.id"], ondelete="SET NULL"),
    sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_user_sessions_token_digest", "user_sessions", ["token_digest"], unique=True)
    op.create_index("ix_user_sessions_user_id", "user_sessions", ["user_id"])
    op.create_index("ix_user_sessions_expires_at", "user_sessions", ["expires_at"])

    op.create_table("contact_categories",
    sa.Column("id", sa.String(length=36), nullable=False),
    sa.Column("name", sa.String(length=100), nullable=False),
    sa.Column("description", sa.Text(), nullable=True),
    sa.Column("color", sa.String(length=7), nullable=True),
    sa.Column("is_active", sa.Boolean(), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    sa.Column("division_id", sa.String(length=36), nullable=True),
    sa.ForeignKeyConstraint(["division_id"], ["divisions.id"]),
    sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_contact_categories_division_id", "contact_categories", ["division_id"])

    op.create_table("custom_field_definitions",
    sa.Column("id", sa.String(length=36), nullable=False),
    sa.Column("name", sa.String(length=100), nullable=False),
    sa.Column("label", sa.String(length=255), nullable=False),
    sa.Column("field_type", sa.String(length=50), nullable=False),
    sa.Column("is_required", sa.Boolean(), nullable=False),
    sa.Column("default_value", sa.Text(), nullable=True),
    sa.Column("placeholder", sa.String(length=255), nullable=True),
    sa.Column("help_text", sa.Text(), nullable=True),
    sa.Column("validation_rules", sa.JSON(none_as_null=True), nullable=True),
    sa.Column("select_options", sa.JSON(none_as_null=True), nullable=True),
    sa.Column("display_order", sa.Integer(), nullable=False),
    sa.Column("is_global", sa.Boolean(), nullable=False),
    sa.Column("is_active", sa.Boolean(), nullable=False),
    sa.Column("created_by", sa.String(length=36), nullable=False),
    sa.Column("division_id", sa.String(length=36), nullable=True),
    *_timestamps(),
    sa.ForeignKeyConstraint(["created_by"], ["users.id"]),
    sa.ForeignKeyConstraint(["division_id"], ["divisions.id"]),
    sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_custom_field_definitions_division_id", "custom_field_definitions", ["division_id"])

    op.create_table("uploads",
    sa.Column("id", sa.String(length=36), nullable=False),
    sa.Column("filename", sa.String(length=255), nullable=False),
    sa.Column("original_name", sa.String(length=255), nullable=False),
    sa.Column("file_size", sa.Integer(), nullable=True),
    sa.Column("mime_type", sa.String(length=100), nullable=True),
    sa.Column("status", sa.String(length=20), nullable=False),
    sa.Column("records_total", sa.Integer(), nullable=True),
    sa.Column("records_imported", sa.Integer(), nullable=True),
    sa.Column("records_skipped", sa.Integer(), nullable=True),
    sa.Column("error_message", sa.Text(), nullable=True),
    sa.Column("field_mapping", sa.JSON(none_as_null=True), nullable=True),
    sa.Column("uploaded_by", sa.String(length=36), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    sa.Column("division_id", sa.String(length=36), nullable=True),
    sa.ForeignKeyConstraint(["uploaded_by"], ["users.id"]),
    sa.ForeignKeyConstraint(["division_id"], ["divisions.id"]),
    sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_uploads_status", "uploads", ["status"])
    op.create_index("ix_uploads_uploaded_by", "uploads", ["uploaded_by"])
    op.create_index("ix_uploads_created_at", "uploads", ["created_at"])
    op.create_index("ix_uploads_division_id", "uploads", ["division_id"])

    op.create_table("contacts",
    sa.Column("id", sa.String(length=36), nullable=False),
    sa.Column("first_name", sa.String(length=255), nullable=True),
    sa.Column("last_name", sa.String(length=255), nullable=True),
    sa.Column("email", sa.String(length=255), nullable=True),
    sa.Column("phone", sa.String(length=50), nullable=True),
    sa.Column("company", sa.String(length=255), nullable=True),
    sa.Column("job_title", sa.String(length=255), nullable=True),
    sa.Column("address", sa.Text(), nullable=True),
    sa.Column("city", sa.String(length=100), nullable=True),
    sa.Column("state", sa.String(length=100), nullable=True),
    sa.Column("zip_code", sa.String(length=20), nullable=True),
    sa.Column("country", sa.String(length=100), nullable=True),
    sa.Column("notes", sa.Text(), nullable=True),
    sa.Column("custom_fields", sa.JSON(none_as_null=True), nullable=True),
    sa.Column("category_id", sa.String(length=36), nullable=True),
    sa.Column("upload_id", sa.String(length=36), nullable=True),
    sa.Column("is_active", sa.Boolean(), nullable=False),
    sa.Column("last_contacted_at", sa.DateTime(timezone=True), nullable=True),
    sa.Column("division_id", sa.String(length=36), nullable=True),
    *_timestamps(),
    sa.ForeignKeyConstraint(["category_id"], ["contact_categories.id"]),
    sa.ForeignKeyConstraint(["upload_id"], ["uploads.id"], ondelete="SET NULL"),
    sa.ForeignKeyConstraint(["division_id"], ["divisions.id"]),
    sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_contacts_email", "contacts", ["email"])
    op.create_index("ix_contacts_category_id", "contacts", ["category_id"])
    op.create_index("ix_contacts_upload_id", "contacts", ["upload_id"])
    op.create_index("ix_contacts_is_active", "contacts", ["is_active"])
    op.create_index("ix_contacts_division_id", "contacts", ["division_id"])

    op.create_table("audit_logs",
    sa.Column("id", sa.String(length=36), nullable=False),
    sa.Column("user_id", sa.String(length=36), nullable=False),
    sa.Column("ip_address", sa.String(length=45), nullable=True),
    sa.Column("user_agent", sa.Text(), nullable=True),
    sa.Column("action", sa.String(length=255), nullable=False),
    sa.Column("entity_type", sa.String(length=100), nullable=True),
    sa.Column("entity_id", sa.String(length=36), nullable=True),
    sa.Column("old_values", sa.JSON(none_as_null=True), nullable=True),
    sa.Column("new_values", sa.JSON(none_as_null=True), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    sa.Column("division_id", sa.String(length=36), nullable=True),
    sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
    sa.ForeignKeyConstraint(["division_id"], ["divisions.id"]),
    sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_entity_type", "audit_logs", ["entity_type"])
    op.create_index("ix_audit_logs_entity_id", "audit_logs", ["entity_id"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])
    op.create_index("ix_audit_logs_division_id", "audit_logs", ["division_id"])


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        "audit_logs",
        "contacts",
        "uploads",
        "custom_field_definitions",
        "contact_categories",
        "user_sessions",
        "user_divisions",
        "branding_settings",
        "divisions",
        "users",
    ):
        op.drop_table(table)
