"""initial_content_schema

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19

Creates roles, users, content, content_translations and seo_meta.
Content owns its translations and each translation owns at most one
seo_meta row; both relations cascade on delete.
"""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a1b2c3d4e5f6"
down_revision: str | None = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "roles",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("name", sa.String, nullable=False, unique=True),
        sa.Column("permissions", sa.JSON, nullable=False),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("username", sa.String, nullable=True, index=True),
        sa.Column("email", sa.String, nullable=False, unique=True),
        sa.Column("role_id", sa.Integer, sa.ForeignKey("roles.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "content",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True, index=True),
        sa.Column("kind", sa.Enum("PAGE", "POST", name="content_kind"), nullable=False),
        sa.Column(
            "status",
            sa.Enum("DRAFT", "PENDING", "PUBLISHED", "ARCHIVED", name="content_status"),
            nullable=False,
        ),
        sa.Column("author_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False, index=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_content_status", "content", ["status"])
    op.create_index("idx_content_kind", "content", ["kind"])

    op.create_table(
        "content_translations",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column(
            "content_id",
            sa.Integer,
            sa.ForeignKey("content.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("locale", sa.String(10), nullable=False, index=True),
        sa.Column("slug", sa.String, nullable=False),
        sa.Column("title", sa.String, nullable=True),
        sa.Column("body", sa.Text, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("is_rtl", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        # One translation per (content, locale) pair
        sa.UniqueConstraint("content_id", "locale", name="uq_content_translation_locale"),
    )
    op.create_index("idx_ct_locale_status", "content_translations", ["locale", "status"])
    op.create_index("idx_ct_slug", "content_translations", ["locale", "slug"])

    op.create_table(
        "seo_meta",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column(
            "content_translation_id",
            sa.Integer,
            sa.ForeignKey("content_translations.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("meta_title", sa.String(255), nullable=True),
        sa.Column("meta_description", sa.Text, nullable=True),
        sa.Column("meta_keywords", sa.Text, nullable=True),
        sa.Column("canonical_url", sa.String(2048), nullable=True),
        sa.Column("robots", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("seo_meta")
    op.drop_index("idx_ct_slug", table_name="content_translations")
    op.drop_index("idx_ct_locale_status", table_name="content_translations")
    op.drop_table("content_translations")
    op.drop_index("idx_content_kind", table_name="content")
    op.drop_index("idx_content_status", table_name="content")
    op.drop_table("content")
    op.drop_table("users")
    op.drop_table("roles")
    sa.Enum(name="content_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="content_kind").drop(op.get_bind(), checkfirst=True)
