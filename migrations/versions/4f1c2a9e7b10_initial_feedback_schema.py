"""initial schema: operators, applications, categories, feedback, comments

Revision ID: 4f1c2a9e7b10
Revises:
Create Date: 2026-10-17

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "4f1c2a9e7b10"
down_revision = None
branch_labels = None
depends_on = None


def _json():
    return sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="member"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.CheckConstraint("role IN ('admin','member')", name="ck_users_role_valid"),
    )

    op.create_table(
        "applications",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("api_key_hash", sa.String(length=64), nullable=False),
        sa.Column("api_key_prefix", sa.String(length=16), nullable=False),
        sa.Column("api_key_rotated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("webhook_url", sa.String(length=2048), nullable=True),
        sa.Column("allowed_origins", _json(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("slug", name="uq_applications_slug"),
        # Authentication looks keys up by digest
        sa.UniqueConstraint("api_key_hash", name="uq_applications_api_key_hash"),
    )

    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "application_id",
            sa.Uuid(),
            sa.ForeignKey("applications.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("color", sa.String(length=32), nullable=False),
        sa.Column("icon", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("application_id", "name", name="uq_categories_application_name"),
    )
    op.create_index("ix_categories_application_id", "categories", ["application_id"])

    op.create_table(
        "feedback",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "application_id",
            sa.Uuid(),
            sa.ForeignKey("applications.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("categories.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("title", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("rating", sa.SmallInteger(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="new"),
        sa.Column("priority", sa.String(length=20), nullable=False, server_default="medium"),
        sa.Column("page_url", sa.String(length=2048), nullable=False, server_default=""),
        sa.Column("browser_info", _json(), nullable=True),
        sa.Column("app_version", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("metadata", _json(), nullable=True),
        sa.Column("contact_email", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('new','in_progress','resolved','closed')",
            name="ck_feedback_status_valid",
        ),
        sa.CheckConstraint(
            "priority IN ('low','medium','high','urgent')",
            name="ck_feedback_priority_valid",
        ),
        sa.CheckConstraint("rating IS NULL OR (rating BETWEEN 1 AND 5)", name="ck_feedback_rating_range"),
    )
    op.create_index("ix_feedback_application_id", "feedback", ["application_id"])
    op.create_index("ix_feedback_user_id", "feedback", ["user_id"])
    op.create_index("ix_feedback_category_id", "feedback", ["category_id"])
    op.create_index("ix_feedback_application_created_at", "feedback", ["application_id", "created_at"])
    op.create_index("ix_feedback_status", "feedback", ["status"])
    op.create_index("ix_feedback_priority", "feedback", ["priority"])

    op.create_table(
        "feedback_comments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "feedback_id",
            sa.Uuid(),
            sa.ForeignKey("feedback.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("is_internal", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_feedback_comments_user_id", "feedback_comments", ["user_id"])
    op.create_index(
        "ix_feedback_comments_feedback_created_at",
        "feedback_comments",
        ["feedback_id", "created_at"],
    )


def downgrade():
    op.drop_index("ix_feedback_comments_feedback_created_at", table_name="feedback_comments")
    op.drop_index("ix_feedback_comments_user_id", table_name="feedback_comments")
    op.drop_table("feedback_comments")

    for name in (
        "ix_feedback_priority",
        "ix_feedback_status",
        "ix_feedback_application_created_at",
        "ix_feedback_category_id",
        "ix_feedback_user_id",
        "ix_feedback_application_id",
    ):
        op.drop_index(name, table_name="feedback")
    op.drop_table("feedback")

    op.drop_index("ix_categories_application_id", table_name="categories")
    op.drop_table("categories")
    op.drop_table("applications")
    op.drop_table("users")
