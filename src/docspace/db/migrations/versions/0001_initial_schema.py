"""Initial schema: organizations, users, workspaces, grants, documents, chats.

Revision ID: 0001
Revises:
"""

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "organizations",
        sa.Column("organization_id", sa.String(128), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("settings", sa.JSON(), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_organizations_slug", "organizations", ["slug"], unique=True)

    op.create_table(
        "users",
        sa.Column("user_id", sa.String(128), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("hashed_password", sa.Text(), nullable=True),
        sa.Column("firstname", sa.String(64), nullable=True),
        sa.Column("lastname", sa.String(64), nullable=True),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column(
            "organization_id", sa.String(128),
            sa.ForeignKey("organizations.organization_id"), nullable=True,
        ),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_organization_id", "users", ["organization_id"])

    op.create_table(
        "workspaces",
        sa.Column("workspace_id", sa.String(128), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "organization_id", sa.String(128),
            sa.ForeignKey("organizations.organization_id"), nullable=False,
        ),
        sa.Column("config", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("name", "organization_id", name="uq_workspaces_name_org"),
    )
    op.create_index("ix_workspaces_organization_id", "workspaces", ["organization_id"])

    op.create_table(
        "workspace_access",
        sa.Column("access_id", sa.String(128), primary_key=True),
        sa.Column("user_id", sa.String(128), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("workspace_id", sa.String(128), sa.ForeignKey("workspaces.workspace_id"), nullable=False),
        sa.Column("access_level", sa.String(20), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "workspace_id", name="uq_workspace_access_user_workspace"),
    )
    op.create_index("ix_workspace_access_user_id", "workspace_access", ["user_id"])
    op.create_index("ix_workspace_access_workspace_id", "workspace_access", ["workspace_id"])

    op.create_table(
        "documents",
        sa.Column("document_id", sa.String(36), primary_key=True),
        sa.Column("workspace_id", sa.String(128), sa.ForeignKey("workspaces.workspace_id"), nullable=False),
        sa.Column(
            "organization_id", sa.String(128),
            sa.ForeignKey("organizations.organization_id"), nullable=False,
        ),
        sa.Column("filepath", sa.Text(), nullable=False),
        sa.Column("file_type", sa.String(20), nullable=False),
        sa.Column("original_file_id", sa.String(36), nullable=True),
        sa.Column("impact_date", sa.Date(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_documents_workspace_id", "documents", ["workspace_id"])
    op.create_index("ix_documents_organization_id", "documents", ["organization_id"])
    op.create_index("ix_documents_original_file_id", "documents", ["original_file_id"])

    op.create_table(
        "chats",
        sa.Column("chat_id", sa.String(128), primary_key=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("user_id", sa.String(128), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column(
            "organization_id", sa.String(128),
            sa.ForeignKey("organizations.organization_id"), nullable=False,
        ),
        sa.Column(
            "workspace_id", sa.String(128),
            sa.ForeignKey("workspaces.workspace_id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("workspace_name", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_chats_user_id", "chats", ["user_id"])
    op.create_index("ix_chats_organization_id", "chats", ["organization_id"])
    op.create_index("ix_chats_workspace_id", "chats", ["workspace_id"])


def downgrade() -> None:
    op.drop_table("chats")
    op.drop_table("documents")
    op.drop_table("workspace_access")
    op.drop_table("workspaces")
    op.drop_table("users")
    op.drop_table("organizations")
