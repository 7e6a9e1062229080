"""Content core baseline: containers, grants, envelopes, topics, follows.

Revision ID: 0001_content_core
Revises:
Create Date: 2026-10-19

Note: content.object_model stores each record family's declared base type.
Renaming a family tag requires a data migration of that column and of
content_follows.object_model.
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_content_core"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "content_containers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("guid", sa.String(length=45), nullable=False),
        sa.Column("container_type", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("owner_id", sa.Integer()),
        sa.Column("created_at", sa.DateTime(timezone=True)),
        sa.UniqueConstraint("guid", name="uq_content_containers_guid"),
    )
    op.create_index("ix_content_containers_type", "content_containers", ["container_type"])

    op.create_table(
        "container_permissions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "contentcontainer_id",
            sa.Integer(),
            sa.ForeignKey("content_containers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("capability", sa.String(length=100), nullable=False),
        sa.Column("actor_id", sa.Integer()),
        sa.Column("allowed", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True)),
        sa.UniqueConstraint(
            "contentcontainer_id",
            "capability",
            "actor_id",
            name="uq_container_permissions_grant",
        ),
    )
    op.create_index(
        "ix_container_permissions_lookup",
        "container_permissions",
        ["contentcontainer_id", "capability"],
    )

    op.create_table(
        "content",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("guid", sa.String(length=45), nullable=False),
        sa.Column("object_model", sa.String(length=100), nullable=False),
        sa.Column("object_id", sa.Integer(), nullable=False),
        sa.Column(
            "contentcontainer_id",
            sa.Integer(),
            sa.ForeignKey("content_containers.id"),
            nullable=False,
        ),
        sa.Column("visibility", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("title", sa.String(length=255)),
        sa.Column("pinned", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("archived", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("stream_channel", sa.String(length=50)),
        sa.Column("created_by", sa.Integer()),
        sa.Column("created_at", sa.DateTime(timezone=True)),
        sa.Column("updated_by", sa.Integer()),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
        sa.UniqueConstraint("guid", name="uq_content_guid"),
        sa.UniqueConstraint("object_model", "object_id", name="uq_content_object"),
    )
    op.create_index("ix_content_container", "content", ["contentcontainer_id"])
    op.create_index("ix_content_stream_channel", "content", ["stream_channel"])

    op.create_table(
        "content_topics",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "contentcontainer_id",
            sa.Integer(),
            sa.ForeignKey("content_containers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="1000"),
        sa.UniqueConstraint("contentcontainer_id", "name", name="uq_content_topics_container_name"),
    )

    op.create_table(
        "content_topic_links",
        sa.Column(
            "content_id",
            sa.Integer(),
            sa.ForeignKey("content.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "topic_id",
            sa.Integer(),
            sa.ForeignKey("content_topics.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )

    op.create_table(
        "content_follows",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("object_model", sa.String(length=100), nullable=False),
        sa.Column("object_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("send_notifications", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True)),
        sa.UniqueConstraint(
            "object_model",
            "object_id",
            "user_id",
            name="uq_content_follows_target_user",
        ),
    )
    op.create_index("ix_content_follows_target", "content_follows", ["object_model", "object_id"])


def downgrade() -> None:
    op.drop_index("ix_content_follows_target", table_name="content_follows")
    op.drop_table("content_follows")
    op.drop_table("content_topic_links")
    op.drop_table("content_topics")
    op.drop_index("ix_content_stream_channel", table_name="content")
    op.drop_index("ix_content_container", table_name="content")
    op.drop_table("content")
    op.drop_index("ix_container_permissions_lookup", table_name="container_permissions")
    op.drop_table("container_permissions")
    op.drop_index("ix_content_containers_type", table_name="content_containers")
    op.drop_table("content_containers")
