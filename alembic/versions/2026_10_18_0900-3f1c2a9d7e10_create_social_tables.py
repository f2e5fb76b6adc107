"""create user, follow, post and like tables

Revision ID: 3f1c2a9d7e10
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa
import sqlmodel


# revision identifiers, used by Alembic.
revision = "3f1c2a9d7e10"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "user",
        sa.Column("id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("username", sqlmodel.sql.sqltypes.AutoString(length=30), nullable=False),
        sa.Column("email", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column("bio", sqlmodel.sql.sqltypes.AutoString(length=500), nullable=False),
        sa.Column("profile_image_url", sqlmodel.sql.sqltypes.AutoString(length=500), nullable=False),
        sa.Column("hashed_password", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_user_username"), "user", ["username"], unique=True)
    op.create_index(op.f("ix_user_email"), "user", ["email"], unique=True)

    op.create_table(
        "follow",
        sa.Column("follower_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("following_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("follower_id <> following_id", name="ck_follow_no_self_follow"),
        sa.ForeignKeyConstraint(["follower_id"], ["user.id"]),
        sa.ForeignKeyConstraint(["following_id"], ["user.id"]),
        sa.PrimaryKeyConstraint("follower_id", "following_id"),
    )
    op.create_index(op.f("ix_follow_follower_id"), "follow", ["follower_id"], unique=False)
    op.create_index(op.f("ix_follow_following_id"), "follow", ["following_id"], unique=False)
    op.create_index(op.f("ix_follow_created_at"), "follow", ["created_at"], unique=False)

    op.create_table(
        "post",
        sa.Column("id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("user_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("caption", sqlmodel.sql.sqltypes.AutoString(length=2200), nullable=False),
        sa.Column("image_url", sqlmodel.sql.sqltypes.AutoString(length=500), nullable=False),
        sa.Column("image_file_id", sqlmodel.sql.sqltypes.AutoString(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["user.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_post_user_id"), "post", ["user_id"], unique=False)
    op.create_index(op.f("ix_post_created_at"), "post", ["created_at"], unique=False)

    op.create_table(
        "like",
        sa.Column("user_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("post_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["post_id"], ["post.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["user.id"]),
        sa.PrimaryKeyConstraint("user_id", "post_id"),
    )
    op.create_index(op.f("ix_like_post_id"), "like", ["post_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_like_post_id"), table_name="like")
    op.drop_table("like")
    op.drop_index(op.f("ix_post_created_at"), table_name="post")
    op.drop_index(op.f("ix_post_user_id"), table_name="post")
    op.drop_table("post")
    op.drop_index(op.f("ix_follow_created_at"), table_name="follow")
    op.drop_index(op.f("ix_follow_following_id"), table_name="follow")
    op.drop_index(op.f("ix_follow_follower_id"), table_name="follow")
    op.drop_table("follow")
    op.drop_index(op.f("ix_user_email"), table_name="user")
    op.drop_index(op.f("ix_user_username"), table_name="user")
    op.drop_table("user")
