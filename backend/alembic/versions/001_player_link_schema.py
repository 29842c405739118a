"""Create users, players and link_codes.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("username", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("token_version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "players",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("nickname", sa.String(length=20), nullable=False),
        sa.Column("user_id", sa.Uuid(as_uuid=True), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("linked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("level", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("enemies_defeated", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("defeats", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("play_time", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_players_nickname", "players", ["nickname"], unique=True)
    op.create_index("ix_players_user_id", "players", ["user_id"])

    op.create_table(
        "link_codes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("code", sa.String(length=16), nullable=False),
        sa.Column("player_id", sa.Integer(), sa.ForeignKey("players.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("consumed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("consumed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("consumed_reason", sa.String(length=20), nullable=True),
        sa.Column("consumed_by_user_id", sa.Uuid(as_uuid=True), sa.ForeignKey("users.id"), nullable=True),
        sa.CheckConstraint(
            "consumed_reason IN ('linked', 'superseded')",
            name="chk_link_code_consumed_reason",
        ),
    )
    op.create_index("ix_link_codes_code", "link_codes", ["code"], unique=True)
    op.create_index("ix_link_codes_player_id", "link_codes", ["player_id"])
    op.create_index(
        "uq_link_codes_player_pending",
        "link_codes",
        ["player_id"],
        unique=True,
        postgresql_where=sa.text("consumed = false"),
        sqlite_where=sa.text("consumed = 0"),
    )


def downgrade() -> None:
    op.drop_index("uq_link_codes_player_pending", table_name="link_codes")
    op.drop_index("ix_link_codes_player_id", table_name="link_codes")
    op.drop_index("ix_link_codes_code", table_name="link_codes")
    op.drop_table("link_codes")
    op.drop_index("ix_players_user_id", table_name="players")
    op.drop_index("ix_players_nickname", table_name="players")
    op.drop_table("players")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")
