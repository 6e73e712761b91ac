"""operatives, commendations, rank changes and awards

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "battle_ids",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("callsign", sa.Text(), nullable=True),
        sa.Column("role", sa.Text(), nullable=True),
        sa.Column("rank", sa.Text(), nullable=True),
        sa.Column("specialty", sa.Text(), nullable=True),
        sa.Column("ethnicity", sa.Text(), nullable=True),
        sa.Column("dob", sa.Date(), nullable=True),
        sa.Column("strikes_level", sa.String(length=20), nullable=True, server_default="0"),
        sa.Column("commendations_count", sa.SmallInteger(), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("avatar", sa.Text(), nullable=True),
        sa.Column("status", sa.Text(), nullable=True, server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "strikes_level IN ('0', '1', '2', '3', 'exterminato')",
            name="ck_battle_ids_strikes_level",
        ),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_battle_ids_created_at", "battle_ids", ["created_at"], unique=False)

    op.create_table(
        "commendations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("battle_id", sa.Integer(), nullable=False),
        sa.Column("level", sa.SmallInteger(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("level IN (1, 2, 3)", name="ck_commendations_level"),
        sa.ForeignKeyConstraint(["battle_id"], ["battle_ids.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_commendations_battle_id", "commendations", ["battle_id"], unique=False)

    op.create_table(
        "rank_changes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("battle_id", sa.Integer(), nullable=False),
        sa.Column("change_type", sa.String(length=20), nullable=False),
        sa.Column("from_rank", sa.Text(), nullable=True),
        sa.Column("to_rank", sa.Text(), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("change_type IN ('promotion', 'demotion')", name="ck_rank_changes_change_type"),
        sa.ForeignKeyConstraint(["battle_id"], ["battle_ids.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_rank_changes_battle_id", "rank_changes", ["battle_id"], unique=False)

    op.create_table(
        "awards_catalog",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("code", sa.Text(), nullable=True, unique=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("icon_url", sa.Text(), nullable=True),
    )

    op.create_table(
        "awards",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("battle_id", sa.Integer(), nullable=False),
        sa.Column("award_id", sa.Integer(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("granted_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["battle_id"], ["battle_ids.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["award_id"], ["awards_catalog.id"], ondelete="RESTRICT"),
    )
    op.create_index("ix_awards_battle_id", "awards", ["battle_id"], unique=False)
    op.create_index("ix_awards_award_id", "awards", ["award_id"], unique=False)
    op.create_index("ix_awards_granted_at", "awards", ["granted_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_awards_granted_at", table_name="awards")
    op.drop_index("ix_awards_award_id", table_name="awards")
    op.drop_index("ix_awards_battle_id", table_name="awards")
    op.drop_table("awards")
    op.drop_table("awards_catalog")
    op.drop_index("ix_rank_changes_battle_id", table_name="rank_changes")
    op.drop_table("rank_changes")
    op.drop_index("ix_commendations_battle_id", table_name="commendations")
    op.drop_table("commendations")
    op.drop_index("ix_battle_ids_created_at", table_name="battle_ids")
    op.drop_table("battle_ids")
