"""init lottery schema

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261017_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "lottery_events",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("completed_rounds", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_lottery_events")),
        sa.UniqueConstraint("name", name="lottery_events_name_key"),
    )
    op.create_table(
        "participants",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("external_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("min_tier", sa.Integer(), nullable=True),
        sa.Column("max_tier", sa.Integer(), nullable=True),
        sa.Column("has_won", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["event_id"],
            ["lottery_events.id"],
            name=op.f("fk_participants_event_id_lottery_events"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_participants")),
        sa.UniqueConstraint("event_id", "external_id", name="uq_participant_per_event"),
    )
    op.create_index(
        op.f("ix_participants_event_id"), "participants", ["event_id"], unique=False
    )
    op.create_table(
        "draw_rounds",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("tier", sa.Integer(), nullable=False),
        sa.Column("label", sa.String(length=255), nullable=False),
        sa.Column("quota", sa.Integer(), nullable=False),
        sa.Column("remaining", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["event_id"],
            ["lottery_events.id"],
            name=op.f("fk_draw_rounds_event_id_lottery_events"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_draw_rounds")),
        sa.UniqueConstraint("event_id", "position", name="uq_draw_round_position"),
    )
    op.create_index(
        op.f("ix_draw_rounds_event_id"), "draw_rounds", ["event_id"], unique=False
    )
    op.create_table(
        "winner_records",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("participant_id", sa.Integer(), nullable=True),
        sa.Column("participant_external_id", sa.String(length=64), nullable=False),
        sa.Column("participant_name", sa.String(length=100), nullable=False),
        sa.Column("round_position", sa.Integer(), nullable=True),
        sa.Column("tier", sa.Integer(), nullable=False),
        sa.Column("prize_label", sa.String(length=255), nullable=False),
        sa.Column("drawn_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["event_id"],
            ["lottery_events.id"],
            name=op.f("fk_winner_records_event_id_lottery_events"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["participant_id"],
            ["participants.id"],
            name=op.f("fk_winner_records_participant_id_participants"),
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_winner_records")),
    )
    op.create_index(
        op.f("ix_winner_records_event_id"), "winner_records", ["event_id"], unique=False
    )
    op.create_index(
        op.f("ix_winner_records_participant_id"),
        "winner_records",
        ["participant_id"],
        unique=False,
    )
    op.create_index(
        "ix_winner_records_event_drawn_at",
        "winner_records",
        ["event_id", "drawn_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_winner_records_event_drawn_at", table_name="winner_records")
    op.drop_index(op.f("ix_winner_records_participant_id"), table_name="winner_records")
    op.drop_index(op.f("ix_winner_records_event_id"), table_name="winner_records")
    op.drop_table("winner_records")
    op.drop_index(op.f("ix_draw_rounds_event_id"), table_name="draw_rounds")
    op.drop_table("draw_rounds")
    op.drop_index(op.f("ix_participants_event_id"), table_name="participants")
    op.drop_table("participants")
    op.drop_table("lottery_events")
