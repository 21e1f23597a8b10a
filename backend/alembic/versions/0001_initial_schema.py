"""Initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-01-05 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=30), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("password_hash", sa.String(), nullable=True),
        sa.Column("start_weight", sa.Float(), nullable=False),
        sa.Column("goal_weight", sa.Float(), nullable=True),
        sa.Column("height", sa.Integer(), nullable=True),
        sa.Column("weight_unit", sa.String(length=3), nullable=False, server_default="kg"),
        sa.Column("medication", sa.String(), nullable=False),
        sa.Column("injection_day", sa.Integer(), nullable=False),
        sa.Column("current_dosage", sa.Float(), nullable=True),
        sa.Column("dosing_mode", sa.String(), nullable=False, server_default="STANDARD"),
        sa.Column("pen_strength_mg", sa.Float(), nullable=True),
        sa.Column("dose_amount_mg", sa.Float(), nullable=True),
        sa.Column("doses_per_pen", sa.Integer(), nullable=False, server_default="4"),
        sa.Column("tracks_golden_dose", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("current_dose_in_pen", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("expo_push_token", sa.String(), nullable=True),
        sa.Column("push_token_platform", sa.String(), nullable=True),
        sa.Column("push_token_updated_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "weigh_ins",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("weight", sa.Float(), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_weigh_ins_user_id", "weigh_ins", ["user_id"])
    op.create_index("ix_weigh_ins_date", "weigh_ins", ["date"])

    op.create_table(
        "injections",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("site", sa.String(), nullable=False),
        sa.Column("dose_number", sa.Integer(), nullable=True),
        sa.Column("dosage_mg", sa.Float(), nullable=True),
        sa.Column("notes", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_injections_user_id", "injections", ["user_id"])
    op.create_index("ix_injections_date", "injections", ["date"])

    op.create_table(
        "daily_habits",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("water", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("nutrition", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("exercise", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.UniqueConstraint("user_id", "date", name="uq_daily_habit_user_date"),
    )
    op.create_index("ix_daily_habits_user_id", "daily_habits", ["user_id"])

    op.create_table(
        "notification_preferences",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(length=36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("injection_reminder", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("weigh_in_reminder", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("habit_reminder", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("reminder_time", sa.String(length=5), nullable=False, server_default="09:00"),
        sa.Column("habit_reminder_time", sa.String(length=5), nullable=False, server_default="20:00"),
        sa.Column("timezone", sa.String(), nullable=False, server_default="UTC"),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )

    op.create_table(
        "auth_sessions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("refresh_token_hash", sa.String(length=64), nullable=False, unique=True),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("revoked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_auth_sessions_user_id", "auth_sessions", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_auth_sessions_user_id", table_name="auth_sessions")
    op.drop_table("auth_sessions")
    op.drop_table("notification_preferences")
    op.drop_index("ix_daily_habits_user_id", table_name="daily_habits")
    op.drop_table("daily_habits")
    op.drop_index("ix_injections_date", table_name="injections")
    op.drop_index("ix_injections_user_id", table_name="injections")
    op.drop_table("injections")
    op.drop_index("ix_weigh_ins_date", table_name="weigh_ins")
    op.drop_index("ix_weigh_ins_user_id", table_name="weigh_ins")
    op.drop_table("weigh_ins")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
