"""Gamification schema: users, ledger, badges, rewards and activity facts.

Revision ID: 20261019_01
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261019_01"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

UUID = sa.dialects.postgresql.UUID(as_uuid=True)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("full_name", sa.String(), nullable=False),
        sa.Column("profile_picture", sa.String(), nullable=True),
        sa.Column("total_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("trust_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="active"),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("total_points >= 0", name="ck_users_total_points_non_negative"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "point_history",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("user_id", UUID, nullable=False),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_point_history_user_id", "point_history", ["user_id"])

    op.create_table(
        "badges",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("type", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(), nullable=True),
        sa.Column("image_url", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("criteria_config", sa.JSON(), nullable=False),
        sa.Column("required_count", sa.Integer(), nullable=False, server_default="1"),
        *_timestamps(),
    )
    op.create_index("ix_badges_type", "badges", ["type"], unique=True)

    op.create_table(
        "user_badges",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("user_id", UUID, nullable=False),
        sa.Column("badge_id", UUID, nullable=False),
        sa.Column("earned_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["badge_id"], ["badges.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "badge_id", name="uq_user_badges_user_badge"),
    )
    op.create_index("ix_user_badges_user_id", "user_badges", ["user_id"])

    op.create_table(
        "rewards",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("points_required", sa.Integer(), nullable=False),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("partner", sa.String(), nullable=True),
        sa.Column("image_url", sa.String(), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint("quantity >= 0", name="ck_rewards_quantity_non_negative"),
    )
    op.create_index("ix_rewards_category", "rewards", ["category"])

    op.create_table(
        "redemptions",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("user_id", UUID, nullable=False),
        sa.Column("reward_id", UUID, nullable=False),
        sa.Column(
            "status",
            sa.Enum("pending", "approved", "rejected", name="redemption_status"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("points_spent", sa.Integer(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("redeemed_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["reward_id"], ["rewards.id"]),
    )
    op.create_index("ix_redemptions_user_id", "redemptions", ["user_id"])

    op.create_table(
        "event_attendances",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("user_id", UUID, nullable=False),
        sa.Column("event_id", UUID, nullable=False),
        sa.Column("event_type", sa.String(length=32), nullable=True),
        sa.Column("location", sa.String(), nullable=True),
        sa.Column("checked_in_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_event_attendances_user_id", "event_attendances", ["user_id"])

    op.create_table(
        "hosted_events",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("host_id", UUID, nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("event_type", sa.String(length=32), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["host_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_hosted_events_host_id", "hosted_events", ["host_id"])

    op.create_table(
        "user_connections",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("initiator_id", UUID, nullable=False),
        sa.Column("receiver_id", UUID, nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("connected_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["initiator_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["receiver_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_user_connections_initiator_id", "user_connections", ["initiator_id"])
    op.create_index("ix_user_connections_receiver_id", "user_connections", ["receiver_id"])

    op.create_table(
        "referrals",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("referrer_id", UUID, nullable=False),
        sa.Column("referee_id", UUID, nullable=True),
        sa.Column("is_activated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("activated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["referrer_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["referee_id"], ["users.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_referrals_referrer_id", "referrals", ["referrer_id"])

    op.create_table(
        "trust_moments",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("giver_id", UUID, nullable=False),
        sa.Column("receiver_id", UUID, nullable=False),
        sa.Column("rating", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["giver_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["receiver_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_trust_moments_giver_id", "trust_moments", ["giver_id"])

    op.create_table(
        "topic_feedback",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("user_id", UUID, nullable=False),
        sa.Column("topic_id", sa.String(), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_topic_feedback_user_id", "topic_feedback", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_topic_feedback_user_id", table_name="topic_feedback")
    op.drop_table("topic_feedback")
    op.drop_index("ix_trust_moments_giver_id", table_name="trust_moments")
    op.drop_table("trust_moments")
    op.drop_index("ix_referrals_referrer_id", table_name="referrals")
    op.drop_table("referrals")
    op.drop_index("ix_user_connections_receiver_id", table_name="user_connections")
    op.drop_index("ix_user_connections_initiator_id", table_name="user_connections")
    op.drop_table("user_connections")
    op.drop_index("ix_hosted_events_host_id", table_name="hosted_events")
    op.drop_table("hosted_events")
    op.drop_index("ix_event_attendances_user_id", table_name="event_attendances")
    op.drop_table("event_attendances")
    op.drop_index("ix_redemptions_user_id", table_name="redemptions")
    op.drop_table("redemptions")
    sa.Enum(name="redemption_status").drop(op.get_bind(), checkfirst=True)
    op.drop_index("ix_rewards_category", table_name="rewards")
    op.drop_table("rewards")
    op.drop_index("ix_user_badges_user_id", table_name="user_badges")
    op.drop_table("user_badges")
    op.drop_index("ix_badges_type", table_name="badges")
    op.drop_table("badges")
    op.drop_index("ix_point_history_user_id", table_name="point_history")
    op.drop_table("point_history")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
