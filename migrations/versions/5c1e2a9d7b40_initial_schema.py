"""initial schema

Revision ID: 5c1e2a9d7b40
Revises:
Create Date: 2026-10-18 09:12:44.318201

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1e2a9d7b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

BLOCK_REASONS = ("spam", "harassment", "inappropriate_content", "suspicious_activity", "other")
EVENT_TYPES = (
    "message_received",
    "message_read",
    "message_flagged",
    "message_deleted",
    "message_reported",
    "profile_viewed",
    "link_shared",
)


def upgrade() -> None:
    """Create profiles, messages, visits, blocks, analytics and push tables."""
    op.create_table(
        "profile",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("username", sa.String(length=30), nullable=False),
        sa.Column("display_name", sa.String(length=100), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("message_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_visits", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("notifications_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "notification_show_preview", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column(
            "notification_prompt_shown", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("notification_permission_granted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_profile_username", "profile", ["username"], unique=True)

    op.create_table(
        "message",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("recipient_id", sa.String(length=36), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("sender_fingerprint", sa.String(length=64), nullable=False),
        sa.Column("sender_ip_raw", sa.String(length=64), nullable=True),
        sa.Column("sender_device_type", sa.String(length=20), nullable=True),
        sa.Column("sender_browser", sa.String(length=100), nullable=True),
        sa.Column("sender_os", sa.String(length=100), nullable=True),
        sa.Column("sender_referrer_platform", sa.String(length=50), nullable=True),
        sa.Column("sender_utm_source", sa.String(length=100), nullable=True),
        sa.Column("sender_utm_campaign", sa.String(length=100), nullable=True),
        sa.Column("sender_timezone", sa.String(length=64), nullable=True),
        sa.Column("sender_language", sa.String(length=35), nullable=True),
        sa.Column("sender_screen_resolution", sa.String(length=20), nullable=True),
        sa.Column("sender_viewport_size", sa.String(length=20), nullable=True),
        sa.Column("sender_available_screen", sa.String(length=20), nullable=True),
        sa.Column("sender_color_depth", sa.Integer(), nullable=True),
        sa.Column("sender_pixel_ratio", sa.Float(), nullable=True),
        sa.Column("sender_touch_support", sa.Boolean(), nullable=True),
        sa.Column("sender_connection_type", sa.String(length=20), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_flagged", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["recipient_id"], ["profile.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_message_sender_window", "message", ["sender_fingerprint", "created_at"])
    op.create_index("ix_message_recipient_created", "message", ["recipient_id", "created_at"])

    op.create_table(
        "link_visit",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("profile_id", sa.String(length=36), nullable=False),
        sa.Column("visitor_fingerprint", sa.String(length=64), nullable=False),
        sa.Column("visit_hour", sa.DateTime(timezone=True), nullable=False),
        sa.Column("referrer", sa.Text(), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("device_type", sa.String(length=20), nullable=True),
        sa.Column("browser_name", sa.String(length=100), nullable=True),
        sa.Column("browser_version", sa.String(length=50), nullable=True),
        sa.Column("os_name", sa.String(length=100), nullable=True),
        sa.Column("os_version", sa.String(length=50), nullable=True),
        sa.Column("referrer_platform", sa.String(length=50), nullable=True),
        sa.Column("referrer_category", sa.String(length=20), nullable=True),
        sa.Column("referrer_domain", sa.String(length=255), nullable=True),
        sa.Column("is_social_referrer", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_in_app_browser", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("utm_source", sa.String(length=100), nullable=True),
        sa.Column("utm_medium", sa.String(length=100), nullable=True),
        sa.Column("utm_campaign", sa.String(length=100), nullable=True),
        sa.Column("utm_term", sa.String(length=100), nullable=True),
        sa.Column("utm_content", sa.String(length=100), nullable=True),
        sa.Column("timezone", sa.String(length=64), nullable=True),
        sa.Column("language", sa.String(length=35), nullable=True),
        sa.Column("screen_resolution", sa.String(length=20), nullable=True),
        sa.Column("viewport_size", sa.String(length=20), nullable=True),
        sa.Column("color_depth", sa.Integer(), nullable=True),
        sa.Column("pixel_ratio", sa.Float(), nullable=True),
        sa.Column("touch_support", sa.Boolean(), nullable=True),
        sa.Column("connection_type", sa.String(length=20), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["profile_id"], ["profile.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "profile_id", "visitor_fingerprint", "visit_hour", name="uq_link_visit_hourly"
        ),
    )
    op.create_index("ix_link_visit_profile_id", "link_visit", ["profile_id"])

    op.create_table(
        "blocked_sender",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("recipient_id", sa.String(length=36), nullable=False),
        sa.Column("blocked_fingerprint", sa.String(length=64), nullable=False),
        sa.Column(
            "reason",
            sa.Enum(*BLOCK_REASONS, name="blockreason", native_enum=False, length=32),
            nullable=False,
        ),
        sa.Column("blocked_label", sa.String(length=20), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["recipient_id"], ["profile.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("recipient_id", "blocked_fingerprint", name="uq_blocked_sender"),
    )
    op.create_index("ix_blocked_sender_recipient_id", "blocked_sender", ["recipient_id"])

    op.create_table(
        "analytics_event",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("profile_id", sa.String(length=36), nullable=False),
        sa.Column("message_id", sa.String(length=36), nullable=True),
        sa.Column(
            "event_type",
            sa.Enum(*EVENT_TYPES, name="analyticseventtype", native_enum=False, length=32),
            nullable=False,
        ),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["profile_id"], ["profile.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["message_id"], ["message.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_analytics_event_profile_id", "analytics_event", ["profile_id"])

    op.create_table(
        "push_subscription",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("profile_id", sa.String(length=36), nullable=False),
        sa.Column("endpoint", sa.Text(), nullable=False),
        sa.Column("p256dh", sa.Text(), nullable=False),
        sa.Column("auth", sa.Text(), nullable=False),
        sa.Column("expiration_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["profile_id"], ["profile.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("endpoint"),
    )
    op.create_index("ix_push_subscription_profile_id", "push_subscription", ["profile_id"])


def downgrade() -> None:
    """Drop every table created by this revision."""
    op.drop_index("ix_push_subscription_profile_id", table_name="push_subscription")
    op.drop_table("push_subscription")
    op.drop_index("ix_analytics_event_profile_id", table_name="analytics_event")
    op.drop_table("analytics_event")
    op.drop_index("ix_blocked_sender_recipient_id", table_name="blocked_sender")
    op.drop_table("blocked_sender")
    op.drop_index("ix_link_visit_profile_id", table_name="link_visit")
    op.drop_table("link_visit")
    op.drop_index("ix_message_recipient_created", table_name="message")
    op.drop_index("ix_message_sender_window", table_name="message")
    op.drop_table("message")
    op.drop_index("ix_profile_username", table_name="profile")
    op.drop_table("profile")
