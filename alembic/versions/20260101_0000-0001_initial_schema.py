"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ID = sa.BigInteger().with_variant(sa.Integer(), "sqlite")

DEFAULT_INTERESTS = [
    ("Hiking", "outdoors"),
    ("Camping", "outdoors"),
    ("Cycling", "sports"),
    ("Running", "sports"),
    ("Yoga", "sports"),
    ("Football", "sports"),
    ("Basketball", "sports"),
    ("Swimming", "sports"),
    ("Travel", "travel"),
    ("Road trips", "travel"),
    ("Cooking", "food"),
    ("Coffee", "food"),
    ("Wine", "food"),
    ("Street food", "food"),
    ("Live music", "music"),
    ("Jazz", "music"),
    ("Rock", "music"),
    ("K-pop", "music"),
    ("Movies", "entertainment"),
    ("Anime", "entertainment"),
    ("Video games", "entertainment"),
    ("Board games", "entertainment"),
    ("Reading", "culture"),
    ("Museums", "culture"),
    ("Photography", "arts"),
    ("Drawing", "arts"),
    ("Dancing", "arts"),
    ("Pets", "lifestyle"),
    ("Gardening", "lifestyle"),
    ("Volunteering", "lifestyle"),
]


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )


def upgrade() -> None:
    """
    Create the matching, chat and moderation schema and seed the interest catalogue.
    """

    interests = op.create_table(
        "interests",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(50), nullable=False, unique=True),
        sa.Column("category", sa.String(32), nullable=False, server_default="other"),
    )

    op.create_table(
        "users",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(32), nullable=False, server_default="user"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("banned_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("display_name", sa.String(50), nullable=False),
        sa.Column("birth_date", sa.Date(), nullable=False),
        sa.Column("gender", sa.String(32), nullable=False),
        sa.Column("bio", sa.Text(), nullable=False, server_default=""),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("show_age", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("max_distance_km", sa.Integer(), nullable=False, server_default="50"),
        sa.Column("age_range_min", sa.Integer(), nullable=False, server_default="18"),
        sa.Column("age_range_max", sa.Integer(), nullable=False, server_default="99"),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("age_range_min >= 18", name="ck_users_age_range_min"),
        sa.CheckConstraint("age_range_max >= age_range_min", name="ck_users_age_range_order"),
        sa.CheckConstraint("max_distance_km BETWEEN 1 AND 100", name="ck_users_max_distance"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_is_active", "users", ["is_active"])
    op.create_index("ix_users_birth_date", "users", ["birth_date"])
    op.create_index("idx_users_location", "users", ["latitude", "longitude"])

    op.create_table(
        "user_interests",
        sa.Column("user_id", ID, sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("interest_id", sa.Integer(), sa.ForeignKey("interests.id", ondelete="CASCADE"), primary_key=True),
    )

    op.create_table(
        "photos",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        sa.Column("user_id", ID, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("url", sa.String(500), nullable=False),
        sa.Column("caption", sa.String(200), nullable=True),
        sa.Column("is_primary", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("mime_type", sa.String(64), nullable=False),
        sa.Column("width", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("height", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        _created_at(),
    )
    op.create_index("ix_photos_user_id", "photos", ["user_id"])

    for table, prefix in (("likes", "likes"), ("passes", "passes")):
        op.create_table(
            table,
            sa.Column("from_user_id", ID, sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
            sa.Column("to_user_id", ID, sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
            _created_at(),
            sa.CheckConstraint("from_user_id <> to_user_id", name=f"ck_{prefix}_no_self"),
        )
    op.create_index("idx_likes_to_user", "likes", ["to_user_id"])

    op.create_table(
        "matches",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        sa.Column("user_a_id", ID, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_b_id", ID, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        _created_at(),
        sa.UniqueConstraint("user_a_id", "user_b_id", name="uq_matches_pair"),
        sa.CheckConstraint("user_a_id < user_b_id", name="ck_matches_canonical"),
    )
    op.create_index("idx_matches_user_b", "matches", ["user_b_id"])

    op.create_table(
        "user_blocks",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        sa.Column("blocker_id", ID, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("blocked_id", ID, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("reason", sa.String(32), nullable=False),
        _created_at(),
        sa.UniqueConstraint("blocker_id", "blocked_id", name="uq_user_blocks_pair"),
        sa.CheckConstraint("blocker_id <> blocked_id", name="ck_user_blocks_no_self"),
    )
    op.create_index("idx_user_blocks_blocked", "user_blocks", ["blocked_id"])

    op.create_table(
        "reports",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        sa.Column("reporter_id", ID, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("reported_id", ID, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("category", sa.String(32), nullable=False),
        sa.Column("reason", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("evidence", sa.JSON(), nullable=True),
        sa.Column("status", sa.String(32), nullable=False, server_default="pending"),
        sa.Column("reviewer_id", ID, sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("review_notes", sa.Text(), nullable=True),
        sa.Column("sanction", sa.String(32), nullable=True),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("reporter_id <> reported_id", name="ck_reports_no_self"),
    )
    op.create_index("ix_reports_reporter_id", "reports", ["reporter_id"])
    op.create_index("ix_reports_reported_id", "reports", ["reported_id"])
    op.create_index("ix_reports_status", "reports", ["status"])
    op.create_index("idx_reports_reporter_reported", "reports", ["reporter_id", "reported_id"])

    op.create_table(
        "messages",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        sa.Column("match_id", ID, sa.ForeignKey("matches.id", ondelete="CASCADE"), nullable=False),
        sa.Column("sender_id", ID, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("message_type", sa.String(32), nullable=False, server_default="text"),
        _created_at(),
    )
    op.create_index("ix_messages_sender_id", "messages", ["sender_id"])
    op.create_index("idx_messages_match_id", "messages", ["match_id", "id"])

    op.create_table(
        "read_cursors",
        sa.Column("match_id", ID, sa.ForeignKey("matches.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("user_id", ID, sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("last_read_message_id", ID, nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "notifications",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        sa.Column("user_id", ID, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("kind", sa.String(50), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("body", sa.Text(), nullable=False, server_default=""),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
    )
    op.create_index("idx_notifications_user_created", "notifications", ["user_id", "created_at"])

    op.bulk_insert(
        interests,
        [{"name": name, "category": category} for name, category in DEFAULT_INTERESTS],
    )


def downgrade() -> None:
    """Drop every table created by upgrade()."""
    for table in (
        "notifications",
        "read_cursors",
        "messages",
        "reports",
        "user_blocks",
        "matches",
        "passes",
        "likes",
        "photos",
        "user_interests",
        "users",
        "interests",
    ):
        op.drop_table(table)
