"""initial sessions, attendance and roster tables

Revision ID: 0001
Revises:
Create Date: 2026-10-16 00:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "sessions",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("course_id", sa.String(64), nullable=False),
        sa.Column("start_ts", sa.BigInteger, nullable=False),
        sa.Column("expires_at", sa.BigInteger),
        sa.Column("latitude", sa.Float),
        sa.Column("longitude", sa.Float),
        sa.Column("threshold_meters", sa.Float, nullable=False),
        sa.Column("created_at", sa.BigInteger, nullable=False),
        sa.Column("inserted_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_sessions_course_id", "sessions", ["course_id"])

    op.create_table(
        "attendance_records",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("student_id", sa.String(64), nullable=False),
        sa.Column("student_name", sa.String(200)),
        sa.Column("course_id", sa.String(64), nullable=False),
        sa.Column("session_id", sa.String(32), sa.ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("timestamp", sa.BigInteger, nullable=False),
        sa.Column("status", sa.String(40), nullable=False),
        sa.Column("verified", sa.Boolean, nullable=False),
        sa.Column("distance_meters", sa.Float),
        sa.Column("inserted_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(
            "status IN ('present', 'absent', 'rejected_no_location', "
            "'rejected_no_session_location', 'rejected_out_of_range')",
            name="check_attendance_status",
        ),
    )
    op.create_index("ix_attendance_records_id", "attendance_records", ["id"])
    op.create_index("ix_attendance_records_student_id", "attendance_records", ["student_id"])
    op.create_index("ix_attendance_records_session_id", "attendance_records", ["session_id"])
    op.create_index(
        "uq_attendance_outcome",
        "attendance_records",
        ["session_id", "student_id"],
        unique=True,
        postgresql_where=sa.text("status IN ('present', 'absent')"),
    )

    op.create_table(
        "roster_entries",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("student_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(200)),
        sa.Column("course_id", sa.String(64), nullable=False),
        sa.Column("inserted_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("student_id", "course_id", name="uq_roster_student_course"),
    )
    op.create_index("ix_roster_entries_id", "roster_entries", ["id"])
    op.create_index("ix_roster_entries_student_id", "roster_entries", ["student_id"])
    op.create_index("ix_roster_entries_course_id", "roster_entries", ["course_id"])


def downgrade():
    op.drop_table("roster_entries")
    op.drop_index("uq_attendance_outcome", table_name="attendance_records")
    op.drop_table("attendance_records")
    op.drop_table("sessions")
