"""initial ES grading schema

Revision ID: 20261018_0001
Revises: None
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


ENUM_VALUES = {
    "division": ("B", "C"),
    "staffrole": ("EVENT_SUPERVISOR", "TOURNAMENT_DIRECTOR"),
    "staffstatus": ("PENDING", "ACCEPTED", "DECLINED"),
    "hostingrequeststatus": ("PENDING", "APPROVED", "REJECTED"),
    "teststatus": ("DRAFT", "PUBLISHED", "CLOSED"),
    "questiontype": (
        "MCQ_SINGLE",
        "MCQ_MULTI",
        "SHORT_TEXT",
        "LONG_TEXT",
        "NUMERIC",
        "TRUE_FALSE",
        "TEXT_BLOCK",
    ),
    "attemptstatus": ("IN_PROGRESS", "SUBMITTED", "GRADED"),
    "scorereleasemode": ("NONE", "SCORE_ONLY", "SCORE_WITH_WRONG", "FULL_TEST"),
}

# Types are created once up front; several tables share "division".
ENUMS = {name: postgresql.ENUM(*values, name=name, create_type=False) for name, values in ENUM_VALUES.items()}
division_enum = ENUMS["division"]
staff_role_enum = ENUMS["staffrole"]
staff_status_enum = ENUMS["staffstatus"]
hosting_status_enum = ENUMS["hostingrequeststatus"]
test_status_enum = ENUMS["teststatus"]
question_type_enum = ENUMS["questiontype"]
attempt_status_enum = ENUMS["attemptstatus"]
release_mode_enum = ENUMS["scorereleasemode"]


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    for enum in ENUMS.values():
        enum.create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("name", sa.String(length=200), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=False)

    op.create_table(
        "tournaments",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("division", division_enum, nullable=False),
        sa.Column("created_by_id", sa.UUID(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_tournaments_created_by_id", "tournaments", ["created_by_id"], unique=False)

    op.create_table(
        "tournament_admins",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column(
            "tournament_id", sa.UUID(), sa.ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("user_id", sa.UUID(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("tournament_id", "user_id"),
    )

    op.create_table(
        "tournament_hosting_requests",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column(
            "tournament_id",
            sa.UUID(),
            sa.ForeignKey("tournaments.id", ondelete="SET NULL"),
            nullable=True,
            unique=True,
        ),
        sa.Column("tournament_name", sa.String(length=200), nullable=False),
        sa.Column("director_name", sa.String(length=200), nullable=False),
        sa.Column("director_email", sa.String(length=320), nullable=False),
        sa.Column("status", hosting_status_enum, nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "events",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("division", division_enum, nullable=False),
        sa.UniqueConstraint("name", "division"),
    )

    op.create_table(
        "tournament_staff",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column(
            "tournament_id", sa.UUID(), sa.ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("user_id", sa.UUID(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=True),
        sa.Column("role", staff_role_enum, nullable=False),
        sa.Column("status", staff_status_enum, nullable=False),
        sa.Column("trial_events", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_tournament_staff_tournament_id", "tournament_staff", ["tournament_id"], unique=False)
    op.create_index("ix_tournament_staff_user_id", "tournament_staff", ["user_id"], unique=False)
    # Staff lookups compare emails case-insensitively.
    op.create_index(
        "ix_tournament_staff_email_lower",
        "tournament_staff",
        [sa.text("lower(email)")],
        unique=False,
    )

    op.create_table(
        "tournament_staff_events",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column(
            "staff_id", sa.UUID(), sa.ForeignKey("tournament_staff.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("event_id", sa.UUID(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.UniqueConstraint("staff_id", "event_id"),
    )
    op.create_index(
        "ix_tournament_staff_events_staff_id", "tournament_staff_events", ["staff_id"], unique=False
    )

    op.create_table(
        "es_tests",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column(
            "tournament_id", sa.UUID(), sa.ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("event_id", sa.UUID(), sa.ForeignKey("events.id", ondelete="SET NULL"), nullable=True),
        sa.Column("event_name", sa.String(length=200), nullable=True),
        sa.Column("division", division_enum, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("status", test_status_enum, nullable=False),
        sa.Column("scores_released", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("release_scores_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("score_release_mode", release_mode_enum, nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_es_tests_tournament_id", "es_tests", ["tournament_id"], unique=False)
    op.create_index("ix_es_tests_event_id", "es_tests", ["event_id"], unique=False)

    op.create_table(
        "es_test_questions",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("test_id", sa.UUID(), sa.ForeignKey("es_tests.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", question_type_enum, nullable=False),
        sa.Column("prompt_md", sa.Text(), nullable=False),
        sa.Column("explanation", sa.Text(), nullable=True),
        sa.Column("points", sa.Numeric(10, 2), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.CheckConstraint("points >= 0", name="ck_es_test_questions_points_nonneg"),
    )
    op.create_index("ix_es_test_questions_test_id", "es_test_questions", ["test_id"], unique=False)

    op.create_table(
        "es_test_question_options",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column(
            "question_id",
            sa.UUID(),
            sa.ForeignKey("es_test_questions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("label", sa.Text(), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False),
    )
    op.create_index(
        "ix_es_test_question_options_question_id", "es_test_question_options", ["question_id"], unique=False
    )

    op.create_table(
        "es_test_attempts",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("test_id", sa.UUID(), sa.ForeignKey("es_tests.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.UUID(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", attempt_status_enum, nullable=False),
        sa.Column("grade_earned", sa.Numeric(10, 2), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_es_test_attempts_test_id", "es_test_attempts", ["test_id"], unique=False)
    op.create_index("ix_es_test_attempts_user_id", "es_test_attempts", ["user_id"], unique=False)
    op.create_index("ix_es_test_attempts_status", "es_test_attempts", ["status"], unique=False)

    op.create_table(
        "es_test_attempt_answers",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column(
            "attempt_id",
            sa.UUID(),
            sa.ForeignKey("es_test_attempts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "question_id",
            sa.UUID(),
            sa.ForeignKey("es_test_questions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("answer_text", sa.Text(), nullable=True),
        sa.Column("selected_option_ids", sa.JSON(), nullable=False),
        sa.Column("numeric_answer", sa.Numeric(18, 6), nullable=True),
        sa.Column("points_awarded", sa.Numeric(10, 2), nullable=True),
        sa.Column("grader_note", sa.Text(), nullable=True),
        sa.Column("graded_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("attempt_id", "question_id"),
        sa.CheckConstraint(
            "points_awarded IS NULL OR points_awarded >= 0",
            name="ck_es_test_attempt_answers_points_nonneg",
        ),
        sa.CheckConstraint(
            "(points_awarded IS NULL) = (graded_at IS NULL)",
            name="ck_es_test_attempt_answers_graded_pair",
        ),
    )
    op.create_index(
        "ix_es_test_attempt_answers_attempt_id", "es_test_attempt_answers", ["attempt_id"], unique=False
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("actor_id", sa.UUID(), nullable=True),
        sa.Column("actor_email", sa.String(length=320), nullable=True),
        sa.Column("action", sa.String(length=120), nullable=False),
        sa.Column("entity_type", sa.String(length=120), nullable=False),
        sa.Column("entity_id", sa.String(length=120), nullable=False),
        sa.Column("payload_json", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_index("ix_es_test_attempt_answers_attempt_id", table_name="es_test_attempt_answers")
    op.drop_table("es_test_attempt_answers")
    op.drop_index("ix_es_test_attempts_status", table_name="es_test_attempts")
    op.drop_index("ix_es_test_attempts_user_id", table_name="es_test_attempts")
    op.drop_index("ix_es_test_attempts_test_id", table_name="es_test_attempts")
    op.drop_table("es_test_attempts")
    op.drop_index("ix_es_test_question_options_question_id", table_name="es_test_question_options")
    op.drop_table("es_test_question_options")
    op.drop_index("ix_es_test_questions_test_id", table_name="es_test_questions")
    op.drop_table("es_test_questions")
    op.drop_index("ix_es_tests_event_id", table_name="es_tests")
    op.drop_index("ix_es_tests_tournament_id", table_name="es_tests")
    op.drop_table("es_tests")
    op.drop_index("ix_tournament_staff_events_staff_id", table_name="tournament_staff_events")
    op.drop_table("tournament_staff_events")
    op.drop_index("ix_tournament_staff_email_lower", table_name="tournament_staff")
    op.drop_index("ix_tournament_staff_user_id", table_name="tournament_staff")
    op.drop_index("ix_tournament_staff_tournament_id", table_name="tournament_staff")
    op.drop_table("tournament_staff")
    op.drop_table("events")
    op.drop_table("tournament_hosting_requests")
    op.drop_table("tournament_admins")
    op.drop_index("ix_tournaments_created_by_id", table_name="tournaments")
    op.drop_table("tournaments")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    for enum in reversed(list(ENUMS.values())):
        enum.drop(bind, checkfirst=True)
