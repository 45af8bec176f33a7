from datetime import UTC, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from teamy.core.constants import (
    AttemptStatus,
    Division,
    HostingRequestStatus,
    QuestionType,
    ScoreReleaseMode,
    StaffRole,
    StaffStatus,
    TestStatus,
)
from teamy.db.base import Base

POINTS = Numeric(10, 2)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=func.now(),
        nullable=False,
    )


class User(Base, TimestampMixin):
    __tablename__ = "users"
    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False, index=True)
    name: Mapped[str | None] = mapped_column(String(200), nullable=True)


class Tournament(Base, TimestampMixin):
    __tablename__ = "tournaments"
    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    division: Mapped[Division] = mapped_column(Enum(Division), nullable=False)
    created_by_id: Mapped[UUID] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    end_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    admins: Mapped[list["TournamentAdmin"]] = relationship(
        back_populates="tournament", cascade="all, delete-orphan"
    )
    staff: Mapped[list["TournamentStaff"]] = relationship(
        back_populates="tournament", cascade="all, delete-orphan"
    )
    tests: Mapped[list["ESTest"]] = relationship(back_populates="tournament", cascade="all, delete-orphan")


class TournamentAdmin(Base):
    __tablename__ = "tournament_admins"
    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    tournament_id: Mapped[UUID] = mapped_column(
        ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    tournament: Mapped["Tournament"] = relationship(back_populates="admins")

    __table_args__ = (UniqueConstraint("tournament_id", "user_id"),)


class TournamentHostingRequest(Base, TimestampMixin):
    __tablename__ = "tournament_hosting_requests"
    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    # Set once the request is approved and the tournament is created.
    tournament_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("tournaments.id", ondelete="SET NULL"), nullable=True, unique=True
    )
    tournament_name: Mapped[str] = mapped_column(String(200), nullable=False)
    director_name: Mapped[str] = mapped_column(String(200), nullable=False)
    director_email: Mapped[str] = mapped_column(String(320), nullable=False)
    status: Mapped[HostingRequestStatus] = mapped_column(
        Enum(HostingRequestStatus), default=HostingRequestStatus.PENDING, nullable=False
    )


class Event(Base):
    __tablename__ = "events"
    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    division: Mapped[Division] = mapped_column(Enum(Division), nullable=False)

    __table_args__ = (UniqueConstraint("name", "division"),)


class TournamentStaff(Base, TimestampMixin):
    __tablename__ = "tournament_staff"
    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    tournament_id: Mapped[UUID] = mapped_column(
        ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Invitees may not have an account yet; email is the second identity key.
    user_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    role: Mapped[StaffRole] = mapped_column(
        Enum(StaffRole), default=StaffRole.EVENT_SUPERVISOR, nullable=False
    )
    status: Mapped[StaffStatus] = mapped_column(
        Enum(StaffStatus), default=StaffStatus.PENDING, nullable=False
    )
    trial_events: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    tournament: Mapped["Tournament"] = relationship(back_populates="staff")
    events: Mapped[list["TournamentStaffEvent"]] = relationship(
        back_populates="staff", cascade="all, delete-orphan"
    )


class TournamentStaffEvent(Base):
    __tablename__ = "tournament_staff_events"
    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    staff_id: Mapped[UUID] = mapped_column(
        ForeignKey("tournament_staff.id", ondelete="CASCADE"), nullable=False, index=True
    )
    event_id: Mapped[UUID] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"), nullable=False)

    staff: Mapped["TournamentStaff"] = relationship(back_populates="events")

    __table_args__ = (UniqueConstraint("staff_id", "event_id"),)


class ESTest(Base, TimestampMixin):
    __tablename__ = "es_tests"
    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    tournament_id: Mapped[UUID] = mapped_column(
        ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Null for trial events, which are identified by event_name instead.
    event_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("events.id", ondelete="SET NULL"), nullable=True, index=True
    )
    event_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    division: Mapped[Division] = mapped_column(Enum(Division), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    status: Mapped[TestStatus] = mapped_column(Enum(TestStatus), default=TestStatus.DRAFT, nullable=False)
    scores_released: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    release_scores_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    score_release_mode: Mapped[ScoreReleaseMode] = mapped_column(
        Enum(ScoreReleaseMode), default=ScoreReleaseMode.FULL_TEST, nullable=False
    )

    tournament: Mapped["Tournament"] = relationship(back_populates="tests")
    questions: Mapped[list["ESTestQuestion"]] = relationship(
        back_populates="test", cascade="all, delete-orphan", order_by="ESTestQuestion.order"
    )
    attempts: Mapped[list["ESTestAttempt"]] = relationship(
        back_populates="test", cascade="all, delete-orphan"
    )


class ESTestQuestion(Base):
    __tablename__ = "es_test_questions"
    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    test_id: Mapped[UUID] = mapped_column(ForeignKey("es_tests.id", ondelete="CASCADE"), index=True)
    type: Mapped[QuestionType] = mapped_column(Enum(QuestionType), nullable=False)
    prompt_md: Mapped[str] = mapped_column(Text, nullable=False)
    explanation: Mapped[str | None] = mapped_column(Text, nullable=True)
    points: Mapped[Decimal] = mapped_column(POINTS, default=Decimal("1"), nullable=False)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    test: Mapped["ESTest"] = relationship(back_populates="questions")
    options: Mapped[list["ESTestQuestionOption"]] = relationship(
        back_populates="question",
        cascade="all, delete-orphan",
        order_by="ESTestQuestionOption.order",
    )

    __table_args__ = (CheckConstraint("points >= 0", name="ck_es_test_questions_points_nonneg"),)


class ESTestQuestionOption(Base):
    __tablename__ = "es_test_question_options"
    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    question_id: Mapped[UUID] = mapped_column(
        ForeignKey("es_test_questions.id", ondelete="CASCADE"), index=True
    )
    label: Mapped[str] = mapped_column(Text, nullable=False)
    is_correct: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    question: Mapped["ESTestQuestion"] = relationship(back_populates="options")


class ESTestAttempt(Base):
    __tablename__ = "es_test_attempts"
    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    test_id: Mapped[UUID] = mapped_column(ForeignKey("es_tests.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    status: Mapped[AttemptStatus] = mapped_column(
        Enum(AttemptStatus), default=AttemptStatus.IN_PROGRESS, nullable=False, index=True
    )
    grade_earned: Mapped[Decimal | None] = mapped_column(POINTS, nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, server_default="1")

    __mapper_args__ = {"version_id_col": version}

    test: Mapped["ESTest"] = relationship(back_populates="attempts")
    answers: Mapped[list["ESTestAttemptAnswer"]] = relationship(
        back_populates="attempt", cascade="all, delete-orphan"
    )


class ESTestAttemptAnswer(Base):
    __tablename__ = "es_test_attempt_answers"
    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    attempt_id: Mapped[UUID] = mapped_column(
        ForeignKey("es_test_attempts.id", ondelete="CASCADE"), index=True
    )
    question_id: Mapped[UUID] = mapped_column(ForeignKey("es_test_questions.id", ondelete="CASCADE"))
    answer_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    selected_option_ids: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    numeric_answer: Mapped[Decimal | None] = mapped_column(Numeric(18, 6), nullable=True)
    points_awarded: Mapped[Decimal | None] = mapped_column(POINTS, nullable=True)
    grader_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    graded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    attempt: Mapped["ESTestAttempt"] = relationship(back_populates="answers")
    question: Mapped["ESTestQuestion"] = relationship()

    __table_args__ = (
        UniqueConstraint("attempt_id", "question_id"),
        CheckConstraint(
            "points_awarded IS NULL OR points_awarded >= 0",
            name="ck_es_test_attempt_answers_points_nonneg",
        ),
        CheckConstraint(
            "(points_awarded IS NULL) = (graded_at IS NULL)",
            name="ck_es_test_attempt_answers_graded_pair",
        ),
    )


class AuditLog(Base):
    __tablename__ = "audit_logs"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    actor_id: Mapped[UUID | None] = mapped_column(nullable=True)
    actor_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    action: Mapped[str] = mapped_column(String(120), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(120), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(120), nullable=False)
    payload_json: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
