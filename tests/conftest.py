from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from uuid import UUID, uuid4

import httpx
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from teamy.api.deps import db_session
from teamy.core.constants import (
    AttemptStatus,
    Division,
    HostingRequestStatus,
    QuestionType,
    StaffRole,
    StaffStatus,
)
from teamy.core.ratelimit import reset_rate_limits
from teamy.core.security import Identity, create_access_token
from teamy.db.base import Base
from teamy.main import create_app
from teamy.models.domain import (
    ESTest,
    ESTestAttempt,
    ESTestAttemptAnswer,
    ESTestQuestion,
    ESTestQuestionOption,
    Event,
    Tournament,
    TournamentAdmin,
    TournamentHostingRequest,
    TournamentStaff,
    TournamentStaffEvent,
    User,
)


@dataclass
class World:
    tournament_id: UUID
    event_id: UUID
    event_test_id: UUID
    trial_test_id: UUID
    creator: Identity
    admin: Identity
    hosting_director: Identity
    supervisor: Identity
    other_supervisor: Identity
    invitee: Identity
    trial_staff: Identity
    pending_staff: Identity
    outsider: Identity
    student: Identity


@dataclass
class SeededAttempt:
    id: UUID
    answer_ids: list[UUID]
    question_ids: list[UUID]


def auth(identity: Identity) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(identity.id, identity.email)}"}


def grade_url(test_id: UUID, attempt_id: UUID) -> str:
    return f"/api/es/tests/{test_id}/attempts/{attempt_id}/grade"


@pytest.fixture(autouse=True)
def _clear_rate_limits():
    reset_rate_limits()
    yield
    reset_rate_limits()


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'teamy.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
async def client(session_factory):
    app = create_app()

    async def override_db_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[db_session] = override_db_session
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


def _identity(email: str) -> Identity:
    return Identity(id=uuid4(), email=email)


@pytest.fixture
async def world(session_factory) -> World:
    w = World(
        tournament_id=uuid4(),
        event_id=uuid4(),
        event_test_id=uuid4(),
        trial_test_id=uuid4(),
        creator=_identity("creator@example.org"),
        admin=_identity("admin@example.org"),
        hosting_director=_identity("director@example.org"),
        supervisor=_identity("es@example.org"),
        other_supervisor=_identity("other-es@example.org"),
        invitee=_identity("Invitee@Example.org"),
        trial_staff=_identity("trial@example.org"),
        pending_staff=_identity("pending@example.org"),
        outsider=_identity("outsider@example.org"),
        student=_identity("student@example.org"),
    )
    async with session_factory() as db:
        for ident in (
            w.creator,
            w.admin,
            w.hosting_director,
            w.supervisor,
            w.other_supervisor,
            w.invitee,
            w.trial_staff,
            w.pending_staff,
            w.outsider,
            w.student,
        ):
            db.add(User(id=ident.id, email=ident.email.lower()))
        await db.flush()

        other_event_id = uuid4()
        db.add_all(
            [
                Event(id=w.event_id, name="Anatomy and Physiology", division=Division.C),
                Event(id=other_event_id, name="Chem Lab", division=Division.C),
            ]
        )
        db.add(
            Tournament(
                id=w.tournament_id,
                name="Invitational",
                division=Division.C,
                created_by_id=w.creator.id,
                end_at=datetime.now(UTC) - timedelta(hours=1),
            )
        )
        await db.flush()

        db.add(TournamentAdmin(tournament_id=w.tournament_id, user_id=w.admin.id))
        db.add(
            TournamentHostingRequest(
                tournament_id=w.tournament_id,
                tournament_name="Invitational",
                director_name="Dana Director",
                director_email="DIRECTOR@example.org",
                status=HostingRequestStatus.APPROVED,
            )
        )

        supervisor = TournamentStaff(
            tournament_id=w.tournament_id,
            user_id=w.supervisor.id,
            email=w.supervisor.email,
            status=StaffStatus.ACCEPTED,
        )
        supervisor.events.append(TournamentStaffEvent(event_id=w.event_id))
        other = TournamentStaff(
            tournament_id=w.tournament_id,
            user_id=w.other_supervisor.id,
            email=w.other_supervisor.email,
            status=StaffStatus.ACCEPTED,
        )
        other.events.append(TournamentStaffEvent(event_id=other_event_id))
        # Invited by email before an account existed.
        invitee = TournamentStaff(
            tournament_id=w.tournament_id,
            user_id=None,
            email="invitee@example.org",
            status=StaffStatus.ACCEPTED,
        )
        invitee.events.append(TournamentStaffEvent(event_id=w.event_id))
        trial = TournamentStaff(
            tournament_id=w.tournament_id,
            user_id=w.trial_staff.id,
            email=w.trial_staff.email,
            status=StaffStatus.ACCEPTED,
            trial_events=["Robot Tour"],
        )
        pending = TournamentStaff(
            tournament_id=w.tournament_id,
            user_id=w.pending_staff.id,
            email=w.pending_staff.email,
            role=StaffRole.EVENT_SUPERVISOR,
            status=StaffStatus.PENDING,
        )
        pending.events.append(TournamentStaffEvent(event_id=w.event_id))
        db.add_all([supervisor, other, invitee, trial, pending])

        db.add(
            ESTest(
                id=w.event_test_id,
                tournament_id=w.tournament_id,
                event_id=w.event_id,
                division=Division.C,
                name="A&P Test",
            )
        )
        db.add(
            ESTest(
                id=w.trial_test_id,
                tournament_id=w.tournament_id,
                event_id=None,
                event_name="Robot Tour",
                division=Division.C,
                name="Robot Tour Written",
            )
        )
        await db.commit()
    return w


@pytest.fixture
def make_attempt(session_factory, world):
    async def _make(
        test_id: UUID,
        points: list[str | int],
        status: AttemptStatus = AttemptStatus.SUBMITTED,
        user: Identity | None = None,
        graded: dict[int, str] | None = None,
        submitted_at: datetime | None = None,
    ) -> SeededAttempt:
        graded = graded or {}
        owner = user or world.student
        async with session_factory() as db:
            questions = []
            for idx, value in enumerate(points):
                q = ESTestQuestion(
                    test_id=test_id,
                    type=QuestionType.LONG_TEXT,
                    prompt_md=f"Question {idx + 1}",
                    points=Decimal(str(value)),
                    order=idx,
                )
                q.options.append(ESTestQuestionOption(label="n/a", is_correct=False, order=0))
                questions.append(q)
            db.add_all(questions)
            await db.flush()

            attempt = ESTestAttempt(
                test_id=test_id,
                user_id=owner.id,
                status=status,
                started_at=datetime.now(UTC) - timedelta(minutes=50),
                submitted_at=submitted_at or datetime.now(UTC),
            )
            for idx, q in enumerate(questions):
                answer = ESTestAttemptAnswer(question_id=q.id, answer_text=f"answer {idx + 1}")
                if idx in graded:
                    answer.points_awarded = Decimal(graded[idx])
                    answer.graded_at = datetime.now(UTC)
                attempt.answers.append(answer)
            db.add(attempt)
            await db.commit()
            return SeededAttempt(
                id=attempt.id,
                answer_ids=[a.id for a in attempt.answers],
                question_ids=[q.id for q in questions],
            )

    return _make
