from datetime import UTC, datetime, timedelta
from uuid import uuid4

from sqlalchemy import select, update

from teamy.core.constants import AUDIT_ACTION_SCORES_RELEASED, AttemptStatus, ScoreReleaseMode
from teamy.models.domain import AuditLog, ESTest, ESTestAttempt, Tournament
from tests.conftest import auth


async def set_test(session_factory, test_id, **values):
    async with session_factory() as db:
        await db.execute(update(ESTest).where(ESTest.id == test_id).values(**values))
        await db.commit()


async def test_list_attempts_newest_submission_first(client, world, make_attempt):
    now = datetime.now(UTC)
    older = await make_attempt(world.event_test_id, points=[1], submitted_at=now - timedelta(hours=2))
    newer = await make_attempt(world.event_test_id, points=[1], submitted_at=now - timedelta(minutes=5))
    resp = await client.get(f"/api/es/tests/{world.event_test_id}/attempts", headers=auth(world.supervisor))
    assert resp.status_code == 200
    ids = [a["id"] for a in resp.json()["attempts"]]
    assert ids == [str(newer.id), str(older.id)]


async def test_list_attempts_requires_grader_access(client, world, make_attempt):
    await make_attempt(world.event_test_id, points=[1])
    resp = await client.get(f"/api/es/tests/{world.event_test_id}/attempts", headers=auth(world.student))
    assert resp.status_code == 403
    assert resp.json() == {
        "error": "Only tournament directors, event supervisors, and admins can view test attempts"
    }


async def test_list_attempts_unknown_test(client, world):
    resp = await client.get(f"/api/es/tests/{uuid4()}/attempts", headers=auth(world.creator))
    assert resp.status_code == 404
    assert resp.json() == {"error": "Test not found"}


async def test_release_scores_after_tournament_end(client, world, session_factory):
    resp = await client.post(
        f"/api/es/tests/{world.event_test_id}/release-scores", headers=auth(world.creator)
    )
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "Scores released successfully"}
    async with session_factory() as db:
        test = await db.get(ESTest, world.event_test_id)
        assert test.scores_released is True
        actions = (await db.execute(select(AuditLog.action))).scalars().all()
    assert actions == [AUDIT_ACTION_SCORES_RELEASED]


async def test_release_scores_before_tournament_end(client, world, session_factory):
    ends = datetime.now(UTC) + timedelta(days=1)
    async with session_factory() as db:
        await db.execute(update(Tournament).where(Tournament.id == world.tournament_id).values(end_at=ends))
        await db.commit()
    resp = await client.post(
        f"/api/es/tests/{world.event_test_id}/release-scores", headers=auth(world.creator)
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Cannot release scores until the tournament has ended"
    assert datetime.fromisoformat(body["tournamentEndDateTime"]) == ends


async def test_release_scores_forbidden_for_outsider(client, world):
    resp = await client.post(
        f"/api/es/tests/{world.event_test_id}/release-scores", headers=auth(world.outsider)
    )
    assert resp.status_code == 403


async def test_my_results_hidden_until_release(client, world, make_attempt):
    await make_attempt(world.event_test_id, points=[5], graded={0: "4"}, status=AttemptStatus.GRADED)
    resp = await client.get(f"/api/es/tests/{world.event_test_id}/my-results", headers=auth(world.student))
    assert resp.status_code == 200
    body = resp.json()
    assert body["test"]["scoresReleased"] is False
    assert body["attempt"]["gradeEarned"] is None
    assert body["attempt"]["answers"][0]["pointsAwarded"] is None
    assert body["attempt"]["answers"][0]["question"]["options"][0]["isCorrect"] is None


async def test_my_results_after_release_score_only(client, world, make_attempt, session_factory):
    seeded = await make_attempt(world.event_test_id, points=[5], graded={0: "4"}, status=AttemptStatus.GRADED)
    async with session_factory() as db:
        await db.execute(
            update(ESTestAttempt).where(ESTestAttempt.id == seeded.id).values(grade_earned=4)
        )
        await db.commit()
    await set_test(
        session_factory,
        world.event_test_id,
        scores_released=True,
        score_release_mode=ScoreReleaseMode.SCORE_ONLY,
    )
    resp = await client.get(f"/api/es/tests/{world.event_test_id}/my-results", headers=auth(world.student))
    assert resp.status_code == 200
    body = resp.json()
    assert body["test"]["scoresReleased"] is True
    assert body["test"]["scoreReleaseMode"] == "SCORE_ONLY"
    assert body["attempt"]["gradeEarned"] == 4
    assert body["attempt"]["answers"] is None


async def test_my_results_scheduled_release(client, world, make_attempt, session_factory):
    await make_attempt(world.event_test_id, points=[2], graded={0: "2"}, status=AttemptStatus.GRADED)
    await set_test(
        session_factory,
        world.event_test_id,
        release_scores_at=datetime.now(UTC) - timedelta(minutes=1),
    )
    resp = await client.get(f"/api/es/tests/{world.event_test_id}/my-results", headers=auth(world.student))
    assert resp.status_code == 200
    body = resp.json()
    assert body["test"]["scoresReleased"] is True
    assert body["attempt"]["answers"][0]["pointsAwarded"] == 2


async def test_my_results_ignores_in_progress_attempts(client, world, make_attempt):
    await make_attempt(world.event_test_id, points=[1], status=AttemptStatus.IN_PROGRESS)
    resp = await client.get(f"/api/es/tests/{world.event_test_id}/my-results", headers=auth(world.student))
    assert resp.status_code == 404
    assert resp.json() == {"error": "No attempt found"}


async def test_malformed_test_id_is_not_found(client, world):
    resp = await client.get("/api/es/tests/not-a-uuid/attempts", headers=auth(world.creator))
    assert resp.status_code == 404
    assert resp.json() == {"error": "Test not found"}
