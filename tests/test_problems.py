from datetime import timedelta
from uuid import UUID

from sqlalchemy import func, select

from src.codeprep.models import Problem, Submission
from src.codeprep.models.base import utcnow
from tests.conftest import TWO_SUM, auth_headers


async def test_admin_creates_problem_and_non_admin_cannot_rename_it(client, admin, user_a, session_factory):
    created = await client.post("/api/v1/problems", json=TWO_SUM, headers=auth_headers(admin))
    assert created.status_code == 201
    problem_id = created.json()["data"]["id"]

    forbidden = await client.put(
        f"/api/v1/problems/{problem_id}",
        json={"title": "Three Sum"},
        headers=auth_headers(user_a),
    )
    anonymous = await client.put(f"/api/v1/problems/{problem_id}", json={"title": "Three Sum"})

    assert forbidden.status_code == 403
    assert anonymous.status_code == 401
    async with session_factory() as session:
        problem = await session.get(Problem, UUID(problem_id))
        assert problem.title == "Two Sum"


async def test_non_admin_cannot_create_problem(client, user_a, session_factory):
    response = await client.post("/api/v1/problems", json=TWO_SUM, headers=auth_headers(user_a))

    assert response.status_code == 403
    async with session_factory() as session:
        assert (await session.execute(select(func.count(Problem.id)))).scalar_one() == 0


async def test_create_without_title_or_difficulty_persists_nothing(client, admin, session_factory):
    without_title = {k: v for k, v in TWO_SUM.items() if k != "title"}
    without_difficulty = {k: v for k, v in TWO_SUM.items() if k != "difficulty"}
    blank_title = {**TWO_SUM, "title": "   "}
    bad_difficulty = {**TWO_SUM, "difficulty": "extreme"}

    for payload in (without_title, without_difficulty, blank_title, bad_difficulty):
        response = await client.post("/api/v1/problems", json=payload, headers=auth_headers(admin))
        assert response.status_code == 400
        assert response.json()["success"] is False

    async with session_factory() as session:
        assert (await session.execute(select(func.count(Problem.id)))).scalar_one() == 0


async def test_test_cases_round_trip_in_order(client, admin):
    test_cases = [
        {"input": "[2,7,11,15], 9", "output": "[0,1]"},
        {"input": "[3,2,4], 6", "output": "[1,2]"},
        {"input": "[3,3], 6", "output": "[0,1]"},
    ]
    created = await client.post(
        "/api/v1/problems",
        json={**TWO_SUM, "testCases": test_cases},
        headers=auth_headers(admin),
    )

    response = await client.get(f"/api/v1/problems/{created.json()['data']['id']}")

    assert response.status_code == 200
    assert response.json()["data"]["testCases"] == test_cases


async def test_reference_solution_is_stored(client, admin):
    created = await client.post(
        "/api/v1/problems",
        json={**TWO_SUM, "referenceSolution": {"Python": "print([0, 1])"}},
        headers=auth_headers(admin),
    )

    assert created.json()["data"]["solution"] == {"Python": "print([0, 1])"}


async def test_admin_update_is_partial(client, admin, make_problem):
    problem = await make_problem(tags=["Array"])

    response = await client.put(
        f"/api/v1/problems/{problem.id}",
        json={"isPremium": True},
        headers=auth_headers(admin),
    )

    data = response.json()["data"]
    assert response.status_code == 200
    assert data["isPremium"] is True
    assert data["title"] == "Two Sum"
    assert data["tags"] == ["Array"]


async def test_update_cannot_clear_required_fields(client, admin, make_problem):
    problem = await make_problem()

    response = await client.put(
        f"/api/v1/problems/{problem.id}",
        json={"title": None},
        headers=auth_headers(admin),
    )

    assert response.status_code == 400


async def test_list_includes_stats_and_premium_rows(client, make_problem, make_user, session_factory):
    free = await make_problem(title="Two Sum")
    premium = await make_problem(title="LRU Cache", difficulty="medium", is_premium=True)
    user = await make_user("sam")
    async with session_factory() as session:
        for status in ("accepted", "wrong_answer", "accepted", "time_limit_exceeded"):
            session.add(Submission(
                problem_id=free.id,
                user_id=user.id,
                code="pass",
                language="Python",
                status=status,
                test_cases_passed=0,
                total_test_cases=1,
            ))
        await session.commit()

    response = await client.get("/api/v1/problems")

    rows = {row["id"]: row for row in response.json()["data"]["problems"]}
    assert rows[str(free.id)]["totalSubmissions"] == 4
    assert rows[str(free.id)]["acceptedSubmissions"] == 2
    assert rows[str(free.id)]["problemAcceptanceRate"] == 0.5
    assert rows[str(premium.id)]["title"] == "LRU Cache"
    assert rows[str(premium.id)]["isPremium"] is True
    assert rows[str(premium.id)]["problemAcceptanceRate"] == 0.0
    assert "testCases" not in rows[str(free.id)]
    assert "description" not in rows[str(free.id)]


async def test_list_selects_requested_fields(client, make_problem):
    await make_problem()

    response = await client.get("/api/v1/problems", params={"fields": "title,isPremium"})

    row = response.json()["data"]["problems"][0]
    assert set(row) == {"id", "title", "isPremium", "totalSubmissions", "acceptedSubmissions", "problemAcceptanceRate"}


async def test_list_rejects_unknown_field(client):
    response = await client.get("/api/v1/problems", params={"fields": "title,solution"})

    assert response.status_code == 400
    assert response.json()["message"] == "Unknown field: solution"


async def test_premium_detail_is_gated(client, make_problem, make_user, admin):
    problem = await make_problem(title="LRU Cache", is_premium=True)
    free_user = await make_user("frank")
    subscriber = await make_user("sue", is_subscribed=True, subscription_plan="premium_monthly",
                                 subscription_expires_at=utcnow() + timedelta(days=10))
    lapsed = await make_user("lee", is_subscribed=True, subscription_plan="premium_monthly",
                             subscription_expires_at=utcnow() - timedelta(days=1))
    url = f"/api/v1/problems/{problem.id}"

    assert (await client.get(url)).status_code == 403
    assert (await client.get(url, headers=auth_headers(free_user))).status_code == 403
    assert (await client.get(url, headers=auth_headers(lapsed))).status_code == 403
    assert (await client.get(url, headers=auth_headers(subscriber))).status_code == 200
    assert (await client.get(url, headers=auth_headers(admin))).status_code == 200


async def test_missing_problem_is_not_found(client):
    response = await client.get("/api/v1/problems/00000000-0000-0000-0000-000000000000")

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Problem not found"}


async def test_admin_deletes_problem_and_keeps_submissions(client, admin, make_problem, session_factory):
    problem = await make_problem()
    async with session_factory() as session:
        session.add(Submission(
            problem_id=problem.id,
            user_id=admin.id,
            code="pass",
            language="Python",
            status="accepted",
            test_cases_passed=1,
            total_test_cases=1,
        ))
        await session.commit()

    response = await client.delete(f"/api/v1/problems/{problem.id}", headers=auth_headers(admin))

    assert response.status_code == 200
    assert (await client.get(f"/api/v1/problems/{problem.id}")).status_code == 404
    async with session_factory() as session:
        assert (await session.execute(select(func.count(Submission.id)))).scalar_one() == 1
