import asyncio
from datetime import timedelta

import pytest
from sqlalchemy import func, select

from src.codeprep.models import Comment, Post, Vote
from src.codeprep.models.base import utcnow
from tests.conftest import auth_headers

POST = {"title": "Got an offer!", "content": "Thanks everyone for the mock interviews.", "topic": "Interview"}


@pytest.fixture
async def post(client, user_a):
    response = await client.post("/api/v1/community/posts", json=POST, headers=auth_headers(user_a))
    return response.json()["data"]


async def count(session_factory, model) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count(model.id)))).scalar_one()


async def test_create_post_snapshots_username(client, user_a):
    response = await client.post("/api/v1/community/posts", json=POST, headers=auth_headers(user_a))

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["username"] == "alice"
    assert data["isOwner"] is True
    assert data["votes"] == 0
    assert data["userVote"] == "none"


async def test_blank_post_is_rejected(client, user_a):
    response = await client.post(
        "/api/v1/community/posts", json={"title": "  ", "content": "x"}, headers=auth_headers(user_a)
    )

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Title and content required"}


async def test_anonymous_cannot_post(client):
    response = await client.post("/api/v1/community/posts", json=POST)

    assert response.status_code == 401


async def test_other_user_cannot_delete_post(client, user_b, post):
    response = await client.delete(f"/api/v1/community/posts/{post['id']}", headers=auth_headers(user_b))
    still_there = await client.get(f"/api/v1/community/posts/{post['id']}")

    assert response.status_code == 403
    assert still_there.status_code == 200
    assert still_there.json()["data"]["title"] == POST["title"]


async def test_author_deletes_post_with_comments_and_votes(client, user_a, user_b, post, session_factory):
    await client.post(
        f"/api/v1/community/posts/{post['id']}/comments", json={"content": "Congrats!"}, headers=auth_headers(user_b)
    )
    await client.post(
        f"/api/v1/community/posts/{post['id']}/vote", json={"voteType": "upvote"}, headers=auth_headers(user_b)
    )

    response = await client.delete(f"/api/v1/community/posts/{post['id']}", headers=auth_headers(user_a))

    assert response.status_code == 200
    assert (await client.get(f"/api/v1/community/posts/{post['id']}")).status_code == 404
    assert await count(session_factory, Post) == 0
    assert await count(session_factory, Comment) == 0
    assert await count(session_factory, Vote) == 0


async def test_anonymous_post_hides_author_from_others(client, user_a, user_b):
    created = await client.post(
        "/api/v1/community/posts", json={**POST, "isAnonymous": True}, headers=auth_headers(user_a)
    )
    post_id = created.json()["data"]["id"]

    as_other = (await client.get(f"/api/v1/community/posts/{post_id}", headers=auth_headers(user_b))).json()["data"]
    as_author = (await client.get(f"/api/v1/community/posts/{post_id}", headers=auth_headers(user_a))).json()["data"]

    assert as_other["username"] == "Anonymous"
    assert as_other["userId"] is None
    assert as_author["username"] == "alice"
    assert as_author["userId"] == str(user_a.id)


async def test_repeated_votes_keep_one_row(client, user_b, post, session_factory):
    url = f"/api/v1/community/posts/{post['id']}/vote"

    for vote_type in ("upvote", "upvote", "downvote", "upvote"):
        response = await client.post(url, json={"voteType": vote_type}, headers=auth_headers(user_b))
        assert response.status_code == 200

    assert response.json()["data"]["votes"] == 1
    assert response.json()["data"]["userVote"] == "upvote"
    assert await count(session_factory, Vote) == 1


async def test_simultaneous_first_votes_keep_one_row(client, user_b, post, session_factory):
    url = f"/api/v1/community/posts/{post['id']}/vote"

    responses = await asyncio.gather(*(
        client.post(url, json={"voteType": "upvote"}, headers=auth_headers(user_b)) for _ in range(5)
    ))

    assert [r.status_code for r in responses] == [200] * 5
    assert await count(session_factory, Vote) == 1
    final = await client.get(f"/api/v1/community/posts/{post['id']}", headers=auth_headers(user_b))
    assert final.json()["data"]["votes"] == 1


async def test_vote_none_removes_vote(client, user_b, post, session_factory):
    url = f"/api/v1/community/posts/{post['id']}/vote"
    await client.post(url, json={"voteType": "downvote"}, headers=auth_headers(user_b))

    response = await client.post(url, json={"voteType": "none"}, headers=auth_headers(user_b))

    assert response.json()["data"] == {"postId": post["id"], "votes": 0, "userVote": "none"}
    assert await count(session_factory, Vote) == 0


async def test_tallies_are_isolated_per_post(client, make_user, user_a):
    first = (await client.post("/api/v1/community/posts", json=POST, headers=auth_headers(user_a))).json()["data"]
    second = (await client.post(
        "/api/v1/community/posts", json={**POST, "title": "Rejected again"}, headers=auth_headers(user_a)
    )).json()["data"]
    voters = [await make_user(f"voter{i}") for i in range(3)]

    for voter in voters:
        await client.post(f"/api/v1/community/posts/{first['id']}/vote", json={"voteType": "upvote"},
                          headers=auth_headers(voter))
    await client.post(f"/api/v1/community/posts/{second['id']}/vote", json={"voteType": "downvote"},
                      headers=auth_headers(voters[0]))

    feed = await client.get("/api/v1/community/posts", headers=auth_headers(voters[0]))

    posts = {p["id"]: p for p in feed.json()["data"]}
    assert posts[first["id"]]["votes"] == 3
    assert posts[first["id"]]["userVote"] == "upvote"
    assert posts[second["id"]]["votes"] == -1
    assert posts[second["id"]]["userVote"] == "downvote"


async def test_feed_filters_topics_and_expired_posts(client, user_a, session_factory):
    await client.post("/api/v1/community/posts", json=POST, headers=auth_headers(user_a))
    await client.post(
        "/api/v1/community/posts", json={**POST, "topic": "Problem Discussion"}, headers=auth_headers(user_a)
    )
    async with session_factory() as session:
        session.add(Post(
            user_id=user_a.id,
            username="alice",
            title="Old news",
            content="expired",
            topic="Interview",
            expires_at=utcnow() - timedelta(days=1),
        ))
        await session.commit()

    feed = await client.get("/api/v1/community/posts")
    discussions = await client.get("/api/v1/community/posts", params={"topic": "Problem Discussion"})

    assert [p["topic"] for p in feed.json()["data"]] == ["Interview"]
    assert [p["topic"] for p in discussions.json()["data"]] == ["Problem Discussion"]


async def test_feed_includes_comments(client, user_a, user_b, post):
    await client.post(
        f"/api/v1/community/posts/{post['id']}/comments", json={"content": "Congrats!"}, headers=auth_headers(user_b)
    )

    feed = await client.get("/api/v1/community/posts")

    listed = feed.json()["data"][0]
    assert listed["commentCount"] == 1
    assert listed["comments"][0]["username"] == "bob"
    assert listed["comments"][0]["isOwner"] is False


async def test_comments_are_deleted_only_by_author(client, user_a, user_b, post):
    created = await client.post(
        f"/api/v1/community/posts/{post['id']}/comments", json={"content": "Congrats!"}, headers=auth_headers(user_b)
    )
    comment_id = created.json()["data"]["id"]

    by_post_author = await client.delete(f"/api/v1/community/comments/{comment_id}", headers=auth_headers(user_a))
    by_comment_author = await client.delete(f"/api/v1/community/comments/{comment_id}", headers=auth_headers(user_b))
    remaining = await client.get(f"/api/v1/community/posts/{post['id']}/comments")

    assert by_post_author.status_code == 403
    assert by_comment_author.status_code == 200
    assert remaining.json()["data"] == []


async def test_blank_comment_is_rejected(client, user_b, post):
    response = await client.post(
        f"/api/v1/community/posts/{post['id']}/comments", json={"content": " "}, headers=auth_headers(user_b)
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Content required"


async def test_anonymous_cannot_vote(client, post):
    response = await client.post(f"/api/v1/community/posts/{post['id']}/vote", json={"voteType": "upvote"})

    assert response.status_code == 401
