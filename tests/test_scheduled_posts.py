"""
Tests for scheduled post endpoints.
"""
from datetime import datetime, timedelta, timezone

import pytest

from postline.exceptions import StoreFailure
from postline.services.scheduled_posts import ScheduledPostStore


def iso(minutes: int) -> str:
    return (datetime.now(timezone.utc) + timedelta(minutes=minutes)).isoformat()


class TestCreateScheduledPost:

    def test_create(self, client, auth_headers, test_user):
        response = client.post(
            "/api/scheduled-posts",
            headers=auth_headers,
            json={
                "content": "hello",
                "mediaUrl": "https://cdn.example.com/a.png",
                "scheduledAt": iso(60),
            },
        )
        assert response.status_code == 201
        data = response.json()
        assert data["content"] == "hello"
        assert data["media_url"] == "https://cdn.example.com/a.png"
        assert data["comments_enabled"] is True
        assert data["status"] == "pending"
        assert data["user_id"] == test_user.id

    def test_create_accepts_snake_case(self, client, auth_headers):
        response = client.post(
            "/api/scheduled-posts",
            headers=auth_headers,
            json={"content": "snake", "comments_enabled": False, "scheduled_at": iso(5)},
        )
        assert response.status_code == 201
        assert response.json()["comments_enabled"] is False

    @pytest.mark.parametrize(
        "body",
        [
            {"scheduledAt": "2030-01-01T00:00:00Z"},
            {"content": "", "scheduledAt": "2030-01-01T00:00:00Z"},
            {"content": "no time"},
        ],
    )
    def test_create_missing_required_fields(self, client, auth_headers, body):
        response = client.post("/api/scheduled-posts", headers=auth_headers, json=body)
        assert response.status_code == 400
        data = response.json()
        assert data["ok"] is False
        assert data["error_code"] == "VALIDATION_ERROR"
        assert data["error"]

    def test_create_malformed_timestamp(self, client, auth_headers):
        response = client.post(
            "/api/scheduled-posts",
            headers=auth_headers,
            json={"content": "hello", "scheduledAt": "next tuesday"},
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_create_unauthenticated(self, client):
        response = client.post(
            "/api/scheduled-posts",
            json={"content": "hello", "scheduledAt": iso(5)},
        )
        assert response.status_code == 401


class TestListScheduledPosts:

    def test_list_own_posts_soonest_first(self, client, auth_headers, test_user, other_user, make_scheduled_post):
        later = make_scheduled_post(test_user, minutes=90, content="later")
        sooner = make_scheduled_post(test_user, minutes=15, content="sooner")
        make_scheduled_post(other_user, minutes=5, content="someone else")

        response = client.get("/api/scheduled-posts", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert [p["id"] for p in data["posts"]] == [sooner.id, later.id]

    def test_list_filters_and_paginates(self, client, auth_headers, test_user, make_scheduled_post):
        cancelled = make_scheduled_post(test_user, minutes=10)
        make_scheduled_post(test_user, minutes=20)
        make_scheduled_post(test_user, minutes=30)
        client.delete(f"/api/scheduled-posts/{cancelled.id}", headers=auth_headers)

        response = client.get(
            "/api/scheduled-posts",
            headers=auth_headers,
            params={"status": "pending", "page": 2, "limit": 1},
        )
        data = response.json()
        assert data["total"] == 2
        assert len(data["posts"]) == 1
        assert data["posts"][0]["status"] == "pending"

        response = client.get("/api/scheduled-posts", headers=auth_headers, params={"status": "cancelled"})
        assert [p["id"] for p in response.json()["posts"]] == [cancelled.id]

    def test_list_empty(self, client, auth_headers):
        response = client.get("/api/scheduled-posts", headers=auth_headers)
        assert response.json() == {"posts": [], "total": 0}

    @pytest.mark.parametrize("params", [{"status": "published"}, {"page": 0}, {"limit": 1000}])
    def test_list_rejects_bad_query(self, client, auth_headers, params):
        response = client.get("/api/scheduled-posts", headers=auth_headers, params=params)
        assert response.status_code == 400


class TestOwnership:
    """Other users' scheduled posts look exactly like missing ones."""

    @pytest.mark.parametrize(
        "method, suffix, body",
        [
            ("get", "", None),
            ("put", "", {"content": "hijack"}),
            ("delete", "", None),
            ("post", "/publish", None),
        ],
    )
    def test_non_owner_gets_not_found(
        self, client, other_headers, test_user, make_scheduled_post, count_posts, fetch_scheduled_post,
        method, suffix, body,
    ):
        record = make_scheduled_post(test_user, minutes=60)
        kwargs = {"headers": other_headers}
        if body is not None:
            kwargs["json"] = body

        response = client.request(method.upper(), f"/api/scheduled-posts/{record.id}{suffix}", **kwargs)
        missing = client.request(method.upper(), f"/api/scheduled-posts/999999{suffix}", **kwargs)

        assert response.status_code == 404
        assert response.json()["error"] == missing.json()["error"]
        assert "hello" not in response.text

        unchanged = fetch_scheduled_post(record.id)
        assert unchanged.status == "pending"
        assert unchanged.content == "hello"
        assert count_posts() == 0


class TestUpdateScheduledPost:

    def test_partial_update(self, client, auth_headers, test_user, make_scheduled_post):
        record = make_scheduled_post(test_user, minutes=60, media_url="https://cdn.example.com/keep.png")
        before = client.get(f"/api/scheduled-posts/{record.id}", headers=auth_headers).json()

        response = client.put(
            f"/api/scheduled-posts/{record.id}",
            headers=auth_headers,
            json={"content": "edited"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["content"] == "edited"
        assert data["media_url"] == "https://cdn.example.com/keep.png"
        assert data["scheduled_at"] == before["scheduled_at"]
        assert data["comments_enabled"] is True

    def test_reschedule(self, client, auth_headers, test_user, make_scheduled_post):
        record = make_scheduled_post(test_user, minutes=60)
        new_time = "2031-06-01T12:00:00Z"

        response = client.put(
            f"/api/scheduled-posts/{record.id}",
            headers=auth_headers,
            json={"scheduledAt": new_time, "commentsEnabled": False},
        )

        data = response.json()
        assert data["scheduled_at"].startswith("2031-06-01T12:00:00")
        assert data["comments_enabled"] is False

    def test_update_blank_content(self, client, auth_headers, test_user, make_scheduled_post):
        record = make_scheduled_post(test_user, minutes=60)
        response = client.put(
            f"/api/scheduled-posts/{record.id}",
            headers=auth_headers,
            json={"content": "   "},
        )
        assert response.status_code == 400

    @pytest.mark.parametrize("terminal_action", ["cancel", "publish"])
    def test_update_terminal_record_rejected(
        self, client, auth_headers, test_user, make_scheduled_post, fetch_scheduled_post, terminal_action
    ):
        record = make_scheduled_post(test_user, minutes=60)
        if terminal_action == "cancel":
            client.delete(f"/api/scheduled-posts/{record.id}", headers=auth_headers)
        else:
            client.post(f"/api/scheduled-posts/{record.id}/publish", headers=auth_headers)

        response = client.put(
            f"/api/scheduled-posts/{record.id}",
            headers=auth_headers,
            json={"content": "too late"},
        )

        assert response.status_code == 409
        assert response.json()["error_code"] == "INVALID_STATE"
        assert fetch_scheduled_post(record.id).content == "hello"


class TestCancelScheduledPost:

    def test_cancel(self, client, auth_headers, test_user, make_scheduled_post):
        record = make_scheduled_post(test_user, minutes=60)

        response = client.delete(f"/api/scheduled-posts/{record.id}", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Scheduled post cancelled successfully"
        assert data["post"]["status"] == "cancelled"

        # Kept for history
        response = client.get(f"/api/scheduled-posts/{record.id}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

    def test_cancel_twice(self, client, auth_headers, test_user, make_scheduled_post):
        record = make_scheduled_post(test_user, minutes=60)
        client.delete(f"/api/scheduled-posts/{record.id}", headers=auth_headers)

        response = client.delete(f"/api/scheduled-posts/{record.id}", headers=auth_headers)
        assert response.status_code == 409

    def test_cancelled_post_is_never_swept(self, client, app, auth_headers, test_user, make_scheduled_post, count_posts):
        record = make_scheduled_post(test_user, minutes=-1)
        client.delete(f"/api/scheduled-posts/{record.id}", headers=auth_headers)

        app.state.scheduler.run_once()

        assert count_posts() == 0


class TestPublishScheduledPost:

    def test_publish_now(self, client, auth_headers, test_user, make_scheduled_post, count_posts):
        record = make_scheduled_post(test_user, minutes=600, content="right now")

        response = client.post(f"/api/scheduled-posts/{record.id}/publish", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Post published successfully"
        assert data["post"]["content"] == "right now"
        assert data["post"]["user_id"] == test_user.id
        assert data["post"]["scheduled_post_id"] == record.id

        status = client.get(f"/api/scheduled-posts/{record.id}", headers=auth_headers).json()["status"]
        assert status == "posted"
        assert count_posts(scheduled_post_id=record.id) == 1

    def test_publish_twice(self, client, auth_headers, test_user, make_scheduled_post, count_posts):
        record = make_scheduled_post(test_user, minutes=600)
        client.post(f"/api/scheduled-posts/{record.id}/publish", headers=auth_headers)

        response = client.post(f"/api/scheduled-posts/{record.id}/publish", headers=auth_headers)

        assert response.status_code == 409
        assert response.json()["details"]["status"] == "posted"
        assert count_posts() == 1

    def test_publish_cancelled(self, client, auth_headers, test_user, make_scheduled_post, count_posts):
        record = make_scheduled_post(test_user, minutes=600)
        client.delete(f"/api/scheduled-posts/{record.id}", headers=auth_headers)

        response = client.post(f"/api/scheduled-posts/{record.id}/publish", headers=auth_headers)

        assert response.status_code == 409
        assert count_posts() == 0


class TestSweepScenarios:

    def test_due_post_is_published_by_sweep(self, client, app, auth_headers, test_user):
        created = client.post(
            "/api/scheduled-posts",
            headers=auth_headers,
            json={"content": "hello", "scheduledAt": iso(-1)},
        ).json()

        result = app.state.scheduler.run_once()

        assert result.published == 1
        record = client.get(f"/api/scheduled-posts/{created['id']}", headers=auth_headers).json()
        assert record["status"] == "posted"
        posts = client.get("/api/posts", headers=auth_headers).json()
        assert [(p["content"], p["user_id"]) for p in posts] == [("hello", test_user.id)]

    def test_future_post_waits(self, client, app, auth_headers):
        created = client.post(
            "/api/scheduled-posts",
            headers=auth_headers,
            json={"content": "future", "scheduledAt": iso(60)},
        ).json()

        app.state.scheduler.run_once()

        record = client.get(f"/api/scheduled-posts/{created['id']}", headers=auth_headers).json()
        assert record["status"] == "pending"
        assert client.get("/api/posts", headers=auth_headers).json() == []

    def test_sweep_then_publish_now_conflicts(self, client, app, auth_headers, test_user, make_scheduled_post, count_posts):
        record = make_scheduled_post(test_user, minutes=-1)
        app.state.scheduler.run_once()

        response = client.post(f"/api/scheduled-posts/{record.id}/publish", headers=auth_headers)

        assert response.status_code == 409
        assert count_posts() == 1


def test_store_failure_is_generic(client, auth_headers, monkeypatch):
    def broken_list(self, *args, **kwargs):
        raise StoreFailure("list")

    monkeypatch.setattr(ScheduledPostStore, "list_for_user", broken_list)

    response = client.get("/api/scheduled-posts", headers=auth_headers)

    assert response.status_code == 500
    data = response.json()
    assert data["error"] == "Internal server error"
    assert data["error_code"] == "INTERNAL_ERROR"
    assert "list" not in data["error"]
