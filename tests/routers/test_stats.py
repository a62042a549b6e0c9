"""Tests for the /api/stats endpoints."""

from __future__ import annotations

from fastapi.testclient import TestClient

from inkwell.schemas.post import PostStatus


def test_dashboard(admin_client: TestClient, make_post):
    make_post("One", views=3, likes=1)
    make_post("Two", status=PostStatus.DRAFT, views=2)
    body = admin_client.get("/api/stats/dashboard").json()
    assert body["success"] is True
    assert body["data"] == {
        "blogs": {"total": 2, "published": 1, "draft": 1},
        "subscribers": {"total": 0},
        "engagement": {"views": 5, "likes": 1},
    }


def test_blog_stats(admin_client: TestClient, db_session, make_post):
    post = make_post("Counted", views=7, likes=2)
    post.add_comment(name="Ann", content="one")
    post.add_comment(name="Bob", content="two")
    db_session.commit()
    data = admin_client.get(f"/api/stats/blog/{post.id}").json()["data"]
    assert data == {"views": 7, "likes": 2, "comments": 2}


def test_blog_stats_missing(admin_client: TestClient):
    assert admin_client.get("/api/stats/blog/123").status_code == 404


def test_dashboard_requires_admin(client: TestClient, db_session):
    assert client.get("/api/stats/dashboard").status_code == 401
