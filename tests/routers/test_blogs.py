"""Tests for the /api/blogs endpoints."""

from __future__ import annotations

import io
from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from inkwell.models.post import Comment, Post
from inkwell.schemas.post import PostStatus

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def _post_body(**overrides) -> dict:
    body = {
        "title": "Created Via API",
        "excerpt": "Excerpt",
        "content": "Word " * 250,
        "category": "Programming",
        "tags": "python, fastapi",
    }
    body.update(overrides)
    return body


# Public listing
class TestListBlogs:
    def test_only_published_posts(self, client: TestClient, make_post):
        make_post("Visible")
        make_post("Hidden Draft", status=PostStatus.DRAFT)
        make_post("Hidden Archive", status=PostStatus.ARCHIVED)

        response = client.get("/api/blogs")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert [p["title"] for p in body["data"]] == ["Visible"]

    def test_envelope_and_pagination(self, client: TestClient, make_post):
        for i in range(3):
            make_post(f"Post {i}")

        body = client.get("/api/blogs?page=2&limit=2").json()
        assert len(body["data"]) == 1
        assert body["meta"]["pagination"] == {
            "currentPage": 2,
            "totalPages": 2,
            "totalItems": 3,
            "itemsPerPage": 2,
            "hasNext": False,
            "hasPrev": True,
        }
        assert "timestamp" in body

    def test_camel_case_fields(self, client: TestClient, make_post):
        make_post("Camel", tags=["x"])
        post = client.get("/api/blogs").json()["data"][0]
        for key in ("readTime", "publishedAt", "authorName", "createdAt", "commentCount"):
            assert key in post
        assert post["tags"] == ["x"]

    def test_newest_published_first(self, client: TestClient, make_post):
        now = datetime.now(UTC)
        make_post("Older", published_at=now - timedelta(days=2))
        make_post("Newer", published_at=now - timedelta(days=1))
        titles = [p["title"] for p in client.get("/api/blogs").json()["data"]]
        assert titles == ["Newer", "Older"]

    def test_filter_by_category(self, client: TestClient, make_post):
        make_post("Code", category="Programming")
        make_post("Life", category="Lifestyle")
        data = client.get("/api/blogs?category=Lifestyle").json()["data"]
        assert [p["title"] for p in data] == ["Life"]

    def test_search(self, client: TestClient, make_post):
        make_post("Learning Rust", content="Ownership and borrowing")
        make_post("Gardening", content="Tomatoes")
        data = client.get("/api/blogs?search=borrowing").json()["data"]
        assert [p["title"] for p in data] == ["Learning Rust"]

    def test_sort_by_views(self, client: TestClient, make_post):
        make_post("Low", views=1)
        make_post("High", views=50)
        data = client.get("/api/blogs?sort=-views").json()["data"]
        assert [p["title"] for p in data] == ["High", "Low"]

    def test_invalid_sort(self, client: TestClient, db_session: Session):
        response = client.get("/api/blogs?sort=secret")
        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.parametrize("query", ["page=0", "limit=0", "limit=101", "page=abc"])
    def test_invalid_paging(self, client: TestClient, db_session: Session, query):
        response = client.get(f"/api/blogs?{query}")
        assert response.status_code == 400
        assert response.json()["message"] == "Validation failed"


# Single post
class TestGetBlog:
    def test_by_slug_counts_view(
        self, client: TestClient, db_session: Session, make_post
    ):
        post = make_post("Readable", content="# Heading\n\nParagraph")
        response = client.get("/api/blogs/readable")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["slug"] == "readable"
        assert "<h1" in data["contentHtml"]
        assert data["comments"] == []

        db_session.refresh(post)
        assert post.views == 1
        client.get("/api/blogs/readable")
        db_session.refresh(post)
        assert post.views == 2

    def test_numeric_id_fallback(self, client: TestClient, make_post):
        post = make_post("By Id")
        response = client.get(f"/api/blogs/{post.id}")
        assert response.status_code == 200
        assert response.json()["data"]["id"] == post.id

    def test_draft_is_not_found(self, client: TestClient, make_post):
        make_post("Secret Draft", status=PostStatus.DRAFT)
        response = client.get("/api/blogs/secret-draft")
        assert response.status_code == 404
        assert response.json()["message"] == "Blog not found"

    def test_unknown_slug(self, client: TestClient, db_session: Session):
        assert client.get("/api/blogs/nope").status_code == 404

    def test_includes_comments(
        self, client: TestClient, db_session: Session, make_post
    ):
        post = make_post("Discussed")
        post.add_comment(name="Reader", content="Nice!")
        db_session.commit()
        comments = client.get("/api/blogs/discussed").json()["data"]["comments"]
        assert [c["content"] for c in comments] == ["Nice!"]
        assert comments[0]["authorName"] == "Reader"


class TestRelated:
    def test_related_ordering(self, client: TestClient, make_post):
        make_post("Origin", category="Programming", tags=["python"])
        make_post("Same Both", category="Programming", tags=["python"])
        make_post("Tag Only", category="Lifestyle", tags=["python"])
        data = client.get("/api/blogs/origin/related").json()["data"]
        assert [r["title"] for r in data] == ["Same Both", "Tag Only"]
        assert [r["relevanceScore"] for r in data] == [3, 1]
        assert set(data[0]) >= {"slug", "readTime", "publishedAt", "category"}

    def test_related_limit(self, client: TestClient, make_post):
        make_post("Hub", category="Programming")
        for i in range(5):
            make_post(f"Spoke {i}", category="Programming")
        assert len(client.get("/api/blogs/hub/related").json()["data"]) == 3

    def test_unknown_slug(self, client: TestClient, db_session: Session):
        assert client.get("/api/blogs/missing/related").status_code == 404


# Comments and likes
class TestEngagement:
    def test_add_comment(self, client: TestClient, db_session: Session, make_post):
        post = make_post("Commentable")
        response = client.post(
            f"/api/blogs/{post.id}/comments",
            json={"name": " Ann ", "email": "Ann@Example.com", "content": " Great "},
        )
        assert response.status_code == 201
        comment = response.json()["data"]["comment"]
        assert comment["authorName"] == "Ann"
        assert comment["authorEmail"] == "ann@example.com"
        assert comment["content"] == "Great"
        assert comment["isApproved"] is True
        assert db_session.query(Comment).count() == 1

    @pytest.mark.parametrize(
        "body",
        [{"content": "no name"}, {"name": "No content"}, {"name": " ", "content": " "}],
    )
    def test_comment_requires_name_and_content(
        self, client: TestClient, make_post, body
    ):
        post = make_post("Strict")
        response = client.post(f"/api/blogs/{post.id}/comments", json=body)
        assert response.status_code == 400

    def test_comment_too_long(self, client: TestClient, make_post):
        post = make_post("Long")
        response = client.post(
            f"/api/blogs/{post.id}/comments",
            json={"name": "Ann", "content": "x" * 1001},
        )
        assert response.status_code == 400

    @pytest.mark.parametrize(
        ("content", "expected"),
        [("x" * 1000, 201), ("x" * 999 + "  ", 400), ("  " + "x" * 999, 400)],
    )
    def test_comment_length_counts_surrounding_whitespace(
        self, client: TestClient, make_post, content, expected
    ):
        post = make_post("Padded")
        response = client.post(
            f"/api/blogs/{post.id}/comments",
            json={"name": "Ann", "content": content},
        )
        assert response.status_code == expected

    def test_comment_on_draft(self, client: TestClient, make_post):
        post = make_post("Closed", status=PostStatus.DRAFT)
        response = client.post(
            f"/api/blogs/{post.id}/comments", json={"name": "Ann", "content": "Hi"}
        )
        assert response.status_code == 404

    def test_like(self, client: TestClient, make_post):
        post = make_post("Likeable", likes=4)
        response = client.post(f"/api/blogs/{post.id}/like")
        assert response.status_code == 200
        assert response.json()["data"] == {"likes": 5}

    def test_like_draft(self, client: TestClient, make_post):
        post = make_post("Unlikeable", status=PostStatus.DRAFT)
        assert client.post(f"/api/blogs/{post.id}/like").status_code == 404


# Admin access control
class TestAdminAccess:
    def test_create_requires_token(self, client: TestClient, db_session: Session):
        response = client.post("/api/blogs", json=_post_body())
        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_admin_list_requires_token(self, client: TestClient, db_session: Session):
        assert client.get("/api/blogs/admin/all").status_code == 401

    def test_garbage_token(self, client: TestClient, db_session: Session):
        response = client.delete(
            "/api/blogs/1", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401


class TestAdminCrud:
    def test_create_json(self, admin_client: TestClient, admin_user):
        response = admin_client.post("/api/blogs", json=_post_body(status="published"))
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["slug"] == "created-via-api"
        assert data["tags"] == ["python", "fastapi"]
        assert data["readTime"] == 2
        assert data["authorName"] == admin_user.name
        assert data["authorId"] == str(admin_user.id)
        assert data["publishedAt"] is not None

    def test_create_defaults_to_draft(self, admin_client: TestClient):
        data = admin_client.post("/api/blogs", json=_post_body()).json()["data"]
        assert data["status"] == "draft"
        assert data["publishedAt"] is None

    @pytest.mark.parametrize("missing", ["title", "excerpt", "content", "category"])
    def test_create_missing_field(self, admin_client: TestClient, missing):
        body = _post_body()
        del body[missing]
        response = admin_client.post("/api/blogs", json=body)
        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Validation failed"
        assert missing in [e["field"] for e in body["data"]["errors"]]

    def test_create_slug_collision(self, admin_client: TestClient, make_post):
        make_post("Created Via API")
        data = admin_client.post("/api/blogs", json=_post_body()).json()["data"]
        assert data["slug"].startswith("created-via-api-")
        assert data["slug"] != "created-via-api"

    def test_create_with_image_url(self, admin_client: TestClient):
        body = _post_body(featuredImage="https://cdn.example.com/cover.png")
        data = admin_client.post("/api/blogs", json=body).json()["data"]
        assert data["featuredImage"] == {
            "url": "https://cdn.example.com/cover.png",
            "publicId": None,
            "alt": "Created Via API",
        }

    def test_create_multipart_with_upload(self, admin_client: TestClient):
        response = admin_client.post(
            "/api/blogs",
            data=_post_body(),
            files={"featuredImage": ("cover.png", io.BytesIO(PNG_BYTES), "image/png")},
        )
        assert response.status_code == 201
        image = response.json()["data"]["featuredImage"]
        assert image["publicId"].endswith(".png")
        assert image["url"].endswith(f"/uploads/{image['publicId']}")

    def test_create_multipart_rejects_non_image(self, admin_client: TestClient):
        response = admin_client.post(
            "/api/blogs",
            data=_post_body(),
            files={"featuredImage": ("notes.txt", io.BytesIO(b"text"), "text/plain")},
        )
        assert response.status_code == 400

    def test_admin_list_all_statuses(self, admin_client: TestClient, make_post):
        make_post("Pub")
        make_post("Draft", status=PostStatus.DRAFT)
        body = admin_client.get("/api/blogs/admin/all").json()
        assert {p["title"] for p in body["data"]} == {"Pub", "Draft"}

        drafts = admin_client.get("/api/blogs/admin/all?status=draft").json()["data"]
        assert [p["title"] for p in drafts] == ["Draft"]

    def test_admin_get_by_id(self, admin_client: TestClient, make_post):
        post = make_post("Private", status=PostStatus.DRAFT)
        response = admin_client.get(f"/api/blogs/admin/{post.id}")
        assert response.status_code == 200
        assert response.json()["data"]["title"] == "Private"

    def test_admin_get_invalid_id(self, admin_client: TestClient):
        response = admin_client.get("/api/blogs/admin/not-a-number")
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid blog ID"

    def test_admin_get_missing(self, admin_client: TestClient):
        assert admin_client.get("/api/blogs/admin/9999").status_code == 404

    def test_update_partial(
        self, admin_client: TestClient, db_session: Session, make_post
    ):
        post = make_post("Original Title", tags=["old"])
        response = admin_client.put(
            f"/api/blogs/{post.id}",
            json={"title": "Renamed Title", "excerpt": "", "tags": "new, tags"},
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["title"] == "Renamed Title"
        assert data["slug"] == "renamed-title"
        assert data["excerpt"] == "A short excerpt"
        assert data["tags"] == ["new", "tags"]

    def test_update_title_collision(self, admin_client: TestClient, make_post):
        make_post("Taken")
        post = make_post("Free")
        data = admin_client.put(f"/api/blogs/{post.id}", json={"title": "Taken"}).json()
        assert data["data"]["slug"].startswith("taken-")

    def test_update_publish_then_unpublish_keeps_date(
        self, admin_client: TestClient, make_post
    ):
        post = make_post("Toggle", status=PostStatus.DRAFT)
        first = admin_client.put(
            f"/api/blogs/{post.id}", json={"status": "published"}
        ).json()["data"]["publishedAt"]
        assert first is not None
        admin_client.put(f"/api/blogs/{post.id}", json={"status": "draft"})
        again = admin_client.put(
            f"/api/blogs/{post.id}", json={"status": "published"}
        ).json()["data"]["publishedAt"]
        assert again == first

    def test_update_recomputes_read_time(self, admin_client: TestClient, make_post):
        post = make_post("Short")
        data = admin_client.put(
            f"/api/blogs/{post.id}", json={"content": "word " * 601}
        ).json()["data"]
        assert data["readTime"] == 4

    def test_update_image_url_clears_public_id(
        self, admin_client: TestClient, make_post
    ):
        post = make_post(
            "Pictured",
            featured_image_url="https://cdn.example.com/old.png",
            featured_image_public_id="blog/old.png",
        )
        data = admin_client.put(
            f"/api/blogs/{post.id}",
            json={"featuredImage": "https://cdn.example.com/new.png"},
        ).json()["data"]
        assert data["featuredImage"]["url"] == "https://cdn.example.com/new.png"
        assert data["featuredImage"]["publicId"] is None

    def test_update_upload_discards_old_image(
        self, admin_client: TestClient, make_post, monkeypatch
    ):
        discarded = []

        async def fake_discard(public_id):
            discarded.append(public_id)

        monkeypatch.setattr("inkwell.routers.blogs.discard_image", fake_discard)
        post = make_post(
            "Replace Me",
            featured_image_url="http://127.0.0.1:8000/uploads/old.png",
            featured_image_public_id="old.png",
        )
        response = admin_client.put(
            f"/api/blogs/{post.id}",
            files={"featuredImage": ("new.png", io.BytesIO(PNG_BYTES), "image/png")},
        )
        assert response.status_code == 200
        assert discarded == ["old.png"]
        assert response.json()["data"]["featuredImage"]["publicId"] != "old.png"

    def test_update_missing(self, admin_client: TestClient):
        assert admin_client.put("/api/blogs/4242", json={"title": "x"}).status_code == 404

    def test_delete(
        self, admin_client: TestClient, db_session: Session, make_post, monkeypatch
    ):
        discarded = []

        async def fake_discard(public_id):
            discarded.append(public_id)

        monkeypatch.setattr("inkwell.routers.blogs.discard_image", fake_discard)
        post = make_post("Doomed", featured_image_public_id="blog/doomed.png")
        post.add_comment(name="Ann", content="bye")
        db_session.commit()
        post_id = post.id

        response = admin_client.delete(f"/api/blogs/{post_id}")
        assert response.status_code == 200
        assert response.json()["data"] is None
        assert discarded == ["blog/doomed.png"]

        db_session.expire_all()
        assert db_session.query(Post).filter(Post.id == post_id).first() is None
        assert db_session.query(Comment).count() == 0

    def test_delete_missing(self, admin_client: TestClient):
        assert admin_client.delete("/api/blogs/4242").status_code == 404
