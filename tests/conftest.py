"""Test fixtures for API and database."""

from __future__ import annotations

import os
import tempfile
import uuid
from pathlib import Path
from types import SimpleNamespace

TESTS_ROOT = Path(__file__).parent

# Configure the app *before* importing inkwell modules: settings, engines and
# the mailer are built at import time.
os.environ.setdefault("DATABASE_URL", "sqlite:///test_app.db")
os.environ.setdefault("EMAIL_ENABLED", "false")
os.environ.setdefault("NOTIFY_SEND_INTERVAL", "0")
os.environ.setdefault("STORAGE_BACKEND", "local")
os.environ.setdefault(
    "UPLOAD_DIR", str(Path(tempfile.gettempdir()) / "inkwell-test-uploads")
)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, close_all_sessions, sessionmaker  # noqa: E402

import inkwell.models.category  # noqa: E402,F401 - ensure metadata is populated
import inkwell.models.subscriber  # noqa: E402,F401
import inkwell.models.user  # noqa: E402,F401
from inkwell.auth import current_active_user, current_admin_user  # noqa: E402
from inkwell.database import Base  # noqa: E402
from inkwell.database import get_db as db_dependency  # noqa: E402
from inkwell.main import app  # noqa: E402
from inkwell.models.post import Post  # noqa: E402
from inkwell.schemas.post import PostStatus  # noqa: E402
from inkwell.security.rate_limit import limiter  # noqa: E402

# Disable rate limiting in tests to prevent cross-test 429 flakes
limiter.enabled = False

TEST_DB_PATH = Path("test_app.db")
TESTING_SESSION_FACTORY: sessionmaker | None = None


def _truncate(session: Session) -> None:
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()


@pytest.fixture(scope="session")
def client():
    global TESTING_SESSION_FACTORY
    if TEST_DB_PATH.exists():
        TEST_DB_PATH.unlink()

    engine = create_engine(
        f"sqlite:///{TEST_DB_PATH}",
        connect_args={"check_same_thread": False},
    )
    TESTING_SESSION_FACTORY = sessionmaker(
        bind=engine, autocommit=False, autoflush=False
    )
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = TESTING_SESSION_FACTORY()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[db_dependency] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.pop(db_dependency, None)
    close_all_sessions()
    engine.dispose()
    if TEST_DB_PATH.exists():
        TEST_DB_PATH.unlink()


@pytest.fixture
def db_session(client):
    if TESTING_SESSION_FACTORY is None:
        raise RuntimeError("Session factory not initialized")
    session = TESTING_SESSION_FACTORY()
    # Startup seeds categories and the admin account; every test starts empty.
    _truncate(session)
    try:
        yield session
    finally:
        session.rollback()
        _truncate(session)
        session.close()


@pytest.fixture
def admin_user():
    return SimpleNamespace(
        id=uuid.uuid4(),
        name="Test Admin",
        email="admin@example.com",
        role="admin",
        is_active=True,
        is_superuser=True,
    )


@pytest.fixture
def admin_client(client, db_session, admin_user):
    """Client whose requests are authenticated as an admin."""
    app.dependency_overrides[current_admin_user] = lambda: admin_user
    app.dependency_overrides[current_active_user] = lambda: admin_user
    try:
        yield client
    finally:
        app.dependency_overrides.pop(current_admin_user, None)
        app.dependency_overrides.pop(current_active_user, None)


@pytest.fixture
def make_post(db_session: Session):
    """Factory inserting posts straight through the ORM."""

    def _make(
        title: str = "Hello World",
        *,
        status: PostStatus = PostStatus.PUBLISHED,
        category: str = "Programming",
        tags: list[str] | None = None,
        content: str = "Some **markdown** content.",
        excerpt: str = "A short excerpt",
        **fields,
    ) -> Post:
        entry = Post(
            title=title,
            excerpt=excerpt,
            content=content,
            category=category,
            status=status.value,
            author_name="Test Admin",
            **fields,
        )
        entry.tag_list = tags or []
        db_session.add(entry)
        db_session.commit()
        db_session.refresh(entry)
        return entry

    return _make
