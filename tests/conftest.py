import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import melhik.models  # noqa: F401
from melhik.db.base import Base
from melhik.db.session import get_db
from melhik.main import app
from melhik.models import User
from melhik.models.common import from_millis
from melhik.schemas import ReligionCreate, TopicCreate, TopicDetailCreate
from melhik.services import content
from melhik.utils.security import hash_password, issue_token


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _make_user(db, username, role, password="secret123", permissions=None):
    user = User(username=username, password_hash=hash_password(password), role=role, status="active")
    user.set_permission_overrides(permissions)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _headers(user):
    return {"Authorization": f"Bearer {issue_token(user.id, user.username, user.role)}"}


@pytest.fixture
def admin(db):
    return _make_user(db, "admin", "admin")


@pytest.fixture
def manager(db):
    return _make_user(db, "editor", "content_manager")


@pytest.fixture
def admin_headers(admin):
    return _headers(admin)


@pytest.fixture
def manager_headers(manager):
    return _headers(manager)


@pytest.fixture
def make_user(db):
    def _factory(username, role="content_manager", **kwargs):
        return _make_user(db, username, role, **kwargs)

    return _factory


@pytest.fixture
def auth_headers():
    return _headers


@pytest.fixture
def published_tree(db):
    """
    One published religion -> topic -> content chain, built through the
    content service the way the API builds it.
    """

    def _build(name="Islam", title="Is the Bible corrupted?", publish=True):
        religion = content.create_religion(db, ReligionCreate(name=name, nameEn=name))
        topic = content.create_topic(db, TopicCreate(religionId=religion.id, title=title))
        detail = content.create_content(
            db,
            topic.id,
            TopicDetailCreate(
                explanation="The manuscript record is strong.",
                bibleVerses=["Isaiah 40:8"],
                keyPoints=["Early manuscripts"],
                references=[{"verse": "Isaiah 40:8", "text": "The word of our God stands", "explanation": "Preserved"}],
            ),
        )
        if publish:
            content.publish_religion(db, religion.id)
            content.publish_topic(db, topic.id)
            content.publish_content(db, topic.id)
        return religion, topic, detail

    return _build


@pytest.fixture
def stamp(db):
    """Pin updated_at of rows to a known millisecond so watermark maths is exact."""

    def _stamp(ms, *rows):
        for row in rows:
            row.updated_at = from_millis(ms)
        db.commit()

    return _stamp
