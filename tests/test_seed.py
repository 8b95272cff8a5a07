from melhik import seed
from melhik.models import Religion, Topic, TopicDetail, User
from melhik.services.sync import build_feed
from melhik.utils.security import verify_password


def test_ensure_admin_is_idempotent(db):
    first = seed.ensure_admin(db, "root", "s3cret-pass")
    again = seed.ensure_admin(db, "root", "other-pass")

    assert again.id == first.id
    assert db.query(User).count() == 1
    assert first.role == "admin"
    # an existing account keeps its password
    assert verify_password("s3cret-pass", again.password_hash)


def test_sample_is_inserted_once_and_published(db):
    seed.seed_sample(db)
    seed.seed_sample(db)

    assert db.query(Religion).count() == 1
    assert db.query(Topic).count() == 1
    assert db.query(TopicDetail).count() == 1

    feed = build_feed(db, 0)
    assert [r["name"] for r in feed.religions] == ["Islam"]
    assert feed.topics[0]["title"] == "Is the Bible corrupted?"
    assert feed.topic_details[0]["bibleVerses"] == ["Isaiah 40:8", "Matthew 24:35"]


def test_main_creates_tables_admin_and_sample(engine, session_factory, monkeypatch):
    monkeypatch.setattr(seed, "engine", engine)
    monkeypatch.setattr(seed, "SessionLocal", session_factory)

    seed.main(["--sample"])
    seed.main(["--sample"])

    db = session_factory()
    try:
        assert db.query(User).filter(User.username == seed.ADMIN_USERNAME).count() == 1
        assert db.query(Religion).count() == 1
    finally:
        db.close()
