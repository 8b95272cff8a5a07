# melhik/seed.py
"""
Create tables, an admin account and (optionally) a small published sample.

    python -m melhik.seed            # tables + admin
    python -m melhik.seed --sample   # ... plus one religion/topic/content
"""
from __future__ import annotations

import argparse
import logging
import os

from dotenv import load_dotenv
from sqlalchemy.orm import Session

from melhik.db.base import Base
from melhik.db.session import SessionLocal, engine
from melhik.models import Religion, Topic, TopicDetail, User
from melhik.models.common import SyncStatus
from melhik.utils.jsonfields import encode_list
from melhik.utils.logging import setup_logging
from melhik.utils.security import hash_password

load_dotenv()

logger = logging.getLogger(__name__)

ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")


def ensure_admin(db: Session, username: str = ADMIN_USERNAME, password: str = ADMIN_PASSWORD) -> User:
    user = db.query(User).filter(User.username == username).first()
    if user:
        logger.info("Admin %r already exists", username)
        return user
    user = User(username=username, password_hash=hash_password(password), role="admin", status="active")
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created admin %r", username)
    return user


def seed_sample(db: Session) -> None:
    if db.query(Religion.id).filter(Religion.name == "Islam").first():
        logger.info("Sample content already present")
        return

    synced = SyncStatus.SYNCED.value
    religion = Religion(
        name="Islam",
        name_en="Islam",
        description="Answers to common questions from Muslim friends",
        color="#2E7D32",
        sync_status=synced,
    )
    topic = Topic(
        religion=religion,
        title="Is the Bible corrupted?",
        title_en="Is the Bible corrupted?",
        description="Manuscript evidence for the reliability of Scripture",
        sync_status=synced,
    )
    detail = TopicDetail(
        topic=topic,
        explanation="The manuscript record shows the text has been faithfully transmitted.",
        bible_verses=encode_list(["Isaiah 40:8", "Matthew 24:35"]),
        key_points=encode_list(["Thousands of early manuscripts", "Dead Sea Scrolls match later copies"]),
        references=encode_list(
            [
                {
                    "verse": "Isaiah 40:8",
                    "text": "The grass withers, the flower fades, but the word of our God will stand forever.",
                    "explanation": "God preserves His word.",
                }
            ]
        ),
        version=1,
        sync_status=synced,
    )
    db.add_all([religion, topic, detail])
    db.commit()
    logger.info("Seeded sample religion/topic/content")


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Initialise the Melhik CMS database")
    parser.add_argument("--sample", action="store_true", help="also insert published sample content")
    args = parser.parse_args(argv)

    setup_logging()
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        ensure_admin(db)
        if args.sample:
            seed_sample(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
