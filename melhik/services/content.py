# melhik/services/content.py
"""
Authoring operations on the content store.

Everything that writes Religion/Topic/TopicDetail goes through here so the
store invariants hold in one place:
  * new rows start as drafts; only publish_* promotes them
  * every mutation refreshes updated_at (delta membership depends on it)
  * TopicDetail.version starts at 1 and goes up by exactly 1 per update
  * parents with children cannot be deleted
  * a row can only be published once its parent is published
"""
from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from melhik.errors import ConflictError, DependentRecordsError, NotFound, ValidationError
from melhik.models import Religion, Topic, TopicDetail
from melhik.models.common import SyncStatus, _now_utc
from melhik.schemas import (
    ReligionCreate,
    ReligionUpdate,
    TopicCreate,
    TopicDetailCreate,
    TopicDetailUpdate,
    TopicUpdate,
)
from melhik.utils.jsonfields import encode_list

logger = logging.getLogger(__name__)


def _touch(row) -> None:
    row.updated_at = _now_utc()


def _commit(db: Session, conflict_message: str) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError(conflict_message) from e


def _references(items) -> Optional[list]:
    if items is None:
        return None
    return [ref.model_dump() for ref in items]


# ================= religions =================
def list_religions(db: Session) -> List[Religion]:
    return (
        db.query(Religion)
        .options(selectinload(Religion.topics))
        .order_by(Religion.name.asc())
        .all()
    )


def get_religion(db: Session, religion_id: int, *, with_tree: bool = False) -> Religion:
    q = db.query(Religion).filter(Religion.id == religion_id)
    if with_tree:
        q = q.options(selectinload(Religion.topics).selectinload(Topic.details))
    religion = q.first()
    if not religion:
        raise NotFound("Religion not found")
    return religion


def create_religion(db: Session, data: ReligionCreate) -> Religion:
    if db.query(Religion.id).filter(Religion.name == data.name).first():
        raise ConflictError("Religion with this name already exists")

    religion = Religion(
        name=data.name,
        name_en=data.name_en,
        description=data.description,
        color=data.color,
        icon=data.icon,
        sync_status=SyncStatus.DRAFT.value,
    )
    db.add(religion)
    _commit(db, "Religion with this name already exists")
    db.refresh(religion)
    logger.info("Created religion %s (%s)", religion.id, religion.name)
    return religion


def update_religion(db: Session, religion_id: int, data: ReligionUpdate) -> Religion:
    religion = get_religion(db, religion_id)
    changes = data.model_dump(exclude_unset=True)

    new_name = changes.get("name")
    if new_name and new_name != religion.name:
        taken = (
            db.query(Religion.id)
            .filter(Religion.name == new_name, Religion.id != religion.id)
            .first()
        )
        if taken:
            raise ConflictError("Religion with this name already exists")

    for key, val in changes.items():
        if key in ("name", "color") and val is None:
            continue  # required columns
        setattr(religion, key, val)
    _touch(religion)

    _commit(db, "Religion with this name already exists")
    db.refresh(religion)
    return religion


def delete_religion(db: Session, religion_id: int) -> None:
    religion = get_religion(db, religion_id)
    if db.query(Topic.id).filter(Topic.religion_id == religion.id).first():
        raise DependentRecordsError("Cannot delete religion with existing topics")
    db.delete(religion)
    db.commit()
    logger.info("Deleted religion %s", religion_id)


def publish_religion(db: Session, religion_id: int) -> Religion:
    religion = get_religion(db, religion_id)
    if not religion.is_synced:
        religion.sync_status = SyncStatus.SYNCED.value
        _touch(religion)
        db.commit()
        db.refresh(religion)
        logger.info("Published religion %s", religion.id)
    return religion


# ================= topics =================
def list_topics(db: Session, religion_id: Optional[int] = None) -> List[Topic]:
    q = db.query(Topic).options(selectinload(Topic.religion), selectinload(Topic.details))
    if religion_id is not None:
        q = q.filter(Topic.religion_id == religion_id)
    return q.order_by(Topic.created_at.desc(), Topic.id.desc()).all()


def get_topic(db: Session, topic_id: int) -> Topic:
    topic = (
        db.query(Topic)
        .options(selectinload(Topic.religion), selectinload(Topic.details))
        .filter(Topic.id == topic_id)
        .first()
    )
    if not topic:
        raise NotFound("Topic not found")
    return topic


def create_topic(db: Session, data: TopicCreate) -> Topic:
    if not db.get(Religion, data.religion_id):
        raise NotFound("Religion not found")

    topic = Topic(
        religion_id=data.religion_id,
        title=data.title,
        title_en=data.title_en,
        description=data.description,
        image_url=(data.image_url or None),
        image_alt=data.image_alt,
        sync_status=SyncStatus.DRAFT.value,
    )
    db.add(topic)
    db.commit()
    db.refresh(topic)
    logger.info("Created topic %s under religion %s", topic.id, topic.religion_id)
    return topic


def update_topic(db: Session, topic_id: int, data: TopicUpdate) -> Topic:
    topic = get_topic(db, topic_id)
    changes = data.model_dump(exclude_unset=True)

    new_religion_id = changes.get("religion_id")
    if new_religion_id is not None and new_religion_id != topic.religion_id:
        target = db.get(Religion, new_religion_id)
        if not target:
            raise NotFound("Religion not found")
        if topic.is_synced and not target.is_synced:
            raise ValidationError("A published topic cannot move under an unpublished religion")

    for key, val in changes.items():
        if key in ("religion_id", "title") and val is None:
            continue
        if key == "image_url":
            val = val or None
        setattr(topic, key, val)
    _touch(topic)

    db.commit()
    db.refresh(topic)
    return topic


def delete_topic(db: Session, topic_id: int) -> None:
    topic = get_topic(db, topic_id)
    if topic.details is not None:
        raise DependentRecordsError("Cannot delete topic with existing content. Delete the content first.")
    db.delete(topic)
    db.commit()
    logger.info("Deleted topic %s", topic_id)


def publish_topic(db: Session, topic_id: int) -> Topic:
    topic = get_topic(db, topic_id)
    if not topic.religion.is_synced:
        raise ValidationError("Publish the religion before publishing its topics")
    if not topic.is_synced:
        topic.sync_status = SyncStatus.SYNCED.value
        _touch(topic)
        db.commit()
        db.refresh(topic)
        logger.info("Published topic %s", topic.id)
    return topic


# ================= topic content =================
def get_content(db: Session, topic_id: int) -> TopicDetail:
    topic = get_topic(db, topic_id)
    if topic.details is None:
        raise NotFound("Content not found")
    return topic.details


def create_content(db: Session, topic_id: int, data: TopicDetailCreate) -> TopicDetail:
    topic = get_topic(db, topic_id)
    if topic.details is not None:
        raise ConflictError("Content already exists for this topic. Use PUT to update.")

    detail = TopicDetail(
        topic_id=topic.id,
        explanation=data.explanation,
        bible_verses=encode_list(data.bible_verses),
        key_points=encode_list(data.key_points),
        references=encode_list(_references(data.references)),
        version=1,
        sync_status=SyncStatus.DRAFT.value,
    )
    db.add(detail)
    _commit(db, "Content already exists for this topic. Use PUT to update.")
    db.refresh(detail)
    logger.info("Created content %s for topic %s", detail.id, topic.id)
    return detail


def update_content(db: Session, topic_id: int, data: TopicDetailUpdate) -> TopicDetail:
    topic = get_topic(db, topic_id)
    detail = topic.details
    if detail is None:
        raise NotFound("Content not found for this topic. Use POST to create.")

    # Omitted list fields keep their stored value; an explicit [] clears them.
    if data.explanation is not None:
        detail.explanation = data.explanation
    if data.bible_verses is not None:
        detail.bible_verses = encode_list(data.bible_verses)
    if data.key_points is not None:
        detail.key_points = encode_list(data.key_points)
    if data.references is not None:
        detail.references = encode_list(_references(data.references))

    detail.version = detail.version + 1
    _touch(detail)

    db.commit()
    db.refresh(detail)
    logger.info("Updated content for topic %s -> v%s", topic.id, detail.version)
    return detail


def delete_content(db: Session, topic_id: int) -> None:
    detail = get_content(db, topic_id)
    db.delete(detail)
    db.commit()
    logger.info("Deleted content for topic %s", topic_id)


def publish_content(db: Session, topic_id: int) -> TopicDetail:
    detail = get_content(db, topic_id)
    if not detail.topic.is_synced:
        raise ValidationError("Publish the topic before publishing its content")
    if not detail.is_synced:
        detail.sync_status = SyncStatus.SYNCED.value
        _touch(detail)
        db.commit()
        db.refresh(detail)
        logger.info("Published content for topic %s", topic_id)
    return detail
