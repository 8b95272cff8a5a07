# melhik/services/sync.py
"""
Snapshot/delta feed for mobile clients, plus the operator-facing statistics.

Membership rules:
  * only rows with sync_status == "synced" are ever delivered
  * lastSync == 0  -> full snapshot, nested religion -> topics -> detail
  * lastSync  > 0  -> each level filtered on its *own* updated_at > lastSync,
                      so a detail may arrive without its (unchanged) topic
The new watermark is server "now" taken before any query runs; a row written
while the feed is being built lands above it and is picked up next time.
"""
from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from melhik.errors import ValidationError
from melhik.models import Religion, Topic, TopicDetail
from melhik.models.common import SyncStatus, _now_utc, as_utc, from_millis, iso, to_millis
from melhik.services.records import religion_record, topic_detail_record, topic_record

logger = logging.getLogger(__name__)

FULL = "full"
INCREMENTAL = "incremental"

RECENT_ACTIVITY_LIMIT = 5
RECENT_CHANGES_WINDOW = dt.timedelta(hours=24)

# 9999-12-31T23:59:59.999Z
MAX_WATERMARK = 253_402_300_799_999

_SYNCED = SyncStatus.SYNCED.value
_DRAFT = SyncStatus.DRAFT.value


def parse_watermark(raw: Optional[str]) -> int:
    """
    `lastSync` query value -> non-negative milliseconds since epoch.
    Missing or empty means 0 (full sync). Anything that is not a plain
    non-negative integer is rejected.
    """
    if raw is None:
        return 0
    value = str(raw).strip()
    if value == "":
        return 0
    if not (value.isascii() and value.isdigit()):
        raise ValidationError(
            "lastSync must be a non-negative integer (milliseconds since epoch)",
            details={"lastSync": raw},
        )
    ms = int(value)
    if ms > MAX_WATERMARK:
        raise ValidationError("lastSync is out of range", details={"lastSync": raw})
    return ms


def content_version(db: Session) -> int:
    """Highest TopicDetail.version in the store, or 1 when there is none."""
    return db.query(func.max(TopicDetail.version)).scalar() or 1


@dataclass
class Feed:
    sync_type: str
    sync_timestamp: int
    generated_at: dt.datetime
    version: int
    religions: List[dict] = field(default_factory=list)
    topics: List[dict] = field(default_factory=list)
    topic_details: List[dict] = field(default_factory=list)

    def counts(self) -> dict:
        return {
            "religions": len(self.religions),
            "topics": len(self.topics),
            "topicDetails": len(self.topic_details),
        }

    def as_dict(self) -> dict:
        return {
            "version": self.version,
            "lastUpdated": iso(self.generated_at),
            "syncTimestamp": self.sync_timestamp,
            "syncType": self.sync_type,
            "religions": self.religions,
            "topics": self.topics,
            "topicDetails": self.topic_details,
        }


def _full_snapshot(db: Session, feed: Feed) -> None:
    religions = (
        db.query(Religion)
        .options(selectinload(Religion.topics).selectinload(Topic.details))
        .filter(Religion.sync_status == _SYNCED)
        .order_by(Religion.name.asc(), Religion.id.asc())
        .all()
    )
    for religion in religions:
        feed.religions.append(religion_record(religion))
        for topic in religion.topics:
            if not topic.is_synced:
                continue
            feed.topics.append(topic_record(topic))
            if topic.details is not None and topic.details.is_synced:
                feed.topic_details.append(topic_detail_record(topic.details))


def _delta(db: Session, feed: Feed, since: dt.datetime) -> None:
    religions = (
        db.query(Religion)
        .filter(Religion.sync_status == _SYNCED, Religion.updated_at > since)
        .order_by(Religion.name.asc(), Religion.id.asc())
        .all()
    )
    topics = (
        db.query(Topic)
        .filter(Topic.sync_status == _SYNCED, Topic.updated_at > since)
        .order_by(Topic.id.asc())
        .all()
    )
    details = (
        db.query(TopicDetail)
        .filter(TopicDetail.sync_status == _SYNCED, TopicDetail.updated_at > since)
        .order_by(TopicDetail.id.asc())
        .all()
    )
    feed.religions.extend(religion_record(r) for r in religions)
    feed.topics.extend(topic_record(t) for t in topics)
    feed.topic_details.extend(topic_detail_record(d) for d in details)


def build_feed(db: Session, last_sync: int, *, now: Optional[dt.datetime] = None) -> Feed:
    """Everything published that a client holding `last_sync` does not have yet."""
    now = as_utc(now) if now is not None else _now_utc()
    feed = Feed(
        sync_type=FULL if last_sync == 0 else INCREMENTAL,
        sync_timestamp=to_millis(now),
        generated_at=now,
        version=content_version(db),
    )
    if feed.sync_type == FULL:
        _full_snapshot(db, feed)
    else:
        _delta(db, feed, from_millis(last_sync))
    return feed


# ================= operator statistics =================
def _counts(db: Session) -> dict:
    religions = db.query(func.count(Religion.id)).scalar() or 0
    topics = db.query(func.count(Topic.id)).scalar() or 0
    details = db.query(func.count(TopicDetail.id)).scalar() or 0
    return {
        "religions": religions,
        "topics": topics,
        "topicDetails": details,
        "totalItems": religions + topics + details,
    }


def _draft_count(db: Session) -> int:
    return sum(
        db.query(func.count(model.id)).filter(model.sync_status == _DRAFT).scalar() or 0
        for model in (Religion, Topic, TopicDetail)
    )


def _last_published(db: Session, fallback: dt.datetime) -> dt.datetime:
    stamps = [
        as_utc(db.query(func.max(model.updated_at)).filter(model.sync_status == _SYNCED).scalar())
        for model in (Religion, Topic, TopicDetail)
    ]
    stamps = [s for s in stamps if s is not None]
    return max(stamps) if stamps else fallback


def recent_activity(db: Session, limit: int = RECENT_ACTIVITY_LIMIT) -> List[dict]:
    rows = (
        db.query(TopicDetail, Topic.title, Religion.name)
        .join(Topic, TopicDetail.topic_id == Topic.id)
        .join(Religion, Topic.religion_id == Religion.id)
        .filter(TopicDetail.sync_status == _SYNCED)
        .order_by(TopicDetail.updated_at.desc(), TopicDetail.id.desc())
        .limit(limit)
        .all()
    )
    return [
        {
            "id": detail.id,
            "topicId": detail.topic_id,
            "topicTitle": title,
            "religionName": religion_name,
            "version": detail.version,
            "updatedAt": iso(detail.updated_at),
            "syncStatus": detail.sync_status,
        }
        for detail, title, religion_name in rows
    ]


def sync_health(statistics: dict, drafts: int) -> dict:
    total = statistics["totalItems"]
    if total == 0:
        status = "empty"
    elif drafts > 0:
        status = "pending"
    else:
        status = "healthy"
    return {"status": status, "publishedItems": total - drafts, "draftItems": drafts}


def status_report(db: Session, *, now: Optional[dt.datetime] = None) -> dict:
    """
    Served without a token, so only published rows show up by name. Devices
    compare `lastUpdated` with their watermark to decide whether to download.
    """
    now = now or _now_utc()
    statistics = _counts(db)
    return {
        "version": content_version(db),
        "lastUpdated": iso(_last_published(db, now)),
        "serverTime": iso(now),
        "statistics": statistics,
        "recentActivity": recent_activity(db),
        "syncHealth": sync_health(statistics, _draft_count(db)),
    }


def _recent_changes(db: Session, since: dt.datetime) -> dict:
    religions = db.query(func.count(Religion.id)).filter(Religion.updated_at >= since).scalar() or 0
    topics = db.query(func.count(Topic.id)).filter(Topic.updated_at >= since).scalar() or 0
    details = db.query(func.count(TopicDetail.id)).filter(TopicDetail.updated_at >= since).scalar() or 0
    return {
        "religions": religions,
        "topics": topics,
        "details": details,
        "total": religions + topics + details,
    }


def trigger_report(db: Session, triggered_by: str, *, now: Optional[dt.datetime] = None) -> dict:
    """
    Operator confirmation that content is ready. Nothing is pushed: clients
    pick changes up on their next feed call.
    """
    now = now or _now_utc()
    statistics = _counts(db)
    return {
        "timestamp": iso(now),
        "version": content_version(db),
        "statistics": statistics,
        "recentChanges": _recent_changes(db, now - RECENT_CHANGES_WINDOW),
        "status": "completed",
        "message": "Manual sync triggered successfully. Mobile apps will receive updates on next sync.",
        "triggeredBy": triggered_by,
        "mobileAppsNotified": 0,
        "dataSize": f"{round(statistics['totalItems'] * 0.5)}KB",
    }
