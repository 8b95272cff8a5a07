"""
Feed membership: full snapshot vs delta, drafts, watermark catch-up and
parent/child independence. Service-level tests pin timestamps; API tests go
through /api/sync/download with the real clock.
"""
import json

import pytest
from sqlalchemy.exc import OperationalError

from melhik.errors import ValidationError
from melhik.models.common import from_millis
from melhik.schemas import TopicCreate, TopicDetailCreate, TopicDetailUpdate
from melhik.services import content
from melhik.services.sync import FULL, INCREMENTAL, build_feed, parse_watermark

T0 = 1_700_000_000_000


def _ids(rows):
    return sorted(r["id"] for r in rows)


# ---------------- watermark parsing ----------------
@pytest.mark.parametrize("raw, expected", [(None, 0), ("", 0), ("0", 0), (" 42 ", 42)])
def test_parse_watermark_accepts_millis(raw, expected):
    assert parse_watermark(raw) == expected


@pytest.mark.parametrize("raw", ["abc", "-5", "1.5", "2024-01-01T00:00:00Z", "99999999999999999999"])
def test_parse_watermark_rejects_garbage(raw):
    with pytest.raises(ValidationError):
        parse_watermark(raw)


# ---------------- service level ----------------
def test_full_feed_is_flat_and_decoded(db, published_tree):
    religion, topic, detail = published_tree()

    feed = build_feed(db, 0)

    assert feed.sync_type == FULL
    assert _ids(feed.religions) == [religion.id]
    assert feed.topics[0]["religionId"] == religion.id
    d = feed.topic_details[0]
    assert d["topicId"] == topic.id
    assert d["bibleVerses"] == ["Isaiah 40:8"]
    assert d["keyPoints"] == ["Early manuscripts"]
    assert d["references"][0]["verse"] == "Isaiah 40:8"
    assert "topics" not in feed.religions[0]


def test_watermark_catch_up(db, published_tree, stamp):
    religion, topic, detail = published_tree()
    stamp(T0, religion, topic, detail)

    t1 = T0 + 10
    t2 = T0 + 1_000
    first = build_feed(db, t1, now=from_millis(t2))
    assert first.sync_timestamp == t2
    assert first.topic_details == []

    # edit after the client received t2
    content.update_content(db, topic.id, TopicDetailUpdate(explanation="Revised"))
    t3 = t2 + 500
    stamp(t3, detail)

    caught = build_feed(db, t2)
    assert caught.sync_type == INCREMENTAL
    assert _ids(caught.topic_details) == [detail.id]
    assert caught.topic_details[0]["explanation"] == "Revised"

    assert build_feed(db, t3 + 1).topic_details == []


def test_draft_detail_never_delivered(db, published_tree, stamp):
    religion, topic, _ = published_tree()
    draft_topic = content.create_topic(db, TopicCreate(religionId=religion.id, title="Trinity"))
    content.publish_topic(db, draft_topic.id)
    draft = content.create_content(db, draft_topic.id, TopicDetailCreate(explanation="work in progress"))
    stamp(T0 + 5_000, draft)

    full = build_feed(db, 0)
    assert draft.id not in _ids(full.topic_details)
    for watermark in (1, T0, T0 + 4_999):
        assert draft.id not in _ids(build_feed(db, watermark).topic_details)


def test_draft_parents_hide_whole_branch(db, published_tree):
    published_tree(name="Islam")
    published_tree(name="Hinduism", title="Karma", publish=False)

    feed = build_feed(db, 0)

    assert [r["name"] for r in feed.religions] == ["Islam"]
    assert len(feed.topics) == 1
    assert len(feed.topic_details) == 1


def test_detail_delivered_without_parent_topic(db, published_tree, stamp):
    religion, topic, detail = published_tree()
    stamp(T0, religion, topic, detail)

    content.update_content(db, topic.id, TopicDetailUpdate(keyPoints=["One", "Two"]))
    stamp(T0 + 2_000, detail)

    feed = build_feed(db, T0 + 1_999)

    assert feed.religions == []
    assert feed.topics == []
    assert _ids(feed.topic_details) == [detail.id]
    assert feed.topic_details[0]["topicId"] == topic.id


def test_feed_version_is_content_version(db, published_tree):
    _, topic, _ = published_tree()
    assert build_feed(db, 0).version == 1

    content.update_content(db, topic.id, TopicDetailUpdate(explanation="v2"))
    content.update_content(db, topic.id, TopicDetailUpdate(explanation="v3"))

    assert build_feed(db, 0).version == 3


def test_empty_store_reports_version_one(db):
    feed = build_feed(db, 0)
    assert feed.version == 1
    assert feed.counts() == {"religions": 0, "topics": 0, "topicDetails": 0}


# ---------------- API level ----------------
def test_download_full_twice_is_identical(client, published_tree):
    published_tree(name="Islam")
    published_tree(name="Judaism", title="Messiah")

    a = client.get("/api/sync/download", params={"lastSync": "0", "version": "1.0.0"}).json()
    b = client.get("/api/sync/download", params={"lastSync": "0"}).json()

    for key in ("religions", "topics", "topicDetails"):
        left = sorted(json.dumps(r, sort_keys=True) for r in a["data"][key])
        right = sorted(json.dumps(r, sort_keys=True) for r in b["data"][key])
        assert left == right
    assert a["data"]["syncType"] == "full"


def test_download_needs_no_token(client, published_tree):
    published_tree()

    resp = client.get("/api/sync/download")

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["syncTimestamp"] == body["data"]["syncTimestamp"]
    assert isinstance(body["syncTimestamp"], int)
    assert set(body["data"]) >= {"version", "lastUpdated", "syncType", "religions", "topics", "topicDetails"}


def test_download_incremental_picks_up_api_edit(client, published_tree, stamp, admin_headers):
    religion, topic, detail = published_tree()
    stamp(T0, religion, topic, detail)

    first = client.get("/api/sync/download", params={"lastSync": "0"}).json()
    watermark = first["syncTimestamp"]

    resp = client.put(
        f"/api/topics/{topic.id}/content",
        json={"explanation": "Edited after the first sync"},
        headers=admin_headers,
    )
    assert resp.status_code == 200

    delta = client.get("/api/sync/download", params={"lastSync": str(watermark)}).json()
    assert delta["data"]["syncType"] == "incremental"
    assert [d["id"] for d in delta["data"]["topicDetails"]] == [detail.id]
    assert delta["data"]["topics"] == []
    assert delta["syncTimestamp"] >= watermark


def test_download_rejects_non_numeric_watermark(client):
    resp = client.get("/api/sync/download", params={"lastSync": "yesterday"})

    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Invalid input"
    assert "timestamp" in body


def test_download_store_failure_is_500_without_data(client, monkeypatch):
    def _boom(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    monkeypatch.setattr("melhik.routers.sync.build_feed", _boom)

    resp = client.get("/api/sync/download")

    assert resp.status_code == 500
    body = resp.json()
    assert set(body) == {"error", "message", "timestamp"}
    assert "locked" not in body["message"]
