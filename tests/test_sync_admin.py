from melhik.models.common import from_millis, iso
from melhik.schemas import TopicCreate, TopicDetailCreate, TopicDetailUpdate
from melhik.services import content

T0 = 1_700_000_000_000


def test_status_reports_counts_and_recent_activity(client, published_tree, db):
    _, topic, _ = published_tree(name="Islam")
    published_tree(name="Judaism", title="Messiah")
    content.update_content(db, topic.id, TopicDetailUpdate(explanation="v2"))

    resp = client.get("/api/sync/status")

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["statistics"] == {"religions": 2, "topics": 2, "topicDetails": 2, "totalItems": 6}
    assert data["version"] == 2
    assert data["syncHealth"]["status"] == "healthy"

    latest = data["recentActivity"][0]
    assert latest["topicTitle"] == "Is the Bible corrupted?"
    assert latest["religionName"] == "Islam"
    assert latest["version"] == 2


def test_status_limits_recent_activity_to_five(client, published_tree, db):
    religion, _, _ = published_tree()
    for n in range(6):
        t = content.create_topic(db, TopicCreate(religionId=religion.id, title=f"Topic {n}"))
        content.publish_topic(db, t.id)
        content.create_content(db, t.id, TopicDetailCreate(explanation=f"body {n}"))
        content.publish_content(db, t.id)
    content.create_topic(db, TopicCreate(religionId=religion.id, title="Unfinished"))

    data = client.get("/api/sync/status").json()["data"]

    assert len(data["recentActivity"]) == 5
    assert data["syncHealth"] == {"status": "pending", "publishedItems": 15, "draftItems": 1}


def test_status_hides_drafts_from_activity_and_last_updated(client, published_tree, stamp, db):
    religion, topic, detail = published_tree()
    stamp(T0, religion, topic, detail)
    draft = content.create_topic(db, TopicCreate(religionId=religion.id, title="Secret draft"))
    content.create_content(db, draft.id, TopicDetailCreate(explanation="not ready"))

    data = client.get("/api/sync/status").json()["data"]

    assert [a["topicTitle"] for a in data["recentActivity"]] == ["Is the Bible corrupted?"]
    assert data["lastUpdated"] == iso(from_millis(T0))
    assert data["statistics"]["totalItems"] == 5


def test_status_on_empty_store(client):
    data = client.get("/api/sync/status").json()["data"]

    assert data["version"] == 1
    assert data["recentActivity"] == []
    assert data["syncHealth"]["status"] == "empty"


def test_status_needs_no_token(client, published_tree):
    published_tree()

    resp = client.get("/api/sync/status")

    assert resp.status_code == 200
    assert resp.json()["success"] is True


def test_trigger_is_an_inert_confirmation(client, admin, admin_headers, published_tree):
    published_tree()

    resp = client.post("/api/sync/trigger", headers=admin_headers)

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["status"] == "completed"
    assert data["triggeredBy"] == admin.username
    assert data["mobileAppsNotified"] == 0
    assert data["statistics"]["totalItems"] == 3
    assert data["recentChanges"]["total"] == 3
    assert data["dataSize"] == "2KB"


def test_trigger_needs_token(client):
    assert client.post("/api/sync/trigger").status_code == 401


def test_trigger_needs_manage_sync(client, manager_headers, make_user, auth_headers):
    editor_only = make_user("editor_only", permissions=["edit_content"])

    assert client.post("/api/sync/trigger", headers=manager_headers).status_code == 403
    assert client.post("/api/sync/trigger", headers=auth_headers(editor_only)).status_code == 403
