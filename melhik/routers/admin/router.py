# melhik/routers/admin/router.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from melhik.db.session import get_db
from melhik.schemas import (
    ReligionCreate,
    ReligionUpdate,
    TopicCreate,
    TopicDetailCreate,
    TopicDetailUpdate,
    TopicUpdate,
)
from melhik.services import content
from melhik.services.records import religion_admin, topic_admin, topic_detail_admin
from melhik.utils.authz import Identity, Permission, require_permission

router = APIRouter(prefix="/api", tags=["admin"])


def _ok(data, status_code: int = 200):
    return JSONResponse({"success": True, "data": data}, status_code=status_code)


def _done(message: str):
    return {"success": True, "message": message}


# --------------- Religions ----------------
@router.get("/religions")
def religions_list(
    db: Session = Depends(get_db),
    _: Identity = Depends(require_permission(Permission.VIEW_RELIGIONS)),
):
    return _ok([religion_admin(r, with_topics=True) for r in content.list_religions(db)])


@router.post("/religions")
def religions_create(
    payload: ReligionCreate,
    db: Session = Depends(get_db),
    _: Identity = Depends(require_permission(Permission.CREATE_RELIGIONS)),
):
    religion = content.create_religion(db, payload)
    return _ok(religion_admin(religion), status_code=201)


@router.get("/religions/{religion_id}")
def religions_get(
    religion_id: int,
    db: Session = Depends(get_db),
    _: Identity = Depends(require_permission(Permission.VIEW_RELIGIONS)),
):
    religion = content.get_religion(db, religion_id, with_tree=True)
    return _ok(religion_admin(religion, with_topics=True, with_details=True))


@router.put("/religions/{religion_id}")
def religions_update(
    religion_id: int,
    payload: ReligionUpdate,
    db: Session = Depends(get_db),
    _: Identity = Depends(require_permission(Permission.EDIT_RELIGIONS)),
):
    return _ok(religion_admin(content.update_religion(db, religion_id, payload)))


@router.delete("/religions/{religion_id}")
def religions_delete(
    religion_id: int,
    db: Session = Depends(get_db),
    _: Identity = Depends(require_permission(Permission.DELETE_RELIGIONS)),
):
    content.delete_religion(db, religion_id)
    return _done("Religion deleted successfully")


@router.post("/religions/{religion_id}/publish")
def religions_publish(
    religion_id: int,
    db: Session = Depends(get_db),
    _: Identity = Depends(require_permission(Permission.MANAGE_SYNC)),
):
    return _ok(religion_admin(content.publish_religion(db, religion_id)))
# -----------------------------------------


# --------------- Topics -------------------
@router.get("/topics")
def topics_list(
    religion_id: Optional[int] = Query(default=None, alias="religionId"),
    db: Session = Depends(get_db),
    _: Identity = Depends(require_permission(Permission.VIEW_TOPICS)),
):
    topics = content.list_topics(db, religion_id=religion_id)
    return _ok([topic_admin(t, with_religion=True) for t in topics])


@router.post("/topics")
def topics_create(
    payload: TopicCreate,
    db: Session = Depends(get_db),
    _: Identity = Depends(require_permission(Permission.CREATE_TOPICS)),
):
    topic = content.create_topic(db, payload)
    return _ok(topic_admin(topic, with_religion=True), status_code=201)


@router.get("/topics/{topic_id}")
def topics_get(
    topic_id: int,
    db: Session = Depends(get_db),
    _: Identity = Depends(require_permission(Permission.VIEW_TOPICS)),
):
    topic = content.get_topic(db, topic_id)
    return _ok(topic_admin(topic, with_religion=True, with_details=True))


@router.put("/topics/{topic_id}")
def topics_update(
    topic_id: int,
    payload: TopicUpdate,
    db: Session = Depends(get_db),
    _: Identity = Depends(require_permission(Permission.EDIT_TOPICS)),
):
    topic = content.update_topic(db, topic_id, payload)
    return _ok(topic_admin(topic, with_religion=True))


@router.delete("/topics/{topic_id}")
def topics_delete(
    topic_id: int,
    db: Session = Depends(get_db),
    _: Identity = Depends(require_permission(Permission.DELETE_TOPICS)),
):
    content.delete_topic(db, topic_id)
    return _done("Topic deleted successfully")


@router.post("/topics/{topic_id}/publish")
def topics_publish(
    topic_id: int,
    db: Session = Depends(get_db),
    _: Identity = Depends(require_permission(Permission.MANAGE_SYNC)),
):
    return _ok(topic_admin(content.publish_topic(db, topic_id), with_religion=True))
# -----------------------------------------


# --------------- Topic content ------------
@router.get("/topics/{topic_id}/content")
def content_get(
    topic_id: int,
    db: Session = Depends(get_db),
    _: Identity = Depends(require_permission(Permission.VIEW_CONTENT)),
):
    return _ok(topic_detail_admin(content.get_content(db, topic_id)))


@router.post("/topics/{topic_id}/content")
def content_create(
    topic_id: int,
    payload: TopicDetailCreate,
    db: Session = Depends(get_db),
    _: Identity = Depends(require_permission(Permission.EDIT_CONTENT)),
):
    detail = content.create_content(db, topic_id, payload)
    return _ok(topic_detail_admin(detail), status_code=201)


@router.put("/topics/{topic_id}/content")
def content_update(
    topic_id: int,
    payload: TopicDetailUpdate,
    db: Session = Depends(get_db),
    _: Identity = Depends(require_permission(Permission.EDIT_CONTENT)),
):
    return _ok(topic_detail_admin(content.update_content(db, topic_id, payload)))


@router.delete("/topics/{topic_id}/content")
def content_delete(
    topic_id: int,
    db: Session = Depends(get_db),
    _: Identity = Depends(require_permission(Permission.EDIT_CONTENT)),
):
    content.delete_content(db, topic_id)
    return _done("Content deleted successfully")


@router.post("/topics/{topic_id}/content/publish")
def content_publish(
    topic_id: int,
    db: Session = Depends(get_db),
    _: Identity = Depends(require_permission(Permission.MANAGE_SYNC)),
):
    return _ok(topic_detail_admin(content.publish_content(db, topic_id)))
# -----------------------------------------
