# melhik/services/records.py
"""Row -> plain dict in the shapes mobile clients and the CMS expect."""
from __future__ import annotations

from melhik.models import Religion, Topic, TopicDetail
from melhik.models.common import iso
from melhik.utils.jsonfields import decode_list


def religion_record(r: Religion) -> dict:
    return {
        "id": r.id,
        "name": r.name,
        "nameEn": r.name_en,
        "description": r.description,
        "color": r.color,
        "icon": r.icon,
        "createdAt": iso(r.created_at),
        "updatedAt": iso(r.updated_at),
    }


def topic_record(t: Topic) -> dict:
    return {
        "id": t.id,
        "religionId": t.religion_id,
        "title": t.title,
        "titleEn": t.title_en,
        "description": t.description,
        "createdAt": iso(t.created_at),
        "updatedAt": iso(t.updated_at),
    }


def topic_detail_record(d: TopicDetail) -> dict:
    return {
        "id": d.id,
        "topicId": d.topic_id,
        "explanation": d.explanation,
        "bibleVerses": decode_list(d.bible_verses, field="bibleVerses", row_id=d.id),
        "keyPoints": decode_list(d.key_points, field="keyPoints", row_id=d.id),
        "references": decode_list(d.references, field="references", row_id=d.id),
        "version": d.version,
        "createdAt": iso(d.created_at),
        "updatedAt": iso(d.updated_at),
    }


# ---- CMS views carry the publish state and authoring-only fields ----

def religion_admin(r: Religion, *, with_topics: bool = False, with_details: bool = False) -> dict:
    out = religion_record(r)
    out["syncStatus"] = r.sync_status
    if with_topics:
        out["topics"] = [
            topic_admin(t, with_details=with_details) if with_details
            else {"id": t.id, "title": t.title, "titleEn": t.title_en, "syncStatus": t.sync_status}
            for t in r.topics
        ]
    return out


def topic_admin(t: Topic, *, with_religion: bool = False, with_details: bool = False) -> dict:
    out = topic_record(t)
    out["imageUrl"] = t.image_url
    out["imageAlt"] = t.image_alt
    out["syncStatus"] = t.sync_status
    if with_religion and t.religion is not None:
        out["religion"] = {
            "id": t.religion.id,
            "name": t.religion.name,
            "nameEn": t.religion.name_en,
            "color": t.religion.color,
        }
    if with_details:
        out["details"] = topic_detail_admin(t.details) if t.details else None
    else:
        out["details"] = {"id": t.details.id, "version": t.details.version} if t.details else None
    return out


def topic_detail_admin(d: TopicDetail) -> dict:
    out = topic_detail_record(d)
    out["syncStatus"] = d.sync_status
    return out
