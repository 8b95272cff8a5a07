# melhik/routers/sync.py
"""
Public, read-only distribution surface for mobile clients.

No identity is required here; the authoring API lives under
`melhik.routers.admin` behind bearer tokens.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from melhik.db.session import get_db
from melhik.errors import InternalError
from melhik.services.sync import build_feed, parse_watermark, status_report

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sync", tags=["sync"])


@router.get("/download")
def download(
    last_sync: Optional[str] = Query(default="0", alias="lastSync"),
    client_version: Optional[str] = Query(default=None, alias="version"),
    db: Session = Depends(get_db),
):
    """
    Querystring: ?lastSync=<ms since epoch>&version=<client app version>
    - lastSync=0 (or absent): full snapshot
    - otherwise: only published rows changed after lastSync
    The response's `syncTimestamp` is the client's next lastSync.
    """
    watermark = parse_watermark(last_sync)

    try:
        feed = build_feed(db, watermark)
    except SQLAlchemyError as e:
        logger.exception("Sync download failed (lastSync=%s, client=%s)", watermark, client_version)
        raise InternalError("Failed to download content") from e

    counts = feed.counts()
    logger.info(
        "Sync download: %s since %s for client %s -> %s",
        feed.sync_type, watermark, client_version or "unknown", counts,
    )

    return {
        "success": True,
        "data": feed.as_dict(),
        "syncTimestamp": feed.sync_timestamp,
        "message": (
            f"{feed.sync_type.capitalize()} sync: {counts['religions']} religions, "
            f"{counts['topics']} topics, {counts['topicDetails']} topic details"
        ),
    }


@router.get("/status")
def sync_status(db: Session = Depends(get_db)):
    """
    Cheap "is there anything new?" check for devices, and the CMS sync page.
    Only published rows feed `lastUpdated` and `recentActivity`.
    """
    try:
        report = status_report(db)
    except SQLAlchemyError as e:
        logger.exception("Sync status failed")
        raise InternalError("Could not retrieve content information") from e
    return {"success": True, "data": report}
