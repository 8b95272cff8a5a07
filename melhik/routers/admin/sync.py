import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from melhik.db.session import get_db
from melhik.errors import InternalError
from melhik.services.sync import trigger_report
from melhik.utils.authz import Identity, Permission, require_permission

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sync", tags=["admin", "sync"])


@router.post("/trigger")
def sync_trigger(
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_permission(Permission.MANAGE_SYNC)),
):
    """
    Confirmation only: nothing is pushed. Clients see published changes on
    their next /api/sync/download call.
    """
    try:
        report = trigger_report(db, identity.username)
    except SQLAlchemyError as e:
        logger.exception("Sync trigger failed")
        raise InternalError("Sync operation failed") from e

    logger.info(
        "Manual sync triggered by %s: version=%s statistics=%s recent=%s",
        identity.username, report["version"], report["statistics"], report["recentChanges"],
    )
    return {"success": True, "data": report}
