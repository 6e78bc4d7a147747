import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from models.log import Log

logger = logging.getLogger(__name__)

# Persists an activity log entry; a failed write is logged and never breaks the caller
def write_log(db: Session, *, user_id, action, resource, entity_id=None, status="SUCCESS", ip=None, meta=None):
    entry = Log(
        user_id=user_id, action=action, resource=resource, entity_id=entity_id,
        status=status, ip=ip, meta=meta or {},
    )
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to write activity log %s/%s: %s", resource, action, e)
