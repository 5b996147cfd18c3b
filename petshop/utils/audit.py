import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from petshop.models.log import Log

logger = logging.getLogger(__name__)

def write_log(db: Session, *, customer_id, action, resource, status="SUCCESS", meta=None):
    entry = Log(customer_id=customer_id, action=action, resource=resource, status=status, meta=meta or {})
    db.add(entry)
    try:
        db.commit()
    except SQLAlchemyError as e:
        # The audited action has already been committed
        db.rollback()
        logger.exception("Failed to write audit log %s/%s: %s", resource, action, e)
