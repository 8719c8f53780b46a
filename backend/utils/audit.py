# backend/utils/audit.py
import logging
from typing import Optional

from fastapi import Request
from sqlalchemy.orm import Session

from models.log import Log

logger = logging.getLogger("shop.audit")


def client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None or request.client is None:
        return None
    return request.client.host


# Persist an audit entry; call it after the business change is committed
def write_log(db: Session, *, user_id, action, resource, status="SUCCESS", request: Optional[Request] = None, meta=None):
    ip = client_ip(request)
    entry = Log(user_id=user_id, action=action, resource=resource, status=status, ip=ip, meta=meta or {})
    db.add(entry)
    db.commit()
    logger.info("%s %s %s user=%s ip=%s", resource, action, status, user_id, ip)
