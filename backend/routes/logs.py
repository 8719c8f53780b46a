# backend/routes/logs.py
from datetime import date, datetime, time, timedelta
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from database import get_db
from models.log import Log
from utils.permissions import Action, permission_required
from utils.tokenJWT import Identity

router = APIRouter(prefix="/logs", tags=["Logs"])


class LogEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    ts: Optional[datetime] = None
    user_id: Optional[int] = None
    action: str
    resource: str
    status: str
    ip: Optional[str] = None
    meta: Optional[Any] = None


class LogPage(BaseModel):
    success: bool = True
    items: List[LogEntry]
    total: int
    page: int
    page_size: int


# Audit trail, newest first (Admin only)
@router.get("", response_model=LogPage)
def list_logs(
    action: Optional[str] = Query(None, description="Action name, partial match"),
    user_id: Optional[int] = Query(None),
    resource: Optional[str] = Query(None, description="auth, users, cart or orders"),
    status: Optional[str] = Query(None, description="SUCCESS or FAIL"),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None, description="Inclusive"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    identity: Identity = Depends(permission_required(Action.VIEW_LOGS)),
):
    query = db.query(Log)

    if action:
        query = query.filter(Log.action.ilike(f"%{action}%"))
    if user_id is not None:
        query = query.filter(Log.user_id == user_id)
    if resource:
        query = query.filter(Log.resource == resource)
    if status:
        query = query.filter(Log.status == status.upper())
    if date_from:
        query = query.filter(Log.ts >= datetime.combine(date_from, time.min))
    if date_to:
        query = query.filter(Log.ts < datetime.combine(date_to + timedelta(days=1), time.min))

    total = query.count()
    entries = query.order_by(Log.ts.desc(), Log.id.desc()).offset((page - 1) * page_size).limit(page_size).all()

    return {
        "items": [LogEntry.model_validate(e) for e in entries],
        "total": total,
        "page": page,
        "page_size": page_size,
    }
