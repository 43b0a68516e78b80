# backend/routes/logs.py
from datetime import datetime
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from database import get_db
from models.log import Log
from schemas.reports import Pagination
from schemas.response import ApiResponse
from utils.errors import ApiError
from utils.tokenJWT import require_admin

router = APIRouter(prefix="/api/v1/admin/logs", tags=["Logs"], dependencies=[Depends(require_admin)])

# --- SCHEMAS ---
class LogResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    action: str
    resource: str
    status: str
    ip: Optional[str] = None
    ts: datetime
    meta: Optional[Any] = None

    class Config:
        from_attributes = True

class LogPage(BaseModel):
    logs: List[LogResponse]
    pagination: Pagination


def _parse_date(value: Optional[str], end_of_day: bool = False) -> Optional[datetime]:
    if not value:
        return None
    # Bare dates on the upper bound cover the whole day
    if end_of_day and len(value) == 10:
        value += " 23:59:59"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise ApiError(400, f"Bad datetime format: {value}")


# --- ENDPOINT ---
@router.get("")
def get_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    action: Optional[str] = Query(None, description="Filter by action"),
    user_id: Optional[int] = Query(None, description="Filter by user id"),
    status: Optional[str] = Query(None, description="SUCCESS or FAIL"),
    date_from: Optional[str] = Query(None, description="From (YYYY-MM-DD or ISO datetime)"),
    date_to: Optional[str] = Query(None, description="To (YYYY-MM-DD or ISO datetime)"),
    db: Session = Depends(get_db),
):
    query = db.query(Log)

    if action:
        query = query.filter(Log.action.ilike(f"%{action}%"))
    if user_id is not None:
        query = query.filter(Log.user_id == user_id)
    if status:
        query = query.filter(Log.status == status.upper())

    dt_from = _parse_date(date_from)
    if dt_from:
        query = query.filter(Log.ts >= dt_from)
    dt_to = _parse_date(date_to, end_of_day=True)
    if dt_to:
        query = query.filter(Log.ts <= dt_to)

    total = query.count()
    logs = query.order_by(Log.ts.desc(), Log.id.desc()).offset((page - 1) * limit).limit(limit).all()

    result = LogPage(
        logs=[LogResponse.model_validate(entry) for entry in logs],
        pagination=Pagination.build(total, page, limit),
    )
    return ApiResponse.of(200, result, "Logs fetched")
