# utils/feedback_gate.py
from datetime import datetime, timedelta
from typing import Optional, Tuple

from fastapi import Depends
from sqlalchemy.orm import Session

from database import get_db
from models.feedback import Feedback
from models.users import User
from utils.errors import ApiError
from utils.tokenJWT import require_auth


def local_day_bounds(now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """[start of today, start of tomorrow) in server local time."""
    now = now or datetime.now()
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


def has_feedback_today(db: Session, user_id: int, now: Optional[datetime] = None) -> bool:
    start, end = local_day_bounds(now)
    existing = (
        db.query(Feedback.id)
        .filter(
            Feedback.user_id == user_id,
            Feedback.created_at >= start,
            Feedback.created_at < end,
        )
        .first()
    )
    return existing is not None


def check_daily_limit(db: Session, user_id: int, now: Optional[datetime] = None) -> None:
    if has_feedback_today(db, user_id, now):
        raise ApiError(400, "You have already submitted feedback today.")


# Runs after authentication, before the feedback handler
def require_feedback_gate(
    current_user: User = Depends(require_auth),
    db: Session = Depends(get_db),
) -> User:
    check_daily_limit(db, current_user.id)
    return current_user
