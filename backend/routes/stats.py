# backend/routes/stats.py

from collections import Counter
from decimal import ROUND_HALF_UP, Decimal
from datetime import datetime, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from models.feedback import Feedback
from models.users import User, active_filter, non_admin_filter
from schemas.feedback import FeedbackWithUser
from schemas.reports import DailyCount, DashboardCounts, FeedbackPage, Pagination, WeeklyCount
from schemas.response import ApiResponse
from schemas.user import RecentUser
from utils.tokenJWT import require_admin

router = APIRouter(
    prefix="/api/v1/admin",
    tags=["Stats"],
    dependencies=[Depends(require_admin)],
)

RECENT_USERS_LIMIT = 5
DAILY_WINDOW_DAYS = 7
WEEKLY_WINDOW_DAYS = 28


def window_start(days: int, now: Optional[datetime] = None) -> datetime:
    """Local midnight `days - 1` days ago, so the window includes today."""
    now = now or datetime.now()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return today - timedelta(days=days - 1)


def _created_since(db: Session, since: datetime) -> List[datetime]:
    rows = (
        db.query(User.created_at)
        .filter(active_filter(), User.created_at >= since)
        .all()
    )
    return [row.created_at for row in rows]


# === Pure aggregations, grouped in Python so any SQL backend works ===

def average_rating(stars: List[int]) -> float:
    if not stars:
        return 0.0
    # Halves round up: 2.25 -> 2.3
    average = Decimal(sum(stars)) / Decimal(len(stars))
    return float(average.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def daily_counts(timestamps: List[datetime]) -> List[DailyCount]:
    counter = Counter(ts.strftime("%Y-%m-%d") for ts in timestamps)
    return [DailyCount(date=day, count=count) for day, count in sorted(counter.items())]


def weekly_counts(timestamps: List[datetime]) -> List[WeeklyCount]:
    counter = Counter(ts.isocalendar()[1] for ts in timestamps)
    return [WeeklyCount(week=week, count=count) for week, count in sorted(counter.items())]


# === Dashboard ===

@router.get("/getUserCounts")
def get_user_counts(db: Session = Depends(get_db)):
    total_users = db.query(User).filter(active_filter(), non_admin_filter()).count()
    soft_deleted = db.query(User).filter(User.deleted_at.isnot(None)).count()
    stars = [row.stars for row in db.query(Feedback.stars).all()]

    counts = DashboardCounts(
        totalUsers=total_users,
        averageRating=average_rating(stars),
        softDeletedUsers=soft_deleted,
    )
    return ApiResponse.of(200, counts, "Dashboard counts fetched")


@router.get("/getRecentUsers")
def get_recent_users(db: Session = Depends(get_db)):
    users = (
        db.query(User)
        .filter(active_filter(), non_admin_filter())
        .order_by(User.created_at.desc(), User.id.desc())
        .limit(RECENT_USERS_LIMIT)
        .all()
    )
    return ApiResponse.of(200, [RecentUser.model_validate(u) for u in users], "Recent users fetched")


@router.get("/getLast7DaysUsers")
def get_last_7_days_users(db: Session = Depends(get_db)):
    stats = daily_counts(_created_since(db, window_start(DAILY_WINDOW_DAYS)))
    return ApiResponse.of(200, stats, "Last 7 days user stats")


@router.get("/getLast4WeeksUsers")
def get_last_4_weeks_users(db: Session = Depends(get_db)):
    stats = weekly_counts(_created_since(db, window_start(WEEKLY_WINDOW_DAYS)))
    return ApiResponse.of(200, stats, "Last 4 weeks user stats")


# === Feedback listing ===

@router.get("/getAllFeedbacks")
def get_all_feedbacks(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    total = db.query(func.count(Feedback.id)).scalar() or 0
    feedbacks = (
        db.query(Feedback)
        .order_by(Feedback.created_at.desc(), Feedback.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    result = FeedbackPage(
        feedbacks=[FeedbackWithUser.model_validate(f) for f in feedbacks],
        pagination=Pagination.build(total, page, limit),
    )
    return ApiResponse.of(200, result, "All feedbacks fetched")
