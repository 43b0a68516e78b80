# schemas/reports.py
from typing import List
from pydantic import BaseModel

from schemas.feedback import FeedbackWithUser
from schemas.user import UserResponse

# Dashboard headline numbers
class DashboardCounts(BaseModel):
    totalUsers: int
    averageRating: float
    softDeletedUsers: int

# Histogram buckets for user sign-ups
class DailyCount(BaseModel):
    date: str
    count: int

class WeeklyCount(BaseModel):
    week: int
    count: int

# Shared pagination block for admin listings
class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    totalPages: int

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "Pagination":
        return cls(total=total, page=page, limit=limit, totalPages=-(-total // limit))

class UserPage(BaseModel):
    users: List[UserResponse]
    pagination: Pagination

class FeedbackPage(BaseModel):
    feedbacks: List[FeedbackWithUser]
    pagination: Pagination
